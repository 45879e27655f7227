import unittest

from services.expense_normalizer import (
    UNKNOWN_CONTRACTOR,
    ExpenseNormalizer,
    Organization,
    Person,
    contractor_from_record,
)
from shared.config import FieldMap

from megaplan_fake import make_settings

PARENT = {
    "id": "28744",
    "name": "Выставка Москва",
    "manager": {"name": "Parent Manager"},
    "responsible": {"name": "Parent Responsible"},
}


def _child(**overrides):
    record = {
        "id": "28994",
        "name": "Логистика",
        "description": "<p>Доставка стенда</p>",
        "contractor": {"contentType": "ContractorCompany", "name": "Acme LLC"},
        "customFields": {
            "1001": "Оплачен",
            "1002": "Логистика",
            "1003": "Brand X",
            "1005": "Безнал",
            "1006": "1000.50",
            "1007": 200,
            "1008": "1200.5",
            "1009": "",
            "1010": "EUR",
        },
        "program": {"id": "36"},
    }
    record.update(overrides)
    return record


class ContractorTests(unittest.TestCase):
    def test_person_joins_first_and_last_name(self):
        contractor = contractor_from_record({"firstName": "Ivan", "lastName": "Petrov"})
        self.assertEqual(contractor, Person("Ivan", "Petrov"))
        self.assertEqual(contractor.display_name, "Ivan Petrov")

    def test_person_with_one_part_is_trimmed(self):
        self.assertEqual(contractor_from_record({"firstName": "", "lastName": "Petrov"}).display_name, "Petrov")
        self.assertEqual(contractor_from_record({"firstName": "Ivan"}).display_name, "Ivan")

    def test_organization_uses_name(self):
        contractor = contractor_from_record({"name": "Acme LLC"})
        self.assertEqual(contractor, Organization("Acme LLC"))
        self.assertEqual(contractor.display_name, "Acme LLC")

    def test_person_wins_over_name(self):
        contractor = contractor_from_record({"firstName": "Ivan", "lastName": "Petrov", "name": "Ivan P."})
        self.assertIsInstance(contractor, Person)

    def test_neither_shape_is_unknown(self):
        self.assertIs(contractor_from_record({}), UNKNOWN_CONTRACTOR)
        self.assertIs(contractor_from_record(None), UNKNOWN_CONTRACTOR)
        self.assertIs(contractor_from_record("Acme"), UNKNOWN_CONTRACTOR)
        self.assertEqual(contractor_from_record({}).display_name, "")


class NormalizeTests(unittest.TestCase):
    def setUp(self):
        self.normalizer = ExpenseNormalizer(make_settings())

    def test_maps_custom_fields(self):
        expense = self.normalizer.normalize(_child(), PARENT)
        self.assertEqual(expense.deal_id, "28994")
        self.assertEqual(expense.parent_deal_id, "28744")
        self.assertEqual(expense.parent_deal_name, "Выставка Москва")
        self.assertEqual(expense.status, "Оплачен")
        self.assertEqual(expense.category, "Логистика")
        self.assertEqual(expense.brand, "Brand X")
        self.assertEqual(expense.payment_type, "Безнал")
        self.assertEqual(expense.amount, 1000.5)
        self.assertEqual(expense.additional_cost, 200.0)
        self.assertEqual(expense.final_cost, 1200.5)
        self.assertEqual(expense.fair_cost, 0.0)
        self.assertEqual(expense.currency, "EUR")
        self.assertEqual(expense.contractor.display_name, "Acme LLC")

    def test_numeric_fields_default_to_zero(self):
        child = _child(customFields={"1006": "", "1007": None, "1008": "n/a", "1009": {"value": 10}})
        expense = self.normalizer.normalize(child, PARENT)
        self.assertEqual(
            (expense.amount, expense.additional_cost, expense.final_cost, expense.fair_cost),
            (0.0, 0.0, 0.0, 0.0),
        )

    def test_currency_defaults_to_rub(self):
        expense = self.normalizer.normalize(_child(customFields={}), PARENT)
        self.assertEqual(expense.currency, "RUB")
        self.assertEqual(expense.status, "")

    def test_description_falls_back_to_name(self):
        self.assertEqual(self.normalizer.normalize(_child(), PARENT).description, "<p>Доставка стенда</p>")
        self.assertEqual(self.normalizer.normalize(_child(description=""), PARENT).description, "Логистика")
        self.assertEqual(self.normalizer.normalize(_child(description=None, name=None), PARENT).description, "")

    def test_deal_link_uses_account_and_child_id(self):
        expense = self.normalizer.normalize(_child(), PARENT)
        self.assertEqual(expense.deal_link, "https://acme.megaplan.ru/deals/28994/card/")

    def test_manager_prefers_linked_deal(self):
        child = _child(manager={"name": "Child Manager"}, responsible={"name": "Child Responsible"})
        self.assertEqual(self.normalizer.normalize(child, PARENT).manager, "Child Manager")

        child = _child(responsible={"name": "Child Responsible"})
        self.assertEqual(self.normalizer.normalize(child, PARENT).manager, "Child Responsible")

    def test_manager_falls_back_to_parent(self):
        self.assertEqual(self.normalizer.normalize(_child(), PARENT).manager, "Parent Manager")
        parent = {"id": "1", "responsible": {"name": "Parent Responsible"}, "manager": None}
        self.assertEqual(self.normalizer.normalize(_child(), parent).manager, "Parent Responsible")
        self.assertEqual(self.normalizer.normalize(_child(), {}).manager, "")

    def test_owner_and_creator_chains(self):
        child = _child(owner={"name": "Owner"}, createdBy={"name": "Creator"})
        expense = self.normalizer.normalize(child, PARENT)
        self.assertEqual(expense.owner, "Owner")
        self.assertEqual(expense.creator, "Creator")

        child = _child(createdBy={"name": "Creator"})
        self.assertEqual(self.normalizer.normalize(child, PARENT).owner, "Creator")

        child = _child(created={"by": {"name": "Legacy Creator"}})
        expense = self.normalizer.normalize(child, PARENT)
        self.assertEqual(expense.owner, "")
        self.assertEqual(expense.creator, "Legacy Creator")

    def test_path_specifiers_are_supported(self):
        settings = make_settings(
            fields=FieldMap(final_cost="$.Category1000084CustomFieldFinalnayaStoimost.valueInMain")
        )
        child = _child(Category1000084CustomFieldFinalnayaStoimost={"valueInMain": {"value": "450.25"}})
        expense = ExpenseNormalizer(settings).normalize(child, PARENT)
        self.assertEqual(expense.final_cost, 450.25)

    def test_normalize_is_idempotent(self):
        child = _child()
        first = self.normalizer.normalize(child, PARENT)
        second = self.normalizer.normalize(child, PARENT)
        self.assertEqual(first, second)
        self.assertEqual(child, _child())

    def test_to_dict_shape(self):
        payload = self.normalizer.normalize(_child(), PARENT).to_dict()
        self.assertEqual(payload["deal_id"], "28994")
        self.assertEqual(payload["contractor"], "Acme LLC")
        self.assertEqual(payload["paymentType"], "Безнал")
        self.assertEqual(payload["finalCost"], 1200.5)
        self.assertEqual(payload["deal_name"], "Логистика")
        self.assertEqual(payload["dealLink"], "https://acme.megaplan.ru/deals/28994/card/")


if __name__ == "__main__":
    unittest.main()
