from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from services.field_resolver import get_name, is_blank, parse_amount, resolve
from shared.config import FieldMap, Settings


DEFAULT_CURRENCY = "RUB"


@dataclass(frozen=True)
class Person:
    first_name: str
    last_name: str

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Organization:
    name: str

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class UnknownContractor:
    @property
    def display_name(self) -> str:
        return ""


Contractor = Union[Person, Organization, UnknownContractor]
UNKNOWN_CONTRACTOR = UnknownContractor()


def _text(value: Any) -> str:
    if is_blank(value):
        return ""
    return value if isinstance(value, str) else str(value)


def contractor_from_record(raw: Any) -> Contractor:
    """
    Megaplan returns either a ContractorHuman (firstName/lastName) or a
    ContractorCompany (name); first/last name wins when both shapes are present.
    """
    if not isinstance(raw, dict):
        return UNKNOWN_CONTRACTOR
    first_name = _text(raw.get("firstName"))
    last_name = _text(raw.get("lastName"))
    if first_name or last_name:
        return Person(first_name=first_name, last_name=last_name)
    name = _text(raw.get("name"))
    if name:
        return Organization(name=name)
    return UNKNOWN_CONTRACTOR


def _first_name_of(*candidates: tuple) -> str:
    for record, path in candidates:
        name = get_name(record, *path)
        if name:
            return name
    return ""


@dataclass(frozen=True)
class Expense:
    deal_id: str
    deal_name: str
    parent_deal_id: str
    parent_deal_name: str
    status: str
    category: str
    brand: str
    contractor: Contractor
    payment_type: str
    amount: float
    additional_cost: float
    final_cost: float
    fair_cost: float
    currency: str
    description: str
    deal_link: str
    manager: str
    owner: str
    creator: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deal_id": self.deal_id,
            "status": self.status,
            "category": self.category,
            "brand": self.brand,
            "contractor": self.contractor.display_name,
            "paymentType": self.payment_type,
            "amount": self.amount,
            "additionalCost": self.additional_cost,
            "finalCost": self.final_cost,
            "fairCost": self.fair_cost,
            "currency": self.currency,
            "description": self.description,
            "dealLink": self.deal_link,
            "manager": self.manager,
            "owner": self.owner,
            "creator": self.creator,
            "deal_name": self.deal_name,
        }


def normalize(
    child: Dict[str, Any],
    parent: Optional[Dict[str, Any]],
    fields: FieldMap,
    *,
    account: str,
    link_template: str,
) -> Expense:
    """Build the Expense for one linked deal; `parent` is the umbrella deal it hangs off."""
    parent = parent or {}
    child_id = _text(child.get("id"))
    return Expense(
        deal_id=child_id,
        deal_name=_text(child.get("name")),
        parent_deal_id=_text(parent.get("id")),
        parent_deal_name=_text(parent.get("name")),
        status=_text(resolve(child, fields.status)),
        category=_text(resolve(child, fields.category)),
        brand=_text(resolve(child, fields.brand)),
        contractor=contractor_from_record(child.get("contractor")),
        payment_type=_text(resolve(child, fields.payment_type)),
        amount=parse_amount(resolve(child, fields.amount)),
        additional_cost=parse_amount(resolve(child, fields.additional_cost)),
        final_cost=parse_amount(resolve(child, fields.final_cost)),
        fair_cost=parse_amount(resolve(child, fields.fair_cost)),
        currency=_text(resolve(child, fields.currency)) or DEFAULT_CURRENCY,
        description=_text(child.get("description")) or _text(child.get("name")),
        deal_link=link_template.format(account=account, deal_id=child_id),
        manager=_first_name_of(
            (child, ("manager",)),
            (child, ("responsible",)),
            (parent, ("manager",)),
            (parent, ("responsible",)),
        ),
        owner=_first_name_of((child, ("owner",)), (child, ("createdBy",))),
        creator=_first_name_of((child, ("createdBy",)), (child, ("created", "by"))),
    )


class ExpenseNormalizer:
    """Normalizer bound to one Settings instance."""

    def __init__(self, settings: Settings):
        self._fields = settings.fields
        self._account = settings.account
        self._link_template = settings.deal_url_template

    def normalize(self, child: Dict[str, Any], parent: Optional[Dict[str, Any]]) -> Expense:
        return normalize(
            child,
            parent,
            self._fields,
            account=self._account,
            link_template=self._link_template,
        )
