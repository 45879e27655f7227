import unittest

from services.megaplan_client import MegaplanClient
from services.write_back import money_field_payload, sync_deal_expenses, write_back_total
from shared.errors import UpstreamNotFound, WriteBackFailure

from megaplan_fake import FakeMegaplan, make_settings

TOTAL_FIELD = "Category1000061CustomFieldRashodiSummaItogo"
LOGISTICS = "Category1000084CustomFieldFinalnayaStoimost"
SUPPLIERS = "Category1000083CustomFieldFinalnayaStoimost"


def _program_deal(deal_id, program_id, field, value):
    return {
        "id": deal_id,
        "name": f"Расход {deal_id}",
        "program": {"id": program_id},
        field: {"contentType": "Money", "value": value, "valueInMain": value},
    }


def _deals():
    return {
        "28744": {"id": "28744", "name": "Выставка"},
        "201": _program_deal("201", "36", LOGISTICS, 1000.005),
        "202": _program_deal("202", "35", SUPPLIERS, 500),
        "203": _program_deal("203", "12", LOGISTICS, 9999),
    }


class SyncTests(unittest.IsolatedAsyncioTestCase):
    async def _sync(self, fake, settings=None, deal_id="28744"):
        settings = settings or make_settings()
        async with MegaplanClient(settings, transport=fake.transport) as client:
            return await sync_deal_expenses(client, settings, deal_id)

    async def test_no_linked_deals_skips_write_back(self):
        fake = FakeMegaplan(deals=_deals())
        result = await self._sync(fake)
        self.assertEqual(
            result.to_dict(),
            {
                "dealId": "28744",
                "dealName": "Выставка",
                "expensesCount": 0,
                "totalAmount": 0,
                "updated": False,
                "message": "No linked expenses found",
            },
        )
        self.assertEqual(fake.updates, [])
        self.assertEqual(fake.requests_to("POST", "/api/v3/deal/28744"), [])

    async def test_sums_program_fields_and_writes_total(self):
        fake = FakeMegaplan(deals=_deals(), linked={"28744": ["201", "202", "203"]})
        result = await self._sync(fake)
        self.assertTrue(result.updated)
        self.assertEqual(result.expenses_count, 3)
        self.assertEqual(result.total_amount, 1500.01)
        self.assertEqual(result.message, "Expenses synced successfully")
        self.assertEqual(
            fake.updates,
            [
                {
                    "method": "POST",
                    "dealId": "28744",
                    "body": {
                        "contentType": "Deal",
                        "id": "28744",
                        TOTAL_FIELD: {"contentType": "Money", "value": 1500.01},
                    },
                }
            ],
        )

    async def test_failed_linked_fetch_is_not_counted(self):
        fake = FakeMegaplan(deals=_deals(), linked={"28744": ["201", "202"]}, failing=["202"])
        result = await self._sync(fake)
        self.assertEqual(result.expenses_count, 1)
        self.assertEqual(result.total_amount, 1000.01)

    async def test_write_failure_still_reports_total(self):
        fake = FakeMegaplan(deals=_deals(), linked={"28744": ["201"]}, update_status=500)
        result = await self._sync(fake)
        self.assertFalse(result.updated)
        self.assertEqual(result.total_amount, 1000.01)
        self.assertTrue(result.message.startswith("Calculated but failed to update: "))
        self.assertEqual(len(fake.updates), 1)

    async def test_put_method_is_configurable(self):
        fake = FakeMegaplan(deals=_deals(), linked={"28744": ["202"]})
        result = await self._sync(fake, settings=make_settings(write_back_method="PUT"))
        self.assertTrue(result.updated)
        self.assertEqual(fake.updates[0]["method"], "PUT")

    async def test_missing_deal_is_not_found(self):
        fake = FakeMegaplan(deals=_deals())
        with self.assertRaises(UpstreamNotFound):
            await self._sync(fake, deal_id="1")
        self.assertEqual(fake.updates, [])


class WriteBackTotalTests(unittest.IsolatedAsyncioTestCase):
    def test_payload_shape(self):
        self.assertEqual(
            money_field_payload("7", "Field", 12.5),
            {"contentType": "Deal", "id": "7", "Field": {"contentType": "Money", "value": 12.5}},
        )

    async def test_upstream_error_becomes_write_back_failure(self):
        settings = make_settings()
        fake = FakeMegaplan(update_status=403)
        async with MegaplanClient(settings, transport=fake.transport) as client:
            with self.assertRaises(WriteBackFailure) as ctx:
                await write_back_total(client, settings, "7", 10)
        self.assertEqual(ctx.exception.upstream_status, 403)

    async def test_custom_total_field(self):
        settings = make_settings(expenses_total_field="CustomTotal")
        fake = FakeMegaplan()
        async with MegaplanClient(settings, transport=fake.transport) as client:
            await write_back_total(client, settings, "7", 10)
        self.assertIn("CustomTotal", fake.updates[0]["body"])


if __name__ == "__main__":
    unittest.main()
