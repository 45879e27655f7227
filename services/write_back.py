from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from services.aggregation import program_total
from services.expense_report import fetch_linked_records, fetch_parent_deal
from services.megaplan_client import MegaplanClient
from shared.config import Settings
from shared.errors import UpstreamError, WriteBackFailure

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    deal_id: str
    deal_name: str
    expenses_count: int
    total_amount: float
    updated: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dealId": self.deal_id,
            "dealName": self.deal_name,
            "expensesCount": self.expenses_count,
            "totalAmount": self.total_amount,
            "updated": self.updated,
            "message": self.message,
        }


def money_field_payload(deal_id: str, field: str, value: Any) -> Dict[str, Any]:
    return {
        "contentType": "Deal",
        "id": deal_id,
        field: {"contentType": "Money", "value": value},
    }


async def write_back_total(client: MegaplanClient, settings: Settings, deal_id: str, value: Any) -> Any:
    """Store `value` in the configured expenses-total field of the deal; raises WriteBackFailure."""
    payload = money_field_payload(deal_id, settings.expenses_total_field, value)
    try:
        return await client.update_deal(deal_id, payload, method=settings.write_back_method)
    except UpstreamError as exc:
        logger.error("Update field error for deal %s: %s", deal_id, exc.message)
        raise WriteBackFailure(exc.message, status=exc.upstream_status, body=exc.upstream_body) from exc


async def sync_deal_expenses(client: MegaplanClient, settings: Settings, deal_id: str) -> SyncResult:
    """
    Recompute the expenses total of a deal from its linked deals and write it back.
    The total is still reported when the write-back fails.
    """
    deal = await fetch_parent_deal(client, deal_id)
    deal_name = str(deal.get("name") or "")
    summaries = await client.get_linked_deals(deal_id)
    logger.info("Found %s linked deals for %s", len(summaries), deal_id)

    if not summaries:
        return SyncResult(
            deal_id=deal_id,
            deal_name=deal_name,
            expenses_count=0,
            total_amount=0,
            updated=False,
            message="No linked expenses found",
        )

    records = await fetch_linked_records(client, summaries)
    total_amount = program_total(records, settings.programs)

    try:
        await write_back_total(client, settings, deal_id, total_amount)
    except WriteBackFailure as exc:
        return SyncResult(
            deal_id=deal_id,
            deal_name=deal_name,
            expenses_count=len(records),
            total_amount=total_amount,
            updated=False,
            message=f"Calculated but failed to update: {exc.message}",
        )

    logger.info("Synced deal %s expenses total: %s", deal_id, total_amount)
    return SyncResult(
        deal_id=deal_id,
        deal_name=deal_name,
        expenses_count=len(records),
        total_amount=total_amount,
        updated=True,
        message="Expenses synced successfully",
    )
