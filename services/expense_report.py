from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from services.aggregation import total
from services.expense_normalizer import Expense, ExpenseNormalizer
from services.megaplan_client import MegaplanClient
from shared.errors import UpstreamError, UpstreamNotFound

logger = logging.getLogger(__name__)


@dataclass
class LinkedDeals:
    deal: Dict[str, Any]
    linked_count: int
    records: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ExpenseReport:
    deal_id: str
    deal_name: str
    expenses: List[Expense]
    linked_count: int
    total: float


async def fetch_parent_deal(client: MegaplanClient, deal_id: str) -> Dict[str, Any]:
    deal = await client.get_deal(deal_id)
    if not deal:
        raise UpstreamNotFound(f"Deal {deal_id} not found")
    return deal


async def _fetch_linked_record(client: MegaplanClient, linked_id: Any) -> Optional[Dict[str, Any]]:
    try:
        return await client.get_deal(str(linked_id))
    except UpstreamError as exc:
        logger.warning("Dropping linked deal %s: %s", linked_id, exc)
        return None


async def fetch_linked_records(client: MegaplanClient, summaries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fetch every linked deal concurrently; failed or empty fetches are dropped, not raised."""
    ids = [summary.get("id") for summary in summaries if summary.get("id") is not None]
    results = await asyncio.gather(*(_fetch_linked_record(client, linked_id) for linked_id in ids))
    return [record for record in results if record is not None]


async def fetch_linked_deals(client: MegaplanClient, deal_id: str) -> LinkedDeals:
    """Parent deal plus the full records of its linked deals. Parent/summary failures propagate."""
    deal = await fetch_parent_deal(client, deal_id)
    logger.info("Requesting linked deals for %s...", deal_id)
    summaries = await client.get_linked_deals(deal_id)
    logger.info("Found %s linked deals", len(summaries))
    records = await fetch_linked_records(client, summaries) if summaries else []
    logger.info("Fetched %s linked deals with full data", len(records))
    return LinkedDeals(deal=deal, linked_count=len(summaries), records=records)


def normalize_records(
    normalizer: ExpenseNormalizer,
    records: List[Dict[str, Any]],
    parent: Dict[str, Any],
) -> List[Expense]:
    expenses: List[Expense] = []
    for record in records:
        try:
            expenses.append(normalizer.normalize(record, parent))
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Skipping linked deal %s that could not be normalized: %s", record.get("id"), exc)
    return expenses


async def build_expense_report(
    client: MegaplanClient,
    normalizer: ExpenseNormalizer,
    deal_id: str,
) -> ExpenseReport:
    linked = await fetch_linked_deals(client, deal_id)
    expenses = normalize_records(normalizer, linked.records, linked.deal)
    return ExpenseReport(
        deal_id=str(linked.deal.get("id") or deal_id),
        deal_name=str(linked.deal.get("name") or ""),
        expenses=expenses,
        linked_count=linked.linked_count,
        total=total(expenses),
    )
