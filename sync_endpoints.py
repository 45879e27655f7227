import logging
import math
from typing import Any, Dict, Optional

import azure.functions as func
import httpx

from endpoint_shared import (
    error_response,
    json_response,
    parse_json_body,
    preflight_or_reject,
    require_deal_id,
)
from function_app import app, settings
from services.aggregation import round_money
from services.megaplan_client import MegaplanClient
from services.write_back import sync_deal_expenses, write_back_total
from shared.config import Settings
from shared.errors import WriteBackFailure
from utils.cors import build_cors_headers

logger = logging.getLogger(__name__)

SYNC_METHODS = ["GET", "POST", "OPTIONS"]
UPDATE_METHODS = ["POST", "OPTIONS"]


async def handle_sync(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors, allowed=("GET", "POST"))
    if early:
        return early
    deal_id, missing = require_deal_id(req, cors, example="/api/sync-expenses?dealId=28744")
    if missing:
        return missing

    logger.info("Syncing expenses for deal %s...", deal_id)
    try:
        async with MegaplanClient(config, transport=transport) as client:
            result = await sync_deal_expenses(client, config, deal_id)
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"Sync expenses for deal {deal_id} failed")

    return json_response(result.to_dict(), 200, cors)


def _field_value(raw: Any) -> Optional[float]:
    """Finite number or numeric string rounded to cents; None for anything else."""
    if isinstance(raw, bool):
        return None
    if not isinstance(raw, (int, float, str)):
        return None
    try:
        parsed = float(raw.strip() if isinstance(raw, str) else raw)
    except (ValueError, OverflowError):
        return None
    return round_money(parsed) if math.isfinite(parsed) else None


async def handle_update_field(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors, allowed=("POST",))
    if early:
        return early

    body = parse_json_body(req)
    deal_id = str(body.get("dealId") or "").strip()
    if not deal_id or "fieldValue" not in body:
        return json_response({"error": "Missing required parameters: dealId, fieldValue"}, 400, cors)
    value = _field_value(body.get("fieldValue"))
    if value is None:
        return json_response({"error": "fieldValue must be a number"}, 400, cors)

    logger.info("Updating deal %s with expenses total: %s", deal_id, value)
    try:
        async with MegaplanClient(config, transport=transport) as client:
            await write_back_total(client, config, deal_id, value)
    except WriteBackFailure as exc:
        # The total was computed by the caller already; a failed update is reported, not raised.
        logger.warning("Field update for deal %s failed: %s", deal_id, exc.message)
        return json_response(
            {"success": False, "error": exc.message, "note": "Field update failed but request continues"},
            200,
            cors,
        )
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"Field update for deal {deal_id} failed")

    logger.info("Successfully updated deal %s", deal_id)
    return json_response(
        {
            "success": True,
            "dealId": deal_id,
            "fieldValue": value,
            "message": "Deal field updated successfully",
        },
        200,
        cors,
    )


@app.function_name(name="SyncExpensesApi")
@app.route(route="sync-expenses", methods=SYNC_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def sync_expenses_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, SYNC_METHODS)
    return await handle_sync(req, cors, settings)


@app.function_name(name="UpdateFieldApi")
@app.route(route="update-field", methods=UPDATE_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def update_field_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, UPDATE_METHODS)
    return await handle_update_field(req, cors, settings)
