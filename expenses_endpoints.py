import logging
from typing import Dict, Optional

import azure.functions as func
import httpx

from endpoint_shared import (
    READ_METHODS,
    ROUTED_READ_METHODS,
    error_response,
    json_response,
    preflight_or_reject,
    require_deal_id,
)
from function_app import app, settings
from services.expense_normalizer import ExpenseNormalizer
from services.expense_report import build_expense_report
from services.megaplan_client import MegaplanClient
from services.presenters import expenses_payload
from shared.config import Settings
from utils.cors import build_cors_headers

logger = logging.getLogger(__name__)

DEFAULT_TASK_LIMIT = 50
MAX_TASK_LIMIT = 100


async def handle_expenses(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors)
    if early:
        return early
    deal_id, missing = require_deal_id(req, cors)
    if missing:
        return missing

    logger.info("Fetching expenses for deal %s...", deal_id)
    try:
        async with MegaplanClient(config, transport=transport) as client:
            report = await build_expense_report(client, ExpenseNormalizer(config), deal_id)
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"Expenses request for deal {deal_id} failed")

    return json_response(expenses_payload(report), 200, cors)


def _task_limit(raw: Optional[str]) -> int:
    try:
        limit = int(raw) if raw else DEFAULT_TASK_LIMIT
    except ValueError:
        limit = DEFAULT_TASK_LIMIT
    return max(1, min(MAX_TASK_LIMIT, limit))


async def handle_deal_tasks(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors)
    if early:
        return early
    deal_id, missing = require_deal_id(req, cors)
    if missing:
        return missing

    limit = _task_limit(req.params.get("limit"))
    try:
        async with MegaplanClient(config, transport=transport) as client:
            tasks = await client.list_deal_tasks(deal_id, limit=limit)
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"Task list for deal {deal_id} failed")

    return json_response({"dealId": deal_id, "tasks": tasks}, 200, cors)


@app.function_name(name="ExpensesApi")
@app.route(route="expenses", methods=ROUTED_READ_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def expenses_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, READ_METHODS)
    return await handle_expenses(req, cors, settings)


@app.function_name(name="DealTasksApi")
@app.route(route="deal-tasks", methods=ROUTED_READ_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def deal_tasks_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, READ_METHODS)
    return await handle_deal_tasks(req, cors, settings)
