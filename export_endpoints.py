import logging
from datetime import date
from typing import Dict, Optional

import azure.functions as func
import httpx

from endpoint_shared import READ_METHODS, ROUTED_READ_METHODS, error_response, preflight_or_reject, require_deal_id
from function_app import app, settings
from services.expense_normalizer import ExpenseNormalizer
from services.expense_report import build_expense_report
from services.megaplan_client import MegaplanClient
from services.presenters import build_csv, csv_filename
from shared.config import Settings
from utils.cors import build_cors_headers

logger = logging.getLogger(__name__)


async def handle_export(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    today: Optional[date] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors)
    if early:
        return early
    deal_id, missing = require_deal_id(req, cors)
    if missing:
        return missing

    logger.info("Exporting expenses for deal %s...", deal_id)
    try:
        async with MegaplanClient(config, transport=transport) as client:
            report = await build_expense_report(client, ExpenseNormalizer(config), deal_id)
        content = build_csv(report.expenses, report.total)
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"Export for deal {deal_id} failed")

    filename = csv_filename(deal_id, today or date.today())
    headers = dict(cors)
    headers["Content-Type"] = "text/csv; charset=utf-8"
    headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return func.HttpResponse(content.encode("utf-8"), status_code=200, mimetype="text/csv", headers=headers)


@app.function_name(name="ExportApi")
@app.route(route="export", methods=ROUTED_READ_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def export_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, READ_METHODS)
    return await handle_export(req, cors, settings)
