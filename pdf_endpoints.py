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
from services.pdf_service import render_pdf
from services.presenters import build_report_html, pdf_filename
from shared.config import Settings
from utils.cors import build_cors_headers

logger = logging.getLogger(__name__)


async def handle_pdf(
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

    logger.info("Generating PDF for deal %s...", deal_id)
    try:
        async with MegaplanClient(config, transport=transport) as client:
            report = await build_expense_report(client, ExpenseNormalizer(config), deal_id)
        html = build_report_html(report.deal_name, report.expenses, report.total, today or date.today())
        pdf = await render_pdf(html, config, transport=transport)
    except Exception as exc:  # pylint: disable=broad-except
        return error_response(exc, cors, f"PDF export for deal {deal_id} failed")

    logger.info("PDF generated successfully for deal %s", deal_id)
    headers = dict(cors)
    headers["Content-Disposition"] = f'attachment; filename="{pdf_filename(deal_id)}"'
    return func.HttpResponse(pdf, status_code=200, mimetype="application/pdf", headers=headers)


@app.function_name(name="PdfApi")
@app.route(route="pdf", methods=ROUTED_READ_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
async def pdf_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, READ_METHODS)
    return await handle_pdf(req, cors, settings)
