from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import azure.functions as func

from shared.errors import ExpensesError

logger = logging.getLogger(__name__)

READ_METHODS = ["GET", "OPTIONS"]
# Read routes also accept the write verbs so they can answer 405 instead of the host's 404.
ROUTED_READ_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def json_response(payload: Any, status_code: int, cors: Dict[str, str]) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(payload, ensure_ascii=False),
        status_code=status_code,
        mimetype="application/json",
        charset="utf-8",
        headers=cors,
    )


def options_response(cors: Dict[str, str]) -> func.HttpResponse:
    return func.HttpResponse("", status_code=204, headers=cors)


def method_not_allowed(cors: Dict[str, str]) -> func.HttpResponse:
    return json_response({"error": "Method not allowed"}, 405, cors)


def preflight_or_reject(req: func.HttpRequest, cors: Dict[str, str], allowed=("GET",)) -> Optional[func.HttpResponse]:
    """Answer OPTIONS and unsupported methods; None means the handler should carry on."""
    method = (req.method or "").upper()
    if method == "OPTIONS":
        return options_response(cors)
    if method not in allowed:
        return method_not_allowed(cors)
    return None


def parse_json_body(req: func.HttpRequest) -> dict:
    try:
        body = req.get_json()
    except ValueError:
        body = None
    return body if isinstance(body, dict) else {}


def require_deal_id(req: func.HttpRequest, cors: Dict[str, str], example: str = "") -> tuple[str, Optional[func.HttpResponse]]:
    deal_id = str(req.params.get("dealId") or "").strip()
    if deal_id:
        return deal_id, None
    payload = {"error": "dealId parameter is required"}
    if example:
        payload["example"] = example
    return "", json_response(payload, 400, cors)


def error_response(exc: Exception, cors: Dict[str, str], context: str) -> func.HttpResponse:
    """Turn any failure into a JSON error body; stack traces stay in the log."""
    if isinstance(exc, ExpensesError):
        logger.error("%s: %s", context, exc.message)
        return json_response(exc.to_payload(), exc.status_code, cors)
    logger.exception("%s: %s", context, exc)
    return json_response({"error": "Internal server error", "message": str(exc)}, 500, cors)
