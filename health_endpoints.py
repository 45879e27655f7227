from datetime import datetime, timezone
from typing import Dict, Optional

import azure.functions as func

from endpoint_shared import READ_METHODS, ROUTED_READ_METHODS, json_response, preflight_or_reject
from function_app import app, settings
from shared.config import Settings
from utils.cors import build_cors_headers


def handle_health(
    req: func.HttpRequest,
    cors: Dict[str, str],
    config: Settings,
    now: Optional[datetime] = None,
) -> func.HttpResponse:
    early = preflight_or_reject(req, cors)
    if early:
        return early
    return json_response(
        {
            "status": "ok",
            "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
            "env": config.describe(),
        },
        200,
        cors,
    )


@app.function_name(name="HealthApi")
@app.route(route="health", methods=ROUTED_READ_METHODS, auth_level=func.AuthLevel.ANONYMOUS)
def health_api(req: func.HttpRequest) -> func.HttpResponse:
    cors = build_cors_headers(req, READ_METHODS)
    return handle_health(req, cors, settings)
