from __future__ import annotations

import logging
from typing import Optional

import httpx

from shared.config import Settings
from shared.errors import RenderServiceError, RenderServiceUnavailable

logger = logging.getLogger(__name__)

CONVERT_HTML_PATH = "/forms/chromium/convert/html"


async def render_pdf(
    html: str,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """Convert a self-contained HTML document to PDF through Gotenberg's Chromium route."""
    url = f"{settings.gotenberg_url}{CONVERT_HTML_PATH}"
    files = {"files": ("index.html", html.encode("utf-8"), "text/html")}
    logger.info("Sending to Gotenberg for PDF conversion...")
    try:
        async with httpx.AsyncClient(timeout=settings.pdf_timeout_seconds, transport=transport) as client:
            response = await client.post(url, files=files)
    except httpx.ConnectError as exc:
        logger.error("Gotenberg is unreachable at %s: %s", settings.gotenberg_url, exc)
        raise RenderServiceUnavailable(f"Cannot connect to PDF service: {exc}") from exc
    except httpx.HTTPError as exc:
        logger.error("Gotenberg request failed: %s", exc)
        raise RenderServiceError(f"PDF service request failed: {exc}") from exc

    if response.status_code >= 300:
        logger.error("Gotenberg conversion failed: %s - %s", response.status_code, response.text)
        raise RenderServiceError(
            f"PDF conversion failed ({response.status_code})",
            status=response.status_code,
            body=response.text,
        )
    return response.content
