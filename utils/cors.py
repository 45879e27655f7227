from __future__ import annotations

import os
from typing import Dict, Iterable, List, Set

import azure.functions as func


def _raw_origins() -> str:
    return os.getenv("ALLOWED_ORIGINS") or os.getenv("CORS_ALLOWED_ORIGINS") or "*"


def _parse_origins(raw: str) -> List[str]:
    """Split comma-separated origins, honoring a wildcard if present."""
    origins: List[str] = []
    for origin in raw.split(","):
        cleaned = origin.strip().rstrip("/")
        if not cleaned:
            continue
        if cleaned == "*":
            return ["*"]
        origins.append(cleaned)
    return origins


ALLOWED_ORIGINS = _parse_origins(_raw_origins())
DEFAULT_ALLOWED_HEADERS = ["Content-Type", "Authorization"]
EXPOSED_HEADERS = "Content-Disposition"


def _allow_headers(req: func.HttpRequest) -> str:
    """Known headers plus whatever the browser preflight asked for."""
    requested = req.headers.get("Access-Control-Request-Headers", "")
    merged: Dict[str, str] = {}
    for name in [*DEFAULT_ALLOWED_HEADERS, *requested.split(",")]:
        cleaned = name.strip()
        if cleaned:
            merged.setdefault(cleaned.lower(), cleaned)
    return ", ".join(merged.values())


def _normalize_methods(allowed_methods: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    methods: List[str] = []
    for method in allowed_methods:
        normalized = method.strip().upper()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        methods.append(normalized)
    if "OPTIONS" not in seen:
        methods.append("OPTIONS")
    return methods


def build_cors_headers(
    req: func.HttpRequest,
    allowed_methods: Iterable[str],
    origins: List[str] | None = None,
) -> Dict[str, str]:
    """
    Return CORS headers for the request.
    With the default `*` configuration every origin is allowed, which is what the
    embedded Megaplan page needs; an explicit list only echoes matching origins.
    """
    allowed = ALLOWED_ORIGINS if origins is None else origins
    origin = (req.headers.get("origin") or req.headers.get("Origin") or "").rstrip("/")
    allow_all = not allowed or "*" in allowed

    headers: Dict[str, str] = {"Vary": "Origin"}
    if allow_all:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in allowed:
        headers["Access-Control-Allow-Origin"] = origin
    else:
        return headers

    headers.update(
        {
            "Access-Control-Allow-Methods": ", ".join(_normalize_methods(allowed_methods)),
            "Access-Control-Allow-Headers": _allow_headers(req),
            "Access-Control-Expose-Headers": EXPOSED_HEADERS,
        }
    )
    return headers
