"""
Uniform JSON envelopes carrying the fixed cross-origin headers.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from fastapi import Response
from fastapi.responses import JSONResponse

from modhub.config import get_settings


def cors_headers() -> dict[str, str]:
    """Cross-origin headers; the allowed list names the configured admin header."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": (
            f"Content-Type, {get_settings().admin_auth_header}"
        ),
    }


def json_response(
    content: Any, status: int = 200, headers: Optional[Mapping[str, str]] = None
) -> JSONResponse:
    merged = cors_headers()
    if headers:
        merged.update(headers)
    return JSONResponse(content=content, status_code=status, headers=merged)


def success(data: Optional[dict] = None, message: str = "操作成功") -> JSONResponse:
    body: dict[str, Any] = {"success": True, "message": message}
    if data:
        body["data"] = data
    return json_response(body)


def error(
    message: str, status: int = 400, headers: Optional[Mapping[str, str]] = None
) -> JSONResponse:
    return json_response({"success": False, "error": message}, status, headers)


def preflight() -> Response:
    """Empty reply to a CORS preflight request."""
    return Response(status_code=200, headers=cors_headers())
