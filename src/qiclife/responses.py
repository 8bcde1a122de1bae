"""Response envelope helpers.

Every successful payload is ``{"success": true, "data": ...}`` with an
optional ``message``; errors are rendered by the middleware error handler as
``{"success": false, "message": ..., "error": ...}``.
"""

from __future__ import annotations

from typing import Any


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def error_body(message: str, error: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body
