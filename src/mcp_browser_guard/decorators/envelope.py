# mcp_browser_guard/decorators/envelope.py

import os
import json
import asyncio
import inspect
import datetime
import functools
import traceback
from typing import Any, Callable

from ..errors import (
    AccessDeniedError,
    DeadlineExceededError,
    FileSizeExceededError,
    PageNotFoundError,
    RetryError,
    StrategyNotFoundError,
)


__all__ = [
    "tool_envelope",
    "error_details",
]


def error_details(err: BaseException) -> dict:
    """Machine-readable fields for the package's typed errors."""
    details: dict = {}
    if isinstance(err, RetryError):
        details.update({
            "operation": err.operation,
            "strategy": err.strategy,
            "attempts": err.attempts,
            "kind": "deadline_exceeded" if isinstance(err, DeadlineExceededError) else "retries_exhausted",
        })
        if err.last_error is not None:
            details["last_error"] = {
                "type": err.last_error.__class__.__name__,
                "message": str(err.last_error),
            }
    elif isinstance(err, AccessDeniedError):
        details.update({"path": err.path, "operation": err.operation, "reason": err.reason})
    elif isinstance(err, FileSizeExceededError):
        details.update({"size": err.size, "limit": err.limit})
    elif isinstance(err, PageNotFoundError):
        details["page_id"] = err.page_id
    elif isinstance(err, StrategyNotFoundError):
        details["strategy"] = err.strategy_name
    if not isinstance(err, RetryError) and getattr(err, "action", None) is not None:
        # Terminal errors pass through the retry loop unwrapped but tagged.
        details.update({
            "action": err.action,
            "strategy": getattr(err, "strategy", None),
            "attempts": getattr(err, "attempts", None),
        })
    return details


def tool_envelope(func: Callable):
    """
    Minimal decorator for MCP tool functions:
      - Works with both async and sync callables.
      - On success: ensures the return value is a string (json.dumps for non-strings).
      - On error: returns a uniform JSON string with a summary, the typed error
        details (operation, strategy, attempts, path, ...) and an optional traceback.
    Environment:
      - Set MCP_TOOL_ERRORS_TRACEBACK=0 to suppress traceback in error payloads.
    """
    include_tb = os.getenv("MCP_TOOL_ERRORS_TRACEBACK", "1") not in ("0", "false", "False")

    def _normalize(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", "replace")
        return json.dumps(value, ensure_ascii=False, default=lambda o: getattr(o, "__dict__", repr(o)))

    def _error_payload(err: Exception) -> str:
        tb = traceback.format_exc() if include_tb else None
        payload = {
            "ok": False,
            "summary": f"{err.__class__.__name__}: {err}",
            "error": {
                "type": err.__class__.__name__,
                "message": str(err),
            },
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        details = error_details(err)
        if details:
            payload["error"]["details"] = details
        if tb:
            payload["error"]["traceback"] = tb
        return json.dumps(payload, ensure_ascii=False, default=str)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                # Preserve cooperative cancellation semantics
                raise
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
    else:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
