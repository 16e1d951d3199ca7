# mcp_browser_guard/decorators/ensure.py
import json
import asyncio
import inspect
import functools
import logging

logger = logging.getLogger(__name__)


def _not_started_payload(err: Exception) -> str:
    return json.dumps({
        "ok": False,
        "error": "browser_not_started",
        "message": f"Browser session could not be started: {err}",
    })


def ensure_browser_ready(_func=None):
    """
    Make sure the browser context has a running driver before the tool runs.

    The driver is started on first use. If that fails, the tool is not called
    and a JSON error payload is returned instead.
    """
    def decorator(fn):
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def wrapper(*args, **kwargs):
                from mcp_browser_guard.context import get_context

                ctx = get_context()
                if not ctx.is_browser_ready():
                    try:
                        await asyncio.to_thread(ctx.ensure_operations)
                    except Exception as e:
                        logger.error(f"Browser start failed: {e}")
                        return _not_started_payload(e)
                return await fn(*args, **kwargs)
            return wrapper
        else:
            @functools.wraps(fn)
            def wrapper(*args, **kwargs):
                from mcp_browser_guard.context import get_context

                ctx = get_context()
                if not ctx.is_browser_ready():
                    try:
                        ctx.ensure_operations()
                    except Exception as e:
                        logger.error(f"Browser start failed: {e}")
                        return _not_started_payload(e)
                return fn(*args, **kwargs)
            return wrapper
    return decorator if _func is None else decorator(_func)
