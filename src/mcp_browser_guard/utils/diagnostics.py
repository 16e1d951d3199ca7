"""Diagnostics and debugging information utility functions."""

import sys
import platform
from typing import Optional

import selenium

from ..context import BrowserContext, get_context


def collect_diagnostics(ctx: Optional[BrowserContext] = None, exc: Optional[BaseException] = None) -> dict:
    """
    Collect diagnostic information about the environment, browser and policies.

    Args:
        ctx: Context to inspect (default: the global context)
        exc: Exception that occurred (can be None)
    """
    if ctx is None:
        ctx = get_context()

    info = {
        "os": f"{platform.system()} {platform.release()}",
        "python": sys.version.split()[0],
        "selenium": getattr(selenium, "__version__", "?"),
        "chrome_binary": ctx.config.get("chrome_path") or "<default>",
        "headless": ctx.config.get("headless"),
        "browser_ready": ctx.is_browser_ready(),
        "strategies": list(ctx.registry.names()),
        "allowed_roots": ctx.sandbox.allowed_roots(),
    }

    if ctx.supervisor is not None:
        info["consecutive_failures"] = ctx.supervisor.consecutive_failures
        info["escalations"] = ctx.supervisor.escalations
        info["restarts"] = ctx.supervisor.restarts

    if exc is not None:
        info["error"] = {"type": type(exc).__name__, "message": str(exc)}

    return info


__all__ = ['collect_diagnostics']
