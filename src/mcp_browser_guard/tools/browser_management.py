"""Browser health, recovery and introspection tool implementations."""

import json

from ..context import get_context
from ..utils.diagnostics import collect_diagnostics


async def ensure_healthy() -> str:
    """Run the browser health check under the health strategy."""
    ctx = get_context()
    await ctx.operations.ensure_healthy()
    return json.dumps({"ok": True, "healthy": True})


async def recover_page(page_id: str) -> str:
    """Close an unhealthy page and reopen its URL in a fresh one."""
    ctx = get_context()
    new_page_id = await ctx.operations.recover_page(page_id)
    return json.dumps({
        "ok": True,
        "old_page_id": page_id,
        "page_id": new_page_id,
        "message": f"Page {page_id} was replaced by {new_page_id}",
    })


async def restart_browser(restore_pages: bool = False) -> str:
    """
    Restart the browser process.

    All page ids handed out before the restart are invalid afterwards.
    """
    ctx = get_context()
    restored = await ctx.operations.restart_browser(restore_pages=restore_pages)
    return json.dumps({
        "ok": True,
        "restarted": True,
        "restored_pages": restored,
        "message": "Browser restarted. Previously returned page ids are no longer valid.",
    })


async def get_retry_strategies() -> str:
    ctx = get_context()
    registry = ctx.registry
    payload = {
        "ok": True,
        "strategies": registry.describe_all(),
        "classes": {cls.name.lower(): name for cls, name in registry.class_strategies.items()},
    }
    if ctx.operations is not None:
        payload["actions"] = ctx.operations.strategy_info()["actions"]
    return json.dumps(payload)


async def get_access_policy() -> str:
    ctx = get_context()
    return json.dumps({
        "ok": True,
        "policy": ctx.sandbox.policy.to_dict(),
        "allowed_roots": ctx.sandbox.allowed_roots(),
    })


async def get_diagnostics() -> str:
    return json.dumps({"ok": True, "diagnostics": collect_diagnostics()})


__all__ = [
    'ensure_healthy',
    'recover_page',
    'restart_browser',
    'get_retry_strategies',
    'get_access_policy',
    'get_diagnostics',
]
