"""Element interaction and scripting tool implementations."""

import json
from typing import Optional

from ..constants import DEFAULT_WAIT_TIMEOUT_SECS
from ..context import get_context
from .navigation import resolve_page_id


async def click_element(selector: str, page_id: Optional[str] = None) -> str:
    """
    Click the first element matching a CSS selector.

    Args:
        selector: CSS selector of the element to click
        page_id: Page to act on (default: first open page)

    Returns:
        JSON string with ok status, action, selector and page id
    """
    ctx = get_context()
    page_id = await resolve_page_id(page_id)
    await ctx.supervisor.call(ctx.operations.click, page_id, selector)
    return json.dumps({"ok": True, "action": "click", "selector": selector, "page_id": page_id})


async def get_element_text(selector: str, page_id: Optional[str] = None) -> str:
    ctx = get_context()
    page_id = await resolve_page_id(page_id)
    text = await ctx.supervisor.call(ctx.operations.get_text, page_id, selector)
    return json.dumps({"ok": True, "selector": selector, "page_id": page_id, "text": text})


async def wait_for_element(
    selector: str,
    page_id: Optional[str] = None,
    timeout: float = DEFAULT_WAIT_TIMEOUT_SECS,
) -> str:
    """
    Wait for an element to be present in the DOM.

    Args:
        selector: CSS selector of the element
        page_id: Page to watch (default: first open page)
        timeout: Seconds to wait per attempt

    Returns:
        JSON string with ok status and the selector that appeared
    """
    ctx = get_context()
    page_id = await resolve_page_id(page_id)
    await ctx.supervisor.call(ctx.operations.wait_for_element, page_id, selector, timeout)
    return json.dumps({"ok": True, "action": "wait_for_element", "selector": selector, "page_id": page_id})


async def execute_script(script: str, page_id: Optional[str] = None) -> str:
    """Run JavaScript in the page and return its (JSON-serializable) result."""
    ctx = get_context()
    page_id = await resolve_page_id(page_id)
    result = await ctx.supervisor.call(ctx.operations.execute_script, page_id, script)
    return json.dumps({"ok": True, "page_id": page_id, "result": result}, default=str)


__all__ = ['click_element', 'get_element_text', 'wait_for_element', 'execute_script']
