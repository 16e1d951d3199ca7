"""Navigation and page listing tool implementations."""

import json
from typing import Optional

from ..context import get_context
from ..errors import ValidationError


async def resolve_page_id(page_id: Optional[str] = None) -> str:
    """Use the given page id, or fall back to the first open page."""
    if page_id:
        return page_id
    ctx = get_context()
    pages = await ctx.supervisor.call(ctx.operations.list_pages)
    if not pages:
        raise ValidationError("no pages are open; call navigate_to_url first")
    return pages[0].page_id


async def navigate_to_url(url: str) -> str:
    """
    Navigate to a URL, reusing the first open page when there is one.

    Returns:
        JSON string with ok status and the id of the page that was navigated
    """
    ctx = get_context()
    page_id = await ctx.supervisor.call(ctx.operations.navigate, url)
    return json.dumps({"ok": True, "action": "navigate", "url": url, "page_id": page_id})


async def open_page(url: str) -> str:
    """Open a new page (tab) at url."""
    ctx = get_context()
    page_id = await ctx.supervisor.call(ctx.operations.create_page, url)
    return json.dumps({"ok": True, "action": "open_page", "url": url, "page_id": page_id})


async def list_pages() -> str:
    ctx = get_context()
    pages = await ctx.supervisor.call(ctx.operations.list_pages)
    return json.dumps({
        "ok": True,
        "count": len(pages),
        "pages": [p.to_dict() for p in pages],
    })


__all__ = ['resolve_page_id', 'navigate_to_url', 'open_page', 'list_pages']
