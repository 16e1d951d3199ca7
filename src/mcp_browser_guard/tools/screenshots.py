"""Screenshot capture tool implementations."""

import io
import json
import base64
from pathlib import Path
from typing import Optional

from PIL import Image

from ..constants import DEFAULT_THUMBNAIL_WIDTH, MIN_THUMBNAIL_WIDTH
from ..context import get_context
from ..errors import ValidationError
from .navigation import resolve_page_id


def make_thumbnail(png_bytes: bytes, width: int) -> dict:
    """Shrink a PNG to ``width`` pixels wide, keeping the aspect ratio."""
    img = Image.open(io.BytesIO(png_bytes))
    original_size = img.size

    aspect_ratio = img.height / img.width
    thumb_height = max(int(width * aspect_ratio), 1)
    img.thumbnail((width, thumb_height), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=True)
    return {
        "base64": base64.b64encode(buffer.getvalue()).decode('utf-8'),
        "thumbnail_width": img.width,
        "thumbnail_height": img.height,
        "original_width": original_size[0],
        "original_height": original_size[1],
    }


async def take_screenshot(
    page_id: Optional[str] = None,
    screenshot_path: Optional[str] = None,
    return_base64: bool = False,
    thumbnail_width: Optional[int] = None,
) -> str:
    """
    Take a screenshot of a page.

    The target path is checked by the file sandbox (location and size) before
    anything is written.

    Args:
        page_id: Page to capture (default: first open page)
        screenshot_path: Optional path to save the full PNG
        return_base64: Whether to return a base64 encoded thumbnail
        thumbnail_width: Thumbnail width in pixels (default 200, minimum 50)

    Returns:
        JSON string with ok status, saved path and optional thumbnail
    """
    if return_base64:
        if thumbnail_width is None:
            thumbnail_width = DEFAULT_THUMBNAIL_WIDTH
        if thumbnail_width < MIN_THUMBNAIL_WIDTH:
            raise ValidationError(f"thumbnail_width must be at least {MIN_THUMBNAIL_WIDTH} pixels")

    ctx = get_context()
    page_id = await resolve_page_id(page_id)
    png_bytes = await ctx.supervisor.call(ctx.operations.screenshot, page_id)

    payload = {"ok": True, "page_id": page_id, "size_bytes": len(png_bytes), "saved_to": None}

    if screenshot_path:
        real_path = ctx.sandbox.validate_write(screenshot_path, len(png_bytes), "screenshot")
        Path(real_path).write_bytes(png_bytes)
        payload["saved_to"] = real_path

    if return_base64:
        payload.update(make_thumbnail(png_bytes, thumbnail_width))
        payload["message"] = (
            f"Screenshot captured (thumbnail: {payload['thumbnail_width']}x{payload['thumbnail_height']}px, "
            f"original: {payload['original_width']}x{payload['original_height']}px)"
        )

    return json.dumps(payload)


__all__ = ['take_screenshot', 'make_thumbnail']
