"""
Sandboxed file tools.

Every tool validates its path (and, for writes, the payload size) with the
context's PathSandbox before touching the disk, and then uses the resolved
path the sandbox returned.
"""

import os
import asyncio
import json
import logging
from pathlib import Path

from ..config.paths import file_url
from ..constants import MAX_READ_CHARS
from ..context import get_context
from ..errors import ValidationError
from ..utils.html_utils import ensure_html_extension, render_page_document

logger = logging.getLogger(__name__)


async def create_html_page(
    filename: str,
    title: str = "Untitled Page",
    html: str = "",
    css: str = "",
    javascript: str = "",
    open_in_browser: bool = False,
) -> str:
    """
    Write a complete HTML document and optionally open it in a new page.

    Returns:
        JSON string with the written path, its size, and the page id if opened
    """
    if not filename or not filename.strip() or filename.endswith(("/", os.sep)):
        raise ValidationError("filename must name a file")
    ctx = get_context()
    document = render_page_document(title=title, body=html, css=css, javascript=javascript)
    data = document.encode("utf-8")
    real_path = ctx.sandbox.validate_write(ensure_html_extension(filename), len(data), "create_page")

    Path(real_path).write_bytes(data)
    logger.info(f"Created HTML page {real_path} ({len(data)} bytes)")

    payload = {"ok": True, "path": real_path, "size_bytes": len(data), "page_id": None}
    if open_in_browser:
        ops = await _browser_operations()
        payload["page_id"] = await ctx.supervisor.call(ops.create_page, file_url(real_path))
        payload["url"] = file_url(real_path)
    return json.dumps(payload)


async def read_file(path: str) -> str:
    ctx = get_context()
    real_path = ctx.sandbox.validate_path(path, "read")
    ctx.sandbox.validate_size(os.path.getsize(real_path))

    content = Path(real_path).read_text(encoding="utf-8", errors="replace")
    truncated = len(content) > MAX_READ_CHARS
    return json.dumps({
        "ok": True,
        "path": real_path,
        "size_chars": len(content),
        "truncated": truncated,
        "content": content[:MAX_READ_CHARS] if truncated else content,
    })


async def write_file(path: str, content: str, create_dirs: bool = False) -> str:
    """
    Write text to a file, creating or overwriting it.

    Parent directories are only created when create_dirs is set, and only after
    the path passed the sandbox.
    """
    ctx = get_context()
    data = content.encode("utf-8")
    real_path = ctx.sandbox.validate_write(path, len(data), "write")

    if create_dirs:
        Path(real_path).parent.mkdir(parents=True, exist_ok=True)
    Path(real_path).write_bytes(data)
    logger.info(f"Wrote {len(data)} bytes to {real_path}")

    return json.dumps({
        "ok": True,
        "path": real_path,
        "size_bytes": len(data),
        "created_dirs": bool(create_dirs),
    })


async def list_directory(path: str = ".", show_hidden: bool = False) -> str:
    ctx = get_context()
    real_path = ctx.sandbox.validate_path(path, "list")

    entries = []
    with os.scandir(real_path) as it:
        for entry in sorted(it, key=lambda e: e.name):
            if not show_hidden and entry.name.startswith("."):
                continue
            is_dir = entry.is_dir()
            entries.append({
                "name": entry.name,
                "type": "directory" if is_dir else "file",
                "size": None if is_dir else entry.stat().st_size,
            })
    return json.dumps({"ok": True, "path": real_path, "count": len(entries), "entries": entries})


async def _browser_operations():
    ctx = get_context()
    return await asyncio.to_thread(ctx.ensure_operations)


__all__ = ['create_html_page', 'read_file', 'write_file', 'list_directory']
