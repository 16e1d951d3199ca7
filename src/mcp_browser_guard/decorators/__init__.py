# mcp_browser_guard/decorators/__init__.py
#
# Re-exports decorators from their respective modules.

from .ensure import ensure_browser_ready
from .envelope import tool_envelope, error_details

__all__ = [
    "ensure_browser_ready",
    "tool_envelope",
    "error_details",
]
