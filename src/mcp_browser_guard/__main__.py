#region Imports
import sys
import logging
from typing import Optional
from mcp.server.fastmcp import FastMCP
#endregion

#region Import from your package __init__.py
import mcp_browser_guard as MBG
from mcp_browser_guard.config.paths import server_log_path
from mcp_browser_guard.decorators import (
    tool_envelope,
    ensure_browser_ready,
)
from mcp_browser_guard.tools import browser_management, navigation, interaction, screenshots, files
#endregion

#region Logging
# stdout carries the MCP protocol; logs go to stderr and a temp file.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.FileHandler(server_log_path()),
        logging.StreamHandler(sys.stderr),
    ],
)
logger = logging.getLogger(__name__)
logger.info(f"mcp_browser_guard {MBG.__version__} from: {getattr(MBG, '__file__', '<namespace>')}")
#endregion

#region FastMCP Initialization
mcp = FastMCP("mcp_browser_guard")
#endregion


#region Navigation
@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__navigate_to_url(url: str) -> str:
    """
    Navigate to a URL.

    Reuses the first open page if there is one, otherwise opens a new page.
    Transient failures (timeouts, connection resets) are retried automatically.

    Args:
        url: The URL to navigate to

    Returns:
        JSON with ok status and the page_id that was navigated
    """
    return await navigation.navigate_to_url(url)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__open_page(url: str) -> str:
    """Open a new page (tab) at the given URL and return its page_id."""
    return await navigation.open_page(url)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__list_pages() -> str:
    """List open pages with their page_id, URL and title."""
    return await navigation.list_pages()
#endregion


#region Interaction
@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__click_element(selector: str, page_id: Optional[str] = None) -> str:
    """
    Click the first element matching a CSS selector.

    Args:
        selector: CSS selector of the element
        page_id: Page to act on (default: first open page)
    """
    return await interaction.click_element(selector, page_id=page_id)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__get_element_text(selector: str, page_id: Optional[str] = None) -> str:
    """Return the visible text of the first element matching a CSS selector."""
    return await interaction.get_element_text(selector, page_id=page_id)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__wait_for_element(
    selector: str,
    page_id: Optional[str] = None,
    timeout: float = 10,
) -> str:
    """
    Wait until an element matching a CSS selector is present.

    Args:
        selector: CSS selector of the element
        page_id: Page to act on (default: first open page)
        timeout: Seconds to wait per attempt
    """
    return await interaction.wait_for_element(selector, page_id=page_id, timeout=timeout)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__execute_script(script: str, page_id: Optional[str] = None) -> str:
    """
    Execute JavaScript in a page and return its (JSON-serializable) result.

    Use `return ...` in the script to get a value back.
    """
    return await interaction.execute_script(script, page_id=page_id)
#endregion


#region Screenshots
@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__take_screenshot(
    page_id: Optional[str] = None,
    screenshot_path: Optional[str] = None,
    return_base64: bool = False,
    thumbnail_width: Optional[int] = None,
) -> str:
    """
    Take a screenshot of a page.

    Args:
        page_id: Page to capture (default: first open page)
        screenshot_path: Optional path to save the full PNG (checked by the file sandbox)
        return_base64: Return a base64 thumbnail instead of only saving
        thumbnail_width: Thumbnail width in pixels (default 200, minimum 50)
    """
    return await screenshots.take_screenshot(
        page_id=page_id,
        screenshot_path=screenshot_path,
        return_base64=return_base64,
        thumbnail_width=thumbnail_width,
    )
#endregion


#region Files
@mcp.tool()
@tool_envelope
async def mcp_browser_guard__create_html_page(
    filename: str,
    title: str = "Untitled Page",
    html: str = "",
    css: str = "",
    javascript: str = "",
    open_in_browser: bool = False,
) -> str:
    """
    Write a complete HTML document to disk and optionally open it in a new page.

    Args:
        filename: Target file; '.html' is appended if missing
        title: Document title
        html: Body markup
        css: Inline stylesheet
        javascript: Inline script, placed at the end of the body
        open_in_browser: Open the written file in a new page
    """
    return await files.create_html_page(
        filename=filename,
        title=title,
        html=html,
        css=css,
        javascript=javascript,
        open_in_browser=open_in_browser,
    )


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__read_file(path: str) -> str:
    """Read a text file inside the allowed paths."""
    return await files.read_file(path)


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__write_file(path: str, content: str, create_dirs: bool = False) -> str:
    """Write a text file inside the allowed paths, creating or overwriting it."""
    return await files.write_file(path, content, create_dirs=create_dirs)


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__list_directory(path: str = ".", show_hidden: bool = False) -> str:
    """List a directory inside the allowed paths."""
    return await files.list_directory(path, show_hidden=show_hidden)
#endregion


#region Browser Management
@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__ensure_healthy() -> str:
    """Check that the browser responds, retrying under the health strategy."""
    return await browser_management.ensure_healthy()


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__recover_page(page_id: str) -> str:
    """
    Replace an unresponsive page with a fresh one at the same URL.

    Returns the new page_id; the old one is no longer valid.
    """
    return await browser_management.recover_page(page_id)


@mcp.tool()
@tool_envelope
@ensure_browser_ready
async def mcp_browser_guard__restart_browser(restore_pages: bool = False) -> str:
    """
    Restart the browser process. All previously returned page_ids become invalid.

    Args:
        restore_pages: Reopen the URLs that were open before the restart
    """
    return await browser_management.restart_browser(restore_pages=restore_pages)


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__get_retry_strategies() -> str:
    """Describe the configured retry strategies and which action uses which."""
    return await browser_management.get_retry_strategies()


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__get_access_policy() -> str:
    """Describe the file access policy in effect."""
    return await browser_management.get_access_policy()


@mcp.tool()
@tool_envelope
async def mcp_browser_guard__get_debug_diagnostics_info() -> str:
    """Environment, browser state and escalation counters for debugging."""
    return await browser_management.get_diagnostics()
#endregion


def main():
    mcp.run()


if __name__ == "__main__":
    main()
