# mcp_browser_guard/tools/__init__.py
"""
MCP tool implementations - async functions that return JSON responses.

Browser tools go through the escalation supervisor and the operation façade;
file tools go through the path sandbox. Errors are raised as typed exceptions
and turned into JSON payloads by the tool_envelope decorator.
"""

from .browser_management import (
    ensure_healthy,
    recover_page,
    restart_browser,
    get_retry_strategies,
    get_access_policy,
    get_diagnostics,
)

from .navigation import (
    navigate_to_url,
    open_page,
    list_pages,
)

from .interaction import (
    click_element,
    get_element_text,
    wait_for_element,
    execute_script,
)

from .screenshots import (
    take_screenshot,
)

from .files import (
    create_html_page,
    read_file,
    write_file,
    list_directory,
)

__all__ = [
    # Browser management
    'ensure_healthy',
    'recover_page',
    'restart_browser',
    'get_retry_strategies',
    'get_access_policy',
    'get_diagnostics',
    # Navigation
    'navigate_to_url',
    'open_page',
    'list_pages',
    # Interaction
    'click_element',
    'get_element_text',
    'wait_for_element',
    'execute_script',
    # Screenshots
    'take_screenshot',
    # Files
    'create_html_page',
    'read_file',
    'write_file',
    'list_directory',
]
