"""Path utilities for browser runtime files."""

import os
import tempfile


def chromedriver_log_path() -> str:
    """Get the path to the ChromeDriver log file for this process."""
    return os.path.join(tempfile.gettempdir(), f"chromedriver_guard_{os.getpid()}.log")


def server_log_path() -> str:
    """Get the path to the server log file."""
    return os.path.join(tempfile.gettempdir(), "mcp_browser_guard.log")


def file_url(path: str) -> str:
    """file:// URL for a local path, suitable for opening in the browser."""
    from pathlib import Path
    return Path(path).resolve().as_uri()
