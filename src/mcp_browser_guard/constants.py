"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.
"""

import os

# ============================================================================
# File Access Configuration
# ============================================================================

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
"""Default write limit for sandboxed file operations (10 MiB)."""

MAX_READ_CHARS = int(os.getenv("MCP_MAX_READ_CHARS", "200000"))
"""Maximum characters returned by read_file before truncation."""


# ============================================================================
# Browser Configuration
# ============================================================================

PAGE_LOAD_TIMEOUT_SECS = 30.0
"""Selenium page load timeout when MCP_PAGE_LOAD_TIMEOUT is not set."""

HEALTH_CHECK_TIMEOUT_SECS = 3.0
"""Script timeout used by the browser health probe."""

DEFAULT_WAIT_TIMEOUT_SECS = 10.0
"""Default timeout for wait_for_element."""


# ============================================================================
# Escalation Configuration
# ============================================================================

ESCALATION_THRESHOLD = 3
"""Consecutive exhausted routine operations before the supervisor checks browser health."""


# ============================================================================
# Screenshot Configuration
# ============================================================================

DEFAULT_THUMBNAIL_WIDTH = 200
"""Thumbnail width returned with base64 screenshots."""

MIN_THUMBNAIL_WIDTH = 50


__all__ = [
    "DEFAULT_MAX_FILE_SIZE",
    "MAX_READ_CHARS",
    "PAGE_LOAD_TIMEOUT_SECS",
    "HEALTH_CHECK_TIMEOUT_SECS",
    "DEFAULT_WAIT_TIMEOUT_SECS",
    "ESCALATION_THRESHOLD",
    "DEFAULT_THUMBNAIL_WIDTH",
    "MIN_THUMBNAIL_WIDTH",
]
