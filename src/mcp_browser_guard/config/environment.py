"""Environment configuration and validation."""

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv, find_dotenv

from ..constants import (
    DEFAULT_MAX_FILE_SIZE,
    ESCALATION_THRESHOLD,
    PAGE_LOAD_TIMEOUT_SECS,
)
from ..errors import ConfigurationError
from ..retry.strategies import DEFAULT_STRATEGIES, OVERRIDABLE_FIELDS

import logging
logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def load_environment() -> None:
    """Load a .env file from the working directory (or its parents) without overriding the real environment."""
    path = find_dotenv(filename=".env", usecwd=True)
    if path:
        load_dotenv(path, override=False)
        logger.debug(f"Loaded environment from {path}")


def _env_str(name: str) -> str:
    return (os.getenv(name) or "").strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name).lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, cast, default):
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_paths(name: str) -> List[str]:
    raw = _env_str(name)
    if not raw:
        return []
    return [p.strip() for p in raw.split(os.pathsep) if p.strip()]


def get_env_config() -> dict:
    """
    Browser settings.

    Optional:   CHROME_EXECUTABLE_PATH
                MCP_BROWSER_HEADLESS (default 1)
                MCP_PAGE_LOAD_TIMEOUT (seconds)
                MCP_ESCALATION_THRESHOLD (consecutive exhausted calls before a health check)
    """
    threshold = _env_number("MCP_ESCALATION_THRESHOLD", int, ESCALATION_THRESHOLD)
    if threshold < 1:
        raise ConfigurationError("MCP_ESCALATION_THRESHOLD must be >= 1")

    return {
        "chrome_path": _env_str("CHROME_EXECUTABLE_PATH") or None,
        "headless": _env_bool("MCP_BROWSER_HEADLESS", True),
        "page_load_timeout": _env_number("MCP_PAGE_LOAD_TIMEOUT", float, PAGE_LOAD_TIMEOUT_SECS),
        "escalation_threshold": threshold,
    }


def get_access_policy_config() -> Optional[dict]:
    """
    Sandbox settings, or None when nothing is configured (the secure default applies).

    MCP_FILE_ALLOWED_PATHS and MCP_FILE_DENIED_PATHS are os.pathsep separated lists.
    Setting only some variables keeps the working-directory confinement of the
    default policy unless an allow list or the temp flag opens other roots.
    """
    names = (
        "MCP_FILE_ALLOWED_PATHS",
        "MCP_FILE_DENIED_PATHS",
        "MCP_FILE_RESTRICT_TO_CWD",
        "MCP_FILE_ALLOW_TEMP",
        "MCP_FILE_MAX_SIZE",
    )
    if not any(_env_str(n) for n in names):
        return None

    max_size = _env_number("MCP_FILE_MAX_SIZE", int, DEFAULT_MAX_FILE_SIZE)
    if max_size < 0:
        raise ConfigurationError("MCP_FILE_MAX_SIZE cannot be negative")

    allowed_paths = _env_paths("MCP_FILE_ALLOWED_PATHS")
    allow_temp = _env_bool("MCP_FILE_ALLOW_TEMP", False)
    # Without an explicit allow list the working directory stays the only root.
    confined = not allowed_paths and not allow_temp
    if confined:
        allowed_paths = [os.getcwd()]

    return {
        "allowed_paths": allowed_paths,
        "denied_paths": _env_paths("MCP_FILE_DENIED_PATHS"),
        "restrict_to_working_dir": _env_bool("MCP_FILE_RESTRICT_TO_CWD", confined),
        "allow_temp_files": allow_temp,
        "max_file_size": max_size,
    }


def get_strategy_overrides() -> Dict[str, Dict[str, str]]:
    """
    Collect MCP_RETRY_<STRATEGY>_<FIELD> variables for the default strategies,
    e.g. MCP_RETRY_TOOL_OPERATION_MAX_ATTEMPTS=5. Values are coerced and
    validated by the registry.
    """
    overrides: Dict[str, Dict[str, str]] = {}
    for strategy in DEFAULT_STRATEGIES:
        for field_name in OVERRIDABLE_FIELDS:
            var = f"MCP_RETRY_{strategy.name.upper()}_{field_name.upper()}"
            raw = _env_str(var)
            if raw:
                overrides.setdefault(strategy.name, {})[field_name] = raw
    return overrides


__all__ = [
    "load_environment",
    "get_env_config",
    "get_access_policy_config",
    "get_strategy_overrides",
]
