"""Configuration management for the browser guard server."""

from .environment import (
    load_environment,
    get_env_config,
    get_access_policy_config,
    get_strategy_overrides,
)

from .paths import (
    chromedriver_log_path,
    server_log_path,
    file_url,
)

__all__ = [
    "load_environment",
    "get_env_config",
    "get_access_policy_config",
    "get_strategy_overrides",
    "chromedriver_log_path",
    "server_log_path",
    "file_url",
]
