# mcp_browser_guard/retry/__init__.py
"""Named retry strategies and the executor that applies them."""

from .strategies import (
    OperationClass,
    Strategy,
    StrategyRegistry,
    DEFAULT_STRATEGIES,
    default_registry,
)
from .executor import (
    AttemptOutcome,
    AttemptRecord,
    RetryExecutor,
    classify,
)

__all__ = [
    "OperationClass",
    "Strategy",
    "StrategyRegistry",
    "DEFAULT_STRATEGIES",
    "default_registry",
    "AttemptOutcome",
    "AttemptRecord",
    "RetryExecutor",
    "classify",
]
