"""
Centralized server state.

One BrowserContext per process holds the driver, the strategy registry, the
retry executor, the operation façade, the escalation supervisor and the file
sandbox. Everything except the driver is immutable after construction.

Usage:
    from mcp_browser_guard.context import get_context

    ctx = get_context()
    ops = ctx.ensure_operations()   # starts the browser on first use
    page_id = await ops.navigate("https://example.com")
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .browser.base import BrowserDriver
from .errors import BrowserNotStartedError
from .operations import BrowserOperations
from .retry.executor import RetryExecutor
from .retry.strategies import StrategyRegistry, default_registry
from .sandbox import AccessPolicy, PathSandbox
from .supervisor import EscalationSupervisor

logger = logging.getLogger(__name__)


@dataclass
class BrowserContext:
    """
    Attributes:
        config: Browser configuration from the environment
        registry: Retry strategies, fixed at startup
        executor: Retry executor bound to the registry
        sandbox: File access sandbox
        driver: Browser driver, created lazily
        operations: Operation façade over the driver
        supervisor: Escalation policy over the façade
    """

    config: dict = field(default_factory=dict)
    registry: StrategyRegistry = field(default_factory=default_registry)
    executor: Optional[RetryExecutor] = None
    sandbox: PathSandbox = field(default_factory=PathSandbox)
    driver: Optional[BrowserDriver] = None
    operations: Optional[BrowserOperations] = None
    supervisor: Optional[EscalationSupervisor] = None
    _init_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        if self.executor is None:
            self.executor = RetryExecutor(self.registry)
        if self.driver is not None and self.operations is None:
            self._bind(self.driver)

    def is_browser_ready(self) -> bool:
        return self.operations is not None

    def _bind(self, driver: BrowserDriver) -> None:
        self.driver = driver
        self.operations = BrowserOperations(driver, self.executor)
        self.supervisor = EscalationSupervisor(
            self.operations,
            threshold=int(self.config.get("escalation_threshold") or 3),
        )

    def ensure_operations(self) -> BrowserOperations:
        """Return the façade, creating and starting the Selenium driver on first use."""
        if self.operations is not None:
            return self.operations
        with self._init_lock:
            if self.operations is None:
                from .browser.selenium_driver import SeleniumBrowserDriver

                driver = SeleniumBrowserDriver(self.config)
                try:
                    driver.start()
                except Exception as e:
                    raise BrowserNotStartedError(f"browser not started: {e}") from e
                self._bind(driver)
        return self.operations

    def close(self) -> None:
        if self.driver is not None:
            self.driver.quit()
        self.driver = None
        self.operations = None
        self.supervisor = None


# ============================================================================
# Global Context Management
# ============================================================================

_global_context: Optional[BrowserContext] = None


def build_context() -> BrowserContext:
    """Build a context from the environment (.env included)."""
    from .config.environment import (
        load_environment,
        get_env_config,
        get_access_policy_config,
        get_strategy_overrides,
    )

    load_environment()
    policy_config = get_access_policy_config()
    policy = AccessPolicy.from_config(policy_config) if policy_config else AccessPolicy.default()
    ctx = BrowserContext(
        config=get_env_config(),
        registry=default_registry(get_strategy_overrides()),
        sandbox=PathSandbox(policy),
    )
    logger.info(f"Strategies: {', '.join(ctx.registry.names())}; file policy: {policy.to_dict()}")
    return ctx


def get_context() -> BrowserContext:
    """
    Get or create the global context.

    Configuration errors propagate: a server with a broken configuration should
    fail loudly rather than run with defaults.
    """
    global _global_context

    if _global_context is None:
        _global_context = build_context()

    return _global_context


def set_context(ctx: BrowserContext) -> None:
    """Install a prebuilt context (tests, embedding)."""
    global _global_context
    _global_context = ctx


def reset_context() -> None:
    """
    Reset the global context. Primarily for testing.

    Does not quit the browser; call ``get_context().close()`` for that.
    """
    global _global_context
    _global_context = None


__all__ = [
    "BrowserContext",
    "build_context",
    "get_context",
    "set_context",
    "reset_context",
]
