"""Escalation policy layered over the operation façade."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .constants import ESCALATION_THRESHOLD
from .errors import RetryError
from .operations import BrowserOperations

logger = logging.getLogger(__name__)


class EscalationSupervisor:
    """
    Watches routine façade calls and escalates after repeated exhaustion.

    After ``threshold`` consecutive calls end in a RetryError (exhausted or out
    of time), the supervisor runs ``ensure_healthy``; if the browser is still
    unhealthy it runs ``restart_browser``. The failing call's own error is
    always re-raised; the supervisor never repeats the call.
    """

    def __init__(self, operations: BrowserOperations, threshold: int = ESCALATION_THRESHOLD,
                 restore_pages: bool = True):
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self._operations = operations
        self._threshold = threshold
        self._restore_pages = restore_pages
        self._failures = 0
        self._lock = asyncio.Lock()
        self.escalations = 0
        self.restarts = 0
        self.last_escalation_error: Optional[BaseException] = None

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    async def call(self, action: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await ``action(*args, **kwargs)`` and track its outcome."""
        try:
            result = await action(*args, **kwargs)
        except RetryError as e:
            try:
                await self._on_exhausted(e)
            except Exception as escalation_error:
                self.last_escalation_error = escalation_error
                logger.error(f"Escalation after {e.operation} failed: {escalation_error}")
            raise
        self._failures = 0
        return result

    async def _on_exhausted(self, error: RetryError) -> None:
        self._failures += 1
        logger.warning(
            f"{error.operation} exhausted after {error.attempts} attempts "
            f"({self._failures}/{self._threshold} consecutive)"
        )
        if self._failures < self._threshold:
            return
        async with self._lock:
            if self._failures < self._threshold:
                # Another caller escalated while we waited.
                return
            self._failures = 0
            await self.escalate()

    async def escalate(self) -> Optional[dict]:
        """Health check, then restart if the check fails. Returns the restart's page mapping, if any."""
        self.escalations += 1
        logger.warning("Escalating: checking browser health")
        try:
            await self._operations.ensure_healthy()
            logger.info("Browser healthy; no restart needed")
            return None
        except RetryError as health_error:
            logger.error(f"Browser health check failed, restarting browser: {health_error}")
        self.restarts += 1
        return await self._operations.restart_browser(restore_pages=self._restore_pages)


__all__ = ["EscalationSupervisor"]
