"""
Operation façade: maps browser actions onto retry strategies.

Each action is bound to an operation class (routine, health or critical) in
``ACTION_CLASSES``; the registry decides which strategy serves that class.
Routine actions that exhaust their retries raise to the caller unchanged. They
never trigger recovery on their own; see ``supervisor.EscalationSupervisor``
for the explicit escalation policy.

Concurrency: ``navigate`` reads the page list and then navigates or creates a
page inside one attempt. Two racing navigate calls on an empty browser may
both create a page; later calls address pages by id, so the duplicate is
harmless.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from .browser.base import BrowserDriver, PageInfo
from .constants import DEFAULT_WAIT_TIMEOUT_SECS
from .errors import PageNotFoundError, ValidationError
from .retry.executor import RetryExecutor, UnitOfWork
from .retry.strategies import OperationClass

logger = logging.getLogger(__name__)


ACTION_CLASSES = MappingProxyType({
    "navigate": OperationClass.ROUTINE,
    "create_page": OperationClass.ROUTINE,
    "list_pages": OperationClass.ROUTINE,
    "screenshot": OperationClass.ROUTINE,
    "execute_script": OperationClass.ROUTINE,
    "click_element": OperationClass.ROUTINE,
    "get_element_text": OperationClass.ROUTINE,
    "wait_for_element": OperationClass.ROUTINE,
    "recover_page": OperationClass.HEALTH,
    "ensure_healthy": OperationClass.HEALTH,
    "restart_browser": OperationClass.CRITICAL,
})

_BLANK_URLS = ("", "about:blank", "data:,", "chrome://newtab/")


def _require(value: Optional[str], name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return value


class BrowserOperations:
    def __init__(self, driver: BrowserDriver, executor: RetryExecutor):
        self._driver = driver
        self._executor = executor

    @property
    def driver(self) -> BrowserDriver:
        return self._driver

    @property
    def executor(self) -> RetryExecutor:
        return self._executor

    def strategy_for(self, action: str) -> str:
        try:
            operation_class = ACTION_CLASSES[action]
        except KeyError:
            raise ValidationError(f"unknown action '{action}'") from None
        return self._executor.registry.for_class(operation_class).name

    def strategy_info(self) -> Dict[str, Any]:
        registry = self._executor.registry
        return {
            "strategies": registry.describe_all(),
            "actions": {action: self.strategy_for(action) for action in ACTION_CLASSES},
        }

    async def _run(self, action: str, fn: UnitOfWork) -> Any:
        return await self._executor.run_with_result(self.strategy_for(action), action, fn)

    # ------------------------------------------------------------------
    # Generic access for tool handlers
    # ------------------------------------------------------------------

    async def run_with_strategy(self, strategy_name: str, operation_name: str, fn: UnitOfWork) -> None:
        await self._executor.run(strategy_name, operation_name, fn)

    async def run_with_strategy_and_result(self, strategy_name: str, operation_name: str, fn: UnitOfWork) -> Any:
        return await self._executor.run_with_result(strategy_name, operation_name, fn)

    # ------------------------------------------------------------------
    # Routine actions
    # ------------------------------------------------------------------

    async def navigate(self, url: str) -> str:
        """Navigate the first open page in place, or open one. Returns the page id used."""
        _require(url, "url")

        def work() -> str:
            pages = self._driver.list_pages()
            if pages:
                page_id = pages[0].page_id
                self._driver.navigate(page_id, url)
                return page_id
            return self._driver.create_page(url)

        return await self._run("navigate", work)

    async def create_page(self, url: str) -> str:
        _require(url, "url")
        return await self._run("create_page", lambda: self._driver.create_page(url))

    async def list_pages(self) -> List[PageInfo]:
        return await self._run("list_pages", self._driver.list_pages)

    async def screenshot(self, page_id: str) -> bytes:
        _require(page_id, "page_id")
        return await self._run("screenshot", lambda: self._driver.screenshot(page_id))

    async def execute_script(self, page_id: str, script: str) -> Any:
        _require(page_id, "page_id")
        _require(script, "script")
        return await self._run("execute_script", lambda: self._driver.execute_script(page_id, script))

    async def click(self, page_id: str, selector: str) -> None:
        _require(page_id, "page_id")
        _require(selector, "selector")
        await self._run("click_element", lambda: self._driver.click(page_id, selector))

    async def get_text(self, page_id: str, selector: str) -> str:
        _require(page_id, "page_id")
        _require(selector, "selector")
        return await self._run("get_element_text", lambda: self._driver.get_text(page_id, selector))

    async def wait_for_element(self, page_id: str, selector: str,
                               timeout: float = DEFAULT_WAIT_TIMEOUT_SECS) -> None:
        _require(page_id, "page_id")
        _require(selector, "selector")
        if timeout is None or timeout <= 0:
            raise ValidationError("timeout must be positive")
        await self._run("wait_for_element", lambda: self._driver.wait_for_element(page_id, selector, timeout))

    # ------------------------------------------------------------------
    # Health actions
    # ------------------------------------------------------------------

    async def recover_page(self, page_id: str) -> str:
        """Close an unhealthy page and reopen its URL. Returns the new page id."""
        _require(page_id, "page_id")
        url: Optional[str] = None

        def work() -> str:
            nonlocal url
            if url is None:
                page = next((p for p in self._driver.list_pages() if p.page_id == page_id), None)
                if page is None:
                    raise PageNotFoundError(page_id)
                url = page.url
                logger.info(f"Attempting page recovery for {page_id} at {url}")
                try:
                    self._driver.close_page(page_id)
                except Exception as e:
                    logger.warning(f"Failed to close page {page_id} during recovery: {e}")
            return self._driver.create_page(url)

        new_page_id = await self._run("recover_page", work)
        logger.info(f"Page recovered: {page_id} -> {new_page_id}")
        return new_page_id

    async def ensure_healthy(self) -> None:
        await self._run("ensure_healthy", self._driver.health_check)

    # ------------------------------------------------------------------
    # Critical actions
    # ------------------------------------------------------------------

    async def restart_browser(self, restore_pages: bool = False) -> Dict[str, str]:
        """
        Restart the browser process. Every page id obtained before the restart
        is invalid afterwards.

        With ``restore_pages`` the URLs open before the restart are reopened and
        the returned dict maps old page ids to new ones. Pages that fail to
        reopen are logged and left out of the mapping.
        """
        previous: List[PageInfo] = []
        if restore_pages:
            try:
                previous = await asyncio.to_thread(self._driver.list_pages)
            except Exception as e:
                logger.warning(f"Could not record open pages before restart: {e}")

        await self._run("restart_browser", self._driver.restart)
        logger.info("Browser restarted; previously issued page ids are invalid")

        restored: Dict[str, str] = {}
        for page in previous:
            if page.url in _BLANK_URLS:
                continue
            try:
                restored[page.page_id] = await self.create_page(page.url)
            except Exception as e:
                logger.warning(f"Failed to restore page {page.page_id} ({page.url}) after restart: {e}")
        return restored


__all__ = ["ACTION_CLASSES", "BrowserOperations"]
