"""Selenium/Chrome implementation of the browser driver contract."""

import threading
from typing import Any, List, Optional

import psutil
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchWindowException,
    WebDriverException,
)

from ..config.paths import chromedriver_log_path
from ..constants import HEALTH_CHECK_TIMEOUT_SECS, PAGE_LOAD_TIMEOUT_SECS
from ..errors import BrowserNotStartedError, BrowserUnhealthyError, PageNotFoundError
from .base import BrowserDriver, PageInfo

import logging
logger = logging.getLogger(__name__)


def create_webdriver(config: dict) -> webdriver.Chrome:
    from selenium.webdriver.chrome.options import Options
    from selenium.webdriver.chrome.service import Service as ChromeService

    options = Options()
    chrome_path = config.get("chrome_path")
    if chrome_path:
        options.binary_location = chrome_path
    if config.get("headless", True):
        options.add_argument("--headless=new")
    options.add_argument("--no-first-run")
    options.add_argument("--no-default-browser-check")
    options.add_argument("--disable-dev-shm-usage")

    service = ChromeService(log_output=chromedriver_log_path())
    driver = webdriver.Chrome(service=service, options=options)
    driver.set_page_load_timeout(float(config.get("page_load_timeout") or PAGE_LOAD_TIMEOUT_SECS))
    return driver


def kill_process_tree(pid: Optional[int]) -> List[int]:
    """Kill a process and all of its children. Returns the killed pids."""
    if not pid:
        return []
    killed = []
    try:
        root = psutil.Process(pid)
        procs = root.children(recursive=True) + [root]
    except psutil.NoSuchProcess:
        return []
    for p in procs:
        try:
            p.kill()
            killed.append(p.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    psutil.wait_procs(procs, timeout=3)
    return killed


class SeleniumBrowserDriver(BrowserDriver):
    """
    Chrome driven through Selenium. Page ids are window handles.

    A Selenium session tracks a single "current window", so every call that
    switches windows holds ``self._lock`` for its whole duration.
    """

    def __init__(self, config: Optional[dict] = None, factory=create_webdriver):
        self._config = dict(config or {})
        self._factory = factory
        self._driver: Optional[webdriver.Chrome] = None
        self._lock = threading.RLock()

    @property
    def is_started(self) -> bool:
        return self._driver is not None

    def start(self) -> None:
        with self._lock:
            if self._driver is None:
                logger.info("Starting Chrome session")
                self._driver = self._factory(self._config)

    def quit(self) -> None:
        with self._lock:
            driver, self._driver = self._driver, None
            if driver is None:
                return
            pid = _service_pid(driver)
            try:
                driver.quit()
            except WebDriverException as e:
                logger.warning(f"Driver quit failed: {e}")
            # chromedriver normally exits with the session; a hung browser keeps it alive.
            if pid and psutil.pid_exists(pid):
                killed = kill_process_tree(pid)
                logger.info(f"Killed leftover chromedriver process tree: {killed}")

    def _session(self) -> webdriver.Chrome:
        if self._driver is None:
            raise BrowserNotStartedError()
        return self._driver

    def _switch(self, page_id: str) -> webdriver.Chrome:
        driver = self._session()
        if page_id not in driver.window_handles:
            raise PageNotFoundError(page_id)
        try:
            driver.switch_to.window(page_id)
        except NoSuchWindowException:
            raise PageNotFoundError(page_id) from None
        return driver

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def create_page(self, url: str) -> str:
        with self._lock:
            driver = self._session()
            driver.switch_to.new_window("tab")
            page_id = driver.current_window_handle
            if url:
                driver.get(url)
            return page_id

    def navigate(self, page_id: str, url: str) -> None:
        with self._lock:
            self._switch(page_id).get(url)

    def list_pages(self) -> List[PageInfo]:
        with self._lock:
            driver = self._session()
            try:
                current = driver.current_window_handle
            except NoSuchWindowException:
                current = None
            pages = []
            for handle in driver.window_handles:
                try:
                    driver.switch_to.window(handle)
                    pages.append(PageInfo(handle, driver.current_url or "", driver.title or ""))
                except NoSuchWindowException:
                    continue
            if current in driver.window_handles:
                driver.switch_to.window(current)
            return pages

    def close_page(self, page_id: str) -> None:
        with self._lock:
            driver = self._switch(page_id)
            if len(driver.window_handles) == 1:
                # Closing the last window ends the Chrome session.
                driver.switch_to.new_window("tab")
                driver.switch_to.window(page_id)
            driver.close()
            remaining = driver.window_handles
            if remaining:
                driver.switch_to.window(remaining[0])

    # ------------------------------------------------------------------
    # Page content
    # ------------------------------------------------------------------

    def execute_script(self, page_id: str, script: str) -> Any:
        with self._lock:
            return self._switch(page_id).execute_script(script)

    def screenshot(self, page_id: str) -> bytes:
        with self._lock:
            return self._switch(page_id).get_screenshot_as_png()

    def click(self, page_id: str, selector: str) -> None:
        with self._lock:
            self._switch(page_id).find_element(By.CSS_SELECTOR, selector).click()

    def get_text(self, page_id: str, selector: str) -> str:
        with self._lock:
            return self._switch(page_id).find_element(By.CSS_SELECTOR, selector).text

    def wait_for_element(self, page_id: str, selector: str, timeout: float) -> None:
        with self._lock:
            driver = self._switch(page_id)
            WebDriverWait(driver, timeout).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health_check(self) -> None:
        with self._lock:
            driver = self._session()
            try:
                handles = driver.window_handles
                if not handles:
                    raise BrowserUnhealthyError("browser connection unhealthy: no open windows")
                previous = driver.timeouts.script
                driver.set_script_timeout(HEALTH_CHECK_TIMEOUT_SECS)
                try:
                    driver.execute_script("return 1")
                finally:
                    # The session timeout is shared with execute_script callers.
                    if previous is not None:
                        driver.set_script_timeout(previous)
            except (InvalidSessionIdException, WebDriverException) as e:
                logger.warning(f"Browser health check failed: {e}")
                raise BrowserUnhealthyError(f"browser connection unhealthy: {e}") from e

    def restart(self) -> None:
        with self._lock:
            logger.info("Restarting Chrome session; all page ids become invalid")
            self.quit()
            self.start()


def _service_pid(driver) -> Optional[int]:
    service = getattr(driver, "service", None)
    process = getattr(service, "process", None)
    return getattr(process, "pid", None)


__all__ = [
    "SeleniumBrowserDriver",
    "create_webdriver",
    "kill_process_tree",
]
