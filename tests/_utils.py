# tests/_utils.py
import itertools
from collections import defaultdict, deque

from mcp_browser_guard.browser.base import BrowserDriver, PageInfo
from mcp_browser_guard.context import BrowserContext, set_context
from mcp_browser_guard.errors import PageNotFoundError
from mcp_browser_guard.retry.executor import RetryExecutor
from mcp_browser_guard.retry.strategies import default_registry
from mcp_browser_guard.sandbox import AccessPolicy, PathSandbox


class FakeTime:
    """Deterministic clock plus an async sleep that advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class FakeDriver(BrowserDriver):
    """
    In-memory BrowserDriver.

    Failures are injected per method with ``fail(method, *errors)``; each call
    to that method pops and raises the next queued error.
    """

    def __init__(self, pages=None):
        self._ids = itertools.count(1)
        self.pages = {}
        self.calls = defaultdict(int)
        self.failures = defaultdict(deque)
        self.restarts = 0
        self.quit_called = False
        for url in pages or ():
            self._open(url)

    def fail(self, method, *errors):
        self.failures[method].extend(errors)

    def _tick(self, method):
        self.calls[method] += 1
        if self.failures[method]:
            raise self.failures[method].popleft()

    def _open(self, url):
        page_id = f"page-{next(self._ids)}"
        self.pages[page_id] = url
        return page_id

    def _page(self, page_id):
        if page_id not in self.pages:
            raise PageNotFoundError(page_id)
        return page_id

    def create_page(self, url):
        self._tick("create_page")
        return self._open(url)

    def navigate(self, page_id, url):
        self._tick("navigate")
        self.pages[self._page(page_id)] = url

    def execute_script(self, page_id, script):
        self._tick("execute_script")
        self._page(page_id)
        return {"script": script}

    def screenshot(self, page_id):
        self._tick("screenshot")
        self._page(page_id)
        return b"\x89PNG fake"

    def click(self, page_id, selector):
        self._tick("click")
        self._page(page_id)

    def get_text(self, page_id, selector):
        self._tick("get_text")
        self._page(page_id)
        return f"text of {selector}"

    def wait_for_element(self, page_id, selector, timeout):
        self._tick("wait_for_element")
        self._page(page_id)

    def list_pages(self):
        self._tick("list_pages")
        return [PageInfo(page_id=pid, url=url, title="") for pid, url in self.pages.items()]

    def close_page(self, page_id):
        self._tick("close_page")
        del self.pages[self._page(page_id)]

    def health_check(self):
        self._tick("health_check")

    def restart(self):
        self._tick("restart")
        self.restarts += 1
        self.pages.clear()

    def quit(self):
        self.quit_called = True


def make_executor(fake_time=None, records=None, registry=None):
    fake_time = fake_time or FakeTime()
    return RetryExecutor(
        registry or default_registry(),
        sleep=fake_time.sleep,
        clock=fake_time.clock,
        rng=lambda: 0.0,
        on_attempt=records.append if records is not None else None,
    )


def install_fake_context(driver=None, policy=None, threshold=3):
    """Install a BrowserContext wired to a FakeDriver and a fast executor."""
    driver = driver if driver is not None else FakeDriver()
    registry = default_registry()
    ctx = BrowserContext(
        config={"escalation_threshold": threshold},
        registry=registry,
        executor=make_executor(registry=registry),
        sandbox=PathSandbox(policy or AccessPolicy(allowed_paths=(), restrict_to_working_dir=True)),
        driver=driver,
    )
    set_context(ctx)
    return ctx


