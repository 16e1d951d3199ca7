"""Tests for the Selenium driver adapter using a stand-in WebDriver object."""

import types

import pytest
from selenium.common.exceptions import WebDriverException

from mcp_browser_guard.browser import selenium_driver
from mcp_browser_guard.browser.selenium_driver import SeleniumBrowserDriver
from mcp_browser_guard.errors import BrowserNotStartedError, BrowserUnhealthyError, PageNotFoundError


class _SwitchTo:
    def __init__(self, owner):
        self._owner = owner

    def window(self, handle):
        self._owner.current_window_handle = handle

    def new_window(self, kind):
        self._owner._counter += 1
        handle = f"H{self._owner._counter}"
        self._owner.windows[handle] = "about:blank"
        self._owner.current_window_handle = handle


class StubWebDriver:
    """Just enough of selenium's WebDriver surface for the adapter."""

    def __init__(self):
        self._counter = 1
        self.windows = {"H1": "about:blank"}
        self.current_window_handle = "H1"
        self.switch_to = _SwitchTo(self)
        self.quit_calls = 0
        self.broken = False
        self.quit_error = None
        self.script_error = None
        self.script_timeout = 30.0
        self.script_timeout_calls = []

    @property
    def window_handles(self):
        if self.broken:
            raise WebDriverException("disconnected: not connected to DevTools")
        return list(self.windows)

    @property
    def current_url(self):
        return self.windows[self.current_window_handle]

    @property
    def title(self):
        return f"title {self.current_window_handle}"

    def get(self, url):
        self.windows[self.current_window_handle] = url

    def close(self):
        del self.windows[self.current_window_handle]

    @property
    def timeouts(self):
        return types.SimpleNamespace(script=self.script_timeout)

    def set_script_timeout(self, timeout):
        self.script_timeout_calls.append(timeout)
        self.script_timeout = timeout

    def execute_script(self, script):
        if self.script_error is not None:
            raise self.script_error
        return script

    def get_screenshot_as_png(self):
        return b"\x89PNG"

    def quit(self):
        self.quit_calls += 1
        if self.quit_error is not None:
            raise self.quit_error


def started_driver():
    stubs = []

    def factory(config):
        stubs.append(StubWebDriver())
        return stubs[-1]

    driver = SeleniumBrowserDriver({"headless": True}, factory=factory)
    driver.start()
    return driver, stubs


def test_calls_before_start_raise_not_started():
    driver = SeleniumBrowserDriver(factory=lambda config: StubWebDriver())
    with pytest.raises(BrowserNotStartedError):
        driver.list_pages()


def test_create_navigate_list():
    driver, stubs = started_driver()
    page_id = driver.create_page("https://example.com")
    driver.navigate(page_id, "https://example.com/next")
    pages = {p.page_id: p.url for p in driver.list_pages()}
    assert pages == {"H1": "about:blank", page_id: "https://example.com/next"}


def test_unknown_page_id():
    driver, _ = started_driver()
    with pytest.raises(PageNotFoundError):
        driver.screenshot("nope")


def test_close_last_page_keeps_session():
    driver, stubs = started_driver()
    driver.close_page("H1")
    assert list(stubs[0].windows) == ["H2"]


def test_health_check_maps_driver_errors():
    driver, stubs = started_driver()
    driver.health_check()
    stubs[0].broken = True
    with pytest.raises(BrowserUnhealthyError):
        driver.health_check()


def test_health_check_restores_script_timeout():
    driver, stubs = started_driver()
    driver.health_check()
    assert stubs[0].script_timeout_calls == [selenium_driver.HEALTH_CHECK_TIMEOUT_SECS, 30.0]
    assert stubs[0].script_timeout == 30.0


def test_failed_health_check_still_restores_script_timeout():
    driver, stubs = started_driver()
    stubs[0].script_error = WebDriverException("script timeout")
    with pytest.raises(BrowserUnhealthyError):
        driver.health_check()
    assert stubs[0].script_timeout == 30.0


def test_restart_creates_new_session():
    driver, stubs = started_driver()
    driver.restart()
    assert len(stubs) == 2
    assert stubs[0].quit_calls == 1
    assert driver.is_started


def test_quit_failure_kills_leftover_process_tree(monkeypatch):
    driver, stubs = started_driver()
    stubs[0].quit_error = WebDriverException("chrome not reachable")
    stubs[0].service = types.SimpleNamespace(process=types.SimpleNamespace(pid=4242))
    killed = []
    monkeypatch.setattr(selenium_driver.psutil, "pid_exists", lambda pid: True)
    monkeypatch.setattr(selenium_driver, "kill_process_tree", lambda pid: killed.append(pid) or [])
    driver.quit()
    assert killed == [4242]
    assert not driver.is_started


def test_clean_quit_leaves_no_process_to_kill(monkeypatch):
    driver, stubs = started_driver()
    killed = []
    monkeypatch.setattr(selenium_driver, "kill_process_tree", lambda pid: killed.append(pid) or [])
    driver.quit()
    assert killed == []
    assert stubs[0].quit_calls == 1


def test_kill_process_tree_without_pid():
    assert selenium_driver.kill_process_tree(None) == []
