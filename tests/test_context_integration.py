"""Integration tests for BrowserContext.

Tests to ensure context-based state management wires the registry, executor,
façade, supervisor and sandbox together correctly.
"""

import pytest

from mcp_browser_guard import context as context_module
from mcp_browser_guard.context import BrowserContext, build_context, get_context, reset_context, set_context
from mcp_browser_guard.errors import AccessDeniedError, BrowserNotStartedError, ConfigurationError

from _utils import FakeDriver


class TestContextIntegration:
    """Test BrowserContext integration."""

    def setup_method(self):
        """Reset context before each test."""
        reset_context()

    def teardown_method(self):
        reset_context()

    def test_context_singleton(self, monkeypatch, tmp_path):
        """Test that get_context returns same instance."""
        monkeypatch.chdir(tmp_path)
        ctx1 = get_context()
        ctx2 = get_context()
        assert ctx1 is ctx2

    def test_reset_context(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        ctx1 = get_context()
        reset_context()
        assert get_context() is not ctx1

    def test_fresh_context_has_no_browser(self):
        ctx = BrowserContext()
        assert ctx.is_browser_ready() is False
        assert ctx.operations is None
        assert ctx.supervisor is None
        assert ctx.executor.registry is ctx.registry

    def test_driver_binds_operations_and_supervisor(self):
        driver = FakeDriver()
        ctx = BrowserContext(config={"escalation_threshold": 4}, driver=driver)
        assert ctx.is_browser_ready()
        assert ctx.operations.driver is driver
        assert ctx.operations.executor is ctx.executor
        assert ctx.supervisor._threshold == 4

    def test_ensure_operations_wraps_start_failure(self, monkeypatch):
        from mcp_browser_guard.browser import selenium_driver

        class BrokenDriver(selenium_driver.SeleniumBrowserDriver):
            def start(self):
                raise RuntimeError("no chrome here")

        monkeypatch.setattr(selenium_driver, "SeleniumBrowserDriver", BrokenDriver)
        ctx = BrowserContext()
        with pytest.raises(BrowserNotStartedError):
            ctx.ensure_operations()
        assert ctx.is_browser_ready() is False

    def test_close_quits_driver(self):
        driver = FakeDriver()
        ctx = BrowserContext(driver=driver)
        ctx.close()
        assert driver.quit_called
        assert ctx.is_browser_ready() is False

    def test_set_context(self):
        ctx = BrowserContext()
        set_context(ctx)
        assert get_context() is ctx

    def test_build_context_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MCP_RETRY_CRITICAL_OPERATION_MAX_ATTEMPTS", "4")
        monkeypatch.setenv("MCP_FILE_ALLOWED_PATHS", str(tmp_path))
        monkeypatch.setenv("MCP_FILE_MAX_SIZE", "2048")
        ctx = build_context()
        assert ctx.registry.get("critical_operation").max_attempts == 4
        assert ctx.sandbox.policy.allowed_paths == (str(tmp_path),)
        assert ctx.sandbox.policy.max_file_size == 2048

    def test_build_context_default_policy(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("MCP_FILE_ALLOWED_PATHS", "MCP_FILE_DENIED_PATHS", "MCP_FILE_RESTRICT_TO_CWD",
                     "MCP_FILE_ALLOW_TEMP", "MCP_FILE_MAX_SIZE"):
            monkeypatch.delenv(name, raising=False)
        ctx = build_context()
        assert ctx.sandbox.policy.restrict_to_working_dir is True

    def test_build_context_size_only_config_denies_outside_paths(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("MCP_FILE_ALLOWED_PATHS", "MCP_FILE_DENIED_PATHS", "MCP_FILE_RESTRICT_TO_CWD",
                     "MCP_FILE_ALLOW_TEMP"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("MCP_FILE_MAX_SIZE", "1000")
        ctx = build_context()
        assert ctx.sandbox.policy.max_file_size == 1000
        assert ctx.sandbox.validate_path(str(tmp_path / "page.html"), "write")
        with pytest.raises(AccessDeniedError):
            ctx.sandbox.validate_path("/etc/cron.d/evil", "write")

    def test_broken_configuration_fails_loudly(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MCP_RETRY_TOOL_OPERATION_MAX_ATTEMPTS", "0")
        with pytest.raises(ConfigurationError):
            get_context()
        assert context_module._global_context is None
