"""Browser driver contract and the Selenium implementation."""

from .base import BrowserDriver, PageInfo
from .selenium_driver import SeleniumBrowserDriver, create_webdriver

__all__ = [
    "BrowserDriver",
    "PageInfo",
    "SeleniumBrowserDriver",
    "create_webdriver",
]
