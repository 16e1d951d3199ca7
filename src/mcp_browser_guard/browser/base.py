"""Browser driver contract consumed by the operation façade."""

import abc
from dataclasses import dataclass
from typing import Any, List


@dataclass(frozen=True)
class PageInfo:
    page_id: str
    url: str
    title: str

    def to_dict(self) -> dict:
        return {"page_id": self.page_id, "url": self.url, "title": self.title}


class BrowserDriver(abc.ABC):
    """
    Blocking browser capability. Implementations raise the package's typed
    errors where they can (PageNotFoundError for unknown page ids,
    BrowserNotStartedError / BrowserUnhealthyError for session problems) and
    may let driver-specific exceptions through otherwise.

    All page ids become invalid after ``restart``.
    """

    @abc.abstractmethod
    def create_page(self, url: str) -> str:
        """Open a new page at url and return its id."""

    @abc.abstractmethod
    def navigate(self, page_id: str, url: str) -> None:
        ...

    @abc.abstractmethod
    def execute_script(self, page_id: str, script: str) -> Any:
        ...

    @abc.abstractmethod
    def screenshot(self, page_id: str) -> bytes:
        """PNG bytes of the page viewport."""

    @abc.abstractmethod
    def click(self, page_id: str, selector: str) -> None:
        ...

    @abc.abstractmethod
    def get_text(self, page_id: str, selector: str) -> str:
        ...

    @abc.abstractmethod
    def wait_for_element(self, page_id: str, selector: str, timeout: float) -> None:
        ...

    @abc.abstractmethod
    def list_pages(self) -> List[PageInfo]:
        """Open pages, oldest first."""

    @abc.abstractmethod
    def close_page(self, page_id: str) -> None:
        ...

    @abc.abstractmethod
    def health_check(self) -> None:
        """Raise if the browser session is not responsive."""

    @abc.abstractmethod
    def restart(self) -> None:
        ...

    def quit(self) -> None:
        """Release the browser. Optional for drivers without a process to stop."""


__all__ = ["BrowserDriver", "PageInfo"]
