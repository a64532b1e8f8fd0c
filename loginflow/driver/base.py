"""Abstract page driver interface."""

from abc import ABC, abstractmethod
from typing import List, Optional, Pattern, Union

UrlPattern = Union[str, Pattern[str]]


class PageDriver(ABC):
    """Primitive page interactions the login flow is written against.

    Every wait takes an explicit timeout in milliseconds. Methods that take an
    ``index`` act on the n-th element matched by ``selector`` (default: first).
    """

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Load ``url`` and wait for the load event."""
        pass

    @abstractmethod
    async def wait_for_visible(self, selector: str, timeout_ms: int) -> None:
        """Wait until ``selector`` is visible. Raises on timeout."""
        pass

    @abstractmethod
    async def is_visible(self, selector: str) -> bool:
        """Return whether the first match of ``selector`` is visible right now."""
        pass

    @abstractmethod
    async def count(self, selector: str) -> int:
        pass

    @abstractmethod
    async def fill(self, selector: str, value: str, index: int = 0) -> None:
        pass

    @abstractmethod
    async def type_text(self, selector: str, text: str, index: int = 0) -> None:
        """Type ``text`` key by key into the element."""
        pass

    @abstractmethod
    async def press_key(self, selector: str, key: str, index: int = 0) -> None:
        pass

    @abstractmethod
    async def click(self, selector: str, timeout_ms: int) -> None:
        pass

    @abstractmethod
    async def js_click(self, selector: str) -> None:
        """Click through the DOM, bypassing actionability checks."""
        pass

    @abstractmethod
    async def scroll_to_top(self) -> None:
        pass

    @abstractmethod
    def current_url(self) -> str:
        pass

    @abstractmethod
    async def wait_for_url(self, pattern: UrlPattern, timeout_ms: int) -> None:
        """Wait until the page URL matches ``pattern``. Raises on timeout."""
        pass

    @abstractmethod
    async def wait_for_navigation(self, timeout_ms: int) -> None:
        """Wait for the next main-frame navigation to load. Raises on timeout."""
        pass

    @abstractmethod
    def list_open_pages(self) -> List["PageDriver"]:
        """Drivers for every page open in the same browser context."""
        pass

    @abstractmethod
    async def wait_for_new_page(self, timeout_ms: int) -> "PageDriver":
        """Wait for a new page (tab) to open in the same context."""
        pass

    @abstractmethod
    def is_same_page(self, other: Optional["PageDriver"]) -> bool:
        pass
