"""Page driver module."""

from .base import PageDriver, UrlPattern
from .playwright_driver import PlaywrightPageDriver

__all__ = [
    "PageDriver",
    "PlaywrightPageDriver",
    "UrlPattern",
]
