"""Browser session management module."""

from .base import BrowserSession, PlaywrightBrowserSession, SessionProvisioner
from .factory import BrowserProviderFactory, BrowserProviderType
from .providers import BrowserbaseProvisioner, LocalBrowserProvisioner

__all__ = [
    "BrowserSession",
    "BrowserProviderFactory",
    "BrowserProviderType",
    "BrowserbaseProvisioner",
    "LocalBrowserProvisioner",
    "PlaywrightBrowserSession",
    "SessionProvisioner",
]
