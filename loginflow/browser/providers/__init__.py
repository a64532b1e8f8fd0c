"""Session provisioner implementations."""

from .browserbase import BrowserbaseProvisioner
from .local_browser import LocalBrowserProvisioner

__all__ = [
    "BrowserbaseProvisioner",
    "LocalBrowserProvisioner",
]
