"""Factory for creating session provisioners."""

from enum import Enum
from typing import Dict, Optional, Type

from .base import SessionProvisioner
from .providers import BrowserbaseProvisioner, LocalBrowserProvisioner
from loginflow.config import settings
from loginflow.exceptions import ConfigurationError


class BrowserProviderType(str, Enum):
    """Browser provider types."""

    LOCAL = "local"
    BROWSERBASE = "browserbase"


class BrowserProviderFactory:
    """Factory for creating session provisioners."""

    _providers: Dict[BrowserProviderType, Type[SessionProvisioner]] = {
        BrowserProviderType.LOCAL: LocalBrowserProvisioner,
        BrowserProviderType.BROWSERBASE: BrowserbaseProvisioner,
    }

    @classmethod
    def create_provisioner(
        cls, provider_type: Optional[BrowserProviderType] = None
    ) -> SessionProvisioner:
        """Create a session provisioner, defaulting to settings.browser_provider."""
        if provider_type is None:
            try:
                provider_type = BrowserProviderType(settings.browser_provider)
            except ValueError:
                raise ConfigurationError(
                    f"Unsupported browser provider: {settings.browser_provider}"
                )
        provider_class = cls._providers.get(provider_type)
        if not provider_class:
            raise ConfigurationError(f"Unsupported browser provider: {provider_type}")
        return provider_class()
