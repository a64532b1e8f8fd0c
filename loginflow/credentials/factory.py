"""Factory for creating credential providers based on environment."""

import logging
from enum import Enum
from typing import Dict, List, Optional, Type

from .base import CredentialProvider
from .dynamodb import DynamoDBCredentialProvider
from .memory import InMemoryCredentialProvider
from loginflow.config import settings
from loginflow.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialStoreType(str, Enum):
    """Credential store types."""

    MEMORY = "memory"
    DYNAMODB = "dynamodb"


class CredentialProviderFactory:
    """Factory for creating credential providers."""

    _providers: Dict[CredentialStoreType, Type[CredentialProvider]] = {
        CredentialStoreType.MEMORY: InMemoryCredentialProvider,
        CredentialStoreType.DYNAMODB: DynamoDBCredentialProvider,
    }

    @classmethod
    def create_provider(cls, store_type: Optional[str] = None) -> CredentialProvider:
        """
        Create a credential provider for the given store type.

        Args:
            store_type: Store to read from. If None, uses settings.credential_store

        Raises:
            ConfigurationError: If store_type is not supported
        """
        store_type = (store_type or settings.credential_store).lower()
        try:
            provider_class = cls._providers[CredentialStoreType(store_type)]
        except ValueError:
            raise ConfigurationError(
                f"Unsupported credential store: {store_type}. "
                f"Supported types: {cls.get_available_store_types()}"
            )

        logger.info(f"Creating credential provider of type: {store_type}")
        return provider_class()

    @classmethod
    def get_available_store_types(cls) -> List[str]:
        """Get list of available credential store types."""
        return [t.value for t in cls._providers]
