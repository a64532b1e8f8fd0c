"""Credential providers and extraction."""

from .base import CredentialProvider
from .dynamodb import DynamoDBCredentialProvider
from .extract import extract_credentials
from .factory import CredentialProviderFactory, CredentialStoreType
from .memory import InMemoryCredentialProvider

__all__ = [
    "CredentialProvider",
    "CredentialProviderFactory",
    "CredentialStoreType",
    "DynamoDBCredentialProvider",
    "InMemoryCredentialProvider",
    "extract_credentials",
]
