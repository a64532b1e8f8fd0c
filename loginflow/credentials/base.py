"""Base interface for credential providers."""

from abc import ABC, abstractmethod

from loginflow.models import CredentialBundle


class CredentialProvider(ABC):
    """Abstract base class for credential provider implementations."""

    @abstractmethod
    async def fetch_credentials(self, identity_ref: str) -> CredentialBundle:
        """Return the credential bundle stored for an identity.

        Raises:
            CredentialNotFoundError: if the identity reference is unknown.
            CredentialUnauthorizedError: if the bundle may not be read.
        """
        pass
