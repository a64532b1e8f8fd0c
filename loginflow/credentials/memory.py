"""In-memory credential provider for testing and development."""

import logging
from typing import Any, Dict, Optional, Union

from .base import CredentialProvider
from loginflow.exceptions import CredentialNotFoundError
from loginflow.models import CredentialBundle

logger = logging.getLogger(__name__)


class InMemoryCredentialProvider(CredentialProvider):
    """Dict-backed credential provider."""

    def __init__(self, bundles: Optional[Dict[str, Union[CredentialBundle, Dict[str, Any]]]] = None):
        self.bundles: Dict[str, CredentialBundle] = {}
        self.fetch_count = 0
        for identity_ref, bundle in (bundles or {}).items():
            self.store(identity_ref, bundle)

    def store(self, identity_ref: str, bundle: Union[CredentialBundle, Dict[str, Any]]) -> None:
        """Store or replace the bundle for an identity."""
        if not isinstance(bundle, CredentialBundle):
            bundle = CredentialBundle.model_validate(bundle)
        self.bundles[identity_ref] = bundle
        logger.info(f"Identity {identity_ref} stored with {len(bundle.records)} credential records")

    async def fetch_credentials(self, identity_ref: str) -> CredentialBundle:
        """Return a copy of the stored bundle."""
        self.fetch_count += 1
        bundle = self.bundles.get(identity_ref)
        if bundle is None:
            logger.info(f"Identity {identity_ref} not found in memory store")
            raise CredentialNotFoundError(f"Identity not found: {identity_ref}")

        logger.info(f"Identity {identity_ref} retrieved from memory store")
        return bundle.model_copy(deep=True)
