"""Extraction of the fields a login flow needs from a credential bundle."""

import logging
from typing import Iterable, List, Optional

from loginflow.constants import ORGANIZATION_FIELD_ALIASES
from loginflow.exceptions import MissingCredentialsError
from loginflow.models import (
    AuthenticatorCredential,
    CredentialBundle,
    CustomCredential,
    ResolvedCredentials,
    UsernamePasswordCredential,
)

logger = logging.getLogger(__name__)


def _match_alias(name: str, aliases: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(alias.lower() in lowered for alias in aliases)


def extract_credentials(
    bundle: CredentialBundle,
    require_organization: bool = False,
    organization_aliases: Iterable[str] = ORGANIZATION_FIELD_ALIASES,
) -> ResolvedCredentials:
    """Resolve username, password, second factor and organization from a bundle.

    Records are read in order; a later record of the same kind overrides an
    earlier one. Organization comes from the first custom field whose name
    contains one of ``organization_aliases`` (case-insensitive).

    Raises:
        MissingCredentialsError: naming every required field that came out empty.
    """
    username = ""
    password = ""
    otp_code: Optional[str] = None
    otp_secret: Optional[str] = None
    organization = ""

    for record in bundle.records:
        if isinstance(record, UsernamePasswordCredential):
            username = record.username
            password = record.password
        elif isinstance(record, AuthenticatorCredential):
            otp_code = record.otp or None
            otp_secret = record.secret or None
        elif isinstance(record, CustomCredential) and not organization:
            for field in record.fields:
                if _match_alias(field.name, organization_aliases):
                    organization = field.value
                    break

    missing: List[str] = []
    if require_organization and not organization:
        missing.append("organization")
    if not username:
        missing.append("username")
    if not password:
        missing.append("password")
    if missing:
        logger.error(
            f"Credential extraction failed for {bundle.display_name or 'identity'}: "
            f"organization={bool(organization)}, username={bool(username)}, password={bool(password)}"
        )
        raise MissingCredentialsError(missing)

    return ResolvedCredentials(
        username=username,
        password=password,
        otp_code=otp_code,
        otp_secret=otp_secret,
        organization=organization or None,
    )
