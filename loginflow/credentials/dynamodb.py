"""DynamoDB credential provider."""

import asyncio
import logging
from typing import Any, Dict

import boto3
from botocore.exceptions import ClientError
from pydantic import ValidationError

from .base import CredentialProvider
from loginflow.config import settings
from loginflow.exceptions import (
    CredentialNotFoundError,
    CredentialProviderError,
    CredentialUnauthorizedError,
)
from loginflow.models import CredentialBundle

logger = logging.getLogger(__name__)

UNAUTHORIZED_ERROR_CODES = {
    "AccessDeniedException",
    "UnrecognizedClientException",
    "ExpiredTokenException",
}


class DynamoDBCredentialProvider(CredentialProvider):
    """Reads identity bundles from a DynamoDB table keyed by ``identity_id``.

    Items look like::

        {
            "identity_id": "...",
            "display_name": "...",
            "source": "linkedin.com",
            "records": [{"type": "username_password", "username": "...", "password": "..."}, ...]
        }
    """

    def __init__(self, table=None):
        self.table_name = settings.dynamodb_table_name
        self.region = settings.dynamodb_region

        if table is not None:
            self.table = table
            return

        # Initialize DynamoDB resource
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            self.dynamodb = boto3.resource(
                "dynamodb",
                region_name=self.region,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
            )
        else:
            # Use default credentials (IAM role, environment, etc.)
            self.dynamodb = boto3.resource("dynamodb", region_name=self.region)

        self.table = self.dynamodb.Table(self.table_name)

    async def fetch_credentials(self, identity_ref: str) -> CredentialBundle:
        """Retrieve an identity bundle from DynamoDB."""
        try:
            response = await asyncio.get_event_loop().run_in_executor(
                None, lambda: self.table.get_item(Key={"identity_id": identity_ref})
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.error(f"Failed to retrieve identity {identity_ref} from DynamoDB: {code}")
            if code in UNAUTHORIZED_ERROR_CODES:
                raise CredentialUnauthorizedError(
                    f"Not authorized to read identity {identity_ref}: {code}"
                ) from e
            raise CredentialProviderError(f"Credential store error for {identity_ref}: {code}") from e

        if "Item" not in response:
            logger.info(f"Identity {identity_ref} not found in DynamoDB")
            raise CredentialNotFoundError(f"Identity not found: {identity_ref}")

        return self._to_bundle(identity_ref, response["Item"])

    def _to_bundle(self, identity_ref: str, item: Dict[str, Any]) -> CredentialBundle:
        try:
            bundle = CredentialBundle(
                display_name=item.get("display_name", identity_ref),
                source=item.get("source"),
                records=item.get("records", []),
            )
        except ValidationError as e:
            raise CredentialProviderError(
                f"Identity {identity_ref} holds malformed credential records: {e.error_count()} errors"
            ) from e

        logger.info(f"Identity {identity_ref} retrieved from DynamoDB ({len(bundle.records)} records)")
        return bundle
