"""AWS configuration source.

This module provides the AWSConfigurationSource class for resolving secrets
from AWS Secrets Manager and SSM Parameter Store. Environment variables take
precedence so the same code runs unchanged during local development.
"""

import os
from dataclasses import dataclass
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from image_workshop_core.exceptions import MissingConfigurationError

# Get logger for this module
logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConfigLocation:
    """Where a known configuration key is stored in AWS."""

    kind: str  # "secret" or "ssm"
    name: str


# Known configuration keys and their sources
KNOWN_CONFIG_SOURCES: dict[str, ConfigLocation] = {
    "STABILITY_API_KEY": ConfigLocation("secret", "image-workshop/stability-api-key"),
    "BFL_API_KEY": ConfigLocation("secret", "image-workshop/bfl-api-key"),
    "IMAGE_WORKSHOP_HMAC_SECRET": ConfigLocation("secret", "image-workshop/hmac-secret"),
}


class AWSConfigurationSource:
    """Configuration source backed by AWS Secrets Manager and SSM."""

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        known_sources: dict[str, ConfigLocation] | None = None,
    ) -> None:
        """Initialize the AWS configuration source.

        Args:
            region: AWS region to use. Defaults to AWS_REGION env var or us-east-1.
            endpoint_url: Optional custom endpoint URL for testing or local development.
            known_sources: Mapping of configuration keys to their AWS location.
                Defaults to KNOWN_CONFIG_SOURCES.
        """
        if region is None:
            region = os.getenv("AWS_REGION", "us-east-1")
        self.region = region
        self.endpoint_url = endpoint_url
        self.known_sources = (
            known_sources if known_sources is not None else KNOWN_CONFIG_SOURCES
        )
        self._clients: dict[str, Any] = {}

    def _client(self, service_name: str) -> Any:  # noqa: ANN401
        """Get or create a boto3 client, respecting AWS profile overrides."""
        if service_name not in self._clients:
            profile_name = os.getenv(
                "IMAGE_WORKSHOP_AWS_PROFILE", os.getenv("AWS_PROFILE")
            )
            if profile_name:
                session = boto3.session.Session(profile_name=profile_name)
            else:
                session = boto3.session.Session()
            client_kwargs = {"service_name": service_name, "region_name": self.region}
            if self.endpoint_url:
                client_kwargs["endpoint_url"] = self.endpoint_url
            self._clients[service_name] = session.client(**client_kwargs)  # type: ignore[call-overload]
        return self._clients[service_name]

    async def resolve(self, name: str, *, required: bool = True) -> str:
        """Resolve a configuration value.

        The environment variable of the same name wins; otherwise the key is
        looked up in the known-sources table and fetched from AWS.

        Raises:
            MissingConfigurationError: When the value is required and cannot
                be resolved.
        """
        env_value = os.getenv(name)
        if env_value:
            return env_value

        location = self.known_sources.get(name)
        if location is None:
            if required:
                raise MissingConfigurationError(name, "unknown configuration key")
            return ""

        try:
            if location.kind == "secret":
                return self._get_secret_value(location.name)
            if location.kind == "ssm":
                return self._get_ssm_parameter(location.name)
            return ""
        except (ClientError, BotoCoreError, ValueError) as e:
            logger.warning(
                "CONFIG_RESOLUTION_FAILED",
                name=name,
                source=location.kind,
                error=str(e),
            )
            if required:
                raise MissingConfigurationError(name, str(e)) from e
            return ""

    def _get_secret_value(self, secret_name: str) -> str:
        """Get a value from Secrets Manager."""
        response = self._client("secretsmanager").get_secret_value(
            SecretId=secret_name
        )
        secret_string = response.get("SecretString")
        if secret_string:
            return str(secret_string)
        raise ValueError(f"Secret '{secret_name}' has no string value")  # noqa: TRY003

    def _get_ssm_parameter(self, parameter_name: str) -> str:
        """Get a value from SSM Parameter Store."""
        response = self._client("ssm").get_parameter(
            Name=parameter_name, WithDecryption=True
        )
        value = response.get("Parameter", {}).get("Value")
        if value:
            return str(value)
        raise ValueError(f"SSM parameter '{parameter_name}' not found")  # noqa: TRY003
