"""Configuration source factory functions.

This module provides factory functions for creating configuration source
instances backed by AWS or by environment variables.
"""

import os

from .aws import AWSConfigurationSource
from .base import ConfigurationSource
from .environment import EnvironmentConfigurationSource


class UnknownSourceTypeError(ValueError):
    """Raised when an unknown configuration source type is specified."""

    def __init__(self, source_type: str) -> None:
        """Initialize the unknown source type error.

        Args:
            source_type: The unknown source type that was specified.
        """
        super().__init__(f"Unknown configuration source type: {source_type}")
        self.source_type = source_type


def _get_aws_region() -> str:
    """Get AWS region with proper precedence: AWS_REGION > IMAGE_WORKSHOP_AWS_REGION > default."""
    return (
        os.getenv("AWS_REGION")
        or os.getenv("IMAGE_WORKSHOP_AWS_REGION")
        or "us-east-1"
    )


def create_configuration_source(
    source_type: str | None = None,
    aws_region: str | None = None,
    aws_endpoint_url: str | None = None,
    env_prefix: str | None = None,
) -> ConfigurationSource:
    """Create a configuration source instance.

    Args:
        source_type: Source type to use ("aws" or "environment").
                     If None, uses IMAGE_WORKSHOP_CONFIG_SOURCE env var or "aws".
        aws_region: AWS region for Secrets Manager and SSM.
                    If None, uses AWS_REGION or IMAGE_WORKSHOP_AWS_REGION env vars.
        aws_endpoint_url: AWS endpoint URL for LocalStack testing.
                          If None, uses IMAGE_WORKSHOP_AWS_ENDPOINT_URL env var.
        env_prefix: Environment variable prefix for the environment source.
                    If None, uses IMAGE_WORKSHOP_ENV_PREFIX env var or "".

    Returns:
        Configured configuration source instance.
    """
    if source_type is None:
        source_type = os.getenv("IMAGE_WORKSHOP_CONFIG_SOURCE", "aws").lower()
    else:
        source_type = source_type.lower()

    if source_type == "aws":
        if aws_region is None:
            aws_region = _get_aws_region()
        if aws_endpoint_url is None:
            aws_endpoint_url = os.getenv("IMAGE_WORKSHOP_AWS_ENDPOINT_URL")

        return AWSConfigurationSource(region=aws_region, endpoint_url=aws_endpoint_url)
    if source_type in ("environment", "env"):
        if env_prefix is None:
            env_prefix = os.getenv("IMAGE_WORKSHOP_ENV_PREFIX", "")

        return EnvironmentConfigurationSource(prefix=env_prefix)
    raise UnknownSourceTypeError(source_type)
