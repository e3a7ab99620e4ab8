"""CLI configuration using environ-config.

This module defines the configuration classes for the command line commands.
Every option can be set through an ``IMAGE_WORKSHOP_*`` environment variable
or overridden with the matching ``--kebab-case`` flag.
"""

import os
from typing import TypeVar

import attr
import environ

PREFIX = "IMAGE_WORKSHOP"

T = TypeVar("T")


@environ.config(prefix=PREFIX)
class ServeConfig:
    """Configuration for the serve command."""

    host: str = environ.var(default="127.0.0.1", help="Host to bind to")
    port: int = environ.var(default=8080, converter=int, help="Port to bind to")

    # Configuration source
    config_source: str = environ.var(
        default="aws", help="Where secrets are resolved from (aws or env)"
    )
    aws_region: str | None = environ.var(
        default=None, help="AWS region for Secrets Manager and SSM (when using aws)"
    )
    aws_endpoint_url: str | None = environ.var(
        default=None, help="AWS endpoint URL for the configuration source (e.g., LocalStack)"
    )
    env_prefix: str | None = environ.var(
        default=None, help="Environment variable prefix (when using env)"
    )

    # Providers
    bfl_api_host: str = environ.var(
        default="https://api.bfl.ml", help="Black Forest Labs API host"
    )
    stability_api_host: str = environ.var(
        default="https://api.stability.ai", help="Stability AI API host"
    )
    job_timeout: float = environ.var(
        default=300.0, converter=float, help="Overall timeout for async jobs (seconds)"
    )
    poll_interval: float = environ.var(
        default=1.0, converter=float, help="Seconds between job status reads"
    )

    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )


@environ.config(prefix=PREFIX)
class ListConfig:
    """Configuration for the list command."""

    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )


class UnknownOptionError(ValueError):
    """Raised when a command line flag does not match any config field."""

    def __init__(self, option: str) -> None:
        super().__init__(f"Unknown option: {option}")
        self.option = option


def _bool_fields(config_class: type) -> set[str]:
    return {field.name for field in attr.fields(config_class) if field.type is bool}


def args_to_config_class(config_class: type[T], args: list[str] | None = None) -> T:
    """Build a config instance from environment variables and CLI flags.

    ``--some-option value`` sets ``IMAGE_WORKSHOP_SOME_OPTION``; boolean
    options may be given as bare flags.

    Raises:
        UnknownOptionError: If a flag does not name a config field.
    """
    field_names = {field.name for field in attr.fields(config_class)}
    bool_fields = _bool_fields(config_class)
    overrides: dict[str, str] = {}

    remaining = list(args or [])
    while remaining:
        option = remaining.pop(0)
        if not option.startswith("--"):
            raise UnknownOptionError(option)
        name, _, inline_value = option[2:].partition("=")
        field_name = name.replace("-", "_")
        if field_name not in field_names:
            raise UnknownOptionError(option)

        if inline_value:
            value = inline_value
        elif field_name in bool_fields and (
            not remaining or remaining[0].startswith("--")
        ):
            value = "true"
        elif remaining:
            value = remaining.pop(0)
        else:
            raise UnknownOptionError(option)
        overrides[f"{PREFIX}_{field_name.upper()}"] = value

    return environ.to_config(config_class, environ={**os.environ, **overrides})


def create_serve_config(args: list[str] | None = None) -> ServeConfig:
    """Create a ServeConfig from command line arguments and environment variables."""
    return args_to_config_class(ServeConfig, args)


def create_list_config(args: list[str] | None = None) -> ListConfig:
    """Create a ListConfig from command line arguments and environment variables."""
    return args_to_config_class(ListConfig, args)
