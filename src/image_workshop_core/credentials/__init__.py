"""Configuration sources for secrets and settings."""

from .aws import KNOWN_CONFIG_SOURCES, AWSConfigurationSource, ConfigLocation
from .base import ConfigurationSource
from .environment import EnvironmentConfigurationSource
from .factory import UnknownSourceTypeError, create_configuration_source

__all__ = [
    "KNOWN_CONFIG_SOURCES",
    "AWSConfigurationSource",
    "ConfigLocation",
    "ConfigurationSource",
    "EnvironmentConfigurationSource",
    "UnknownSourceTypeError",
    "create_configuration_source",
]
