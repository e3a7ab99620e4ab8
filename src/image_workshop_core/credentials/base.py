"""Base configuration source interface and protocols.

This module defines the ConfigurationSource protocol that all secret and
configuration backends must implement so the secret store can resolve
named values without knowing where they live.
"""

from typing import Protocol


class ConfigurationSource(Protocol):
    """Interface for configuration sources."""

    async def resolve(self, name: str, *, required: bool = True) -> str:
        """Resolve a named configuration value.

        Args:
            name: The configuration key (e.g., "BFL_API_KEY").
            required: Whether a missing value is an error.

        Returns:
            The configuration value, or an empty string when the value is
            missing and not required.

        Raises:
            MissingConfigurationError: When the value is required and unset.
        """
        ...
