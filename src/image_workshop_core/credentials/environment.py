"""Environment variable configuration source.

This module provides the EnvironmentConfigurationSource class for resolving
secrets from environment variables, useful for local development and testing.
"""

import os

from image_workshop_core.exceptions import MissingConfigurationError


class EnvironmentConfigurationSource:
    """Configuration source that reads values from environment variables."""

    def __init__(self, prefix: str = "") -> None:
        """Initialize the environment configuration source.

        Args:
            prefix: Optional prefix to add to environment variable names.
        """
        self.prefix = prefix
        self._requested_vars: list[str] = []

    async def resolve(self, name: str, *, required: bool = True) -> str:
        """Resolve a value from the environment.

        The environment variable name is ``{prefix}{name}``.

        Args:
            name: Configuration key (e.g., 'BFL_API_KEY').
            required: Whether a missing variable is an error.

        Returns:
            The value of the environment variable, or an empty string when the
            variable is unset and not required.

        Raises:
            MissingConfigurationError: When a required variable is not set.
                The reason lists every requested variable that is missing.
        """
        env_var_name = f"{self.prefix}{name}"

        if env_var_name not in self._requested_vars:
            self._requested_vars.append(env_var_name)

        value = os.getenv(env_var_name)
        if value:
            return value

        if not required:
            return ""

        missing_vars = self.get_missing_variables()
        reason = f"environment variable '{env_var_name}' not found"
        others = [var for var in missing_vars if var != env_var_name]
        if others:
            reason += f" (also missing: {', '.join(others)})"
        raise MissingConfigurationError(name, reason)

    def get_missing_variables(self) -> list[str]:
        """Get list of environment variables that were requested but not found.

        Returns:
            List of environment variable names that are missing.
        """
        return [var for var in self._requested_vars if not os.getenv(var)]

    def get_requested_variables(self) -> list[str]:
        """Get list of all environment variables that were requested."""
        return self._requested_vars.copy()
