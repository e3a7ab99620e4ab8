"""Provider connection configuration.

This module contains the `ProviderConfig` used by the provider clients to
build their httpx clients and authentication headers, and a helper for
reading their JSON answers.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

BFL_API_HOST = "https://api.bfl.ml"
STABILITY_API_HOST = "https://api.stability.ai"


@dataclass
class ProviderConfig:
    """Settings for talking to one remote image provider.

    Contains the base URL, the header that carries the API credential and
    how the credential is formatted into that header.
    """

    name: str
    base_url: str
    credential_header: str
    credential_format: str = "{credential}"
    timeout: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Strip a trailing slash so endpoints can be appended verbatim."""
        self.base_url = self.base_url.rstrip("/")
        if "User-Agent" not in self.default_headers:
            self.default_headers["User-Agent"] = "ImageWorkshop/1.0"

    def auth_headers(self, credential: str) -> dict[str, str]:
        """Build request headers carrying the credential."""
        return {
            **self.default_headers,
            self.credential_header: self.credential_format.format(
                credential=credential
            ),
        }

    def url(self, endpoint: str) -> str:
        """Join an endpoint path onto the base URL."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}{endpoint}"


def json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a response body as a JSON object.

    Returns None when the body is not JSON or is JSON of another shape.
    """
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None

def bfl_provider_config(
    base_url: str = BFL_API_HOST, timeout: float = 30.0
) -> ProviderConfig:
    """Configuration for the Black Forest Labs FLUX API."""
    return ProviderConfig(
        name="BFL",
        base_url=base_url,
        credential_header="x-key",
        timeout=timeout,
    )


def stability_provider_config(
    base_url: str = STABILITY_API_HOST, timeout: float = 120.0
) -> ProviderConfig:
    """Configuration for the Stability AI API."""
    return ProviderConfig(
        name="Stability",
        base_url=base_url,
        credential_header="Authorization",
        credential_format="Bearer {credential}",
        timeout=timeout,
        default_headers={"Accept": "application/json"},
    )
