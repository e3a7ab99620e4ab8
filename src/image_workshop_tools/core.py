"""Core types shared by every tool."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from image_workshop_core.exceptions import ConfigurationError, MissingArgumentError
from image_workshop_core.secret_store import SecretStore
from image_workshop_providers.async_jobs import AsyncJobClient
from image_workshop_providers.stability import StabilityClient


@dataclass
class ToolContext:
    """Presigned artifact URLs supplied with a tool call."""

    input_urls: dict[str, str] = field(default_factory=dict)
    output_urls: dict[str, str] = field(default_factory=dict)

    def input_url(self, name: str) -> str:
        try:
            return self.input_urls[name]
        except KeyError:
            raise ConfigurationError(
                f"Missing input artifact '{name}'", "tool_context"
            ) from None

    def output_url(self, name: str) -> str:
        try:
            return self.output_urls[name]
        except KeyError:
            raise ConfigurationError(
                f"Missing output artifact '{name}'", "tool_context"
            ) from None


@dataclass
class ToolServices:
    """Collaborators a tool handler may use.

    ``artifact_transport`` is handed to the httpx client used for artifact
    GETs and PUTs, which lets tests swap in a mock transport.
    """

    secret_store: SecretStore
    job_client: AsyncJobClient
    stability_client: StabilityClient
    job_timeout: float = 5 * 60.0
    artifact_timeout: float = 60.0
    artifact_transport: httpx.AsyncBaseTransport | None = None

    def artifact_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.artifact_timeout,
            transport=self.artifact_transport,
            follow_redirects=True,
        )


ToolHandler = Callable[[dict[str, Any], ToolContext, ToolServices], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class Tool:
    """A named, callable tool.

    ``required_args`` are checked before the handler runs; an argument that is
    absent or null raises MissingArgumentError.
    """

    name: str
    description: str
    handler: ToolHandler
    provider: str = ""
    required_args: tuple[str, ...] = ()

    async def invoke(
        self, args: dict[str, Any], context: ToolContext, services: ToolServices
    ) -> dict[str, Any]:
        for name in self.required_args:
            if args.get(name) is None:
                raise MissingArgumentError(name)
        return await self.handler(args, context, services)
