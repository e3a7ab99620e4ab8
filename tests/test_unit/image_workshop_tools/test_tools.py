"""Tests for the tool registry and the FLUX and Stability tools."""

import base64
import json

import pytest

from image_workshop_core.exceptions import ConfigurationError, MissingArgumentError
from image_workshop_tools import (
    Tool,
    ToolContext,
    get_tool,
    list_tools,
    register_tool,
    unregister_tool,
)

OUTPUT_URL = "https://blob.test/out/image.png?sig=abc"


@pytest.fixture
def context() -> ToolContext:
    """Create a context with image and mask inputs and an image output."""
    return ToolContext(
        input_urls={
            "image": "https://blob.test/in/image.png",
            "mask": "https://blob.test/in/mask.png",
        },
        output_urls={"image": OUTPUT_URL},
    )


class TestRegistry:
    """Test tool registration and lookup."""

    def test_builtin_tools_registered(self) -> None:
        """Test that importing the package registers every tool."""
        names = set(list_tools())
        assert {
            "flux_pro",
            "flux_kontext",
            "flux_fill",
            "flux_expand",
            "txt2img",
            "erase",
            "inpaint",
            "remove_bg",
        } <= names

    def test_get_unknown_tool(self) -> None:
        """Test that an unknown tool raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Tool not found: nope"):
            get_tool("nope")

    @pytest.mark.asyncio
    async def test_register_and_invoke_custom_tool(self, services, context) -> None:
        """Test registering, invoking and removing a tool."""

        async def echo(args, ctx, svc):
            return {"echo": args}

        register_tool(Tool("echo", "Echo arguments", echo))
        try:
            result = await get_tool("echo").invoke({"a": 1}, context, services)
            assert result == {"echo": {"a": 1}}
        finally:
            unregister_tool("echo")
        assert "echo" not in list_tools()


class TestToolContext:
    """Test artifact URL lookups."""

    def test_missing_output(self) -> None:
        """Test that a missing output URL is a configuration error."""
        with pytest.raises(ConfigurationError, match="Missing output artifact 'image'"):
            ToolContext().output_url("image")


class TestFluxTools:
    """Test the BFL-backed tools end to end."""

    @pytest.mark.asyncio
    async def test_flux_pro(self, services, context) -> None:
        """Test generation, artifact copy and returned metadata."""
        result = await get_tool("flux_pro").invoke(
            {"prompt": "a red fox"}, context, services
        )

        assert result == {"metadata": {"id": "job-1", "seed": 11}}

        submit = services.bfl_requests[0]
        assert submit.url.path == "/v1/flux-pro-1.1"
        assert submit.headers["x-key"] == "bfl-test-key"
        payload = json.loads(submit.content)
        assert payload["prompt"] == "a red fox"
        assert payload["width"] == 1024
        assert payload["safety_tolerance"] == 2
        assert "seed" not in payload

        (put,) = services.artifacts.puts
        assert str(put.url) == OUTPUT_URL
        assert put.content == b"FLUXIMAGE"
        assert put.headers["Content-Type"] == "image/png"

    @pytest.mark.asyncio
    async def test_flux_fill_sends_base64_inputs(self, services, context) -> None:
        """Test that image and mask are sent base64 encoded."""
        await get_tool("flux_fill").invoke(
            {"prompt": "grass", "output_format": "jpeg"}, context, services
        )

        payload = json.loads(services.bfl_requests[0].content)
        assert services.bfl_requests[0].url.path == "/v1/flux-pro-1.1-fill"
        assert base64.b64decode(payload["image"]) == b"INPUT"
        assert base64.b64decode(payload["mask"]) == b"MASK"
        assert services.artifacts.puts[0].headers["Content-Type"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_missing_prompt(self, services, context) -> None:
        """Test that a missing required argument is rejected before any call."""
        with pytest.raises(MissingArgumentError) as exc_info:
            await get_tool("flux_pro").invoke({}, context, services)

        assert exc_info.value.argument == "prompt"
        assert exc_info.value.message == "Missing argument: prompt"
        assert services.bfl_requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_name", ["flux_kontext", "flux_fill", "txt2img", "inpaint"])
    async def test_null_prompt_is_missing(self, services, context, tool_name) -> None:
        """Test that a null prompt counts as missing for every prompt-driven tool."""
        with pytest.raises(MissingArgumentError):
            await get_tool(tool_name).invoke({"prompt": None}, context, services)

        assert services.bfl_requests == []
        assert services.stability_requests == []

    @pytest.mark.asyncio
    async def test_handler_key_error_is_not_an_argument_error(self, services, context) -> None:
        """Test that a KeyError raised inside a handler propagates unchanged."""

        async def handler(args, context, services):
            return {"value": {}["absent"]}

        tool = Tool("broken", "Raises KeyError", handler, required_args=("prompt",))
        with pytest.raises(KeyError):
            await tool.invoke({"prompt": "x"}, context, services)


class TestStabilityTools:
    """Test the Stability-backed tools end to end."""

    @pytest.mark.asyncio
    async def test_remove_bg(self, services, context) -> None:
        """Test background removal writes the decoded image."""
        result = await get_tool("remove_bg").invoke({}, context, services)

        assert result == {"metadata": {"seed": 5, "finish_reason": "SUCCESS"}}
        request = services.stability_requests[0]
        assert request.url.path == "/v2beta/stable-image/edit/remove-background"
        assert request.headers["Authorization"] == "Bearer stability-test-key"
        assert b"INPUT" in request.content

        (put,) = services.artifacts.puts
        assert put.content == b"STABILITY"
        assert put.headers["Content-Type"] == "image/png"

    @pytest.mark.asyncio
    async def test_txt2img_body(self, services, context) -> None:
        """Test the SDXL request body."""
        await get_tool("txt2img").invoke(
            {"prompt": "castle", "negative_prompt": "blurry", "seed": 3},
            context,
            services,
        )

        body = json.loads(services.stability_requests[0].content)
        assert body["text_prompts"] == [
            {"text": "castle", "weight": 1},
            {"text": "blurry", "weight": -1},
        ]
        assert body["steps"] == 30
        assert body["cfg_scale"] == 7
        assert body["seed"] == 3
        assert "style_preset" not in body
