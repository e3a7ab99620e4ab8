"""Stability AI tools.

Stability answers synchronously, so these tools skip the job client: they
fetch their inputs, make one provider call and write the decoded image to
the ``image`` output URL.
"""

import asyncio
import base64
from typing import Any

import structlog

from image_workshop_providers.artifacts import fetch_artifact, put_artifact
from image_workshop_providers.stability import StabilityImage, UploadFile
from image_workshop_tools.core import Tool, ToolContext, ToolServices
from image_workshop_tools.registry import register_tool

# Get logger for this module
logger = structlog.get_logger(__name__)

TXT2IMG = "/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
ERASE = "/v2beta/stable-image/edit/erase"
INPAINT = "/v2beta/stable-image/edit/inpaint"
REMOVE_BACKGROUND = "/v2beta/stable-image/edit/remove-background"


async def _fetch_inputs(
    context: ToolContext, services: ToolServices, *names: str
) -> dict[str, UploadFile]:
    async with services.artifact_client() as client:
        blobs = await asyncio.gather(
            *(fetch_artifact(client, context.input_url(name)) for name in names)
        )
    return {
        name: UploadFile(content=blob, filename=f"{name}.png")
        for name, blob in zip(names, blobs, strict=True)
    }


async def _write_output(
    response: StabilityImage, context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    data = base64.b64decode(response.image)
    async with services.artifact_client() as client:
        await put_artifact(client, context.output_url("image"), data, response.mime_type)
    return {
        "metadata": {
            "seed": response.seed,
            "finish_reason": response.finish_reason,
        }
    }


async def txt2img(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Generate an image from text with Stable Diffusion XL."""
    output_format = args.get("output_format", "png")
    text_prompts = [{"text": args["prompt"], "weight": 1}]
    if args.get("negative_prompt"):
        text_prompts.append({"text": args["negative_prompt"], "weight": -1})

    body: dict[str, Any] = {
        "text_prompts": text_prompts,
        "width": args.get("width", 1024),
        "height": args.get("height", 1024),
        "steps": args.get("steps", 30),
        "cfg_scale": args.get("cfg_scale", 7),
    }
    for optional in ("seed", "style_preset"):
        if args.get(optional) is not None:
            body[optional] = args[optional]

    api_key = await services.secret_store.get_stability_api_key()
    response = await services.stability_client.call_json(
        TXT2IMG, api_key, body, output_format
    )
    logger.info("STABILITY_TOOL_COMPLETED", tool="txt2img", seed=response.seed)
    return await _write_output(response, context, services)


async def erase(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Erase the masked objects from an image."""
    output_format = args.get("output_format", "png")
    files = await _fetch_inputs(context, services, "image", "mask")
    api_key = await services.secret_store.get_stability_api_key()
    response = await services.stability_client.call_multipart(
        ERASE,
        api_key,
        {"grow_mask": args.get("grow_mask", 5), "seed": args.get("seed")},
        dict(files),
        output_format,
    )
    return await _write_output(response, context, services)


async def inpaint(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Repaint the masked area of an image from a prompt."""
    output_format = args.get("output_format", "png")
    files = await _fetch_inputs(context, services, "image", "mask")
    api_key = await services.secret_store.get_stability_api_key()
    response = await services.stability_client.call_multipart(
        INPAINT,
        api_key,
        {
            "prompt": args["prompt"],
            "negative_prompt": args.get("negative_prompt"),
            "grow_mask": args.get("grow_mask", 5),
            "seed": args.get("seed"),
        },
        dict(files),
        output_format,
    )
    return await _write_output(response, context, services)


async def remove_bg(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Remove the background of an image."""
    output_format = args.get("output_format", "png")
    files = await _fetch_inputs(context, services, "image")
    api_key = await services.secret_store.get_stability_api_key()
    response = await services.stability_client.call_multipart(
        REMOVE_BACKGROUND, api_key, {}, dict(files), output_format
    )
    return await _write_output(response, context, services)


STABILITY_TOOLS = [
    Tool(
        "txt2img",
        "Generate an image from text using Stable Diffusion XL",
        txt2img,
        "stability",
        required_args=("prompt",),
    ),
    Tool("erase", "Erase objects from an image using a mask (white areas are erased)", erase, "stability"),
    Tool(
        "inpaint",
        "Inpaint masked areas of an image from a prompt",
        inpaint,
        "stability",
        required_args=("prompt",),
    ),
    Tool("remove_bg", "Remove the background from an image", remove_bg, "stability"),
]

for _tool in STABILITY_TOOLS:
    register_tool(_tool)
