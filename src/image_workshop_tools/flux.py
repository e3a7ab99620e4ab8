"""FLUX tools backed by the Black Forest Labs asynchronous API.

Every tool submits a job, waits for it through the AsyncJobClient, downloads
the generated sample and writes it to the ``image`` output URL.
"""

import asyncio
import base64
from typing import Any

import structlog

from image_workshop_providers.artifacts import (
    content_type_for,
    fetch_artifact,
    put_artifact,
)
from image_workshop_tools.core import Tool, ToolContext, ToolServices
from image_workshop_tools.registry import register_tool

# Get logger for this module
logger = structlog.get_logger(__name__)

FLUX_PRO_1_1 = "/v1/flux-pro-1.1"
FLUX_KONTEXT_PRO = "/v1/flux-kontext-pro"
FLUX_FILL = "/v1/flux-pro-1.1-fill"
FLUX_EXPAND = "/v1/flux-pro-1.1-canny-expand"

_COMMON_DEFAULTS: dict[str, Any] = {
    "prompt_upsampling": False,
    "safety_tolerance": 2,
    "seed": None,
    "output_format": "png",
}


def _with_defaults(args: dict[str, Any], **defaults: Any) -> dict[str, Any]:  # noqa: ANN401
    return {**_COMMON_DEFAULTS, **defaults, **args}


async def _run_flux_job(
    endpoint: str,
    payload: dict[str, Any],
    output_format: str,
    context: ToolContext,
    services: ToolServices,
) -> dict[str, Any]:
    api_key = await services.secret_store.get_bfl_api_key()
    outcome = await services.job_client.run(
        endpoint,
        api_key,
        {key: value for key, value in payload.items() if value is not None},
        services.job_timeout,
    )

    async with services.artifact_client() as client:
        image = await fetch_artifact(client, outcome.artifact_ref)
        await put_artifact(
            client, context.output_url("image"), image, content_type_for(output_format)
        )

    logger.info("FLUX_TOOL_COMPLETED", endpoint=endpoint, job_id=outcome.job_id)
    return {"metadata": {"id": outcome.job_id, "seed": outcome.seed}}


async def _fetch_base64(services: ToolServices, *urls: str) -> list[str]:
    async with services.artifact_client() as client:
        blobs = await asyncio.gather(*(fetch_artifact(client, url) for url in urls))
    return [base64.b64encode(blob).decode("ascii") for blob in blobs]


async def flux_pro(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Generate an image from a text prompt with FLUX Pro 1.1."""
    args = _with_defaults(args, width=1024, height=1024)
    payload = {
        "prompt": args["prompt"],
        "width": args["width"],
        "height": args["height"],
        "prompt_upsampling": args["prompt_upsampling"],
        "safety_tolerance": args["safety_tolerance"],
        "seed": args["seed"],
        "output_format": args["output_format"],
    }
    return await _run_flux_job(
        FLUX_PRO_1_1, payload, args["output_format"], context, services
    )


async def flux_kontext(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Edit an input image following a text instruction."""
    args = _with_defaults(args, guidance=None)
    (image,) = await _fetch_base64(services, context.input_url("image"))
    payload = {
        "prompt": args["prompt"],
        "input_image": image,
        "guidance": args["guidance"],
        "prompt_upsampling": args["prompt_upsampling"],
        "safety_tolerance": args["safety_tolerance"],
        "seed": args["seed"],
        "output_format": args["output_format"],
    }
    return await _run_flux_job(
        FLUX_KONTEXT_PRO, payload, args["output_format"], context, services
    )


async def flux_fill(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Fill the masked area of an image."""
    args = _with_defaults(args, guidance=None)
    image, mask = await _fetch_base64(
        services, context.input_url("image"), context.input_url("mask")
    )
    payload = {
        "prompt": args["prompt"],
        "image": image,
        "mask": mask,
        "guidance": args["guidance"],
        "prompt_upsampling": args["prompt_upsampling"],
        "safety_tolerance": args["safety_tolerance"],
        "seed": args["seed"],
        "output_format": args["output_format"],
    }
    return await _run_flux_job(
        FLUX_FILL, payload, args["output_format"], context, services
    )


async def flux_expand(
    args: dict[str, Any], context: ToolContext, services: ToolServices
) -> dict[str, Any]:
    """Extend an image outwards by the given number of pixels per side."""
    args = _with_defaults(args, prompt="", top=0, bottom=0, left=0, right=0)
    (image,) = await _fetch_base64(services, context.input_url("image"))
    payload = {
        "prompt": args["prompt"],
        "image": image,
        "top": args["top"],
        "bottom": args["bottom"],
        "left": args["left"],
        "right": args["right"],
        "prompt_upsampling": args["prompt_upsampling"],
        "safety_tolerance": args["safety_tolerance"],
        "seed": args["seed"],
        "output_format": args["output_format"],
    }
    return await _run_flux_job(
        FLUX_EXPAND, payload, args["output_format"], context, services
    )


FLUX_TOOLS = [
    Tool(
        "flux_pro",
        "Generate a high-quality image from text using FLUX Pro 1.1",
        flux_pro,
        "bfl",
        required_args=("prompt",),
    ),
    Tool(
        "flux_kontext",
        "Edit an image with a text instruction using FLUX Kontext",
        flux_kontext,
        "bfl",
        required_args=("prompt",),
    ),
    Tool(
        "flux_fill",
        "Fill masked areas of an image using FLUX Fill",
        flux_fill,
        "bfl",
        required_args=("prompt",),
    ),
    Tool("flux_expand", "Expand an image beyond its borders using FLUX", flux_expand, "bfl"),
]

for _tool in FLUX_TOOLS:
    register_tool(_tool)
