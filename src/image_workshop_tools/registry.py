"""Tool registry.

This module manages the registry of available tools and provides functions
to look them up by name.
"""

import structlog

from image_workshop_core.exceptions import ConfigurationError
from image_workshop_tools.core import Tool

# Get logger for this module
logger = structlog.get_logger(__name__)

# Tool registry
_TOOLS: dict[str, Tool] = {}


def register_tool(tool: Tool) -> Tool:
    """Register a tool under its name, replacing any previous registration."""
    if tool.name in _TOOLS:
        logger.debug("TOOL_REREGISTERED", tool_name=tool.name)
    _TOOLS[tool.name] = tool
    return tool


def get_tool(name: str) -> Tool:
    """Get a registered tool.

    Raises:
        ConfigurationError: If no tool is registered under the name.
    """
    if name not in _TOOLS:
        error_message = f"Tool not found: {name}"
        raise ConfigurationError(error_message, "tool_registry")
    return _TOOLS[name]


def list_tools() -> list[str]:
    """List all registered tool names."""
    return list(_TOOLS.keys())


def unregister_tool(name: str) -> None:
    """Remove a tool from the registry if present."""
    _TOOLS.pop(name, None)
