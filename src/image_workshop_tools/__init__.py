"""Image tools and the registry they are published in.

Importing this package registers the FLUX and Stability tools.
"""

from . import flux, stability  # noqa: F401
from .core import Tool, ToolContext, ToolServices
from .registry import get_tool, list_tools, register_tool, unregister_tool

__all__ = [
    "Tool",
    "ToolContext",
    "ToolServices",
    "get_tool",
    "list_tools",
    "register_tool",
    "unregister_tool",
]
