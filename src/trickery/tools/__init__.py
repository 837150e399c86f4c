"""
Tools package exports.
"""

from .base import FunctionTool, ParamMetadata, Tool, ToolParameter
from .current_time import CurrentTimeTool
from .decorators import tool
from .registry import ToolRegistry

__all__ = [
    "Tool",
    "FunctionTool",
    "ToolParameter",
    "ToolRegistry",
    "CurrentTimeTool",
    "tool",
    "ParamMetadata",
]
