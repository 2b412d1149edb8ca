"""
Repository tools available to the reviewer in agent mode.
"""
from pathlib import Path
from typing import Union

from .base import ReviewTool, ToolRegistry, ToolError, UnknownToolError, ToolExecutionError
from .read_file import ReadFileTool
from .search_content import SearchContentTool
from .list_directory import ListDirectoryTool


def default_registry(root: Union[str, Path]) -> ToolRegistry:
    """Registry with read_file, search_content and list_directory rooted at `root`."""
    return ToolRegistry([
        ReadFileTool(root),
        SearchContentTool(root),
        ListDirectoryTool(root),
    ])


__all__ = [
    "ReviewTool",
    "ToolRegistry",
    "ToolError",
    "UnknownToolError",
    "ToolExecutionError",
    "ReadFileTool",
    "SearchContentTool",
    "ListDirectoryTool",
    "default_registry",
]
