"""read_file tool: paged access to a source file in the repository."""
import logging
from typing import Any, Dict

from pydantic import BaseModel, Field, AliasChoices

from .base import ReviewTool, ToolExecutionError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 100 * 1024
BLOCKED_PATTERNS = (".env", ".git/objects", "node_modules")

DEFAULT_START_LINE = 1
DEFAULT_MAX_LINES = 200


class ReadFileArgs(BaseModel):
    path: str = Field(description="File path relative to the project root")
    startLine: int = Field(
        default=DEFAULT_START_LINE,
        validation_alias=AliasChoices("startLine", "start_line"),
        description=f"First line to read (1-based), default {DEFAULT_START_LINE}",
    )
    maxLines: int = Field(
        default=DEFAULT_MAX_LINES,
        ge=1,
        validation_alias=AliasChoices("maxLines", "max_lines"),
        description=f"Maximum number of lines to return, default {DEFAULT_MAX_LINES}",
    )


class ReadFileTool(ReviewTool):
    name = "read_file"
    description = (
        "Read a file's content with paging. Use it to see full source files, "
        "type definitions or configuration referenced by the diff."
    )
    args_model = ReadFileArgs

    def run(self, args: ReadFileArgs) -> Dict[str, Any]:
        for pattern in BLOCKED_PATTERNS:
            if pattern in args.path:
                raise ToolExecutionError(f"Access denied: {pattern} files are blocked")

        target = self.resolve_path(args.path)
        if not target.exists():
            raise ToolExecutionError(f"File not found: {args.path}")
        if not target.is_file():
            raise ToolExecutionError(f"Not a file: {args.path}")

        size = target.stat().st_size
        if size > MAX_FILE_SIZE_BYTES:
            raise ToolExecutionError(f"File too large: {size} bytes (max {MAX_FILE_SIZE_BYTES})")

        lines = target.read_text(encoding="utf-8", errors="replace").split("\n")
        total_lines = len(lines)

        start = max(1, args.startLine)
        end = min(total_lines, start + args.maxLines - 1)
        logger.debug(f"read_file {args.path} lines {start}-{end} of {total_lines}")

        return {
            "content": "\n".join(lines[start - 1:end]),
            "startLine": start,
            "endLine": end,
            "totalLines": total_lines,
            "total": total_lines,
            "hasMore": end < total_lines,
        }
