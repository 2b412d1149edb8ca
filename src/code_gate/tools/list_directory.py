"""list_directory tool: recursive, paged directory listing."""
import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .base import ReviewTool, ToolExecutionError

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 1
DEFAULT_OFFSET = 0
DEFAULT_LIMIT = 50

EXCLUDED_NAMES = frozenset({
    "node_modules",
    ".git",
    ".idea",
    ".vscode",
    "dist",
    "build",
    "coverage",
    "__pycache__",
    ".DS_Store",
    "Thumbs.db",
})


class ListDirectoryArgs(BaseModel):
    path: str = Field(description="Directory path relative to the project root")
    depth: int = Field(default=DEFAULT_DEPTH, ge=1, description=f"Recursion depth, default {DEFAULT_DEPTH} (direct children only)")
    offset: int = Field(default=DEFAULT_OFFSET, ge=0, description=f"Skip the first N entries, default {DEFAULT_OFFSET}")
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, description=f"Maximum entries to return, default {DEFAULT_LIMIT}")


class ListDirectoryTool(ReviewTool):
    name = "list_directory"
    description = "List directory contents to understand the project layout. Can recurse into subdirectories."
    args_model = ListDirectoryArgs

    def run(self, args: ListDirectoryArgs) -> Dict[str, Any]:
        target = self.resolve_path(args.path)
        if not target.exists():
            raise ToolExecutionError(f"Directory not found: {args.path}")
        if not target.is_dir():
            raise ToolExecutionError(f"Not a directory: {args.path}")

        entries = _collect_entries(target, target, args.depth)
        entries.sort(key=lambda e: (e["type"] != "dir", e["name"]))
        total = len(entries)

        logger.debug(f"list_directory {args.path} depth={args.depth}: {total} entries")
        return {
            "entries": entries[args.offset:args.offset + args.limit],
            "total": total,
            "hasMore": args.offset + args.limit < total,
        }


def should_exclude(name: str) -> bool:
    return name.startswith(".") or name in EXCLUDED_NAMES


def _collect_entries(directory: Path, base: Path, max_depth: int, depth: int = 0) -> List[Dict[str, Any]]:
    if depth >= max_depth:
        return []

    entries: List[Dict[str, Any]] = []
    try:
        children = list(directory.iterdir())
    except OSError:
        return entries

    for child in children:
        if should_exclude(child.name):
            continue
        rel = child.relative_to(base).as_posix()
        try:
            if child.is_dir():
                entries.append({"name": rel, "type": "dir"})
                entries.extend(_collect_entries(child, base, max_depth, depth + 1))
            elif child.is_file():
                entries.append({"name": rel, "type": "file", "size": child.stat().st_size})
        except OSError:
            # unreadable entries are skipped
            continue
    return entries
