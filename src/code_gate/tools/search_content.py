"""search_content tool: regex search across the repository."""
import os
import re
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, Field

from .base import ReviewTool, ToolExecutionError
from .list_directory import should_exclude

logger = logging.getLogger(__name__)

DEFAULT_OFFSET = 0
DEFAULT_LIMIT = 20
MAX_CONTENT_LENGTH = 200
GIT_LS_FILES_TIMEOUT_SECONDS = 30


class SearchContentArgs(BaseModel):
    pattern: str = Field(description="Search pattern (Python regular expression syntax)")
    path: str = Field(default=".", description="Directory to search, relative to the project root")
    offset: int = Field(default=DEFAULT_OFFSET, ge=0, description=f"Skip the first N matches, default {DEFAULT_OFFSET}")
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, description=f"Maximum matches to return, default {DEFAULT_LIMIT}")


class SearchContentTool(ReviewTool):
    name = "search_content"
    description = (
        "Search file contents in the project with a Python regular expression (re module syntax). "
        "Use it to find function definitions, call sites and class declarations."
    )
    args_model = SearchContentArgs

    def run(self, args: SearchContentArgs) -> Dict[str, Any]:
        target = self.resolve_path(args.path)
        if not target.exists():
            raise ToolExecutionError(f"Path not found: {args.path}")
        try:
            regex = re.compile(args.pattern)
        except re.error as e:
            raise ToolExecutionError(f"Invalid pattern '{args.pattern}': {e}")

        if (self.root / ".git").exists():
            files = self._git_files(target)
        else:
            files = [target] if target.is_file() else _walk_files(target)

        lines = list(self._scan(regex, files))
        total = len(lines)
        matches = lines[args.offset:args.offset + args.limit]

        logger.debug(f"search_content '{args.pattern}' in {args.path}: {total} matches")
        return {
            "matches": matches,
            "total": total,
            "hasMore": args.offset + args.limit < total,
        }

    def _git_files(self, target: Path) -> List[Path]:
        # Only the file list comes from git, so .gitignore is honoured and the
        # pattern never reaches the git command line.
        rel = self.relative(target) or "."
        try:
            result = subprocess.run(
                ["git", "ls-files", "-z", "--cached", "--others", "--exclude-standard", "--", rel],
                cwd=self.root,
                capture_output=True,
                text=True,
                timeout=GIT_LS_FILES_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            raise ToolExecutionError(f"Listing files timed out after {GIT_LS_FILES_TIMEOUT_SECONDS}s")
        if result.returncode != 0:
            raise ToolExecutionError(result.stderr.strip() or "git ls-files failed")
        names = sorted({name for name in result.stdout.split("\0") if name and not _is_hidden(name)})
        return [self.root / name for name in names]

    def _scan(self, regex: re.Pattern, files: Iterable[Path]) -> Iterator[Dict[str, Any]]:
        for file_path in files:
            text = _read_text(file_path)
            if text is None:
                continue
            rel = self.relative(file_path)
            for number, line in enumerate(text.split("\n"), start=1):
                if regex.search(line):
                    yield {"file": rel, "line": number, "content": line[:MAX_CONTENT_LENGTH]}


def _walk_files(directory: Path) -> Iterator[Path]:
    for current, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not should_exclude(d))
        for name in sorted(files):
            if should_exclude(name):
                continue
            yield Path(current) / name


def _is_hidden(rel_path: str) -> bool:
    return any(should_exclude(part) for part in rel_path.split("/"))


def _read_text(path: Path) -> Optional[str]:
    try:
        if not path.is_file():
            return None
        data = path.read_bytes()
    except OSError:
        return None
    if b"\0" in data[:8192]:
        return None
    return data.decode("utf-8", errors="replace")
