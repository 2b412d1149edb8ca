"""
Selection of review units from the changed file list.
"""
import logging
import os
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def matches_glob(path: str, pattern: str) -> bool:
    """
    Match a path against an exclude glob.

    The pattern is tried against the full path and the basename. A leading
    `**/` also matches files at the repository root.
    """
    path = path.replace("\\", "/")
    candidates = [pattern]
    if pattern.startswith("**/"):
        candidates.append(pattern[3:])
    basename = os.path.basename(path)
    return any(fnmatchcase(path, p) or fnmatchcase(basename, p) for p in candidates)


def filter_files(
    files: Iterable[str],
    file_types: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
) -> List[str]:
    """Apply the extension whitelist, then the exclude globs. Order is preserved."""
    allowed = {_normalize_extension(ext) for ext in file_types or [] if ext.strip()}
    patterns = [p for p in exclude or [] if p]

    selected = []
    for path in files:
        if allowed and os.path.splitext(path)[1].lower() not in allowed:
            continue
        if any(matches_glob(path, p) for p in patterns):
            logger.debug(f"Excluding {path}")
            continue
        selected.append(path)
    return selected
