"""
Thin wrapper around the git CLI for collecting review input.

Two sources are supported: the staged index (pre-commit) and a single
commit. Failed git invocations yield empty output, never an exception.
"""
import logging
import os
import subprocess
import time
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 60
# COMMIT_EDITMSG older than this belongs to a previous commit
COMMIT_MSG_MAX_AGE_SECONDS = 60


class GitClient:

    def __init__(self, cwd: Optional[str] = None, commit_hash: Optional[str] = None):
        self.cwd = cwd or os.getcwd()
        self.commit_hash = commit_hash

    @property
    def is_commit_mode(self) -> bool:
        return bool(self.commit_hash)

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"git {' '.join(args)} failed: {e}")
            return ""

        if result.returncode != 0:
            logger.debug(f"git {' '.join(args)} exited with {result.returncode}: {result.stderr.strip()}")
            return ""
        return result.stdout or ""

    def changed_files(self) -> List[str]:
        if self.is_commit_mode:
            out = self._run("diff-tree", "--no-commit-id", "--name-only", "-r", "--root", self.commit_hash)
        else:
            out = self._run("diff", "--staged", "--name-only")
        return [line.strip() for line in out.split("\n") if line.strip()]

    def full_diff(self) -> str:
        if self.is_commit_mode:
            return self._run("show", "--format=", self.commit_hash)
        return self._run("diff", "--staged")

    def file_diff(self, path: str) -> str:
        if self.is_commit_mode:
            return self._run("show", "--format=", self.commit_hash, "--", path)
        return self._run("diff", "--staged", "--", path)

    def branch_name(self) -> str:
        return self._run("rev-parse", "--abbrev-ref", "HEAD").strip()

    def diff_stats(self) -> str:
        if self.is_commit_mode:
            out = self._run("show", "--shortstat", "--format=", self.commit_hash)
        else:
            out = self._run("diff", "--staged", "--shortstat")
        return out.strip()

    def commit_message(self) -> str:
        """Subject line of the commit under review, or "" when unknown."""
        if self.is_commit_mode:
            return self._run("log", "-1", "--format=%s", self.commit_hash).strip()

        git_dir = self._run("rev-parse", "--git-dir").strip()
        if not git_dir:
            return ""
        msg_path = Path(self.cwd) / git_dir / "COMMIT_EDITMSG"
        try:
            if time.time() - msg_path.stat().st_mtime >= COMMIT_MSG_MAX_AGE_SECONDS:
                return ""
            lines = msg_path.read_text(encoding="utf-8", errors="replace").strip().split("\n")
        except OSError:
            return ""
        return lines[0].strip()

    def root(self) -> str:
        return self._run("rev-parse", "--show-toplevel").strip() or self.cwd
