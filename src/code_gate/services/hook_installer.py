"""
Pre-commit hook installation.

`install_hook` writes (or extends) a pre-commit script that runs
`code-gate hook` and points git's core.hooksPath at its directory.
"""
import logging
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

HOOK_COMMAND = "code-gate hook"
SHEBANG = "#!/usr/bin/env sh"
GIT_TIMEOUT_SECONDS = 30


class HookMethod(str, Enum):
    GIT = "git"
    HUSKY = "husky"
    NONE = "none"


HOOK_DIRS = {
    HookMethod.GIT: ".githooks",
    HookMethod.HUSKY: ".husky",
}


class HookInstallError(Exception):
    """Raised when the hook cannot be installed."""


def is_git_repo(cwd: Union[str, Path]) -> bool:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def ensure_pre_commit(path: Path, command: str = HOOK_COMMAND) -> bool:
    """
    Make sure the pre-commit script at `path` runs `command`.

    An existing script is extended, never replaced. Returns True when the
    file was written.
    """
    if path.exists():
        content = path.read_text(encoding="utf-8")
        if command in content:
            return False
        path.write_text(content.rstrip() + "\n" + command + "\n", encoding="utf-8")
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{SHEBANG}\n{command}\n", encoding="utf-8")
    os.chmod(path, 0o755)
    return True


def install_hook(cwd: Union[str, Path], method: HookMethod) -> Path:
    """Install the pre-commit hook under `cwd` and return the script path."""
    if method is HookMethod.NONE:
        raise ValueError("No hook method selected")
    if not is_git_repo(cwd):
        raise HookInstallError(f"{cwd} is not inside a git work tree")

    hooks_dir = HOOK_DIRS[method]
    pre_commit = Path(cwd) / hooks_dir / "pre-commit"
    if ensure_pre_commit(pre_commit):
        logger.info(f"Wrote {pre_commit}")

    result = subprocess.run(
        ["git", "config", "core.hooksPath", hooks_dir],
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT_SECONDS,
    )
    if result.returncode != 0:
        raise HookInstallError(result.stderr.strip() or "git config core.hooksPath failed")
    logger.info(f"core.hooksPath set to {hooks_dir}")
    return pre_commit
