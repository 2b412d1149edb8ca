"""
Unit tests for GitClient with subprocess mocked out.
"""
import os
import subprocess
import time
from unittest.mock import MagicMock, patch

from code_gate.services.git_client import GitClient


def completed(stdout="", returncode=0, stderr=""):
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


def git_args(run):
    return [c.args[0][1:] for c in run.call_args_list]


class TestStagedMode:

    def test_changed_files(self):
        with patch("code_gate.services.git_client.subprocess.run",
                   return_value=completed("a.py\n\n b.py \n")) as run:
            assert GitClient(cwd="/repo").changed_files() == ["a.py", "b.py"]
        assert git_args(run) == [["diff", "--staged", "--name-only"]]
        assert run.call_args.kwargs["cwd"] == "/repo"

    def test_file_diff(self):
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed("diff")) as run:
            assert GitClient(cwd="/repo").file_diff("a.py") == "diff"
        assert git_args(run) == [["diff", "--staged", "--", "a.py"]]

    def test_failed_command_returns_empty(self):
        with patch("code_gate.services.git_client.subprocess.run",
                   return_value=completed("partial", returncode=128, stderr="fatal")):
            assert GitClient(cwd="/repo").full_diff() == ""

    def test_timeout_returns_empty(self):
        with patch("code_gate.services.git_client.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(cmd="git", timeout=60)):
            assert GitClient(cwd="/repo").changed_files() == []

    def test_missing_git_returns_empty(self):
        with patch("code_gate.services.git_client.subprocess.run", side_effect=FileNotFoundError("git")):
            assert GitClient(cwd="/repo").branch_name() == ""

    def test_root_falls_back_to_cwd(self):
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed(returncode=128)):
            assert GitClient(cwd="/somewhere").root() == "/somewhere"

    def test_recent_commit_editmsg_used(self, tmp_path):
        git_dir = tmp_path / ".git"
        git_dir.mkdir()
        (git_dir / "COMMIT_EDITMSG").write_text("Fix parser crash\n\nLonger body\n")
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed(".git\n")):
            assert GitClient(cwd=str(tmp_path)).commit_message() == "Fix parser crash"

    def test_stale_commit_editmsg_ignored(self, tmp_path):
        git_dir = tmp_path / ".git"
        git_dir.mkdir()
        msg = git_dir / "COMMIT_EDITMSG"
        msg.write_text("Old commit\n")
        old = time.time() - 3600
        os.utime(msg, (old, old))
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed(".git\n")):
            assert GitClient(cwd=str(tmp_path)).commit_message() == ""


class TestCommitMode:

    def test_changed_files_from_commit(self):
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed("x.py\n")) as run:
            assert GitClient(cwd="/repo", commit_hash="abc123").changed_files() == ["x.py"]
        assert git_args(run) == [["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", "abc123"]]

    def test_file_diff_from_commit(self):
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed("d")) as run:
            GitClient(cwd="/repo", commit_hash="abc123").file_diff("x.py")
        assert git_args(run) == [["show", "--format=", "abc123", "--", "x.py"]]

    def test_commit_message_is_subject(self):
        with patch("code_gate.services.git_client.subprocess.run", return_value=completed("Add feature\n")) as run:
            assert GitClient(cwd="/repo", commit_hash="abc123").commit_message() == "Add feature"
        assert git_args(run) == [["log", "-1", "--format=%s", "abc123"]]
