"""Unit tests for the git and GitHub CLI wrapper."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from cycles_mcp.git import GitClient, GitCommandError


def _completed(stdout=""):
    return MagicMock(stdout=stdout, stderr="", returncode=0)


class TestGitClient:
    """Test cases for GitClient command construction."""

    def test_stage_and_commit(self, tmp_path):
        """Test commands are passed as argument lists in the workspace root."""
        with patch("cycles_mcp.git.subprocess.run", return_value=_completed()) as mock_run:
            client = GitClient(tmp_path)
            client.stage_all()
            client.commit("feat(cycle-01): add \"quoted\" thing")

        first, second = mock_run.call_args_list
        assert first[0][0] == ["git", "add", "."]
        assert second[0][0] == ["git", "commit", "-m", "feat(cycle-01): add \"quoted\" thing"]
        assert second[1]["cwd"] == tmp_path
        assert second[1]["check"] is True

    def test_current_branch_strips_output(self, tmp_path):
        with patch("cycles_mcp.git.subprocess.run", return_value=_completed("feat/x\n")):
            assert GitClient(tmp_path).current_branch() == "feat/x"

    def test_push(self, tmp_path):
        with patch("cycles_mcp.git.subprocess.run", return_value=_completed()) as mock_run:
            GitClient(tmp_path).push("feat/x")

        assert mock_run.call_args[0][0] == ["git", "push", "-u", "origin", "feat/x"]

    def test_create_pull_request(self, tmp_path):
        """Test the PR is created with title, body and base."""
        url = "https://github.com/acme/app/pull/7\n"
        with patch("cycles_mcp.git.subprocess.run", return_value=_completed(url)) as mock_run:
            result = GitClient(tmp_path).create_pull_request("Title", "Body")

        assert result == "https://github.com/acme/app/pull/7"
        assert mock_run.call_args[0][0] == [
            "gh", "pr", "create", "--title", "Title", "--body", "Body", "--base", "main",
        ]


class TestGitErrors:
    """Test cases for failure reporting."""

    def test_nonzero_exit(self, tmp_path):
        """Test a failing command raises with its stderr."""
        error = subprocess.CalledProcessError(1, ["git", "commit"], output="", stderr="nothing to commit\n")
        with patch("cycles_mcp.git.subprocess.run", side_effect=error):
            with pytest.raises(GitCommandError) as exc_info:
                GitClient(tmp_path).commit("msg")

        assert "nothing to commit" in str(exc_info.value)
        assert exc_info.value.command[:2] == ["git", "commit"]

    def test_missing_executable(self, tmp_path):
        with patch("cycles_mcp.git.subprocess.run", side_effect=FileNotFoundError("gh")):
            with pytest.raises(GitCommandError, match="gh executable not found"):
                GitClient(tmp_path).create_pull_request("T", "B")

    def test_is_runtime_error(self):
        assert issubclass(GitCommandError, RuntimeError)
