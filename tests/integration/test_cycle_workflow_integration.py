"""
Integration tests for the cycle workflow through the MCP server tools.

These call the tool functions registered in main.py against a temporary
repository, with git and the GitHub CLI replaced at the subprocess layer.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import main


@pytest.fixture
def project(tmp_path, monkeypatch):
    """An empty repository with no root override in the environment."""
    monkeypatch.delenv("CYCLES_WORKSPACE_ROOT", raising=False)
    return tmp_path


def _git_stub(branch="feat/cycle-01-task-001-setup", pr_url="https://github.com/acme/app/pull/3"):
    """Fake subprocess.run answering the git and gh commands the tools issue."""
    calls = []

    def run(command, **kwargs):
        calls.append(command)
        if command[:2] == ["git", "rev-parse"]:
            return MagicMock(stdout=f"{branch}\n", stderr="")
        if command[:3] == ["gh", "pr", "create"]:
            return MagicMock(stdout=f"{pr_url}\n", stderr="")
        return MagicMock(stdout="", stderr="")

    run.calls = calls
    return run


class TestCycleWorkflowIntegration:
    """End-to-end tests for a cycle from initialization to completion."""

    def test_complete_cycle(self, project):
        """Test init, cycle, three tasks, a PR and a session log."""
        root = str(project)

        assert main.init_workflow(
            sizing_mode="simple",
            cycle_duration_unit="weeks",
            cycle_duration_value=2,
            hours_per_cycle=20,
            simple_tier="mid",
            project_name="Demo",
            root=root,
        ).startswith("✅")
        assert main.create_cycle("Foundation", root=root).startswith("✅ Cycle 01")

        main.add_task("01", "Set up repo", root=root)
        main.add_task("01", "Add API", dependencies="Task 001", root=root)
        result = main.add_task("01", "Add UI", dependencies="Task 001", root=root)
        assert "- Group 2 (After Group 1): 002, 003" in result

        readme_path = project / "docs" / "cycles" / "01-foundation" / "README.md"
        readme = readme_path.read_text(encoding="utf-8")
        assert "## Tasks (3 total)" in readme
        assert "**Duration**: 2 weeks" in readme
        assert "[░░░░░░░░░░░░░░░░░░░░] 0%" in readme

        stub = _git_stub()
        with patch("cycles_mcp.git.subprocess.run", side_effect=stub):
            assert main.commit_task("01", "set up repo", root=root).startswith("✅")
            assert main.push_branch(root=root).startswith("✅")
            pr = main.create_pr("01", "001", "Set up repo", ["Initial layout"], ["Repo builds"], root=root)

        assert pr.startswith("✅ Pull Request created successfully!")
        assert ["git", "add", "."] in stub.calls
        assert ["git", "commit", "-m", "feat(cycle-01): set up repo"] in stub.calls
        assert ["git", "push", "-u", "origin", "feat/cycle-01-task-001-setup"] in stub.calls

        readme = readme_path.read_text(encoding="utf-8")
        assert "- [x] **[001](./001-set-up-repo.md)**" in readme
        assert "**Completed**: 1/3 tasks (33%)" in readme
        assert "[███████░░░░░░░░░░░░░] 33%" in readme

        progress = main.update_progress("01", "002", "2026-02-01", "3h", "API done", root=root)
        assert "**Completed**: 2/3 tasks (67%)" in progress
        assert "| 2026-02-01 | 3h | 002 | API done |" in readme_path.read_text(encoding="utf-8")

        status = main.cycle_status("01", root=root)
        assert "Ready to start: 003" in status

    def test_pr_fallback_without_gh(self, project):
        """Test a missing gh executable yields manual instructions."""
        root = str(project)
        main.init_workflow("simple", "weeks", 1, 8, simple_tier="junior", root=root)
        main.create_cycle("Start", root=root)
        main.add_task("01", "First", root=root)

        def run(command, **kwargs):
            if command[0] == "gh":
                raise FileNotFoundError("gh")
            return MagicMock(stdout="feat/x\n", stderr="")

        with patch("cycles_mcp.git.subprocess.run", side_effect=run):
            result = main.create_pr("01", "001", "First", ["Did it"], ["Works"], root=root)

        assert result.startswith("⚠️ GitHub CLI not available.")
        assert "- [ ] **[001]" in (project / "docs" / "cycles" / "01-start" / "README.md").read_text()

    def test_commit_failure_reported(self, project):
        root = str(project)
        main.init_workflow("simple", "weeks", 1, 8, simple_tier="junior", root=root)
        error = subprocess.CalledProcessError(1, ["git", "commit"], output="", stderr="nothing to commit")

        with patch("cycles_mcp.git.subprocess.run", side_effect=[MagicMock(stdout=""), error]):
            result = main.commit_task("01", "noop", root=root)

        assert result.startswith("❌ Commit failed:")
        assert "nothing to commit" in result


class TestRootResolution:
    """Tests for locating the workspace root."""

    def test_explicit_root_must_exist(self, project):
        """Test a missing root is reported as a text result."""
        result = main.create_cycle("X", root=str(project / "missing"))

        assert result.startswith("❌ Provided root")
        assert "does not exist" in result

    def test_environment_root(self, project, monkeypatch):
        monkeypatch.setenv("CYCLES_WORKSPACE_ROOT", str(project))

        assert main._resolve_root(None) == project.resolve()

    def test_detects_config_in_ancestor(self, project, monkeypatch):
        """Test the nearest ancestor holding the config is used."""
        main.init_workflow("simple", "weeks", 1, 8, simple_tier="mid", root=str(project))
        nested = project / "src" / "pkg"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert main._resolve_root(None) == project.resolve()
        assert main.create_cycle("Detected").startswith("✅ Cycle 01")

    def test_init_falls_back_to_cwd(self, project, monkeypatch):
        monkeypatch.chdir(project)

        assert main._resolve_root(None, initializing=True) == project.resolve()

    def test_unresolvable(self, project, monkeypatch):
        """Test tools report an unresolvable root instead of raising."""
        monkeypatch.chdir(project)
        with patch.object(main, "_locate_workspace_root", return_value=None):
            with pytest.raises(ValueError, match="Unable to determine project root"):
                main._resolve_root(None)

            result = main.cycle_status("01")

        assert result.startswith("❌ Unable to determine project root")


class TestResources:
    """Tests for the resources exposed by the server."""

    def test_templates(self):
        assert main.resource_task_template().startswith("# Task {{TASK_NUMBER}}: {{TASK_TITLE}}")
        assert "## Progress Tracker" in main.resource_cycle_readme_template()
        assert "## Changes" in main.resource_pr_template()
        assert main.resource_workflow_template().strip()
        assert "## Cycles" in main.resource_cycles_template()

    def test_cycles_listing(self, project, monkeypatch):
        root = str(project)
        main.init_workflow("simple", "weeks", 1, 8, simple_tier="mid", root=root)
        main.create_cycle("Foundation", root=root)
        main.add_task("01", "First", root=root)
        monkeypatch.setenv("CYCLES_WORKSPACE_ROOT", root)

        listing = main.resource_cycles()

        assert "- 01-foundation: 1 task(s)" in listing
        assert "Progress: 0/1 tasks (0%)" in listing

    def test_cycles_listing_without_root(self, project, monkeypatch):
        monkeypatch.chdir(project)
        with patch.object(main, "_locate_workspace_root", return_value=None):
            assert main.resource_cycles().startswith("No project root detected.")
