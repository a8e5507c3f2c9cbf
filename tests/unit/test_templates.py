"""Unit tests for the embedded markdown templates."""

import pytest

from cycles_mcp.templates import (
    NO_DEPENDENCIES_PLACEHOLDER,
    NO_TASKS_PLACEHOLDER,
    PR_CHANGES_PLACEHOLDER,
    PR_NOTES_PLACEHOLDER,
    TemplateType,
    close_fences,
    format_hours,
    load_template,
    pad_number,
    render_template,
    unfilled_placeholders,
)


class TestLoadTemplate:
    """Test cases for template lookup."""

    @pytest.mark.parametrize("template_type", list(TemplateType))
    def test_every_template_is_embedded(self, template_type):
        assert load_template(template_type).strip()

    def test_lookup_by_value(self):
        """Test templates can be looked up by their string value."""
        assert load_template("task-template.md") == load_template(TemplateType.TASK)

    def test_cycle_readme_anchors(self):
        """Test the cycle README carries every section the tools edit."""
        template = load_template(TemplateType.CYCLE_README)

        assert "## Tasks ({{TASK_COUNT}} total)" in template
        assert "## Task Dependencies" in template
        assert "## Progress Tracker" in template
        assert "### Session Log" in template
        assert "[░░░░░░░░░░░░░░░░░░░░] 0%" in template

    def test_placeholder_constants_match_templates(self):
        """Test the placeholder text replaced by the tools exists verbatim."""
        assert PR_CHANGES_PLACEHOLDER in load_template(TemplateType.PR)
        assert PR_NOTES_PLACEHOLDER in load_template(TemplateType.PR)
        assert NO_TASKS_PLACEHOLDER
        assert NO_DEPENDENCIES_PLACEHOLDER.startswith("_Task dependencies")


class TestRenderTemplate:
    """Test cases for placeholder substitution."""

    def test_replaces_every_occurrence(self):
        rendered = render_template("{{A}} and {{A}} then {{B}}", {"A": "x", "B": 2})

        assert rendered == "x and x then 2"

    def test_unknown_placeholders_stay(self):
        """Test placeholders without a value are left verbatim."""
        rendered = render_template("{{A}} {{MISSING}}", {"A": "x"})

        assert rendered == "x {{MISSING}}"
        assert unfilled_placeholders(rendered) == ["MISSING"]

    def test_task_template_fully_rendered(self):
        """Test the task template has no placeholders beyond the known set."""
        names = unfilled_placeholders(load_template(TemplateType.TASK))

        assert "DEPENDENCIES" in names
        assert "PARALLELIZATION_STATUS" in names


class TestHelpers:
    """Test cases for small formatting helpers."""

    def test_pad_number(self):
        assert pad_number(1, 2) == "01"
        assert pad_number(12, 3) == "012"
        assert pad_number(123, 2) == "123"

    def test_format_hours(self):
        assert format_hours(2.0) == "2"
        assert format_hours(0.5) == "0.5"
        assert format_hours(10) == "10"

    def test_close_fences(self):
        """Test a dangling code fence is closed and balanced text is untouched."""
        assert close_fences("Run:\n```bash\nmake") == "Run:\n```bash\nmake\n```"
        assert close_fences("```\ncode\n```") == "```\ncode\n```"
        assert close_fences("plain text") == "plain text"
