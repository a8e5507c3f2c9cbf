"""Unit tests for cycle and task number allocation."""

from cycles_mcp.numbering import existing_numbers, next_number, slugify


class TestNextNumber:
    """Test cases for next_number."""

    def test_first_cycle(self):
        assert next_number([], 2) == "01"

    def test_first_task(self):
        assert next_number([], 3) == "001"

    def test_above_highest_not_gap_filling(self):
        """Test numbering continues past the maximum, leaving gaps alone."""
        names = ["001-a.md", "004-d.md", "002-b.md"]

        assert next_number(names, 3) == "005"

    def test_ignores_other_names(self):
        """Test entries without a numeric prefix of the right width are ignored."""
        names = ["README.md", "01-first", "1-short", "notes-02"]

        assert existing_numbers(names, 2) == [1]
        assert next_number(names, 2) == "02"


class TestSlugify:
    """Test cases for slugify."""

    def test_basic(self):
        assert slugify("Foundation Setup") == "foundation-setup"

    def test_strips_punctuation(self):
        assert slugify("Add API: v2 (beta)!") == "add-api-v2-beta"

    def test_collapses_whitespace(self):
        assert slugify("  Many   spaces\there ") == "many-spaces-here"
