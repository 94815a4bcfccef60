"""
Tests for identifier canonicalization.
"""

import pytest
from taskids.normalize import canonicalize, generated_id, with_suffix


class TestCanonicalize:
    """Test the canonical identifier transform."""

    @pytest.mark.parametrize("raw", [None, ""])
    def test_absent_input_is_none(self, raw):
        assert canonicalize(raw) is None

    def test_trims_and_uppercases(self):
        assert canonicalize("  os-12 ") == "OS-12"

    def test_whitespace_runs_become_one_dash(self):
        assert canonicalize("x \t\n y") == "X-Y"

    def test_non_ascii_letters_are_removed(self):
        """'Ç' is stripped, not transliterated."""
        assert canonicalize("peça 12") == "PEA-12"

    def test_dash_runs_collapse(self):
        assert canonicalize("a--b---c") == "A-B-C"

    def test_stripping_can_create_dash_runs(self):
        assert canonicalize("a-!-b") == "A-B"
        assert canonicalize("a - b") == "A-B"

    def test_underscore_and_digits_survive(self):
        assert canonicalize("job_42") == "JOB_42"

    def test_numbers_use_string_form(self):
        assert canonicalize(1234) == "1234"

    def test_nothing_left_is_none(self):
        assert canonicalize("!!!") is None
        assert canonicalize("   ") is None

    @pytest.mark.parametrize("raw", [
        "X Y",
        "peça 12",
        " -a- ",
        "a-!-b",
        "ß straße",
        "já  --  está",
        "__--__",
        "tab\tsep",
        "OS-100",
        "$ 10 - 20 $",
    ])
    def test_idempotent(self, raw):
        once = canonicalize(raw)
        assert canonicalize(once) == once

    def test_deterministic(self):
        assert canonicalize("Ordem 7") == canonicalize("Ordem 7")


class TestGeneratedId:
    """Test generated fallback identifiers."""

    def test_uses_first_six_key_characters(self):
        assert generated_id("abc123xyz") == "TASK-ABC123"

    def test_short_keys(self):
        assert generated_id("ab") == "TASK-AB"

    def test_generated_value_is_canonical(self):
        value = generated_id("-Nx_a9Zqq")
        assert canonicalize(value) == value

    def test_with_suffix(self):
        assert with_suffix("X-Y", 2) == "X-Y-2"
