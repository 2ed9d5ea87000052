"""Unit tests for the similarity and normalization helpers."""

import pytest

from cascade_edit.text_utils import (
    collapse_internal_whitespace,
    decode_escapes,
    has_escape_sequences,
    leading_whitespace,
    levenshtein,
    similarity,
    strip_leading_indent,
    trim_block,
    trim_lines,
    trimmed_line_list,
)


@pytest.mark.unit
class TestLevenshtein:

    def test_empty_strings(self):
        assert levenshtein("", "") == 0

    def test_one_side_empty(self):
        assert levenshtein("", "abc") == 3
        assert levenshtein("abcd", "") == 4

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
            ("abc", "abd", 1),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("intention", "execution") == levenshtein("execution", "intention")

    def test_similarity_bounds(self):
        assert similarity("abc", "abc") == 1.0
        assert similarity("", "") == 1.0
        assert similarity("abc", "xyz") == 0.0

    def test_similarity_ratio(self):
        # one substitution over four characters
        assert similarity("abcd", "abce") == pytest.approx(0.75)


@pytest.mark.unit
class TestNormalizers:

    def test_trimmed_line_list_drops_blank_edges(self):
        assert trimmed_line_list("\n  a  \n\n b \n\n") == ["a", "", "b"]

    def test_trim_lines_rejoins(self):
        assert trim_lines("  x\n\ty  \n") == "x\ny"

    def test_trimmed_line_list_all_blank(self):
        assert trimmed_line_list("\n   \n\t\n") == []

    def test_collapse_internal_whitespace(self):
        assert collapse_internal_whitespace("a  \t b   c") == "a b c"

    def test_collapse_keeps_single_spaces(self):
        assert collapse_internal_whitespace("if (x && y)") == "if (x && y)"

    def test_strip_leading_indent_keeps_trailing(self):
        assert strip_leading_indent("    value = 1  ") == "value = 1  "

    def test_trim_block_is_whole_block(self):
        assert trim_block("\n\n  a\n  b  \n\n") == "a\n  b"

    def test_leading_whitespace(self):
        assert leading_whitespace("\t  x = 1") == "\t  "
        assert leading_whitespace("x") == ""


@pytest.mark.unit
class TestEscapes:

    def test_detects_literal_escapes(self):
        assert has_escape_sequences("line1\\nline2") is True
        assert has_escape_sequences("plain text") is False

    def test_real_newline_is_not_an_escape(self):
        assert has_escape_sequences("line1\nline2") is False

    def test_decode_common_escapes(self):
        assert decode_escapes("a\\nb\\tc\\rd") == "a\nb\tc\rd"

    def test_decode_quotes(self):
        assert decode_escapes('say \\"hi\\" and \\\'bye\\\'') == "say \"hi\" and 'bye'"

    def test_escaped_backslash_is_decoded_once(self):
        # "\\n" written out is a backslash followed by "n", not a newline
        assert decode_escapes("a\\\\nb") == "a\\nb"

    def test_unknown_escape_untouched(self):
        assert decode_escapes("path\\x") == "path\\x"
