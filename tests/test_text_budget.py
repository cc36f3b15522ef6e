"""
Tests for word budgeting: quote stripping, head/tail truncation and the
two-sided budget allocation.
"""

import pytest
from pydantic import ValidationError

from contrib_digest.models import Budget
from contrib_digest.text_budget import (
    allocate_budget,
    apply_budget,
    strip_quoted_and_budget,
    strip_quoted_blocks,
    word_count,
)


def numbered(prefix: str, n: int) -> str:
    return " ".join(f"{prefix}{i}" for i in range(1, n + 1))


# ═══════════════════════════════════════════════════════════════════════
#  Quote Stripping
# ═══════════════════════════════════════════════════════════════════════


class TestStripQuotedBlocks:
    """Test removal of quoted spans between marker lines."""

    def test_no_markers_keeps_every_line(self):
        assert strip_quoted_blocks("one\ntwo", "```") == "one\ntwo\n"

    def test_paired_markers_remove_only_the_span(self):
        text = "before\n```\ncode line\n```\nafter"
        assert strip_quoted_blocks(text, "```") == "before\nafter\n"

    def test_two_pairs(self):
        text = "a\n```py\nx = 1\n```\nb\n```\ny\n```\nc"
        assert strip_quoted_blocks(text, "```") == "a\nb\nc\n"

    def test_unmatched_marker_drops_the_rest(self):
        text = "keep\n```\nlost\nalso lost"
        assert strip_quoted_blocks(text, "```") == "keep\n"

    def test_marker_inside_a_line_still_toggles(self):
        text = "see ```this``` inline\nhidden\n```\nshown"
        # the first line toggles on, the third line toggles off
        assert strip_quoted_blocks(text, "```") == "shown\n"

    def test_empty_text(self):
        assert strip_quoted_blocks("", "```") == ""

    def test_only_newline_separates_lines(self):
        assert strip_quoted_blocks("a\x0cb c\nd", "```") == "a\x0cb c\nd\n"

    def test_form_feed_does_not_isolate_a_marker(self):
        # one line holding both the text and the marker
        assert strip_quoted_blocks("x\x0c```\ny", "```") == ""

    def test_crlf_line_endings(self):
        assert strip_quoted_blocks("a\r\n```\r\nb\r\n```\r\nc\r\n", "```") == "a\nc\n"


# ═══════════════════════════════════════════════════════════════════════
#  Strip And Budget
# ═══════════════════════════════════════════════════════════════════════


class TestStripQuotedAndBudget:
    """Test stripping followed by the head/tail word squeeze."""

    def test_short_input_returned_verbatim_after_stripping(self):
        text = "Line one here\n```\nsecret\n```\nline two"
        assert strip_quoted_and_budget(text, "```", 500, 0.6) == "Line one here\nline two\n"

    def test_exactly_at_budget_is_not_truncated(self):
        text = numbered("w", 10)
        assert strip_quoted_and_budget(text, "```", 10, 0.6) == text + "\n"

    def test_thousand_words_keeps_first_300_and_last_200(self):
        words = [f"w{i}" for i in range(1, 1001)]
        result = strip_quoted_and_budget(" ".join(words), "```", 500, 0.6)
        assert result.split() == words[:300] + words[800:]
        assert result == " ".join(words[:300] + words[800:])

    def test_output_never_exceeds_budget_when_truncated(self):
        text = "\n".join(numbered(f"l{n}_", 7) for n in range(50))
        result = strip_quoted_and_budget(text, "```", 40, 0.25)
        assert word_count(result) == 40

    def test_quoted_words_do_not_count_toward_budget(self):
        text = numbered("w", 5) + "\n```\n" + numbered("code", 100) + "\n```"
        result = strip_quoted_and_budget(text, "```", 10, 0.6)
        assert result == numbered("w", 5) + "\n"

    def test_split_ratio_one_keeps_only_the_head(self):
        result = strip_quoted_and_budget(numbered("w", 20), "```", 5, 1.0)
        assert result == numbered("w", 5)

    def test_split_ratio_zero_keeps_only_the_tail(self):
        result = strip_quoted_and_budget(numbered("w", 20), "```", 5, 0.0)
        assert result == "w16 w17 w18 w19 w20"

    def test_form_feed_kept_inside_the_line(self):
        assert strip_quoted_and_budget("a\x0cb", "```", 500, 0.6) == "a\x0cb\n"

    def test_invalid_budget_rejected(self):
        with pytest.raises(ValidationError):
            strip_quoted_and_budget("text", "```", 0, 0.5)


class TestApplyBudget:
    """Test Budget head/tail counts and apply_budget."""

    def test_head_and_tail_counts(self):
        budget = Budget(max_units=10, head_fraction=0.6)
        assert budget.head_count == 6
        assert budget.tail_count == 4

    def test_within_budget_unchanged(self):
        words = ["a", "b"]
        assert apply_budget(words, Budget(max_units=5, head_fraction=0.5)) == words

    def test_middle_dropped(self):
        words = list("abcdefghij")
        assert apply_budget(words, Budget(max_units=4, head_fraction=0.5)) == ["a", "b", "i", "j"]

    def test_head_fraction_out_of_range(self):
        with pytest.raises(ValidationError):
            Budget(max_units=5, head_fraction=1.5)


# ═══════════════════════════════════════════════════════════════════════
#  Budget Allocation
# ═══════════════════════════════════════════════════════════════════════


class TestAllocateBudget:
    """Test splitting a combined word cap between two texts."""

    def test_under_cap_returns_both_unchanged(self):
        a, b = "a  b\nc", "d e"
        assert allocate_budget(a, b, 10, 0.6) == (a, b)

    def test_long_a_is_cut_and_b_left_alone(self):
        a, b = allocate_budget(numbered("w", 100), numbered("x", 100), 120, 0.6)
        assert a == numbered("w", 72)
        assert b == numbered("x", 100)

    def test_short_a_kept_and_b_cut_to_remainder(self):
        a, b = allocate_budget(numbered("w", 10), numbered("x", 200), 120, 0.6)
        assert a == numbered("w", 10)
        assert b == numbered("x", 110)

    def test_a_exactly_at_share_is_kept(self):
        a, b = allocate_budget(numbered("w", 72), numbered("x", 100), 120, 0.6)
        assert a == numbered("w", 72)
        assert word_count(b) == 48

    def test_empty_a(self):
        a, b = allocate_budget("", numbered("x", 50), 20, 0.6)
        assert a == ""
        assert b == numbered("x", 20)
