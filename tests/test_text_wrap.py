"""Tests for text_wrap.py: greedy wrapping against an injected measure."""

import pytest

from truthlock.text_wrap import font_measure, wrap


def char_count(s):
    """Monospace measure: one unit per character."""
    return len(s)


LONG_BULLET = (
    "Architected and delivered a multi-region event streaming platform that consolidated "
    "fourteen legacy batch pipelines into a single real-time backbone, reducing data latency "
    "from hours to seconds, cutting infrastructure spend by thirty-two percent, enabling product "
    "teams to launch personalization features, fraud detection models and live operational "
    "dashboards, while maintaining strict compliance controls, comprehensive audit logging and "
    "five nines of availability across three cloud regions for the company"
)


class TestGreedyWrap:
    def test_fits_on_one_line(self):
        assert wrap("hello world", char_count, 20) == ["hello world"]

    def test_breaks_at_word_boundary(self):
        assert wrap("aaa bbb ccc", char_count, 7) == ["aaa bbb", "ccc"]

    def test_exact_fit_stays_on_line(self):
        assert wrap("abc def", char_count, 7) == ["abc def"]

    def test_long_word_overflows_on_its_own_line(self):
        assert wrap("a verylongword b", char_count, 5) == ["a", "verylongword", "b"]

    def test_blank_text(self):
        assert wrap("", char_count, 10) == []
        assert wrap("   \n  ", char_count, 10) == []
        assert wrap(None, char_count, 10) == []

    def test_whitespace_collapsed(self):
        assert wrap("a   b\n\nc", char_count, 20) == ["a b c"]

    def test_every_line_fits_unless_single_word(self):
        lines = wrap(LONG_BULLET, char_count, 40)
        for line in lines:
            assert len(line) <= 40 or " " not in line, line

    def test_no_words_lost(self):
        lines = wrap(LONG_BULLET, char_count, 33)
        assert " ".join(lines).split() == LONG_BULLET.split()


class TestIdempotence:
    @pytest.mark.parametrize("width", [10, 25, 60, 200])
    def test_rewrap_of_joined_lines_is_stable(self, width):
        first = wrap(LONG_BULLET, char_count, width)
        second = wrap(" ".join(first), char_count, width)
        assert first == second


class TestFontMeasure:
    def test_measures_with_reportlab_metrics(self):
        measure = font_measure("Helvetica", 10)
        assert measure("") == 0
        assert measure("WWW") > measure("iii")

    def test_long_bullet_at_body_size(self):
        """A 600-character bullet at 11pt in 522pt wraps into a repeatable line count > 1."""
        text = (LONG_BULLET + " ") * 2
        text = text[:600].rsplit(" ", 1)[0] + " end"
        assert 590 <= len(text) <= 605
        measure = font_measure("Helvetica", 11)
        first = wrap(text, measure, 522)
        second = wrap(text, measure, 522)
        assert first == second
        assert len(first) > 1
        assert all(measure(line) <= 522 for line in first)
