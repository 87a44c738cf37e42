"""Greedy word wrapping against an injected width measure."""

from reportlab.pdfbase import pdfmetrics


def wrap(text: str, measure_width, max_width: float) -> list:
    """Split ``text`` into lines whose measured width fits ``max_width``.

    Words accumulate on a line while ``measure_width(line + " " + word)`` stays
    within ``max_width``. A word wider than ``max_width`` on its own becomes a
    single overflowing line; words are never split.

    Args:
        text: Input text. Runs of whitespace (including newlines) collapse.
        measure_width: Callable returning the rendered width of a string.
        max_width: Available width in the same unit as ``measure_width``.

    Returns:
        List of line strings (empty for blank text).
    """
    lines = []
    current = ""
    for word in (text or "").split():
        if not current:
            current = word
            continue
        candidate = f"{current} {word}"
        if measure_width(candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def font_measure(font_name: str, font_size: float):
    """Width measure for a registered reportlab font at a fixed size."""

    def _measure(s: str) -> float:
        return pdfmetrics.stringWidth(s, font_name, font_size)

    return _measure
