"""Text measurement and greedy word wrapping."""

from typing import List, Optional

from .constants import DEFAULT_CHAR_WIDTH_RATIO, DEFAULT_LINE_HEIGHT_MULTIPLIER
from .fonts import FontMetrics


def estimate_text_width(text: str, font_size: float) -> float:
    """Heuristic width: every character is half the font size wide."""
    return len(text) * font_size * DEFAULT_CHAR_WIDTH_RATIO


def measure_text_width(text: str, font_size: float, metrics: Optional[FontMetrics] = None) -> float:
    if metrics is None:
        return estimate_text_width(text, font_size)
    return metrics.text_width(text, font_size)


def split_lines(text: str) -> List[str]:
    """Split on explicit line breaks only; a trailing CR from CRLF is dropped."""
    return [line.rstrip("\r") for line in text.split("\n")]


def _hard_split(word: str, max_width: float, font_size: float, metrics: Optional[FontMetrics]) -> List[str]:
    """Break a word into chunks no wider than max_width, at least one character each."""
    chunks = []
    current = ""
    for ch in word:
        candidate = current + ch
        if current and measure_text_width(candidate, font_size, metrics) > max_width:
            chunks.append(current)
            current = ch
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def _wrap_segment(segment: str, max_width: float, font_size: float, metrics: Optional[FontMetrics]) -> List[str]:
    words = segment.split()
    if not words:
        return [""]

    space_width = measure_text_width(" ", font_size, metrics)
    lines: List[str] = []
    current = ""
    current_width = 0.0

    for word in words:
        word_width = measure_text_width(word, font_size, metrics)

        if word_width > max_width:
            if current:
                lines.append(current)
            chunks = _hard_split(word, max_width, font_size, metrics)
            lines.extend(chunks[:-1])
            current = chunks[-1]
            current_width = measure_text_width(current, font_size, metrics)
            continue

        if not current:
            current = word
            current_width = word_width
        elif current_width + space_width + word_width <= max_width:
            current = f"{current} {word}"
            current_width += space_width + word_width
        else:
            lines.append(current)
            current = word
            current_width = word_width

    if current:
        lines.append(current)
    return lines


def wrap_text(
    text: str,
    max_width: float,
    font_size: float,
    metrics: Optional[FontMetrics] = None,
) -> List[str]:
    """
    Wrap text into lines that fit max_width.

    Explicit line breaks always start a new line and blank lines between them
    are kept as empty strings, so "A\\n\\nB" gives ["A", "", "B"]. Words are
    packed greedily; a word wider than the budget is hard-split between code
    points. When the budget cannot hold a single character the text is only
    split on its explicit breaks.
    """
    if not text:
        return [""]

    segments = split_lines(text)

    if metrics is None:
        too_narrow = font_size * DEFAULT_CHAR_WIDTH_RATIO > max_width
    else:
        too_narrow = max_width <= 0
    if too_narrow:
        return segments

    lines: List[str] = []
    for segment in segments:
        lines.extend(_wrap_segment(segment, max_width, font_size, metrics))
    return lines


def wrapped_text_height(
    text: str,
    max_width: float,
    font_size: float,
    line_height_multiplier: float = DEFAULT_LINE_HEIGHT_MULTIPLIER,
    metrics: Optional[FontMetrics] = None,
) -> float:
    lines = wrap_text(text, max_width, font_size, metrics)
    return len(lines) * font_size * line_height_multiplier
