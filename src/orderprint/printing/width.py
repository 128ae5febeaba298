"""Display width model for fixed-width receipt paper.

CJK ideographs (Unified Ideographs and Extension A) occupy two columns
on a thermal printer; every other character occupies one. All layout
decisions in the receipt composer go through these helpers.
"""

from enum import Enum
from typing import List, Union


class Align(Enum):
    """Text alignment inside a padded cell."""

    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


# (first, last) code points, inclusive
WIDE_RANGES = (
    (0x4E00, 0x9FFF),  # CJK Unified Ideographs
    (0x3400, 0x4DBF),  # CJK Extension A
)


def is_wide(ch: str) -> bool:
    """Return True if the character occupies two columns."""
    cp = ord(ch)
    return any(first <= cp <= last for first, last in WIDE_RANGES)


def char_width(ch: str) -> int:
    return 2 if is_wide(ch) else 1


def display_width(text: str) -> int:
    """Number of columns the text occupies."""
    return sum(char_width(ch) for ch in text)


def truncate(text: str, max_width: int) -> str:
    """Longest prefix of text that fits in max_width columns.

    A wide character that would straddle the boundary is dropped
    entirely rather than split.
    """
    used = 0
    for i, ch in enumerate(text):
        w = char_width(ch)
        if used + w > max_width:
            return text[:i]
        used += w
    return text


def pad(text: str, width: int, align: Union[Align, str] = Align.LEFT) -> str:
    """Pad text with spaces to exactly width columns.

    Text that is already as wide as (or wider than) the cell is
    truncated instead. Centered text puts the odd space on the right.

    Args:
        text: Cell content
        width: Target width in columns
        align: left, right or center

    Returns:
        The padded (or truncated) cell
    """
    align = Align(align)
    current = display_width(text)
    if current >= width:
        return truncate(text, width)

    gap = width - current
    if align == Align.RIGHT:
        return " " * gap + text
    if align == Align.CENTER:
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


def center(text: str, width: int) -> str:
    return pad(text, width, Align.CENTER)


def wrap(text: str, width: int) -> List[str]:
    """Greedy character-level wrap by display width.

    Lines never exceed width columns and joining them gives back the
    original text. A single character wider than width gets a line of
    its own.

    Args:
        text: Text to wrap
        width: Maximum line width in columns

    Returns:
        Wrapped lines, empty for empty input

    Raises:
        ValueError: If width is less than one column
    """
    if width < 1:
        raise ValueError(f"wrap width must be positive, got {width}")
    if not text:
        return []

    lines: List[str] = []
    current: List[str] = []
    used = 0
    for ch in text:
        w = char_width(ch)
        if current and used + w > width:
            lines.append("".join(current))
            current = []
            used = 0
        current.append(ch)
        used += w

    if current:
        lines.append("".join(current))
    return lines


def sanitize(text: str) -> str:
    """Flatten free text to a single printable line.

    Newlines and tabs become spaces, other control characters are
    dropped so they cannot reach the printer as commands.
    """
    out = []
    for ch in text:
        if ch in "\r\n\t":
            out.append(" ")
        elif ord(ch) < 32 or ord(ch) == 127:
            continue
        else:
            out.append(ch)
    return "".join(out).strip()
