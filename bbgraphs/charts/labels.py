"""Greedy label placement for scatter-plot point labels.

Each point tries six candidate placements in a fixed order and keeps the
first one whose rectangle misses every label already placed. Points are
resolved strictly in plot order, so earlier points win ties and a redraw of
the same data always lands labels in the same spots. When every candidate
collides the point falls back to candidate 0 and the overlap is tolerated.

Coordinates are screen pixels with y growing downward; a placement's
y offset is the text baseline relative to the point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

LEFT = "left"
RIGHT = "right"
CENTER = "center"

LABEL_FONT_SIZE = 13  # bold sans-serif, px
LABEL_HEIGHT = 16
LABEL_PADDING = 2


@dataclass(frozen=True)
class Placement:
    x_offset: float
    y_offset: float
    align: str


# Palette order is the preference order
PLACEMENTS: tuple[Placement, ...] = (
    Placement(8, 18, LEFT),     # below-right
    Placement(8, -8, LEFT),     # above-right
    Placement(-8, 18, RIGHT),   # below-left
    Placement(-8, -8, RIGHT),   # above-left
    Placement(0, -20, CENTER),  # centered above
    Placement(0, 28, CENTER),   # centered below
)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    right: float
    bottom: float

    def overlaps(self, other: "Rect") -> bool:
        """Axis-aligned overlap; touching edges count as overlapping."""
        return not (
            self.right < other.left
            or self.left > other.right
            or self.bottom < other.top
            or self.top > other.bottom
        )


@dataclass(frozen=True)
class LabeledPoint:
    x: float
    y: float
    label: str
    candidates: tuple[Placement, ...] = PLACEMENTS


# Approximate advance widths (em) for a bold sans-serif face
_UPPER_WIDTHS = {
    "A": 0.722, "B": 0.722, "C": 0.722, "D": 0.722, "E": 0.667, "F": 0.611,
    "G": 0.778, "H": 0.722, "I": 0.278, "J": 0.556, "K": 0.722, "L": 0.611,
    "M": 0.833, "N": 0.722, "O": 0.778, "P": 0.667, "Q": 0.778, "R": 0.722,
    "S": 0.667, "T": 0.611, "U": 0.722, "V": 0.667, "W": 0.944, "X": 0.667,
    "Y": 0.667, "Z": 0.611,
}
_NARROW = {"i": 0.278, "j": 0.278, "l": 0.278, "f": 0.333, "t": 0.333, "r": 0.389,
           " ": 0.278, ".": 0.278, ",": 0.278, "-": 0.333, "/": 0.278, "'": 0.238}
_WIDE = {"m": 0.889, "w": 0.778}


def measure_text_width(text: str, font_size: float = LABEL_FONT_SIZE) -> float:
    """Estimated rendered width of ``text`` in pixels."""
    width = 0.0
    for ch in text:
        if ch in _UPPER_WIDTHS:
            width += _UPPER_WIDTHS[ch]
        elif ch in _NARROW:
            width += _NARROW[ch]
        elif ch in _WIDE:
            width += _WIDE[ch]
        elif ch.isdigit():
            width += 0.556
        elif ch.islower():
            width += 0.611
        else:
            width += 0.722
    return width * font_size


def label_rect(point: LabeledPoint, placement: Placement, width: float,
               height: float = LABEL_HEIGHT, padding: float = LABEL_PADDING) -> Rect:
    """Background rectangle of a label drawn at ``placement``."""
    anchor_x = point.x + placement.x_offset
    if placement.align == RIGHT:
        left = anchor_x - width - padding * 2
    elif placement.align == CENTER:
        left = anchor_x - width / 2 - padding
    else:
        left = anchor_x - padding
    top = point.y + placement.y_offset - height + 2
    return Rect(left=left, top=top, right=left + width + padding * 2, bottom=top + height)


def resolve_placements(
    points: Sequence[LabeledPoint],
    measure: Optional[Callable[[str], float]] = None,
    height: float = LABEL_HEIGHT,
) -> list[int]:
    """Selected candidate index for each point, in input order.

    Never raises: an empty sequence gives an empty list, and points with an
    empty label take index 0 without reserving space.
    """
    measure = measure or measure_text_width
    placed: list[Rect] = []
    selected: list[int] = []

    for point in points:
        if not point.label or not point.candidates:
            selected.append(0)
            continue

        width = measure(point.label)
        choice = 0
        for index, placement in enumerate(point.candidates):
            rect = label_rect(point, placement, width, height)
            if not any(rect.overlaps(other) for other in placed):
                choice = index
                break

        selected.append(choice)
        placed.append(label_rect(point, point.candidates[choice], width, height))

    return selected
