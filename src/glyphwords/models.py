"""Data models for glyphwords."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Point:
    """A point in page coordinate space."""

    x: float
    y: float


@dataclass(frozen=True)
class BBox:
    """Axis-aligned bounding box in page coordinate space."""

    x0: float  # Left edge
    y0: float  # Bottom edge
    x1: float  # Right edge
    y1: float  # Top edge

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def union(self, other: "BBox") -> "BBox":
        """Smallest bbox containing both boxes."""
        return BBox(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )


class TextOrientation(Enum):
    """Classified direction of a glyph's baseline."""

    HORIZONTAL = "horizontal"
    ROTATE90 = "rotate90"
    ROTATE180 = "rotate180"
    ROTATE270 = "rotate270"
    OTHER = "other"

    @property
    def is_axis_aligned(self) -> bool:
        return self is not TextOrientation.OTHER


@dataclass(frozen=True)
class Letter:
    """
    A single positioned glyph.

    Geometry, font metrics and orientation are computed upstream (typically
    by the PDF content stream parser) and are never modified here.
    """

    value: str
    glyph_rectangle: BBox
    start_base_line: Point  # Leading anchor
    end_base_line: Point  # Trailing anchor
    width: float  # Advance width of the text
    point_size: float
    text_orientation: TextOrientation = TextOrientation.HORIZONTAL
    font_name: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class Word:
    """A group of letters in chain order."""

    letters: tuple[Letter, ...]

    def __post_init__(self):
        if not self.letters:
            raise ValueError("A word needs at least one letter")
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "letters", tuple(self.letters))

    @property
    def text(self) -> str:
        return "".join(letter.value for letter in self.letters)

    @property
    def bbox(self) -> BBox:
        """Union of the letters' glyph rectangles."""
        box = self.letters[0].glyph_rectangle
        for letter in self.letters[1:]:
            box = box.union(letter.glyph_rectangle)
        return box

    @property
    def text_orientation(self) -> TextOrientation:
        """Orientation shared by all letters, OTHER when they disagree."""
        first = self.letters[0].text_orientation
        if all(letter.text_orientation is first for letter in self.letters):
            return first
        return TextOrientation.OTHER

    @property
    def font_name(self) -> Optional[str]:
        return self.letters[0].font_name

    def __len__(self) -> int:
        return len(self.letters)
