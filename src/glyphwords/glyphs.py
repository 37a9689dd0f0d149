"""Reading positioned glyphs from JSON."""

import json
from pathlib import Path
from typing import TextIO

from .models import BBox, Letter, Point, TextOrientation


def letter_from_dict(data: dict) -> Letter:
    """
    Build a Letter from a glyph dict.

    Expected keys: value, bbox [x0, y0, x1, y1], start [x, y], end [x, y].
    Optional: width (defaults to the bbox width), point_size, orientation,
    font_name, color.
    """
    x0, y0, x1, y1 = (float(v) for v in data["bbox"])
    bbox = BBox(x0, y0, x1, y1)
    sx, sy = (float(v) for v in data["start"])
    ex, ey = (float(v) for v in data["end"])

    return Letter(
        value=str(data["value"]),
        glyph_rectangle=bbox,
        start_base_line=Point(sx, sy),
        end_base_line=Point(ex, ey),
        width=float(data.get("width", bbox.width)),
        point_size=float(data.get("point_size", 0.0)),
        text_orientation=TextOrientation(data.get("orientation", "horizontal")),
        font_name=data.get("font_name"),
        color=data.get("color"),
    )


def load_letters(source: str | Path | TextIO) -> list[Letter]:
    """
    Load letters from a JSON glyph list.

    The document is either a list of glyph dicts or an object with a
    "letters" list.
    """
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as f:
            data = json.load(f)
    else:
        data = json.load(source)

    if isinstance(data, dict):
        data = data.get("letters", [])
    if not isinstance(data, list):
        raise ValueError("Glyph JSON must be a list or an object with a 'letters' list")

    letters = []
    for i, entry in enumerate(data):
        try:
            letters.append(letter_from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed glyph at index {i}: {e}") from e
    return letters
