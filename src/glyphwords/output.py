"""Output formatters for extracted words."""

import csv
import json
from pathlib import Path
from typing import Sequence, TextIO

from .models import Word


def write_csv(words: Sequence[Word], output: str | Path | TextIO) -> None:
    """
    Write words to CSV format.

    CSV columns: word_id, text, x0, y0, x1, y1, orientation, letter_count
    """
    fieldnames = ["word_id", "text", "x0", "y0", "x1", "y1", "orientation", "letter_count"]

    def write_to_file(f: TextIO) -> None:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for word_id, word in enumerate(words):
            bbox = word.bbox
            writer.writerow({
                "word_id": word_id,
                "text": word.text,
                "x0": round(bbox.x0, 2),
                "y0": round(bbox.y0, 2),
                "x1": round(bbox.x1, 2),
                "y1": round(bbox.y1, 2),
                "orientation": word.text_orientation.value,
                "letter_count": len(word),
            })

    if isinstance(output, (str, Path)):
        with open(output, "w", newline="", encoding="utf-8") as f:
            write_to_file(f)
    else:
        write_to_file(output)


def write_json(words: Sequence[Word], output: str | Path | TextIO, indent: int = 2) -> None:
    """
    Write words to JSON format.

    JSON structure:
    {
        "total_words": 2,
        "words": [
            {"word_id": 0, "text": "...", "bbox": [x0, y0, x1, y1],
             "orientation": "horizontal", "font_name": "...", "letters": [...]}
        ]
    }
    """
    data = {
        "total_words": len(words),
        "words": [],
    }

    for word_id, word in enumerate(words):
        bbox = word.bbox
        data["words"].append({
            "word_id": word_id,
            "text": word.text,
            "bbox": [bbox.x0, bbox.y0, bbox.x1, bbox.y1],
            "orientation": word.text_orientation.value,
            "font_name": word.font_name,
            "letters": [letter.value for letter in word.letters],
        })

    if isinstance(output, (str, Path)):
        with open(output, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent)
    else:
        json.dump(data, output, indent=indent)


def format_output(words: Sequence[Word], output_path: str | Path, format: str = "csv") -> None:
    """
    Write words to file in specified format.

    Args:
        words: Extracted words
        output_path: Output file path
        format: Output format ('csv' or 'json')
    """
    if format == "csv":
        write_csv(words, output_path)
    elif format == "json":
        write_json(words, output_path)
    else:
        raise ValueError(f"Unsupported format: {format}")
