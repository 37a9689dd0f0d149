"""
Nearest-neighbour word extraction.

Letters are grouped into words by chaining each letter's end baseline point
to the closest start baseline point of another letter. Letters can first be
split by text orientation so that axis-aligned text is measured with the
axis-aligned distance measure and rotated text with the general one.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from . import distances
from .clustering import UNBOUNDED, ConfigurationError, nearest_neighbours, resolve_workers
from .models import Letter, TextOrientation, Word

logger = logging.getLogger(__name__)


# Bucket processing order when grouping by orientation
AXIS_ALIGNED_ORDER = (
    TextOrientation.HORIZONTAL,
    TextOrientation.ROTATE270,
    TextOrientation.ROTATE180,
    TextOrientation.ROTATE90,
)

DEFAULT_THRESHOLD_FACTOR = 0.2
DEFAULT_OTHER_ORIENTATION_MULTIPLIER = 2.0


def make_maximum_distance(
    factor: float = DEFAULT_THRESHOLD_FACTOR,
    other_multiplier: float = DEFAULT_OTHER_ORIENTATION_MULTIPLIER,
) -> Callable[[Letter, Letter], float]:
    """
    Build an adaptive linking threshold.

    The threshold is `factor` times the largest of both letters' glyph width,
    advance width and point size, multiplied by `other_multiplier` when
    either letter is not axis-aligned.
    """

    def maximum_distance(l1: Letter, l2: Letter) -> float:
        max_dist = max(
            abs(l1.glyph_rectangle.width),
            abs(l2.glyph_rectangle.width),
            abs(l1.width),
            abs(l2.width),
            l1.point_size,
            l2.point_size,
        ) * factor

        if l1.text_orientation is TextOrientation.OTHER or l2.text_orientation is TextOrientation.OTHER:
            return other_multiplier * max_dist
        return max_dist

    return maximum_distance


default_maximum_distance = make_maximum_distance()


def _is_blank(value: Optional[str]) -> bool:
    return not value or value.isspace()


def default_filter(pivot: Letter, candidate: Letter) -> bool:
    """Reject whitespace candidates: a space ends a word instead of extending it."""
    return not _is_blank(candidate.value)


def default_filter_pivot(letter: Letter) -> bool:
    """Whitespace letters never start a search."""
    return not _is_blank(letter.value)


@dataclass
class WordExtractorOptions:
    """Options for nearest-neighbour word extraction."""

    # Maximum distance between two letters (end to start baseline point) within one word
    maximum_distance: Callable[[Letter, Letter], float] = default_maximum_distance
    # Used for all letters, or only for OTHER letters when grouping by orientation
    distance_measure: Callable = distances.euclidean
    # Used for axis-aligned letters when grouping by orientation
    distance_measure_aa: Callable = distances.manhattan
    # Connection filter (pivot, candidate); False splits the letters into different words
    filter: Callable[[Letter, Letter], bool] = default_filter
    # False means no nearest-neighbour search starts from this letter
    filter_pivot: Callable[[Letter], bool] = default_filter_pivot
    group_by_orientation: bool = True
    # Positive bound on concurrent searches, or -1 for no bound
    max_degree_of_parallelism: int = UNBOUNDED
    # When True, letters rejected by filter_pivot can't be linked to either
    exclude_filtered_from_candidates: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError if a function is missing or the parallelism bound is unusable."""
        for name in ("maximum_distance", "distance_measure", "distance_measure_aa", "filter", "filter_pivot"):
            value = getattr(self, name)
            if not callable(value):
                raise ConfigurationError(f"{name} must be callable, got {type(value).__name__}")

        resolve_workers(self.max_degree_of_parallelism)


def _cluster(letters: List[Letter], distance_measure: Callable, options: WordExtractorOptions) -> List[Word]:
    if not letters:
        return []

    groups = nearest_neighbours(
        letters,
        distance=distance_measure,
        max_distance=options.maximum_distance,
        trailing_anchor=lambda l: l.end_base_line,
        leading_anchor=lambda l: l.start_base_line,
        pivot_filter=options.filter_pivot,
        connection_filter=options.filter,
        max_degree_of_parallelism=options.max_degree_of_parallelism,
        exclude_filtered_from_candidates=options.exclude_filtered_from_candidates,
    )
    return [Word(tuple(group)) for group in groups]


def extract_words(
    letters: Optional[Sequence[Letter]],
    options: Optional[WordExtractorOptions] = None,
) -> List[Word]:
    """
    Group a page's letters into words.

    Args:
        letters: The page's letters, in content stream order
        options: Extraction options (defaults if None)

    Returns:
        Words in bucket order (horizontal, rotate270, rotate180, rotate90,
        other) when grouping by orientation, else in chain-head order

    Raises:
        ConfigurationError: If options is not a WordExtractorOptions
    """
    if options is None:
        options = WordExtractorOptions()
    elif not isinstance(options, WordExtractorOptions):
        raise ConfigurationError(
            f"Options provided must be of type WordExtractorOptions, got {type(options).__name__}"
        )
    options.validate()

    if not letters:
        return []
    letters = list(letters)

    if not options.group_by_orientation:
        words = _cluster(letters, options.distance_measure, options)
        logger.debug(f"Extracted {len(words)} words from {len(letters)} letters")
        return words

    buckets = {orientation: [] for orientation in TextOrientation}
    for letter in letters:
        buckets[letter.text_orientation].append(letter)

    words = []
    for orientation in AXIS_ALIGNED_ORDER:
        words.extend(_cluster(buckets[orientation], options.distance_measure_aa, options))
    words.extend(_cluster(buckets[TextOrientation.OTHER], options.distance_measure, options))

    logger.debug(
        f"Extracted {len(words)} words from {len(letters)} letters "
        f"({', '.join(f'{o.value}={len(b)}' for o, b in buckets.items() if b)})"
    )
    return words


class NearestNeighbourWordExtractor:
    """Word extractor bound to one set of options."""

    _instance: Optional["NearestNeighbourWordExtractor"] = None

    def __init__(self, options: Optional[WordExtractorOptions] = None):
        if options is not None and not isinstance(options, WordExtractorOptions):
            raise ConfigurationError(
                f"Options provided must be of type WordExtractorOptions, got {type(options).__name__}"
            )
        self.options = options or WordExtractorOptions()
        self.options.validate()

    @classmethod
    def instance(cls) -> "NearestNeighbourWordExtractor":
        """Shared extractor using default options."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_words(self, letters: Optional[Sequence[Letter]]) -> List[Word]:
        return extract_words(letters, self.options)
