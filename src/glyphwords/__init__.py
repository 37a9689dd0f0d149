"""glyphwords - Nearest-neighbour word extraction from positioned glyphs."""

__version__ = "0.1.0"

from .models import BBox, Letter, Point, TextOrientation, Word
from .clustering import UNBOUNDED, ConfigurationError, nearest_neighbours
from .distances import euclidean, manhattan
from .word_extractor import NearestNeighbourWordExtractor, WordExtractorOptions, extract_words
from .config import WordExtractionConfig, load_config

__all__ = [
    "BBox",
    "Letter",
    "Point",
    "TextOrientation",
    "Word",
    "UNBOUNDED",
    "ConfigurationError",
    "nearest_neighbours",
    "euclidean",
    "manhattan",
    "NearestNeighbourWordExtractor",
    "WordExtractorOptions",
    "extract_words",
    "WordExtractionConfig",
    "load_config",
]
