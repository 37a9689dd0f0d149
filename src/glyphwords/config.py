"""Configuration loader for word extraction settings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .clustering import UNBOUNDED, ConfigurationError, resolve_workers
from .distances import DISTANCE_MEASURES, get_distance_measure
from .word_extractor import (
    DEFAULT_OTHER_ORIENTATION_MULTIPLIER,
    DEFAULT_THRESHOLD_FACTOR,
    WordExtractorOptions,
    make_maximum_distance,
)


@dataclass
class WordExtractionConfig:
    """Word extraction configuration."""
    threshold_factor: float = DEFAULT_THRESHOLD_FACTOR
    other_orientation_multiplier: float = DEFAULT_OTHER_ORIENTATION_MULTIPLIER
    distance_measure: str = "euclidean"
    distance_measure_aa: str = "manhattan"  # Axis-aligned letters only
    group_by_orientation: bool = True
    max_degree_of_parallelism: int = UNBOUNDED
    exclude_filtered_from_candidates: bool = False

    def validate(self) -> None:
        if self.threshold_factor <= 0:
            raise ConfigurationError("threshold_factor must be > 0")
        if self.other_orientation_multiplier <= 0:
            raise ConfigurationError("other_orientation_multiplier must be > 0")
        for name in (self.distance_measure, self.distance_measure_aa):
            if str(name).lower() not in DISTANCE_MEASURES:
                raise ConfigurationError(
                    f"Unknown distance measure: {name!r} (expected one of {sorted(DISTANCE_MEASURES)})"
                )
        resolve_workers(self.max_degree_of_parallelism)

    def to_options(self) -> WordExtractorOptions:
        """Build extractor options with the default filters."""
        self.validate()
        return WordExtractorOptions(
            maximum_distance=make_maximum_distance(
                self.threshold_factor, self.other_orientation_multiplier
            ),
            distance_measure=get_distance_measure(self.distance_measure),
            distance_measure_aa=get_distance_measure(self.distance_measure_aa),
            group_by_orientation=self.group_by_orientation,
            max_degree_of_parallelism=self.max_degree_of_parallelism,
            exclude_filtered_from_candidates=self.exclude_filtered_from_candidates,
        )


def load_config(config_path: Optional[Path | str] = None) -> WordExtractionConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses defaults

    Returns:
        WordExtractionConfig object with all settings
    """
    if config_path is None:
        return WordExtractionConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _get_bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}")
    return value


def _parse_config(data: dict) -> WordExtractionConfig:
    """Parse configuration from dict."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config must be a mapping, got {type(data).__name__}")

    config = WordExtractionConfig()

    if "word_extraction" in data:
        w = data["word_extraction"] or {}
        if not isinstance(w, dict):
            raise ConfigurationError(f"word_extraction must be a mapping, got {type(w).__name__}")

        config.threshold_factor = float(w.get("threshold_factor", DEFAULT_THRESHOLD_FACTOR))
        config.other_orientation_multiplier = float(
            w.get("other_orientation_multiplier", DEFAULT_OTHER_ORIENTATION_MULTIPLIER)
        )
        config.distance_measure = w.get("distance_measure", "euclidean")
        config.distance_measure_aa = w.get("distance_measure_aa", "manhattan")
        config.group_by_orientation = _get_bool(w, "group_by_orientation", True)
        config.max_degree_of_parallelism = w.get("max_degree_of_parallelism", UNBOUNDED)
        config.exclude_filtered_from_candidates = _get_bool(w, "exclude_filtered_from_candidates", False)

    config.validate()
    return config
