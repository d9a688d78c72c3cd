"""
Interval presets for the confidence queue.

An interval config maps each graded Rating to how many slots forward a
rated item is pushed. Values are normalized to positive integers when the
config is built, never at scheduling time.
"""

from collections.abc import Mapping
from typing import Any

from .constants import MIN_INTERVAL
from .models import Rating

IntervalConfig = dict[Rating, int]

PRESETS: dict[str, IntervalConfig] = {
    "fibonacci": {
        Rating.AGAIN: 3,
        Rating.HARD: 5,
        Rating.GOOD: 8,
        Rating.EASY: 13,
        Rating.PERFECT: 21,
        Rating.SUPERB: 34,
    },
    "drill": {
        Rating.AGAIN: 1,
        Rating.HARD: 2,
        Rating.GOOD: 3,
        Rating.EASY: 5,
        Rating.PERFECT: 8,
        Rating.SUPERB: 13,
    },
    "leitner": {
        Rating.AGAIN: 5,
        Rating.HARD: 10,
        Rating.GOOD: 25,
        Rating.EASY: 50,
        Rating.PERFECT: 100,
        Rating.SUPERB: 200,
    },
}

PRESET_LABELS = {
    "fibonacci": "Fibonacci (Standard)",
    "drill": "Deep Drill (Short)",
    "leitner": "Leitner (Long)",
}

DEFAULT_PRESET = "fibonacci"
CUSTOM_PRESET = "custom"


def preset(preset_id: str) -> IntervalConfig:
    """Return a copy of a named preset. Raises KeyError for unknown ids."""
    return dict(PRESETS[preset_id])


def normalize_interval(value: Any) -> int:
    """Coerce user input to an interval, flooring at MIN_INTERVAL."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return MIN_INTERVAL
    return max(MIN_INTERVAL, number)


def normalize_interval_config(
    raw: Mapping[Rating | str, Any] | None,
    base: str = DEFAULT_PRESET,
) -> IntervalConfig:
    """
    Build a complete interval config.

    Missing ratings fall back to the `base` preset; the NEW key, which
    older records carry with a value of 0, is ignored.
    """
    config = preset(base)
    if not raw:
        return config

    for key, value in raw.items():
        rating = key if isinstance(key, Rating) else Rating(key)
        if rating is Rating.NEW:
            continue
        config[rating] = normalize_interval(value)
    return config


def match_preset(config: Mapping[Rating, int]) -> str:
    """Return the preset id whose values equal `config`, else 'custom'."""
    for preset_id, values in PRESETS.items():
        if all(config.get(rating) == interval for rating, interval in values.items()):
            return preset_id
    return CUSTOM_PRESET
