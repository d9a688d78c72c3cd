# Domain Package
from .models import (
    AnkiConfig,
    AnkiProgress,
    Card,
    CardState,
    Catalog,
    ConfidenceProgress,
    Container,
    LearningItem,
    Rating,
    RatingHistoryEntry,
    ReviewHistoryEntry,
    SessionItemState,
    SessionWordResult,
)
from .ports import Clock, GradingStrategy, SnapshotSink

__all__ = [
    "AnkiConfig",
    "AnkiProgress",
    "Card",
    "CardState",
    "Catalog",
    "Clock",
    "ConfidenceProgress",
    "Container",
    "GradingStrategy",
    "LearningItem",
    "Rating",
    "RatingHistoryEntry",
    "ReviewHistoryEntry",
    "SessionItemState",
    "SessionWordResult",
    "SnapshotSink",
]
