"""
Session Factory
Centralizes the logic for selecting the outbox adapter and wiring a SessionService.
"""

import random

from cadence.application.clock import SystemClock
from cadence.application.config import AppConfig
from cadence.application.grading import Sm2GradingStrategy
from cadence.application.session_service import SessionService
from cadence.domain.intervals import CUSTOM_PRESET, preset
from cadence.domain.models import AnkiConfig
from cadence.domain.ports import Clock, SnapshotSink
from cadence.infrastructure.outbox import JsonlOutbox, MemoryOutbox


def get_snapshot_sink(config: AppConfig) -> SnapshotSink:
    """
    Returns the SnapshotSink implementation selected by config.
    """
    if config.outbox_backend == "memory":
        return MemoryOutbox()
    return JsonlOutbox(config.outbox_path)


def get_default_anki_config(config: AppConfig) -> AnkiConfig:
    """Review settings for decks saved without their own."""
    return AnkiConfig(
        new_cards_per_day=config.new_cards_per_day,
        max_reviews_per_day=config.max_reviews_per_day,
    )


def get_session_service(
    config: AppConfig,
    sink: SnapshotSink | None = None,
    clock: Clock | None = None,
) -> SessionService:
    """
    Returns a SessionService wired from config.
    """
    interval_config = None
    if config.interval_preset != CUSTOM_PRESET:
        interval_config = preset(config.interval_preset)

    return SessionService(
        sink=sink or get_snapshot_sink(config),
        clock=clock or SystemClock(),
        grading=Sm2GradingStrategy(),
        rng=random.Random(config.shuffle_seed),
        reinsert_distance=config.reinsert_distance,
        interval_config=interval_config,
    )
