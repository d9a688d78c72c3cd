"""Centralized constants for cadence.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Mastery drill ----------
REINSERT_NOW = 0
REINSERT_SOON = 2
REINSERT_LATER = 5
REINSERT_DISTANCES = (REINSERT_NOW, REINSERT_SOON, REINSERT_LATER)
DEFAULT_REINSERT_DISTANCE = REINSERT_SOON
XP_PER_MASTERED_ITEM = 10

# ---------- Confidence queue ----------
MIN_INTERVAL = 1
XP_PER_CONFIDENCE_RATING = 5
EXCLUDED_TAG_PREFIX = "FC+"  # system tags written by the flashcard screen

# ---------- Review-due (SM-2) ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
QUALITY_AGAIN = 1
QUALITY_HARD = 3
QUALITY_GOOD = 4
QUALITY_EASY = 5
VALID_QUALITIES = (QUALITY_AGAIN, QUALITY_HARD, QUALITY_GOOD, QUALITY_EASY)
XP_PER_REVIEW = 10

DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_MAX_REVIEWS_PER_DAY = 200
DEFAULT_LEARNING_STEPS = (1.0, 10.0)  # minutes
DEFAULT_LAPSE_STEPS = (10.0,)  # minutes
DEFAULT_GRADUATING_INTERVAL = 1  # days
DEFAULT_EASY_INTERVAL = 4  # days
DEFAULT_EASY_BONUS = 1.3
DEFAULT_INTERVAL_MODIFIER = 1.0
DEFAULT_NEW_INTERVAL_PERCENT = 0

# ---------- Time ----------
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE

# ---------- Outbox message types ----------
UPSERT_STUDY_SET = "UPSERT_STUDY_SET"
UPSERT_ROWS = "UPSERT_ROWS"
UPSERT_MASTERY = "UPSERT_MASTERY"
