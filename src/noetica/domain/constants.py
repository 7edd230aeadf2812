"""Centralized constants for the Noetica scheduling engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduler ----------
INITIAL_EASINESS = 2.5
MIN_EASINESS = 1.3
INITIAL_INTERVAL = 1
SECOND_INTERVAL = 6
MAX_QUALITY_SCORE = 5  # difficulty_rating = MAX_QUALITY_SCORE - quality

# ---------- Mastery ----------
MASTERY_EASINESS_THRESHOLD = 2.5

# ---------- Selection ----------
DEFAULT_NEW_CARD_LIMIT = 10

# ---------- Persistence ----------
DEFAULT_PERSIST_RETRIES = 3
DEFAULT_RETRY_DELAY = 0.1  # seconds
