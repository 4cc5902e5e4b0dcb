"""Centralized constants for lingosrs.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FIRST_INTERVAL = 1  # days, after the first success
SECOND_INTERVAL = 6  # days, after the second consecutive success

# ---------- Quality ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # anything below is a lapse
AUTO_CORRECT_QUALITY = 4
AUTO_INCORRECT_QUALITY = 0

# ---------- Sessions ----------
NEW_CARDS_PER_SESSION = 5
MATURE_INTERVAL = 21  # days

# ---------- Store ----------
MAX_WRITE_RETRIES = 3
