"""Constants for memoassist.

This module centralizes all magic numbers and default values used by the
suggestion engine.
"""

from memoassist.models.memo import Importance, LocationPreference


# Memo defaults
DEFAULT_SESSION_MINUTES = 30
DEFAULT_IMPORTANCE = Importance.MEDIUM
DEFAULT_LOCATION_PREFERENCE = LocationPreference.NONE

# Visibility thresholds
DISPLAY_THRESHOLD = 0.5  # need below this is hidden
MANDATORY_THRESHOLD = 1.0  # need at or above this must be scheduled

# Importance scores (discrete)
IMPORTANCE_SCORES = {
    "low": 0.0,
    "medium": 0.2,
    "high": 0.4,
}

# Deadline need range (can exceed the max when overdue)
DEADLINE_MIN_NEED = 0.1
DEADLINE_MAX_NEED = 1.0
DEADLINE_OVERDUE_STEP_PER_DAY = 0.1
DEADLINE_OVERDUE_MAX_BONUS = 0.5
# Remaining-work weighting: need * (floor + (1 - floor) * remaining)
DEADLINE_WORK_FLOOR = 0.3
# Total work assumed when a deadline memo has no estimate
DEFAULT_TOTAL_MINUTES = 60

# Routine need range (never mandatory)
ROUTINE_MIN_NEED = 0.3
ROUTINE_MAX_NEED = 0.9
ROUTINE_MIN_TIME_REMAINING = 0.1

# Backlog need range (never mandatory, slow ramp)
BACKLOG_MIN_NEED = 0.5
BACKLOG_MAX_NEED = 0.7
BACKLOG_DAILY_GROWTH = 0.02

# Duration predictor
CURVE_FINAL_FACTOR = 5  # final day expects 5x the base session
SMOOTHING_ALPHA = 0.3
SMOOTHING_WINDOW_DAYS = 3
MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 5.0

# Enrichment bounds
MIN_SESSION_MINUTES = 10
MAX_SESSION_MINUTES = 120

# Enrichment fallbacks per memo type: (session minutes, total minutes)
FALLBACK_DURATIONS = {
    "deadline": (45, 90),
    "routine": (30, 30),
    "backlog": (30, 60),
}
FALLBACK_GENRE = "other"
KNOWN_GENRES = ("study", "exercise", "chores", "work", "hobby", "other")

# Title keywords used when genre has to be guessed locally
GENRE_KEYWORDS = {
    "study": ("study", "exam", "homework", "read", "learn", "report", "lecture"),
    "exercise": ("run", "gym", "workout", "walk", "yoga", "stretch", "swim"),
    "chores": ("clean", "laundry", "dishes", "groceries", "cook", "tidy"),
    "work": ("meeting", "email", "slides", "review", "client", "invoice"),
    "hobby": ("guitar", "piano", "draw", "paint", "game", "photo"),
}
