"""
Configuration constants for the anchor-relative scheduler.

All adjustable parameters are centralized here for easy tuning.
Values that users commonly override (typical wake/bed times, default
recovery score) are also read from scheduler.yaml by
core/engine/config_loader.py; the constants below are the fallbacks.
"""

from typing import Final

# =============================================================================
# CLOCK
# =============================================================================

MINUTES_PER_HOUR: Final[int] = 60
MINUTES_PER_DAY: Final[int] = 1440
HOURS_PER_DAY: Final[int] = 24

# =============================================================================
# ANCHOR DEFAULTS (used when a profile has no learned pattern yet)
# =============================================================================

DEFAULT_TYPICAL_WAKE_TIME: Final[str] = "07:30"
DEFAULT_TYPICAL_BED_TIME: Final[str] = "23:00"
DEFAULT_FIRST_MEAL_TIME: Final[str] = "08:00"
DEFAULT_LAST_MEAL_TIME: Final[str] = "20:00"
DEFAULT_SLEEP_ONSET_MINUTES: Final[int] = 15

# =============================================================================
# TIMELINE GENERATION
# =============================================================================

DEFAULT_RECOVERY_SCORE: Final[int] = 80
DEFAULT_SESSION_DURATION_MINUTES: Final[int] = 60
SESSION_RELATIVE_LABEL: Final[str] = "Scheduled"

# =============================================================================
# DAY SEGMENTS (hours relative to wake / sleep anchors)
# =============================================================================

MORNING_SPAN_HOURS: Final[int] = 4  # morning ends at wake + 4h
EVENING_LEAD_HOURS: Final[int] = 6  # evening starts at sleep - 6h
WIND_DOWN_LEAD_HOURS: Final[int] = 2  # wind-down starts at sleep - 2h

SEGMENT_ORDER: Final[tuple[str, ...]] = ("morning", "midday", "evening", "wind_down")

# =============================================================================
# CHRONOTYPE DETECTION
# =============================================================================

LION_WAKE_BEFORE_MINUTES: Final[int] = 6 * 60 + 30  # wakes before 06:30
WOLF_WAKE_HOUR: Final[int] = 9  # wakes at 09:00 or later
WOLF_SLEEP_EARLY_HOUR: Final[int] = 6  # falls asleep after midnight (before 06:00)
DOLPHIN_SLEEP_ONSET_MINUTES: Final[int] = 30  # takes longer than this to fall asleep

# =============================================================================
# DEFERRAL GUARD
# =============================================================================

SLEEP_WINDOW_BLOCKED_CATEGORIES: Final[frozenset[str]] = frozenset(
    {"sauna", "cold_exposure", "training", "high_intensity"}
)
EARLY_MORNING_BLOCKED_CATEGORIES: Final[frozenset[str]] = frozenset({"heavy_training"})
SLEEP_WINDOW_RETRY_AFTER_WAKE_HOURS: Final[int] = 2
EARLY_MORNING_SPAN_HOURS: Final[int] = 2
EARLY_MORNING_RETRY_AFTER_WAKE_HOURS: Final[int] = 3

# =============================================================================
# REVERSE-CHAINED SESSION STACK (minutes relative to session / chained anchor)
# =============================================================================

DEFAULT_WAKE_BUFFER_HOURS: Final[float] = 2.0
DEFAULT_TARGET_SLEEP_HOURS: Final[float] = 8.0
DEFAULT_SESSION_TIME: Final[str] = "09:00"

WIND_DOWN_BEFORE_BED_MINUTES: Final[int] = 30
MORNING_LIGHT_AFTER_WAKE_MINUTES: Final[int] = 30
PRE_FUEL_BEFORE_SESSION_MINUTES: Final[int] = 120
NEURAL_PREP_BEFORE_SESSION_MINUTES: Final[int] = 45
POST_SESSION_AFTER_MINUTES: Final[int] = 90

# =============================================================================
# REACTIVE OVERLAY
# =============================================================================

DEFAULT_READINESS_SCORE: Final[float] = 50
DEFAULT_STRESS_LEVEL: Final[float] = 5
DEFAULT_STATE_RECOVERY_SCORE: Final[float] = 50

NAP_WINDOW_HOURS: Final[tuple[int, int]] = (13, 16)  # inclusive
NAP_READINESS_BELOW: Final[float] = 40
NAP_STRESS_ABOVE: Final[float] = 7
NAP_URGENCY: Final[int] = 85

SAUNA_WINDOW_HOURS: Final[tuple[int, int]] = (17, 21)  # inclusive
SAUNA_RECOVERY_BELOW: Final[float] = 50
SAUNA_URGENCY: Final[int] = 70

BREATHING_STRESS_ABOVE: Final[float] = 8
BREATHING_URGENCY: Final[int] = 90

# =============================================================================
# PROTOCOL CATALOG
# =============================================================================

# Bundled catalog files are loaded in this order; insertion order is the
# tie-break for actions scheduled at the same instant.
CATALOG_DOMAIN_ORDER: Final[tuple[str, ...]] = ("longevity", "fuel", "recovery", "mind")
