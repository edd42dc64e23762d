"""
Deferral guard.

Vetoes actions whose category conflicts with the user's sleep window or
the low-body-temperature hours right after waking, and suggests when to
retry.  Stateless: callers decide what to do with the verdict.
"""

from .clock import format_hour, hour_of, shift_hhmm
from .config import (
    EARLY_MORNING_BLOCKED_CATEGORIES,
    EARLY_MORNING_RETRY_AFTER_WAKE_HOURS,
    EARLY_MORNING_SPAN_HOURS,
    HOURS_PER_DAY,
    MINUTES_PER_HOUR,
    SLEEP_WINDOW_BLOCKED_CATEGORIES,
    SLEEP_WINDOW_RETRY_AFTER_WAKE_HOURS,
)
from .models import DEFAULT_PATTERNS, DeferralDecision, UserPatterns


def in_sleep_window(current_hour: int, bedtime_hour: int, wake_hour: int) -> bool:
    """
    Return True if current_hour falls inside the habitual sleep window.

    A bedtime later in the day than the wake time wraps midnight
    (23 → 7 covers 23, 0..6).  A bedtime after midnight is a plain range
    (1 → 9 covers 1..8).  Equal hours mean no sleep window.
    """
    hour = current_hour % HOURS_PER_DAY
    if bedtime_hour > wake_hour:
        return hour >= bedtime_hour or hour < wake_hour
    if bedtime_hour < wake_hour:
        return bedtime_hour <= hour < wake_hour
    return False


def should_defer_action(
    category: str,
    current_hour: int,
    patterns: UserPatterns = DEFAULT_PATTERNS,
) -> DeferralDecision:
    """
    Decide whether an action should be postponed.

    Only the action's category matters, so callers pass that string
    rather than the action itself.

    Args:
        category: Action category, e.g. "sauna", "training", "heavy_training"
        current_hour: Hour of day (0-23)
        patterns: Habitual bed/wake times

    Returns:
        DeferralDecision; suggested_time is an "HH:MM" string when deferring
    """
    bedtime_hour = hour_of(patterns.avg_bedtime)
    wake_hour = hour_of(patterns.avg_wake_time)

    if in_sleep_window(current_hour, bedtime_hour, wake_hour):
        if category in SLEEP_WINDOW_BLOCKED_CATEGORIES:
            return DeferralDecision(
                should_defer=True,
                reason="Sleep window active. This would disrupt recovery.",
                suggested_time=shift_hhmm(
                    patterns.avg_wake_time,
                    SLEEP_WINDOW_RETRY_AFTER_WAKE_HOURS * MINUTES_PER_HOUR,
                ),
            )

    if wake_hour <= current_hour < wake_hour + EARLY_MORNING_SPAN_HOURS:
        if category in EARLY_MORNING_BLOCKED_CATEGORIES:
            return DeferralDecision(
                should_defer=True,
                reason="Body temperature still low. Injury risk elevated.",
                suggested_time=format_hour(wake_hour + EARLY_MORNING_RETRY_AFTER_WAKE_HOURS),
            )

    return DeferralDecision(should_defer=False)
