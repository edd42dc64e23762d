"""
Anchor resolution.

Converts a named anchor plus a signed minute offset into an absolute
datetime for the reference day, and produces the human-readable
relative labels ("Wake +2h", "Sleep -10h") shown next to each action.
Also hosts chronotype detection and the default-anchor builder, which
turn averaged sleep timing into a UserTimeAnchors snapshot.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from .clock import add_minutes, at_minutes, at_time_of_day, is_valid_hhmm, parse_hhmm, try_parse_hhmm
from .config import (
    DEFAULT_FIRST_MEAL_TIME,
    DEFAULT_LAST_MEAL_TIME,
    DEFAULT_SLEEP_ONSET_MINUTES,
    DEFAULT_TYPICAL_BED_TIME,
    DEFAULT_TYPICAL_WAKE_TIME,
    DOLPHIN_SLEEP_ONSET_MINUTES,
    LION_WAKE_BEFORE_MINUTES,
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    WOLF_SLEEP_EARLY_HOUR,
    WOLF_WAKE_HOUR,
)
from .models import Anchor, Chronotype, SessionRecord, UserTimeAnchors

logger = logging.getLogger(__name__)

_ANCHOR_LABELS: dict[str, str] = {
    "wake": "Wake",
    "sleep": "Sleep",
    "training": "Train",
    "first_meal": "First meal",
    "last_meal": "Last meal",
}


@dataclass(frozen=True)
class AnchorResolution:
    """
    Result of resolving an anchor.

    resolved is False when the anchor had no value and generation time
    was used instead (currently only a missing training time).
    """

    time: datetime
    resolved: bool = True


def wake_base(anchors: UserTimeAnchors, now: datetime) -> datetime:
    """Today's wake time, or the typical wake pattern on the reference date."""
    if anchors.wake_time_today is not None:
        return anchors.wake_time_today
    return at_time_of_day(now.date(), anchors.typical_wake_time, now.tzinfo)


def resolve_anchor(
    anchor: Anchor,
    offset_minutes: int,
    anchors: UserTimeAnchors,
    now: datetime,
) -> AnchorResolution:
    """
    Resolve anchor + offset to an absolute time.

    The reference calendar date is the date of ``now``.  Offsets are not
    clamped: results may fall on the previous or next day.

    Args:
        anchor: One of wake, sleep, training, first_meal, last_meal
        offset_minutes: Signed offset; negative means before the anchor
        anchors: Per-user anchor snapshot
        now: The single instant sampled for this generation call

    Returns:
        AnchorResolution with the absolute time and a resolved flag
    """
    reference = now.date()
    tz = now.tzinfo
    resolved = True

    if anchor == "wake":
        base = wake_base(anchors, now)
    elif anchor == "sleep":
        base = anchors.target_bed_time
    elif anchor == "training":
        if anchors.training_time:
            base = at_time_of_day(reference, anchors.training_time, tz)
        else:
            logger.debug("No training time configured; training anchor falls back to now")
            base = now
            resolved = False
    elif anchor == "first_meal":
        base = at_time_of_day(reference, anchors.first_meal_time, tz)
    elif anchor == "last_meal":
        base = at_time_of_day(reference, anchors.last_meal_time, tz)
    else:
        logger.debug("Unknown anchor %r falls back to now", anchor)
        base = now
        resolved = False

    return AnchorResolution(time=add_minutes(base, offset_minutes), resolved=resolved)


def resolve(
    anchor: Anchor,
    offset_minutes: int,
    anchors: UserTimeAnchors,
    now: datetime | None = None,
) -> datetime:
    """Shorthand for resolve_anchor(...).time; samples now if not given."""
    if now is None:
        now = datetime.now()
    return resolve_anchor(anchor, offset_minutes, anchors, now).time


def relative_label(anchor: str, offset_minutes: int) -> str:
    """
    Human-readable offset label.

    Offsets under an hour are shown in minutes; whole hours without a
    decimal; anything else with one decimal place.

        relative_label("wake", 120)   -> "Wake +2h"
        relative_label("sleep", -90)  -> "Sleep -1.5h"
        relative_label("wake", 30)    -> "Wake +30m"
    """
    sign = "+" if offset_minutes >= 0 else "-"
    magnitude = abs(offset_minutes)
    name = _ANCHOR_LABELS.get(anchor, anchor)

    if magnitude < MINUTES_PER_HOUR:
        return f"{name} {sign}{magnitude}m"

    hours = magnitude / MINUTES_PER_HOUR
    if magnitude % MINUTES_PER_HOUR == 0:
        return f"{name} {sign}{int(hours)}h"
    return f"{name} {sign}{hours:.1f}h"


def detect_chronotype(
    avg_wake_time: str,
    avg_sleep_time: str,
    sleep_onset_minutes: float,
) -> Chronotype:
    """
    Classify a sleeper from averaged timing.

    Lion: wakes before 06:30.  Wolf: wakes at 09:00 or later, or falls
    asleep after midnight.  Dolphin: needs more than 30 min to fall
    asleep.  Bear: everyone else.

    Malformed times fall back to the default wake and bed times.
    """
    wake_minutes = try_parse_hhmm(avg_wake_time)
    if wake_minutes is None:
        wake_minutes = parse_hhmm(DEFAULT_TYPICAL_WAKE_TIME)
    sleep_minutes = try_parse_hhmm(avg_sleep_time)
    if sleep_minutes is None:
        sleep_minutes = parse_hhmm(DEFAULT_TYPICAL_BED_TIME)
    sleep_hour = sleep_minutes // MINUTES_PER_HOUR

    if wake_minutes < LION_WAKE_BEFORE_MINUTES:
        return "lion"
    if wake_minutes // MINUTES_PER_HOUR >= WOLF_WAKE_HOUR or sleep_hour < WOLF_SLEEP_EARLY_HOUR:
        return "wolf"
    if sleep_onset_minutes > DOLPHIN_SLEEP_ONSET_MINUTES:
        return "dolphin"
    return "bear"


def default_anchors(
    reference_date: date,
    *,
    typical_wake_time: str | None = None,
    typical_bed_time: str | None = None,
    wake_time_today: datetime | None = None,
    sleep_onset_minutes: float | None = None,
    training_session: SessionRecord | None = None,
    first_meal_time: str | None = None,
    last_meal_time: str | None = None,
    work_start_time: str | None = None,
    work_end_time: str | None = None,
) -> UserTimeAnchors:
    """
    Build a UserTimeAnchors snapshot from whatever profile data exists.

    Missing values fall back to a bear-like pattern (wake 07:30, bed 23:00,
    meals 08:00/20:00).  A typical bedtime at or before the typical wake
    time of day (e.g. 00:30 with a 08:00 wake) lands on the following day.

    Args:
        reference_date: Calendar day the anchors describe
        training_session: Today's session, if any; sets has_training_today
            and supplies training_time from its time_of_day

    Returns:
        UserTimeAnchors with chronotype detected from the pattern
    """
    wake = typical_wake_time or DEFAULT_TYPICAL_WAKE_TIME
    bed = typical_bed_time or DEFAULT_TYPICAL_BED_TIME
    onset = sleep_onset_minutes if sleep_onset_minutes is not None else DEFAULT_SLEEP_ONSET_MINUTES

    bed_minutes = parse_hhmm(bed)
    if bed_minutes <= parse_hhmm(wake):
        bed_minutes += MINUTES_PER_DAY
    target_bed_time = at_minutes(reference_date, bed_minutes)

    training_time = None
    if training_session is not None and is_valid_hhmm(training_session.time_of_day):
        training_time = training_session.time_of_day

    return UserTimeAnchors(
        target_bed_time=target_bed_time,
        wake_time_today=wake_time_today,
        typical_wake_time=wake,
        typical_bed_time=bed,
        work_start_time=work_start_time,
        work_end_time=work_end_time,
        training_time=training_time,
        has_training_today=training_session is not None,
        first_meal_time=first_meal_time or DEFAULT_FIRST_MEAL_TIME,
        last_meal_time=last_meal_time or DEFAULT_LAST_MEAL_TIME,
        chronotype=detect_chronotype(wake, bed, onset),
    )
