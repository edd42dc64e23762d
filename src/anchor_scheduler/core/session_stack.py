"""
Reverse-chained session protocol stack.

Training is the anchor and the rest of the day is worked out backwards
from it: wake time is the session minus a preparation buffer, bedtime is
wake minus the sleep target, wind-down hangs off bedtime.  Forward links
(morning light, post-session refuel) hang off wake and the session.

Unlike catalog protocols, which are resolved independently against the
top-level anchors, these offsets are chained transitively.  Each emitted
DependentProtocol records which link it depends on and its signed offset
from the session so callers can explain and re-date it.
"""

from .clock import format_hhmm, hours_to_minutes, parse_hhmm, try_parse_hhmm
from .config import (
    DEFAULT_SESSION_TIME,
    MORNING_LIGHT_AFTER_WAKE_MINUTES,
    NEURAL_PREP_BEFORE_SESSION_MINUTES,
    POST_SESSION_AFTER_MINUTES,
    PRE_FUEL_BEFORE_SESSION_MINUTES,
    WIND_DOWN_BEFORE_BED_MINUTES,
)
from .models import (
    DEFAULT_PATTERNS,
    DependentProtocol,
    ProtocolSchedule,
    SessionRecord,
    UserPatterns,
)


def _chain_offsets(patterns: UserPatterns) -> dict[str, int]:
    """Signed minute offsets of every link relative to the session start."""
    wake = -hours_to_minutes(patterns.wake_buffer_hours)
    bedtime = wake - hours_to_minutes(patterns.target_sleep_hours)
    return {
        "bedtime": bedtime,
        "wind_down": bedtime - WIND_DOWN_BEFORE_BED_MINUTES,
        "wake_time": wake,
        "morning_light": wake + MORNING_LIGHT_AFTER_WAKE_MINUTES,
        "pre_fuel": -PRE_FUEL_BEFORE_SESSION_MINUTES,
        "neural_prep": -NEURAL_PREP_BEFORE_SESSION_MINUTES,
        "session": 0,
        "post_session": POST_SESSION_AFTER_MINUTES,
    }


def calculate_protocol_timings(
    session_time: str,
    patterns: UserPatterns = DEFAULT_PATTERNS,
) -> ProtocolSchedule:
    """
    Work the day's key times backwards from a session.

    Session 09:00 with a 2h wake buffer and 8h sleep target gives wake
    07:00, bedtime 23:00 (previous evening), wind-down 22:30, morning
    light 07:30, pre-fuel 07:00, neural prep 08:15, post-session 10:30.

    Args:
        session_time: Session start as "HH:MM"
        patterns: wake_buffer_hours and target_sleep_hours drive the chain

    Returns:
        ProtocolSchedule of "HH:MM" strings (wrapped to the 24h clock).
        A malformed session_time is treated as 09:00.
    """
    start = try_parse_hhmm(session_time)
    if start is None:
        start = parse_hhmm(DEFAULT_SESSION_TIME)
    times = {k: format_hhmm(start + v) for k, v in _chain_offsets(patterns).items()}
    return ProtocolSchedule(**times)


def _hours_text(hours: float) -> str:
    return f"{hours:g}h"


def generate_session_protocol_stack(
    session: SessionRecord,
    patterns: UserPatterns = DEFAULT_PATTERNS,
) -> list[DependentProtocol]:
    """
    Emit the dependent protocols for one session.

    Order: wind-down, bedtime, wake + light, pre-fuel, neural prep,
    post-session refuel.  A session without a usable time of day is
    stacked around 09:00.
    """
    session_time = (
        session.time_of_day
        if try_parse_hhmm(session.time_of_day) is not None
        else DEFAULT_SESSION_TIME
    )
    schedule = calculate_protocol_timings(session_time, patterns)
    offsets = _chain_offsets(patterns)
    title = session.title
    sleep_text = _hours_text(patterns.target_sleep_hours)
    buffer_text = _hours_text(patterns.wake_buffer_hours)

    return [
        DependentProtocol(
            id=f"adaptive_winddown_{session.id}",
            title="Wind-Down Protocol",
            time_of_day=schedule.wind_down,
            duration_minutes=30,
            category="recovery",
            is_flexible=False,
            depends_on="bedtime",
            reason=f"Preparing for {schedule.bedtime} bedtime to support {title} session",
            rationale="Dim lights, no screens. Body temperature drop initiates sleep.",
            offset_from_session_minutes=offsets["wind_down"],
        ),
        DependentProtocol(
            id=f"adaptive_bedtime_{session.id}",
            title="Optimal Bedtime",
            time_of_day=schedule.bedtime,
            duration_minutes=0,
            category="recovery",
            is_flexible=False,
            depends_on="session",
            reason=f"{sleep_text} sleep before {session_time} session",
            rationale=f"Sleep is the foundation. {sleep_text} gives you optimal recovery.",
            offset_from_session_minutes=offsets["bedtime"],
        ),
        DependentProtocol(
            id=f"adaptive_wake_{session.id}",
            title="Wake + Light Exposure",
            time_of_day=schedule.wake_time,
            duration_minutes=15,
            category="mindspace",
            is_flexible=False,
            depends_on="session",
            reason=f"{buffer_text} buffer before {session_time} {title}",
            rationale=(
                f"Morning light by {schedule.morning_light} calibrates the circadian clock. "
                "Boosts cortisol for alertness."
            ),
            offset_from_session_minutes=offsets["wake_time"],
        ),
        DependentProtocol(
            id=f"adaptive_prefuel_{session.id}",
            title="Pre-Session Fuel",
            time_of_day=schedule.pre_fuel,
            duration_minutes=30,
            category="fuel",
            is_flexible=True,
            depends_on="session",
            reason=f"2h before {title} for complete digestion",
            rationale="Complex carbs + protein + fat. Glycogen loading for performance.",
            offset_from_session_minutes=offsets["pre_fuel"],
        ),
        DependentProtocol(
            id=f"adaptive_neuralprep_{session.id}",
            title="Neural Prep",
            time_of_day=schedule.neural_prep,
            duration_minutes=10,
            category="mindspace",
            is_flexible=True,
            depends_on="session",
            reason=f"Mental priming for {title}",
            rationale="Breathwork + visualization. Activates focus without CNS fatigue.",
            offset_from_session_minutes=offsets["neural_prep"],
        ),
        DependentProtocol(
            id=f"adaptive_postfuel_{session.id}",
            title="Post-Session Refuel",
            time_of_day=schedule.post_session,
            duration_minutes=30,
            category="fuel",
            is_flexible=True,
            depends_on="session",
            reason=f"Anabolic window after {title}",
            rationale="Protein + fast carbs within 90 min. Peak muscle protein synthesis.",
            offset_from_session_minutes=offsets["post_session"],
        ),
    ]
