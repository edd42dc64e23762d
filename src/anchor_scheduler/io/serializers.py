"""
JSON serialization for scheduler data models.

Handles conversion between dataclasses and JSON-compatible dicts.
Datetimes cross the boundary as ISO-8601 strings, times of day as
"HH:MM" strings.
"""

import json
import re
from datetime import datetime
from typing import Any

from ..core.clock import is_valid_hhmm
from ..core.catalog import protocol_from_dict
from ..core.models import (
    ANCHORS,
    CHRONOTYPES,
    DeferralDecision,
    DependentProtocol,
    PhysiologicalState,
    Protocol,
    ProtocolSchedule,
    ReactiveRecommendation,
    ScheduledAction,
    SessionRecord,
    Timeline,
    UserPatterns,
    UserTimeAnchors,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_hhmm(value: Any, name: str) -> str:
    """
    Validate an "HH:MM" time-of-day string.

    Raises:
        ValidationError: If the value is not a valid 24-hour time
    """
    if not isinstance(value, str) or not is_valid_hhmm(value):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected HH:MM (24-hour)")
    return value


def validate_datetime(value: Any, name: str) -> datetime:
    """
    Parse an ISO-8601 datetime string.

    Raises:
        ValidationError: If the value is not an ISO datetime
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {name}: {value!r}. Expected ISO-8601 datetime")
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}. Expected ISO-8601 datetime") from e


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_range(value: int | float, name: str, low: float, high: float) -> int | float:
    """Validate that a number lies within [low, high]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low:g} and {high:g}, got {value}")
    return value


def _optional_hhmm(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return validate_hhmm(value, key)


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =============================================================================
# INPUTS
# =============================================================================


def dict_to_anchors(data: dict[str, Any]) -> UserTimeAnchors:
    """
    Convert dict to UserTimeAnchors.

    ``target_bed_time`` (ISO datetime) is required; everything else is
    optional and falls back to the model defaults.

    Raises:
        ValidationError: If data is invalid
    """
    if "target_bed_time" not in data:
        raise ValidationError("Anchors missing required field: target_bed_time")

    target_bed_time = validate_datetime(data["target_bed_time"], "target_bed_time")
    wake_time_today = None
    if data.get("wake_time_today") is not None:
        wake_time_today = validate_datetime(data["wake_time_today"], "wake_time_today")

    chronotype = data.get("chronotype", "bear")
    if chronotype not in CHRONOTYPES:
        raise ValidationError(
            f"Invalid chronotype: {chronotype}. Must be one of {CHRONOTYPES}"
        )

    return UserTimeAnchors(
        target_bed_time=target_bed_time,
        wake_time_today=wake_time_today,
        typical_wake_time=validate_hhmm(data.get("typical_wake_time", "07:30"), "typical_wake_time"),
        typical_bed_time=validate_hhmm(data.get("typical_bed_time", "23:00"), "typical_bed_time"),
        work_start_time=_optional_hhmm(data, "work_start_time"),
        work_end_time=_optional_hhmm(data, "work_end_time"),
        training_time=_optional_hhmm(data, "training_time"),
        has_training_today=bool(data.get("has_training_today", False)),
        first_meal_time=validate_hhmm(data.get("first_meal_time", "08:00"), "first_meal_time"),
        last_meal_time=validate_hhmm(data.get("last_meal_time", "20:00"), "last_meal_time"),
        chronotype=chronotype,
    )


def anchors_to_dict(anchors: UserTimeAnchors) -> dict[str, Any]:
    """Convert UserTimeAnchors to JSON-compatible dict."""
    return {
        "target_bed_time": _dt(anchors.target_bed_time),
        "wake_time_today": _dt(anchors.wake_time_today),
        "typical_wake_time": anchors.typical_wake_time,
        "typical_bed_time": anchors.typical_bed_time,
        "work_start_time": anchors.work_start_time,
        "work_end_time": anchors.work_end_time,
        "training_time": anchors.training_time,
        "has_training_today": anchors.has_training_today,
        "first_meal_time": anchors.first_meal_time,
        "last_meal_time": anchors.last_meal_time,
        "chronotype": anchors.chronotype,
    }


def dict_to_session_record(data: dict[str, Any]) -> SessionRecord:
    """
    Convert dict to SessionRecord.

    time_of_day is passed through unchecked: an unusable time only keeps
    the session off the timeline.

    Raises:
        ValidationError: If id is missing or duration is negative
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Session must be an object, got {type(data).__name__}")
    if data.get("id") in (None, ""):
        raise ValidationError("Session missing required field: id")
    duration = data.get("duration_minutes")
    if duration is not None:
        validate_non_negative(duration, "duration_minutes")

    return SessionRecord(
        id=str(data["id"]),
        title=str(data.get("title") or "Training Session"),
        time_of_day=data.get("time_of_day"),
        duration_minutes=int(duration) if duration is not None else None,
        mandatory=bool(data.get("mandatory", False)),
        completed=bool(data.get("completed", False)),
        session_type=str(data.get("session_type", "training")),
        description=data.get("description"),
    )


def dict_to_protocol(data: dict[str, Any]) -> Protocol:
    """
    Convert dict to Protocol.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Protocol must be an object, got {type(data).__name__}")
    if data.get("relative_to") not in ANCHORS:
        raise ValidationError(
            f"Invalid relative_to: {data.get('relative_to')!r}. Must be one of {ANCHORS}"
        )
    try:
        return protocol_from_dict(data)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def protocol_to_dict(protocol: Protocol) -> dict[str, Any]:
    """Convert Protocol to JSON-compatible dict (same shape as the YAML)."""
    d: dict[str, Any] = {
        "id": protocol.id,
        "name": protocol.name,
        "description": protocol.description,
        "domain": protocol.domain,
        "relative_to": protocol.relative_to,
        "offset_minutes": protocol.offset_minutes,
        "window_minutes": protocol.window_minutes,
        "priority": protocol.priority,
        "is_skippable": protocol.is_skippable,
        "duration_minutes": protocol.duration_minutes,
    }
    # Only include conditions that are set
    if protocol.only_if_training:
        d["only_if_training"] = True
    if protocol.only_if_no_training:
        d["only_if_no_training"] = True
    if protocol.min_recovery_score is not None:
        d["min_recovery_score"] = protocol.min_recovery_score
    return d


def dict_to_patterns(data: dict[str, Any]) -> UserPatterns:
    """
    Convert dict to UserPatterns.

    Raises:
        ValidationError: If data is invalid
    """
    for key in ("avg_sleep_duration", "wake_buffer_hours", "target_sleep_hours"):
        if key in data:
            validate_non_negative(data[key], key)
    try:
        return UserPatterns(
            avg_bedtime=validate_hhmm(data.get("avg_bedtime", "23:00"), "avg_bedtime"),
            avg_wake_time=validate_hhmm(data.get("avg_wake_time", "07:00"), "avg_wake_time"),
            avg_sleep_duration=float(data.get("avg_sleep_duration", 8.0)),
            chronotype=data.get("chronotype", "flexible"),
            wake_buffer_hours=float(data.get("wake_buffer_hours", 2.0)),
            target_sleep_hours=float(data.get("target_sleep_hours", 8.0)),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def dict_to_state(data: dict[str, Any]) -> PhysiologicalState:
    """
    Convert dict to PhysiologicalState.

    Missing keys become None (not measured).

    Raises:
        ValidationError: If a score is out of range
    """
    limits = {"readiness_score": 100, "stress_level": 10, "recovery_score": 100}
    values: dict[str, float | None] = {}
    for key, high in limits.items():
        value = data.get(key)
        if value is not None:
            validate_range(value, key, 0, high)
            value = float(value)
        values[key] = value
    return PhysiologicalState(**values)


# =============================================================================
# OUTPUTS
# =============================================================================


def scheduled_action_to_dict(action: ScheduledAction) -> dict[str, Any]:
    """Convert ScheduledAction to JSON-compatible dict."""
    return {
        "id": action.id,
        "protocol": protocol_to_dict(action.protocol),
        "scheduled_time": _dt(action.scheduled_time),
        "window_end": _dt(action.window_end),
        "is_active": action.is_active,
        "is_completed": action.is_completed,
        "is_skipped": action.is_skipped,
        "is_upcoming": action.is_upcoming,
        "is_missed": action.is_missed,
        "relative_label": action.relative_label,
        "anchor_resolved": action.anchor_resolved,
        "session_id": action.session_id,
    }


def timeline_to_dict(timeline: Timeline) -> dict[str, Any]:
    """
    Convert Timeline to JSON-compatible dict.

    Segments list action ids only; full actions live under all_actions.
    """
    return {
        "date": timeline.date.isoformat(),
        "generated_at": _dt(timeline.generated_at),
        "anchors": anchors_to_dict(timeline.anchors),
        "segments": {
            name: [a.id for a in actions] for name, actions in timeline.segments.items()
        },
        "all_actions": [scheduled_action_to_dict(a) for a in timeline.all_actions],
        "current_action": timeline.current_action.id if timeline.current_action else None,
        "next_action": timeline.next_action.id if timeline.next_action else None,
        "unresolved_anchors": sorted(timeline.unresolved_anchors),
    }


def protocol_schedule_to_dict(schedule: ProtocolSchedule) -> dict[str, Any]:
    """Convert ProtocolSchedule to JSON-compatible dict."""
    return {
        "bedtime": schedule.bedtime,
        "wind_down": schedule.wind_down,
        "wake_time": schedule.wake_time,
        "morning_light": schedule.morning_light,
        "pre_fuel": schedule.pre_fuel,
        "neural_prep": schedule.neural_prep,
        "session": schedule.session,
        "post_session": schedule.post_session,
    }


def dependent_protocol_to_dict(protocol: DependentProtocol) -> dict[str, Any]:
    """Convert DependentProtocol to JSON-compatible dict."""
    return {
        "id": protocol.id,
        "title": protocol.title,
        "time_of_day": protocol.time_of_day,
        "duration_minutes": protocol.duration_minutes,
        "category": protocol.category,
        "is_flexible": protocol.is_flexible,
        "depends_on": protocol.depends_on,
        "reason": protocol.reason,
        "rationale": protocol.rationale,
        "offset_from_session_minutes": protocol.offset_from_session_minutes,
    }


def deferral_to_dict(decision: DeferralDecision) -> dict[str, Any]:
    """Convert DeferralDecision to JSON-compatible dict."""
    return {
        "should_defer": decision.should_defer,
        "reason": decision.reason,
        "suggested_time": decision.suggested_time,
    }


def recommendation_to_dict(recommendation: ReactiveRecommendation) -> dict[str, Any]:
    """Convert ReactiveRecommendation to JSON-compatible dict."""
    return {
        "action": recommendation.action,
        "urgency": recommendation.urgency,
        "reason": recommendation.reason,
    }


def to_json(data: Any) -> str:
    """Dump a serialized structure the way the CLI prints it."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def parse_session_option(text: str, session_id: str) -> SessionRecord:
    """
    Parse a command-line session string.

    Format:
        TITLE@HH:MM[/MIN][!]   e.g. "Strength@09:00/75!"

    ``/MIN`` sets the duration (default 60 min at schedule time); a
    trailing ``!`` marks the session mandatory.

    Args:
        text: Session string to parse
        session_id: Id assigned to the resulting record

    Returns:
        SessionRecord

    Raises:
        ValidationError: If format is invalid
    """
    match = re.match(
        r"^(?P<title>[^@]+)@(?P<time>\d{1,2}:\d{2})(?:/(?P<minutes>\d+))?(?P<mandatory>!)?$",
        text.strip(),
    )
    if match is None:
        raise ValidationError(
            f"Invalid session: {text!r}. Expected TITLE@HH:MM[/MIN][!], e.g. 'Strength@09:00/75!'"
        )

    time_of_day = validate_hhmm(match.group("time"), "session time")
    minutes = match.group("minutes")
    return SessionRecord(
        id=session_id,
        title=match.group("title").strip(),
        time_of_day=time_of_day,
        duration_minutes=int(minutes) if minutes is not None else None,
        mandatory=match.group("mandatory") is not None,
    )
