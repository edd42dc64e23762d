"""
Daily timeline generation.

Turns the protocol catalog plus a per-user anchor snapshot into a dated,
sorted list of ScheduledAction, merges externally tracked training
sessions into the same list, buckets everything into day segments and
picks the current and next action.

Every step is a pure function of its inputs and one ``now`` instant that
generate_timeline() samples exactly once and threads through, so all
active/upcoming comparisons within one timeline agree.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from .anchors import relative_label, resolve_anchor, wake_base
from .catalog import ProtocolCatalog, default_catalog
from .clock import add_minutes, at_minutes, try_parse_hhmm
from .config import (
    DEFAULT_RECOVERY_SCORE,
    DEFAULT_SESSION_DURATION_MINUTES,
    EVENING_LEAD_HOURS,
    MORNING_SPAN_HOURS,
    SEGMENT_ORDER,
    SESSION_RELATIVE_LABEL,
    WIND_DOWN_LEAD_HOURS,
)
from .models import (
    DaySegment,
    Protocol,
    ScheduledAction,
    SessionRecord,
    Timeline,
    UserTimeAnchors,
)

logger = logging.getLogger(__name__)


# =============================================================================
# FILTERING AND SCHEDULING
# =============================================================================


def filter_applicable(
    protocols: Iterable[Protocol],
    has_training_today: bool,
    recovery_score: float,
) -> list[Protocol]:
    """Drop protocols whose applicability conditions do not hold today."""
    applicable: list[Protocol] = []
    for p in protocols:
        if p.applies(has_training_today, recovery_score):
            applicable.append(p)
        else:
            logger.debug("Protocol %s filtered out by its conditions", p.id)
    return applicable


def _window_flags(
    scheduled: datetime,
    window_end: datetime,
    now: datetime,
    is_completed: bool,
    is_skipped: bool,
) -> tuple[bool, bool, bool]:
    """Return (is_active, is_upcoming, is_missed) relative to now."""
    is_active = scheduled <= now <= window_end
    is_upcoming = scheduled > now
    is_missed = window_end < now and not is_completed and not is_skipped
    return is_active, is_upcoming, is_missed


def schedule_protocol(
    protocol: Protocol,
    anchors: UserTimeAnchors,
    now: datetime,
    *,
    is_completed: bool = False,
    is_skipped: bool = False,
) -> ScheduledAction:
    """
    Resolve one catalog protocol into a dated action.

    scheduled_time = resolve(anchor, offset); window_end adds
    window_minutes.  The active window is inclusive at both ends.
    """
    resolution = resolve_anchor(protocol.relative_to, protocol.offset_minutes, anchors, now)
    scheduled = resolution.time
    window_end = add_minutes(scheduled, protocol.window_minutes)
    is_active, is_upcoming, is_missed = _window_flags(
        scheduled, window_end, now, is_completed, is_skipped
    )

    return ScheduledAction(
        id=f"{protocol.id}_{now.date().isoformat()}",
        protocol=protocol,
        scheduled_time=scheduled,
        window_end=window_end,
        is_active=is_active,
        is_completed=is_completed,
        is_skipped=is_skipped,
        relative_label=relative_label(protocol.relative_to, protocol.offset_minutes),
        is_upcoming=is_upcoming,
        is_missed=is_missed,
        anchor_resolved=resolution.resolved,
    )


# =============================================================================
# SESSION MERGE
# =============================================================================


def session_to_protocol(session: SessionRecord) -> Protocol:
    """
    Synthesize a transient protocol for an external training session.

    The session is itself the training anchor, so the protocol sits at
    offset 0 with a window as long as the session.
    """
    duration = session.duration_minutes
    if duration is None or duration <= 0:
        duration = DEFAULT_SESSION_DURATION_MINUTES
    return Protocol(
        id=f"session_{session.id}",
        name=session.title or "Training Session",
        description=session.description or f"{session.session_type} session",
        domain="training",
        relative_to="training",
        offset_minutes=0,
        window_minutes=duration,
        priority="critical" if session.mandatory else "high",
        is_skippable=not session.mandatory,
        duration_minutes=duration,
    )


def merge_sessions(sessions: Iterable[SessionRecord], now: datetime) -> list[ScheduledAction]:
    """
    Convert timed sessions into scheduled actions on the reference day.

    Sessions without a usable time of day are left out; that is not an
    error.  Order follows the input order.
    """
    reference = now.date()
    merged: list[ScheduledAction] = []

    for session in sessions:
        minutes = try_parse_hhmm(session.time_of_day)
        if minutes is None:
            logger.debug("Session %s has no usable time of day; not merged", session.id)
            continue

        protocol = session_to_protocol(session)
        scheduled = at_minutes(reference, minutes, now.tzinfo)
        window_end = add_minutes(scheduled, protocol.duration_minutes)
        is_completed = bool(session.completed)
        is_active, is_upcoming, is_missed = _window_flags(
            scheduled, window_end, now, is_completed, False
        )

        merged.append(
            ScheduledAction(
                id=f"session_{session.id}_{reference.isoformat()}",
                protocol=protocol,
                scheduled_time=scheduled,
                window_end=window_end,
                is_active=is_active,
                is_completed=is_completed,
                is_skipped=False,
                relative_label=SESSION_RELATIVE_LABEL,
                is_upcoming=is_upcoming,
                is_missed=is_missed,
                session_id=str(session.id),
            )
        )

    return merged


def sort_actions(actions: Iterable[ScheduledAction]) -> list[ScheduledAction]:
    """Sort by scheduled time; equal times keep their insertion order."""
    return sorted(actions, key=lambda a: a.scheduled_time)


# =============================================================================
# DAY SEGMENTS
# =============================================================================


@dataclass(frozen=True)
class DayBoundaries:
    """Anchor-derived edges of the four day segments."""

    morning_end: datetime
    evening_start: datetime
    wind_down_start: datetime

    @classmethod
    def from_anchors(cls, anchors: UserTimeAnchors, now: datetime) -> "DayBoundaries":
        wake = wake_base(anchors, now)
        sleep = anchors.target_bed_time
        return cls(
            morning_end=wake + timedelta(hours=MORNING_SPAN_HOURS),
            evening_start=sleep - timedelta(hours=EVENING_LEAD_HOURS),
            wind_down_start=sleep - timedelta(hours=WIND_DOWN_LEAD_HOURS),
        )

    def segment_for(self, moment: datetime) -> DaySegment:
        """
        Bucket a time; the first matching rule wins.

        wind_down is checked before evening, and both before morning, so
        boundary times go to the later segment.
        """
        if moment >= self.wind_down_start:
            return "wind_down"
        if moment >= self.evening_start:
            return "evening"
        if moment <= self.morning_end:
            return "morning"
        return "midday"


def categorize(
    actions: Iterable[ScheduledAction],
    boundaries: DayBoundaries,
) -> dict[str, list[ScheduledAction]]:
    """Partition actions into morning/midday/evening/wind_down, order kept."""
    buckets: dict[str, list[ScheduledAction]] = {name: [] for name in SEGMENT_ORDER}
    for action in actions:
        buckets[boundaries.segment_for(action.scheduled_time)].append(action)
    return buckets


# =============================================================================
# CURRENT / NEXT
# =============================================================================


def find_current_and_next(
    actions: Sequence[ScheduledAction],
    now: datetime,
) -> tuple[ScheduledAction | None, ScheduledAction | None]:
    """
    Pick the action to do now and the one coming up.

    current: first active action in sort order (overlaps resolve to the
    earliest-inserted).  next: first action strictly after now that is
    neither completed nor skipped.
    """
    current = next((a for a in actions if a.is_active), None)
    upcoming = next(
        (
            a
            for a in actions
            if a.scheduled_time > now and not a.is_completed and not a.is_skipped
        ),
        None,
    )
    return current, upcoming


# =============================================================================
# PUBLIC ENTRY POINT
# =============================================================================


def generate_timeline(
    anchors: UserTimeAnchors,
    recovery_score: float = DEFAULT_RECOVERY_SCORE,
    sessions: Iterable[SessionRecord] = (),
    extra_protocols: Iterable[Protocol] = (),
    *,
    catalog: ProtocolCatalog | None = None,
    now: datetime | None = None,
    completed_ids: Iterable[str] = (),
    skipped_ids: Iterable[str] = (),
) -> Timeline:
    """
    Generate the full anchor-relative timeline for the reference day.

    Args:
        anchors: Today's anchor snapshot
        recovery_score: Opaque 0-100 score gating min_recovery_score protocols
        sessions: External training sessions to merge (untimed ones are skipped)
        extra_protocols: Caller protocols appended after the catalog
        catalog: Protocol catalog; the bundled default when omitted
        now: Generation instant; sampled once from the clock when omitted
        completed_ids: Protocol ids or action ids already done today
        skipped_ids: Protocol ids or action ids the user skipped today

    Returns:
        Timeline with sorted actions, day segments and current/next pointers
    """
    if now is None:
        now = datetime.now()
    if catalog is None:
        catalog = default_catalog()

    completed = set(completed_ids)
    skipped = set(skipped_ids)
    full_catalog = catalog.extended(extra_protocols)
    applicable = filter_applicable(full_catalog, anchors.has_training_today, recovery_score)

    actions: list[ScheduledAction] = []
    for protocol in applicable:
        action_id = f"{protocol.id}_{now.date().isoformat()}"
        actions.append(
            schedule_protocol(
                protocol,
                anchors,
                now,
                is_completed=protocol.id in completed or action_id in completed,
                is_skipped=protocol.id in skipped or action_id in skipped,
            )
        )
    actions.extend(merge_sessions(sessions, now))

    all_actions = sort_actions(actions)
    buckets = categorize(all_actions, DayBoundaries.from_anchors(anchors, now))
    current, upcoming = find_current_and_next(all_actions, now)

    unresolved = {a.protocol.relative_to for a in all_actions if not a.anchor_resolved}
    if unresolved:
        logger.debug("Anchors resolved against generation time: %s", sorted(unresolved))

    return Timeline(
        date=now.date(),
        generated_at=now,
        anchors=anchors,
        morning=buckets["morning"],
        midday=buckets["midday"],
        evening=buckets["evening"],
        wind_down=buckets["wind_down"],
        all_actions=all_actions,
        current_action=current,
        next_action=upcoming,
    )
