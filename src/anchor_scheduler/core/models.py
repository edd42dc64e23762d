"""
Data models for anchor-scheduler.

Catalog entries (Protocol) are immutable and validated at construction.
Per-user inputs (UserTimeAnchors, SessionRecord, UserPatterns,
PhysiologicalState) are supplied fresh on every call.  ScheduledAction,
Timeline and the session-stack outputs are derived values that are
regenerated each time and never persisted by the scheduler itself.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import ClassVar, Literal

from .clock import is_valid_hhmm
from .config import DEFAULT_TARGET_SLEEP_HOURS, DEFAULT_WAKE_BUFFER_HOURS

Anchor = Literal["wake", "sleep", "training", "first_meal", "last_meal"]
Domain = Literal["longevity", "recovery", "fuel", "mind", "training", "sleep"]
Priority = Literal["critical", "high", "medium", "low"]
Chronotype = Literal["lion", "bear", "wolf", "dolphin"]
PatternChronotype = Literal["early_bird", "night_owl", "flexible"]
DaySegment = Literal["morning", "midday", "evening", "wind_down"]
DependsOn = Literal["bedtime", "session"]

ANCHORS: tuple[str, ...] = ("wake", "sleep", "training", "first_meal", "last_meal")
DOMAINS: tuple[str, ...] = ("longevity", "recovery", "fuel", "mind", "training", "sleep")
PRIORITIES: tuple[str, ...] = ("critical", "high", "medium", "low")
CHRONOTYPES: tuple[str, ...] = ("lion", "bear", "wolf", "dolphin")


def _require_hhmm(value: str | None, name: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not is_valid_hhmm(value):
        raise ValueError(f"{name} must be an HH:MM time of day, got {value!r}")


@dataclass(frozen=True)
class Protocol:
    """
    A catalog-defined behavioural protocol with a relative schedule.

    offset_minutes is signed: negative means before the anchor.
    window_minutes of 0 makes the protocol a point-in-time reminder.
    """

    id: str
    name: str
    description: str
    domain: Domain
    relative_to: Anchor
    offset_minutes: int
    window_minutes: int
    priority: Priority
    is_skippable: bool
    duration_minutes: int
    only_if_training: bool = False
    only_if_no_training: bool = False
    min_recovery_score: float | None = None

    def __post_init__(self) -> None:
        """Validate protocol definition."""
        if not self.id:
            raise ValueError("Protocol id must be non-empty")
        if self.domain not in DOMAINS:
            raise ValueError(f"Invalid domain: {self.domain!r}")
        if self.relative_to not in ANCHORS:
            raise ValueError(f"Invalid anchor: {self.relative_to!r}")
        if self.priority not in PRIORITIES:
            raise ValueError(f"Invalid priority: {self.priority!r}")
        if self.window_minutes < 0:
            raise ValueError("window_minutes must be non-negative")
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")
        if self.only_if_training and self.only_if_no_training:
            raise ValueError(
                f"Protocol {self.id!r} cannot require both training and no training"
            )

    def applies(self, has_training_today: bool, recovery_score: float) -> bool:
        """Return True if the protocol's conditions hold for today."""
        if self.only_if_training and not has_training_today:
            return False
        if self.only_if_no_training and has_training_today:
            return False
        if self.min_recovery_score is not None and recovery_score < self.min_recovery_score:
            return False
        return True


@dataclass
class UserTimeAnchors:
    """
    Per-user, per-day anchor snapshot.

    ``target_bed_time`` is always present.  ``wake_time_today``, when set,
    overrides ``typical_wake_time`` for every wake-anchored protocol.
    """

    target_bed_time: datetime
    wake_time_today: datetime | None = None

    # Patterns (7-day averages)
    typical_wake_time: str = "07:30"
    typical_bed_time: str = "23:00"

    # Work/life constraints
    work_start_time: str | None = None
    work_end_time: str | None = None

    # Training
    training_time: str | None = None
    has_training_today: bool = False

    # Eating window
    first_meal_time: str = "08:00"
    last_meal_time: str = "20:00"

    chronotype: Chronotype = "bear"

    def __post_init__(self) -> None:
        """Validate anchor data."""
        if not isinstance(self.target_bed_time, datetime):
            raise ValueError("target_bed_time must be a datetime")
        if self.wake_time_today is not None and not isinstance(self.wake_time_today, datetime):
            raise ValueError("wake_time_today must be a datetime or None")
        _require_hhmm(self.typical_wake_time, "typical_wake_time")
        _require_hhmm(self.typical_bed_time, "typical_bed_time")
        _require_hhmm(self.work_start_time, "work_start_time", optional=True)
        _require_hhmm(self.work_end_time, "work_end_time", optional=True)
        _require_hhmm(self.training_time, "training_time", optional=True)
        _require_hhmm(self.first_meal_time, "first_meal_time")
        _require_hhmm(self.last_meal_time, "last_meal_time")
        if self.chronotype not in CHRONOTYPES:
            raise ValueError(f"Invalid chronotype: {self.chronotype!r}")


@dataclass
class SessionRecord:
    """
    An externally tracked training session.

    time_of_day is deliberately unvalidated: sessions without a usable
    time are dropped by the merger rather than rejected.
    """

    id: str
    title: str = "Training Session"
    time_of_day: str | None = None
    duration_minutes: int | None = None
    mandatory: bool = False
    completed: bool = False
    session_type: str = "training"
    description: str | None = None


@dataclass
class ScheduledAction:
    """One resolved, dated instance of a protocol or merged session."""

    id: str
    protocol: Protocol
    scheduled_time: datetime
    window_end: datetime
    is_active: bool
    is_completed: bool = False
    is_skipped: bool = False
    relative_label: str = ""
    is_upcoming: bool = False
    is_missed: bool = False
    anchor_resolved: bool = True
    session_id: str | None = None

    def __post_init__(self) -> None:
        if self.window_end < self.scheduled_time:
            raise ValueError("window_end must not precede scheduled_time")

    @property
    def window(self) -> timedelta:
        """Length of the actionable window."""
        return self.window_end - self.scheduled_time

    @property
    def is_session(self) -> bool:
        """True for actions synthesized from a training session."""
        return self.session_id is not None


@dataclass
class Timeline:
    """Top-level output of generate_timeline()."""

    date: date
    generated_at: datetime
    anchors: UserTimeAnchors
    morning: list[ScheduledAction] = field(default_factory=list)
    midday: list[ScheduledAction] = field(default_factory=list)
    evening: list[ScheduledAction] = field(default_factory=list)
    wind_down: list[ScheduledAction] = field(default_factory=list)
    all_actions: list[ScheduledAction] = field(default_factory=list)
    current_action: ScheduledAction | None = None
    next_action: ScheduledAction | None = None

    _URGENT_PRIORITIES: ClassVar[frozenset[str]] = frozenset({"critical", "high"})

    @property
    def segments(self) -> dict[str, list[ScheduledAction]]:
        """Day-segment buckets in chronological order."""
        return {
            "morning": self.morning,
            "midday": self.midday,
            "evening": self.evening,
            "wind_down": self.wind_down,
        }

    @property
    def unresolved_anchors(self) -> set[str]:
        """Anchors that could not be resolved and fell back to generation time."""
        return {
            a.protocol.relative_to for a in self.all_actions if not a.anchor_resolved
        }

    @property
    def urgent_actions(self) -> list[ScheduledAction]:
        """Critical/high-priority actions that are open now or still ahead."""
        return [
            a
            for a in self.all_actions
            if a.protocol.priority in self._URGENT_PRIORITIES
            and (a.is_active or a.is_upcoming)
            and not a.is_completed
            and not a.is_skipped
        ]

    def find(self, protocol_id: str) -> ScheduledAction | None:
        """Return the first action for the given protocol id, if scheduled."""
        return next((a for a in self.all_actions if a.protocol.id == protocol_id), None)


@dataclass
class UserPatterns:
    """
    Learned sleep/wake habits used by the session stack and deferral guard.

    wake_buffer_hours is how long before a session the user needs to be
    awake; target_sleep_hours is the sleep opportunity chained before that.
    """

    avg_bedtime: str = "23:00"
    avg_wake_time: str = "07:00"
    avg_sleep_duration: float = 8.0
    chronotype: PatternChronotype = "flexible"
    wake_buffer_hours: float = DEFAULT_WAKE_BUFFER_HOURS
    target_sleep_hours: float = DEFAULT_TARGET_SLEEP_HOURS

    def __post_init__(self) -> None:
        """Validate pattern data."""
        _require_hhmm(self.avg_bedtime, "avg_bedtime")
        _require_hhmm(self.avg_wake_time, "avg_wake_time")
        if self.chronotype not in ("early_bird", "night_owl", "flexible"):
            raise ValueError(f"Invalid pattern chronotype: {self.chronotype!r}")
        if self.wake_buffer_hours < 0:
            raise ValueError("wake_buffer_hours must be non-negative")
        if self.target_sleep_hours < 0:
            raise ValueError("target_sleep_hours must be non-negative")


DEFAULT_PATTERNS = UserPatterns()


@dataclass(frozen=True)
class ProtocolSchedule:
    """Reverse-chained times of day ("HH:MM") around one session."""

    bedtime: str
    wind_down: str
    wake_time: str
    morning_light: str
    pre_fuel: str
    neural_prep: str
    session: str
    post_session: str


@dataclass(frozen=True)
class DependentProtocol:
    """
    A protocol whose time was derived by chaining back from a session.

    depends_on names the link it hangs off ("bedtime" for wind-down,
    "session" for everything else); reason explains the chain.
    """

    id: str
    title: str
    time_of_day: str
    duration_minutes: int
    category: str
    is_flexible: bool
    depends_on: DependsOn
    reason: str
    rationale: str
    offset_from_session_minutes: int

    def at(self, session_start: datetime) -> datetime:
        """Absolute time of this protocol for a concrete session start."""
        return session_start + timedelta(minutes=self.offset_from_session_minutes)


@dataclass(frozen=True)
class DeferralDecision:
    """Veto-and-reschedule verdict from the deferral guard."""

    should_defer: bool
    reason: str | None = None
    suggested_time: str | None = None


@dataclass
class PhysiologicalState:
    """
    Current readiness signals consumed by the reactive overlay.

    Scores are opaque upstream values; None means "not measured".
    """

    readiness_score: float | None = None  # 0-100
    stress_level: float | None = None  # 0-10
    recovery_score: float | None = None  # 0-100


@dataclass(frozen=True)
class ReactiveRecommendation:
    """An ad-hoc action proposed outside the static catalog."""

    action: str
    urgency: int
    reason: str
