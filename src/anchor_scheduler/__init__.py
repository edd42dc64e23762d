"""
anchor-scheduler: anchor-relative daily protocol scheduling.

Protocols are defined relative to a person's wake, sleep, meal and
training anchors and resolved into a dated, segmented timeline.
"""

from .core.anchors import (
    default_anchors,
    detect_chronotype,
    relative_label,
    resolve,
    resolve_anchor,
)
from .core.catalog import ProtocolCatalog, default_catalog
from .core.deferral import should_defer_action
from .core.models import (
    DEFAULT_PATTERNS,
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
from .core.reactive import get_state_reactive_recommendations
from .core.session_stack import calculate_protocol_timings, generate_session_protocol_stack
from .core.timeline import generate_timeline

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_PATTERNS",
    "DeferralDecision",
    "DependentProtocol",
    "PhysiologicalState",
    "Protocol",
    "ProtocolCatalog",
    "ProtocolSchedule",
    "ReactiveRecommendation",
    "ScheduledAction",
    "SessionRecord",
    "Timeline",
    "UserPatterns",
    "UserTimeAnchors",
    "calculate_protocol_timings",
    "default_anchors",
    "default_catalog",
    "detect_chronotype",
    "generate_session_protocol_stack",
    "generate_timeline",
    "get_state_reactive_recommendations",
    "relative_label",
    "resolve",
    "resolve_anchor",
    "should_defer_action",
]
