"""
State-reactive recommendations.

Proposes short ad-hoc actions (nap, sauna, breathing) from the current
hour and a few physiological signals.  Independent of the catalog and
never merged into a Timeline.
"""

from .config import (
    BREATHING_STRESS_ABOVE,
    BREATHING_URGENCY,
    DEFAULT_READINESS_SCORE,
    DEFAULT_STATE_RECOVERY_SCORE,
    DEFAULT_STRESS_LEVEL,
    NAP_READINESS_BELOW,
    NAP_STRESS_ABOVE,
    NAP_URGENCY,
    NAP_WINDOW_HOURS,
    SAUNA_RECOVERY_BELOW,
    SAUNA_URGENCY,
    SAUNA_WINDOW_HOURS,
)
from .models import PhysiologicalState, ReactiveRecommendation


def _fmt(value: float) -> str:
    return f"{value:g}"


def get_state_reactive_recommendations(
    state: PhysiologicalState,
    current_hour: int,
) -> list[ReactiveRecommendation]:
    """
    Suggest reactive actions for the current state.

    Missing signals default to readiness 50, stress 5, recovery 50.
    Results come in a fixed order: nap, sauna, breathing.
    """
    readiness = state.readiness_score if state.readiness_score is not None else DEFAULT_READINESS_SCORE
    stress = state.stress_level if state.stress_level is not None else DEFAULT_STRESS_LEVEL
    recovery = state.recovery_score if state.recovery_score is not None else DEFAULT_STATE_RECOVERY_SCORE

    recommendations: list[ReactiveRecommendation] = []

    # Midday fatigue
    nap_start, nap_end = NAP_WINDOW_HOURS
    if nap_start <= current_hour <= nap_end:
        if readiness < NAP_READINESS_BELOW or stress > NAP_STRESS_ABOVE:
            recommendations.append(
                ReactiveRecommendation(
                    action="Power Nap (20 min)",
                    urgency=NAP_URGENCY,
                    reason=f"Readiness at {_fmt(readiness)}%, stress {_fmt(stress)}/10. "
                    "A short nap restores afternoon alertness.",
                )
            )

    # Evening recovery
    sauna_start, sauna_end = SAUNA_WINDOW_HOURS
    if sauna_start <= current_hour <= sauna_end and recovery < SAUNA_RECOVERY_BELOW:
        recommendations.append(
            ReactiveRecommendation(
                action="Evening Sauna (15 min)",
                urgency=SAUNA_URGENCY,
                reason=f"Recovery at {_fmt(recovery)}%. Heat exposure supports recovery.",
            )
        )

    if stress > BREATHING_STRESS_ABOVE:
        recommendations.append(
            ReactiveRecommendation(
                action="Box Breathing (5 min)",
                urgency=BREATHING_URGENCY,
                reason=f"Stress at {_fmt(stress)}/10. Parasympathetic activation needed.",
            )
        )

    return recommendations
