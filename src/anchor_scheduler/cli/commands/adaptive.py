"""Adaptive commands: stack, defer, reactive."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.deferral import should_defer_action
from ...core.models import SessionRecord
from ...core.reactive import get_state_reactive_recommendations
from ...core.session_stack import calculate_protocol_timings, generate_session_protocol_stack
from ...io.serializers import (
    ValidationError,
    deferral_to_dict,
    dependent_protocol_to_dict,
    dict_to_state,
    protocol_schedule_to_dict,
    recommendation_to_dict,
    to_json,
    validate_hhmm,
)
from .. import views
from ..app import JsonOption, app, get_patterns, read_json_file

HourOption = Annotated[
    int,
    typer.Option("--hour", "-H", min=0, max=23, help="Hour of day 0-23"),
]

PatternsFileOption = Annotated[
    Optional[Path],
    typer.Option("--patterns-file", help="JSON file with sleep/wake patterns"),
]


@app.command()
def stack(
    session_time: Annotated[str, typer.Argument(help="Session start HH:MM")],
    title: Annotated[
        str,
        typer.Option("--title", help="Session title used in the explanations"),
    ] = "Training Session",
    buffer_hours: Annotated[
        Optional[float],
        typer.Option("--buffer", min=0, help="Hours awake before the session"),
    ] = None,
    sleep_hours: Annotated[
        Optional[float],
        typer.Option("--sleep-hours", min=0, help="Sleep target in hours"),
    ] = None,
    patterns_file: PatternsFileOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Work the day backwards from a training session.
    """
    try:
        validate_hhmm(session_time, "session time")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    patterns = get_patterns(
        wake_buffer_hours=buffer_hours,
        target_sleep_hours=sleep_hours,
        patterns_file=patterns_file,
    )
    session = SessionRecord(id="cli", title=title, time_of_day=session_time)
    schedule = calculate_protocol_timings(session_time, patterns)
    protocols = generate_session_protocol_stack(session, patterns)

    if json_out:
        print(to_json({
            "schedule": protocol_schedule_to_dict(schedule),
            "protocols": [dependent_protocol_to_dict(p) for p in protocols],
        }))
        return

    views.print_session_stack(session_time, schedule, protocols)


@app.command()
def defer(
    category: Annotated[str, typer.Argument(help="Action category, e.g. sauna, training, heavy_training")],
    hour: HourOption,
    bed: Annotated[
        Optional[str],
        typer.Option("--bed", help="Habitual bedtime HH:MM"),
    ] = None,
    wake: Annotated[
        Optional[str],
        typer.Option("--wake", help="Habitual wake time HH:MM"),
    ] = None,
    patterns_file: PatternsFileOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Check whether an action should wait.
    """
    try:
        if bed is not None:
            validate_hhmm(bed, "--bed")
        if wake is not None:
            validate_hhmm(wake, "--wake")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    patterns = get_patterns(bedtime=bed, wake_time=wake, patterns_file=patterns_file)
    decision = should_defer_action(category, hour, patterns)

    if json_out:
        print(to_json(deferral_to_dict(decision)))
        return

    views.print_deferral(category, hour, decision)


@app.command()
def reactive(
    hour: HourOption,
    readiness: Annotated[
        Optional[float],
        typer.Option("--readiness", min=0, max=100, help="Readiness score 0-100"),
    ] = None,
    stress: Annotated[
        Optional[float],
        typer.Option("--stress", min=0, max=10, help="Stress level 0-10"),
    ] = None,
    recovery: Annotated[
        Optional[float],
        typer.Option("--recovery", min=0, max=100, help="Recovery score 0-100"),
    ] = None,
    state_file: Annotated[
        Optional[Path],
        typer.Option("--state-file", help="JSON file with readiness, stress and recovery"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Suggest ad-hoc actions for the current state.

    Options override values read from --state-file.
    """
    try:
        data = read_json_file(state_file, dict, "state") if state_file is not None else {}
        for key, value in (
            ("readiness_score", readiness),
            ("stress_level", stress),
            ("recovery_score", recovery),
        ):
            if value is not None:
                data[key] = value
        state = dict_to_state(data)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    recommendations = get_state_reactive_recommendations(state, hour)

    if json_out:
        print(to_json([recommendation_to_dict(r) for r in recommendations]))
        return

    views.print_recommendations(recommendations)
