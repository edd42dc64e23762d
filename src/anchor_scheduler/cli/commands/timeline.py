"""Timeline command: build and show today's anchor-relative schedule."""

import dataclasses
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.anchors import default_anchors
from ...core.clock import at_time_of_day
from ...core.engine.config_loader import (
    anchor_defaults_from_config,
    default_recovery_score,
    load_scheduler_config,
)
from ...core.models import Protocol, SessionRecord
from ...core.timeline import generate_timeline
from ...io.serializers import (
    ValidationError,
    dict_to_anchors,
    dict_to_protocol,
    dict_to_session_record,
    parse_session_option,
    timeline_to_dict,
    to_json,
    validate_hhmm,
)
from .. import views
from ..app import JsonOption, app, get_catalog, read_json_file


@app.command()
def timeline(
    wake: Annotated[
        Optional[str],
        typer.Option("--wake", help="Typical wake time HH:MM"),
    ] = None,
    bed: Annotated[
        Optional[str],
        typer.Option("--bed", help="Typical / target bedtime HH:MM"),
    ] = None,
    wake_today: Annotated[
        Optional[str],
        typer.Option("--wake-today", help="Actual wake time today HH:MM"),
    ] = None,
    training_time: Annotated[
        Optional[str],
        typer.Option("--training-time", "-t", help="Training time HH:MM (marks a training day)"),
    ] = None,
    first_meal: Annotated[
        Optional[str],
        typer.Option("--first-meal", help="First meal HH:MM"),
    ] = None,
    last_meal: Annotated[
        Optional[str],
        typer.Option("--last-meal", help="Last meal HH:MM"),
    ] = None,
    recovery: Annotated[
        Optional[float],
        typer.Option("--recovery", "-r", min=0, max=100, help="Recovery score 0-100"),
    ] = None,
    sessions: Annotated[
        Optional[list[str]],
        typer.Option("--session", "-s", help="Session TITLE@HH:MM[/MIN][!] (repeatable)"),
    ] = None,
    completed: Annotated[
        Optional[list[str]],
        typer.Option("--done", help="Protocol id already completed today (repeatable)"),
    ] = None,
    skipped: Annotated[
        Optional[list[str]],
        typer.Option("--skip", help="Protocol id skipped today (repeatable)"),
    ] = None,
    now_time: Annotated[
        Optional[str],
        typer.Option("--now", help="Pretend the current time is HH:MM today"),
    ] = None,
    anchors_file: Annotated[
        Optional[Path],
        typer.Option("--anchors-file", "-a", help="JSON file with a full anchors snapshot"),
    ] = None,
    sessions_file: Annotated[
        Optional[Path],
        typer.Option("--sessions-file", help="JSON list of session records"),
    ] = None,
    protocols_file: Annotated[
        Optional[Path],
        typer.Option("--protocols-file", help="JSON list of extra protocols for today"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show today's protocol timeline.
    """
    catalog = get_catalog()
    config = load_scheduler_config()

    try:
        now = datetime.now()
        if now_time is not None:
            now = at_time_of_day(now.date(), validate_hhmm(now_time, "--now"))

        session_records: list[SessionRecord] = [
            parse_session_option(text, str(i)) for i, text in enumerate(sessions or [], 1)
        ]
        if sessions_file is not None:
            session_records.extend(
                dict_to_session_record(item)
                for item in read_json_file(sessions_file, list, "sessions")
            )

        extra_protocols: list[Protocol] = []
        if protocols_file is not None:
            extra_protocols = [
                dict_to_protocol(item)
                for item in read_json_file(protocols_file, list, "protocols")
            ]

        if anchors_file is not None:
            anchors = dict_to_anchors(read_json_file(anchors_file, dict, "anchors"))
        else:
            defaults = anchor_defaults_from_config(config)
            for value, name in ((wake, "--wake"), (bed, "--bed"),
                                (first_meal, "--first-meal"), (last_meal, "--last-meal")):
                if value is not None:
                    validate_hhmm(value, name)
            anchors = default_anchors(
                now.date(),
                typical_wake_time=wake or defaults["typical_wake_time"],
                typical_bed_time=bed or defaults["typical_bed_time"],
                wake_time_today=(
                    at_time_of_day(now.date(), validate_hhmm(wake_today, "--wake-today"))
                    if wake_today is not None
                    else None
                ),
                sleep_onset_minutes=defaults["sleep_onset_minutes"],
                training_session=session_records[0] if session_records else None,
                first_meal_time=first_meal or defaults["first_meal_time"],
                last_meal_time=last_meal or defaults["last_meal_time"],
            )

        if training_time is not None:
            anchors = dataclasses.replace(
                anchors,
                training_time=validate_hhmm(training_time, "--training-time"),
                has_training_today=True,
            )
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    result = generate_timeline(
        anchors,
        recovery_score=recovery if recovery is not None else default_recovery_score(config),
        sessions=session_records,
        extra_protocols=extra_protocols,
        catalog=catalog,
        now=now,
        completed_ids=completed or (),
        skipped_ids=skipped or (),
    )

    if json_out:
        print(to_json(timeline_to_dict(result)))
        return

    views.print_timeline(result)
