"""Shared Typer app object, shared option types, and catalog/config utilities."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.logging import RichHandler

from ..core.catalog import ProtocolCatalog, default_catalog
from ..core.engine.config_loader import load_scheduler_config, patterns_from_config
from ..core.models import UserPatterns
from ..io.serializers import ValidationError, dict_to_patterns
from . import views

# Shared --json option type used across all commands
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="anchor-scheduler",
    help="Anchor-relative daily protocol scheduler: wake, sleep, meals and training drive the day.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show scheduler debug logging"),
    ] = False,
) -> None:
    """
    Anchor-relative protocol scheduler.
    """
    if verbose:
        logger = logging.getLogger("anchor_scheduler")
        logger.setLevel(logging.DEBUG)
        if not any(isinstance(h, RichHandler) for h in logger.handlers):
            logger.addHandler(RichHandler(console=views.console, show_path=False))


def get_catalog() -> ProtocolCatalog:
    """Load the protocol catalog or exit with an error."""
    try:
        return default_catalog()
    except RuntimeError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def read_json_file(path: Path, expected: type, what: str) -> Any:
    """
    Read a JSON document of the expected top-level type.

    Raises:
        ValidationError: If the file is unreadable, not JSON or the wrong shape
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ValidationError(f"Cannot read {what} file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"{what.capitalize()} file {path} is not valid JSON: {e}") from e
    if not isinstance(data, expected):
        kind = "an object" if expected is dict else "a list"
        raise ValidationError(f"{what.capitalize()} file {path} must contain {kind}")
    return data


def get_patterns(
    bedtime: str | None = None,
    wake_time: str | None = None,
    wake_buffer_hours: float | None = None,
    target_sleep_hours: float | None = None,
    patterns_file: Path | None = None,
) -> UserPatterns:
    """
    Configured sleep/wake patterns with command-line overrides applied.

    A patterns file replaces the configured patterns; single options still
    win over it.  Exits with an error when anything is invalid.
    """
    try:
        if patterns_file is not None:
            base = dict_to_patterns(read_json_file(patterns_file, dict, "patterns"))
        else:
            base = patterns_from_config(load_scheduler_config())
        return UserPatterns(
            avg_bedtime=bedtime or base.avg_bedtime,
            avg_wake_time=wake_time or base.avg_wake_time,
            avg_sleep_duration=base.avg_sleep_duration,
            chronotype=base.chronotype,
            wake_buffer_hours=(
                wake_buffer_hours if wake_buffer_hours is not None else base.wake_buffer_hours
            ),
            target_sleep_hours=(
                target_sleep_hours if target_sleep_hours is not None else base.target_sleep_hours
            ),
        )
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
