"""Profile commands: chronotype."""

from typing import Annotated

import typer

from ...core.anchors import detect_chronotype
from ...io.serializers import ValidationError, to_json, validate_hhmm
from .. import views
from ..app import JsonOption, app

_DESCRIPTIONS = {
    "lion": "Early riser. Put demanding work and training in the morning.",
    "bear": "Follows the sun. Peak focus mid-morning, train late morning or afternoon.",
    "wolf": "Late chronotype. Protect the morning, train in the late afternoon or evening.",
    "dolphin": "Light, irregular sleeper. Keep a strict wind-down routine.",
}


@app.command()
def chronotype(
    wake: Annotated[str, typer.Argument(help="Average wake time HH:MM")],
    sleep: Annotated[str, typer.Argument(help="Average sleep time HH:MM")],
    onset: Annotated[
        float,
        typer.Option("--onset", min=0, help="Average minutes to fall asleep"),
    ] = 15,
    json_out: JsonOption = False,
) -> None:
    """
    Classify a sleep pattern as lion, bear, wolf or dolphin.
    """
    try:
        validate_hhmm(wake, "wake time")
        validate_hhmm(sleep, "sleep time")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    result = detect_chronotype(wake, sleep, onset)

    if json_out:
        print(to_json({"chronotype": result}))
        return

    views.console.print(f"Chronotype: [bold]{result}[/bold]")
    views.print_info(_DESCRIPTIONS[result])
