"""Catalog command: list the protocol catalog."""

from typing import Annotated, Optional

import typer

from ...io.serializers import protocol_to_dict, to_json
from .. import views
from ..app import JsonOption, app, get_catalog


@app.command("catalog")
def show_catalog(
    domain: Annotated[
        Optional[str],
        typer.Option("--domain", "-d", help="Only show one domain (longevity, fuel, recovery, mind)"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    List the protocol catalog.
    """
    catalog = get_catalog()

    if domain is not None and domain not in catalog.domains():
        views.print_error(
            f"Unknown domain '{domain}'. Available: {', '.join(catalog.domains())}"
        )
        raise typer.Exit(1)

    protocols = catalog.by_domain(domain) if domain else list(catalog)

    if json_out:
        print(to_json({
            "version": catalog.version,
            "protocols": [protocol_to_dict(p) for p in protocols],
        }))
        return

    views.console.print(views.format_catalog_table(catalog, domain))
