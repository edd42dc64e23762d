"""
CLI entry point using Typer.

Provides commands for anchor-relative scheduling:
- timeline: Build and show today's protocol timeline
- catalog: List the protocol catalog
- stack: Reverse-chained schedule around a training session
- defer: Check whether an action should wait
- reactive: Ad-hoc suggestions from the current physiological state
- chronotype: Classify a sleep pattern
"""

from .app import app
from .commands import adaptive, catalog, profile, timeline  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
