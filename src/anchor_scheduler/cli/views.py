"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of timelines, the catalog and the
adaptive (stack, deferral, reactive) outputs.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.anchors import relative_label
from ..core.catalog import ProtocolCatalog
from ..core.models import (
    DeferralDecision,
    DependentProtocol,
    ProtocolSchedule,
    ReactiveRecommendation,
    ScheduledAction,
    Timeline,
)

console = Console()

_SEGMENT_TITLES = {
    "morning": "Morning",
    "midday": "Midday",
    "evening": "Evening",
    "wind_down": "Wind-down",
}

_PRIORITY_STYLES = {
    "critical": "bold red",
    "high": "yellow",
    "medium": "cyan",
    "low": "dim",
}


def _fmt_window(action: ScheduledAction) -> str:
    start = action.scheduled_time.strftime("%H:%M")
    if action.window_end == action.scheduled_time:
        return start
    return f"{start}–{action.window_end.strftime('%H:%M')}"


def _fmt_status(action: ScheduledAction, timeline: Timeline) -> str:
    """Short status marker for one row."""
    if action.is_completed:
        return "[green]✓ done[/green]"
    if action.is_skipped:
        return "[dim]skipped[/dim]"
    if action is timeline.current_action:
        return "[bold green]▶ now[/bold green]"
    if action.is_active:
        return "[green]open[/green]"
    if action is timeline.next_action:
        return "[bold cyan]next[/bold cyan]"
    if action.is_missed:
        return "[red]missed[/red]"
    return ""


def format_segment_table(title: str, actions: list[ScheduledAction], timeline: Timeline) -> Table:
    """
    Create a Rich table for one day segment.

    Args:
        title: Segment heading
        actions: Actions in the segment, already in schedule order
        timeline: Owning timeline (for current/next markers)

    Returns:
        Rich Table object
    """
    table = Table(title=title, title_justify="left")

    table.add_column("Time", style="cyan", no_wrap=True, width=11)
    table.add_column("Protocol")
    table.add_column("Anchor", style="magenta", no_wrap=True)
    table.add_column("Domain", style="dim")
    table.add_column("Priority", no_wrap=True)
    table.add_column("Status", no_wrap=True)

    for action in actions:
        priority = action.protocol.priority
        style = _PRIORITY_STYLES.get(priority, "")
        anchor = action.relative_label
        if not action.anchor_resolved:
            anchor += " [red](no time)[/red]"
        table.add_row(
            _fmt_window(action),
            escape(action.protocol.name),
            anchor,
            action.protocol.domain,
            f"[{style}]{priority}[/{style}]" if style else priority,
            _fmt_status(action, timeline),
        )

    return table


def print_timeline(timeline: Timeline) -> None:
    """
    Print a full timeline: header, one table per non-empty segment.

    Args:
        timeline: Timeline to display
    """
    console.print()
    console.print(
        f"[bold]Timeline for {timeline.date.isoformat()}[/bold]"
        f"  (generated {timeline.generated_at.strftime('%H:%M')},"
        f" chronotype {timeline.anchors.chronotype})"
    )

    if timeline.current_action is not None:
        console.print(f"Now:  [bold green]{escape(timeline.current_action.protocol.name)}[/bold green]")
    if timeline.next_action is not None:
        nxt = timeline.next_action
        console.print(
            f"Next: [bold cyan]{escape(nxt.protocol.name)}[/bold cyan] at {nxt.scheduled_time.strftime('%H:%M')}"
        )
    console.print()

    if not timeline.all_actions:
        console.print("[yellow]No protocols apply today.[/yellow]")
        return

    for name, actions in timeline.segments.items():
        if actions:
            console.print(format_segment_table(_SEGMENT_TITLES[name], actions, timeline))

    if timeline.unresolved_anchors:
        print_warning(
            "No time set for anchor(s): "
            + ", ".join(sorted(timeline.unresolved_anchors))
            + ". Those protocols were placed relative to now."
        )


def format_catalog_table(catalog: ProtocolCatalog, domain: str | None = None) -> Table:
    """Create a Rich table listing catalog protocols."""
    table = Table(title=f"Protocol catalog ({catalog.version})")

    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Domain", style="magenta")
    table.add_column("Anchor", style="cyan", no_wrap=True)
    table.add_column("Window", justify="right")
    table.add_column("Priority")
    table.add_column("Conditions", style="dim")

    protocols = catalog.by_domain(domain) if domain else list(catalog)
    for p in protocols:
        conditions = []
        if p.only_if_training:
            conditions.append("training days")
        if p.only_if_no_training:
            conditions.append("rest days")
        if p.min_recovery_score is not None:
            conditions.append(f"recovery ≥ {p.min_recovery_score:g}")
        table.add_row(
            p.id,
            escape(p.name),
            p.domain,
            relative_label(p.relative_to, p.offset_minutes),
            f"{p.window_minutes}m" if p.window_minutes else "-",
            p.priority,
            ", ".join(conditions),
        )

    return table


def print_session_stack(
    session_time: str,
    schedule: ProtocolSchedule,
    protocols: list[DependentProtocol],
) -> None:
    """Print the reverse-chained schedule and its dependent protocols."""
    console.print()
    console.print(f"[bold]Session at {session_time}[/bold]")
    console.print(
        f"Bedtime {schedule.bedtime} → wake {schedule.wake_time} → session {schedule.session}"
    )
    console.print()

    table = Table(title="Dependent protocols")
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Protocol")
    table.add_column("Offset", justify="right", style="magenta")
    table.add_column("Flexible", justify="center")
    table.add_column("Why")

    for p in protocols:
        table.add_row(
            p.time_of_day,
            escape(p.title),
            f"{p.offset_from_session_minutes:+d}m",
            "yes" if p.is_flexible else "no",
            escape(p.reason),
        )

    console.print(table)


def print_deferral(category: str, hour: int, decision: DeferralDecision) -> None:
    """Print a deferral verdict."""
    if not decision.should_defer:
        print_success(f"{category} at {hour:02d}:00 is fine.")
        return
    print_warning(f"Defer {category}: {decision.reason}")
    if decision.suggested_time:
        print_info(f"Try again at {decision.suggested_time}.")


def print_recommendations(recommendations: list[ReactiveRecommendation]) -> None:
    """Print reactive recommendations, most urgent first."""
    if not recommendations:
        console.print("[green]Nothing to react to right now.[/green]")
        return

    table = Table(title="Recommended now")
    table.add_column("Urgency", justify="right", style="bold")
    table.add_column("Action")
    table.add_column("Why")

    for r in sorted(recommendations, key=lambda r: -r.urgency):
        table.add_row(str(r.urgency), r.action, r.reason)

    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{escape(message)}[/blue]")
