"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional, Tuple

import pendulum
import typer
from pendulum import Date
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.console_mailer import ConsoleMailer
from ..adapters.registry_store import RegistryStore
from ..config import AppConfig, WindowConfig, get_default_config_path
from ..domain.exceptions import SquadSyncError
from ..domain.models import Interval, Member, TimeRangeTemplate
from ..domain.registry import GroupRegistry
from ..services.notifications import NotificationService
from ..services.scheduler import (
    BookingOutcome,
    BookRequest,
    CancelBookingRequest,
    FindSlotsRequest,
    ForceBookRequest,
    SchedulingService,
    SlotSearchResult,
)

app = typer.Typer(
    name="squadsync",
    help="Find common free time for a study group and book meetings without overlap",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    squadsync command line interface.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_context(config_file: Optional[Path]) -> Tuple[AppConfig, RegistryStore, GroupRegistry]:
    """
    Load the config and the stored registry, seeding one from the config if
    nothing has been saved yet.
    """
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    store = RegistryStore(config.resolve_data_file(config_path))

    if store.exists():
        registry = store.load()
    else:
        registry = config.build_registry()

    return config, store, registry


def _build_service(config_file: Optional[Path], notify: bool = False) -> Tuple[AppConfig, SchedulingService]:
    config, store, registry = _load_context(config_file)
    notifier = NotificationService(ConsoleMailer(console)) if notify else None
    return config, SchedulingService(registry, store=store, notifier=notifier)


def _parse_date(value: Optional[str], tz: str) -> Date:
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _parse_interval(date_str: str, time_str: str, duration: int, tz: str) -> Interval:
    try:
        start = pendulum.from_format(f"{date_str} {time_str}", "YYYY-MM-DD HH:mm", tz=tz)
    except ValueError as e:
        raise ValueError(f"Invalid date/time '{date_str} {time_str}', expected YYYY-MM-DD HH:MM") from e
    return Interval(start=start, end=start.add(minutes=duration))


def _parse_window(text: str) -> TimeRangeTemplate:
    """Parse ``HH:MM-HH:MM`` or ``LABEL=HH:MM-HH:MM``."""
    label, _, span = text.rpartition("=")
    start, sep, end = span.partition("-")
    if not sep:
        raise ValueError(f"Invalid window '{text}', expected HH:MM-HH:MM or LABEL=HH:MM-HH:MM")
    try:
        window = WindowConfig(start=start.strip(), end=end.strip(), label=label.strip())
    except ValidationError as e:
        raise ValueError(f"Invalid window '{text}', expected HH:MM-HH:MM or LABEL=HH:MM-HH:MM") from e
    if window.start == window.end:
        raise ValueError(f"Invalid window '{text}': start and end must differ")
    return window.to_template()


def _require_member(registry: GroupRegistry, name: str) -> Member:
    member = registry.find_member(name)
    if member is None:
        raise ValueError(f"Unknown member: '{name}'")
    return member


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


def _print_matrix(result: SlotSearchResult) -> None:
    common = set(result.slots)
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Slot", style="bold")
    for member, _ in result.matrix.rows():
        table.add_column(member.name)
    table.add_column("Count", justify="right")

    for slot in result.matrix.slots:
        marks = [
            "[green]✓[/green]" if result.matrix.is_available(member, slot) else "[dim]·[/dim]"
            for member in result.matrix.members
        ]
        label = f"[green]{slot}[/green]" if slot in common else str(slot)
        table.add_row(label, *marks, str(result.matrix.count(slot)))

    console.print(table)


def _print_booking(outcome: BookingOutcome) -> None:
    booking = outcome.booking
    if booking.accepted:
        verb = "Force-booked" if booking.forced else "Booked"
        console.print(f"[bold green]✓ {verb} {booking.interval}[/bold green]")
        for note in outcome.notes:
            console.print(f"[yellow]⚠ {note}[/yellow]")
        if outcome.delivery and outcome.delivery.failed:
            for email, reason in outcome.delivery.failed.items():
                console.print(f"[yellow]⚠ Could not notify {email}: {reason}[/yellow]")
        return

    console.print(f"[bold red]✗ {booking.interval} conflicts with:[/bold red]")
    for conflict in booking.conflicts:
        console.print(f"  {conflict}")
    console.print("Use [bold]force-book[/bold] to override, or pick another slot.")


@app.command()
def find(
    config_file: ConfigOption = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD), defaults to today")] = None,
    granularity: Annotated[Optional[int], typer.Option("--granularity", "-g", help="Slot length in minutes")] = None,
    group: Annotated[Optional[str], typer.Option("--group", help="Only evaluate members with this group label")] = None,
    matrix: Annotated[bool, typer.Option("--matrix", help="Show the member x slot availability table")] = False,
):
    """
    Find slots where enough members are free.

    Examples:

        squadsync find --date 2025-01-01

        squadsync find --group "Team A" --granularity 60 --matrix
    """
    try:
        config, service = _build_service(config_file)
        request = FindSlotsRequest(
            date=_parse_date(date, config.timezone),
            granularity_minutes=(
                granularity if granularity is not None else config.defaults.granularity_minutes
            ),
            group_label=group,
        )
        result = service.execute(request)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    registry = service.registry
    scope = f"group '{group}'" if group else registry.name
    console.print(f"\n[bold cyan]🗓️  Common slots for {scope} on {request.date}[/bold cyan]")
    if registry.emergency_scheduling:
        console.print("[yellow]⚠  Emergency scheduling is on: every slot counts as common[/yellow]")
    console.print()

    if not result.has_members:
        console.print("[yellow]No members to evaluate.[/yellow]\n")
        return

    if matrix:
        _print_matrix(result)
        console.print()

    if not result.slots:
        console.print("[yellow]⚠ No common slots found.[/yellow]\n")
        return

    console.print(f"[bold green]✓ {len(result.slots)} common slot(s):[/bold green]\n")
    for slot in result.slots:
        console.print(f"  {slot}")
    console.print()


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    duration: Annotated[int, typer.Argument(help="Duration in minutes")],
    config_file: ConfigOption = None,
    subject: Annotated[str, typer.Option("--subject", help="Meeting subject")] = "Study session",
    message: Annotated[str, typer.Option("--message", help="Message for the invitation")] = "",
    notify: Annotated[bool, typer.Option("--notify", help="Send invitations to all members")] = False,
):
    """
    Book a meeting; conflicts with existing bookings are reported, not overridden.
    """
    try:
        config, service = _build_service(config_file, notify=notify)
        interval = _parse_interval(date, time, duration, config.timezone)
        outcome = service.execute(
            BookRequest(interval=interval, subject=subject, message=message, notify=notify)
        )
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    _print_booking(outcome)
    if not outcome.booking.accepted:
        raise typer.Exit(1)


@app.command("force-book")
def force_book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    duration: Annotated[int, typer.Argument(help="Duration in minutes")],
    config_file: ConfigOption = None,
    subject: Annotated[str, typer.Option("--subject", help="Meeting subject")] = "Emergency study session",
    message: Annotated[str, typer.Option("--message", help="Message for the invitation")] = "",
    priority: Annotated[str, typer.Option("--priority", help="Priority shown in the invitation")] = "High",
    notify: Annotated[bool, typer.Option("--notify/--no-notify", help="Send invitations to all members")] = True,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
):
    """
    Emergency booking that overrides conflicts with existing bookings.
    """
    try:
        config, service = _build_service(config_file, notify=notify)
        interval = _parse_interval(date, time, duration, config.timezone)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    conflicts = service.registry.ledger.conflicts_for(interval)
    if conflicts and not yes:
        console.print(f"[yellow]{interval} overlaps {len(conflicts)} existing booking(s).[/yellow]")
        typer.confirm("This will override any conflicts. Continue?", abort=True)

    try:
        outcome = service.execute(ForceBookRequest(
            interval=interval,
            subject=subject,
            message=message,
            priority=priority,
            notify=notify,
        ))
    except SquadSyncError as e:
        _fail(e)

    _print_booking(outcome)


@app.command()
def cancel(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    duration: Annotated[int, typer.Argument(help="Duration in minutes")],
    config_file: ConfigOption = None,
):
    """
    Cancel a committed booking.
    """
    try:
        config, service = _build_service(config_file)
        interval = _parse_interval(date, time, duration, config.timezone)
        removed = service.execute(CancelBookingRequest(interval=interval))
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    if removed:
        console.print(f"[green]✓ Cancelled {interval}[/green]")
    else:
        console.print(f"[yellow]No booking found for {interval}[/yellow]")


@app.command()
def bookings(
    config_file: ConfigOption = None,
):
    """
    List committed bookings.
    """
    try:
        _, _, registry = _load_context(config_file)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    if not len(registry.ledger):
        console.print("[yellow]No bookings yet.[/yellow]")
        return

    for interval in registry.ledger:
        console.print(f"  {interval}")


@app.command("add-member")
def add_member(
    name: Annotated[str, typer.Argument(help="Member name")],
    email: Annotated[str, typer.Argument(help="Member e-mail")],
    config_file: ConfigOption = None,
    group: Annotated[Optional[str], typer.Option("--group", help="Group label")] = None,
):
    """
    Add a member to the roster.
    """
    try:
        _, service = _build_service(config_file)
        added = service.add_member(Member(name=name, email=email, group=group))
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    if added:
        console.print(f"[green]✓ Added {name} ({email})[/green]")
    else:
        console.print(f"[yellow]{name} ({email}) is already a member.[/yellow]")


@app.command()
def free(
    name: Annotated[str, typer.Argument(help="Member name")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    duration: Annotated[int, typer.Argument(help="Duration in minutes")],
    config_file: ConfigOption = None,
    remove: Annotated[bool, typer.Option("--remove", help="Remove this free interval instead of adding it")] = False,
):
    """
    Mark a member as free for an interval, or take the interval back with --remove.
    """
    try:
        config, store, registry = _load_context(config_file)
        member = _require_member(registry, name)
        interval = _parse_interval(date, time, duration, config.timezone)
        if remove:
            changed = member.remove_availability(interval)
        else:
            changed = member.add_availability(interval)
        if changed:
            store.save(registry)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    who = escape(member.name)
    if not remove:
        console.print(f"[green]✓ {who} is free {interval}[/green]")
    elif changed:
        console.print(f"[green]✓ {who} is no longer free {interval}[/green]")
    else:
        console.print(f"[yellow]{who} has no free interval {interval}[/yellow]")


@app.command("remove-member")
def remove_member(
    name: Annotated[str, typer.Argument(help="Member name")],
    config_file: ConfigOption = None,
):
    """
    Remove a member from the roster.
    """
    try:
        _, service = _build_service(config_file)
        member = _require_member(service.registry, name)
        service.remove_member(member)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Removed {escape(member.name)} ({escape(member.email)})[/green]")


@app.command("move-member")
def move_member(
    name: Annotated[str, typer.Argument(help="Member name")],
    group: Annotated[Optional[str], typer.Argument(help="New group label; omit to remove the label")] = None,
    config_file: ConfigOption = None,
):
    """
    Move a member to another group label.

    Examples:

        squadsync move-member alice "Team B"

        squadsync move-member alice
    """
    try:
        _, service = _build_service(config_file)
        member = _require_member(service.registry, name)
        target = group or None
        unchanged = member.group == target
        moved = service.move_member(member, target)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    who = escape(member.name)
    where = f"group '{escape(target)}'" if target else "no group"
    if moved:
        console.print(f"[green]✓ Moved {who} to {where}[/green]")
    elif unchanged:
        console.print(f"[yellow]{who} is already in {where}[/yellow]")
    else:
        console.print(
            f"[yellow]⚠ {who} was not moved: an identical member already exists in {where}[/yellow]"
        )


@app.command()
def members(
    config_file: ConfigOption = None,
):
    """
    List all members.
    """
    try:
        _, _, registry = _load_context(config_file)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    if not registry.members:
        console.print("[yellow]No members in this group yet.[/yellow]")
        return

    table = Table(
        title=f"Members of {registry.name}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name", style="bold yellow")
    table.add_column("E-Mail", style="dim")
    table.add_column("Group")
    table.add_column("Free intervals", justify="right")

    for member in registry.members:
        table.add_row(
            member.name,
            member.email,
            member.group or "-",
            str(len(member.free_intervals))
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def groups(
    config_file: ConfigOption = None,
    disband: Annotated[Optional[str], typer.Option("--disband", help="Remove this label from all members")] = None,
):
    """
    Show member counts per group label.
    """
    try:
        _, store, registry = _load_context(config_file)
        if disband:
            carriers = len(registry.members_by_group(disband))
            count = registry.disband_group(disband)
            if count:
                store.save(registry)
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    if disband:
        label = escape(disband)
        if not carriers:
            console.print(f"[yellow]No members carry the label '{label}'.[/yellow]")
        else:
            console.print(f"[green]✓ Disbanded '{label}' ({count} member(s))[/green]")
            if count < carriers:
                console.print(
                    f"[yellow]⚠ {carriers - count} member(s) kept the label: "
                    f"an identical ungrouped member already exists[/yellow]"
                )

    stats = registry.group_statistics()
    if not stats:
        console.print("[yellow]No members in this group yet.[/yellow]")
        return

    table = Table(title="Groups", show_header=True, header_style="bold cyan")
    table.add_column("Group", style="bold")
    table.add_column("Members", justify="right")
    for label, count in stats.items():
        table.add_row(escape(label), str(count))

    console.print(table)


@app.command()
def settings(
    config_file: ConfigOption = None,
    quorum: Annotated[Optional[int], typer.Option("--quorum", "-q", help="Members needed for a common slot; 0 means everyone")] = None,
    emergency: Annotated[Optional[bool], typer.Option("--emergency/--no-emergency", help="Treat every candidate slot as common")] = None,
    window: Annotated[Optional[List[str]], typer.Option("--window", "-w", help="Search window HH:MM-HH:MM or LABEL=HH:MM-HH:MM; repeat to add more")] = None,
    from_config: Annotated[bool, typer.Option("--from-config", help="Re-apply quorum, emergency flag and windows from the config file")] = False,
):
    """
    Show or change the saved search settings.

    Examples:

        squadsync settings --quorum 2 --emergency

        squadsync settings -w "Morning=08:00-14:00" -w "Night=20:00-01:00"

        squadsync settings --from-config
    """
    try:
        config, service = _build_service(config_file)

        windows = [_parse_window(text) for text in window] if window else None
        if from_config:
            quorum = config.defaults.quorum if quorum is None else quorum
            if emergency is None:
                emergency = config.defaults.emergency_scheduling
            if windows is None:
                windows = [w.to_template() for w in config.windows]

        if quorum is not None or emergency is not None or windows is not None:
            service.update_settings(
                quorum=quorum, emergency_scheduling=emergency, windows=windows
            )
            console.print("[green]✓ Settings saved[/green]")
    except (FileNotFoundError, SquadSyncError, ValueError) as e:
        _fail(e)

    registry = service.registry
    table = Table(title=f"Settings for {escape(registry.name)}", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("Quorum", str(registry.minimum_members_required or "all members"))
    table.add_row("Emergency scheduling", "on" if registry.emergency_scheduling else "off")
    table.add_row("Timezone", registry.timezone)
    for template in registry.templates:
        span = f"{template.start_time:%H:%M}-{template.end_time:%H:%M}"
        table.add_row(f"Window {escape(template.label)}".rstrip(), span)

    console.print(table)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]squadsync[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
