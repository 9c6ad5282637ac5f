"""
Main CLI application using Typer.
"""

import json
import logging
from datetime import date as Date
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.google_calendar import GoogleCalendarClient
from ..adapters.mock_backend import MockCalendarClient, MockStore
from ..adapters.supabase_store import SupabaseStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SalonSlotsError
from ..domain.models import WEEKDAY_NAMES
from ..services.availability import AvailabilityService
from ..services.booking import BookingRequest, BookingService
from ..services.settings_cache import SettingsCache

app = typer.Typer(
    name="salonslots",
    help="Salon appointment availability and booking",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock data instead of Supabase/Google."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Salon appointment availability and booking.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_services(config: AppConfig, mock: bool) -> Tuple[AvailabilityService, BookingService]:
    """Wire the store and calendar client into the services."""
    if mock:
        store = MockStore(timezone=config.timezone)
        calendar_client = MockCalendarClient(timezone=config.timezone)
    else:
        store = SupabaseStore(url=config.supabase.url, key=config.supabase.key)
        calendar_client = GoogleCalendarClient(
            client_id=config.google.client_id,
            client_secret=config.google.client_secret,
        )

    availability = AvailabilityService(
        store=store,
        settings=SettingsCache(store, fallback_hours=config.weekly_hours()),
        calendar_client=calendar_client,
        timezone=config.timezone,
        step_minutes=config.step_minutes,
        calendar_buffer_minutes=config.calendar_buffer_minutes,
    )
    return availability, BookingService(availability)


def _parse_date(value: Optional[str], tz: str) -> Date:
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date {value!r}: {e}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    date: Annotated[Optional[str], typer.Argument(help="Day to check (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    worker: Annotated[Optional[str], typer.Option("--worker", "-w", help="Only this worker's bookings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of a list.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show slots for a day, checked against existing bookings.

    Examples:

        salonslots slots 2025-03-10 --duration 45
        salonslots slots --mock --worker w-amina
    """
    try:
        config = _load_config(config_file, mock)
        day = _parse_date(date, config.timezone)
        availability, _ = _build_services(config, mock)

        service_duration = duration or config.default_service_duration
        found = availability.local_availability(day, service_duration, worker_id=worker)

        if as_json:
            typer.echo(json.dumps([slot.to_dict() for slot in found], indent=2))
            return

        console.print()
        if not found:
            console.print(f"[yellow]⚠ No slots on {day.isoformat()} (closed or too short).[/yellow]\n")
            return

        open_count = sum(1 for slot in found if slot.available)
        console.print(
            f"[bold green]✓ {open_count} of {len(found)} slot(s) available "
            f"on {day.isoformat()}[/bold green]\n"
        )
        for slot in found:
            style = "green" if slot.available else "dim"
            console.print(f"  [{style}]{slot.format_display()}[/{style}]")
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def availability(
    date: Annotated[Optional[str], typer.Argument(help="Day to check (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    worker: Annotated[Optional[str], typer.Option("--worker", "-w", help="Only this worker")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of tables.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show per-worker slots for a day, checked against calendar free/busy data.
    """
    try:
        config = _load_config(config_file, mock)
        day = _parse_date(date, config.timezone)
        service, _ = _build_services(config, mock)

        response = service.calendar_availability(
            day,
            duration or config.default_service_duration,
            worker_id=worker,
        )

        if as_json:
            typer.echo(json.dumps(response.to_dict(), indent=2))
            return

        if response.message:
            console.print(f"\n[yellow]⚠ {response.message}[/yellow]\n")
            return

        for entry in response.workers:
            table = Table(
                title=f"{entry.worker_name} ({'calendar' if entry.calendar_connected else 'no calendar'})",
                show_header=True,
                header_style="bold cyan"
            )
            table.add_column("Start", style="bold yellow")
            table.add_column("End")
            table.add_column("Available")
            for slot in entry.slots:
                table.add_row(
                    slot.start.format("HH:mm"),
                    slot.end.format("HH:mm"),
                    "[green]yes[/green]" if slot.available else "[red]no[/red]",
                )
            console.print()
            console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def dates(
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[int, typer.Option("--days", help="Number of days to check")] = 30,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the upcoming days on which the salon is open.
    """
    try:
        config = _load_config(config_file, mock)
        first_day = _parse_date(start, config.timezone)
        service, _ = _build_services(config, mock)

        for day in service.available_dates(first_day, days):
            console.print(f"  {day}")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def hours(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the business hours in effect for each weekday.
    """
    try:
        config = _load_config(config_file, mock)
        service, _ = _build_services(config, mock)

        table = Table(
            title="Business hours",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold yellow")
        table.add_column("Open")
        table.add_column("Close")

        weekly = service.calculator().business_hours
        for name in WEEKDAY_NAMES:
            day_hours = weekly.for_weekday(name)
            if day_hours.closed:
                table.add_row(name.capitalize(), "[dim]closed[/dim]", "")
            else:
                table.add_row(
                    name.capitalize(),
                    day_hours.start.strftime("%H:%M"),
                    day_hours.end.strftime("%H:%M"),
                )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def book(
    service_id: Annotated[str, typer.Argument(help="Service id")],
    worker_id: Annotated[str, typer.Argument(help="Worker id")],
    start_time: Annotated[str, typer.Argument(help="Start (YYYY-MM-DDTHH:mm)")],
    name: Annotated[str, typer.Option("--name", help="Client name")],
    email: Annotated[str, typer.Option("--email", help="Client email")],
    phone: Annotated[str, typer.Option("--phone", help="Client phone")] = "",
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the stylist")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book a slot after re-checking it against current bookings.
    """
    try:
        config = _load_config(config_file, mock)
        _, booking_service = _build_services(config, mock)

        request = BookingRequest(
            service_id=service_id,
            worker_id=worker_id,
            client_name=name,
            client_email=email,
            client_phone=phone,
            notes=notes,
            start_time=start_time,
        )
        booking = booking_service.create_booking(request)

        console.print(
            f"\n[bold green]✓ Booked[/bold green] {booking.start_time.format('YYYY-MM-DD HH:mm')}"
            f" – {booking.end_time.format('HH:mm')} (id {booking.id})\n"
        )

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Cancel a booking and remove its calendar event.
    """
    try:
        config = _load_config(config_file, mock)
        _, booking_service = _build_services(config, mock)

        booking_service.cancel_booking(booking_id)
        console.print(f"\n[green]✓ Booking {booking_id} cancelled.[/green]\n")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
