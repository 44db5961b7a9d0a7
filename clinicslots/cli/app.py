"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.table import Table

from ..adapters.http_source import HttpAvailabilitySource
from ..adapters.memory_source import InMemoryAvailabilitySource
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..domain.sessions import (
    calculate_session_count_from_service_name,
    get_total_sessions_for_package_item,
)
from ..services.booking_service import BookingService

app = typer.Typer(
    name="clinicslots",
    help="Freie Termine und Terminkonflikte für die Praxis prüfen",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="YAML/JSON-Datei mit Dienstplänen, Urlauben und Terminen."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren.")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config file; without one, defaults apply."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _build_service(config: AppConfig, data_file: Optional[Path]) -> BookingService:
    """
    Wire the booking service to a data file or the REST backend.

    A ``--data`` option wins over the configured data file, which wins over
    the backend.
    """
    path = data_file or config.data_file
    if path is not None:
        source = InMemoryAvailabilitySource.from_file(path)
        return BookingService(source, source, config.to_rules())

    if config.backend is not None:
        source = HttpAvailabilitySource(
            base_url=config.backend.base_url,
            api_token=config.backend.api_token,
            timeout=config.backend.timeout_seconds,
        )
        return BookingService(source, source, config.to_rules())

    raise ValueError("Keine Datenquelle: --data angeben oder 'data_file'/'backend' in der Config setzen.")


def _parse_day(value: str, tz: str) -> Date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Fehler beim Parsen des Datums: {e}[/red]")
        raise typer.Exit(1)


def _format_day(day: Date) -> str:
    return day.format("dddd, DD.MM.YYYY", locale="de")


@app.command()
def slots(
    staff_id: Annotated[str, typer.Argument(help="Mitarbeiter-ID")],
    date: Annotated[str, typer.Option("--date", help="Datum (YYYY-MM-DD)")],
    service: Annotated[Optional[str], typer.Option("--service", "-s", help="Leistungs-ID (Dauer aus dem Katalog)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Dauer in Minuten")] = None,
    interval: Annotated[Optional[int], typer.Option("--interval", "-i", help="Raster in Minuten")] = None,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List bookable start times for a staff member on one day.

    Examples:

        clinicslots slots anna --date 2025-08-11 --data praxis.yaml

        clinicslots slots anna --date 2025-08-11 --service massage-30 --interval 15
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config, verbose)
        day = _parse_day(date, config.timezone)
        booking_service = _build_service(config, data_file)

        if duration is None and service is None:
            duration = config.defaults.service_duration_minutes

        found = booking_service.available_slots(
            day=day,
            staff_id=staff_id,
            service_id=service,
            duration_minutes=duration,
            interval_minutes=interval,
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    console.print()
    if not found:
        console.print(
            f"[yellow]⚠ Keine freien Termine für {staff_id} am {_format_day(day)}.[/yellow]"
        )
    else:
        console.print(
            f"[bold green]✓ {len(found)} freie(r) Termin(e) für {staff_id} am {_format_day(day)}:[/bold green]\n"
        )
        for start in found:
            console.print(f"  {start} Uhr")
    console.print()


@app.command()
def check(
    staff_id: Annotated[str, typer.Argument(help="Mitarbeiter-ID")],
    date: Annotated[str, typer.Option("--date", help="Datum (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--start", help="Beginn (HH:MM)")],
    service: Annotated[str, typer.Option("--service", "-s", help="Leistungs-ID")],
    room: Annotated[Optional[str], typer.Option("--room", "-r", help="Raum-ID")] = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="ID des bearbeiteten Termins")] = None,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether an appointment can be booked. Exits with 1 if not.
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config, verbose)
        day = _parse_day(date, config.timezone)
        booking_service = _build_service(config, data_file)

        result = booking_service.check_booking(
            day=day,
            start_time=start,
            service_id=service,
            staff_id=staff_id,
            room_id=room,
            exclude_appointment_id=exclude,
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    console.print()
    summary = f"{_format_day(day)} | {result.start_time} – {result.end_time} Uhr"
    if result.is_bookable:
        console.print(f"[bold green]✓ Buchbar:[/bold green] {summary}\n")
        return

    console.print(f"[bold red]✗ Nicht buchbar:[/bold red] {summary}\n")

    table = Table(title="Konflikte", show_header=True, header_style="bold cyan")
    table.add_column("Art", style="bold yellow")
    table.add_column("Details")
    for conflict in result.conflicts:
        table.add_row(conflict.kind.value, conflict.format_display())
    console.print(table)
    console.print()
    raise typer.Exit(1)


@app.command()
def available(
    date: Annotated[str, typer.Option("--date", help="Datum (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--start", help="Beginn (HH:MM)")],
    staff: Annotated[List[str], typer.Option("--staff", help="Mitarbeiter-ID (mehrfach möglich)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Dauer in Minuten")] = None,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show which staff members and rooms are free at a given time.
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config, verbose)
        day = _parse_day(date, config.timezone)
        booking_service = _build_service(config, data_file)

        result = booking_service.check_availability(
            day=day,
            start_time=start,
            duration_minutes=duration if duration is not None else config.defaults.service_duration_minutes,
            staff_ids=staff,
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title=f"Verfügbar am {_format_day(day)}, {result.start_time} – {result.end_time} Uhr",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Mitarbeiter", style="bold yellow")
    table.add_column("Räume", style="dim")
    table.add_row(
        ", ".join(result.available_staff) or "–",
        ", ".join(result.available_rooms) or "–",
    )

    console.print()
    console.print(table)
    console.print()


@app.command()
def sessions(
    name: Annotated[str, typer.Argument(help="Leistungsname, z. B. '10 Teilmassage + 1 Teilmassage gratis'")],
    units: Annotated[int, typer.Option("--units", "-u", help="Gekaufte Einheiten")] = 1,
):
    """
    Show how many sessions a catalog service name represents.
    """
    per_unit = calculate_session_count_from_service_name(name)
    try:
        total = get_total_sessions_for_package_item(units, per_unit)
    except SchedulingError as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold]{name}[/bold]")
    console.print(f"   Sitzungen pro Einheit: {per_unit}")
    console.print(f"   Gesamt bei {units} Einheit(en): [bold green]{total}[/bold green]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
