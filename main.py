"""WebUntis-Client: Kommandozeile.

Verwendung:
  python main.py setup                          Verbindung einrichten
  python main.py config show                    Konfiguration anzeigen
  python main.py classes [--contains HIF]       Klassen auflisten
  python main.py teachers [--prefix A]          Lehrkräfte auflisten
  python main.py periods                        Stundenraster anzeigen
  python main.py students 4BHIF                 Schüler einer Klasse
  python main.py timetable --class 4BHIF        Wochenstundenplan einer Klasse
  python main.py timetable --teacher SZ         Wochenstundenplan eines Lehrers
  python main.py report --class 4BHIF           Entfälle, Vertretungen, ...

Das Passwort wird über --password, die Umgebungsvariable UNTIS_PASSWORD
oder eine verdeckte Eingabe abgefragt.
"""

import asyncio
import logging
import sys
from datetime import date, datetime
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from config.defaults import PASSWORD_ENV_VAR

console = Console()

_STATE_STYLE = {
    "cancelled": "red",
    "substitution": "yellow",
    "event": "cyan",
    "shift": "magenta",
}


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _login_options(func):
    """Gemeinsame Optionen aller Befehle, die eine Anmeldung brauchen."""
    func = click.option("--password", "-p", envvar=PASSWORD_ENV_VAR, default=None,
                        help=f"Passwort (oder Umgebungsvariable {PASSWORD_ENV_VAR}).")(func)
    func = click.option("--user", "-u", "username", default=None,
                        help="Benutzername (Default aus der Config).")(func)
    return func


def _run_with_client(username: Optional[str], password: Optional[str], action):
    """Meldet sich an, führt action(client) aus und meldet sich wieder ab."""
    from client import UntisClient, UntisError

    config = _load_config_or_abort()
    username = username or config.username or click.prompt("Benutzername")
    if password is None:
        password = click.prompt("Passwort", hide_input=True)

    async def _session():
        async with UntisClient.from_config(config) as client:
            if not await client.try_login(username, password):
                return False, None
            return True, await action(client)

    try:
        ok, result = asyncio.run(_session())
    except UntisError as e:
        code = e.error_code if e.error_code is not None else "-"
        console.print(f"[red bold]Fehler {code} in Methode {e.method}:[/red bold] {e.message}")
        sys.exit(1)
    if not ok:
        console.print("[red]Login fehlgeschlagen.[/red]")
        sys.exit(1)
    return result


def _find_by_name(resources, name: str):
    return next((r for r in resources if r.unique_name.lower() == name.lower()), None)


def _lessons_for(klasse: Optional[str], teacher: Optional[str], day: Optional[datetime]):
    """Aktion für timetable/report: sucht Klasse oder Lehrer und lädt die Woche."""
    if bool(klasse) == bool(teacher):
        raise click.UsageError("Genau eine der Optionen --class oder --teacher angeben.")

    async def action(client):
        if klasse:
            resource = _find_by_name(await client.classes(), klasse)
        else:
            resource = _find_by_name(await client.teachers(), teacher)
        if resource is None:
            return None, []
        return resource, await client.get_lessons(
            resource, day.date() if day else date.today())
    return action


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Server und Schule festlegen."""
    from config.manager import ConfigManager
    from config.defaults import default_client_config
    from config.schema import ClientConfig

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    defaults = default_client_config()
    server = click.prompt("Anmeldeserver", default=defaults.server)
    school = click.prompt("Schulname in WebUntis", default=defaults.school)
    username = click.prompt("Benutzername (leer = jedes Mal fragen)",
                            default="", show_default=False)
    try:
        config = ClientConfig(server=server, school=school, username=username or None)
    except ValueError as e:
        console.print(f"[red]Ungültige Eingabe:[/red] {e}")
        sys.exit(1)
    mgr.save(config)
    console.print("[bold green]Einrichtung abgeschlossen![/bold green]")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    config = _load_config_or_abort()
    console.print(Panel(
        f"[bold]{config.school}[/bold]  |  {config.server}\n"
        f"Benutzer: {config.username or '-'}  |  "
        f"Schuljahr-ID: {config.schoolyear_id}  |  "
        f"Timeout: {config.request_timeout_seconds:.0f}s",
        title="Verbindung",
        border_style="cyan",
    ))


# ─── STAMMDATEN ───────────────────────────────────────────────────────────────

@click.command("classes")
@click.option("--contains", default="", help="Nur Klassen, deren Kürzel den Text enthält.")
@_login_options
def cmd_classes(contains: str, username: Optional[str], password: Optional[str]):
    """Listet die Klassen auf (nach Kürzel sortiert)."""
    async def action(client):
        return await client.classes()

    classes = _run_with_client(username, password, action)
    table = Table(title="Klassen", box=box.ROUNDED)
    table.add_column("Kürzel", style="bold")
    table.add_column("Bezeichnung")
    table.add_column("Klassenvorstand")
    for c in sorted(classes, key=lambda c: c.unique_name):
        if contains.lower() not in c.unique_name.lower():
            continue
        ct = c.class_teacher
        table.add_row(c.unique_name, c.long_name,
                      f"{ct.unique_name} {ct.long_name}".strip() if ct else "-")
    console.print(table)


@click.command("teachers")
@click.option("--prefix", default="", help="Nur Kürzel mit diesem Anfang.")
@_login_options
def cmd_teachers(prefix: str, username: Optional[str], password: Optional[str]):
    """Listet die Lehrkräfte auf."""
    async def action(client):
        return await client.teachers()

    teachers = _run_with_client(username, password, action)
    table = Table(title="Lehrkräfte", box=box.ROUNDED)
    table.add_column("Kürzel", style="bold")
    table.add_column("Name")
    for t in sorted(teachers, key=lambda t: t.unique_name):
        if t.unique_name.upper().startswith(prefix.upper()):
            table.add_row(t.unique_name, " ".join(p for p in (t.fore_name, t.long_name) if p))
    console.print(table)


@click.command("periods")
@_login_options
def cmd_periods(username: Optional[str], password: Optional[str]):
    """Zeigt das Stundenraster an."""
    async def action(client):
        return await client.periods()

    periods = _run_with_client(username, password, action)
    table = Table(title="Stundenraster", box=box.ROUNDED)
    table.add_column("Std.")
    table.add_column("Beginn")
    table.add_column("Ende")
    for p in periods:
        table.add_row(str(p.nr), f"{p.start_time:%H:%M}", f"{p.end_time:%H:%M}")
    console.print(table)


@click.command("students")
@click.argument("klasse")
@_login_options
def cmd_students(klasse: str, username: Optional[str], password: Optional[str]):
    """Listet die Schüler einer Klasse auf."""
    async def action(client):
        school_class = _find_by_name(await client.classes(), klasse)
        if school_class is None:
            return None
        return await client.get_students(school_class)

    students = _run_with_client(username, password, action)
    if students is None:
        console.print(f"[red]Klasse '{klasse}' nicht gefunden.[/red]")
        sys.exit(1)
    table = Table(title=f"Schüler der {klasse}", box=box.ROUNDED)
    table.add_column("Zuname", style="bold")
    table.add_column("Vorname")
    for s in sorted(students, key=lambda s: (s.long_name, s.fore_name or "")):
        table.add_row(s.long_name, s.fore_name or "")
    console.print(table)


# ─── STUNDENPLAN ──────────────────────────────────────────────────────────────

@click.command("timetable")
@click.option("--class", "klasse", default=None, help="Kürzel der Klasse.")
@click.option("--teacher", default=None, help="Kürzel der Lehrkraft.")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Datum in der gewünschten Woche (Default: heute).")
@_login_options
def cmd_timetable(klasse, teacher, day, username, password):
    """Zeigt den Wochenstundenplan einer Klasse oder Lehrkraft."""
    resource, lessons = _run_with_client(username, password, _lessons_for(klasse, teacher, day))
    if resource is None:
        console.print(f"[red]'{klasse or teacher}' nicht gefunden.[/red]")
        sys.exit(1)

    table = Table(title=f"Stundenplan {resource}", box=box.ROUNDED)
    for col in ("Datum", "Std.", "Zeit", "Fach", "Lehrer", "Raum", "Klassen", "Status", "Text"):
        table.add_column(col)
    for l in lessons:
        style = _STATE_STYLE.get(l.state.value)
        table.add_row(
            f"{l.begin:%a %d.%m.}",
            str(l.period) if l.period else "-",
            f"{l.begin:%H:%M}-{l.end:%H:%M}",
            l.subjects_string,
            l.teachers_string,
            l.rooms_string,
            l.classes_string,
            l.state.value,
            l.lesson_text or l.period_text,
            style=style,
        )
    console.print(table)


@click.command("report")
@click.option("--class", "klasse", default=None, help="Kürzel der Klasse.")
@click.option("--teacher", default=None, help="Kürzel der Lehrkraft.")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Datum in der gewünschten Woche (Default: heute).")
@_login_options
def cmd_report(klasse, teacher, day, username, password):
    """Wochenbericht: Entfälle, Vertretungen, Lehrausgänge, Verschiebungen."""
    from analysis.lesson_report import build_lesson_report

    resource, lessons = _run_with_client(username, password, _lessons_for(klasse, teacher, day))
    if resource is None:
        console.print(f"[red]'{klasse or teacher}' nicht gefunden.[/red]")
        sys.exit(1)
    console.print(f"[bold]Wochenbericht {resource}[/bold]")
    build_lesson_report(lessons).print_rich()


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Protokollausgabe (Cache, Requests, übersprungene Stunden).")
def cli(verbose: bool):
    """WebUntis-Client: Stammdaten und Stundenpläne abfragen.

    Starten Sie mit: python main.py setup
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_classes)
cli.add_command(cmd_teachers)
cli.add_command(cmd_periods)
cli.add_command(cmd_students)
cli.add_command(cmd_timetable)
cli.add_command(cmd_report)


if __name__ == "__main__":
    main()
