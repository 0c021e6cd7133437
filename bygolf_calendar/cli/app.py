"""Main CLI application for BYGOLF Calendar."""

import asyncio
import logging
import signal
from datetime import date, datetime, timedelta
from typing import List, Optional

import dateutil.parser
import typer
from rich import box
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .. import __version__
from ..api.client import BookingAPIClient
from ..auth import TokenStore, get_token_expiry, is_token_expired, resolve_token
from ..config import Settings, get_settings
from ..errors import AuthError, CalendarError
from ..models.bay_option import BayOption
from ..models.booking import Booking
from ..view.controller import CalendarController, RefreshResult
from ..view.ranges import ViewMode
from ..view.scheduler import LiveRefresh, WakeReason
from .render import create_grid_view, create_header, create_live_view


app = typer.Typer(
    name="bygolf-calendar",
    help="🏌️ View BYGOLF bay bookings as a day, 3-day or week calendar",
    add_completion=False,
)
token_app = typer.Typer(help="Manage the stored bearer token")
app.add_typer(token_app, name="token")

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def parse_date_arg(date_str: Optional[str], settings: Settings) -> Optional[date]:
    """Parse a date option (YYYY-MM-DD, any dateutil format, or today/tomorrow/yesterday)."""
    if date_str is None:
        return None

    today = datetime.now(settings.tzinfo).date()
    key = date_str.strip().lower()
    if key in RELATIVE_DAYS:
        return today + timedelta(days=RELATIVE_DAYS[key])

    try:
        return dateutil.parser.parse(date_str).date()
    except (ValueError, OverflowError):
        raise typer.BadParameter(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD, today or tomorrow"
        )


def get_token_store(settings: Settings) -> TokenStore:
    return TokenStore(settings.token_file)


def require_token(token_option: Optional[str], settings: Settings) -> str:
    """Resolve the token to use, exiting with a hint when it is unusable."""
    token = resolve_token(token_option or settings.token, get_token_store(settings))

    if not token:
        console.print("[red]Error: A bearer token is required.[/red]")
        console.print("\n[yellow]Provide one of:[/yellow]")
        console.print("1. bygolf-calendar token set <TOKEN>")
        console.print("2. Set BYGOLF_TOKEN environment variable")
        console.print("3. Use --token parameter")
        raise typer.Exit(code=1)

    if is_token_expired(token):
        console.print("[red]Error: The bearer token has expired.[/red]")
        console.print("[dim]Store a fresh one with: bygolf-calendar token set <TOKEN>[/dim]")
        raise typer.Exit(code=1)

    return token


def make_client(settings: Settings, token: str) -> BookingAPIClient:
    return BookingAPIClient(
        bearer_token=token,
        base_url=settings.api_base_url,
        venue=settings.venue,
        timeout=settings.request_timeout,
        tz=settings.tzinfo,
    )


def make_controller(
    settings: Settings, token: str, mode: ViewMode, anchor: Optional[date], end: Optional[date]
) -> CalendarController:
    """Wire a controller to the HTTP client.

    The blocking client runs in a worker thread; the controller's state is
    only touched from the event loop.
    """

    async def fetch_bookings(token: str, start: datetime, end: datetime) -> List[Booking]:
        def run():
            with make_client(settings, token) as client:
                return client.fetch_bookings(start, end)

        return await asyncio.to_thread(run)

    async def fetch_bay_options(token: str) -> List[BayOption]:
        def run():
            with make_client(settings, token) as client:
                return client.fetch_bay_options()

        return await asyncio.to_thread(run)

    controller = CalendarController(
        fetch_bookings,
        token=token,
        fetch_bay_options=fetch_bay_options,
        mode=mode,
        anchor=anchor,
        tz=settings.tzinfo,
    )
    if end is not None:
        controller.set_explicit_end(end)
    return controller


def report_error(error: CalendarError):
    if isinstance(error, AuthError):
        console.print(f"\n[red]Error: Authorization failed: {escape(str(error))}[/red]")
        console.print("[dim]Store a fresh token with: bygolf-calendar token set <TOKEN>[/dim]")
    else:
        console.print(f"[red]Error fetching bookings: {escape(str(error))}[/red]")


@app.command()
def show(
    day: Optional[str] = typer.Option(
        None, "--date", "-d", help="Anchor date (YYYY-MM-DD, today, tomorrow)"
    ),
    mode: ViewMode = typer.Option(ViewMode.DAY, "--mode", "-m", help="View mode"),
    end: Optional[str] = typer.Option(
        None, "--end", "-e", help="Widen a 3days/week view up to this date"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the grid as JSON"),
    auth_token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Bearer token", envvar="BYGOLF_TOKEN"
    ),
):
    """Show bookings for a day, three days or a week.

    Examples:
        # Today
        bygolf-calendar show

        # The week containing a date
        bygolf-calendar show --mode week --date 2025-01-15

        # Three days, widened to a later end date
        bygolf-calendar show --mode 3days --date 2025-01-15 --end 2025-01-20
    """
    settings = get_settings()
    token = require_token(auth_token, settings)
    controller = make_controller(
        settings, token, mode, parse_date_arg(day, settings), parse_date_arg(end, settings)
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
        disable=as_json,
    ) as progress:
        progress.add_task(
            f"Fetching bookings for {controller.range.day_count} days...", total=None
        )
        result = asyncio.run(controller.refresh())

    if not result.ok:
        report_error(result.error)
        raise typer.Exit(code=1)

    now = datetime.now(settings.tzinfo)
    grid = controller.grid(now=now, row_height=settings.row_height)

    if as_json:
        typer.echo(grid.model_dump_json(indent=2))
        return

    console.print(create_header(controller.state.mode, grid))
    console.print(create_grid_view(grid, now))


def roll_to_today(controller: CalendarController, settings: Settings) -> bool:
    """Move a view that follows today onto the new date after midnight."""
    today = datetime.now(settings.tzinfo).date()
    if controller.state.anchor == today:
        return False
    controller.set_anchor(today)
    logger.debug(f"Date changed, moved view to {today}")
    return True


async def renew_token(controller: CalendarController) -> RefreshResult:
    """Ask for a new token until one is accepted; an empty answer exits."""
    while True:
        report_error(controller.state.error)
        token = typer.prompt(
            "New bearer token (empty to quit)",
            default="",
            show_default=False,
            hide_input=True,
        )
        if not token.strip():
            raise typer.Exit(code=1)

        controller.set_token(token)
        result = await controller.refresh()
        if not isinstance(result.error, AuthError):
            return result


async def run_watch(controller: CalendarController, settings: Settings, follow_today: bool = False):
    """Keep the calendar on screen, refreshing it silently until interrupted.

    A rejected token stops both cadences and leaves the screen to ask for a
    new one; nothing is fetched with the rejected token again.
    """
    updated = None
    auth_rejected = asyncio.Event()

    def render():
        now = datetime.now(settings.tzinfo)
        grid = controller.grid(now=now, row_height=settings.row_height)
        return create_live_view(
            controller.state.mode, grid, now, controller.state.error, updated
        )

    result = await controller.refresh()
    if result.ok:
        updated = datetime.now(settings.tzinfo)
    elif isinstance(result.error, AuthError):
        report_error(result.error)
        raise typer.Exit(code=1)

    with Live(render(), console=console, screen=True, auto_refresh=False) as live:

        async def on_tick(reason: WakeReason):
            if follow_today and roll_to_today(controller, settings):
                await schedule.reschedule()
                schedule.refresh.wake(WakeReason.MANUAL)
            live.update(render(), refresh=True)

        async def on_refresh(reason: WakeReason):
            nonlocal updated
            refreshed = await controller.refresh(silent=True)
            if refreshed.ok:
                updated = datetime.now(settings.tzinfo)
            elif isinstance(refreshed.error, AuthError):
                auth_rejected.set()
            live.update(render(), refresh=True)

        schedule = LiveRefresh(
            on_tick,
            on_refresh,
            tick_interval=settings.tick_interval,
            refresh_interval=settings.refresh_interval,
        )
        schedule.start()

        loop = asyncio.get_running_loop()
        wake_signal = getattr(signal, "SIGCONT", None)
        if wake_signal is not None:
            # Resuming a suspended terminal session counts as becoming visible again
            loop.add_signal_handler(wake_signal, schedule.wake, WakeReason.VISIBILITY)

        try:
            while True:
                await auth_rejected.wait()
                auth_rejected.clear()
                await schedule.close()
                live.stop()

                renewed = await renew_token(controller)
                if renewed.ok:
                    updated = datetime.now(settings.tzinfo)
                live.start()
                live.update(render(), refresh=True)
                await schedule.reschedule()
        finally:
            if wake_signal is not None:
                loop.remove_signal_handler(wake_signal)
            await schedule.close()


@app.command()
def watch(
    day: Optional[str] = typer.Option(
        None, "--date", "-d", help="Anchor date (YYYY-MM-DD, today, tomorrow)"
    ),
    mode: ViewMode = typer.Option(ViewMode.DAY, "--mode", "-m", help="View mode"),
    end: Optional[str] = typer.Option(
        None, "--end", "-e", help="Widen a 3days/week view up to this date"
    ),
    auth_token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Bearer token", envvar="BYGOLF_TOKEN"
    ),
):
    """Live calendar: refreshes bookings every 30s and the time marker every minute.

    Press Ctrl-C to quit.
    """
    settings = get_settings()
    token = require_token(auth_token, settings)
    controller = make_controller(
        settings, token, mode, parse_date_arg(day, settings), parse_date_arg(end, settings)
    )

    try:
        asyncio.run(run_watch(controller, settings, follow_today=day is None and end is None))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


@app.command()
def bays(
    auth_token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Bearer token", envvar="BYGOLF_TOKEN"
    ),
):
    """List the bay options used to label bookings."""
    settings = get_settings()
    token = require_token(auth_token, settings)

    try:
        with make_client(settings, token) as client:
            options = client.fetch_bay_options()
    except CalendarError as e:
        report_error(e)
        raise typer.Exit(code=1)

    if not options:
        console.print("[yellow]No bay options found.[/yellow]")
        return

    table = Table(
        title=f"Found {len(options)} Bay Options",
        box=box.ROUNDED,
        header_style="bold magenta",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    for option in sorted(options, key=lambda o: o.id):
        table.add_row(str(option.id), option.name)

    console.print(table)


@token_app.command("set")
def token_set(token: str = typer.Argument(..., help="Bearer token to store")):
    """Store a bearer token for later runs."""
    settings = get_settings()
    token = token.strip()
    if not token:
        raise typer.BadParameter("Token must not be empty")

    get_token_store(settings).save(token)
    console.print(f"[green]Token saved to {settings.token_file}[/green]")
    if is_token_expired(token):
        console.print("[yellow]Warning: this token is already expired.[/yellow]")


@token_app.command("clear")
def token_clear():
    """Remove the stored bearer token."""
    settings = get_settings()
    get_token_store(settings).clear()
    console.print("[green]Token cleared.[/green]")


@token_app.command("status")
def token_status():
    """Show whether a token is stored and when it expires."""
    settings = get_settings()
    token = resolve_token(settings.token, get_token_store(settings))
    if not token:
        console.print("[yellow]No token stored.[/yellow]")
        raise typer.Exit(code=1)

    expiry = get_token_expiry(token)
    if expiry is None:
        console.print("✅ Token stored [dim](no expiry information)[/dim]")
    elif is_token_expired(token):
        console.print(f"❌ Token [red]expired[/red] at {expiry.astimezone(settings.tzinfo):%Y-%m-%d %H:%M}")
        raise typer.Exit(code=1)
    else:
        console.print(f"✅ Token valid until {expiry.astimezone(settings.tzinfo):%Y-%m-%d %H:%M}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
):
    """🏌️ BYGOLF Calendar - Live bay booking calendar in your terminal."""
    if version:
        console.print(f"[cyan]BYGOLF Calendar v{__version__}[/cyan]")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


if __name__ == "__main__":
    app()
