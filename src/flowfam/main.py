"""
Flow Fam - CLI Entry Point.

Drives the onboarding core from a terminal, the way the app shell would.

Usage:
    flowfam route               Launch: route from the root screen
    flowfam status              Show the onboarding signals
    flowfam language nl         Pick the app language
    flowfam login               Sign in with email/password
    flowfam family-setup ...    Create your family
    flowfam family-style        Give every member a color
    flowfam logout              Sign out and forget cached progress
    flowfam --help              Show help
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

app = typer.Typer(
    name="flowfam",
    help="Flow Fam - family organiser onboarding.",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Log to stderr; quiet the HTTP libraries."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    setup_logging(verbose)


def _load_app():
    from flowfam.app import create_app
    from flowfam.config import get_settings

    try:
        return create_app(get_settings())
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with SUPABASE_URL and SUPABASE_ANON_KEY.[/dim]")
        raise typer.Exit(1)


def _show_destination(flowfam) -> None:
    decision = flowfam.router.last_decision
    label = decision.value if decision else "unchanged"
    console.print(f"\n[bold green]→ {label}[/bold green] [dim]{flowfam.navigator.current_route}[/dim]")


async def _settled(flowfam) -> None:
    """Let any auth-triggered routing finish."""
    await flowfam.router.settle()


@app.command()
def route() -> None:
    """Launch the app: decide the first screen."""
    flowfam = _load_app()

    with Live(Spinner("dots", text="Checking..."), console=console, transient=True):
        asyncio.run(flowfam.router.reconcile())

    _show_destination(flowfam)


@app.command()
def status() -> None:
    """Show each onboarding signal and where it came from."""
    from onboarding.router import RunProgress
    from onboarding.state import decide_route

    flowfam = _load_app()
    progress = RunProgress()

    async def _resolve():
        return await asyncio.wait_for(
            flowfam.router.resolve_signals(progress, stop_early=False),
            flowfam.router.budget,
        )

    try:
        signals = asyncio.run(_resolve())
    except asyncio.TimeoutError:
        console.print("[yellow]⚠️  Signals did not resolve in time[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Onboarding signals")
    table.add_column("Signal")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    def _mark(value: bool) -> str:
        return "[green]yes[/green]" if value else "[red]no[/red]"

    family_source = progress.family_source or "-"
    table.add_row("Language selected", _mark(signals.language_selected), "local")
    table.add_row("Signed in", _mark(signals.authenticated), "auth")
    table.add_row("Family set up", _mark(signals.family_setup_complete), family_source)
    table.add_row("Family styled", _mark(signals.family_style_complete), family_source)
    console.print(table)

    if progress.session:
        console.print(f"User: {progress.session.user.email} ({progress.session.user_id})")
    console.print(f"Next screen: [bold]{decide_route(signals).value}[/bold]")


@app.command()
def language(
    code: str = typer.Argument(..., help="Language code: en, es, fr, de, nl"),
) -> None:
    """Pick the app language."""
    flowfam = _load_app()

    try:
        asyncio.run(flowfam.flow.select_language(code))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    _show_destination(flowfam)


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Sign in with email and password."""
    from flowfam.auth.session import AuthError

    flowfam = _load_app()

    async def _login():
        session = await flowfam.flow.sign_in(email, password)
        await _settled(flowfam)
        return session

    try:
        session = asyncio.run(_login())
    except AuthError as e:
        console.print(f"[red]Sign in failed: {e.message}[/red]")
        raise typer.Exit(1)

    console.print(f"✅ Signed in as {session.user.email}")
    _show_destination(flowfam)


@app.command()
def signup(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True),
    name: str = typer.Option("", "--name", "-n", help="Your name"),
) -> None:
    """Create an account."""
    from flowfam.auth.session import AuthError

    flowfam = _load_app()

    async def _signup():
        session = await flowfam.flow.sign_up(email, password, name=name or None)
        await _settled(flowfam)
        return session

    try:
        session = asyncio.run(_signup())
    except AuthError as e:
        console.print(f"[red]Sign up failed: {e.message}[/red]")
        raise typer.Exit(1)

    if session is None:
        console.print("📧 Check your inbox to confirm your email, then run [bold]flowfam login[/bold].")
        return

    console.print(f"✅ Account created for {session.user.email}")
    _show_destination(flowfam)


@app.command()
def logout() -> None:
    """Sign out and forget this user's cached progress."""
    flowfam = _load_app()

    async def _logout():
        await flowfam.flow.sign_out()
        await _settled(flowfam)

    asyncio.run(_logout())
    console.print("👋 Signed out")
    _show_destination(flowfam)


@app.command("family-setup")
def family_setup(
    family_name: str = typer.Option(..., "--family-name", "-f", prompt="Family name"),
    parent: str = typer.Option(..., "--parent", prompt="Your name"),
    partner: str = typer.Option("", "--partner", help="Partner name"),
    child: list[str] = typer.Option([], "--child", "-c", help="Child name (repeatable)"),
) -> None:
    """Create your family."""
    from pydantic import ValidationError

    from flowfam.api.client import ApiError, BackendNotConfiguredError
    from onboarding.flow import NotSignedInError
    from onboarding.forms import FamilySetupForm

    try:
        form = FamilySetupForm(family_name=family_name, parent_name=parent, partner_name=partner, children=child)
    except ValidationError as e:
        for error in e.errors():
            console.print(f"[red]{error['msg']}[/red]")
        raise typer.Exit(1)

    flowfam = _load_app()

    try:
        result = asyncio.run(flowfam.flow.submit_family_setup(form))
    except (NotSignedInError, BackendNotConfiguredError, ApiError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"✅ Family created ({result.family_id}) with {len(form.to_members())} members")
    _show_destination(flowfam)


@app.command("family-style")
def family_style(
    color: list[str] = typer.Option([], "--color", help="MEMBER_ID=#HEX (repeatable). Unset members get a default."),
) -> None:
    """Give every family member a color."""
    from pydantic import ValidationError

    from flowfam.api.client import ApiError, BackendNotConfiguredError
    from onboarding.flow import IncompleteStyleError, NotSignedInError
    from onboarding.forms import FamilyStyleForm, default_colors

    flowfam = _load_app()

    overrides = {}
    for item in color:
        member_id, _, value = item.partition("=")
        if not value:
            console.print(f"[red]Expected MEMBER_ID=#HEX, got '{item}'[/red]")
            raise typer.Exit(1)
        overrides[member_id.strip()] = value.strip()

    async def _style():
        members = await flowfam.flow.load_family_members()
        colors = {**default_colors(members), **overrides}
        form = FamilyStyleForm(colors=colors)
        return await flowfam.flow.submit_family_style(form)

    try:
        updated = asyncio.run(_style())
    except ValidationError as e:
        for error in e.errors():
            console.print(f"[red]{error['msg']}[/red]")
        raise typer.Exit(1)
    except (IncompleteStyleError, NotSignedInError, BackendNotConfiguredError, ApiError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    for member in updated:
        console.print(f"  • {member.name} ({member.role}): [{member.color}]■[/] {member.color}")
    _show_destination(flowfam)


@app.command()
def profile() -> None:
    """Show the backend profile for the signed-in user."""
    from flowfam.api.client import ApiError, BackendNotConfiguredError

    flowfam = _load_app()

    async def _profile():
        session = await flowfam.auth.get_current_session()
        if session is None:
            return None
        return await flowfam.api.get_profile(session.access_token)

    try:
        result = asyncio.run(_profile())
    except (BackendNotConfiguredError, ApiError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if result is None:
        console.print("[dim]Not signed in.[/dim]")
        return

    console.print(
        Panel.fit(
            f"[bold]{result.name or '-'}[/bold]\n"
            f"{result.email or '-'}\n\n"
            f"Email verified: {result.email_verified}\n"
            f"Family setup complete: {result.family_setup_complete}",
            title="Profile",
            border_style="green",
        )
    )


@app.command()
def health() -> None:
    """Check configuration."""
    from flowfam.config import get_settings

    console.print("\n[bold]Flow Fam Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.flowfam_env}")
        console.print(f"   Store: {settings.resolved_store_path}")
        console.print(
            f"   Routing budget: {settings.routing_timeout_seconds}s "
            f"(session {settings.session_timeout_seconds}s, remote {settings.remote_timeout_seconds}s)"
        )

        healthy = settings.supabase_url.startswith("https://")
        if healthy:
            console.print("✅ Supabase URL configured")
        else:
            console.print("❌ Supabase URL missing or invalid")

        if settings.backend_configured:
            console.print(f"✅ Backend URL configured: {settings.backend_url}")
        else:
            console.print("⚠️  Backend URL not set, routing will use cached family state only")

    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)

    if not healthy:
        raise typer.Exit(1)
    console.print("\n[green]All checks passed![/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from flowfam import __version__

    console.print(f"Flow Fam version {__version__}")


if __name__ == "__main__":
    app()
