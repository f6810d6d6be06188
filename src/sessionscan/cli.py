"""Command-line interface for sessionscan."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sessionscan.adapters import create_default_registry
from sessionscan.adapters.registry import ScannerRegistry
from sessionscan.config import Config, load_config
from sessionscan.models import ParsedSession, ScannerStatus, SessionSummary

console = Console()
error_console = Console(stderr=True)

# Display cap per turn in `read`
MAX_TURN_DISPLAY_CHARS = 3000


def setup_logging(level: str, verbose: bool = False) -> None:
    """Route library logging to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def format_age(dt: datetime) -> str:
    """Format a datetime as a human-readable age string.

    Args:
        dt: The datetime to format.

    Returns:
        Human-readable age like '2h ago', '3d ago', '1w ago'.
    """
    now = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    seconds = max((now - dt).total_seconds(), 0)

    if seconds < 3600:
        return f"{int(seconds / 60)}m ago"
    elif seconds < 86400:
        return f"{int(seconds / 3600)}h ago"
    elif seconds < 604800:
        return f"{int(seconds / 86400)}d ago"
    else:
        return f"{int(seconds / 604800)}w ago"


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


def print_sessions_table(sessions: list[SessionSummary]) -> None:
    """Print session summaries in a formatted table.

    Args:
        sessions: Summaries to display, already sorted.
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("Source", style="magenta")
    table.add_column("Project", style="green")
    table.add_column("Title", style="white", max_width=50)
    table.add_column("Msgs", justify="right")
    table.add_column("Age", style="yellow")
    table.add_column("Path", style="dim", overflow="fold")

    for session in sessions:
        table.add_row(
            session.source,
            escape(session.project),
            escape(session.title),
            f"{session.human_message_count}/{session.ai_message_count}",
            format_age(session.modified_at),
            escape(session.file_path),
        )

    console.print(table)


def print_status_table(statuses: list[ScannerStatus]) -> None:
    """Print scanner availability.

    Args:
        statuses: One entry per registered scanner.
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("Source", style="magenta")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Directories", overflow="fold")

    for status in statuses:
        if status.error:
            state = f"[red]Error:[/red] {escape(status.error)}"
        elif status.available:
            state = "[green]Available[/green]"
        else:
            state = "[dim]Not Found[/dim]"
        table.add_row(
            status.source,
            status.name,
            state,
            "\n".join(status.dirs) or "[dim]—[/dim]",
        )

    console.print(table)


def print_session_detail(session: ParsedSession) -> None:
    """Print a parsed session's header and conversation."""
    project_path = escape(session.project_path) if session.project_path else "[dim]—[/dim]"
    header_content = f"""[bold]ID:[/bold] {escape(session.id)}
[bold]Source:[/bold] {session.source}
[bold]Title:[/bold] {escape(session.title)}
[bold]Project:[/bold] {escape(session.project)} ({project_path})
[bold]Modified:[/bold] {session.modified_at.isoformat()}
[bold]Messages:[/bold] {session.message_count} \
({session.human_message_count} human, {session.ai_message_count} assistant)"""
    if session.project_description:
        header_content += f"\n[bold]About:[/bold] {escape(session.project_description)}"

    console.print(Panel(header_content, title="Session Details", border_style="blue"))

    for turn in session.turns:
        role_style = "bold blue" if turn.role == "human" else "bold green"
        console.print(f"\n[{role_style}]{turn.role.upper()}[/{role_style}]")
        console.print(truncate(turn.content, MAX_TURN_DISPLAY_CHARS), markup=False)


def dump_json(models: list[SessionSummary] | list[ScannerStatus]) -> None:
    click.echo(json.dumps([m.model_dump(mode="json") for m in models], indent=2))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """sessionscan - discover local AI coding assistant sessions."""
    config = load_config(config_path)
    setup_logging(config.logging.level, verbose)
    ctx.obj = {"config": config, "registry": create_default_registry(config)}


def _config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _registry(ctx: click.Context) -> ScannerRegistry:
    return ctx.obj["registry"]


@cli.command()
@click.option("--limit", "-l", type=int, default=None, help="Maximum sessions to show")
@click.option("--source", "-s", type=str, help="Only scan this source (e.g. claude-code)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan(ctx: click.Context, limit: int | None, source: str | None, as_json: bool) -> None:
    """List the most recent sessions across all tools."""
    if limit is None:
        limit = _config(ctx).scan.default_limit

    registry = _registry(ctx)
    sessions = registry.scan_all(limit, source)

    if as_json:
        dump_json(sessions)
        return

    if sessions:
        print_sessions_table(sessions)
        return

    if source is not None and registry.get_scanner(source) is None:
        known = ", ".join(s.source for s in registry.list_scanner_status()) or "none"
        console.print(f"[dim]No scanner for source '{source}'. Known sources: {known}[/dim]")
        return

    console.print("[dim]No sessions found. Scanner status:[/dim]")
    print_status_table(registry.list_scanner_status())


@cli.command()
@click.argument("file_path")
@click.option("--source", "-s", type=str, required=True, help="Source the file belongs to")
@click.option("--max-turns", "-n", type=click.IntRange(min=0), help="Stop after N turns")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def read(
    ctx: click.Context,
    file_path: str,
    source: str,
    max_turns: int | None,
    as_json: bool,
) -> None:
    """Show the conversation stored in FILE_PATH."""
    session = _registry(ctx).parse_session(file_path, source, max_turns)
    if session is None:
        error_console.print(
            f"[red]Error:[/red] No conversation found in '{file_path}' for {source}"
        )
        ctx.exit(1)

    if as_json:
        click.echo(session.model_dump_json(indent=2))
        return

    print_session_detail(session)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sources(ctx: click.Context, as_json: bool) -> None:
    """List scanners and the session directories they found."""
    statuses = _registry(ctx).list_scanner_status()

    if as_json:
        dump_json(statuses)
        return

    if not statuses:
        console.print("[dim]No scanners enabled.[/dim]")
        return

    print_status_table(statuses)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
