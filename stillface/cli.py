#!/usr/bin/env python3
"""
StillFace CLI - Command-line interface for a StillFace coding database

Usage:
    stillface --help
    stillface db init
    stillface db status
    stillface codes list
    stillface codes add "Gaze aversion"
    stillface tags add "reviewed"
    stillface imports list

Install:
    pip install -e .  # From repo root
"""

import json
import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from stillface import __version__
from stillface.bootstrap import StillFaceApp, bootstrap, create_dao
from stillface.core.config import Settings, configure_logging
from stillface.domain import INSERT_FAILED, StillFaceDAO
from stillface.domain.query.schema import TABLE_NAMES
from stillface.shared.exceptions import StillFaceError
from stillface.shared.types import Code, DatabaseMode, Tag

# =============================================================================
# CONFIGURATION
# =============================================================================

console = Console()

MODE_CHOICES = [m.value for m in DatabaseMode] + ["sqlite3", "mariadb", "postgresql", "pg"]


def load_settings(ctx: click.Context) -> Settings:
    """Settings from the environment, with command-line overrides applied."""
    overrides: Dict[str, Any] = {}
    if ctx.obj.get("mode"):
        overrides["db_mode"] = ctx.obj["mode"]
    if ctx.obj.get("database"):
        overrides["database"] = ctx.obj["database"]
    return Settings(**overrides)


def handle_error(err: StillFaceError):
    """Print a StillFace error with rich formatting and exit."""
    console.print(f"\n[bold red]Error {err.code.value}[/bold red]")
    console.print(f"[red]{escape(err.message)}[/red]")

    if err.suggestion:
        console.print(f"\n[yellow]Suggestion:[/yellow] {escape(err.suggestion)}")

    if err.details:
        console.print("\n[dim]Details:[/dim]")
        console.print(escape(json.dumps(err.details, indent=2, default=str)))

    sys.exit(1)


def emit_json(data: Any):
    click.echo(json.dumps(data, indent=2, default=str))


def open_app(ctx: click.Context, cache_code_data: bool = False) -> StillFaceApp:
    """Bootstrap the application or exit with the error."""
    try:
        settings = load_settings(ctx)
        return bootstrap(settings.model_copy(update={"model_cache": cache_code_data}))
    except StillFaceError as e:
        handle_error(e)


def open_dao(ctx: click.Context) -> StillFaceDAO:
    try:
        return create_dao(load_settings(ctx))
    except StillFaceError as e:
        handle_error(e)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================

@click.group()
@click.option("--mode", type=click.Choice(MODE_CHOICES, case_sensitive=False),
              help="Database mode (overrides STILLFACE_DB_MODE)")
@click.option("--database", help="SQLite file or server database name (overrides STILLFACE_DATABASE)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Show library log messages at this level")
@click.version_option(version=__version__, prog_name="stillface")
@click.pass_context
def cli(ctx, mode, database, output_json, log_level):
    """
    StillFace CLI - Manage the StillFace coding database from the command line.

    \b
    Quick Start:
        stillface db init
        stillface codes add "Gaze aversion"
        stillface codes list

    \b
    Environment Variables:
        STILLFACE_DB_MODE   - sqlite, mysql or postgres (default: sqlite)
        STILLFACE_DATABASE  - SQLite file or database name (default: stillface.db)
        STILLFACE_HOST, STILLFACE_USER, STILLFACE_PASSWORD - server modes
    """
    ctx.ensure_object(dict)
    ctx.obj["mode"] = mode
    ctx.obj["database"] = database
    ctx.obj["output_json"] = output_json
    if log_level:
        configure_logging(log_level)


# =============================================================================
# DATABASE COMMANDS
# =============================================================================

@cli.group()
def db():
    """Create, drop and inspect the StillFace tables."""
    pass


@db.command("init")
@click.pass_context
def db_init(ctx):
    """Create the StillFace tables if they do not exist."""
    dao = open_dao(ctx)
    try:
        if dao.is_database_initialized():
            console.print("[yellow]Database already initialized[/yellow]")
            return
        if not dao.create_tables():
            console.print("[red]✗ Failed to create tables[/red]")
            console.print(f"[dim]Target: {escape(dao.adapter.describe())}[/dim]")
            sys.exit(1)
        console.print(f"[green]✓[/green] Created tables: {', '.join(TABLE_NAMES)}")
    finally:
        dao.adapter.dispose()


@db.command("drop")
@click.confirmation_option(prompt="Drop all StillFace tables and their data?")
@click.pass_context
def db_drop(ctx):
    """Drop the StillFace tables and all their data."""
    dao = open_dao(ctx)
    try:
        if not dao.drop_tables():
            console.print("[red]✗ Failed to drop tables[/red]")
            sys.exit(1)
        console.print("[green]✓[/green] Tables dropped")
    finally:
        dao.adapter.dispose()


@db.command("status")
@click.pass_context
def db_status(ctx):
    """Show the configured database and whether it is initialized."""
    dao = open_dao(ctx)
    try:
        initialized = dao.is_database_initialized()
        counts: Dict[str, Optional[int]] = {}
        if initialized:
            with dao.locked_session():
                counts["imports"] = _count(dao.get_import_data())
                counts["codes"] = _count(dao.get_code())
                counts["tags"] = _count(dao.get_tag())
                counts["code data"] = _count(dao.get_code_data_from_import())

        if ctx.obj.get("output_json"):
            emit_json({
                "mode": dao.mode.value,
                "target": dao.adapter.describe(),
                "initialized": initialized,
                "counts": counts,
            })
            return

        status_color = "green" if initialized else "red"
        status = "INITIALIZED" if initialized else "NOT INITIALIZED"
        console.print(Panel(
            f"[{status_color} bold]{status}[/{status_color} bold]",
            title=f"{dao.mode.value}: {escape(dao.adapter.describe())}",
            expand=False
        ))

        if counts:
            table = Table(title="Rows", show_header=True)
            table.add_column("Collection", style="cyan")
            table.add_column("Rows", style="green", justify="right")
            for name, count in counts.items():
                table.add_row(name, "?" if count is None else str(count))
            console.print(table)
        else:
            console.print("\n[dim]Run 'stillface db init' to create the tables[/dim]")
    finally:
        dao.adapter.dispose()


def _count(outcome) -> Optional[int]:
    return len(outcome.records) if outcome.ok else None


# =============================================================================
# CODES COMMANDS
# =============================================================================

@cli.group()
def codes():
    """Manage behavior codes."""
    pass


@codes.command("list")
@click.pass_context
def codes_list(ctx):
    """List codes ordered by name."""
    app = open_app(ctx)
    try:
        items = app.model.code_list
        if ctx.obj.get("output_json"):
            emit_json([c.model_dump() for c in items])
            return

        if not items:
            console.print("[yellow]No codes defined[/yellow]")
            return

        table = Table(title=f"Codes ({len(items)})", show_header=True)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Name", style="cyan")
        for code in items:
            table.add_row(str(code.id), escape(code.name))
        console.print(table)
    finally:
        app.close()


@codes.command("add")
@click.argument("name")
@click.pass_context
def codes_add(ctx, name):
    """Add a code."""
    app = open_app(ctx)
    try:
        new_id = app.dao.insert_new_code(Code(name=name))
        if new_id == INSERT_FAILED:
            console.print(f"[red]✗ Failed to add code '{escape(name)}'[/red]")
            sys.exit(1)
        console.print(f"[green]✓[/green] Added code {escape(name)} (id {new_id})")
    finally:
        app.close()


# =============================================================================
# TAGS COMMANDS
# =============================================================================

@cli.group()
def tags():
    """Manage free-form tags."""
    pass


@tags.command("list")
@click.pass_context
def tags_list(ctx):
    """List tags ordered by value."""
    app = open_app(ctx)
    try:
        items = app.model.tag_list
        if ctx.obj.get("output_json"):
            emit_json([t.model_dump() for t in items])
            return

        if not items:
            console.print("[yellow]No tags defined[/yellow]")
            return

        table = Table(title=f"Tags ({len(items)})", show_header=True)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Value", style="cyan")
        for tag in items:
            table.add_row(str(tag.id), escape(tag.value))
        console.print(table)
    finally:
        app.close()


@tags.command("add")
@click.argument("value")
@click.pass_context
def tags_add(ctx, value):
    """Add a tag."""
    app = open_app(ctx)
    try:
        new_id = app.dao.insert_new_tag(Tag(value=value))
        if new_id == INSERT_FAILED:
            console.print(f"[red]✗ Failed to add tag '{escape(value)}'[/red]")
            sys.exit(1)
        console.print(f"[green]✓[/green] Added tag {escape(value)} (id {new_id})")
    finally:
        app.close()


# =============================================================================
# IMPORTS COMMANDS
# =============================================================================

@cli.group()
def imports():
    """Inspect imported recordings."""
    pass


@imports.command("list")
@click.pass_context
def imports_list(ctx):
    """List imported recordings."""
    app = open_app(ctx)
    try:
        items = app.model.import_data.ordered
        if ctx.obj.get("output_json"):
            emit_json([i.model_dump(mode="json") for i in items])
            return

        if not items:
            console.print("[yellow]No imports found[/yellow]")
            return

        table = Table(title=f"Imports ({len(items)})", show_header=True)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("File", style="cyan")
        table.add_column("Year", justify="right")
        table.add_column("Family", justify="right")
        table.add_column("Participant", justify="right")
        table.add_column("Alias")
        table.add_column("Date", style="dim")
        for item in items:
            table.add_row(
                str(item.id),
                escape(item.filename),
                str(item.year),
                str(item.family_id),
                str(item.participant_number),
                escape(item.alias),
                item.date.isoformat() if item.date else "",
            )
        console.print(table)
    finally:
        app.close()


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
