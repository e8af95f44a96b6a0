"""indexwright CLI application with Typer."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from indexwright import __version__
from indexwright.app import (
    BuildOutcome,
    BuildProgress,
    BuildReport,
    DeleteOutcome,
    ScopeNotFoundError,
)
from indexwright.bootstrap import ApplicationContainer, bootstrap_application
from indexwright.config import get_settings, set_settings
from indexwright.index.status import IndexingStatus

app = typer.Typer(
    name="indexwright",
    help="Build and maintain per-scope search indexes",
    add_completion=True,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"indexwright version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override data directory"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"),
    ] = None,
) -> None:
    """indexwright - per-scope search index builds."""
    # Update settings with CLI flags
    settings = get_settings()
    if data_dir:
        settings.data_dir = data_dir
    if log_level:
        settings.log_level = log_level.upper()
    set_settings(settings)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _require_provider(container: ApplicationContainer) -> bool:
    if container.indexing_service.has_provider():
        return True
    typer.secho(
        "Indexing is disabled (index_backend=none); nothing to do.",
        fg=typer.colors.YELLOW,
    )
    return False


def _print_progress(progress: BuildProgress) -> None:
    typer.echo(
        f"  segment {progress.segments_applied}: "
        f"{progress.documents_indexed} indexed, {progress.documents_deleted} deleted"
    )


def _run_build(scope: str, *, rebuild: bool, quiet: bool) -> None:
    container = bootstrap_application()
    if not _require_provider(container):
        return

    service = container.indexing_service
    verb = "Rebuilding" if rebuild else "Updating"
    typer.secho(f"{verb} index '{scope}'...", fg=typer.colors.BLUE)

    build = service.rebuild if rebuild else service.update
    progress = None if quiet else _print_progress

    try:
        report = build(scope, progress=progress)
    except ScopeNotFoundError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(
            f"Known scopes: {', '.join(service.enumerate_scopes()) or '(none)'}",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(code=2) from exc
    except KeyboardInterrupt as exc:
        typer.secho("\nInterrupted; index status has been finalized.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=130) from exc
    except (OSError, RuntimeError, ValueError) as exc:
        typer.secho(f"Index build failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    _print_report(report)


def _print_report(report: BuildReport) -> None:
    if report.outcome is BuildOutcome.BUSY:
        typer.secho(
            f"Index '{report.scope}' is already being built; try again later.",
            fg=typer.colors.YELLOW,
        )
        raise typer.Exit(code=1)

    if report.outcome is BuildOutcome.CANCELLED:
        typer.secho(f"Build of '{report.scope}' was cancelled.", fg=typer.colors.YELLOW)

    typer.secho(
        f"Applied {report.segments_applied} segments to '{report.scope}': "
        f"{report.documents_indexed} indexed, {report.documents_deleted} deleted",
        fg=typer.colors.GREEN,
    )


# Index subcommand
index_app = typer.Typer(help="Search index management")
app.add_typer(index_app, name="index")


@index_app.command("scopes")
def index_scopes() -> None:
    """List scopes that have a registered collector."""
    container = bootstrap_application()
    scopes = container.indexing_service.enumerate_scopes()
    if not scopes:
        typer.secho("No collectors configured.", fg=typer.colors.YELLOW)
        return
    for scope in scopes:
        typer.echo(scope)


@index_app.command("rebuild")
def index_rebuild(
    scope: Annotated[str, typer.Argument(help="Index scope")],
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Do not print per-segment progress"),
    ] = False,
) -> None:
    """Drop an index and rebuild it from all documents."""
    _run_build(scope, rebuild=True, quiet=quiet)


@index_app.command("update")
def index_update(
    scope: Annotated[str, typer.Argument(help="Index scope")],
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Do not print per-segment progress"),
    ] = False,
) -> None:
    """Apply documents changed since the last build."""
    _run_build(scope, rebuild=False, quiet=quiet)


@index_app.command("delete")
def index_delete(
    scope: Annotated[str, typer.Argument(help="Index scope")],
) -> None:
    """Delete an index store (its status record is kept)."""
    container = bootstrap_application()
    if not _require_provider(container):
        return

    outcome = container.indexing_service.delete_index(scope)

    if outcome is DeleteOutcome.BUSY:
        typer.secho(f"Index '{scope}' is in use; try again later.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    if outcome is DeleteOutcome.NOT_FOUND:
        typer.secho(f"Index '{scope}' does not exist.", fg=typer.colors.YELLOW)
        return

    typer.secho(f"Deleted index '{scope}'", fg=typer.colors.GREEN)


@index_app.command("info")
def index_info(
    scope: Annotated[str, typer.Argument(help="Index scope")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output status as JSON"),
    ] = False,
) -> None:
    """Show status, last build time, and live document count."""
    container = bootstrap_application()
    if not _require_provider(container):
        return

    info = container.indexing_service.get_index_info(scope)
    if info is None:
        return

    if json_output:
        typer.echo(info.model_dump_json(indent=2))
        return

    color = {
        IndexingStatus.IDLE: typer.colors.GREEN,
        IndexingStatus.UNAVAILABLE: typer.colors.RED,
    }.get(info.status, typer.colors.YELLOW)

    last = info.last_indexed_utc.isoformat() if info.last_indexed_utc else "never"
    typer.secho(f"Scope:        {info.scope}", bold=True)
    typer.secho(f"Status:       {info.status.value}", fg=color)
    typer.echo(f"Last indexed: {last}")
    typer.echo(f"Documents:    {info.document_count}")
    typer.echo(f"Fields:       {', '.join(info.fields) or '-'}")


# Audit subcommand
audit_app = typer.Typer(help="Audit ledger operations")
app.add_typer(audit_app, name="audit")


@audit_app.command("show")
def audit_show(
    tail: Annotated[
        int | None,
        typer.Option("--tail", "-n", help="Show only the last N entries", min=1),
    ] = None,
    scope: Annotated[
        str | None,
        typer.Option("--scope", help="Only entries for this scope"),
    ] = None,
) -> None:
    """Show audit ledger entries."""
    container = bootstrap_application()
    ledger = container.ledger
    if ledger is None:
        typer.secho("Audit ledger is disabled.", fg=typer.colors.YELLOW)
        return

    try:
        entries = ledger.get_by_scope(scope) if scope else ledger.read_all()
    except ValueError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if tail is not None:
        entries = entries[-tail:]

    for entry in entries:
        typer.echo(
            f"{entry.sequence:>5} {entry.timestamp} {entry.operation:<14} "
            f"{entry.scope} {json.dumps(entry.args, sort_keys=True)}"
        )


@audit_app.command("verify")
def audit_verify() -> None:
    """Verify the audit ledger hash chain."""
    container = bootstrap_application()
    ledger = container.ledger
    if ledger is None:
        typer.secho("Audit ledger is disabled.", fg=typer.colors.YELLOW)
        return

    valid, error = ledger.verify()
    if not valid:
        typer.secho(f"✗ Audit ledger verification failed: {error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.secho("✓ Audit ledger is intact", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
