"""
AutoDBReclaim CLI entry point.

Commands:
    run              Check every database on the target server(s) and reclaim space
    targets          List configured targets
    validate-config  Validate configuration files
    check-drivers    List installed ODBC drivers

Exit codes: 0 success, 1 a database or target failed, 2 configuration/usage error.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from autodbreclaim.application.reclaim_service import CapacityReclaimer
from autodbreclaim.domain.config import MissingTablePolicy, ReclaimSettings, ReclaimTarget
from autodbreclaim.domain.errors import CatalogError, ConfigError, DriverNotFoundError
from autodbreclaim.infrastructure.config_loader import TARGETS_FILE, ConfigLoader
from autodbreclaim.infrastructure.logging_config import setup_logging
from autodbreclaim.interface.formatted_console import ConsoleRenderer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

DEFAULT_CONFIG_DIR = Path("config")

app = typer.Typer(
    name="autodbreclaim",
    help="🗄️ SQL Server storage capacity reclaim tool",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

renderer = ConsoleRenderer()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write logs to file"),
):
    """
    Clear a designated table in databases whose storage usage has crossed
    a fraction of their maximum size.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO,
                  str(log_file) if log_file else None)


def _build_connector(target: ReclaimTarget):
    """Create the SQL connector for a target (pyodbc is imported lazily)."""
    from autodbreclaim.infrastructure.sql_server import SqlConnector

    return SqlConnector.from_target(target)


def _resolve_settings(
    loader: ConfigLoader,
    threshold: Optional[float],
    table: Optional[str],
    workers: Optional[int],
    missing_table: Optional[MissingTablePolicy],
) -> ReclaimSettings:
    """Load settings from file and apply command-line overrides."""
    settings = loader.load_settings()
    overrides = {
        "threshold": threshold,
        "remediation_table": table,
        "max_workers": workers,
        "missing_table": missing_table,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return settings
    try:
        return ReclaimSettings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigError(f"Invalid command-line option:\n{e}") from e


def _resolve_targets(
    loader: ConfigLoader,
    server: Optional[str],
    port: Optional[int],
    username: Optional[str],
    password: Optional[str],
    integrated: bool,
    targets_file: Optional[Path],
) -> List[ReclaimTarget]:
    """Build the single --server target, or load enabled targets from file."""
    if server:
        if not integrated and (not username or not password):
            raise ConfigError("--username and --password are required for SQL authentication")
        try:
            return [ReclaimTarget(
                id="cli",
                server=server,
                port=port,
                auth="integrated" if integrated else "sql",
                username=username,
                password=password,
            )]
        except ValidationError as e:
            raise ConfigError(f"Invalid server options:\n{e}") from e

    targets = [t for t in loader.load_sql_targets(targets_file or TARGETS_FILE) if t.enabled]
    if not targets:
        raise ConfigError("No enabled targets configured")
    return targets


@app.command("run")
def run_command(
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Server address"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="SQL login"),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", envvar="RECLAIM_PASSWORD", help="SQL password"
    ),
    integrated: bool = typer.Option(False, "--integrated", help="Use integrated authentication"),
    targets_file: Optional[Path] = typer.Option(
        None, "--targets", help="Targets file (default: config/sql_targets.json)"
    ),
    config_dir: Path = typer.Option(DEFAULT_CONFIG_DIR, "--config-dir", help="Configuration directory"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Fraction of max size (0-1]"),
    table: Optional[str] = typer.Option(None, "--table", help="Table to truncate ([schema.]table)"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Concurrent database checks"),
    missing_table: Optional[MissingTablePolicy] = typer.Option(
        None, "--missing-table", help="Skip or fail databases without the table"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report decisions without truncating"),
):
    """Check every database on the target server(s) and reclaim space."""
    loader = ConfigLoader(config_dir)
    try:
        settings = _resolve_settings(loader, threshold, table, workers, missing_table)
        targets = _resolve_targets(
            loader, server, port, username, password, integrated, targets_file
        )
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        renderer.error(str(e))
        raise typer.Exit(EXIT_CONFIG)

    exit_code = EXIT_OK
    for target in targets:
        if len(targets) > 1:
            renderer.header(f"🖥️ {target.display_name}")

        reclaimer = CapacityReclaimer(
            _build_connector(target), settings, dry_run=dry_run, on_outcome=renderer.outcome
        )
        try:
            report = reclaimer.run()
        except CatalogError as e:
            renderer.error(str(e))
            exit_code = EXIT_FAILED
            continue
        except DriverNotFoundError as e:
            # Fatal for all remaining targets
            logger.error("%s", e)
            renderer.error(str(e))
            raise typer.Exit(EXIT_FAILED)

        if report.outcomes:
            renderer.summary(report)
        exit_code = max(exit_code, report.exit_code)

    raise typer.Exit(exit_code)


@app.command("targets")
def targets_command(
    config_dir: Path = typer.Option(DEFAULT_CONFIG_DIR, "--config-dir", help="Configuration directory"),
    test: bool = typer.Option(False, "--test", help="Test connectivity to each enabled target"),
):
    """List configured targets."""
    loader = ConfigLoader(config_dir)
    try:
        targets = loader.load_sql_targets()
    except ConfigError as e:
        renderer.error(str(e))
        raise typer.Exit(EXIT_CONFIG)

    renderer.targets(targets)

    if test:
        failed = False
        for target in (t for t in targets if t.enabled):
            if _build_connector(target).test_connection():
                renderer.success(f"{target.display_name}: reachable")
            else:
                renderer.error(f"{target.display_name}: connection failed")
                failed = True
        if failed:
            raise typer.Exit(EXIT_FAILED)


@app.command("validate-config")
def validate_config_command(
    config_dir: Path = typer.Option(DEFAULT_CONFIG_DIR, "--config-dir", help="Configuration directory"),
):
    """Validate reclaim_config.json and sql_targets.json."""
    errors = ConfigLoader(config_dir).validate_config()
    if not errors:
        renderer.success("All configuration validation checks passed!")
        return

    renderer.error(f"Configuration validation failed with {len(errors)} error(s):")
    for i, error in enumerate(errors, 1):
        renderer.console.print(f"  {i}. {error}", markup=False, soft_wrap=True)
    raise typer.Exit(EXIT_CONFIG)


@app.command("check-drivers")
def check_drivers_command():
    """List installed ODBC drivers."""
    from autodbreclaim.infrastructure.odbc_check import check_odbc_drivers

    report = check_odbc_drivers()
    renderer.drivers(report)
    if not report.has_sql_server_driver:
        raise typer.Exit(EXIT_FAILED)


def main():
    """Console script entry point."""
    app(prog_name="autodbreclaim")
