"""
CosmoStart Command-Line Interface

Runs the getting-started walkthrough and shows the resolved configuration.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import sys
import json
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from cosmostart import __version__
from cosmostart.core.config_manager import ConfigManager, CosmoStartConfig
from cosmostart.core.logging_config import setup_logging
from cosmostart.core.metrics import StoreMetrics
from cosmostart.store.exceptions import RemoteStoreError
from cosmostart.workflow import run_workflow

logger = logging.getLogger("cosmostart.cli")

CONFIG_ERROR_EXIT_CODE = 2


def _load_config(config: Optional[Path], overrides: Dict[str, Any]) -> CosmoStartConfig:
    """Load configuration or exit with a usage error."""
    try:
        return ConfigManager().load(
            config_file=str(config) if config else None,
            cli_overrides=overrides or None
        )
    except (ValidationError, FileNotFoundError, ValueError) as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(CONFIG_ERROR_EXIT_CODE)


def _build_overrides(
    backend: Optional[str] = None,
    endpoint: Optional[str] = None,
    key: Optional[str] = None,
    snapshot: Optional[Path] = None,
    keep_database: bool = False,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None
) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    connection = {
        name: value for name, value in (
            ("backend", backend.lower() if backend else None),
            ("endpoint_uri", endpoint),
            ("primary_key", key),
            ("snapshot_path", str(snapshot) if snapshot else None),
        )
        if value is not None
    }
    if connection:
        overrides["connection"] = connection
    if keep_database:
        overrides["workflow"] = {"delete_database": False}

    logging_overrides: Dict[str, Any] = {}
    if log_level:
        logging_overrides["level"] = log_level.upper()
    if log_format:
        logging_overrides["format"] = log_format.lower()
    if logging_overrides:
        overrides["logging"] = logging_overrides
    return overrides


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)


@click.group()
@click.version_option(version=__version__, prog_name="cosmostart")
@click.pass_context
def cli(ctx):
    """
    CosmoStart - Cosmos DB getting-started walkthrough

    Provision a database and container, then create, query, replace and
    delete sample family documents.
    """
    ctx.ensure_object(dict)


@cli.command()
@config_option
@click.option(
    "--backend",
    type=click.Choice(["cosmos", "memory"], case_sensitive=False),
    help="Document store backend (default: cosmos)",
)
@click.option("--endpoint", help="Cosmos DB account endpoint URI")
@click.option("--key", help="Cosmos DB account primary key")
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON snapshot file kept between runs (memory backend)",
)
@click.option("--keep-database", is_flag=True, help="Do not delete the database at the end")
@click.option("--pause", is_flag=True, help="Wait for a key press before deleting the database")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    help="Log output format",
)
def run(
    config: Optional[Path],
    backend: Optional[str],
    endpoint: Optional[str],
    key: Optional[str],
    snapshot: Optional[Path],
    keep_database: bool,
    pause: bool,
    log_level: Optional[str],
    log_format: Optional[str]
):
    """
    Run the getting-started walkthrough.

    Examples:
        cosmostart run --backend memory
        cosmostart run --endpoint https://myaccount.documents.azure.com:443/ --key ...
        cosmostart run --config appsettings.json --keep-database
    """
    overrides = _build_overrides(backend, endpoint, key, snapshot, keep_database, log_level, log_format)
    settings = _load_config(config, overrides)

    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file,
        rotation_size=settings.logging.rotation_size,
        rotation_count=settings.logging.rotation_count,
        module_levels=settings.logging.module_levels,
    )

    pause_callback = (lambda: click.pause("Press any key to cleanup database!")) if pause else None
    metrics = StoreMetrics()

    exit_code = 0
    try:
        report = asyncio.run(run_workflow(settings, pause=pause_callback, metrics=metrics))
        click.echo(f"Operations consumed {report.request_charge} RUs in total.")
    except RemoteStoreError as e:
        logger.error(f"Store request failed with status {e.status_code}: {e.message}")
        click.echo(f"{e.status_code} error occurred: {e.message}")
        exit_code = 1
    except Exception as e:
        logger.exception("Walkthrough failed")
        click.echo(f"Error: {e}")
        exit_code = 1
    finally:
        click.echo("End of demo.")

    if exit_code:
        sys.exit(exit_code)


@cli.command(name="config")
@config_option
def show_config(config: Optional[Path]):
    """
    Show the resolved configuration.

    The account key is redacted.
    """
    settings = _load_config(config, {})
    click.echo(json.dumps(settings.redacted(), indent=2))


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
