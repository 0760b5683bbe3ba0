"""CLI entry point for buildlens.

Commands:
  record   — store a completed build and its analysis summaries
  check    — fail the build if the code analysis worsened since the last successful build
  history  — display recorded builds from the configured store
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from buildlens_cli.commands.check import check_cmd
from buildlens_cli.commands.history import history_cmd
from buildlens_cli.commands.record import record_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .buildlens.yml settings.

    Store selection hierarchy:
      store: sqlite → SQLiteStore (uses store_path or .buildlens.db) — default
      store: gist   → GistStore   (requires gist_id and github_token)
      store: noop   → NoOpStore   (no persistence)

    This factory lives in cli.py so neither buildlens_core nor buildlens_store
    know about the CLI config format.
    """
    from buildlens_store.noop import NoOpStore

    store_type = config.get("store", "sqlite")

    if store_type == "gist":
        from buildlens_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print("[yellow]GistStore requires gist_id and a GitHub token. Falling back to no store.[/yellow]")
            return NoOpStore()
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from buildlens_store.sqlite import SQLiteStore

        db_path = config.get("store_path") or ".buildlens.db"
        return SQLiteStore(db_path=db_path)

    if store_type == "noop":
        return NoOpStore()

    raise ValueError(f"Unknown store type: {store_type!r}. Choose 'sqlite', 'gist' or 'noop'.")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("buildlens"),
    prog_name="buildlens",
)
@click.option(
    "--config",
    "config_path",
    default=".buildlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="BUILDLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every skipped check and baseline lookup.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Fail a build when its static analysis or coverage regressed."""
    from buildlens_core.config import load_config
    from buildlens_cli.auth import resolve_github_token

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    if config.get("store") == "gist":
        token = resolve_github_token()
        if token:
            config["github_token"] = token

    try:
        store = _build_store(config)
    except ValueError as e:
        raise click.UsageError(str(e))
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(record_cmd)
main.add_command(check_cmd)
main.add_command(history_cmd)
