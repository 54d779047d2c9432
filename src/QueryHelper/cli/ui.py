"""Click CLI interface definitions."""

from __future__ import annotations

from pathlib import Path
import sys

import click
from dotenv import load_dotenv

from QueryHelper.cli.runner import CommandRunner
from QueryHelper.config import DEFAULT_CONFIG_PATH, load_config


@click.group(help="QueryHelper: convert search filters between raw queries, tags and API payloads.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config, so
    ``query.timezone_env`` can be set there.
    """
    load_dotenv()
    ctx.obj = load_config(config_path)


def _collect(queries: tuple[str, ...]) -> list[str]:
    """Use arguments, or one raw query string per stdin line when none are given."""
    if queries:
        return list(queries)
    return [line.strip() for line in sys.stdin if line.strip()]


@cli.command("api")
@click.argument("queries", nargs=-1)
@click.pass_context
def api_cmd(ctx: click.Context, queries: tuple[str, ...]) -> None:
    """Print the API payload (filter, filter_or, keyword) as JSON."""
    CommandRunner(ctx.obj).run_convert(action=ctx.command.name, raw_query_strings=_collect(queries))


@cli.command("tags")
@click.argument("queries", nargs=-1)
@click.pass_context
def tags_cmd(ctx: click.Context, queries: tuple[str, ...]) -> None:
    """Print the display tags as JSON."""
    CommandRunner(ctx.obj).run_convert(action=ctx.command.name, raw_query_strings=_collect(queries))


@cli.command("normalize")
@click.argument("queries", nargs=-1)
@click.pass_context
def normalize_cmd(ctx: click.Context, queries: tuple[str, ...]) -> None:
    """Re-encode raw queries, one per line, dropping malformed entries."""
    CommandRunner(ctx.obj).run_convert(action=ctx.command.name, raw_query_strings=_collect(queries))
