"""Command runner for coordinating CLI execution.

Configures logging, builds the engine from configuration and converts
failures into ``click.Abort``.
"""

from __future__ import annotations

from typing import Sequence

import click

from QueryHelper.cli.commands import ConvertCommand
from QueryHelper.config import AppConfig
from QueryHelper.services import create_query_helper
from QueryHelper.utils.log import configure_logging, log


class CommandRunner:
    """Runs one conversion command with logging and error handling."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run_convert(self, action: str, raw_query_strings: Sequence[str]) -> None:
        """Convert raw query strings and echo the result.

        Args:
            action: The CLI command name, also the conversion target.
            raw_query_strings: JSON-encoded raw queries.

        Raises:
            click.Abort: When the conversion fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            command = ConvertCommand(helper=create_query_helper(self.config))
            lines = command.execute(action, raw_query_strings)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Conversion failed: %s", e)
            raise click.Abort from e

        for line in lines:
            click.echo(line)
