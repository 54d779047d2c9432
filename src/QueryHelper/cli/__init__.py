"""CLI package for QueryHelper command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from QueryHelper.cli.runner import CommandRunner
from QueryHelper.cli.ui import cli


def main() -> None:
    """Run QueryHelper CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
