# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Command-line interface.

Commands
--------
params
    Parameters required to select for an algorithm.
select
    Candidate implementations and QPUs for an algorithm.
execute
    Dispatch an implementation to a QPU.
executors
    Installed executor plugins.
kb sync
    Regenerate the knowledge base from the catalogue.
config
    Current configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from nisq_analyzer.cli import admin, dispatch, selection


@click.group()
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Working directory (default: NISQ_ANALYZER_HOME or ~/.nisq-analyzer).",
)
@click.option(
    "--catalogue",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Catalogue JSON file with algorithms, implementations and QPUs.",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv).")
@click.version_option(package_name="nisq-analyzer")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, catalogue: Path | None, verbose: int) -> None:
    """Select and execute quantum algorithm implementations on NISQ devices."""
    from nisq_analyzer.config import load_config
    from nisq_analyzer.errors import ConfigError

    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if root is None:
        try:
            root = load_config().root_dir
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

    ctx.ensure_object(dict)
    ctx.obj["root"] = root.expanduser()
    ctx.obj["catalogue"] = catalogue


selection.register(cli)
dispatch.register(cli)
admin.register(cli)


def main() -> None:
    """Run the ``nisq-analyzer`` CLI."""
    cli()


__all__ = ["cli", "main"]
