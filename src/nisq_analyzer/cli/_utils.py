# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Shared CLI utilities.

Output helpers shared by the commands, and factories that build the
catalogue, rule engine and executor registry from the click context.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Sequence

import click

from nisq_analyzer.catalogue import InMemoryCatalogue, load_catalogue
from nisq_analyzer.config import Config, load_config
from nisq_analyzer.errors import NisqAnalyzerError
from nisq_analyzer.executors.registry import ExecutorRegistry
from nisq_analyzer.rules.engine import PrologRuleEngine, RuleEngineProtocol


def echo(msg: str, *, err: bool = False) -> None:
    """Write a line to stdout, or to stderr when ``err`` is set."""
    click.echo(msg, err=err)


def print_json(obj: Any) -> None:
    """Emit ``obj`` as indented JSON; UUIDs and datetimes become strings."""
    click.echo(json.dumps(obj, indent=2, default=str))


def print_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    title: str = "",
) -> None:
    """
    Render rows as a left-aligned plain-text table.

    Parameters
    ----------
    headers : sequence of str
        Column headers.
    rows : sequence of sequence
        One entry per line, aligned with ``headers``.
    title : str, optional
        Underlined heading printed first.
    """
    if title:
        echo(f"\n{title}\n{'=' * len(title)}")

    if not rows:
        echo("(empty)")
        return

    widths = [len(str(h)) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(widths):
                widths[i] = max(widths[i], len(str(cell)))

    fmt = "  ".join(f"{{:<{w}}}" for w in widths)

    echo(fmt.format(*headers))
    echo(fmt.format(*["-" * w for w in widths]))
    for row in rows:
        echo(fmt.format(*[str(c) for c in row]))


def parse_params(values: Sequence[str]) -> dict[str, str]:
    """
    Parse repeated ``NAME=VALUE`` options into a binding.

    Raises
    ------
    click.BadParameter
        If an item has no ``=`` or an empty name.
    """
    binding: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise click.BadParameter(
                f"expected NAME=VALUE, got {item!r}", param_hint="'-p' / '--param'"
            )
        binding[name] = value
    return binding


def root_from_ctx(ctx: click.Context) -> Path:
    """Return the analyzer root from the click context, creating it if needed."""
    root: Path = ctx.obj["root"]
    root.mkdir(parents=True, exist_ok=True)
    return root


def config_from_ctx(ctx: click.Context) -> Config:
    """Environment configuration with the CLI ``--root`` applied."""
    try:
        config = load_config()
    except NisqAnalyzerError as e:
        raise click.ClickException(str(e)) from e
    return dataclasses.replace(config, root_dir=root_from_ctx(ctx))


def catalogue_from_ctx(ctx: click.Context) -> InMemoryCatalogue:
    """
    Load the catalogue named by ``--catalogue``.

    Raises
    ------
    click.UsageError
        If no catalogue file was given.
    click.ClickException
        If the file cannot be loaded.
    """
    path: Path | None = ctx.obj.get("catalogue")
    if path is None:
        raise click.UsageError("This command needs a catalogue: pass --catalogue FILE")
    try:
        return load_catalogue(path)
    except NisqAnalyzerError as e:
        raise click.ClickException(str(e)) from e


def create_rule_engine(config: Config) -> RuleEngineProtocol:
    """
    Open the rule engine used by CLI commands.

    Raises
    ------
    RuleEngineUnavailableError
        If SWI-Prolog cannot be found.
    """
    return PrologRuleEngine.from_config(config).open()


def create_registry() -> ExecutorRegistry:
    """Executor registry used by CLI commands."""
    return ExecutorRegistry.from_entry_points()
