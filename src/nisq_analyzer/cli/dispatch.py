# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Dispatch CLI commands.

execute
    Run an implementation on a QPU and wait for the outcome.
executors
    List installed executor plugins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from nisq_analyzer.cli._utils import (
    catalogue_from_ctx,
    config_from_ctx,
    create_registry,
    echo,
    parse_params,
    print_json,
    print_table,
)


if TYPE_CHECKING:
    from nisq_analyzer.execution.result import ExecutionResult


logger = logging.getLogger(__name__)


def register(cli: click.Group) -> None:
    """Register dispatch commands with CLI."""
    cli.add_command(execute_command)
    cli.add_command(executors_command)


def _print_record(record: ExecutionResult, fmt: str) -> None:
    if fmt == "json":
        print_json(record.to_dict())
        return

    echo(f"Execution:  {record.id}")
    echo(f"Status:     {record.status.value}")
    echo(f"Message:    {record.message}")
    echo(f"Updated:    {record.updated_at}")
    if record.output is not None:
        echo(f"Output:     {record.output}")


@click.command("execute")
@click.argument("implementation_id")
@click.argument("qpu_id")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Input parameter as NAME=VALUE (repeatable).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait before cancelling (default: no limit).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
@click.pass_context
def execute_command(
    ctx: click.Context,
    implementation_id: str,
    qpu_id: str,
    params: tuple[str, ...],
    timeout: float | None,
    fmt: str,
) -> None:
    """
    Execute IMPLEMENTATION_ID on QPU_ID.

    Waits until the execution finishes or fails. When --timeout elapses
    first, cancellation is requested and the current record is shown.
    Exits with status 1 unless the execution finished.
    """
    from nisq_analyzer.control import ControlService
    from nisq_analyzer.errors import CancelIgnoredError, NisqAnalyzerError
    from nisq_analyzer.execution.result import ExecutionStatus
    from nisq_analyzer.rules.backend import SwiplBackend
    from nisq_analyzer.rules.engine import PrologRuleEngine
    from nisq_analyzer.rules.knowledge import KnowledgeBase

    binding = parse_params(params)
    config = config_from_ctx(ctx)
    catalogue = catalogue_from_ctx(ctx)
    # Dispatch never queries the rule engine
    engine = PrologRuleEngine(
        SwiplBackend(config.swipl_path), KnowledgeBase(config.knowledge_dir)
    )

    try:
        with ControlService(catalogue, engine, create_registry(), config=config) as service:
            record = service.execute(implementation_id, qpu_id, binding)
            logger.info("Dispatched execution %s", record.id)

            record = service.wait(record.id, timeout=timeout)
            if not record.is_terminal:
                logger.warning("Execution %s timed out after %ss, cancelling", record.id, timeout)
                try:
                    service.cancel(record.id)
                except CancelIgnoredError as e:
                    logger.warning("%s", e)
                record = service.get_execution(record.id)
                # Report now; a plugin ignoring cancellation is not awaited
                service.close(wait=False)
    except (NisqAnalyzerError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    _print_record(record, fmt)
    ctx.exit(0 if record.status is ExecutionStatus.FINISHED else 1)


@click.command("executors")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
def executors_command(fmt: str) -> None:
    """List installed executor plugins."""
    registry = create_registry()
    rows = registry.describe()
    errors = registry.load_errors

    if fmt == "json":
        print_json({"plugins": rows, "errors": [str(e) for e in errors]})
        return

    print_table(
        ["Name", "Languages", "SDKs", "Cancellable"],
        [
            [r["name"], ", ".join(r["languages"]), ", ".join(r["sdks"]), r["cancellable"]]
            for r in rows
        ],
        title="Executor plugins",
    )
    if errors:
        echo(f"\nLoad errors ({len(errors)}):")
        for err in errors:
            echo(f"  - {err}")
