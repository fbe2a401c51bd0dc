# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Selection CLI commands.

params
    Show the parameters needed to select for an algorithm.
select
    Select implementations and suitable QPUs for an algorithm.
"""

from __future__ import annotations

import click

from nisq_analyzer.cli._utils import (
    catalogue_from_ctx,
    config_from_ctx,
    create_rule_engine,
    echo,
    parse_params,
    print_json,
    print_table,
)


def register(cli: click.Group) -> None:
    """Register selection commands with CLI."""
    cli.add_command(params_command)
    cli.add_command(select_command)


@click.command("params")
@click.argument("algorithm_id")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
@click.pass_context
def params_command(ctx: click.Context, algorithm_id: str, fmt: str) -> None:
    """Show the parameters required to select for ALGORITHM_ID."""
    from nisq_analyzer.control import ControlService
    from nisq_analyzer.errors import NisqAnalyzerError
    from nisq_analyzer.executors.registry import ExecutorRegistry
    from nisq_analyzer.rules.backend import SwiplBackend
    from nisq_analyzer.rules.engine import PrologRuleEngine
    from nisq_analyzer.rules.knowledge import KnowledgeBase

    config = config_from_ctx(ctx)
    catalogue = catalogue_from_ctx(ctx)
    # Parameter extraction is syntactic; the engine is never opened
    engine = PrologRuleEngine(
        SwiplBackend(config.swipl_path), KnowledgeBase(config.knowledge_dir)
    )

    try:
        with ControlService(catalogue, engine, ExecutorRegistry(), config=config) as service:
            parameters = service.required_selection_parameters(algorithm_id)
    except (NisqAnalyzerError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    ordered = sorted(parameters, key=lambda p: p.name)
    if fmt == "json":
        print_json([p.to_dict() for p in ordered])
        return

    print_table(
        ["Name", "Kind", "Description"],
        [[p.name, p.kind.value, p.description] for p in ordered],
        title="Required selection parameters",
    )


@click.command("select")
@click.argument("algorithm_id")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Parameter value as NAME=VALUE (repeatable).",
)
@click.option("--qubits", type=click.IntRange(min=0), default=None, help="Required qubits.")
@click.option("--depth", type=click.IntRange(min=0), default=None, help="Circuit depth.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
@click.pass_context
def select_command(
    ctx: click.Context,
    algorithm_id: str,
    params: tuple[str, ...],
    qubits: int | None,
    depth: int | None,
    fmt: str,
) -> None:
    """
    Select implementations and QPUs able to run ALGORITHM_ID.

    The knowledge base is regenerated from the catalogue before the
    selection runs.
    """
    from nisq_analyzer.control import ControlService
    from nisq_analyzer.errors import NisqAnalyzerError
    from nisq_analyzer.executors.registry import ExecutorRegistry
    from nisq_analyzer.rules.knowledge import KnowledgeBase

    binding = parse_params(params)
    config = config_from_ctx(ctx)
    catalogue = catalogue_from_ctx(ctx)

    try:
        KnowledgeBase(config.knowledge_dir).sync(catalogue.implementations, catalogue.qpus)
        engine = create_rule_engine(config)
        with ControlService(catalogue, engine, ExecutorRegistry(), config=config) as service:
            candidates = service.select_candidates(
                algorithm_id, binding, required_qubits=qubits, circuit_depth=depth
            )
    except (NisqAnalyzerError, OSError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if fmt == "json":
        print_json({str(k): [str(q) for q in v] for k, v in candidates.items()})
        return

    if not candidates:
        echo("No suitable implementation found.")
        return

    rows = []
    for impl_id, qpu_ids in candidates.items():
        impl = catalogue.find_implementation(impl_id)
        for qpu_id in qpu_ids:
            qpu = catalogue.find_qpu(qpu_id)
            rows.append([impl.name, str(impl_id), qpu.name, str(qpu_id)])
    print_table(["Implementation", "ID", "QPU", "QPU ID"], rows, title="Candidates")
