# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Administrative CLI commands.

Command Groups
--------------
kb
    Manage the Prolog knowledge base.
config
    Display current configuration.
"""

from __future__ import annotations

import click

from nisq_analyzer.cli._utils import (
    catalogue_from_ctx,
    config_from_ctx,
    echo,
    print_json,
)


def register(cli: click.Group) -> None:
    """Register admin commands with CLI."""
    cli.add_command(kb_group)
    cli.add_command(config_cmd)


# =============================================================================
# Knowledge base commands
# =============================================================================


@click.group("kb")
def kb_group() -> None:
    """Knowledge base management commands."""
    pass


@kb_group.command("sync")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
@click.pass_context
def kb_sync(ctx: click.Context, fmt: str) -> None:
    """
    Regenerate knowledge base facts from the catalogue.

    Writes the capacity rules together with one fact file for
    implementations and one for QPUs.
    """
    from nisq_analyzer.rules.knowledge import KnowledgeBase

    config = config_from_ctx(ctx)
    catalogue = catalogue_from_ctx(ctx)
    kb = KnowledgeBase(config.knowledge_dir)

    try:
        kb.sync(catalogue.implementations, catalogue.qpus)
    except OSError as e:
        raise click.ClickException(f"Cannot write knowledge base: {e}") from e

    files = kb.files()
    if fmt == "json":
        print_json(
            {
                "directory": str(kb.directory),
                "files": [p.name for p in files],
                "implementations": len(catalogue.implementations),
                "qpus": len(catalogue.qpus),
            }
        )
        return

    echo(f"Knowledge base:   {kb.directory}")
    echo(f"Implementations:  {len(catalogue.implementations)}")
    echo(f"QPUs:             {len(catalogue.qpus)}")
    echo(f"Files:            {', '.join(p.name for p in files)}")


# =============================================================================
# Config command
# =============================================================================


@click.command("config")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["pretty", "json"]),
    default="pretty",
)
@click.pass_context
def config_cmd(ctx: click.Context, fmt: str) -> None:
    """Show current configuration."""
    config = config_from_ctx(ctx)

    if fmt == "json":
        print_json(config.to_dict())
        return

    data = config.to_dict()
    echo(f"Home:               {data['root_dir']}")
    echo(f"Knowledge base:     {data['knowledge_dir']}")
    echo(f"Workers:            {data['max_workers']} (+{data['max_pending']} queued)")
    echo(f"Rule timeout:       {data['rule_timeout']}s")
    echo(f"SWI-Prolog:         {data['swipl_path']}")
    echo(f"Serialize rules:    {data['serialize_rule_queries']}")
    echo(f"Qubits parameter:   {data['qubits_parameter']}")
    echo(f"Depth parameter:    {data['depth_parameter']}")
    echo(f"Qiskit service:     {data['qiskit_service_url']}")
    echo(f"Qiskit token:       {data['qiskit_token'] or '(not set)'}")
    echo(f"Poll interval:      {data['poll_interval']}s")
    echo(f"Execution timeout:  {data['execution_timeout']}s")
