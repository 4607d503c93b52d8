"""qt-mongo analyze - analyze one explain document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click


@click.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--scope",
    type=click.Choice(["find", "aggregation"]),
    default=None,
    help="Request kind. Inferred from the document when omitted.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the run as JSON.")
def analyze(file: Path, scope: Optional[str], as_json: bool) -> None:
    """Analyze an explain document: plan tree, bottlenecks, rejected plans."""
    from ..explain import analyze as analyze_document
    from ._common import load_document, resolve_scope

    document = load_document(file)
    run = analyze_document(document, resolve_scope(scope, document))

    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2))
        return

    _print_run(run)


def _print_run(run) -> None:
    from rich.panel import Panel
    from rich.table import Table

    from ._common import (
        console,
        format_count,
        print_header,
        styled_band,
        styled_severity,
    )

    summary = run.summary
    print_header(f"Explain run {run.id} ({run.scope.value})")

    flags = []
    if summary.has_collscan:
        flags.append("[red]COLLSCAN[/red]")
    if summary.has_sort_stage:
        flags.append("[yellow]in-memory SORT[/yellow]")
    if summary.is_covered_query:
        flags.append("[green]covered[/green]")
    lines = [
        f"Returned: {format_count(summary.n_returned)}",
        f"Docs examined: {format_count(summary.docs_examined)}",
        f"Keys examined: {format_count(summary.keys_examined)}",
        f"Time: {format_count(summary.execution_time_ms)} ms",
        f"Flags: {', '.join(flags) if flags else '-'}",
    ]
    if summary.covered_indexes:
        lines.append(f"Indexes: {', '.join(summary.covered_indexes)}")
    console.print(Panel("\n".join(lines), title="Summary", expand=False))

    nodes = Table(show_header=True, header_style="bold", title="Plan")
    nodes.add_column("Stage")
    nodes.add_column("Returned", justify="right")
    nodes.add_column("Docs", justify="right")
    nodes.add_column("Keys", justify="right")
    nodes.add_column("ms", justify="right")
    nodes.add_column("Index")
    nodes.add_column("Cost")
    nodes.add_column("Severity")
    for node in run.nodes:
        nodes.add_row(
            f"{'  ' * node.depth}{node.label}",
            format_count(node.n_returned),
            format_count(node.docs_examined),
            format_count(node.keys_examined),
            format_count(node.time_ms),
            node.index_name or "",
            styled_band(node.cost_band),
            styled_severity(node.severity),
        )
    console.print(nodes)

    if run.bottlenecks:
        table = Table(show_header=True, header_style="bold", title="Bottlenecks")
        table.add_column("#", justify="right")
        table.add_column("Stage")
        table.add_column("Impact", justify="right")
        table.add_column("Recommendation")
        for item in run.bottlenecks:
            table.add_row(str(item.rank), item.stage, f"{item.impact_score:,}", item.recommendation)
        console.print(table)

    if run.rejected_plans:
        table = Table(show_header=True, header_style="bold", title="Rejected plans")
        table.add_column("Plan")
        table.add_column("Root")
        table.add_column("Docs", justify="right")
        table.add_column("Keys", justify="right")
        table.add_column("Indexes")
        table.add_column("Reason")
        for plan in run.rejected_plans:
            table.add_row(
                plan.plan_id,
                plan.root_stage,
                format_count(plan.docs_examined),
                format_count(plan.keys_examined),
                ", ".join(plan.index_names),
                plan.reason_hint,
            )
        console.print(table)
