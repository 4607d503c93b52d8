"""qt-mongo diff - compare two explain documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click


@click.command()
@click.argument("current", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("baseline", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--scope",
    type=click.Choice(["find", "aggregation"]),
    default=None,
    help="Request kind for both documents. Inferred when omitted.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the diff as JSON.")
def diff(current: Path, baseline: Path, scope: Optional[str], as_json: bool) -> None:
    """Compare CURRENT against BASELINE (deltas are current - baseline)."""
    from ..explain import analyze as analyze_document
    from ..explain import diff as diff_runs
    from ._common import load_document, resolve_scope

    current_doc = load_document(current)
    baseline_doc = load_document(baseline)
    result = diff_runs(
        analyze_document(current_doc, resolve_scope(scope, current_doc)),
        analyze_document(baseline_doc, resolve_scope(scope, baseline_doc)),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    from rich.table import Table

    from ._common import console, format_signed_delta, print_header

    print_header(f"{current.name} vs {baseline.name}")
    totals = Table(show_header=True, header_style="bold")
    totals.add_column("Metric")
    totals.add_column("Delta", justify="right")
    totals.add_row("Returned", format_signed_delta(result.n_returned_delta))
    totals.add_row("Docs examined", format_signed_delta(result.docs_examined_delta))
    totals.add_row("Keys examined", format_signed_delta(result.keys_examined_delta))
    totals.add_row("Time", format_signed_delta(result.execution_time_delta_ms, " ms"))
    console.print(totals)

    if result.plan_shape_changed:
        console.print("[yellow]Plan shape changed[/yellow]")
    else:
        console.print("Plan shape unchanged")

    if result.stage_deltas:
        stages = Table(show_header=True, header_style="bold", title="Stages")
        stages.add_column("Stage")
        stages.add_column("Impact", justify="right")
        stages.add_column("Docs", justify="right")
        stages.add_column("Keys", justify="right")
        stages.add_column("ms", justify="right")
        for delta in result.stage_deltas:
            stages.add_row(
                delta.label,
                format_signed_delta(delta.impact_delta),
                format_signed_delta(delta.docs_examined_delta),
                format_signed_delta(delta.keys_examined_delta),
                format_signed_delta(delta.time_ms_delta),
            )
        console.print(stages)
