"""qt-mongo pipeline - build an aggregate explain command from editor stages."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click


@click.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--collection", required=True, help="Collection the pipeline runs against.")
@click.option(
    "--upto",
    type=click.IntRange(min=1),
    default=None,
    help="Explain only stages 1..N (default: all).",
)
def pipeline(file: Path, collection: str, upto: Optional[int]) -> None:
    """Build the explain command for the stages in FILE.

    FILE holds a JSON list of {"operator", "body", "enabled"} objects; bodies
    may use relaxed JSON and shell constructors such as ObjectId("...").
    """
    from ..commands import (
        PipelineValidationError,
        build_aggregation_explain_command,
        build_explain_pipeline,
    )
    from ..schemas import PipelineStage
    from ._common import load_document

    document = load_document(file)
    if not isinstance(document, list) or not all(isinstance(item, dict) for item in document):
        raise click.ClickException(f"{file} must contain a list of stage objects")

    stages = [PipelineStage.from_dict(item) for item in document]
    try:
        built = build_explain_pipeline(stages, None if upto is None else upto - 1)
    except PipelineValidationError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(build_aggregation_explain_command(collection, built), indent=2))
