"""Shared CLI helpers: document loading, number formatting, Rich output."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console

from ..relaxed_json import RelaxedJsonError, parse_relaxed_json
from ..schemas import ExplainCostBand, ExplainScope, ExplainSeverity

console = Console()

SEVERITY_STYLES = {
    ExplainSeverity.LOW: "green",
    ExplainSeverity.MEDIUM: "yellow",
    ExplainSeverity.HIGH: "red",
    ExplainSeverity.CRITICAL: "bold red",
}

BAND_STYLES = {
    ExplainCostBand.LOW: "green",
    ExplainCostBand.MEDIUM: "yellow",
    ExplainCostBand.HIGH: "red",
    ExplainCostBand.VERY_HIGH: "bold red",
}


def load_document(path: Path) -> Any:
    """Read a file as relaxed JSON.

    Raises click.ClickException if the file is missing or does not parse.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return parse_relaxed_json(text)
    except RelaxedJsonError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc


def resolve_scope(scope: Optional[str], document: Any) -> ExplainScope:
    """Explicit --scope wins; otherwise a top-level ``stages`` list means aggregation."""
    if scope:
        return ExplainScope(scope)
    if isinstance(document, dict) and isinstance(document.get("stages"), list):
        return ExplainScope.AGGREGATION
    return ExplainScope.FIND


def format_count(value: Optional[int]) -> str:
    return "-" if value is None else f"{value:,}"


def format_signed_delta(value: Optional[int], unit: str = "") -> str:
    """``+12``, ``-3``, ``0``; ``-`` when unknown."""
    if value is None:
        return "-"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:,}{unit}"


def styled_severity(severity: ExplainSeverity) -> str:
    style = SEVERITY_STYLES[severity]
    return f"[{style}]{severity.value}[/{style}]"


def styled_band(band: ExplainCostBand) -> str:
    style = BAND_STYLES[band]
    return f"[{style}]{band.value}[/{style}]"


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print(f"\n[bold cyan]{text}[/bold cyan]")
