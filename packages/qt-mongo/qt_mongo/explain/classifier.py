"""Cost band and severity heuristics for plan nodes."""

from __future__ import annotations

from typing import Optional

from ..schemas import ExplainCostBand, ExplainSeverity

# examined / returned ratios
RATIO_VERY_HIGH = 1000
RATIO_HIGH = 200

# absolute examined counts
EXAMINED_VERY_HIGH = 100_000
EXAMINED_HIGH = 10_000
EXAMINED_MEDIUM = 1_000

_BAND_TO_SEVERITY = {
    ExplainCostBand.LOW: ExplainSeverity.LOW,
    ExplainCostBand.MEDIUM: ExplainSeverity.MEDIUM,
    ExplainCostBand.HIGH: ExplainSeverity.HIGH,
    ExplainCostBand.VERY_HIGH: ExplainSeverity.CRITICAL,
}


def cost_band(
    docs_examined: Optional[int],
    keys_examined: Optional[int],
    n_returned: Optional[int],
) -> ExplainCostBand:
    """Bucket a stage by how much it examined relative to what it returned."""
    examined = max(docs_examined or 0, keys_examined or 0)
    if examined == 0:
        return ExplainCostBand.LOW

    if n_returned:
        ratio = examined // n_returned
        if ratio > RATIO_VERY_HIGH:
            return ExplainCostBand.VERY_HIGH
        if ratio > RATIO_HIGH:
            return ExplainCostBand.HIGH

    if examined >= EXAMINED_VERY_HIGH:
        return ExplainCostBand.VERY_HIGH
    if examined >= EXAMINED_HIGH:
        return ExplainCostBand.HIGH
    if examined >= EXAMINED_MEDIUM:
        return ExplainCostBand.MEDIUM
    return ExplainCostBand.LOW


def severity_for_stage(label: str, band: ExplainCostBand) -> ExplainSeverity:
    upper = label.upper()
    if "COLLSCAN" in upper:
        return ExplainSeverity.CRITICAL
    if "SORT" in upper and band.is_expensive:
        return ExplainSeverity.HIGH
    return _BAND_TO_SEVERITY[band]
