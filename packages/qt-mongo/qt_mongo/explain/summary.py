"""Run-level summary built from the outer totals and the node list."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from ..schemas import ExplainNode, ExplainSummary
from .metrics import get_mapping, read_count


def _last_present(values) -> Optional[int]:
    found = None
    for value in values:
        if value is not None:
            found = value
    return found


def _max_present(values) -> Optional[int]:
    present = [value for value in values if value is not None]
    return max(present) if present else None


def _or_else(value: Optional[int], fallback) -> Optional[int]:
    return value if value is not None else fallback()


def build_summary(explain_doc: Mapping[str, Any], nodes: Sequence[ExplainNode]) -> ExplainSummary:
    stats = get_mapping(explain_doc, "executionStats") or {}
    execution_time_ms = read_count(stats, "executionTimeMillis")
    if execution_time_ms is None:
        execution_time_ms = read_count(explain_doc, "executionTimeMillis")

    labels = [node.upper_label for node in nodes]

    covered: List[str] = []
    for node in nodes:
        if node.index_name is not None and node.index_name not in covered:
            covered.append(node.index_name)

    return ExplainSummary(
        n_returned=_or_else(
            read_count(stats, "nReturned"),
            lambda: _last_present(node.n_returned for node in nodes),
        ),
        docs_examined=_or_else(
            read_count(stats, "totalDocsExamined"),
            lambda: _max_present(node.docs_examined for node in nodes),
        ),
        keys_examined=_or_else(
            read_count(stats, "totalKeysExamined"),
            lambda: _max_present(node.keys_examined for node in nodes),
        ),
        execution_time_ms=_or_else(
            execution_time_ms,
            lambda: _max_present(node.time_ms for node in nodes),
        ),
        has_collscan=any("COLLSCAN" in label for label in labels),
        has_sort_stage=any("SORT" in label or "$SORT" in label for label in labels),
        is_covered_query=any(node.is_covered is True for node in nodes)
        or any("PROJECTION_COVERED" in label for label in labels),
        covered_indexes=tuple(covered),
    )
