"""Run-to-run comparison.

All deltas are ``current - baseline``; a delta is ``None`` when either
side lacks the value. Stages are paired by normalized label (lower-cased,
leading "$" stripped) using the first baseline node carrying that label,
one delta per distinct label in current-run order. Two nodes sharing a
label in different branches can therefore pair with the wrong partner.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..schemas import ExplainNode, ExplainRun, ExplainRunDiff, ExplainStageDelta
from .bottlenecks import impact_score


def normalize_stage_label(label: str) -> str:
    return label.lstrip("$").lower()


def optional_delta(current: Optional[int], baseline: Optional[int]) -> Optional[int]:
    if current is None or baseline is None:
        return None
    return current - baseline


def _first_by_label(nodes) -> Dict[str, ExplainNode]:
    first: Dict[str, ExplainNode] = {}
    for node in nodes:
        first.setdefault(normalize_stage_label(node.label), node)
    return first


def stage_deltas(current: ExplainRun, baseline: ExplainRun) -> List[ExplainStageDelta]:
    baseline_by_label = _first_by_label(baseline.nodes)
    deltas: List[ExplainStageDelta] = []
    for label, node in _first_by_label(current.nodes).items():
        other = baseline_by_label.get(label)
        if other is None:
            continue
        deltas.append(ExplainStageDelta(
            label=label,
            current_node_id=node.id,
            baseline_node_id=other.id,
            impact_delta=impact_score(node) - impact_score(other),
            docs_examined_delta=optional_delta(node.docs_examined, other.docs_examined),
            keys_examined_delta=optional_delta(node.keys_examined, other.keys_examined),
            time_ms_delta=optional_delta(node.time_ms, other.time_ms),
        ))
    return deltas


def plan_shape_changed(current: ExplainRun, baseline: ExplainRun) -> bool:
    return [normalize_stage_label(node.label) for node in current.nodes] != [
        normalize_stage_label(node.label) for node in baseline.nodes
    ]


def diff(current: ExplainRun, baseline: ExplainRun) -> ExplainRunDiff:
    """Compare ``current`` against ``baseline``."""
    now, then = current.summary, baseline.summary
    return ExplainRunDiff(
        current_run_id=current.id,
        baseline_run_id=baseline.id,
        n_returned_delta=optional_delta(now.n_returned, then.n_returned),
        docs_examined_delta=optional_delta(now.docs_examined, then.docs_examined),
        keys_examined_delta=optional_delta(now.keys_examined, then.keys_examined),
        execution_time_delta_ms=optional_delta(now.execution_time_ms, then.execution_time_ms),
        plan_shape_changed=plan_shape_changed(current, baseline),
        stage_deltas=stage_deltas(current, baseline),
    )
