"""Stage tree reconstruction for explain documents.

Explain output comes in several shapes depending on server version,
verbosity, topology and request kind. The dispatcher sniffs top-level keys
in priority order and flattens whatever it finds into a pre-order list of
``ExplainNode`` with dotted path ids:

    queryPlanner.winningPlan               -> planner tree       ("1", "1.1", ...)
    executionStats.executionStages         -> execution tree     ("1", "1.1", ...)
    stages: [ {$cursor: ...}, {$sort: ...} ] -> one entry per pipeline stage ("1", "2", ...)
    anything else                          -> a single placeholder "Explain" node

Child discovery:
    planner    inputStage, inputStages[]
    execution  + outerStage, innerStage, thenStage, elseStage, queryPlan (when no stage)
    both       shards[] -> winningPlan | queryPlan | executionStages | shard itself
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, List, Mapping, Optional

from ..schemas import ExplainCostBand, ExplainNode, ExplainSeverity
from .classifier import cost_band, severity_for_stage
from .metrics import (
    StageMetrics,
    as_mapping,
    extract_stage_metrics,
    get_list,
    get_mapping,
    infer_covered,
    read_bool,
    read_count,
    stage_label,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "Explain"

# Execution-mode only: join / branch children, in visiting order.
_EXECUTION_CHILD_KEYS = ("outerStage", "innerStage", "thenStage", "elseStage")

# Where a shard entry keeps its plan, in preference order.
_SHARD_PLAN_KEYS = ("winningPlan", "queryPlan", "executionStages")


class TraversalMode(str, Enum):
    PLANNER = "planner"
    EXECUTION = "execution"


class ExplainShape(str, Enum):
    PLANNER = "planner"
    EXECUTION = "execution"
    AGGREGATION = "aggregation"
    UNKNOWN = "unknown"


def detect_shape(explain_doc: Mapping[str, Any]) -> ExplainShape:
    query_planner = get_mapping(explain_doc, "queryPlanner")
    if query_planner is not None:
        # a planner section without a winning plan still claims the document
        if get_mapping(query_planner, "winningPlan") is not None:
            return ExplainShape.PLANNER
        return ExplainShape.UNKNOWN
    stats = get_mapping(explain_doc, "executionStats")
    if stats is not None and get_mapping(stats, "executionStages") is not None:
        return ExplainShape.EXECUTION
    if get_list(explain_doc, "stages") is not None:
        return ExplainShape.AGGREGATION
    return ExplainShape.UNKNOWN


def build_node(
    node_id: str,
    label: str,
    depth: int,
    parent_id: Optional[str],
    metrics: StageMetrics,
) -> ExplainNode:
    band = cost_band(metrics.docs_examined, metrics.keys_examined, metrics.n_returned)
    return ExplainNode(
        id=node_id,
        parent_id=parent_id,
        label=label,
        depth=depth,
        n_returned=metrics.n_returned,
        docs_examined=metrics.docs_examined,
        keys_examined=metrics.keys_examined,
        time_ms=metrics.time_ms,
        index_name=metrics.index_name,
        is_multi_key=metrics.is_multi_key,
        is_covered=metrics.is_covered,
        extra_metrics=metrics.extra_metrics,
        cost_band=band,
        severity=severity_for_stage(label, band),
    )


def placeholder_node() -> ExplainNode:
    return ExplainNode(
        id="1",
        label=PLACEHOLDER_LABEL,
        depth=0,
        cost_band=ExplainCostBand.LOW,
        severity=ExplainSeverity.LOW,
    )


def append_stage_tree(
    doc: Mapping[str, Any],
    depth: int,
    path: str,
    parent_id: Optional[str],
    out: List[ExplainNode],
    mode: TraversalMode,
) -> None:
    """Append ``doc`` and its descendants to ``out`` in pre-order."""
    if mode is TraversalMode.PLANNER and "stage" not in doc:
        # newer servers wrap the classic tree: winningPlan.queryPlan.stage
        query_plan = get_mapping(doc, "queryPlan")
        if query_plan is not None:
            append_stage_tree(query_plan, depth, path, parent_id, out, mode)
            return

    label = stage_label(doc)
    out.append(build_node(path, label, depth, parent_id, extract_stage_metrics(doc, label)))

    children: List[Mapping[str, Any]] = []

    child = get_mapping(doc, "inputStage")
    if child is not None:
        children.append(child)
    for item in get_list(doc, "inputStages") or ():
        child = as_mapping(item)
        if child is not None:
            children.append(child)

    if mode is TraversalMode.EXECUTION:
        for key in _EXECUTION_CHILD_KEYS:
            child = get_mapping(doc, key)
            if child is not None:
                children.append(child)
        if "stage" not in doc:
            child = get_mapping(doc, "queryPlan")
            if child is not None:
                children.append(child)

    for item in get_list(doc, "shards") or ():
        shard = as_mapping(item)
        if shard is None:
            continue
        children.append(_shard_plan(shard))

    for index, child in enumerate(children, start=1):
        append_stage_tree(child, depth + 1, f"{path}.{index}", path, out, mode)


def _shard_plan(shard: Mapping[str, Any]) -> Mapping[str, Any]:
    for key in _SHARD_PLAN_KEYS:
        plan = get_mapping(shard, key)
        if plan is not None:
            return plan
    return shard


def seed_missing_metrics(
    node: ExplainNode,
    n_returned: Optional[int],
    docs_examined: Optional[int],
    keys_examined: Optional[int],
    time_ms: Optional[int],
) -> ExplainNode:
    """Fill counters the node lacks, never overwriting present ones.

    The node is re-classified afterwards so its band matches what it shows.
    """
    seeded = replace(
        node,
        n_returned=node.n_returned if node.n_returned is not None else n_returned,
        docs_examined=node.docs_examined if node.docs_examined is not None else docs_examined,
        keys_examined=node.keys_examined if node.keys_examined is not None else keys_examined,
        time_ms=node.time_ms if node.time_ms is not None else time_ms,
    )
    band = cost_band(seeded.docs_examined, seeded.keys_examined, seeded.n_returned)
    return replace(seeded, cost_band=band, severity=severity_for_stage(seeded.label, band))


def append_aggregation_stages(
    stages: list,
    out: List[ExplainNode],
    on_cursor_planner: Optional[Any] = None,
) -> None:
    """One flat node per pipeline stage; ``$cursor`` expands to its plan tree.

    ``on_cursor_planner(query_planner, path)`` is called for every embedded
    planner section so the caller can collect its rejected plans.
    """
    for index, item in enumerate(stages, start=1):
        stage_doc = as_mapping(item)
        if not stage_doc:
            logger.debug("Skipping non-document aggregation stage at position %d", index)
            continue

        name, value = next(iter(stage_doc.items()))
        name = str(name)
        path = str(index)
        inner = as_mapping(value)

        if inner is None:
            out.append(build_node(path, name, 0, None, StageMetrics()))
            continue

        cursor_totals = get_mapping(inner, "executionStats") or {}
        n_returned = _first_count(
            (inner, ("nReturned",)),
            (stage_doc, ("nReturned",)),
            (cursor_totals, ("nReturned",)),
        )
        docs_examined = _first_count(
            (inner, ("docsExamined", "totalDocsExamined")),
            (cursor_totals, ("totalDocsExamined",)),
        )
        keys_examined = _first_count(
            (inner, ("keysExamined", "totalKeysExamined")),
            (cursor_totals, ("totalKeysExamined",)),
        )
        time_ms = _first_count(
            (inner, ("executionTimeMillisEstimate", "executionTimeMillis")),
            (stage_doc, ("executionTimeMillisEstimate", "executionTimeMillis")),
            (cursor_totals, ("executionTimeMillis",)),
        )

        if name == "$cursor":
            query_planner = get_mapping(inner, "queryPlanner")
            winning_plan = get_mapping(query_planner, "winningPlan") if query_planner else None
            if winning_plan is not None:
                if on_cursor_planner is not None:
                    on_cursor_planner(query_planner, path)
                start = len(out)
                append_stage_tree(winning_plan, 0, path, None, out, TraversalMode.PLANNER)
                if len(out) > start:
                    out[start] = seed_missing_metrics(
                        out[start], n_returned, docs_examined, keys_examined, time_ms
                    )
                continue
            exec_stage = get_mapping(cursor_totals, "executionStages")
            if exec_stage is not None:
                append_stage_tree(exec_stage, 0, path, None, out, TraversalMode.EXECUTION)
                continue

        is_covered = read_bool(inner, "indexOnly")
        if is_covered is None:
            is_covered = infer_covered(name, docs_examined, keys_examined)
        metrics = replace(
            extract_stage_metrics(inner, name),
            n_returned=n_returned,
            docs_examined=docs_examined,
            keys_examined=keys_examined,
            time_ms=time_ms,
            is_covered=is_covered,
        )
        out.append(build_node(path, name, 0, None, metrics))


def _first_count(*sources) -> Optional[int]:
    for doc, keys in sources:
        value = read_count(doc, *keys)
        if value is not None:
            return value
    return None
