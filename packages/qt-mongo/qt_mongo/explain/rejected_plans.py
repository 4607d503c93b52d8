"""Rejected plan comparison trees.

Each entry of ``queryPlanner.rejectedPlans`` is walked with the planner
traversal under its own id namespace ("r.1", "r.2", ... or "r.<stage>.<n>"
for plans embedded in an aggregation ``$cursor``) so its ids never collide
with the winning tree or with other candidates.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from ..schemas import ExplainNode, ExplainRejectedPlan
from .metrics import as_mapping, get_list
from .stage_tree import TraversalMode, append_stage_tree

logger = logging.getLogger(__name__)

HIGH_VOLUME_EXAMINED = 50_000

REASON_COLLSCAN = (
    "Rejected because it required a collection scan compared with a lower-cost alternative."
)
REASON_HIGH_VOLUME = "Rejected due to higher examined volume than the winning plan."
REASON_GENERIC = "Planner selected another candidate with lower estimated execution cost."


def infer_rejected_plan_reason(
    root_stage: str,
    docs_examined: Optional[int],
    keys_examined: Optional[int],
) -> str:
    if "COLLSCAN" in root_stage:
        return REASON_COLLSCAN
    if max(docs_examined or 0, keys_examined or 0) > HIGH_VOLUME_EXAMINED:
        return REASON_HIGH_VOLUME
    return REASON_GENERIC


def _max_present(values) -> Optional[int]:
    present = [value for value in values if value is not None]
    return max(present) if present else None


def _unique_index_names(nodes: List[ExplainNode]) -> Tuple[str, ...]:
    names: List[str] = []
    for node in nodes:
        if node.index_name is not None and node.index_name not in names:
            names.append(node.index_name)
    return tuple(names)


def build_rejected_plan(plan_id: str, plan_doc: Mapping[str, Any]) -> Optional[ExplainRejectedPlan]:
    nodes: List[ExplainNode] = []
    append_stage_tree(plan_doc, 0, plan_id, None, nodes, TraversalMode.PLANNER)
    if not nodes:
        return None

    docs_examined = _max_present(node.docs_examined for node in nodes)
    keys_examined = _max_present(node.keys_examined for node in nodes)
    root_stage = nodes[0].label.upper()

    return ExplainRejectedPlan(
        plan_id=plan_id,
        root_stage=root_stage,
        reason_hint=infer_rejected_plan_reason(root_stage, docs_examined, keys_examined),
        nodes=tuple(nodes),
        docs_examined=docs_examined,
        keys_examined=keys_examined,
        execution_time_ms=_max_present(node.time_ms for node in nodes),
        index_names=_unique_index_names(nodes),
    )


def collect_rejected_plans(
    query_planner: Mapping[str, Any],
    id_prefix: str,
    out: List[ExplainRejectedPlan],
) -> None:
    """Append one ``ExplainRejectedPlan`` per usable ``rejectedPlans`` entry."""
    for index, item in enumerate(get_list(query_planner, "rejectedPlans") or (), start=1):
        plan_doc = as_mapping(item)
        if plan_doc is None:
            logger.debug("Skipping non-document rejected plan %s.%d", id_prefix, index)
            continue
        plan = build_rejected_plan(f"{id_prefix}.{index}", plan_doc)
        if plan is not None:
            out.append(plan)
