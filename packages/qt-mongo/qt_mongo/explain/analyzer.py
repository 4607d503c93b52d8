"""Explain analysis entry point.

Turns one raw explain document (``executionStats`` verbosity, find or
aggregate, standalone or sharded) into an immutable ``ExplainRun``:

    raw document
      -> stage tree (shape dispatch + recursive walk, metrics + classification per node)
      -> rejected plans, summary, bottlenecks
      -> ExplainRun

Parsing never fails on an unfamiliar shape; at worst the run carries a
single placeholder node.

Usage:
    from qt_mongo.explain import analyze
    from qt_mongo.schemas import ExplainScope

    run = analyze(explain_doc, ExplainScope.FIND)
    run.bottlenecks[0].recommendation
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from qt_shared.config import get_settings

from ..schemas import (
    ExplainBottleneck,
    ExplainNode,
    ExplainRejectedPlan,
    ExplainRun,
    ExplainScope,
    ExplainSummary,
)
from .bottlenecks import rank_bottlenecks
from .metrics import as_mapping, get_list, get_mapping
from .rejected_plans import collect_rejected_plans
from .stage_tree import (
    ExplainShape,
    TraversalMode,
    append_aggregation_stages,
    append_stage_tree,
    detect_shape,
    placeholder_node,
)
from .summary import build_summary

logger = logging.getLogger(__name__)

REJECTED_ID_PREFIX = "r"


@dataclass
class ParsedExplain:
    nodes: List[ExplainNode] = field(default_factory=list)
    summary: ExplainSummary = field(default_factory=ExplainSummary)
    rejected_plans: List[ExplainRejectedPlan] = field(default_factory=list)
    bottlenecks: List[ExplainBottleneck] = field(default_factory=list)


def parse_explain_document(
    explain_doc: Any,
    bottleneck_limit: Optional[int] = None,
    bottleneck_max_depth: Optional[int] = None,
) -> ParsedExplain:
    """Build nodes, summary, rejected plans and bottlenecks from a raw document."""
    doc: Mapping[str, Any] = as_mapping(explain_doc) or {}
    parsed = ParsedExplain()

    shape = detect_shape(doc)
    logger.debug("Explain shape: %s", shape.value)

    query_planner = get_mapping(doc, "queryPlanner")
    if shape is ExplainShape.PLANNER:
        append_stage_tree(
            query_planner["winningPlan"], 0, "1", None, parsed.nodes, TraversalMode.PLANNER
        )
    elif shape is ExplainShape.EXECUTION:
        append_stage_tree(
            doc["executionStats"]["executionStages"],
            0,
            "1",
            None,
            parsed.nodes,
            TraversalMode.EXECUTION,
        )
    elif shape is ExplainShape.AGGREGATION:
        append_aggregation_stages(
            get_list(doc, "stages"),
            parsed.nodes,
            on_cursor_planner=lambda planner, path: collect_rejected_plans(
                planner, f"{REJECTED_ID_PREFIX}.{path}", parsed.rejected_plans
            ),
        )

    if query_planner is not None:
        collect_rejected_plans(query_planner, REJECTED_ID_PREFIX, parsed.rejected_plans)

    if not parsed.nodes:
        logger.debug("No plan stages recognized; using placeholder node")
        parsed.nodes.append(placeholder_node())

    if bottleneck_limit is None:
        bottleneck_limit = get_settings().bottleneck_limit
    if bottleneck_max_depth is None:
        bottleneck_max_depth = get_settings().bottleneck_max_depth

    parsed.summary = build_summary(doc, parsed.nodes)
    parsed.bottlenecks = rank_bottlenecks(
        parsed.nodes, limit=bottleneck_limit, max_depth=bottleneck_max_depth
    )
    return parsed


def explain_to_pretty_json(explain_doc: Any) -> str:
    return json.dumps(explain_doc, indent=2, default=str, ensure_ascii=False)


def now_unix_ms() -> int:
    return int(time.time() * 1000)


def format_run_id(generated_at_unix_ms: int, signature: Optional[int]) -> str:
    return f"{generated_at_unix_ms}-{(signature or 0):016x}"


def analyze(
    raw_document: Any,
    scope: Union[ExplainScope, str] = ExplainScope.FIND,
    signature: Optional[int] = None,
    generated_at_unix_ms: Optional[int] = None,
    bottleneck_limit: Optional[int] = None,
    bottleneck_max_depth: Optional[int] = None,
) -> ExplainRun:
    """Analyze a raw explain document into an ``ExplainRun``.

    Args:
        raw_document: Explain command reply (any mapping; other values yield a placeholder run)
        scope: Find or Aggregation, used for labeling only
        signature: Hash of the defining query (see ``qt_mongo.commands``)
        generated_at_unix_ms: Timestamp override, defaults to now

    Returns:
        ExplainRun with at least one node
    """
    scope = ExplainScope(scope)
    parsed = parse_explain_document(
        raw_document,
        bottleneck_limit=bottleneck_limit,
        bottleneck_max_depth=bottleneck_max_depth,
    )
    if generated_at_unix_ms is None:
        generated_at_unix_ms = now_unix_ms()

    run = ExplainRun(
        id=format_run_id(generated_at_unix_ms, signature),
        generated_at_unix_ms=generated_at_unix_ms,
        signature=signature,
        scope=scope,
        raw_json=explain_to_pretty_json(raw_document),
        nodes=tuple(parsed.nodes),
        summary=parsed.summary,
        rejected_plans=tuple(parsed.rejected_plans),
        bottlenecks=tuple(parsed.bottlenecks),
    )
    logger.debug(
        "Explain %s analyzed: %d nodes, %d rejected plans, %d bottlenecks",
        run.id,
        len(run.nodes),
        len(run.rejected_plans),
        len(run.bottlenecks),
    )
    return run
