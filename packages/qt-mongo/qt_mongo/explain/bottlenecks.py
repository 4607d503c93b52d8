"""Bottleneck ranking.

Impact is a coarse heuristic, not a cost model:

    impact = docsExamined + keysExamined + time_ms * 140
             + 40_000 for a collection scan
             + 10_000 for a High / VeryHigh cost band

Arithmetic saturates at the unsigned 64-bit maximum.
"""

from __future__ import annotations

from typing import List, Sequence

from ..schemas import ExplainBottleneck, ExplainNode

U64_MAX = 2**64 - 1

TIME_WEIGHT = 140
COLLSCAN_PENALTY = 40_000
EXPENSIVE_BAND_PENALTY = 10_000

DEFAULT_LIMIT = 5
DEFAULT_MAX_DEPTH = 8

GROUP_DOCS_THRESHOLD = 10_000
LOW_SELECTIVITY_FACTOR = 200

RECOMMEND_INDEX = "Add a selective index for this predicate path to avoid full collection scans."
RECOMMEND_SORT = (
    "Align sort keys with an index prefix to avoid expensive in-memory sort work."
)
RECOMMEND_GROUP = "Push selective $match stages earlier so $group runs on fewer documents."
RECOMMEND_COMPOUND = (
    "Index selectivity is low; consider a compound index with a more selective leading key."
)
RECOMMEND_MONITOR = (
    "Monitor this stage across runs; optimize if examined counts continue to grow."
)


def _saturating(value: int) -> int:
    return value if value < U64_MAX else U64_MAX


def impact_score(node: ExplainNode) -> int:
    score = _saturating((node.docs_examined or 0) + (node.keys_examined or 0))
    score = _saturating(score + _saturating((node.time_ms or 0) * TIME_WEIGHT))
    if "COLLSCAN" in node.upper_label:
        score = _saturating(score + COLLSCAN_PENALTY)
    if node.cost_band.is_expensive:
        score = _saturating(score + EXPENSIVE_BAND_PENALTY)
    return score


def recommendation_for_node(node: ExplainNode) -> str:
    upper = node.upper_label
    if "COLLSCAN" in upper:
        return RECOMMEND_INDEX
    if "SORT" in upper and node.cost_band.is_expensive:
        return RECOMMEND_SORT
    if "GROUP" in upper and (node.docs_examined or 0) > GROUP_DOCS_THRESHOLD:
        return RECOMMEND_GROUP
    if (node.keys_examined or 0) > LOW_SELECTIVITY_FACTOR * (node.n_returned or 0):
        return RECOMMEND_COMPOUND
    return RECOMMEND_MONITOR


def rank_bottlenecks(
    nodes: Sequence[ExplainNode],
    limit: int = DEFAULT_LIMIT,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[ExplainBottleneck]:
    """Top ``limit`` nodes (depth <= ``max_depth``) by impact, ranked from 1."""
    if limit < 1:
        return []
    scored = [(impact_score(node), node) for node in nodes if node.depth <= max_depth]

    # stable: equal scores keep tree order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [
        ExplainBottleneck(
            rank=rank,
            node_id=node.id,
            stage=node.label,
            impact_score=score,
            recommendation=recommendation_for_node(node),
            n_returned=node.n_returned,
            docs_examined=node.docs_examined,
            keys_examined=node.keys_examined,
            execution_time_ms=node.time_ms,
        )
        for rank, (score, node) in enumerate(scored[:limit], start=1)
    ]
