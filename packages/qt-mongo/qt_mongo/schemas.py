"""qt-mongo schemas.

Data structures for the explain analysis engine:
- Classification: ExplainScope, ExplainCostBand, ExplainSeverity
- Run model: ExplainNode, ExplainSummary, ExplainRejectedPlan, ExplainBottleneck, ExplainRun
- Comparison: ExplainStageDelta, ExplainRunDiff
- Query definition: SessionKey, PipelineStage
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ExplainScope(str, Enum):
    """What kind of request produced the explain document."""
    FIND = "find"
    AGGREGATION = "aggregation"


class ExplainCostBand(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def is_expensive(self) -> bool:
        return self in (ExplainCostBand.HIGH, ExplainCostBand.VERY_HIGH)


class ExplainSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# Run model
# =============================================================================


@dataclass(frozen=True)
class ExplainNode:
    """One stage of a reconstructed plan tree.

    ``id`` is a dotted path ("1", "1.2", "1.2.1") unique within one tree.
    """
    id: str
    label: str
    depth: int = 0
    parent_id: Optional[str] = None
    n_returned: Optional[int] = None
    docs_examined: Optional[int] = None
    keys_examined: Optional[int] = None
    time_ms: Optional[int] = None
    index_name: Optional[str] = None
    is_multi_key: Optional[bool] = None
    is_covered: Optional[bool] = None
    extra_metrics: Tuple[Tuple[str, str], ...] = ()
    cost_band: ExplainCostBand = ExplainCostBand.LOW
    severity: ExplainSeverity = ExplainSeverity.LOW

    @property
    def upper_label(self) -> str:
        return self.label.upper()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["extra_metrics"] = [list(pair) for pair in self.extra_metrics]
        return data


@dataclass(frozen=True)
class ExplainSummary:
    """Run-level totals and flags."""
    n_returned: Optional[int] = None
    docs_examined: Optional[int] = None
    keys_examined: Optional[int] = None
    execution_time_ms: Optional[int] = None
    has_collscan: bool = False
    has_sort_stage: bool = False
    is_covered_query: bool = False
    covered_indexes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["covered_indexes"] = list(self.covered_indexes)
        return data


@dataclass(frozen=True)
class ExplainRejectedPlan:
    """A candidate plan the planner discarded, walked like the winning plan."""
    plan_id: str
    root_stage: str
    reason_hint: str
    nodes: Tuple[ExplainNode, ...] = ()
    docs_examined: Optional[int] = None
    keys_examined: Optional[int] = None
    execution_time_ms: Optional[int] = None
    index_names: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "root_stage": self.root_stage,
            "reason_hint": self.reason_hint,
            "nodes": [node.to_dict() for node in self.nodes],
            "docs_examined": self.docs_examined,
            "keys_examined": self.keys_examined,
            "execution_time_ms": self.execution_time_ms,
            "index_names": list(self.index_names),
        }


@dataclass(frozen=True)
class ExplainBottleneck:
    """A ranked node with its heuristic impact and a recommendation."""
    rank: int
    node_id: str
    stage: str
    impact_score: int
    recommendation: str
    n_returned: Optional[int] = None
    docs_examined: Optional[int] = None
    keys_examined: Optional[int] = None
    execution_time_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExplainRun:
    """One completed analysis. Never mutated after construction."""
    id: str
    generated_at_unix_ms: int
    scope: ExplainScope
    raw_json: str
    nodes: Tuple[ExplainNode, ...]
    summary: ExplainSummary
    rejected_plans: Tuple[ExplainRejectedPlan, ...] = ()
    bottlenecks: Tuple[ExplainBottleneck, ...] = ()
    signature: Optional[int] = None

    def node(self, node_id: str) -> Optional[ExplainNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "generated_at_unix_ms": self.generated_at_unix_ms,
            "signature": self.signature,
            "scope": self.scope.value,
            "nodes": [node.to_dict() for node in self.nodes],
            "summary": self.summary.to_dict(),
            "rejected_plans": [plan.to_dict() for plan in self.rejected_plans],
            "bottlenecks": [item.to_dict() for item in self.bottlenecks],
            "raw_json": self.raw_json,
        }


# =============================================================================
# Run comparison
# =============================================================================


@dataclass
class ExplainStageDelta:
    """Per-label change between two runs (current - baseline)."""
    label: str
    current_node_id: str
    baseline_node_id: str
    impact_delta: int
    docs_examined_delta: Optional[int] = None
    keys_examined_delta: Optional[int] = None
    time_ms_delta: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExplainRunDiff:
    current_run_id: str
    baseline_run_id: str
    n_returned_delta: Optional[int] = None
    docs_examined_delta: Optional[int] = None
    keys_examined_delta: Optional[int] = None
    execution_time_delta_ms: Optional[int] = None
    plan_shape_changed: bool = False
    stage_deltas: List[ExplainStageDelta] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Query definition (inputs to request building and signatures)
# =============================================================================


@dataclass(frozen=True)
class SessionKey:
    """Identity of a collection session."""
    connection_id: str
    database: str
    collection: str

    @property
    def namespace(self) -> str:
        return f"{self.database}.{self.collection}"


@dataclass
class PipelineStage:
    """A user-authored aggregation stage (operator + relaxed-JSON body)."""
    operator: str
    body: str = "{}"
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineStage":
        body = data.get("body", "{}")
        if not isinstance(body, str):
            body = json.dumps(body)
        return cls(
            operator=str(data.get("operator", "")),
            body=body,
            enabled=bool(data.get("enabled", True)),
        )
