"""Metric extraction for stage-like explain documents.

Any mapping found in an explain tree (planner stage, execution stage,
aggregation stage body, shard entry) is read through the helpers here.
Missing or wrongly-typed fields come back as ``None``; nothing raises.

Field mapping:
    n_returned     nReturned
    docs_examined  docsExamined | totalDocsExamined
    keys_examined  keysExamined | totalKeysExamined
    time_ms        executionTimeMillisEstimate | executionTimeMillis
    index_name     indexName (string)
    is_multi_key   isMultiKey (bool)
    is_covered     indexOnly (bool), else inferred from the label / counters
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Secondary counters shown verbatim in the node inspector.
EXTRA_METRIC_KEYS: Tuple[str, ...] = (
    "works",
    "advanced",
    "needTime",
    "needYield",
    "saveState",
    "restoreState",
    "seeks",
    "dupsTested",
    "dupsDropped",
    "spills",
    "memUsageBytes",
)

# Extended-JSON numeric wrappers as written by shell exports.
_NUMBER_WRAPPERS = ("$numberInt", "$numberLong", "$numberDouble")


@dataclass(frozen=True)
class StageMetrics:
    """Typed counters pulled from one stage-like document."""
    n_returned: Optional[int] = None
    docs_examined: Optional[int] = None
    keys_examined: Optional[int] = None
    time_ms: Optional[int] = None
    index_name: Optional[str] = None
    is_multi_key: Optional[bool] = None
    is_covered: Optional[bool] = None
    extra_metrics: Tuple[Tuple[str, str], ...] = ()


def as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    """Return ``value`` if it is a mapping, else None."""
    return value if isinstance(value, Mapping) else None


def get_mapping(doc: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    return as_mapping(doc.get(key))


def get_list(doc: Mapping[str, Any], key: str) -> Optional[list]:
    value = doc.get(key)
    return value if isinstance(value, (list, tuple)) else None


def _coerce_count(value: Any) -> Optional[int]:
    # bool is an int subclass; a flag is never a counter
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if value != value or value < 0 or value == float("inf"):
            return None
        return int(value)
    if isinstance(value, Mapping) and len(value) == 1:
        key, inner = next(iter(value.items()))
        if key in _NUMBER_WRAPPERS and isinstance(inner, str):
            try:
                return _coerce_count(float(inner) if key == "$numberDouble" else int(inner))
            except ValueError:
                return None
    return None


def read_count(doc: Mapping[str, Any], *keys: str) -> Optional[int]:
    """First non-negative integer found under ``keys``.

    Integers and floats are accepted (floats truncate); negatives and
    other types count as absent.
    """
    for key in keys:
        if key in doc:
            count = _coerce_count(doc[key])
            if count is not None:
                return count
    return None


def read_bool(doc: Mapping[str, Any], key: str) -> Optional[bool]:
    value = doc.get(key)
    return value if isinstance(value, bool) else None


def read_str(doc: Mapping[str, Any], key: str) -> Optional[str]:
    value = doc.get(key)
    return value if isinstance(value, str) else None


def infer_covered(
    label: str,
    docs_examined: Optional[int],
    keys_examined: Optional[int],
) -> Optional[bool]:
    """Covered-query guess when the stage does not say ``indexOnly``."""
    if "PROJECTION_COVERED" in label.upper():
        return True
    if docs_examined == 0 and keys_examined is not None and keys_examined > 0:
        return True
    return None


def format_metric_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def collect_extra_metrics(doc: Mapping[str, Any]) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (key, format_metric_value(doc[key]))
        for key in EXTRA_METRIC_KEYS
        if key in doc
    )


def extract_stage_metrics(doc: Mapping[str, Any], label: str) -> StageMetrics:
    """Read every counter and flag the engine uses from one stage document."""
    docs_examined = read_count(doc, "docsExamined", "totalDocsExamined")
    keys_examined = read_count(doc, "keysExamined", "totalKeysExamined")

    is_covered = read_bool(doc, "indexOnly")
    if is_covered is None:
        is_covered = infer_covered(label, docs_examined, keys_examined)

    return StageMetrics(
        n_returned=read_count(doc, "nReturned"),
        docs_examined=docs_examined,
        keys_examined=keys_examined,
        time_ms=read_count(doc, "executionTimeMillisEstimate", "executionTimeMillis"),
        index_name=read_str(doc, "indexName"),
        is_multi_key=read_bool(doc, "isMultiKey"),
        is_covered=is_covered,
        extra_metrics=collect_extra_metrics(doc),
    )


def stage_label(doc: Mapping[str, Any]) -> str:
    """Display name for a stage-like document.

    First present of ``stage``, ``planNodeType``, ``queryPlan.stage``,
    ``strategy``; otherwise "Stage".
    """
    query_plan = get_mapping(doc, "queryPlan") or {}
    for source, key in ((doc, "stage"), (doc, "planNodeType"), (query_plan, "stage"), (doc, "strategy")):
        label = read_str(source, key)
        if label is not None:
            return label
    return "Stage"
