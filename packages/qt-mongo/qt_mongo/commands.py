"""Explain request construction and query signatures.

Builds the command documents a driver would send for ``find`` and
``aggregate`` explains. Nothing here talks to a server: the caller owns the
transport and hands the reply to ``qt_mongo.explain.analyze``.

Signatures are stable 64-bit hashes of the inputs that define a query.
They label runs in the history; identical queries still produce separate
runs.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from qt_shared.config import get_settings

from .relaxed_json import RelaxedJsonError, parse_relaxed_json
from .schemas import PipelineStage, SessionKey

logger = logging.getLogger(__name__)


class PipelineValidationError(ValueError):
    """A user-authored pipeline cannot be turned into an explain request."""


def _verbosity(verbosity: Optional[str]) -> str:
    return verbosity or get_settings().explain_verbosity


def build_find_explain_command(
    collection: str,
    filter: Optional[Mapping[str, Any]] = None,
    sort: Optional[Mapping[str, Any]] = None,
    projection: Optional[Mapping[str, Any]] = None,
    verbosity: Optional[str] = None,
) -> Dict[str, Any]:
    """``{explain: {find: ..., filter, sort, projection}, verbosity}``; empty parts omitted."""
    find_cmd: Dict[str, Any] = {"find": collection}
    if filter:
        find_cmd["filter"] = dict(filter)
    if sort:
        find_cmd["sort"] = dict(sort)
    if projection:
        find_cmd["projection"] = dict(projection)
    return {"explain": find_cmd, "verbosity": _verbosity(verbosity)}


def build_aggregation_explain_command(
    collection: str,
    pipeline: Sequence[Mapping[str, Any]],
    verbosity: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "explain": {
            "aggregate": collection,
            "pipeline": [dict(stage) for stage in pipeline],
            "cursor": {},
        },
        "verbosity": _verbosity(verbosity),
    }


def build_explain_pipeline(
    stages: Sequence[PipelineStage],
    selected_stage: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Turn editor stages into pipeline documents.

    Stages after ``selected_stage`` (0-based, default: last) are cut off and
    disabled stages skipped. Error messages number stages from 1.

    Raises:
        PipelineValidationError: empty operator, unparseable body, or nothing enabled
    """
    end_index = selected_stage if selected_stage is not None else max(len(stages) - 1, 0)
    pipeline: List[Dict[str, Any]] = []

    for idx, stage in enumerate(stages):
        if idx > end_index:
            break
        if not stage.enabled:
            continue

        operator = stage.operator.strip()
        if not operator:
            raise PipelineValidationError(f"Stage {idx + 1} has no operator")

        body = stage.body.strip()
        if not body or body == "{}":
            value: Any = {}
        else:
            try:
                value = parse_relaxed_json(body)
            except RelaxedJsonError as exc:
                raise PipelineValidationError(
                    f"Stage {idx + 1} has invalid body JSON: {exc}"
                ) from exc

        pipeline.append({operator: value})

    if not pipeline:
        raise PipelineValidationError("Pipeline is empty. Add or enable at least one stage.")
    logger.debug("Built explain pipeline with %d stage(s)", len(pipeline))
    return pipeline


# ── Signatures ───────────────────────────────────────────────────────────


class _SignatureHasher:
    """Length-prefixed feed into blake2b so field boundaries stay unambiguous."""

    def __init__(self) -> None:
        self._digest = hashlib.blake2b(digest_size=8)

    def update(self, value: Any) -> "_SignatureHasher":
        data = repr(value).encode("utf-8")
        self._digest.update(len(data).to_bytes(8, "little"))
        self._digest.update(data)
        return self

    def finish(self) -> int:
        return int.from_bytes(self._digest.digest(), "big")


def _hasher_for(key: SessionKey) -> _SignatureHasher:
    return _SignatureHasher().update(key.connection_id).update(key.database).update(key.collection)


def signature_for_find(
    key: SessionKey,
    filter_raw: str = "",
    sort_raw: str = "",
    projection_raw: str = "",
) -> int:
    return _hasher_for(key).update(filter_raw).update(sort_raw).update(projection_raw).finish()


def signature_for_aggregation(
    key: SessionKey,
    stages: Sequence[PipelineStage],
    selected_stage: Optional[int] = None,
) -> int:
    hasher = _hasher_for(key).update(selected_stage)
    for stage in stages:
        hasher.update(stage.operator).update(stage.body).update(stage.enabled)
    return hasher.finish()
