"""qt-mongo - explain plan analysis for document databases.

Turns the raw output of an ``explain`` command (find or aggregate, any
verbosity, standalone or sharded) into a normalized plan tree with cost
bands, severities, rejected plans, ranked bottlenecks and run-to-run diffs.

Modules:
- schemas: run model dataclasses
- explain: analysis engine (pure functions)
- history: bounded per-session run history
- commands: explain request documents and query signatures
- relaxed_json: relaxed JSON dialect for pipeline stage bodies
- cli: ``qt-mongo`` command group
"""

__version__ = "0.1.0"

from .commands import (
    PipelineValidationError,
    build_aggregation_explain_command,
    build_explain_pipeline,
    build_find_explain_command,
    signature_for_aggregation,
    signature_for_find,
)
from .explain import analyze, diff
from .history import ExplainHistory
from .relaxed_json import RelaxedJsonError, parse_relaxed_json
from .schemas import (
    ExplainBottleneck,
    ExplainCostBand,
    ExplainNode,
    ExplainRejectedPlan,
    ExplainRun,
    ExplainRunDiff,
    ExplainScope,
    ExplainSeverity,
    ExplainStageDelta,
    ExplainSummary,
    PipelineStage,
    SessionKey,
)

__all__ = [
    "ExplainBottleneck",
    "ExplainCostBand",
    "ExplainHistory",
    "ExplainNode",
    "ExplainRejectedPlan",
    "ExplainRun",
    "ExplainRunDiff",
    "ExplainScope",
    "ExplainSeverity",
    "ExplainStageDelta",
    "ExplainSummary",
    "PipelineStage",
    "PipelineValidationError",
    "RelaxedJsonError",
    "SessionKey",
    "analyze",
    "build_aggregation_explain_command",
    "build_explain_pipeline",
    "build_find_explain_command",
    "diff",
    "parse_relaxed_json",
    "signature_for_aggregation",
    "signature_for_find",
]
