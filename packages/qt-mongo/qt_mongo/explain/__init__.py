"""Explain plan analysis engine.

Pure functions over an already-fetched explain document: no I/O, no
driver calls. See ``analyzer`` for the pipeline.
"""

from .analyzer import ParsedExplain, analyze, parse_explain_document
from .bottlenecks import impact_score, rank_bottlenecks
from .classifier import cost_band, severity_for_stage
from .diff import diff, normalize_stage_label
from .stage_tree import ExplainShape, TraversalMode, detect_shape

__all__ = [
    "ExplainShape",
    "ParsedExplain",
    "TraversalMode",
    "analyze",
    "cost_band",
    "detect_shape",
    "diff",
    "impact_score",
    "normalize_stage_label",
    "parse_explain_document",
    "rank_bottlenecks",
    "severity_for_stage",
]
