"""Shared fixtures for qt-mongo tests: explain documents and node/run factories."""

import pytest

from qt_mongo.explain import analyze
from qt_mongo.explain.classifier import cost_band, severity_for_stage
from qt_mongo.schemas import ExplainNode, ExplainScope


@pytest.fixture
def collscan_explain():
    """Scenario A: single COLLSCAN execution tree with outer totals."""
    return {
        "executionStats": {
            "nReturned": 10,
            "totalDocsExamined": 2000,
            "executionTimeMillis": 42,
            "executionStages": {
                "stage": "COLLSCAN",
                "nReturned": 10,
                "docsExamined": 2000,
                "executionTimeMillisEstimate": 42,
            },
        }
    }


@pytest.fixture
def flat_pipeline_explain():
    """Scenario B: aggregation explain with two flat stages."""
    return {
        "stages": [
            {"$match": {"nReturned": 5, "docsExamined": 25, "keysExamined": 10,
                        "executionTimeMillisEstimate": 2}},
            {"$sort": {"nReturned": 5, "docsExamined": 25, "keysExamined": 10,
                       "executionTimeMillisEstimate": 3}},
        ]
    }


@pytest.fixture
def cursor_pipeline_explain():
    """Scenario C: $cursor wrapping GROUP -> PROJECTION_COVERED -> IXSCAN, then $sort."""
    return {
        "stages": [
            {
                "$cursor": {
                    "queryPlanner": {
                        "namespace": "shop.orders",
                        "winningPlan": {
                            "stage": "GROUP",
                            "inputStage": {
                                "stage": "PROJECTION_COVERED",
                                "inputStage": {
                                    "stage": "IXSCAN",
                                    "indexName": "status_1_total_1",
                                    "isMultiKey": False,
                                },
                            },
                        },
                        "rejectedPlans": [],
                    },
                    "executionStats": {
                        "nReturned": 3,
                        "totalKeysExamined": 11396,
                        "totalDocsExamined": 0,
                        "executionTimeMillis": 29,
                    },
                }
            },
            {"$sort": {"sortKey": {"total": -1}}, "executionTimeMillisEstimate": 12},
        ]
    }


@pytest.fixture
def rejected_plan_explain():
    """Scenario D: wrapped winning IXSCAN with one rejected COLLSCAN candidate."""
    return {
        "queryPlanner": {
            "winningPlan": {
                "queryPlan": {
                    "stage": "IXSCAN",
                    "indexName": "status_1",
                    "keysExamined": 1200,
                    "nReturned": 12,
                }
            },
            "rejectedPlans": [
                {"queryPlan": {"stage": "COLLSCAN", "docsExamined": 56000, "nReturned": 12}}
            ],
        },
        "executionStats": {
            "nReturned": 12,
            "totalDocsExamined": 0,
            "totalKeysExamined": 1200,
            "executionTimeMillis": 18,
        },
    }


@pytest.fixture
def ixscan_fetch_explain():
    """Classic planner tree: FETCH over IXSCAN with execution totals."""
    return {
        "queryPlanner": {
            "namespace": "shop.orders",
            "winningPlan": {
                "stage": "FETCH",
                "inputStage": {
                    "stage": "IXSCAN",
                    "indexName": "customer_1",
                    "isMultiKey": False,
                },
            },
            "rejectedPlans": [],
        },
        "executionStats": {
            "nReturned": 40,
            "totalDocsExamined": 40,
            "totalKeysExamined": 40,
            "executionTimeMillis": 1,
        },
    }


@pytest.fixture
def make_node():
    """Factory for classified ExplainNode values."""
    def _make(node_id="1", label="IXSCAN", depth=0, **metrics):
        band = cost_band(
            metrics.get("docs_examined"), metrics.get("keys_examined"), metrics.get("n_returned")
        )
        return ExplainNode(
            id=node_id,
            label=label,
            depth=depth,
            cost_band=band,
            severity=severity_for_stage(label, band),
            **metrics,
        )
    return _make


@pytest.fixture
def make_run():
    """Factory for ExplainRun values with a fixed timestamp."""
    counter = {"ms": 1_700_000_000_000}

    def _make(document, scope=ExplainScope.FIND, signature=None):
        counter["ms"] += 1
        return analyze(document, scope, signature=signature, generated_at_unix_ms=counter["ms"])
    return _make
