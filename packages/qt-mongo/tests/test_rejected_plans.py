"""Tests for rejected plan trees and reason hints."""

from qt_mongo.explain import analyze
from qt_mongo.explain.rejected_plans import (
    REASON_COLLSCAN,
    REASON_GENERIC,
    REASON_HIGH_VOLUME,
    build_rejected_plan,
    collect_rejected_plans,
    infer_rejected_plan_reason,
)


class TestReasonHint:
    """First-match reason selection."""

    def test_collscan(self):
        assert infer_rejected_plan_reason("COLLSCAN", 10, None) == REASON_COLLSCAN

    def test_high_volume(self):
        assert infer_rejected_plan_reason("FETCH", None, 50_001) == REASON_HIGH_VOLUME

    def test_boundary_is_generic(self):
        assert infer_rejected_plan_reason("FETCH", 50_000, 50_000) == REASON_GENERIC

    def test_generic(self):
        assert infer_rejected_plan_reason("IXSCAN", None, None) == REASON_GENERIC


class TestBuildRejectedPlan:
    """One candidate tree."""

    def test_aggregates_over_nodes(self):
        plan = build_rejected_plan("r.2", {
            "stage": "fetch",
            "docsExamined": 80,
            "executionTimeMillisEstimate": 4,
            "inputStage": {
                "stage": "OR",
                "inputStages": [
                    {"stage": "IXSCAN", "indexName": "a_1", "keysExamined": 300},
                    {"stage": "IXSCAN", "indexName": "b_1", "keysExamined": 60},
                    {"stage": "IXSCAN", "indexName": "a_1", "keysExamined": 5},
                ],
            },
        })
        assert plan.plan_id == "r.2"
        assert plan.root_stage == "FETCH"
        assert [n.id for n in plan.nodes] == ["r.2", "r.2.1", "r.2.1.1", "r.2.1.2", "r.2.1.3"]
        assert plan.docs_examined == 80
        assert plan.keys_examined == 300
        assert plan.execution_time_ms == 4
        assert plan.index_names == ("a_1", "b_1")
        assert plan.reason_hint == REASON_GENERIC

    def test_wrapped_query_plan(self):
        plan = build_rejected_plan("r.1", {"queryPlan": {"stage": "COLLSCAN", "docsExamined": 9}})
        assert plan.root_stage == "COLLSCAN"
        assert plan.reason_hint == REASON_COLLSCAN


class TestCollectRejectedPlans:
    """Namespacing and filtering."""

    def test_ids_and_junk(self):
        out = []
        collect_rejected_plans(
            {"rejectedPlans": [{"stage": "COLLSCAN"}, "junk", {"stage": "IXSCAN"}]}, "r", out
        )
        assert [p.plan_id for p in out] == ["r.1", "r.3"]

    def test_missing_array(self):
        out = []
        collect_rejected_plans({}, "r", out)
        assert out == []

    def test_embedded_cursor_namespace(self):
        doc = {"stages": [
            {"$match": {}},
            {"$cursor": {"queryPlanner": {
                "winningPlan": {"stage": "IXSCAN"},
                "rejectedPlans": [{"stage": "COLLSCAN"}],
            }}},
        ]}
        run = analyze(doc, "aggregation")
        assert [p.plan_id for p in run.rejected_plans] == ["r.2.1"]
        assert run.rejected_plans[0].nodes[0].id == "r.2.1"

    def test_ids_never_collide_with_winning_tree(self, rejected_plan_explain):
        run = analyze(rejected_plan_explain)
        winning = {n.id for n in run.nodes}
        rejected = {n.id for plan in run.rejected_plans for n in plan.nodes}
        assert not winning & rejected
