"""Tests for run-to-run comparison."""

from qt_mongo.explain import diff, normalize_stage_label
from qt_mongo.explain.bottlenecks import impact_score
from qt_mongo.explain.diff import optional_delta


def _exec_doc(stage, returned, docs, time_ms):
    return {"executionStats": {
        "nReturned": returned,
        "totalDocsExamined": docs,
        "executionTimeMillis": time_ms,
        "executionStages": {
            "stage": stage,
            "nReturned": returned,
            "docsExamined": docs,
            "executionTimeMillisEstimate": time_ms,
        },
    }}


class TestScalarDeltas:
    """current - baseline, None when either side is missing."""

    def test_deltas(self, make_run):
        baseline = make_run(_exec_doc("COLLSCAN", 10, 2000, 42))
        current = make_run(_exec_doc("COLLSCAN", 12, 1500, 50))
        result = diff(current, baseline)
        assert result.current_run_id == current.id
        assert result.baseline_run_id == baseline.id
        assert result.n_returned_delta == 2
        assert result.docs_examined_delta == -500
        assert result.execution_time_delta_ms == 8
        assert result.keys_examined_delta is None
        assert result.plan_shape_changed is False

    def test_n_returned_delta_matches_summaries(self, make_run, collscan_explain,
                                                rejected_plan_explain):
        a = make_run(collscan_explain)
        b = make_run(rejected_plan_explain)
        assert diff(b, a).n_returned_delta == b.summary.n_returned - a.summary.n_returned

    def test_optional_delta(self):
        assert optional_delta(5, 3) == 2
        assert optional_delta(None, 3) is None
        assert optional_delta(5, None) is None


class TestStageDeltas:
    """Label pairing and plan shape."""

    def test_normalize_label(self):
        assert normalize_stage_label("$Sort") == "sort"
        assert normalize_stage_label("IXSCAN") == "ixscan"

    def test_stage_pairing_across_dollar_prefix(self, make_run):
        current = make_run({"stages": [{"$match": {"docsExamined": 40}},
                                       {"$sort": {"executionTimeMillisEstimate": 9}}]})
        baseline = make_run({"stages": [{"$match": {"docsExamined": 100}},
                                        {"SORT": {"executionTimeMillisEstimate": 4}}]})
        result = diff(current, baseline)
        assert result.plan_shape_changed is False
        by_label = {d.label: d for d in result.stage_deltas}
        assert by_label["match"].docs_examined_delta == -60
        assert by_label["sort"].time_ms_delta == 5
        assert by_label["sort"].current_node_id == "2"
        assert by_label["sort"].impact_delta == (
            impact_score(current.nodes[1]) - impact_score(baseline.nodes[1])
        )

    def test_shape_change_and_unmatched_stage(self, make_run, collscan_explain,
                                              ixscan_fetch_explain):
        result = diff(make_run(ixscan_fetch_explain), make_run(collscan_explain))
        assert result.plan_shape_changed is True
        assert result.stage_deltas == []

    def test_order_only_change_is_shape_change(self, make_run):
        a = make_run({"stages": [{"$match": {}}, {"$sort": {}}]})
        b = make_run({"stages": [{"$sort": {}}, {"$match": {}}]})
        assert diff(a, b).plan_shape_changed is True

    def test_duplicate_labels_pair_first_occurrence(self, make_run):
        doc = {"queryPlanner": {"winningPlan": {
            "stage": "OR",
            "inputStages": [
                {"stage": "IXSCAN", "keysExamined": 10},
                {"stage": "IXSCAN", "keysExamined": 99},
            ],
        }}}
        result = diff(make_run(doc), make_run(doc))
        ixscan = [d for d in result.stage_deltas if d.label == "ixscan"]
        assert len(ixscan) == 1
        assert ixscan[0].current_node_id == "1.1"
        assert ixscan[0].baseline_node_id == "1.1"
        assert ixscan[0].keys_examined_delta == 0

    def test_identical_runs(self, make_run, cursor_pipeline_explain):
        a = make_run(cursor_pipeline_explain)
        b = make_run(cursor_pipeline_explain)
        result = diff(a, b)
        assert result.plan_shape_changed is False
        assert all(d.impact_delta == 0 for d in result.stage_deltas)
        assert [d.label for d in result.stage_deltas] == [
            "group", "projection_covered", "ixscan", "sort",
        ]
