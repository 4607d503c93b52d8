"""Tests for the run-level summary."""

from qt_mongo.explain.summary import build_summary


class TestTotals:
    """Outer totals first, node fallbacks second."""

    def test_outer_totals_win(self, make_node):
        doc = {"executionStats": {
            "nReturned": 1, "totalDocsExamined": 2, "totalKeysExamined": 3, "executionTimeMillis": 4,
        }}
        nodes = [make_node(n_returned=100, docs_examined=200, keys_examined=300, time_ms=400)]
        summary = build_summary(doc, nodes)
        assert (summary.n_returned, summary.docs_examined, summary.keys_examined,
                summary.execution_time_ms) == (1, 2, 3, 4)

    def test_top_level_execution_time(self, make_node):
        summary = build_summary({"executionTimeMillis": 15}, [make_node(time_ms=99)])
        assert summary.execution_time_ms == 15

    def test_node_fallbacks(self, make_node):
        nodes = [
            make_node("1", n_returned=3, docs_examined=10, time_ms=5),
            make_node("2", n_returned=None, keys_examined=70, time_ms=2),
            make_node("3", n_returned=8, docs_examined=4),
            make_node("4"),
        ]
        summary = build_summary({}, nodes)
        assert summary.n_returned == 8
        assert summary.docs_examined == 10
        assert summary.keys_examined == 70
        assert summary.execution_time_ms == 5

    def test_partial_outer_totals(self, make_node):
        summary = build_summary(
            {"executionStats": {"nReturned": 5}}, [make_node(docs_examined=40)]
        )
        assert summary.n_returned == 5
        assert summary.docs_examined == 40

    def test_all_absent(self, make_node):
        summary = build_summary({}, [make_node()])
        assert summary.n_returned is None
        assert summary.execution_time_ms is None


class TestFlags:
    """Label- and coverage-derived flags."""

    def test_collscan_and_sort(self, make_node):
        summary = build_summary({}, [make_node("1", "sort"), make_node("2", "CollScan")])
        assert summary.has_collscan is True
        assert summary.has_sort_stage is True

    def test_sort_stage_variants(self, make_node):
        assert build_summary({}, [make_node(label="$sort")]).has_sort_stage is True
        assert build_summary({}, [make_node(label="SORT_KEY_GENERATOR")]).has_sort_stage is True
        assert build_summary({}, [make_node(label="IXSCAN")]).has_sort_stage is False

    def test_covered_indexes_deduplicated(self, make_node):
        nodes = [
            make_node("1", index_name="b_1"),
            make_node("2", index_name="a_1"),
            make_node("3", index_name="b_1"),
        ]
        assert build_summary({}, nodes).covered_indexes == ("b_1", "a_1")

    def test_covered_query_from_flag(self, make_node):
        assert build_summary({}, [make_node(is_covered=True)]).is_covered_query is True
        assert build_summary({}, [make_node(is_covered=False)]).is_covered_query is False

    def test_covered_query_from_label(self, make_node):
        summary = build_summary({}, [make_node(label="PROJECTION_COVERED")])
        assert summary.is_covered_query is True
