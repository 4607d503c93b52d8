"""Tests for impact scoring, recommendations and ranking."""

from qt_mongo.explain.bottlenecks import (
    RECOMMEND_COMPOUND,
    RECOMMEND_GROUP,
    RECOMMEND_INDEX,
    RECOMMEND_MONITOR,
    RECOMMEND_SORT,
    U64_MAX,
    impact_score,
    rank_bottlenecks,
    recommendation_for_node,
)


class TestImpactScore:
    """Heuristic arithmetic."""

    def test_plain_sum(self, make_node):
        node = make_node(docs_examined=10, keys_examined=20, time_ms=1)
        assert impact_score(node) == 10 + 20 + 140

    def test_collscan_penalty(self, make_node):
        node = make_node(label="COLLSCAN", docs_examined=2000, n_returned=10, time_ms=42)
        assert impact_score(node) == 2000 + 42 * 140 + 40_000

    def test_expensive_band_penalty(self, make_node):
        node = make_node(keys_examined=20_000)
        assert impact_score(node) == 20_000 + 10_000

    def test_saturates(self, make_node):
        node = make_node(docs_examined=U64_MAX, keys_examined=U64_MAX, time_ms=U64_MAX)
        assert impact_score(node) == U64_MAX

    def test_empty_node(self, make_node):
        assert impact_score(make_node()) == 0


class TestRecommendation:
    """First-match recommendation rules."""

    def test_collscan(self, make_node):
        assert recommendation_for_node(make_node(label="COLLSCAN")) == RECOMMEND_INDEX

    def test_expensive_sort(self, make_node):
        node = make_node(label="SORT", docs_examined=50_000)
        assert recommendation_for_node(node) == RECOMMEND_SORT

    def test_cheap_sort_is_not_flagged(self, make_node):
        node = make_node(label="SORT", docs_examined=10, n_returned=10)
        assert recommendation_for_node(node) == RECOMMEND_MONITOR

    def test_group(self, make_node):
        node = make_node(label="$group", docs_examined=10_001, n_returned=100)
        assert recommendation_for_node(node) == RECOMMEND_GROUP

    def test_low_selectivity(self, make_node):
        node = make_node(keys_examined=2_401, n_returned=12)
        assert recommendation_for_node(node) == RECOMMEND_COMPOUND

    def test_keys_without_returned(self, make_node):
        assert recommendation_for_node(make_node(keys_examined=1)) == RECOMMEND_COMPOUND

    def test_monitor(self, make_node):
        node = make_node(keys_examined=1200, n_returned=12)
        assert recommendation_for_node(node) == RECOMMEND_MONITOR


class TestRanking:
    """Ordering, limits and depth filtering."""

    def test_sorted_with_ranks(self, make_node):
        nodes = [
            make_node("1", "FETCH", 0, docs_examined=5),
            make_node("1.1", "COLLSCAN", 1, docs_examined=5),
            make_node("1.2", "IXSCAN", 1, keys_examined=500),
        ]
        ranked = rank_bottlenecks(nodes)
        assert [b.node_id for b in ranked] == ["1.1", "1.2", "1"]
        assert [b.rank for b in ranked] == [1, 2, 3]
        assert ranked[0].stage == "COLLSCAN"
        assert ranked[0].docs_examined == 5

    def test_ties_keep_input_order(self, make_node):
        nodes = [make_node(str(i), "IXSCAN", 0, keys_examined=7) for i in range(1, 4)]
        assert [b.node_id for b in rank_bottlenecks(nodes)] == ["1", "2", "3"]

    def test_limit(self, make_node):
        nodes = [make_node(str(i), "IXSCAN", 0, keys_examined=i) for i in range(1, 9)]
        ranked = rank_bottlenecks(nodes)
        assert len(ranked) == 5
        assert ranked[0].node_id == "8"
        assert len(rank_bottlenecks(nodes, limit=2)) == 2

    def test_non_positive_limit_is_empty(self, make_node):
        nodes = [make_node(str(i), "IXSCAN", 0, keys_examined=i) for i in range(1, 4)]
        assert rank_bottlenecks(nodes, limit=0) == []
        assert rank_bottlenecks(nodes, limit=-1) == []

    def test_depth_cutoff(self, make_node):
        nodes = [
            make_node("1", "FETCH", 8, docs_examined=1),
            make_node("1.1", "COLLSCAN", 9, docs_examined=1_000_000),
        ]
        assert [b.node_id for b in rank_bottlenecks(nodes)] == ["1"]
        assert [b.node_id for b in rank_bottlenecks(nodes, max_depth=9)] == ["1.1", "1"]

    def test_empty(self):
        assert rank_bottlenecks([]) == []
