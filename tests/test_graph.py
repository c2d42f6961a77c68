"""Tests for the adjacency-map graph helpers."""

from __future__ import annotations

from planboard.core.graph import find_cycle, invert, path_exists, reachable


class TestInvert:
    def test_reverses_edges(self) -> None:
        assert invert({"b": {"a"}, "a": set()}) == {"a": {"b"}, "b": set()}

    def test_keeps_nodes_only_seen_as_targets(self) -> None:
        assert invert({"a": {"x"}}) == {"a": set(), "x": {"a"}}


class TestReachable:
    def test_chain(self) -> None:
        adj = {"a": {"b"}, "b": {"c"}, "c": set()}
        assert reachable(adj, "a") == {"b", "c"}

    def test_excludes_start(self) -> None:
        assert reachable({"a": {"b"}}, "a") == {"b"}

    def test_start_on_cycle_included(self) -> None:
        adj = {"a": {"b"}, "b": {"a"}}
        assert reachable(adj, "a") == {"a", "b"}

    def test_unknown_start(self) -> None:
        assert reachable({}, "x") == set()


class TestPathExists:
    def test_direct_and_transitive(self) -> None:
        adj = {"a": {"b"}, "b": {"c"}}
        assert path_exists(adj, "a", "b")
        assert path_exists(adj, "a", "c")

    def test_direction_matters(self) -> None:
        assert not path_exists({"a": {"b"}}, "b", "a")

    def test_same_node(self) -> None:
        assert path_exists({}, "a", "a")


class TestFindCycle:
    def test_acyclic(self) -> None:
        assert find_cycle({"a": {"b"}, "b": {"c"}, "c": set()}) is None

    def test_empty(self) -> None:
        assert find_cycle({}) is None

    def test_two_cycle(self) -> None:
        cycle = find_cycle({"a": {"b"}, "b": {"a"}})
        assert cycle is not None
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b"}

    def test_self_loop(self) -> None:
        assert find_cycle({"a": {"a"}}) == ["a", "a"]

    def test_longer_cycle_reported_in_order(self) -> None:
        adj = {"a": ["b"], "b": ["c"], "c": ["a"], "d": ["a"]}
        cycle = find_cycle(adj)
        assert cycle is not None
        assert len(cycle) == 4
        for node, nxt in zip(cycle, cycle[1:]):
            assert nxt in adj[node]

    def test_deep_chain_does_not_recurse(self) -> None:
        adj = {i: [i + 1] for i in range(5000)}
        assert find_cycle(adj) is None
