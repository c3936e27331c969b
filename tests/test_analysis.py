"""
Tests for the graph analyses.

networkx serves as an independent reference for bridges, bipartiteness
and clique bounds on small generated graphs, loops included.
"""

import itertools
import random

import networkx as nx
import pytest

from sketchpad.analysis import (
    ChromaticSolver,
    check_bipartite,
    chromatic_number,
    connected_components,
    find_bridges,
)
from sketchpad.graph import GraphSnapshot


def snap(node_count, pairs):
    """Snapshot with nodes 1..node_count and edges numbered in order from 1."""
    return GraphSnapshot(
        node_ids=tuple(range(1, node_count + 1)),
        edges=tuple((i, a, b) for i, (a, b) in enumerate(pairs, start=1)),
    )


def to_nx(snapshot):
    graph = nx.MultiGraph()
    graph.add_nodes_from(snapshot.node_ids)
    for edge_id, a, b in snapshot.edges:
        graph.add_edge(a, b, key=edge_id)
    return graph


def loop_free(graph):
    graph = graph.copy()
    graph.remove_edges_from(list(nx.selfloop_edges(graph, keys=True)))
    return graph


def has_loop(snapshot):
    return any(a == b for _, a, b in snapshot.edges)


def is_proper(snapshot, coloring):
    return all(coloring[a] != coloring[b] for _, a, b in snapshot.edges)


def random_snapshots(count=40, seed=7):
    rng = random.Random(seed)
    for _ in range(count):
        n = rng.randint(1, 9)
        pairs = []
        looped = set()
        for _ in range(rng.randint(0, 14)):
            a, b = rng.randint(1, n), rng.randint(1, n)
            if a == b:
                # at most one loop per node, as the store allows
                if a in looped:
                    continue
                looped.add(a)
            pairs.append((a, b))
        yield snap(n, pairs)


TRIANGLE = snap(3, [(1, 2), (2, 3), (3, 1)])
SINGLE_EDGE = snap(2, [(1, 2)])
PARALLEL_PAIR = snap(2, [(1, 2), (1, 2)])
EMPTY = GraphSnapshot()


class TestConnectedComponents:

    def test_empty_graph(self):
        assert connected_components(EMPTY).count == 0

    @pytest.mark.parametrize('snapshot', [TRIANGLE, SINGLE_EDGE, PARALLEL_PAIR])
    def test_scenarios_are_connected(self, snapshot):
        assert connected_components(snapshot).count == 1

    def test_isolated_nodes_are_singletons(self):
        result = connected_components(snap(3, []))
        assert sorted(len(c) for c in result.components) == [1, 1, 1]

    def test_two_components(self):
        result = connected_components(snap(5, [(1, 2), (2, 3), (4, 5)]))
        assert set(result.components) == {frozenset({1, 2, 3}), frozenset({4, 5})}
        mapping = result.component_of()
        assert mapping[1] == mapping[3] != mapping[4]

    def test_loop_does_not_join_anything(self):
        result = connected_components(snap(2, [(1, 1)]))
        assert result.count == 2

    def test_matches_union_find(self):
        for snapshot in random_snapshots():
            parent = {node: node for node in snapshot.node_ids}

            def root(node):
                while parent[node] != node:
                    node = parent[node]
                return node

            for _, a, b in snapshot.edges:
                parent[root(a)] = root(b)
            groups = {}
            for node in snapshot.node_ids:
                groups.setdefault(root(node), set()).add(node)

            result = connected_components(snapshot)
            assert set(result.components) == {frozenset(g) for g in groups.values()}
            assert sum(len(c) for c in result.components) == len(snapshot.node_ids)

    def test_looped_node_alone_is_a_singleton(self):
        result = connected_components(snap(3, [(1, 2), (3, 3)]))
        assert set(result.components) == {frozenset({1, 2}), frozenset({3})}


class TestBridges:

    def test_triangle_has_no_bridges(self):
        assert find_bridges(TRIANGLE).count == 0

    def test_single_edge_is_a_bridge(self):
        assert find_bridges(SINGLE_EDGE).bridges == {1}

    def test_parallel_pair_is_not_a_bridge(self):
        assert find_bridges(PARALLEL_PAIR).count == 0

    def test_path_with_pendant(self):
        # triangle 1-2-3 with a tail 3-4-5
        snapshot = snap(5, [(1, 2), (2, 3), (3, 1), (3, 4), (4, 5)])
        assert find_bridges(snapshot).bridges == {4, 5}

    def test_loop_is_never_a_bridge(self):
        assert find_bridges(snap(2, [(1, 1), (1, 2)])).bridges == {2}

    def test_empty_graph(self):
        assert find_bridges(EMPTY).count == 0

    def test_long_path_does_not_recurse(self):
        n = 3000
        snapshot = snap(n, [(i, i + 1) for i in range(1, n)])
        assert find_bridges(snapshot).count == n - 1

    def test_removing_a_bridge_increases_component_count(self):
        for snapshot in random_snapshots():
            before = connected_components(snapshot).count
            bridges = find_bridges(snapshot).bridges
            for edge_id, _, _ in snapshot.edges:
                reduced = GraphSnapshot(
                    node_ids=snapshot.node_ids,
                    edges=tuple(e for e in snapshot.edges if e[0] != edge_id),
                )
                after = connected_components(reduced).count
                assert (after > before) == (edge_id in bridges)

    def test_matches_networkx_on_simple_graphs(self):
        for snapshot in random_snapshots():
            simple = nx.Graph(loop_free(to_nx(snapshot)))
            single = {
                tuple(sorted((a, b))) for a, b in simple.edges
                if to_nx(snapshot).number_of_edges(a, b) == 1
            }
            expected = {tuple(sorted(e)) for e in nx.bridges(simple)} & single
            found = {
                tuple(sorted((a, b))) for edge_id, a, b in snapshot.edges
                if edge_id in find_bridges(snapshot).bridges
            }
            assert found == expected


class TestBipartite:

    def test_triangle_is_not_bipartite(self):
        result = check_bipartite(TRIANGLE)
        assert not result.is_bipartite
        assert result.conflict_edge in {1, 2, 3}

    def test_single_edge_is_bipartite(self):
        result = check_bipartite(SINGLE_EDGE)
        assert result.is_bipartite
        assert result.coloring[1] != result.coloring[2]

    def test_parallel_pair_is_bipartite(self):
        assert check_bipartite(PARALLEL_PAIR).is_bipartite

    def test_loop_breaks_bipartiteness(self):
        result = check_bipartite(snap(2, [(1, 2), (2, 2)]))
        assert not result.is_bipartite
        assert result.conflict_edge == 2

    def test_empty_graph_is_bipartite(self):
        assert check_bipartite(EMPTY).is_bipartite

    def test_even_cycle(self):
        result = check_bipartite(snap(4, [(1, 2), (2, 3), (3, 4), (4, 1)]))
        assert result.is_bipartite
        assert is_proper(snap(4, [(1, 2), (2, 3), (3, 4), (4, 1)]), result.coloring)

    def test_matches_networkx(self):
        for snapshot in random_snapshots():
            result = check_bipartite(snapshot)
            expected = nx.is_bipartite(loop_free(to_nx(snapshot))) and not has_loop(snapshot)
            assert result.is_bipartite == expected
            if result.is_bipartite:
                assert set(result.coloring) == set(snapshot.node_ids)
                assert is_proper(snapshot, result.coloring)


class TestChromaticNumber:

    @pytest.mark.parametrize('snapshot, expected', [
        (EMPTY, 0),
        (snap(4, []), 1),
        (SINGLE_EDGE, 2),
        (PARALLEL_PAIR, 2),
        (TRIANGLE, 3),
        (snap(5, [(1, 2), (2, 3), (3, 4), (4, 5), (5, 1)]), 3),
        (snap(4, list(itertools.combinations(range(1, 5), 2))), 4),
    ])
    def test_known_values(self, snapshot, expected):
        result = chromatic_number(snapshot)
        assert result.chromatic_number == expected
        assert result.exact
        if expected:
            assert is_proper(snapshot, result.coloring)
            assert len(set(result.coloring.values())) == expected

    def test_petersen_graph(self):
        petersen = nx.petersen_graph()
        snapshot = snap(10, [(a + 1, b + 1) for a, b in petersen.edges])
        assert chromatic_number(snapshot).chromatic_number == 3

    def test_loop_means_no_proper_coloring(self):
        result = chromatic_number(snap(3, [(1, 2), (3, 3)]))
        assert result.chromatic_number is None
        assert result.loop_nodes == {3}

    def test_large_graph_falls_back_to_greedy(self):
        snapshot = snap(6, [(1, 2), (2, 3), (3, 1)])
        result = chromatic_number(snapshot, exact_limit=5)
        assert not result.exact
        assert result.chromatic_number >= 3
        assert is_proper(snapshot, result.coloring)

    def test_step_budget_falls_back_to_greedy(self):
        snapshot = snap(5, [(1, 2), (2, 3), (3, 4), (4, 5), (5, 1)])
        result = chromatic_number(snapshot, step_budget=0)
        assert not result.exact
        assert is_proper(snapshot, result.coloring)

    def test_never_below_greedy_clique_bound(self):
        for snapshot in random_snapshots():
            result = chromatic_number(snapshot)
            if has_loop(snapshot):
                assert result.chromatic_number is None
                continue
            clique = max(len(c) for c in nx.find_cliques(nx.Graph(to_nx(snapshot))))
            assert result.chromatic_number >= clique
            assert is_proper(snapshot, result.coloring)


class TestChromaticSolver:

    def test_greedy_is_proper(self):
        neighbors = {1: {2, 3}, 2: {1, 3}, 3: {1, 2}, 4: set()}
        coloring = ChromaticSolver(neighbors).greedy_dsatur()
        assert coloring[1] != coloring[2] != coloring[3] != coloring[1]

    def test_odd_cycle_not_two_colorable(self):
        neighbors = {1: {2, 3}, 2: {1, 3}, 3: {1, 2}}
        solver = ChromaticSolver(neighbors)
        assert solver.is_k_colorable(2) is None
        assert solver.is_k_colorable(3) is not None

    def test_lower_bound_finds_triangle(self):
        neighbors = {1: {2, 3}, 2: {1, 3}, 3: {1, 2, 4}, 4: {3}}
        assert ChromaticSolver(neighbors).lower_bound() == 3
