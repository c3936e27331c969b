"""
Graph analyses over a GraphSnapshot.

All four analyses treat the graph as undirected. Loops never join two
different nodes, so they are left out of the adjacency; where a loop
matters (bipartiteness, proper coloring) it is checked explicitly.
Components come from networkx; the bridge search uses an explicit stack
so deep graphs cannot hit the recursion limit.

Nothing here mutates the store: callers apply the results.
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

import networkx as nx

from sketchpad.graph import GraphSnapshot

logger = logging.getLogger(__name__)

DEFAULT_EXACT_LIMIT = 60
DEFAULT_STEP_BUDGET = 200_000


@dataclass(frozen=True)
class ComponentsResult:
    components: Tuple[FrozenSet[int], ...] = ()

    @property
    def count(self) -> int:
        return len(self.components)

    def component_of(self) -> Dict[int, int]:
        """node id -> component index"""
        return {node: index for index, comp in enumerate(self.components) for node in comp}


@dataclass(frozen=True)
class BridgesResult:
    bridges: FrozenSet[int] = frozenset()

    @property
    def count(self) -> int:
        return len(self.bridges)


@dataclass(frozen=True)
class BipartiteResult:
    is_bipartite: bool = True
    coloring: Optional[Dict[int, int]] = None
    conflict_edge: Optional[int] = None  # first edge found joining two same-side nodes


@dataclass(frozen=True)
class ChromaticResult:
    """
    chromatic_number is None when a loop makes every coloring improper.
    exact is False when the search fell back to the greedy upper bound.
    """
    chromatic_number: Optional[int] = 0
    coloring: Dict[int, int] = field(default_factory=dict)
    exact: bool = True
    loop_nodes: FrozenSet[int] = frozenset()


# --- Adjacency helpers ---

def _adjacency(snapshot: GraphSnapshot) -> Dict[int, List[Tuple[int, int]]]:
    """node -> [(neighbor, edge id)], loops excluded, parallel edges kept."""
    adj: Dict[int, List[Tuple[int, int]]] = {node: [] for node in snapshot.node_ids}
    for edge_id, a, b in snapshot.edges:
        if a == b:
            continue
        adj[a].append((b, edge_id))
        adj[b].append((a, edge_id))
    return adj


def _neighbor_sets(snapshot: GraphSnapshot) -> Dict[int, Set[int]]:
    """node -> distinct neighbors, loops excluded."""
    neighbors: Dict[int, Set[int]] = {node: set() for node in snapshot.node_ids}
    for _, a, b in snapshot.edges:
        if a != b:
            neighbors[a].add(b)
            neighbors[b].add(a)
    return neighbors


def _loop_edges(snapshot: GraphSnapshot) -> Dict[int, int]:
    """node -> id of its loop edge"""
    return {a: edge_id for edge_id, a, b in snapshot.edges if a == b}


# --- Connected components ---

def connected_components(snapshot: GraphSnapshot) -> ComponentsResult:
    """Partition of the nodes; isolated nodes are singleton components."""
    graph = nx.MultiGraph()
    graph.add_nodes_from(snapshot.node_ids)
    graph.add_edges_from((a, b, edge_id) for edge_id, a, b in snapshot.edges)
    components = [frozenset(c) for c in nx.connected_components(graph)]

    logger.debug(f"Found {len(components)} connected component(s)")
    return ComponentsResult(components=tuple(components))


# --- Bridges ---

def find_bridges(snapshot: GraphSnapshot) -> BridgesResult:
    """
    Discovery/low-link search over the multigraph.

    The edge used to reach a child is skipped by id, not by endpoint, so a
    parallel sibling counts as a back edge. An edge is a bridge when it is
    the only edge between its pair and low[child] > disc[parent].
    """
    adj = _adjacency(snapshot)
    multiplicity = Counter(
        (min(a, b), max(a, b)) for _, a, b in snapshot.edges if a != b
    )
    disc: Dict[int, int] = {}
    low: Dict[int, int] = {}
    bridges: Set[int] = set()
    timer = 0

    for root in snapshot.node_ids:
        if root in disc:
            continue
        disc[root] = low[root] = timer
        timer += 1
        stack = [(root, None, iter(adj[root]))]

        while stack:
            node, via_edge, neighbors = stack[-1]
            descended = False
            for nbr, edge_id in neighbors:
                if edge_id == via_edge:
                    continue
                if nbr in disc:
                    low[node] = min(low[node], disc[nbr])
                else:
                    disc[nbr] = low[nbr] = timer
                    timer += 1
                    stack.append((nbr, edge_id, iter(adj[nbr])))
                    descended = True
                    break
            if descended:
                continue

            stack.pop()
            if stack:
                parent = stack[-1][0]
                low[parent] = min(low[parent], low[node])
                pair = (min(parent, node), max(parent, node))
                if low[node] > disc[parent] and multiplicity[pair] == 1:
                    bridges.add(via_edge)

    logger.debug(f"Found {len(bridges)} bridge(s)")
    return BridgesResult(bridges=frozenset(bridges))


# --- Bipartiteness ---

def check_bipartite(snapshot: GraphSnapshot) -> BipartiteResult:
    """Two-coloring by breadth-first search, one pass per component."""
    loops = _loop_edges(snapshot)
    if loops:
        node, edge_id = next(iter(loops.items()))
        logger.debug(f"Node {node} has a loop; graph is not bipartite")
        return BipartiteResult(is_bipartite=False, conflict_edge=edge_id)

    adj = _adjacency(snapshot)
    color: Dict[int, int] = {}

    for start in snapshot.node_ids:
        if start in color:
            continue
        color[start] = 0
        queue = deque([start])
        while queue:
            node = queue.popleft()
            for nbr, edge_id in adj[node]:
                if nbr not in color:
                    color[nbr] = 1 - color[node]
                    queue.append(nbr)
                elif color[nbr] == color[node]:
                    logger.debug(f"Edge {edge_id} joins two nodes of the same side")
                    return BipartiteResult(is_bipartite=False, conflict_edge=edge_id)

    return BipartiteResult(is_bipartite=True, coloring=color)


# --- Chromatic number ---

class _BudgetExceeded(Exception):
    pass


class ChromaticSolver:
    """
    Exact vertex coloring by increasing-k feasibility search.

    The DSATUR greedy coloring gives the upper bound; each k from the lower
    bound upward is tried by backtracking with DSATUR vertex choice. The
    search gives up after step_budget assignments and keeps the greedy
    coloring.
    """

    def __init__(self, neighbors: Dict[int, Set[int]], step_budget: int = DEFAULT_STEP_BUDGET):
        self.nodes = list(neighbors)
        self.neighbors = neighbors
        self.degree = {n: len(nbrs) for n, nbrs in neighbors.items()}
        self.step_budget = step_budget
        self.steps = 0

    def greedy_dsatur(self) -> Dict[int, int]:
        colors: Dict[int, int] = {}
        saturation: Dict[int, Set[int]] = {n: set() for n in self.nodes}
        while len(colors) < len(self.nodes):
            node = max(
                (n for n in self.nodes if n not in colors),
                key=lambda n: (len(saturation[n]), self.degree[n]),
            )
            c = 0
            while c in saturation[node]:
                c += 1
            colors[node] = c
            for nbr in self.neighbors[node]:
                saturation[nbr].add(c)
        return colors

    def is_k_colorable(self, k: int) -> Optional[Dict[int, int]]:
        """
        Returns a proper k-coloring, or None if there is none. Raises
        _BudgetExceeded once the step budget is spent.
        """
        colors: Dict[int, int] = {}
        saturation: Dict[int, Counter] = {n: Counter() for n in self.nodes}

        def choose_next() -> int:
            return max(
                (n for n in self.nodes if n not in colors),
                key=lambda n: (len(saturation[n]), self.degree[n]),
            )

        def backtrack() -> bool:
            if len(colors) == len(self.nodes):
                return True
            node = choose_next()
            for c in range(k):
                if saturation[node][c]:
                    continue
                self.steps += 1
                if self.steps > self.step_budget:
                    raise _BudgetExceeded()
                colors[node] = c
                for nbr in self.neighbors[node]:
                    saturation[nbr][c] += 1
                if backtrack():
                    return True
                for nbr in self.neighbors[node]:
                    saturation[nbr][c] -= 1
                    if not saturation[nbr][c]:
                        del saturation[nbr][c]
                del colors[node]
            return False

        return dict(colors) if backtrack() else None

    def lower_bound(self) -> int:
        """Size of a greedily grown clique (1 for any non-empty graph)."""
        if not self.nodes:
            return 0
        best = 1
        for start in sorted(self.nodes, key=lambda n: -self.degree[n])[:10]:
            clique = [start]
            candidates = set(self.neighbors[start])
            while candidates:
                pick = max(candidates, key=lambda n: (self.degree[n], -n))
                clique.append(pick)
                candidates &= self.neighbors[pick]
            best = max(best, len(clique))
        return best

    def solve(self) -> Tuple[int, Dict[int, int], bool]:
        greedy = self.greedy_dsatur()
        upper = max(greedy.values()) + 1 if greedy else 0
        try:
            for k in range(self.lower_bound(), upper):
                coloring = self.is_k_colorable(k)
                if coloring is not None:
                    return k, coloring, True
        except _BudgetExceeded:
            logger.info(f"Chromatic search exceeded {self.step_budget} steps; using greedy bound {upper}")
            return upper, greedy, False
        return upper, greedy, True


def chromatic_number(snapshot: GraphSnapshot,
                     exact_limit: int = DEFAULT_EXACT_LIMIT,
                     step_budget: int = DEFAULT_STEP_BUDGET) -> ChromaticResult:
    """
    Minimum number of colors for a proper coloring.

    A loop makes a proper coloring impossible, reported as
    chromatic_number None. Graphs larger than exact_limit get the DSATUR
    upper bound with exact=False.
    """
    loops = _loop_edges(snapshot)
    if loops:
        logger.debug(f"{len(loops)} node(s) with loops; no proper coloring exists")
        return ChromaticResult(chromatic_number=None, exact=True, loop_nodes=frozenset(loops))

    if snapshot.is_empty:
        return ChromaticResult(chromatic_number=0)

    solver = ChromaticSolver(_neighbor_sets(snapshot), step_budget=step_budget)
    if len(snapshot.node_ids) > exact_limit:
        greedy = solver.greedy_dsatur()
        logger.info(f"{len(snapshot.node_ids)} nodes exceed the exact limit {exact_limit}; using greedy coloring")
        return ChromaticResult(chromatic_number=max(greedy.values()) + 1, coloring=greedy, exact=False)

    k, coloring, exact = solver.solve()
    return ChromaticResult(chromatic_number=k, coloring=coloring, exact=exact)
