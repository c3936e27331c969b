"""
Authoritative graph model for the sketchpad.

GraphStore owns every node and edge. It enforces the structural rules
(no dangling edges, one loop per node, centered parallel offsets,
contiguous display labels) and announces every structural change on the
event bus so the layout and the presentation layer can follow.

The adjacency index is a networkx MultiGraph keyed by edge id; the ordered
dicts of Node/Edge records are the source of truth for attributes and for
insertion order.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import networkx as nx

from sketchpad.geometry import Vec3
from sketchpad.notifications import GraphEvents

logger = logging.getLogger(__name__)

DEFAULT_NODE_COLOR = "#0077ff"
DEFAULT_BASE_OFFSET = 1.0


@dataclass
class Node:
    id: int
    position: Vec3
    label: str
    color: str = DEFAULT_NODE_COLOR


@dataclass
class Edge:
    """
    An edge between nodes a and b.

    The pair is ordered only for arrowhead orientation when the graph is
    directed. offset is 0 for loops and for a lone edge between a pair.
    is_bridge is written by analysis callers, never by the store's own
    structural operations.
    """
    id: int
    a: int
    b: int
    label: str
    offset: float = 0.0
    is_bridge: bool = False

    @property
    def is_loop(self) -> bool:
        return self.a == self.b

    @property
    def pair(self) -> Tuple[int, int]:
        """Unordered endpoint pair in canonical (low, high) order."""
        return (self.a, self.b) if self.a <= self.b else (self.b, self.a)

    def touches(self, node_id: int) -> bool:
        return node_id == self.a or node_id == self.b


@dataclass(frozen=True)
class GraphChange:
    """
    Payload of the graph_changed event.

    kind is one of node_added, edge_added, node_removed, edge_removed,
    cleared. rebalanced lists surviving edges whose offset family was
    re-centered and whose paths must be recomputed.
    """
    kind: str
    node_ids: Tuple[int, ...] = ()
    edge_ids: Tuple[int, ...] = ()
    rebalanced: Tuple[int, ...] = ()


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable view handed to the analyses."""
    node_ids: Tuple[int, ...] = ()
    edges: Tuple[Tuple[int, int, int], ...] = ()  # (edge id, a, b)
    directed: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.node_ids


def alternating_offset(existing: int, base: float) -> float:
    """
    Offset for the next edge of a parallel family that already has
    `existing` members: 0, +1, -1, +2, -2, ... times base.
    """
    magnitude = (existing + 1) // 2
    sign = 1.0 if existing % 2 == 1 else -1.0
    return sign * magnitude * base if magnitude else 0.0


def centered_offsets(count: int, base: float) -> List[float]:
    """Consecutive multiples of base, symmetric around zero."""
    return [(i - (count - 1) / 2.0) * base for i in range(count)]


class GraphStore:
    """
    In-memory multigraph with display labels and parallel-edge offsets.

    Usage:
        store = GraphStore()
        a = store.add_node((0, 0, 0))
        b = store.add_node((4, 0, 0))
        store.add_edge(a, b)
        store.remove_node(a)   # cascades to the edge, relabels the rest
    """

    def __init__(self, events: Optional[GraphEvents] = None,
                 base_offset: float = DEFAULT_BASE_OFFSET,
                 node_color: str = DEFAULT_NODE_COLOR,
                 directed: bool = False):
        self.events = events or GraphEvents()
        self.base_offset = base_offset
        self.node_color = node_color
        self.directed = directed

        self._nodes: Dict[int, Node] = {}
        self._edges: Dict[int, Edge] = {}
        self._graph = nx.MultiGraph()
        self._next_node_id = 1
        self._next_edge_id = 1

    # --- Queries ---

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def iter_edges(self) -> Iterator[Edge]:
        return iter(self._edges.values())

    def node(self, node_id: int) -> Optional[Node]:
        return self._nodes.get(node_id)

    def edge(self, edge_id: int) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def has_node(self, node_id: int) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edges

    def has_loop(self, node_id: int) -> bool:
        return bool(self._graph.get_edge_data(node_id, node_id, default={}))

    def incident_edges(self, node_id: int) -> List[Edge]:
        """Every edge touching the node, loops included, in creation order."""
        if node_id not in self._nodes:
            return []
        keys = {key for _, _, key in self._graph.edges(node_id, keys=True)}
        return [self._edges[k] for k in sorted(keys)]

    def family(self, u: int, v: int) -> List[Edge]:
        """Non-loop edges sharing the unordered pair {u, v}."""
        if u == v:
            return []
        keys = self._graph.get_edge_data(u, v, default={})
        return [self._edges[k] for k in sorted(keys)]

    def degree(self, node_id: int) -> int:
        """Number of edge entities incident to the node; a loop counts once."""
        return len(self.incident_edges(node_id))

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            node_ids=tuple(self._nodes),
            edges=tuple((e.id, e.a, e.b) for e in self._edges.values()),
            directed=self.directed,
        )

    def to_networkx(self) -> nx.MultiGraph:
        """Copy of the graph as a networkx multigraph (directed if the flag is set)."""
        graph = nx.MultiDiGraph() if self.directed else nx.MultiGraph()
        for node in self._nodes.values():
            graph.add_node(node.id, label=node.label, position=node.position, color=node.color)
        for edge in self._edges.values():
            graph.add_edge(edge.a, edge.b, key=edge.id, label=edge.label,
                           offset=edge.offset, is_bridge=edge.is_bridge)
        return graph

    # --- Structural mutations ---

    def add_node(self, position: Vec3, color: Optional[str] = None) -> int:
        node_id = self._next_node_id
        self._next_node_id += 1

        node = Node(
            id=node_id,
            position=tuple(float(c) for c in position),
            label=f"v{len(self._nodes) + 1}",
            color=color or self.node_color,
        )
        self._nodes[node_id] = node
        self._graph.add_node(node_id)

        logger.debug(f"Added node {node_id} ({node.label}) at {node.position}")
        self.events.emit('graph_changed', GraphChange('node_added', node_ids=(node_id,)))
        return node_id

    def add_edge(self, u: int, v: int) -> Optional[int]:
        """
        Connect u and v. Returns the new edge id, or None when the request is
        rejected (unknown endpoint, or a second loop on the same node).
        """
        if u not in self._nodes or v not in self._nodes:
            logger.warning(f"Cannot add edge {u}-{v}: unknown node")
            return None
        if u == v and self.has_loop(u):
            logger.info(f"Node {self._nodes[u].label} already has a loop; request ignored")
            return None

        offset = 0.0 if u == v else alternating_offset(len(self.family(u, v)), self.base_offset)

        edge_id = self._next_edge_id
        self._next_edge_id += 1
        edge = Edge(id=edge_id, a=u, b=v, label=f"e{len(self._edges) + 1}", offset=offset)
        self._edges[edge_id] = edge
        self._graph.add_edge(u, v, key=edge_id)

        rebalanced: Tuple[int, ...] = ()
        if not edge.is_loop:
            rebalanced = self._recenter_family(u, v)

        logger.debug(f"Added edge {edge_id} ({edge.label}) between {u} and {v}")
        self.events.emit('graph_changed', GraphChange(
            'edge_added', node_ids=(u, v), edge_ids=(edge_id,), rebalanced=rebalanced,
        ))
        return edge_id

    def remove_node(self, node_id: int) -> Optional[int]:
        """Remove a node and every incident edge. Returns the id, or None if unknown."""
        if node_id not in self._nodes:
            logger.info(f"Cannot remove node {node_id}: no such node")
            return None

        removed_edges = tuple(e.id for e in self.incident_edges(node_id))
        for edge_id in removed_edges:
            del self._edges[edge_id]
        del self._nodes[node_id]
        self._graph.remove_node(node_id)

        self._relabel_nodes()
        self._relabel_edges()

        logger.debug(f"Removed node {node_id} with {len(removed_edges)} incident edge(s)")
        self.events.emit('graph_changed', GraphChange(
            'node_removed', node_ids=(node_id,), edge_ids=removed_edges,
        ))
        return node_id

    def remove_edge(self, edge_id: int) -> Optional[int]:
        """Remove one edge and re-center its parallel siblings. Returns the id, or None."""
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            logger.info(f"Cannot remove edge {edge_id}: no such edge")
            return None
        self._graph.remove_edge(edge.a, edge.b, key=edge_id)

        rebalanced: Tuple[int, ...] = ()
        if not edge.is_loop:
            rebalanced = self._recenter_family(edge.a, edge.b)

        self._relabel_edges()

        logger.debug(f"Removed edge {edge_id}")
        self.events.emit('graph_changed', GraphChange(
            'edge_removed', node_ids=(edge.a, edge.b), edge_ids=(edge_id,), rebalanced=rebalanced,
        ))
        return edge_id

    def clear(self) -> None:
        """Remove everything and reset the id counters."""
        self._nodes.clear()
        self._edges.clear()
        self._graph.clear()
        self._next_node_id = 1
        self._next_edge_id = 1
        logger.debug("Graph cleared")
        self.events.emit('graph_changed', GraphChange('cleared'))

    # --- In-place mutations ---

    def move_node(self, node_id: int, position: Vec3) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.info(f"Cannot move node {node_id}: no such node")
            return False
        node.position = tuple(float(c) for c in position)
        self.events.emit('node_moved', node_id)
        return True

    def set_node_color(self, node_id: int, color: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.info(f"Cannot recolor node {node_id}: no such node")
            return False
        node.color = color
        self.events.emit('node_updated', node_id)
        return True

    def set_node_label(self, node_id: int, label: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.info(f"Cannot relabel node {node_id}: no such node")
            return False
        node.label = label
        self.events.emit('node_updated', node_id)
        return True

    def set_bridge_flags(self, bridge_ids) -> None:
        bridge_ids = set(bridge_ids)
        for edge in self._edges.values():
            edge.is_bridge = edge.id in bridge_ids

    def clear_bridge_flags(self) -> None:
        for edge in self._edges.values():
            edge.is_bridge = False

    # --- Internal helpers ---

    def _recenter_family(self, u: int, v: int) -> Tuple[int, ...]:
        """
        Reassign centered offsets to the family of {u, v}, keeping the
        current left-to-right order of its members.
        """
        siblings = sorted(self.family(u, v), key=lambda e: (e.offset, e.id))
        for edge, offset in zip(siblings, centered_offsets(len(siblings), self.base_offset)):
            edge.offset = offset
        return tuple(e.id for e in siblings)

    def _relabel_nodes(self) -> None:
        for index, node in enumerate(self._nodes.values(), start=1):
            node.label = f"v{index}"

    def _relabel_edges(self) -> None:
        for index, edge in enumerate(self._edges.values(), start=1):
            edge.label = f"e{index}"
