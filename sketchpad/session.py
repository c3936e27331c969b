"""
Sketchpad session: wires the graph core together and exposes the
control-panel commands.

    events  -> GraphStore -> EdgeLayout
    input   -> InteractionController -> GraphStore
    panel   -> Sketchpad commands -> analyses -> SceneRenderer colors

Analysis colors live in a presentation-side table keyed by node id; the
store keeps each node's own color so reset_highlights can restore it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sketchpad.analysis import (
    BipartiteResult, BridgesResult, ChromaticResult, ComponentsResult,
    check_bipartite, chromatic_number, connected_components, find_bridges,
)
from sketchpad.config import SketchpadSettings
from sketchpad.geometry import Vec3
from sketchpad.graph import GraphStore
from sketchpad.interaction.controller import InteractionController, InteractionState
from sketchpad.layout import ArrowPlacement, EdgeLayout
from sketchpad.notifications import GraphEvents
from sketchpad.presentation import NullRenderer, SceneRenderer
from sketchpad.utils import BIPARTITE_COLORS, class_colors, is_hex_color, palette

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeView:
    id: int
    position: Vec3
    label: str
    color: str
    selected: bool = False


@dataclass(frozen=True)
class EdgeView:
    id: int
    a: int
    b: int
    label: str
    points: Tuple[Vec3, ...]
    label_position: Vec3
    color: str
    is_loop: bool = False
    is_parallel: bool = False
    is_bridge: bool = False
    selected: bool = False
    arrow: Optional[ArrowPlacement] = None


@dataclass(frozen=True)
class SceneSnapshot:
    nodes: Tuple[NodeView, ...] = ()
    edges: Tuple[EdgeView, ...] = ()
    preview_position: Optional[Vec3] = None
    directed: bool = False

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class Sketchpad:
    """
    One interactive graph with its layout, controller and analyses.

    Usage:
        pad = Sketchpad(renderer=view)
        pad.handle(KeyDown('v'))
        pad.run_bridges()
        view.redraw(pad.snapshot())
    """

    def __init__(self, settings: Optional[SketchpadSettings] = None,
                 renderer: Optional[SceneRenderer] = None,
                 events: Optional[GraphEvents] = None):
        self.settings = settings or SketchpadSettings()
        self.events = events or GraphEvents()
        self.renderer = renderer or NullRenderer()

        self.store = GraphStore(
            self.events,
            base_offset=self.settings.base_parallel_offset,
            node_color=self.settings.node_color,
            directed=self.settings.directed,
        )
        self.layout = EdgeLayout(self.store, self.events, self.settings)
        self.controller = InteractionController(
            self.store, self.layout, self.events, self.renderer, self.settings,
        )
        self._node_overrides: Dict[int, str] = {}

    # --- Input ---

    def handle(self, event) -> InteractionState:
        return self.controller.handle(event)

    def attach_renderer(self, renderer: SceneRenderer) -> None:
        self.renderer = renderer
        self.controller.renderer = renderer

    # --- Status ---

    @property
    def node_count(self) -> int:
        return self.store.node_count

    @property
    def edge_count(self) -> int:
        return self.store.edge_count

    def selected_degree(self) -> Optional[int]:
        node_id = self.controller.selected_node
        return self.store.degree(node_id) if node_id is not None else None

    def node_display_color(self, node_id: int) -> Optional[str]:
        node = self.store.node(node_id)
        if node is None:
            return None
        return self._node_overrides.get(node_id, node.color)

    def edge_display_color(self, edge_id: int) -> Optional[str]:
        edge = self.store.edge(edge_id)
        if edge is None:
            return None
        if edge.id == self.controller.selected_edge:
            return self.settings.selected_edge_color
        return self.settings.bridge_color if edge.is_bridge else self.settings.edge_color

    def snapshot(self) -> SceneSnapshot:
        """Everything the presentation layer needs to redraw the scene."""
        nodes = tuple(
            NodeView(
                id=n.id, position=n.position, label=n.label,
                color=self.node_display_color(n.id),
                selected=n.id == self.controller.selected_node,
            )
            for n in self.store.nodes()
        )
        edges = []
        for edge in self.store.iter_edges():
            path = self.layout.path(edge.id)
            if path is None:
                continue
            edges.append(EdgeView(
                id=edge.id, a=edge.a, b=edge.b, label=edge.label,
                points=path.points, label_position=path.label_position,
                color=self.edge_display_color(edge.id),
                is_loop=path.is_loop, is_parallel=path.is_parallel,
                is_bridge=edge.is_bridge,
                selected=edge.id == self.controller.selected_edge,
                arrow=path.arrow,
            ))
        return SceneSnapshot(
            nodes=nodes, edges=tuple(edges),
            preview_position=self.controller.preview_position,
            directed=self.store.directed,
        )

    # --- Panel commands ---

    def set_directed(self, directed: bool) -> None:
        self.store.directed = bool(directed)
        self.layout.recompute_arrows()
        logger.info(f"Directed mode {'on' if directed else 'off'}")

    def set_arrow_size(self, size: float) -> None:
        self.layout.set_arrow_size(size)

    def set_selected_node_color(self, color: str) -> bool:
        node_id = self.controller.selected_node
        if node_id is None:
            logger.info("No node selected to recolor")
            return False
        if not is_hex_color(color):
            logger.warning(f"Ignoring invalid color {color!r}")
            return False
        self._node_overrides.pop(node_id, None)
        self.store.set_node_color(node_id, color)
        self.renderer.set_color('node', node_id, color)
        return True

    def set_selected_node_label(self, label: str) -> bool:
        node_id = self.controller.selected_node
        if node_id is None:
            logger.info("No node selected to relabel")
            return False
        return self.store.set_node_label(node_id, label)

    def run_components(self) -> ComponentsResult:
        result = connected_components(self.store.snapshot())
        colors = palette(result.count)
        self._apply_node_colors(class_colors(result.component_of(), colors))
        self.events.emit('analysis_completed', result)
        logger.info(f"{result.count} connected component(s)")
        return result

    def run_bridges(self) -> BridgesResult:
        result = find_bridges(self.store.snapshot())
        self.store.set_bridge_flags(result.bridges)
        for edge in self.store.iter_edges():
            self.renderer.set_color('edge', edge.id, self.edge_display_color(edge.id))
        self.events.emit('highlights_changed', None)
        self.events.emit('analysis_completed', result)
        logger.info(f"{result.count} bridge(s)")
        return result

    def run_bipartite(self) -> BipartiteResult:
        result = check_bipartite(self.store.snapshot())
        if result.is_bipartite and result.coloring is not None:
            self._apply_node_colors(class_colors(result.coloring, BIPARTITE_COLORS))
        self.events.emit('analysis_completed', result)
        logger.info(f"Bipartite: {result.is_bipartite}")
        return result

    def run_chromatic(self) -> ChromaticResult:
        result = chromatic_number(
            self.store.snapshot(),
            exact_limit=self.settings.chromatic_exact_limit,
            step_budget=self.settings.chromatic_step_budget,
        )
        if result.coloring:
            self._apply_node_colors(class_colors(result.coloring, palette(result.chromatic_number)))
        self.events.emit('analysis_completed', result)
        logger.info(f"Chromatic number: {result.chromatic_number} (exact={result.exact})")
        return result

    def reset_highlights(self) -> None:
        """Clear bridge flags and analysis colors back to each element's own color."""
        self._node_overrides.clear()
        self.store.clear_bridge_flags()
        for node in self.store.nodes():
            self.renderer.set_color('node', node.id, node.color)
        for edge in self.store.iter_edges():
            self.renderer.set_color('edge', edge.id, self.edge_display_color(edge.id))
        self.events.emit('highlights_changed', None)

    def clear_graph(self) -> None:
        self.controller.reset()
        self._node_overrides.clear()
        self.store.clear()
        self.events.emit('highlights_changed', None)

    # --- Internal ---

    def _apply_node_colors(self, colors: Dict[int, str]) -> None:
        self._node_overrides = dict(colors)
        for node_id, color in colors.items():
            self.renderer.set_color('node', node_id, color)
        self.events.emit('highlights_changed', None)


def describe_result(result) -> str:
    """One-line summary of an analysis result for a notification."""
    if isinstance(result, ComponentsResult):
        return f'{result.count} connected component(s)'
    if isinstance(result, BridgesResult):
        return f'{result.count} bridge(s)'
    if isinstance(result, BipartiteResult):
        return 'Graph is bipartite' if result.is_bipartite else 'Graph is not bipartite'
    if isinstance(result, ChromaticResult):
        if result.chromatic_number is None:
            return 'No proper coloring: a node has a loop'
        suffix = '' if result.exact else ' (upper bound)'
        return f'Chromatic number: {result.chromatic_number}{suffix}'
    raise TypeError(f"Not an analysis result: {type(result).__name__}")
