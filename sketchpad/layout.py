"""
Edge geometry for the sketchpad.

Each edge is drawn as a polyline computed purely from its endpoints'
current positions and its stored offset:
- lone edge (offset 0): a straight segment
- parallel edge: a quadratic curve whose apex sits `offset` away from the
  pair's midpoint, perpendicular to the edge in the ground plane
- loop: a lobe leaving and re-entering the node, bulging outward

EdgeLayout keeps the computed paths in a table keyed by edge id and
follows the store through the event bus.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sketchpad.config import SketchpadSettings
from sketchpad.geometry import (
    ORIGIN, X_AXIS, Vec3, ground_perpendicular, quadratic_bezier,
    UP, v_add, v_cross, v_mid, v_norm, v_scale, v_sub,
)
from sketchpad.graph import Edge, GraphChange, GraphStore
from sketchpad.notifications import GraphEvents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArrowPlacement:
    """Arrowhead with its tip on the target node's surface."""
    tip: Vec3
    direction: Vec3
    size: float

    @property
    def base(self) -> Vec3:
        return v_sub(self.tip, v_scale(self.direction, self.size))


@dataclass(frozen=True)
class EdgePath:
    edge_id: int
    points: Tuple[Vec3, ...]
    label_position: Vec3
    is_loop: bool = False
    is_parallel: bool = False
    arrow: Optional[ArrowPlacement] = None


def straight_path(start: Vec3, end: Vec3) -> Tuple[Vec3, ...]:
    return (start, end)


def parallel_control_point(start: Vec3, end: Vec3, offset: float, low_first: bool = True) -> Vec3:
    """
    Control point of the quadratic curve whose t=0.5 point is the midpoint
    displaced by offset.

    The perpendicular is taken from the canonical (low id -> high id)
    direction so that opposite-direction siblings fan out consistently.
    """
    direction = v_sub(end, start) if low_first else v_sub(start, end)
    perp = ground_perpendicular(direction)
    return v_add(v_mid(start, end), v_scale(perp, 2.0 * offset))


def parallel_curve(start: Vec3, end: Vec3, offset: float, samples: int,
                   low_first: bool = True) -> Tuple[Vec3, ...]:
    control = parallel_control_point(start, end, offset, low_first)
    return tuple(
        quadratic_bezier(start, control, end, i / (samples - 1))
        for i in range(samples)
    )


def loop_direction(center: Vec3) -> Vec3:
    """Horizontal direction pointing away from the vertical axis through the origin."""
    radial = v_norm((center[0], center[1], 0.0))
    return X_AXIS if radial == ORIGIN else radial


def loop_path(center: Vec3, radius: float, segments: int) -> Tuple[Vec3, ...]:
    """
    Half-turn sweep t in [0, pi] tracing a lobe anchored at center:
    radial reach 2r*sin(t), sideways r*sin(2t).
    """
    radius = max(0.0, radius)
    outward = loop_direction(center)
    side = v_norm(v_cross(UP, outward))
    points: List[Vec3] = []
    for i in range(segments + 1):
        t = math.pi * i / segments
        reach = v_scale(outward, 2.0 * radius * math.sin(t))
        sway = v_scale(side, radius * math.sin(2.0 * t))
        points.append(v_add(center, v_add(reach, sway)))
    return tuple(points)


def arrow_for(points: Tuple[Vec3, ...], node_radius: float, size: float) -> Optional[ArrowPlacement]:
    """Arrowhead at the end of the path, pulled back to the node surface."""
    if len(points) < 2:
        return None
    tangent = v_norm(v_sub(points[-1], points[-2]))
    if tangent == ORIGIN:
        return None
    tip = v_sub(points[-1], v_scale(tangent, node_radius))
    return ArrowPlacement(tip=tip, direction=tangent, size=size)


class EdgeLayout:
    """
    Table of EdgePath by edge id.

    Recomputes incident paths on node_moved, the whole affected family on
    structural changes, and only arrow placement when the directed flag or
    arrow size changes.
    """

    def __init__(self, store: GraphStore, events: Optional[GraphEvents] = None,
                 settings: Optional[SketchpadSettings] = None):
        self.store = store
        self.events = events or store.events
        self.settings = settings or SketchpadSettings()
        self.arrow_size = self.settings.arrow_size
        self._paths: Dict[int, EdgePath] = {}

        self.events.on('graph_changed', self._on_graph_changed)
        self.events.on('node_moved', self._on_node_moved)

    # --- Queries ---

    def path(self, edge_id: int) -> Optional[EdgePath]:
        return self._paths.get(edge_id)

    def paths(self) -> List[EdgePath]:
        return [self._paths[e.id] for e in self.store.iter_edges() if e.id in self._paths]

    # --- Recomputation ---

    def recompute_edges(self, edge_ids: Iterable[int]) -> Tuple[int, ...]:
        changed = []
        for edge_id in edge_ids:
            edge = self.store.edge(edge_id)
            if edge is None:
                self._paths.pop(edge_id, None)
                continue
            self._paths[edge_id] = self._compute(edge)
            changed.append(edge_id)
        changed = tuple(changed)
        if changed:
            self.events.emit('layout_changed', changed)
        return changed

    def recompute_incident(self, node_id: int) -> Tuple[int, ...]:
        return self.recompute_edges(e.id for e in self.store.incident_edges(node_id))

    def recompute_all(self) -> Tuple[int, ...]:
        self._paths.clear()
        return self.recompute_edges([e.id for e in self.store.iter_edges()])

    def recompute_arrows(self) -> None:
        """Refresh arrow placement only; the paths themselves are kept."""
        for edge_id, path in list(self._paths.items()):
            self._paths[edge_id] = EdgePath(
                edge_id=path.edge_id,
                points=path.points,
                label_position=path.label_position,
                is_loop=path.is_loop,
                is_parallel=path.is_parallel,
                arrow=self._arrow(path.points),
            )
        self.events.emit('arrows_changed', None)

    def set_arrow_size(self, size: float) -> None:
        self.arrow_size = max(0.0, float(size))
        self.recompute_arrows()

    # --- Internal ---

    def _arrow(self, points: Tuple[Vec3, ...]) -> Optional[ArrowPlacement]:
        if not self.store.directed:
            return None
        return arrow_for(points, self.settings.node_radius, self.arrow_size)

    def _compute(self, edge: Edge) -> EdgePath:
        start = self.store.node(edge.a).position
        end = self.store.node(edge.b).position

        if edge.is_loop:
            points = loop_path(start, self.settings.loop_radius, self.settings.loop_segments)
            label_position = points[len(points) // 2]
        elif edge.offset == 0:
            points = straight_path(start, end)
            label_position = v_mid(start, end)
        else:
            low_first = edge.a <= edge.b
            control = parallel_control_point(start, end, edge.offset, low_first)
            points = parallel_curve(start, end, edge.offset, self.settings.curve_samples, low_first)
            label_position = quadratic_bezier(start, control, end, 0.5)

        return EdgePath(
            edge_id=edge.id,
            points=points,
            label_position=label_position,
            is_loop=edge.is_loop,
            is_parallel=len(self.store.family(edge.a, edge.b)) > 1,
            arrow=self._arrow(points),
        )

    def _on_graph_changed(self, change: GraphChange) -> None:
        if change.kind == 'cleared':
            self._paths.clear()
            return
        for edge_id in change.edge_ids:
            if not self.store.has_edge(edge_id):
                self._paths.pop(edge_id, None)
        affected = [e for e in change.edge_ids if self.store.has_edge(e)]
        affected.extend(e for e in change.rebalanced if e not in affected)
        if affected:
            self.recompute_edges(affected)
        logger.debug(f"Layout followed {change.kind}: {len(affected)} path(s) recomputed")

    def _on_node_moved(self, node_id: int) -> None:
        self.recompute_incident(node_id)
