"""
Interaction Controller - single source of truth for selection and edit mode.

This controller turns abstract input events into GraphStore mutations:
- picking nodes and edges by ray
- connecting two selected nodes, or looping the selected node back to itself
- placing new nodes through a preview tracked to the pointer
- dragging a selected node across its horizontal plane
- deleting the current selection

Exactly one mode is active at a time and every event is fully handled
before the next one is accepted.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from sketchpad.config import SketchpadSettings
from sketchpad.geometry import (
    ORIGIN, Ray, Vec3, ray_horizontal_plane, ray_polyline_distance, ray_sphere_intersection,
)
from sketchpad.graph import GraphStore
from sketchpad.interaction.inputs import (
    KeyDown, PointerMove, PointerPick, PointerRelease, Scroll, SecondaryAction,
)
from sketchpad.layout import EdgeLayout
from sketchpad.notifications import GraphEvents, SelectionChange
from sketchpad.presentation import NullRenderer, SceneRenderer

logger = logging.getLogger(__name__)


class InteractionState(Enum):
    IDLE = 'idle'
    NODE_SELECTED = 'node_selected'
    EDGE_SELECTED = 'edge_selected'
    NODE_CREATION_PREVIEW = 'node_creation_preview'
    DRAGGING = 'dragging'


class InteractionController:
    """
    Finite-state machine over pointer, wheel and key events.

    Clicking the already-selected node deselects it; clicking a second node
    connects the two and returns to IDLE. The loop key adds a loop to the
    selected node.
    """

    def __init__(self, store: GraphStore, layout: EdgeLayout,
                 events: Optional[GraphEvents] = None,
                 renderer: Optional[SceneRenderer] = None,
                 settings: Optional[SketchpadSettings] = None):
        self.store = store
        self.layout = layout
        self.events = events or store.events
        self.renderer = renderer or NullRenderer()
        self.settings = settings or SketchpadSettings()

        self._state = InteractionState.IDLE
        self._selected_node: Optional[int] = None
        self._selected_edge: Optional[int] = None
        self._preview_position: Optional[Vec3] = None
        self._preview_distance = self.settings.preview_distance
        self._last_ray: Optional[Ray] = None
        self._swallow_next_pick = False

        self._handlers: Dict[type, Callable[[Any], None]] = {
            PointerPick: self._on_pick,
            PointerMove: self._on_move,
            SecondaryAction: self._on_secondary,
            Scroll: self._on_scroll,
            KeyDown: self._on_key,
            PointerRelease: self._on_release,
        }

    # --- State ---

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def selected_node(self) -> Optional[int]:
        return self._selected_node

    @property
    def selected_edge(self) -> Optional[int]:
        return self._selected_edge

    @property
    def preview_position(self) -> Optional[Vec3]:
        return self._preview_position

    @property
    def preview_distance(self) -> float:
        return self._preview_distance

    def handle(self, event) -> InteractionState:
        """Process one input event to completion and return the resulting state."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"Ignoring unsupported input event {event!r}")
            return self._state
        if self._swallow_next_pick and not isinstance(event, PointerMove):
            # the browser follows the release that ends a drag with a click
            self._swallow_next_pick = False
            if isinstance(event, PointerPick):
                logger.debug("Ignoring the click that ends a drag")
                return self._state
        previous = self._state
        handler(event)
        if self._state != previous:
            logger.debug(f"Interaction {previous.value} -> {self._state.value}")
        return self._state

    def reset(self) -> None:
        """Drop selection and preview without touching the graph (used after clear)."""
        had_selection = self._selected_node is not None or self._selected_edge is not None
        self._selected_node = None
        self._swallow_next_pick = False
        self._selected_edge = None
        if self._preview_position is not None:
            self._preview_position = None
            self.events.emit('preview_changed', None)
        self._state = InteractionState.IDLE
        if had_selection:
            self.events.emit('selection_changed', SelectionChange())

    # --- Hit testing ---

    def pick_node(self, ray: Ray) -> Optional[int]:
        best: Optional[Tuple[float, int]] = None
        for node in self.store.nodes():
            t = ray_sphere_intersection(ray, node.position, self.settings.node_radius)
            if t is not None and (best is None or t < best[0]):
                best = (t, node.id)
        return best[1] if best else None

    def pick_edge(self, ray: Ray) -> Optional[int]:
        best: Optional[Tuple[float, int]] = None
        for path in self.layout.paths():
            distance, t = ray_polyline_distance(ray, path.points)
            if distance <= self.settings.edge_pick_tolerance and (best is None or t < best[0]):
                best = (t, path.edge_id)
        return best[1] if best else None

    # --- Event handlers ---

    def _on_pick(self, event: PointerPick) -> None:
        self._last_ray = event.ray

        if self._state == InteractionState.NODE_CREATION_PREVIEW:
            position = self._preview_position or self._preview_at(event.ray)
            self.store.add_node(position)
            self._exit_preview()
            return

        if self._state == InteractionState.DRAGGING:
            return

        node_id = self.pick_node(event.ray)
        if node_id is not None:
            self._click_node(node_id)
            return

        edge_id = self.pick_edge(event.ray)
        if edge_id is not None:
            if edge_id == self._selected_edge:
                self._deselect_edge()
            else:
                self._select_edge(edge_id)

    def _on_move(self, event: PointerMove) -> None:
        self._last_ray = event.ray

        if self._state == InteractionState.NODE_CREATION_PREVIEW:
            self._update_preview()
        elif self._state == InteractionState.DRAGGING:
            node = self.store.node(self._selected_node)
            if node is None:
                return
            target = ray_horizontal_plane(event.ray, node.position[2])
            if target is not None:
                self.store.move_node(node.id, target)

    def _on_secondary(self, event: SecondaryAction) -> None:
        if self._state == InteractionState.NODE_CREATION_PREVIEW:
            self._exit_preview()
            logger.info("Node creation canceled")
        elif self._state == InteractionState.DRAGGING:
            return
        else:
            self._clear_selection()

    def _on_scroll(self, event: Scroll) -> None:
        if self._state != InteractionState.NODE_CREATION_PREVIEW:
            return
        distance = self._preview_distance + event.delta * self.settings.scroll_distance_factor
        self._preview_distance = max(self.settings.min_preview_distance, distance)
        self._update_preview()

    def _on_key(self, event: KeyDown) -> None:
        key = (event.code or '').lower()

        if self._state in (InteractionState.NODE_CREATION_PREVIEW, InteractionState.DRAGGING):
            return

        if key == self.settings.key_begin_node_creation:
            self._clear_selection()
            self._enter_preview()
        elif key == self.settings.key_delete:
            self._delete_selection()
        elif key == self.settings.key_enable_drag:
            if self._state == InteractionState.NODE_SELECTED:
                self._state = InteractionState.DRAGGING
            else:
                logger.info("Drag needs a selected node")
        elif key == self.settings.key_add_loop:
            if self._state == InteractionState.NODE_SELECTED:
                self._add_loop(self._selected_node)
            else:
                logger.info("Adding a loop needs a selected node")

    def _on_release(self, event: PointerRelease) -> None:
        if self._state == InteractionState.DRAGGING:
            self._state = InteractionState.NODE_SELECTED
            self._swallow_next_pick = True

    # --- Selection ---

    def _click_node(self, node_id: int) -> None:
        if self._selected_node is None:
            self._select_node(node_id)
        elif self._selected_node == node_id:
            self._deselect_node()
        else:
            first = self._selected_node
            self._deselect_node()
            self.store.add_edge(first, node_id)

    def _add_loop(self, node_id: int) -> None:
        """Loop on the selected node; the node stays selected with its new degree."""
        if self.store.add_edge(node_id, node_id) is None:
            return
        self.events.emit('selection_changed', SelectionChange(
            kind='node', element_id=node_id, degree=self.store.degree(node_id),
        ))

    def _select_node(self, node_id: int) -> None:
        if self._selected_edge is not None:
            self._deselect_edge(notify=False)
        self._selected_node = node_id
        self._state = InteractionState.NODE_SELECTED
        self.renderer.set_highlight('node', node_id, True)
        self.events.emit('selection_changed', SelectionChange(
            kind='node', element_id=node_id, degree=self.store.degree(node_id),
        ))

    def _deselect_node(self, notify: bool = True) -> None:
        node_id = self._selected_node
        self._selected_node = None
        self._state = InteractionState.IDLE
        if node_id is not None and self.store.has_node(node_id):
            self.renderer.set_highlight('node', node_id, False)
        if notify:
            self.events.emit('selection_changed', SelectionChange())

    def _select_edge(self, edge_id: int) -> None:
        if self._selected_node is not None:
            self._deselect_node(notify=False)
        if self._selected_edge is not None:
            self.renderer.set_highlight('edge', self._selected_edge, False)
        self._selected_edge = edge_id
        self._state = InteractionState.EDGE_SELECTED
        self.renderer.set_highlight('edge', edge_id, True)
        self.events.emit('selection_changed', SelectionChange(kind='edge', element_id=edge_id))

    def _deselect_edge(self, notify: bool = True) -> None:
        edge_id = self._selected_edge
        self._selected_edge = None
        self._state = InteractionState.IDLE
        if edge_id is not None and self.store.has_edge(edge_id):
            self.renderer.set_highlight('edge', edge_id, False)
        if notify:
            self.events.emit('selection_changed', SelectionChange())

    def _clear_selection(self) -> None:
        if self._selected_node is not None:
            self._deselect_node()
        elif self._selected_edge is not None:
            self._deselect_edge()

    def _delete_selection(self) -> None:
        if self._selected_node is not None:
            node_id = self._selected_node
            self._deselect_node()
            self.store.remove_node(node_id)
        elif self._selected_edge is not None:
            edge_id = self._selected_edge
            self._deselect_edge()
            if self.store.remove_edge(edge_id) is None:
                logger.info(f"Selected edge {edge_id} no longer exists")
        else:
            logger.info("No node or edge selected for deletion")

    # --- Node creation preview ---

    def _enter_preview(self) -> None:
        self._preview_distance = self.settings.preview_distance
        self._state = InteractionState.NODE_CREATION_PREVIEW
        self._update_preview()
        logger.info("Node creation mode enabled")

    def _exit_preview(self) -> None:
        self._preview_position = None
        self._state = InteractionState.IDLE
        self.events.emit('preview_changed', None)

    def _preview_at(self, ray: Optional[Ray]) -> Vec3:
        if ray is None:
            return ORIGIN
        return ray.at(self._preview_distance)

    def _update_preview(self) -> None:
        self._preview_position = self._preview_at(self._last_ray)
        self.events.emit('preview_changed', self._preview_position)
