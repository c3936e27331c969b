"""
NiceGUI scene adapter for the sketchpad.

Draws a SceneSnapshot into a ui.scene and implements the SceneRenderer
protocol so the core can recolor and highlight elements by id. Rendering
handles live only here, in a table keyed by the same stable ids the store
uses.
"""

import logging
import math
import time
from typing import Dict, List, Optional, Tuple

from nicegui import ui

from sketchpad.config import SketchpadSettings
from sketchpad.geometry import Ray, Vec3, camera_ray, ground_perpendicular, v_add, v_scale
from sketchpad.interaction.constants import (
    CAMERA_FOV, CAMERA_LOOK_AT, CAMERA_POSITION, CAMERA_UP,
    PREVIEW_PULSE_AMPLITUDE, PREVIEW_PULSE_RATE, SCENE_HEIGHT, SCENE_WIDTH,
)
from sketchpad.session import SceneSnapshot, Sketchpad
from sketchpad.utils import lighten_hex

logger = logging.getLogger(__name__)

# Amount the selected node is lightened, standing in for an emissive glow
SELECTED_NODE_LIGHTEN = 0.35

LABEL_STYLE = 'color: white; font-size: 16px'

REDRAW_EVENTS = (
    'graph_changed', 'layout_changed', 'node_updated', 'arrows_changed',
    'highlights_changed', 'selection_changed', 'preview_changed',
)


class SceneView:
    """Owns every ui.scene object; the core only ever sees element ids."""

    def __init__(self, scene, settings: Optional[SketchpadSettings] = None):
        self.scene = scene
        self.settings = settings or SketchpadSettings()
        self._pad: Optional[Sketchpad] = None
        self._nodes: Dict[int, object] = {}
        self._edges: Dict[int, List[object]] = {}
        self._labels: List[object] = []
        self._preview = None
        self._colors: Dict[Tuple[str, int], str] = {}
        self._highlighted: Dict[Tuple[str, int], bool] = {}

    def bind(self, pad: Sketchpad) -> None:
        """Become the pad's renderer and redraw whenever the graph or selection changes."""
        self._pad = pad
        pad.attach_renderer(self)
        for event in REDRAW_EVENTS:
            pad.events.on(event, lambda _data: self.refresh())
        self.refresh()

    # --- SceneRenderer ---

    def set_color(self, kind: str, element_id: int, color: str) -> None:
        self._colors[(kind, element_id)] = color
        self._apply_material(kind, element_id)

    def set_highlight(self, kind: str, element_id: int, highlighted: bool) -> None:
        self._highlighted[(kind, element_id)] = highlighted
        self._apply_material(kind, element_id)

    # --- Drawing ---

    def refresh(self) -> None:
        if self._pad is not None:
            self.redraw(self._pad.snapshot())

    def redraw(self, snapshot: SceneSnapshot) -> None:
        self._delete_all()
        with self.scene:
            for node in snapshot.nodes:
                self._colors[('node', node.id)] = node.color
                self._highlighted[('node', node.id)] = node.selected
                sphere = self.scene.sphere(self.settings.node_radius).move(*node.position)
                self._nodes[node.id] = sphere
                self._apply_material('node', node.id)
                label_at = v_add(node.position, (0.0, 0.0, self.settings.node_radius + 0.2))
                self._labels.append(self.scene.text(node.label, style=LABEL_STYLE).move(*label_at))

            for edge in snapshot.edges:
                self._colors[('edge', edge.id)] = edge.color
                self._highlighted[('edge', edge.id)] = edge.selected
                lines = [
                    self.scene.line(list(p), list(q))
                    for p, q in zip(edge.points, edge.points[1:])
                ]
                if edge.arrow is not None:
                    lines.extend(self._arrow_lines(edge.arrow.tip, edge.arrow.direction, edge.arrow.size))
                self._edges[edge.id] = lines
                self._apply_material('edge', edge.id)
                self._labels.append(self.scene.text(edge.label, style=LABEL_STYLE).move(*edge.label_position))

            if snapshot.preview_position is not None:
                self._preview = (
                    self.scene.sphere(self.settings.node_radius)
                    .move(*snapshot.preview_position)
                    .material(self.settings.preview_color, opacity=self.settings.preview_opacity)
                )

    def pulse_preview(self) -> None:
        """Breathing scale on the preview node; driven by a ui.timer."""
        if self._preview is None:
            return
        factor = 1 + PREVIEW_PULSE_AMPLITUDE * math.sin(time.time() * PREVIEW_PULSE_RATE)
        self._preview.scale(factor)

    # --- Pointer -> ray ---

    def ray_at(self, offset_x: float, offset_y: float) -> Ray:
        """World-space ray through a pixel of the scene canvas."""
        camera = getattr(self.scene, 'camera', None)
        position, look_at, up = CAMERA_POSITION, CAMERA_LOOK_AT, CAMERA_UP
        if camera is not None:
            position = (camera.x, camera.y, camera.z)
            look_at = (camera.look_at_x, camera.look_at_y, camera.look_at_z)
            up = (camera.up_x, camera.up_y, camera.up_z)
        ndc_x = 2.0 * offset_x / SCENE_WIDTH - 1.0
        ndc_y = 1.0 - 2.0 * offset_y / SCENE_HEIGHT
        return camera_ray(position, look_at, up, CAMERA_FOV, SCENE_WIDTH / SCENE_HEIGHT, ndc_x, ndc_y)

    # --- Internal ---

    def _arrow_lines(self, tip: Vec3, direction: Vec3, size: float) -> List[object]:
        base = v_add(tip, v_scale(direction, -size))
        wing = v_scale(ground_perpendicular(direction), size * 0.5)
        return [
            self.scene.line(list(tip), list(v_add(base, wing))),
            self.scene.line(list(tip), list(v_add(base, v_scale(wing, -1.0)))),
        ]

    def _apply_material(self, kind: str, element_id: int) -> None:
        color = self._colors.get((kind, element_id))
        if color is None:
            return
        highlighted = self._highlighted.get((kind, element_id), False)
        if kind == 'node':
            sphere = self._nodes.get(element_id)
            if sphere is not None:
                sphere.material(lighten_hex(color, SELECTED_NODE_LIGHTEN) if highlighted else color)
        elif kind == 'edge':
            color = self.settings.selected_edge_color if highlighted else color
            for line in self._edges.get(element_id, []):
                line.material(color)

    def _delete_all(self) -> None:
        for obj in self._nodes.values():
            obj.delete()
        for lines in self._edges.values():
            for line in lines:
                line.delete()
        for label in self._labels:
            label.delete()
        if self._preview is not None:
            self._preview.delete()
        self._nodes.clear()
        self._edges.clear()
        self._labels.clear()
        self._colors.clear()
        self._highlighted.clear()
        self._preview = None


def create_scene_view(pad: Sketchpad) -> SceneView:
    """Build the ui.scene element at the current layout slot and bind it to pad."""
    scene = ui.scene(width=SCENE_WIDTH, height=SCENE_HEIGHT, grid=True, background_color='#121212')
    scene.move_camera(*CAMERA_POSITION, *CAMERA_LOOK_AT, *CAMERA_UP, duration=0)
    view = SceneView(scene, pad.settings)
    view.bind(pad)
    ui.timer(0.05, view.pulse_preview)
    return view
