"""
Interaction Handlers - NiceGUI event handlers for the sketchpad scene.

Translates raw browser events (clicks, context menu, pointer moves, wheel,
key presses) into the abstract input events the InteractionController
consumes. Everything here is thin: no graph rules live in this module.
"""

import logging
from typing import Any, Callable, Dict

from nicegui import ui

from sketchpad.interaction.constants import POINTER_MOVE_THROTTLE
from sketchpad.interaction.inputs import (
    KeyDown, PointerMove, PointerPick, PointerRelease, Scroll, SecondaryAction,
)

logger = logging.getLogger(__name__)

POINTER_ARGS = ['offsetX', 'offsetY']


def _offsets(event) -> tuple:
    raw = event.args if hasattr(event, 'args') else event
    if isinstance(raw, dict):
        return raw.get('offsetX', 0), raw.get('offsetY', 0)
    if isinstance(raw, (list, tuple)) and len(raw) >= 2:
        return raw[0], raw[1]
    return 0, 0


def setup_scene_handlers(pad, view) -> Dict[str, Callable[[Any], None]]:
    """
    Set up all sketchpad event handlers and bind them to the view's scene.

    Args:
        pad: Sketchpad instance receiving the input events
        view: SceneView providing the scene element and pixel -> ray conversion

    Returns:
        Dict with handler functions, keyed by name
    """

    def handle_keyboard(e):
        """Forward fresh key presses; repeats and releases are dropped."""
        if not e.action.keydown or e.action.repeat:
            return
        pad.handle(KeyDown(str(e.key.name)))

    def handle_click(event):
        x, y = _offsets(event)
        pad.handle(PointerPick(view.ray_at(x, y)))

    def handle_context_menu(event):
        x, y = _offsets(event)
        pad.handle(SecondaryAction(view.ray_at(x, y)))

    def handle_mouse_move(event):
        x, y = _offsets(event)
        pad.handle(PointerMove(view.ray_at(x, y)))

    def handle_wheel(event):
        raw = event.args if hasattr(event, 'args') else event
        delta = raw.get('deltaY', 0) if isinstance(raw, dict) else 0
        pad.handle(Scroll(float(delta)))

    def handle_mouse_up(_event):
        pad.handle(PointerRelease())

    scene = view.scene
    scene.on('click', handle_click, POINTER_ARGS)
    scene.on('contextmenu.prevent', handle_context_menu, POINTER_ARGS)
    scene.on('mousemove', handle_mouse_move, POINTER_ARGS, throttle=POINTER_MOVE_THROTTLE)
    scene.on('wheel', handle_wheel, ['deltaY'])
    scene.on('mouseup', handle_mouse_up, [])
    ui.keyboard(on_key=handle_keyboard)

    return {
        'handle_keyboard': handle_keyboard,
        'handle_click': handle_click,
        'handle_context_menu': handle_context_menu,
        'handle_mouse_move': handle_mouse_move,
        'handle_wheel': handle_wheel,
        'handle_mouse_up': handle_mouse_up,
    }
