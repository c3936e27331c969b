"""
Interaction system for the sketchpad scene.

This package turns pointer, wheel and keyboard input into graph edits:
- InteractionController: selection/creation/drag state machine and ray picking
- inputs: abstract input events (PointerPick, KeyDown, ...)
- handlers: NiceGUI event wiring (imported separately; needs a running UI)

Usage:
    from sketchpad.interaction import InteractionController, KeyDown
    from sketchpad.interaction.handlers import setup_scene_handlers
"""

from sketchpad.interaction.controller import InteractionController, InteractionState
from sketchpad.interaction.inputs import (
    KeyDown,
    PointerMove,
    PointerPick,
    PointerRelease,
    Scroll,
    SecondaryAction,
)

__all__ = [
    'InteractionController',
    'InteractionState',
    'KeyDown',
    'PointerMove',
    'PointerPick',
    'PointerRelease',
    'Scroll',
    'SecondaryAction',
]
