"""
Abstract input events consumed by the InteractionController.

The presentation layer translates raw pointer/keyboard/wheel input into
these; rays are already in world space.
"""

from dataclasses import dataclass
from typing import Optional

from sketchpad.geometry import Ray


@dataclass(frozen=True)
class PointerPick:
    """Primary click."""
    ray: Ray


@dataclass(frozen=True)
class PointerMove:
    ray: Ray


@dataclass(frozen=True)
class SecondaryAction:
    """Right click."""
    ray: Optional[Ray] = None


@dataclass(frozen=True)
class Scroll:
    """Wheel movement; positive delta scrolls down."""
    delta: float


@dataclass(frozen=True)
class KeyDown:
    code: str


@dataclass(frozen=True)
class PointerRelease:
    pass
