"""
SceneRenderer Protocol Definition.

The narrow interface the core uses to mark elements in whatever draws the
scene. The core never inspects rendering objects; it only names an element
by kind ('node' or 'edge') and stable id.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SceneRenderer(Protocol):
    """
    Abstract protocol for scene renderers.

    The NiceGUI SceneView and the test doubles conform to this protocol.
    """

    def set_color(self, kind: str, element_id: int, color: str) -> None:
        """
        Paint an element.

        Args:
            kind: 'node' or 'edge'
            element_id: Stable node or edge id
            color: Hex color string
        """
        ...

    def set_highlight(self, kind: str, element_id: int, highlighted: bool) -> None:
        """
        Mark or unmark an element as selected.

        Args:
            kind: 'node' or 'edge'
            element_id: Stable node or edge id
            highlighted: True to mark, False to restore
        """
        ...


class NullRenderer:
    """Renderer that draws nothing; used when the core runs headless."""

    def set_color(self, kind: str, element_id: int, color: str) -> None:
        pass

    def set_highlight(self, kind: str, element_id: int, highlighted: bool) -> None:
        pass
