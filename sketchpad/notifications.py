"""
Observer bus between the graph core and the presentation layer.

The store, the layout and the interaction controller publish here; the
scene view and the status panel subscribe. Nothing in the core holds a
reference to a concrete UI object.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EVENT_NAMES = (
    'graph_changed',       # GraphChange: structural add/remove/clear
    'node_moved',          # node id
    'node_updated',        # node id (color or label edit)
    'layout_changed',      # tuple of edge ids whose paths were recomputed
    'arrows_changed',      # None
    'selection_changed',   # SelectionChange
    'preview_changed',     # preview position or None
    'highlights_changed',  # None
    'analysis_completed',  # analysis result object
)


@dataclass(frozen=True)
class SelectionChange:
    """What is selected now; kind is None after a deselection."""
    kind: Optional[str] = None
    element_id: Optional[int] = None
    degree: Optional[int] = None

    @property
    def cleared(self) -> bool:
        return self.kind is None


class GraphEvents:
    """
    Named-event registry.

    Callbacks run synchronously in registration order. A failing callback is
    logged and does not stop the others.
    """

    def __init__(self):
        self._callbacks: Dict[str, List[Callable]] = {name: [] for name in EVENT_NAMES}

    def on(self, event: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event not in self._callbacks:
            logger.warning(f"Ignoring subscription to unknown event '{event}'")
            return
        self._callbacks[event].append(callback)

    def off(self, event: str, callback: Callable) -> None:
        """Remove a callback for an event type."""
        if event in self._callbacks and callback in self._callbacks[event]:
            self._callbacks[event].remove(callback)

    def emit(self, event: str, data: Any = None) -> None:
        """Emit an event to all registered callbacks."""
        if event not in self._callbacks:
            logger.warning(f"Ignoring emit of unknown event '{event}'")
            return
        for callback in list(self._callbacks[event]):
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in callback for {event}: {e}")
