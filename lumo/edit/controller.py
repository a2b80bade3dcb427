"""
Connect Controller - state of the drag-to-connect gesture.

The user presses on a Lume (the source), drags, and releases over another
Lume. While dragging, the controller tracks which node the pointer would
snap onto. On release the connection is handed to the store; if the store
rejects it the line simply snaps back.

Pointer coordinates are canvas coordinates, not pixels.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from lumo.canvas_store import CanvasStore
from lumo.edit.constants import CONNECTION_RADIUS, SNAP_GRID
from lumo.floating_edge import NodeGeometry, node_geometry
from lumo.models import Edge, Node, Point


@dataclass(frozen=True)
class ConnectState:
    """Immutable snapshot of the connect gesture."""
    is_active: bool = False
    source_id: Optional[str] = None
    hover_target_id: Optional[str] = None
    pointer_x: float = 0
    pointer_y: float = 0


def snap_position(position: Point, grid: Tuple[float, float] = SNAP_GRID) -> Point:
    """Round a position to the nearest grid intersection."""
    gx, gy = grid
    x = round(position.x / gx) * gx if gx else position.x
    y = round(position.y / gy) * gy if gy else position.y
    return Point(float(x), float(y))


class ConnectController:
    """Tracks one drag-to-connect gesture at a time."""

    def __init__(self, connection_radius: float = CONNECTION_RADIUS):
        self.connection_radius = connection_radius
        self._state = ConnectState()
        self._geometry: Dict[str, NodeGeometry] = {}
        self._on_state_change: Optional[Callable[[ConnectState], None]] = None

    @property
    def state(self) -> ConnectState:
        return self._state

    def set_on_state_change(self, callback: Callable[[ConnectState], None]):
        self._on_state_change = callback

    def update_graph_data(self, nodes: Iterable[Node]):
        self._geometry = {n.id: node_geometry(n) for n in nodes if n.connectable}

    def start(self, source_id: str) -> ConnectState:
        """Begin a gesture from `source_id`. Ignored for unknown or unconnectable nodes."""
        if source_id not in self._geometry:
            return self._state
        center = self._geometry[source_id].center
        self._set_state(ConnectState(
            is_active=True, source_id=source_id,
            pointer_x=center.x, pointer_y=center.y,
        ))
        return self._state

    def set_pointer(self, x: float, y: float) -> ConnectState:
        if not self._state.is_active:
            return self._state
        nearby = self.find_nearby_node((x, y), exclude=self._state.source_id)
        self._set_state(ConnectState(
            is_active=True, source_id=self._state.source_id,
            hover_target_id=nearby, pointer_x=x, pointer_y=y,
        ))
        return self._state

    def hover(self, target_id: Optional[str]) -> ConnectState:
        """Point directly at a node, e.g. from a click event on it."""
        if not self._state.is_active:
            return self._state
        if target_id not in self._geometry:
            target_id = None
        self._set_state(ConnectState(
            is_active=True, source_id=self._state.source_id,
            hover_target_id=target_id,
            pointer_x=self._state.pointer_x, pointer_y=self._state.pointer_y,
        ))
        return self._state

    def release(self, store: CanvasStore) -> Optional[Edge]:
        """
        Finish the gesture. Returns the created edge, or None when there was
        no target under the pointer or the store rejected the connection.
        """
        state = self._state
        self.cancel()
        if not state.is_active or not state.hover_target_id:
            return None
        return store.connect({'source': state.source_id, 'target': state.hover_target_id})

    def cancel(self) -> ConnectState:
        if self._state != ConnectState():
            self._set_state(ConnectState())
        return self._state

    def _set_state(self, state: ConnectState):
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)

    def find_nearby_node(self, pointer: Tuple[float, float], exclude: Optional[str] = None) -> Optional[str]:
        """
        Closest node whose silhouette is within `connection_radius` of the
        pointer. The silhouette is approximated by the larger half-axis.
        """
        closest = None
        closest_dist = float('inf')

        for node_id, geometry in self._geometry.items():
            if node_id == exclude:
                continue
            c = geometry.center
            dist = math.hypot(pointer[0] - c.x, pointer[1] - c.y)
            reach = max(geometry.half_width, geometry.half_height) + self.connection_radius
            if dist <= reach and dist < closest_dist:
                closest_dist = dist
                closest = node_id
        return closest
