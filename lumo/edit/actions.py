"""
Canvas Actions

Translates committed UI actions into CanvasStore operations. Everything the
toolbar, dialogs and keyboard shortcuts do to the board goes through here,
expressed as the same change batches the canvas widget would emit.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from lumo.canvas_store import CanvasStore
from lumo.changes import (
    EdgeRemoveChange,
    EdgeSelectionChange,
    NodeAddChange,
    NodeDimensionsChange,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectionChange,
)
from lumo.edit.constants import DEFAULT_NODE_SIZE, NEW_NODE_OFFSET, SNAP_GRID
from lumo.edit.controller import snap_position
from lumo.models import Dimensions, Edge, LinkType, LumeType, Point, make_lume_node

logger = logging.getLogger(__name__)


class CanvasActions:
    """Executes editing actions against one store."""

    def __init__(self, store: CanvasStore, snap_to_grid: bool = True, snap_grid=SNAP_GRID,
                 node_size: float = DEFAULT_NODE_SIZE):
        self.store = store
        self.snap_to_grid = snap_to_grid
        self.snap_grid = snap_grid
        self.node_size = node_size

    def _place(self, position: Point) -> Point:
        return snap_position(position, self.snap_grid) if self.snap_to_grid else position

    def next_free_position(self) -> Point:
        """Just below-right of the last Lume, or the origin offset on an empty board."""
        if not self.store.nodes:
            return Point(*NEW_NODE_OFFSET)
        last = self.store.nodes[-1].position
        return Point(last.x + NEW_NODE_OFFSET[0], last.y + NEW_NODE_OFFSET[1])

    def create_lume(self, name: str, lume_type: LumeType = LumeType.UNSPECIFIED,
                    description: str = "", position: Optional[Point] = None) -> str:
        """
        Create a new Lume.

        Args:
            name: Display name
            lume_type: Place category
            description: Free-text notes
            position: Top-left corner; defaults to the next free spot

        Returns:
            Created node ID
        """
        node = make_lume_node(name, lume_type, self._place(position or self.next_free_position()), description)
        # Lumes render at a fixed size, so the new one arrives already measured
        self.store.apply_node_changes([
            NodeAddChange(node),
            NodeDimensionsChange(node.id, Dimensions(self.node_size, self.node_size)),
        ])
        logger.info(f"Created Lume {node.id} ({name})")
        return node.id

    def rename_lume(self, node_id: str, name: str, description: Optional[str] = None) -> None:
        patch: Dict[str, Any] = {'name': name}
        if description is not None:
            patch['description'] = description
        self.store.update_node(node_id, patch)

    def move_lume(self, node_id: str, position: Point) -> None:
        """Drop a Lume at `position`, snapped to the grid when enabled."""
        self.store.apply_node_changes([NodePositionChange(node_id, self._place(position), dragging=False)])

    def connect(self, source_id: str, target_id: str, link_type: LinkType = LinkType.TRAVEL) -> Optional[Edge]:
        return self.store.connect({'source': source_id, 'target': target_id}, data={'type': LinkType(link_type).value})

    def select_only(self, node_ids: Iterable[str] = (), edge_ids: Iterable[str] = ()) -> None:
        """Make exactly the given nodes and edges selected."""
        node_ids, edge_ids = set(node_ids), set(edge_ids)
        self.store.apply_node_changes([
            NodeSelectionChange(n.id, n.id in node_ids)
            for n in self.store.nodes if n.selected != (n.id in node_ids)
        ])
        self.store.apply_edge_changes([
            EdgeSelectionChange(e.id, e.id in edge_ids)
            for e in self.store.edges if e.selected != (e.id in edge_ids)
        ])

    def delete_selected(self) -> List[str]:
        """Remove every selected node and edge. Returns the removed node ids."""
        node_ids = [n.id for n in self.store.nodes if n.selected]
        edge_ids = [e.id for e in self.store.edges if e.selected]
        if edge_ids:
            self.store.apply_edge_changes([EdgeRemoveChange(eid) for eid in edge_ids])
        if node_ids:
            self.store.apply_node_changes([NodeRemoveChange(nid) for nid in node_ids])
        return node_ids

    def commit_action(self, action: Dict[str, Any]) -> Optional[str]:
        """
        Execute an action dict coming from the UI.

        Supported actions: create_lume, rename_lume, move_lume, connect,
        delete_node, delete_edge, delete_selected. Returns the id of the
        created or affected entity, or None.
        """
        kind = action.get('action')

        if kind == 'create_lume':
            position = Point.from_value(action.get('position'))
            try:
                lume_type = LumeType(action.get('lume_type', LumeType.UNSPECIFIED))
            except ValueError:
                lume_type = LumeType.UNSPECIFIED
            return self.create_lume(action.get('name') or 'New Lume', lume_type,
                                    action.get('description', ''), position)

        elif kind == 'rename_lume':
            self.rename_lume(action['node_id'], action.get('name', ''), action.get('description'))
            return action['node_id']

        elif kind == 'move_lume':
            position = Point.from_value(action.get('position'))
            if position is None:
                return None
            self.move_lume(action['node_id'], position)
            return action['node_id']

        elif kind == 'connect':
            try:
                link_type = LinkType(action.get('link_type', LinkType.TRAVEL))
            except ValueError:
                link_type = LinkType.UNSPECIFIED
            edge = self.connect(action.get('source_id'), action.get('target_id'), link_type)
            return edge.id if edge else None

        elif kind == 'delete_node':
            node_id = action.get('node_id')
            if node_id:
                self.store.delete_node(node_id)
            return None

        elif kind == 'delete_edge':
            edge_id = action.get('edge_id')
            if edge_id:
                self.store.apply_edge_changes([EdgeRemoveChange(edge_id)])
            return None

        elif kind == 'delete_selected':
            self.delete_selected()
            return None

        logger.debug(f"Unknown canvas action {kind!r}")
        return None
