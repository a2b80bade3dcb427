"""
CanvasStore - single source of truth for the canvas graph.

One store is created per canvas page and handed to whatever renders it.
All mutation goes through the methods below; readers get tuple snapshots of
frozen records, so holding on to `store.nodes` while the store changes is
safe. Each call publishes at most one new snapshot and notifies subscribers
once, so a change batch is never observed half-applied.

Stale ids (a node removed a frame ago, a double-clicked delete) are ignored
rather than raised: the UI emits those routinely. `connect` is the only
operation that reports rejection, by returning None.
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from lumo.changes import (
    Connection,
    EdgeAddChange,
    EdgeReplaceChange,
    add_edge,
    apply_edge_changes,
    apply_node_changes,
    is_valid_connection,
    parse_changes,
    parse_edge_change,
)
from lumo.models import Edge, Node

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[Node, ...], Tuple[Edge, ...]], None]


def _coerce_node(value: Union[Node, Dict[str, Any]]) -> Optional[Node]:
    """Node for a record or its dict, or None when the value is unreadable."""
    if isinstance(value, Node):
        return value
    try:
        return Node.from_dict(value)
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Unreadable node record {value!r}: {e}")
        return None


def _coerce_edge(value: Union[Edge, Dict[str, Any]]) -> Optional[Edge]:
    if isinstance(value, Edge):
        return value
    try:
        return Edge.from_dict(value)
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Unreadable edge record {value!r}: {e}")
        return None


class CanvasStore:
    """
    Owns the node and edge collections of one canvas.

    Nodes and edges may be passed as records or as their JSON dicts.
    """

    def __init__(self, nodes: Optional[Iterable[Any]] = None, edges: Optional[Iterable[Any]] = None):
        self._nodes: Tuple[Node, ...] = ()
        self._edges: Tuple[Edge, ...] = ()
        self._listeners: List[Listener] = []
        self._version = 0
        if nodes:
            self.set_nodes(nodes)
        if edges:
            self.set_edges(edges)

    # --- Snapshots ---

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_ids(self) -> set:
        return {n.id for n in self._nodes}

    def edges_for_node(self, node_id: str) -> Tuple[Edge, ...]:
        """Edges that name `node_id` as source or target."""
        return tuple(e for e in self._edges if e.source == node_id or e.target == node_id)

    # --- Subscription ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register `listener(nodes, edges)`, called after every published
        snapshot. Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, nodes: Tuple[Node, ...], edges: Tuple[Edge, ...]) -> bool:
        """Swap in new snapshots if anything changed. Returns True when published."""
        if nodes == self._nodes and edges == self._edges:
            return False
        if nodes != self._nodes:
            self._nodes = nodes
        if edges != self._edges:
            self._edges = edges
        self._version += 1

        for listener in list(self._listeners):
            try:
                listener(self._nodes, self._edges)
            except Exception as e:
                logger.error(f"Error in canvas listener {listener!r}: {e}")
        return True

    # --- Change batches ---

    def apply_node_changes(self, changes: Iterable[Any]) -> None:
        """
        Apply a batch of node descriptors from the render layer.
        Removing a node also removes every edge that names it.
        """
        nodes = apply_node_changes(changes, self._nodes)
        removed = self.node_ids() - {n.id for n in nodes}

        edges = self._edges
        if removed:
            edges = tuple(e for e in edges if e.source not in removed and e.target not in removed)
            logger.debug(f"Removed nodes {sorted(removed)} and {len(self._edges) - len(edges)} edges")

        self._publish(nodes, edges)

    def apply_edge_changes(self, changes: Iterable[Any]) -> None:
        """Apply a batch of edge descriptors. Added edges must reference live nodes."""
        node_ids = self.node_ids()
        accepted = []
        for change in parse_changes(changes, parse_edge_change):
            if isinstance(change, (EdgeAddChange, EdgeReplaceChange)):
                item = change.item
                if not is_valid_connection(item.source, item.target, node_ids):
                    logger.debug(f"Rejected edge {item.id}: {item.source} -> {item.target}")
                    continue
            accepted.append(change)

        self._publish(self._nodes, apply_edge_changes(accepted, self._edges))

    # --- Connections ---

    def connect(
        self,
        connection: Any,
        target: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Edge]:
        """
        Create a floating edge for a drag-to-connect gesture.

        Accepts a Connection, a {"source", "target"} dict, or
        `connect(source_id, target_id)`. Returns the new edge, or None when
        either end is missing or both ends are the same node.
        """
        if target is not None:
            connection = Connection(str(connection), str(target))

        edges, edge = add_edge(connection, self._edges, self.node_ids(), data=data)
        if edge is None:
            logger.debug(f"Connection rejected: {connection!r}")
            return None

        self._publish(self._nodes, edges)
        logger.info(f"Connected {edge.source} -> {edge.target} as {edge.id}")
        return edge

    # --- Direct node operations ---

    def add_node(self, node: Union[Node, Dict[str, Any]]) -> None:
        """Append a node. Ignored when its id is already on the canvas."""
        node = _coerce_node(node)
        if node is None:
            return
        if self.get_node(node.id) is not None:
            logger.debug(f"Node {node.id} already exists, add ignored")
            return
        self._publish(self._nodes + (node,), self._edges)

    def update_node(self, node_id: str, data: Dict[str, Any]) -> None:
        """Merge `data` into the node's payload. Position and size are left alone."""
        if not isinstance(data, Mapping):
            logger.debug(f"Ignoring non-mapping update for node {node_id}: {data!r}")
            return
        nodes = tuple(
            replace(n, data={**n.data, **data}) if n.id == node_id else n
            for n in self._nodes
        )
        self._publish(nodes, self._edges)

    def delete_node(self, node_id: str) -> None:
        """Remove a node and every edge that names it."""
        nodes = tuple(n for n in self._nodes if n.id != node_id)
        edges = tuple(e for e in self._edges if e.source != node_id and e.target != node_id)
        self._publish(nodes, edges)

    def set_nodes(self, nodes: Iterable[Any]) -> None:
        """
        Replace every node, e.g. on initial load. Duplicate ids keep their
        first occurrence; edges left without an endpoint are dropped.
        """
        unique: Dict[str, Node] = {}
        unreadable = 0
        for value in nodes:
            node = _coerce_node(value)
            if node is None:
                unreadable += 1
                continue
            if node.id in unique:
                logger.warning(f"Duplicate node id {node.id} in set_nodes, keeping the first")
                continue
            unique[node.id] = node

        if unreadable:
            logger.warning(f"set_nodes dropped {unreadable} unreadable node records")
        edges =tuple(e for e in self._edges if e.source in unique and e.target in unique)
        if len(edges) != len(self._edges):
            logger.info(f"Dropped {len(self._edges) - len(edges)} edges left dangling by set_nodes")
        self._publish(tuple(unique.values()), edges)

    def set_edges(self, edges: Iterable[Any]) -> None:
        """Replace every edge, keeping only legal ones with unique ids."""
        node_ids = self.node_ids()
        kept: Dict[str, Edge] = {}
        dropped = 0
        for value in edges:
            edge = _coerce_edge(value)
            if edge is None or edge.id in kept or not is_valid_connection(edge.source, edge.target, node_ids):
                dropped += 1
                continue
            kept[edge.id] = edge

        if dropped:
            logger.warning(f"set_edges dropped {dropped} invalid or duplicate edges")
        self._publish(self._nodes, tuple(kept.values()))

    # --- Serialization for the persistence collaborator ---

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "edges": [e.to_dict() for e in self._edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanvasStore":
        return cls(nodes=data.get("nodes") or [], edges=data.get("edges") or [])
