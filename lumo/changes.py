"""
Change descriptors and the pure reducers that apply them.

The render layer reports every gesture as a batch of small descriptors
(node moved, node measured, edge removed, ...). The reducers here take the
current collection and a batch and return a new tuple; they never touch
their inputs, so the store can publish the result as one snapshot.

Batch rules:
- descriptors apply strictly in order, later ones win;
- a descriptor naming an unknown id is a no-op;
- once an id is removed in a batch, later descriptors for it (add included)
  are no-ops.

Descriptors may be passed as the dataclasses below or as the dicts the UI
sends, e.g. {"id": "1", "type": "position", "position": {"x": 10, "y": 20}}.
"kind" is accepted in place of "type" and "value" in place of the payload key.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from lumo.models import Dimensions, Edge, Node, Point, RoutingMode, new_id

logger = logging.getLogger(__name__)


# --- Node descriptors ---

@dataclass(frozen=True)
class NodePositionChange:
    id: str
    position: Optional[Point] = None
    dragging: bool = False


@dataclass(frozen=True)
class NodeDimensionsChange:
    id: str
    dimensions: Dimensions


@dataclass(frozen=True)
class NodeRemoveChange:
    id: str


@dataclass(frozen=True)
class NodeSelectionChange:
    id: str
    selected: bool


@dataclass(frozen=True)
class NodeAddChange:
    item: Node

    @property
    def id(self) -> str:
        return self.item.id


@dataclass(frozen=True)
class NodeReplaceChange:
    id: str
    item: Node


# --- Edge descriptors ---

@dataclass(frozen=True)
class EdgeRemoveChange:
    id: str


@dataclass(frozen=True)
class EdgeSelectionChange:
    id: str
    selected: bool


@dataclass(frozen=True)
class EdgeAddChange:
    item: Edge

    @property
    def id(self) -> str:
        return self.item.id


@dataclass(frozen=True)
class EdgeReplaceChange:
    id: str
    item: Edge


@dataclass(frozen=True)
class Connection:
    """A finished drag-to-connect gesture."""
    source: str
    target: str


NodeChange = Union[
    NodePositionChange,
    NodeDimensionsChange,
    NodeRemoveChange,
    NodeSelectionChange,
    NodeAddChange,
    NodeReplaceChange,
]
EdgeChange = Union[EdgeRemoveChange, EdgeSelectionChange, EdgeAddChange, EdgeReplaceChange]

NODE_CHANGE_TYPES = (
    NodePositionChange,
    NodeDimensionsChange,
    NodeRemoveChange,
    NodeSelectionChange,
    NodeAddChange,
    NodeReplaceChange,
)
EDGE_CHANGE_TYPES = (EdgeRemoveChange, EdgeSelectionChange, EdgeAddChange, EdgeReplaceChange)


# --- Parsing UI payloads ---

def _kind_of(raw: Dict[str, Any]) -> str:
    return str(raw.get("type", raw.get("kind", ""))).lower()


def _payload(raw: Dict[str, Any], key: str) -> Any:
    return raw[key] if key in raw else raw.get("value")


def parse_node_change(raw: Any) -> Optional[NodeChange]:
    """
    Turn a UI change payload into a node descriptor.
    Returns None for anything that cannot be read; callers skip those.
    """
    if isinstance(raw, NODE_CHANGE_TYPES):
        return raw
    if not isinstance(raw, dict):
        return None

    kind = _kind_of(raw)
    node_id = raw.get("id")

    try:
        if kind == "add":
            item = _payload(raw, "item")
            node = item if isinstance(item, Node) else Node.from_dict(item or {})
            return NodeAddChange(node)
        if not node_id:
            return None
        node_id = str(node_id)
        if kind == "position":
            position = _payload(raw, "position")
            return NodePositionChange(
                node_id,
                Point.from_value(position) if position is not None else None,
                bool(raw.get("dragging", False)),
            )
        if kind == "dimensions":
            dimensions = Dimensions.from_value(_payload(raw, "dimensions"))
            return NodeDimensionsChange(node_id, dimensions) if dimensions else None
        if kind == "remove":
            return NodeRemoveChange(node_id)
        if kind == "select":
            return NodeSelectionChange(node_id, bool(_payload(raw, "selected")))
        if kind == "replace":
            item = _payload(raw, "item")
            node = item if isinstance(item, Node) else Node.from_dict(item or {})
            return NodeReplaceChange(node_id, node)
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Skipping malformed node change {raw!r}: {e}")
        return None

    logger.debug(f"Skipping unknown node change type {kind!r}")
    return None


def parse_edge_change(raw: Any) -> Optional[EdgeChange]:
    """Turn a UI change payload into an edge descriptor, or None."""
    if isinstance(raw, EDGE_CHANGE_TYPES):
        return raw
    if not isinstance(raw, dict):
        return None

    kind = _kind_of(raw)
    edge_id = raw.get("id")

    try:
        if kind == "add":
            item = _payload(raw, "item")
            edge = item if isinstance(item, Edge) else Edge.from_dict(item or {})
            return EdgeAddChange(edge)
        if not edge_id:
            return None
        edge_id = str(edge_id)
        if kind == "remove":
            return EdgeRemoveChange(edge_id)
        if kind == "select":
            return EdgeSelectionChange(edge_id, bool(_payload(raw, "selected")))
        if kind == "replace":
            item = _payload(raw, "item")
            edge = item if isinstance(item, Edge) else Edge.from_dict(item or {})
            return EdgeReplaceChange(edge_id, edge)
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Skipping malformed edge change {raw!r}: {e}")
        return None

    logger.debug(f"Skipping unknown edge change type {kind!r}")
    return None


# --- Reducers ---

def as_batch(changes: Any) -> List[Any]:
    """Entries of a change batch. Anything that is not a collection of entries is an empty batch."""
    if isinstance(changes, (list, tuple)):
        return list(changes)
    if changes is None or isinstance(changes, (str, bytes, Mapping)):
        return []
    try:
        return list(changes)
    except TypeError:
        logger.debug(f"Ignoring change batch of type {type(changes).__name__}")
        return []


def apply_node_changes(changes: Iterable[Any], nodes: Sequence[Node]) -> Tuple[Node, ...]:
    """
    Apply a batch of node descriptors and return the resulting node tuple.

    Order of surviving nodes is preserved; added nodes go to the end.
    Edges are not touched here, the store cascades removals itself.
    """
    current: Dict[str, Node] = {n.id: n for n in nodes}
    removed = set()

    for raw in as_batch(changes):
        change = parse_node_change(raw)
        if change is None:
            continue
        if change.id in removed:
            continue

        if isinstance(change, NodeAddChange):
            if change.id in current:
                logger.debug(f"Ignoring add for existing node {change.id}")
                continue
            current[change.id] = change.item
            continue

        node = current.get(change.id)
        if node is None:
            continue

        if isinstance(change, NodeRemoveChange):
            del current[change.id]
            removed.add(change.id)
        elif isinstance(change, NodePositionChange):
            if change.position is None:
                current[change.id] = replace(node, dragging=change.dragging)
            else:
                current[change.id] = replace(node, position=change.position, dragging=change.dragging)
        elif isinstance(change, NodeDimensionsChange):
            current[change.id] = replace(node, dimensions=change.dimensions)
        elif isinstance(change, NodeSelectionChange):
            current[change.id] = replace(node, selected=change.selected)
        elif isinstance(change, NodeReplaceChange):
            current[change.id] = replace(change.item, id=change.id)

    return tuple(current.values())


def apply_edge_changes(changes: Iterable[Any], edges: Sequence[Edge]) -> Tuple[Edge, ...]:
    """
    Apply a batch of edge descriptors and return the resulting edge tuple.
    Endpoint checks for added edges belong to the caller, which knows the nodes.
    """
    current: Dict[str, Edge] = {e.id: e for e in edges}
    removed = set()

    for raw in as_batch(changes):
        change = parse_edge_change(raw)
        if change is None or change.id in removed:
            continue

        if isinstance(change, EdgeAddChange):
            if change.id not in current:
                current[change.id] = change.item
            continue

        edge = current.get(change.id)
        if edge is None:
            continue

        if isinstance(change, EdgeRemoveChange):
            del current[change.id]
            removed.add(change.id)
        elif isinstance(change, EdgeSelectionChange):
            current[change.id] = replace(edge, selected=change.selected)
        elif isinstance(change, EdgeReplaceChange):
            current[change.id] = replace(change.item, id=change.id)

    return tuple(current.values())


def is_valid_connection(source: Any, target: Any, node_ids: Iterable[str]) -> bool:
    """Both endpoints are string ids of present nodes, and they differ."""
    if not isinstance(source, str) or not isinstance(target, str):
        return False
    if not source or not target or source == target:
        return False
    ids = node_ids if isinstance(node_ids, (set, frozenset, dict)) else set(node_ids)
    return source in ids and target in ids


def add_edge(
    connection: Any,
    edges: Sequence[Edge],
    node_ids: Iterable[str],
    data: Optional[Dict[str, Any]] = None,
) -> Tuple[Tuple[Edge, ...], Optional[Edge]]:
    """
    Append a floating edge for a connection gesture.

    Returns (new_edges, created_edge). When the connection is rejected the
    input edges come back unchanged with None.
    """
    if isinstance(connection, dict):
        source, target = connection.get("source"), connection.get("target")
    else:
        source = getattr(connection, "source", None)
        target = getattr(connection, "target", None)

    if not is_valid_connection(source, target, node_ids):
        return tuple(edges), None
    if data is not None and not isinstance(data, Mapping):
        logger.debug(f"Connection payload is not a mapping: {data!r}")
        return tuple(edges), None

    taken = {e.id for e in edges}
    edge_id = new_id()
    while edge_id in taken:
        edge_id = new_id()

    edge = Edge(
        id=edge_id,
        source=str(source),
        target=str(target),
        routing_mode=RoutingMode.FLOATING,
        data=data,
    )
    return tuple(edges) + (edge,), edge


def parse_changes(raw_changes: Any, parser) -> List[Any]:
    """Parse a list of UI payloads with `parser`, dropping unreadable ones."""
    parsed = []
    for raw in as_batch(raw_changes):
        change = parser(raw)
        if change is not None:
            parsed.append(change)
    return parsed
