"""
Canvas records for Lumo.

Nodes are Lumes (place markers) and edges are links between them. Both are
frozen dataclasses: the store never edits a record in place, it swaps in a
new one, so any tuple of records handed out earlier stays valid. The `data`
payloads are read-only copies, nested lists included (stored as tuples).

JSON shape used by the render layer and by storage (camelCase like the
canvas widget):
  node: {"id", "type", "position": {"x", "y"}, "dimensions": {"width", "height"} | null,
         "data": {...}, "connectable", "selected", "dragging"}
  edge: {"id", "source", "target", "routingMode", "data": {...},
         "selected", "markerEnd"}
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Optional


class RoutingMode(str, Enum):
    """How an edge's end points are placed on its nodes."""
    FIXED_SIDE = "fixed_side"
    FLOATING = "floating"


class LumeType(str, Enum):
    UNSPECIFIED = "LUME_TYPE_UNSPECIFIED"
    CITY = "LUME_TYPE_CITY"
    ATTRACTION = "LUME_TYPE_ATTRACTION"
    ACCOMMODATION = "LUME_TYPE_ACCOMMODATION"
    RESTAURANT = "LUME_TYPE_RESTAURANT"
    TRANSPORT_HUB = "LUME_TYPE_TRANSPORT_HUB"
    ACTIVITY = "LUME_TYPE_ACTIVITY"
    SHOPPING = "LUME_TYPE_SHOPPING"
    ENTERTAINMENT = "LUME_TYPE_ENTERTAINMENT"
    CUSTOM = "LUME_TYPE_CUSTOM"


class LinkType(str, Enum):
    UNSPECIFIED = "LINK_TYPE_UNSPECIFIED"
    TRAVEL = "TRAVEL"
    RECOMMENDED = "RECOMMENDED"
    CUSTOM = "CUSTOM"


def _freeze(value: Any) -> Any:
    """Read-only copy of a JSON-like payload: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen payload, safe to hand to json or to edit."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _frozen_payload(data: Any) -> Mapping:
    if data is None:
        return MappingProxyType({})
    if not isinstance(data, Mapping):
        raise TypeError(f"data must be a mapping, got {type(data).__name__}")
    return _freeze(data)


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_value(cls, value: Any) -> Optional["Point"]:
        """
        Coerce a Point, an {"x", "y"} dict or an (x, y) pair.
        Returns None when the value cannot be read as a point.
        """
        if isinstance(value, Point):
            return value
        try:
            if isinstance(value, dict):
                return cls(float(value["x"]), float(value["y"]))
            if isinstance(value, (list, tuple)) and len(value) == 2:
                return cls(float(value[0]), float(value[1]))
        except (KeyError, TypeError, ValueError):
            return None
        return None


@dataclass(frozen=True)
class Dimensions:
    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_value(cls, value: Any) -> Optional["Dimensions"]:
        """Coerce Dimensions, a {"width", "height"} dict or a (width, height) pair."""
        if isinstance(value, Dimensions):
            return value
        try:
            if isinstance(value, dict):
                return cls(float(value["width"]), float(value["height"]))
            if isinstance(value, (list, tuple)) and len(value) == 2:
                return cls(float(value[0]), float(value[1]))
        except (KeyError, TypeError, ValueError):
            return None
        return None


@dataclass(frozen=True)
class Node:
    """
    One placed marker on the canvas.

    `position` is the top-left corner of the rendered body. `dimensions` is
    None until the render layer reports a measured size.
    """
    id: str
    position: Point = field(default_factory=Point)
    data: Mapping[str, Any] = field(default_factory=dict)
    dimensions: Optional[Dimensions] = None
    type: str = "lume"
    connectable: bool = True
    selected: bool = False
    dragging: bool = False

    def __post_init__(self):
        # Own a read-only copy so neither the caller nor readers can edit it
        object.__setattr__(self, "data", _frozen_payload(self.data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position.to_dict(),
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
            "data": _thaw(self.data),
            "connectable": self.connectable,
            "selected": self.selected,
            "dragging": self.dragging,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Node":
        node_id = raw.get("id")
        if not node_id:
            raise ValueError("Node record missing id")
        return cls(
            id=str(node_id),
            position=Point.from_value(raw.get("position")) or Point(),
            data=dict(raw.get("data") or {}),
            dimensions=Dimensions.from_value(raw.get("dimensions") or raw.get("measured")),
            type=raw.get("type", "lume"),
            connectable=bool(raw.get("connectable", True)),
            selected=bool(raw.get("selected", False)),
            dragging=bool(raw.get("dragging", False)),
        )


@dataclass(frozen=True)
class Edge:
    """A directed connection from `source` to `target`."""
    id: str
    source: str
    target: str
    routing_mode: RoutingMode = RoutingMode.FLOATING
    data: Mapping[str, Any] = field(default_factory=dict)
    selected: bool = False
    marker_end: str = "arrowclosed"

    def __post_init__(self):
        object.__setattr__(self, "data", _frozen_payload(self.data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "routingMode": self.routing_mode.value,
            "data": _thaw(self.data),
            "selected": self.selected,
            "markerEnd": self.marker_end,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Edge":
        edge_id = raw.get("id")
        if not edge_id:
            raise ValueError("Edge record missing id")
        source, target = raw.get("source"), raw.get("target")
        if not source or not target:
            raise ValueError(f"Edge {edge_id} missing source or target")
        mode = raw.get("routingMode", raw.get("routing_mode", RoutingMode.FLOATING.value))
        try:
            routing_mode = RoutingMode(mode)
        except ValueError:
            routing_mode = RoutingMode.FLOATING
        return cls(
            id=str(edge_id),
            source=str(source),
            target=str(target),
            routing_mode=routing_mode,
            data=dict(raw.get("data") or {}),
            selected=bool(raw.get("selected", False)),
            marker_end=raw.get("markerEnd", "arrowclosed"),
        )


def new_id() -> str:
    return str(uuid.uuid4())


def make_lume_node(
    name: str,
    lume_type: LumeType = LumeType.UNSPECIFIED,
    position: Optional[Point] = None,
    description: str = "",
    node_id: Optional[str] = None,
) -> Node:
    """
    Create a Lume node. The payload mirrors the id so the marker card can
    show it without a lookup back into the store.
    """
    node_id = node_id or new_id()
    return Node(
        id=node_id,
        position=position or Point(),
        data={
            "id": node_id,
            "type": LumeType(lume_type).value,
            "name": name,
            "description": description,
        },
    )


def demo_lumes() -> List[Node]:
    """Starter board shown when a canvas has nothing saved yet."""
    return [
        make_lume_node("Paris", LumeType.CITY, Point(100, 100), "The City of Light", "1"),
        make_lume_node("Eiffel Tower", LumeType.ATTRACTION, Point(350, 150), "Iconic iron lattice tower", "2"),
        make_lume_node("Le Comptoir", LumeType.RESTAURANT, Point(200, 250), "Traditional French bistro", "3"),
        make_lume_node("Hotel Plaza", LumeType.ACCOMMODATION, Point(450, 100), "Luxury hotel in city center", "4"),
        make_lume_node("Metro Station", LumeType.TRANSPORT_HUB, Point(150, 350), "Central metro hub", "5"),
        make_lume_node("Seine Cruise", LumeType.ACTIVITY, Point(400, 300), "Scenic river tour", "6"),
    ]
