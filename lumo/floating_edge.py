"""
Floating edge geometry.

A floating edge is drawn between the silhouettes of its two nodes instead of
fixed handles. Each node body is treated as the ellipse inscribed in its
bounding box; the edge starts where the line between the two centers leaves
the source ellipse and ends where it enters the target ellipse.

Everything here is a pure function of its inputs. The renderer calls it on
every frame where an endpoint moved or was re-measured.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from lumo.models import Edge, Node, Point, RoutingMode


@dataclass(frozen=True)
class NodeGeometry:
    center: Point
    half_width: float
    half_height: float


@dataclass(frozen=True)
class EdgeAnchors:
    source_point: Point
    target_point: Point

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.source_point.x, self.source_point.y, self.target_point.x, self.target_point.y)


def node_geometry(node: Node) -> NodeGeometry:
    """
    Center and half-axes of a node's body. `position` is the top-left corner.
    A node that has not been measured yet is a point at its position.
    """
    if node.dimensions is None:
        return NodeGeometry(node.position, 0.0, 0.0)
    half_width = max(node.dimensions.width, 0.0) / 2
    half_height = max(node.dimensions.height, 0.0) / 2
    center = Point(node.position.x + half_width, node.position.y + half_height)
    return NodeGeometry(center, half_width, half_height)


def ellipse_radius(theta: float, half_width: float, half_height: float) -> float:
    """Distance from an ellipse's center to its boundary along angle `theta`."""
    if half_width <= 0 or half_height <= 0:
        return 0.0
    return 1.0 / math.sqrt((math.cos(theta) / half_width) ** 2 + (math.sin(theta) / half_height) ** 2)


def boundary_point(geometry: NodeGeometry, theta: float) -> Point:
    r = ellipse_radius(theta, geometry.half_width, geometry.half_height)
    return Point(
        geometry.center.x + r * math.cos(theta),
        geometry.center.y + r * math.sin(theta),
    )


def resolve_anchors(source: NodeGeometry, target: NodeGeometry) -> EdgeAnchors:
    """
    Where a floating edge from `source` to `target` should start and end.

    If the centers coincide there is no direction to follow, so both anchors
    are that shared center.
    """
    dx = target.center.x - source.center.x
    dy = target.center.y - source.center.y
    if dx == 0 and dy == 0:
        return EdgeAnchors(source.center, target.center)

    angle = math.atan2(dy, dx)
    return EdgeAnchors(
        boundary_point(source, angle),
        boundary_point(target, angle + math.pi),
    )


def get_edge_params(source_node: Node, target_node: Node) -> Tuple[float, float, float, float]:
    """(sx, sy, tx, ty) for a floating edge between two nodes."""
    return resolve_anchors(node_geometry(source_node), node_geometry(target_node)).as_tuple()


def resolve_floating_edges(
    nodes: Iterable[Node], edges: Iterable[Edge]
) -> List[Tuple[Edge, EdgeAnchors]]:
    """
    Anchors for every floating edge whose endpoints are both on the canvas.
    Edges with a missing endpoint are skipped for this frame.
    """
    by_id = {n.id: n for n in nodes}
    resolved = []
    for edge in edges:
        if edge.routing_mode != RoutingMode.FLOATING:
            continue
        source = by_id.get(edge.source)
        target = by_id.get(edge.target)
        if source is None or target is None:
            continue
        resolved.append((edge, resolve_anchors(node_geometry(source), node_geometry(target))))
    return resolved


def straight_path(sx: float, sy: float, tx: float, ty: float) -> Tuple[str, float, float]:
    """SVG path for a straight edge plus the midpoint where a label would sit."""
    return f"M {sx},{sy}L {tx},{ty}", (sx + tx) / 2, (sy + ty) / 2


def fixed_side_anchor(node: Node, side: str = "bottom") -> Optional[Point]:
    """
    Handle position for FIXED_SIDE edges: the middle of the named side of
    the bounding box ("top", "bottom", "left" or "right").
    """
    geometry = node_geometry(node)
    c, hw, hh = geometry.center, geometry.half_width, geometry.half_height
    offsets = {
        "top": (0.0, -hh),
        "bottom": (0.0, hh),
        "left": (-hw, 0.0),
        "right": (hw, 0.0),
    }
    offset = offsets.get(side)
    if offset is None:
        return None
    return Point(c.x + offset[0], c.y + offset[1])


def edge_segments(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[Tuple[Edge, Point, Point]]:
    """
    Start and end point of every drawable edge. Floating edges use the
    ellipse anchors; fixed-side edges leave the source's bottom handle and
    enter the target's top handle.
    """
    by_id = {n.id: n for n in nodes}
    floating = {edge.id: anchors for edge, anchors in resolve_floating_edges(nodes, edges)}
    segments = []
    for edge in edges:
        if edge.id in floating:
            anchors = floating[edge.id]
            segments.append((edge, anchors.source_point, anchors.target_point))
            continue
        source = by_id.get(edge.source)
        target = by_id.get(edge.target)
        if source is None or target is None or edge.routing_mode == RoutingMode.FLOATING:
            continue
        segments.append((edge, fixed_side_anchor(source, "bottom"), fixed_side_anchor(target, "top")))
    return segments
