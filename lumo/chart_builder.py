"""
ECharts options builder for the Lumo canvas.

Converts store snapshots into an ECharts option dict for ui.echart:
- Lumes are a scatter series on hidden value axes (canvas coordinates, y down)
- Links are a `lines` series whose end points come from the floating edge
  anchors, so arrows stop at each marker's rim instead of its center
"""

from typing import Any, Dict, List, Optional, Sequence

from lumo.changes import NodeDimensionsChange
from lumo.config import CanvasSettings
from lumo.floating_edge import edge_segments, node_geometry
from lumo.models import Dimensions, Edge, Node

# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'name', 'seriesType', 'value']

NODE_SERIES_ID = 'lumes'
EDGE_SERIES_ID = 'links'

SELECTED_BORDER = '#3b82f6'
IDLE_BORDER = '#d1d5db'

# Blank space kept around the outermost Lumes
VIEW_PADDING = 120


def measure_changes(nodes: Sequence[Node], settings: Optional[CanvasSettings] = None) -> List[NodeDimensionsChange]:
    """
    Dimension reports for Lumes that have not been measured yet. Every Lume
    renders as a fixed-size circle, so its measured size is the marker size.
    """
    size = (settings or CanvasSettings()).node_size
    return [
        NodeDimensionsChange(n.id, Dimensions(size, size))
        for n in nodes if n.dimensions is None
    ]


def _view_bounds(nodes: Sequence[Node]) -> Dict[str, float]:
    if not nodes:
        return {'x_min': 0, 'x_max': 800, 'y_min': 0, 'y_max': 600}
    xs, ys = [], []
    for n in nodes:
        dims = n.dimensions or Dimensions()
        xs.extend([n.position.x, n.position.x + dims.width])
        ys.extend([n.position.y, n.position.y + dims.height])
    return {
        'x_min': min(xs) - VIEW_PADDING,
        'x_max': max(xs) + VIEW_PADDING,
        'y_min': min(ys) - VIEW_PADDING,
        'y_max': max(ys) + VIEW_PADDING,
    }


def build_canvas_options(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    settings: Optional[CanvasSettings] = None,
    pending_source_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build ECharts options from store snapshots.

    Args:
        nodes: Node snapshot from the store
        edges: Edge snapshot from the store
        settings: Canvas colours and sizes
        pending_source_id: Source of an in-progress connect gesture, highlighted

    Returns:
        ECharts options dict ready for ui.echart()
    """
    settings = settings or CanvasSettings()

    e_nodes = []
    for n in nodes:
        geometry = node_geometry(n)
        name = n.data.get('name') or n.id
        description = n.data.get('description', '')

        size = settings.node_size
        if n.dimensions is not None:
            size = max(n.dimensions.width, n.dimensions.height)

        highlighted = n.selected or n.id == pending_source_id
        tooltip_text = name
        if description:
            tooltip_text += f"<br/><span style='color:#999;font-size:11px'>{description}</span>"

        e_nodes.append({
            'name': n.id,
            'value': [geometry.center.x, geometry.center.y],
            'symbol': 'circle',
            'symbolSize': size,
            'itemStyle': {
                'color': settings.node_color,
                'borderColor': SELECTED_BORDER if highlighted else IDLE_BORDER,
                'borderWidth': 2,
                'shadowBlur': 12 if highlighted else 0,
                'shadowColor': 'rgba(0, 0, 0, 0.2)',
            },
            'label': {
                'show': True,
                'formatter': name,
                'position': 'bottom',
                'distance': 8,
                'fontSize': 13,
                'fontWeight': 500,
                'color': '#374151',
                'width': 100,
                'overflow': 'truncate',
            },
            'tooltip': {'formatter': tooltip_text},
        })

    e_links = []
    for edge, start, end in edge_segments(nodes, edges):
        e_links.append({
            'name': edge.id,
            'coords': [[start.x, start.y], [end.x, end.y]],
            'lineStyle': {
                'color': SELECTED_BORDER if edge.selected else settings.edge_color,
                'width': settings.edge_width + (1 if edge.selected else 0),
            },
        })

    bounds = _view_bounds(nodes)
    # Axes stay visible only for their dotted split lines, the canvas grid
    backdrop = {
        'type': 'value', 'show': True,
        'axisLine': {'show': False},
        'axisTick': {'show': False},
        'axisLabel': {'show': False},
        'splitLine': {'show': True, 'lineStyle': {'color': settings.dot_color, 'type': 'dotted'}},
    }

    return {
        'backgroundColor': settings.background_color,
        'animation': False,
        'tooltip': {'trigger': 'item'},
        'grid': {'left': 0, 'right': 0, 'top': 0, 'bottom': 0},
        'xAxis': {**backdrop, 'min': bounds['x_min'], 'max': bounds['x_max']},
        'yAxis': {**backdrop, 'inverse': True, 'min': bounds['y_min'], 'max': bounds['y_max']},
        # Pan/zoom without dropping points that leave the view
        'dataZoom': [
            {'type': 'inside', 'xAxisIndex': 0, 'filterMode': 'none'},
            {'type': 'inside', 'yAxisIndex': 0, 'filterMode': 'none'},
        ],
        'series': [
            {
                'id': EDGE_SERIES_ID,
                'type': 'lines',
                'coordinateSystem': 'cartesian2d',
                'symbol': ['none', 'arrow'],
                'symbolSize': 10,
                'lineStyle': {'color': settings.edge_color, 'width': settings.edge_width, 'opacity': 1},
                'data': e_links,
                'z': 1,
                'silent': False,
            },
            {
                'id': NODE_SERIES_ID,
                'type': 'scatter',
                'data': e_nodes,
                'z': 2,
            },
        ],
    }


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_node_id_from_payload(payload: Dict[str, Any], store) -> Optional[str]:
    """Return a node id from a normalized payload by validating it against the store."""
    if not isinstance(payload, dict):
        return None
    if payload.get('componentType') != 'series':
        return None
    if payload.get('seriesType') not in (None, 'scatter'):
        return None

    node_id = payload.get('name')
    if not node_id:
        return None

    if store.get_node(node_id) is not None:
        return node_id

    for node in store.nodes:
        if node.data.get('name') == node_id:
            return node.id
    return None


def resolve_edge_id_from_payload(payload: Dict[str, Any], store) -> Optional[str]:
    """Return an edge id for clicks on the links series."""
    if not isinstance(payload, dict):
        return None
    if payload.get('componentType') != 'series' or payload.get('seriesType') != 'lines':
        return None
    edge_id = payload.get('name')
    if edge_id and store.get_edge(edge_id) is not None:
        return edge_id
    return None
