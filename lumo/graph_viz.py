"""
Graph exports for a canvas.

NetworkX gives the board an algorithmic view (the itinerary order of the
Lumes following their links); Graphviz renders a static DOT picture of it
for sharing outside the app.
"""

from typing import Any, Dict, List, Sequence

import networkx as nx
from graphviz import Digraph

from lumo.models import Edge, Node


def to_networkx(nodes: Sequence[Node], edges: Sequence[Edge]) -> nx.MultiDiGraph:
    """
    Build a directed multigraph of the canvas. Node attributes are the Lume
    payload plus its position; parallel links stay separate, keyed by edge id.
    Links naming a missing node are left out.
    """
    G = nx.MultiDiGraph()
    for n in nodes:
        attrs = {**n.data, 'x': n.position.x, 'y': n.position.y}
        G.add_node(n.id, **attrs)

    for e in edges:
        if e.source in G and e.target in G:
            attrs = {k: v for k, v in e.data.items() if k != 'key'}
            attrs['routing_mode'] = e.routing_mode.value
            G.add_edge(e.source, e.target, key=e.id, **attrs)
    return G


def _label(attrs: Dict[str, Any], node_id: str) -> str:
    return str(attrs.get('name') or node_id)


def itinerary_order(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[str]:
    """
    Node ids in travel order: every Lume comes after the Lumes linking to it,
    ties broken by name. A board with a loop has no such order, so its
    canvas order is returned instead.
    """
    G = to_networkx(nodes, edges)
    if not nx.is_directed_acyclic_graph(G):
        return [n.id for n in nodes]
    return list(nx.lexicographical_topological_sort(G, key=lambda nid: (_label(G.nodes[nid], nid), nid)))


def connected_groups(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[List[str]]:
    """Lumes grouped by the trip they belong to (weakly connected components)."""
    G = to_networkx(nodes, edges)
    order = {n.id: i for i, n in enumerate(nodes)}
    groups = [sorted(c, key=order.get) for c in nx.weakly_connected_components(G)]
    return sorted(groups, key=lambda g: order[g[0]])


def to_graphviz(nodes: Sequence[Node], edges: Sequence[Edge], name: str = 'lumo_canvas') -> Digraph:
    """
    Graphviz Digraph of the canvas, pinned to the canvas positions
    (use the `neato -n` engine to keep them).
    """
    dot = Digraph(name=name, comment='Lumo canvas')
    dot.attr('node', shape='circle', style='filled', fillcolor='#ffffff', fontsize='10')
    dot.attr('edge', color='#b1b1b7', arrowhead='normal')

    present = set()
    for n in nodes:
        present.add(n.id)
        # Graphviz y grows upwards
        dot.node(n.id, label=_label(n.data, n.id), pos=f"{n.position.x},{-n.position.y}!")

    for e in edges:
        if e.source in present and e.target in present:
            dot.edge(e.source, e.target, id=e.id)

    return dot
