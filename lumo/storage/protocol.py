"""
CanvasBackend Protocol Definition.

The store never talks to storage itself. Whatever hosts the canvas loads the
initial board through a backend, hands it to CanvasStore.set_nodes /
set_edges, and pushes later snapshots back with `sync`.
"""

from typing import Any, Dict, Protocol, Sequence, runtime_checkable

from lumo.models import Edge, Node


@runtime_checkable
class CanvasBackend(Protocol):
    """Abstract protocol for canvas storage backends."""

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier (e.g. 'json')."""
        ...

    # --- Lume Operations ---

    def load_nodes(self) -> Dict[str, Dict[str, Any]]:
        """
        Load all Lumes.

        Returns:
            Dict mapping node_id -> node dict in the JSON shape of Node.to_dict()
        """
        ...

    def save_node(self, node_id: str, node_data: Dict[str, Any]) -> None:
        """Save a single Lume."""
        ...

    def delete_node(self, node_id: str) -> None:
        """Delete a Lume. Deleting a missing Lume is not an error."""
        ...

    # --- Link Operations ---

    def load_edges(self) -> Dict[str, Dict[str, Any]]:
        """Load all links as edge_id -> edge dict (Edge.to_dict() shape)."""
        ...

    def save_edge(self, edge_id: str, edge_data: Dict[str, Any]) -> None:
        ...

    def delete_edge(self, edge_id: str) -> None:
        ...

    # --- Snapshot sync ---

    def sync(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        """Make storage match a store snapshot: write changed records, delete removed ones."""
        ...
