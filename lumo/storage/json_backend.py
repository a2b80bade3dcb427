"""
JSON file Storage Backend for Lumo.

Implements the CanvasBackend protocol with one JSON file per record, so
saved boards diff cleanly under version control.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

from lumo.models import Edge, Node

logger = logging.getLogger(__name__)

# UI-only state that is never written to disk
TRANSIENT_KEYS = ("selected", "dragging")


def _safe_name(record_id: str) -> str:
    record_id = str(record_id)
    if not record_id or not all(c.isalnum() or c in ("-", "_") for c in record_id):
        raise ValueError(f"Unsafe record id for file storage: {record_id!r}")
    return record_id


def _strip_transient(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k not in TRANSIENT_KEYS}


class JsonBackend:
    """
    Local file-based storage backend.

    Structure:
    - {canvas}/lumes/{id}.json: Lume (node) files
    - {canvas}/links/{id}.json: Link (edge) files
    """

    def __init__(self, canvas_path: Union[str, Path]):
        self.canvas_path = Path(canvas_path)
        self.lumes_dir = self.canvas_path / "lumes"
        self.links_dir = self.canvas_path / "links"

        self.lumes_dir.mkdir(parents=True, exist_ok=True)
        self.links_dir.mkdir(parents=True, exist_ok=True)

        # Last written content per file, so sync only touches what changed
        self._written: Dict[Path, Dict[str, Any]] = {}

    @property
    def backend_type(self) -> str:
        return "json"

    # --- File I/O Helpers ---

    def _load_dir(self, directory: Path) -> Dict[str, Dict[str, Any]]:
        records = {}
        for path in sorted(directory.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    record = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load {path}: {e}")
                continue
            if not isinstance(record, dict):
                logger.warning(f"Skipping {path}: not a JSON object")
                continue
            record.setdefault("id", path.stem)
            records[record["id"]] = record
            self._written[path] = record
        return records

    def _write(self, path: Path, record: Dict[str, Any]) -> None:
        if self._written.get(path) == record:
            return
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)
        self._written[path] = record

    def _remove(self, path: Path) -> None:
        self._written.pop(path, None)
        if path.exists():
            path.unlink()

    # --- Lume Operations ---

    def load_nodes(self) -> Dict[str, Dict[str, Any]]:
        """Load all Lumes from individual JSON files."""
        return self._load_dir(self.lumes_dir)

    def save_node(self, node_id: str, node_data: Dict[str, Any]) -> None:
        """Save a single Lume to its individual file."""
        self._write(self.lumes_dir / f"{_safe_name(node_id)}.json", _strip_transient(node_data))

    def delete_node(self, node_id: str) -> None:
        self._remove(self.lumes_dir / f"{_safe_name(node_id)}.json")

    # --- Link Operations ---

    def load_edges(self) -> Dict[str, Dict[str, Any]]:
        """Load all links from individual JSON files."""
        return self._load_dir(self.links_dir)

    def save_edge(self, edge_id: str, edge_data: Dict[str, Any]) -> None:
        self._write(self.links_dir / f"{_safe_name(edge_id)}.json", _strip_transient(edge_data))

    def delete_edge(self, edge_id: str) -> None:
        self._remove(self.links_dir / f"{_safe_name(edge_id)}.json")

    # --- Canvas-level Operations ---

    def load_canvas(self) -> Tuple[List[Node], List[Edge]]:
        """
        Load the board as records ready for CanvasStore.set_nodes / set_edges.
        Records that cannot be parsed are logged and skipped.
        """
        nodes, edges = [], []
        for node_id, raw in self.load_nodes().items():
            try:
                nodes.append(Node.from_dict(raw))
            except ValueError as e:
                logger.warning(f"Skipping Lume {node_id}: {e}")
        for edge_id, raw in self.load_edges().items():
            try:
                edges.append(Edge.from_dict(raw))
            except ValueError as e:
                logger.warning(f"Skipping link {edge_id}: {e}")
        return nodes, edges

    def sync(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        """Write changed Lumes/links and delete files for removed ones."""
        node_ids = set()
        for n in nodes:
            node_ids.add(n.id)
            self.save_node(n.id, n.to_dict())
        for path in list(self.lumes_dir.glob("*.json")):
            if path.stem not in node_ids:
                self._remove(path)
                logger.info(f"Deleted Lume file {path.name}")

        edge_ids = set()
        for e in edges:
            edge_ids.add(e.id)
            self.save_edge(e.id, e.to_dict())
        for path in list(self.links_dir.glob("*.json")):
            if path.stem not in edge_ids:
                self._remove(path)
