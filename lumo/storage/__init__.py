"""
Storage backend abstraction for Lumo.

- JsonBackend: one JSON file per Lume and per link (default)
"""

from lumo.storage.protocol import CanvasBackend
from lumo.storage.json_backend import JsonBackend

__all__ = [
    'CanvasBackend',
    'JsonBackend',
]
