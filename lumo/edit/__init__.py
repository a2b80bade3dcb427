"""
Canvas editing for Lumo.

This package provides the interactive editing layer:
- ConnectController: drag-to-connect gesture state
- CanvasActions: UI actions expressed as store operations
- canvas handlers: event handlers for app.py integration

Usage:
    from lumo.edit import ConnectController, CanvasActions
    from lumo.edit.handlers import setup_canvas_handlers
"""

from lumo.edit.constants import (
    CONNECTION_RADIUS,
    SNAP_GRID,
    DEFAULT_NODE_SIZE,
)
from lumo.edit.controller import ConnectController, ConnectState, snap_position
from lumo.edit.actions import CanvasActions

__all__ = [
    'ConnectController',
    'ConnectState',
    'CanvasActions',
    'snap_position',
    'CONNECTION_RADIUS',
    'SNAP_GRID',
    'DEFAULT_NODE_SIZE',
]
