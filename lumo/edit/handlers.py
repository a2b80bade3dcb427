"""
Canvas Handlers - Event handlers for the canvas page in app.py

Binds chart clicks and keyboard events to the connect controller and the
canvas actions, keeping the page function focused on layout.

Gestures:
- click a Lume or link: select it (background click clears the selection)
- Ctrl+click a Lume, then Ctrl+click another: link them
- Delete/Backspace: remove the selection
- Escape: abandon a half-finished link
"""

import logging
import time
from typing import Any, Callable, Dict

from nicegui import ui

from lumo.canvas_store import CanvasStore
from lumo.chart_builder import (
    normalize_click_payload,
    resolve_edge_id_from_payload,
    resolve_node_id_from_payload,
)
from lumo.edit.actions import CanvasActions
from lumo.edit.constants import CLICK_DEBOUNCE_S, DELETE_KEYS
from lumo.edit.controller import ConnectController

logger = logging.getLogger(__name__)


def setup_canvas_handlers(
    state: Dict[str, Any],
    store: CanvasStore,
    connect_controller: ConnectController,
    canvas_actions: CanvasActions,
    refresh_chart_ui: Callable,
):
    """
    Set up all canvas event handlers.

    Args:
        state: Page state dictionary
        store: CanvasStore for this page
        connect_controller: ConnectController instance
        canvas_actions: CanvasActions instance
        refresh_chart_ui: Function to redraw the chart

    Returns:
        Dict with handler functions for binding to UI events
    """

    def on_connect_state_change(connect_state):
        state['pending_source_id'] = connect_state.source_id if connect_state.is_active else None
        refresh_chart_ui()

    connect_controller.set_on_state_change(on_connect_state_change)
    connect_controller.update_graph_data(store.nodes)
    store.subscribe(lambda nodes, edges: connect_controller.update_graph_data(nodes))

    def handle_keyboard(e):
        """Track Ctrl for linking, handle delete and escape."""
        if e.key == 'Control':
            state['is_ctrl_pressed'] = e.action.keydown
            return

        if not e.action.keydown:
            return

        if e.key == 'Escape':
            connect_controller.cancel()
        elif e.key in DELETE_KEYS:
            removed = canvas_actions.delete_selected()
            if removed:
                ui.notify(f'Removed {len(removed)} Lume(s)', position='bottom', timeout=1000)

    def handle_connect_click(node_id: str):
        if not connect_controller.state.is_active:
            if connect_controller.start(node_id).is_active:
                ui.notify('Pick a Lume to link to', position='bottom', timeout=800, color='info')
            else:
                ui.notify('This Lume cannot be linked', position='bottom', timeout=800)
            return

        connect_controller.hover(node_id)
        edge = connect_controller.release(store)
        if edge is None:
            # Same Lume or a Lume that vanished: the line just snaps back
            ui.notify('Link not created', position='bottom', timeout=800)
        else:
            ui.notify('Linked', type='positive', position='bottom', timeout=800)

    def handle_chart_click(event):
        raw = event.args if hasattr(event, 'args') else event
        payload = normalize_click_payload(raw)

        try:
            node_id = resolve_node_id_from_payload(payload, store)
            edge_id = None if node_id else resolve_edge_id_from_payload(payload, store)

            now = time.monotonic()
            if node_id or edge_id:
                state['last_item_click'] = now
            elif now - state.get('last_item_click', 0) < CLICK_DEBOUNCE_S:
                # DOM click echoing a Lume/link click
                return

            if node_id and state.get('is_ctrl_pressed'):
                handle_connect_click(node_id)
                return

            if node_id:
                canvas_actions.select_only(node_ids=[node_id])
                state['selected_node_id'] = node_id
                return

            if edge_id:
                canvas_actions.select_only(edge_ids=[edge_id])
                state['selected_node_id'] = None
                return

            # Background click
            connect_controller.cancel()
            canvas_actions.select_only()
            state['selected_node_id'] = None
        except Exception as e:
            logger.exception(f"Canvas click failed: {e}")
            ui.notify(f'Edit failed: {e}', type='negative', position='bottom')

    return {
        'handle_keyboard': handle_keyboard,
        'handle_chart_click': handle_chart_click,
    }
