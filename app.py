"""
Main NiceGUI application for Lumo.

Builds one CanvasStore per page, loads the saved board through the JSON
backend, renders it with ui.echart and keeps storage in step with every
store snapshot.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from lumo.canvas_store import CanvasStore
from lumo.chart_builder import build_canvas_options, measure_changes, REQUESTED_EVENT_KEYS
from lumo.config import get_canvas_settings, get_log_level, get_port, load_config
from lumo.edit import CanvasActions, ConnectController
from lumo.edit.handlers import setup_canvas_handlers
from lumo.graph_viz import itinerary_order, to_graphviz
from lumo.models import LumeType, demo_lumes
from lumo.paths import ensure_db_dir
from lumo.storage import JsonBackend

config = load_config()
logging.basicConfig(
    level=get_log_level(config),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('lumo')

settings = get_canvas_settings(config)
db_dir = ensure_db_dir()


def show_add_lume_dialog(canvas_actions: CanvasActions):
    """Show modal dialog to place a new Lume."""
    with ui.dialog() as dialog, ui.card().classes('w-96'):
        ui.label('New Lume').classes('text-lg font-bold')

        name_input = ui.input('Name', placeholder='e.g., Louvre').classes('w-full')
        type_select = ui.select(
            {t.value: t.name.replace('_', ' ').title() for t in LumeType},
            value=LumeType.ATTRACTION.value,
            label='Type',
        ).classes('w-full')
        description_input = ui.textarea('Description').classes('w-full')

        def do_create():
            name = (name_input.value or '').strip()
            if not name:
                ui.notify('Please enter a name', type='warning')
                return
            canvas_actions.commit_action({
                'action': 'create_lume',
                'name': name,
                'lume_type': type_select.value,
                'description': description_input.value or '',
            })
            dialog.close()

        with ui.row().classes('w-full justify-end gap-2 mt-4'):
            ui.button('Cancel', on_click=dialog.close).props('flat')
            ui.button('Create', on_click=do_create).props('color=primary')

    dialog.open()
    return dialog


@ui.page('/')
def main_page():
    ui.query('body').style('margin: 0; padding: 0; overflow: hidden;')

    backend = JsonBackend(db_dir / 'default')
    store = CanvasStore()

    nodes, edges = backend.load_canvas()
    if not nodes:
        logger.info('Empty canvas, seeding demo Lumes')
        nodes = demo_lumes()
    store.set_nodes(nodes)
    store.set_edges(edges)

    # Lumes render at a fixed size, so report it as their measured size
    store.apply_node_changes(measure_changes(store.nodes, settings))

    state = {
        'chart': None,
        'is_ctrl_pressed': False,
        'pending_source_id': None,
        'selected_node_id': None,
    }

    connect_controller = ConnectController(connection_radius=settings.connection_radius)
    canvas_actions = CanvasActions(
        store,
        snap_to_grid=settings.snap_to_grid,
        snap_grid=settings.snap_grid,
        node_size=settings.node_size,
    )

    def refresh_chart_ui():
        chart = state.get('chart')
        if chart is None:
            return
        chart.options.clear()
        chart.options.update(build_canvas_options(
            store.nodes, store.edges, settings,
            pending_source_id=state.get('pending_source_id'),
        ))
        chart.update()

    def refresh_itinerary():
        itinerary_list.clear()
        by_id = {n.id: n for n in store.nodes}
        with itinerary_list:
            for index, node_id in enumerate(itinerary_order(store.nodes, store.edges), start=1):
                name = by_id[node_id].data.get('name') or node_id
                ui.label(f'{index}. {name}').classes('text-sm text-gray-700')

    def on_store_change(nodes, edges):
        try:
            backend.sync(nodes, edges)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save canvas: {e}")
            ui.notify(f'Save failed: {e}', type='negative')
        refresh_chart_ui()
        refresh_itinerary()

    backend.sync(store.nodes, store.edges)

    handlers = setup_canvas_handlers(
        state=state,
        store=store,
        connect_controller=connect_controller,
        canvas_actions=canvas_actions,
        refresh_chart_ui=refresh_chart_ui,
    )
    ui.keyboard(on_key=handlers['handle_keyboard'])

    # --- Layout Construction ---

    state['chart'] = ui.echart(build_canvas_options(store.nodes, store.edges, settings))
    state['chart'].style('width: 100vw; height: 100vh; position: absolute; top: 0; left: 0; z-index: 0;')
    state['chart'].on('componentClick', handlers['handle_chart_click'], REQUESTED_EVENT_KEYS)
    state['chart'].on('click', handlers['handle_chart_click'], REQUESTED_EVENT_KEYS)

    def download_dot():
        dot = to_graphviz(store.nodes, store.edges)
        ui.download(dot.source.encode('utf-8'), 'lumo_canvas.dot')

    with ui.card().classes('fixed left-6 top-6 z-10 gap-2 shadow-lg'):
        ui.label('Lumo').classes('text-xl font-bold')
        with ui.row().classes('gap-2'):
            ui.button('Add Lume', icon='add_location', on_click=lambda: show_add_lume_dialog(canvas_actions)).props('dense')
            ui.button('Export DOT', icon='download', on_click=download_dot).props('dense flat')
        ui.label('Ctrl+click two Lumes to link them').classes('text-xs text-gray-500')

    with ui.card().classes('fixed right-6 top-6 z-10 w-64 shadow-lg'):
        ui.label('Itinerary').classes('font-bold')
        itinerary_list = ui.column().classes('gap-1')

    refresh_itinerary()
    store.subscribe(on_store_change)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Lumo',
        port=get_port(config),
        reload=not getattr(sys, 'frozen', False),
    )
