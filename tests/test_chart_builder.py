import pytest

from lumo.canvas_store import CanvasStore
from lumo.chart_builder import (
    EDGE_SERIES_ID,
    NODE_SERIES_ID,
    SELECTED_BORDER,
    build_canvas_options,
    measure_changes,
    normalize_click_payload,
    resolve_edge_id_from_payload,
    resolve_node_id_from_payload,
)
from lumo.config import CanvasSettings
from lumo.models import Dimensions, Edge, Node, Point


def series(options, series_id):
    for s in options['series']:
        if s['id'] == series_id:
            return s
    raise AssertionError(f'missing series {series_id}')


@pytest.fixture
def store():
    return CanvasStore(
        nodes=[
            Node(id='a', position=Point(0, 0), dimensions=Dimensions(100, 100), data={'name': 'Paris'}),
            Node(id='b', position=Point(200, 0), dimensions=Dimensions(100, 100), data={'name': 'Louvre'}),
        ],
        edges=[Edge(id='ab', source='a', target='b')],
    )


def test_nodes_are_placed_at_their_centers(store):
    options = build_canvas_options(store.nodes, store.edges)
    data = series(options, NODE_SERIES_ID)['data']
    assert [d['name'] for d in data] == ['a', 'b']
    assert data[0]['value'] == [50, 50]
    assert data[0]['label']['formatter'] == 'Paris'
    assert data[0]['symbolSize'] == 100


def test_links_end_on_the_node_rims(store):
    options = build_canvas_options(store.nodes, store.edges)
    links = series(options, EDGE_SERIES_ID)['data']
    assert len(links) == 1
    (sx, sy), (tx, ty) = links[0]['coords']
    assert (sx, sy) == pytest.approx((100, 50))
    assert (tx, ty) == pytest.approx((200, 50))
    assert series(options, EDGE_SERIES_ID)['symbol'] == ['none', 'arrow']


def test_selection_and_pending_source_are_highlighted(store):
    store.apply_node_changes([{'id': 'a', 'type': 'select', 'selected': True}])
    store.apply_edge_changes([{'id': 'ab', 'type': 'select', 'selected': True}])
    options = build_canvas_options(store.nodes, store.edges, pending_source_id='b')
    data = series(options, NODE_SERIES_ID)['data']
    assert data[0]['itemStyle']['borderColor'] == SELECTED_BORDER
    assert data[1]['itemStyle']['borderColor'] == SELECTED_BORDER
    assert series(options, EDGE_SERIES_ID)['data'][0]['lineStyle']['color'] == SELECTED_BORDER


def test_settings_drive_colours():
    settings = CanvasSettings(background_color='#000000', edge_color='#ff0000')
    options = build_canvas_options([], [], settings)
    assert options['backgroundColor'] == '#000000'
    assert series(options, EDGE_SERIES_ID)['lineStyle']['color'] == '#ff0000'
    assert options['yAxis']['inverse'] is True


def test_measure_changes_only_for_unmeasured_nodes(store):
    store.add_node(Node(id='c', position=Point(0, 300)))
    changes = measure_changes(store.nodes, CanvasSettings(node_size=64))
    assert [c.id for c in changes] == ['c']
    store.apply_node_changes(changes)
    assert store.get_node('c').dimensions == Dimensions(64, 64)


def test_normalize_click_payload_handles_dict():
    payload = {'componentType': 'series', 'name': 'node-1'}
    assert normalize_click_payload(payload) is payload


def test_normalize_click_payload_handles_list():
    payload = normalize_click_payload(['series', 'node-2', 'scatter', [1, 2]])
    assert payload == {
        'componentType': 'series',
        'name': 'node-2',
        'seriesType': 'scatter',
        'value': [1, 2],
    }


def test_normalize_click_payload_handles_string():
    assert normalize_click_payload('node-3') == {'name': 'node-3'}
    assert normalize_click_payload(None) == {}


def test_resolve_node_id_prefers_exact_id(store):
    payload = {'componentType': 'series', 'seriesType': 'scatter', 'name': 'a'}
    assert resolve_node_id_from_payload(payload, store) == 'a'


def test_resolve_node_id_falls_back_to_name_match(store):
    payload = {'componentType': 'series', 'name': 'Louvre'}
    assert resolve_node_id_from_payload(payload, store) == 'b'


def test_resolve_node_id_ignores_links_and_other_components(store):
    assert resolve_node_id_from_payload({'componentType': 'series', 'seriesType': 'lines', 'name': 'a'}, store) is None
    assert resolve_node_id_from_payload({'componentType': 'tooltip', 'name': 'a'}, store) is None


def test_resolve_edge_id(store):
    payload = {'componentType': 'series', 'seriesType': 'lines', 'name': 'ab'}
    assert resolve_edge_id_from_payload(payload, store) == 'ab'
    store.delete_node('a')
    assert resolve_edge_id_from_payload(payload, store) is None


def test_lume_fill_and_dotted_grid_follow_settings(store):
    settings = CanvasSettings(node_color='#fed7aa', dot_color='#aabbcc')
    options = build_canvas_options(store.nodes, store.edges, settings)
    assert series(options, NODE_SERIES_ID)['data'][0]['itemStyle']['color'] == '#fed7aa'
    for axis in ('xAxis', 'yAxis'):
        split = options[axis]['splitLine']
        assert split['show'] is True
        assert split['lineStyle'] == {'color': '#aabbcc', 'type': 'dotted'}
        assert options[axis]['axisLabel']['show'] is False
