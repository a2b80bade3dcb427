"""
Tests for canvas editing: the connect gesture and committed UI actions.
"""

from types import SimpleNamespace

import pytest

from lumo.canvas_store import CanvasStore
from lumo.chart_builder import build_canvas_options
from lumo.edit import CanvasActions, ConnectController, ConnectState, handlers, snap_position
from lumo.models import Dimensions, LinkType, LumeType, Node, Point


@pytest.fixture
def store():
    return CanvasStore(nodes=[
        Node(id="a", position=Point(0, 0), dimensions=Dimensions(64, 64), data={"name": "Paris"}),
        Node(id="b", position=Point(200, 0), dimensions=Dimensions(64, 64), data={"name": "Louvre"}),
        Node(id="c", position=Point(0, 200), dimensions=Dimensions(64, 64), connectable=False),
    ])


@pytest.fixture
def controller(store):
    c = ConnectController(connection_radius=25)
    c.update_graph_data(store.nodes)
    return c


class TestSnapPosition:

    def test_rounds_to_grid(self):
        assert snap_position(Point(22, 8), (15, 15)) == Point(15, 15)
        assert snap_position(Point(-8, 31), (15, 15)) == Point(-15, 30)

    def test_zero_grid_keeps_axis(self):
        assert snap_position(Point(22, 8), (0, 10)) == Point(22, 10)


class TestConnectController:

    def test_find_nearby_node_within_reach(self, controller):
        # b center is (232, 32); reach is 32 + 25
        assert controller.find_nearby_node((280, 32)) == "b"
        assert controller.find_nearby_node((300, 32)) is None

    def test_find_nearby_node_excludes_source(self, controller):
        assert controller.find_nearby_node((32, 32), exclude="a") is None

    def test_unconnectable_nodes_are_not_targets(self, controller):
        assert controller.find_nearby_node((32, 232)) is None
        assert controller.start("c") == ConnectState()

    def test_full_gesture_creates_edge(self, store, controller):
        states = []
        controller.set_on_state_change(states.append)

        controller.start("a")
        controller.set_pointer(240, 40)
        assert controller.state.hover_target_id == "b"

        edge = controller.release(store)
        assert edge is not None
        assert (edge.source, edge.target) == ("a", "b")
        assert controller.state == ConnectState()
        assert states[0].source_id == "a"
        assert states[-1] == ConnectState()

    def test_release_without_target_snaps_back(self, store, controller):
        controller.start("a")
        controller.set_pointer(1000, 1000)
        assert controller.release(store) is None
        assert store.edges == ()

    def test_hover_on_source_does_not_connect(self, store, controller):
        controller.start("a")
        controller.hover("a")
        assert controller.release(store) is None
        assert store.edges == ()

    def test_start_unknown_node_is_ignored(self, controller):
        assert controller.start("missing").is_active is False

    def test_hover_unknown_target_clears_it(self, controller):
        controller.start("a")
        controller.hover("b")
        controller.hover("missing")
        assert controller.state.hover_target_id is None

    def test_pointer_moves_ignored_when_idle(self, controller):
        assert controller.set_pointer(232, 32) == ConnectState()


class TestCanvasActions:

    @pytest.fixture
    def actions(self, store):
        return CanvasActions(store, snap_to_grid=True, snap_grid=(15, 15))

    def test_create_lume(self, store, actions):
        node_id = actions.create_lume("Seine Cruise", LumeType.ACTIVITY, "Evening boat", Point(101, 52))
        node = store.get_node(node_id)
        assert node.position == Point(105, 45)
        assert node.data["name"] == "Seine Cruise"
        assert node.data["type"] == LumeType.ACTIVITY.value
        assert node.dimensions == Dimensions(64, 64)

    def test_create_lume_default_position(self, actions):
        store = CanvasStore()
        node_id = CanvasActions(store, snap_to_grid=False).create_lume("First")
        assert store.get_node(node_id).position == Point(40, 40)

    def test_created_lume_is_drawn_around_its_center(self, store):
        actions = CanvasActions(store, snap_to_grid=False, node_size=80)
        node_id = actions.create_lume("Louvre", position=Point(600, 600))
        assert store.get_node(node_id).dimensions == Dimensions(80, 80)

        options = build_canvas_options(store.nodes, store.edges)
        marker = next(d for d in options['series'][1]['data'] if d['name'] == node_id)
        assert marker['value'] == [640, 640]

    def test_commit_create_with_unknown_type(self, store, actions):
        node_id = actions.commit_action({"action": "create_lume", "name": "X", "lume_type": "bogus"})
        assert store.get_node(node_id).data["type"] == LumeType.UNSPECIFIED.value

    def test_commit_rename_and_move(self, store, actions):
        actions.commit_action({"action": "rename_lume", "node_id": "a", "name": "Paris Centre"})
        actions.commit_action({"action": "move_lume", "node_id": "a", "position": {"x": 44, "y": 44}})
        node = store.get_node("a")
        assert node.data["name"] == "Paris Centre"
        assert node.position == Point(45, 45)

    def test_commit_move_without_position_is_ignored(self, store, actions):
        assert actions.commit_action({"action": "move_lume", "node_id": "a"}) is None
        assert store.get_node("a").position == Point(0, 0)

    def test_commit_connect(self, store, actions):
        edge_id = actions.commit_action({"action": "connect", "source_id": "a", "target_id": "b"})
        assert store.get_edge(edge_id).data == {"type": LinkType.TRAVEL.value}
        edge_id = actions.commit_action({"action": "connect", "source_id": "b", "target_id": "a", "link_type": "RECOMMENDED"})
        assert store.get_edge(edge_id).data == {"type": "RECOMMENDED"}
        assert actions.commit_action({"action": "connect", "source_id": "a", "target_id": "a"}) is None

    def test_commit_delete_node_cascades(self, store, actions):
        actions.connect("a", "b")
        actions.commit_action({"action": "delete_node", "node_id": "b"})
        assert store.get_node("b") is None
        assert store.edges == ()

    def test_commit_delete_edge(self, store, actions):
        edge = actions.connect("a", "b")
        actions.commit_action({"action": "delete_edge", "edge_id": edge.id})
        assert store.edges == ()

    def test_unknown_action(self, actions):
        assert actions.commit_action({"action": "teleport"}) is None

    def test_select_only(self, store, actions):
        edge = actions.connect("a", "b")
        actions.select_only(node_ids=["a"], edge_ids=[edge.id])
        assert [n.id for n in store.nodes if n.selected] == ["a"]
        assert store.get_edge(edge.id).selected is True

        actions.select_only(node_ids=["b"])
        assert [n.id for n in store.nodes if n.selected] == ["b"]
        assert store.get_edge(edge.id).selected is False

    def test_select_only_without_changes_keeps_snapshot(self, store, actions):
        nodes, version = store.nodes, store.version
        actions.select_only()
        assert store.nodes is nodes
        assert store.version == version

    def test_delete_selected(self, store, actions):
        keep = actions.connect("b", "c")
        drop = actions.connect("a", "b")
        actions.select_only(node_ids=["a"], edge_ids=[keep.id])
        removed = actions.delete_selected()
        assert removed == ["a"]
        assert store.get_node("a") is None
        assert store.get_edge(keep.id) is None
        assert store.get_edge(drop.id) is None
        assert [n.id for n in store.nodes] == ["b", "c"]


class TestCanvasHandlers:

    @pytest.fixture
    def notes(self, monkeypatch):
        notes = []
        monkeypatch.setattr(handlers, 'ui', SimpleNamespace(notify=lambda message, **kwargs: notes.append(message)))
        return notes

    @pytest.fixture
    def page(self, store, controller, notes):
        state = {'is_ctrl_pressed': True, 'pending_source_id': None, 'selected_node_id': None}
        bound = handlers.setup_canvas_handlers(
            state=state,
            store=store,
            connect_controller=controller,
            canvas_actions=CanvasActions(store),
            refresh_chart_ui=lambda: None,
        )
        return state, bound

    @staticmethod
    def click(node_id):
        return {'componentType': 'series', 'seriesType': 'scatter', 'name': node_id}

    def test_ctrl_click_two_lumes_links_them(self, store, page, notes):
        state, bound = page
        bound['handle_chart_click'](self.click('a'))
        assert state['pending_source_id'] == 'a'
        bound['handle_chart_click'](self.click('b'))
        assert [(e.source, e.target) for e in store.edges] == [('a', 'b')]
        assert notes == ['Pick a Lume to link to', 'Linked']
        assert state['pending_source_id'] is None

    def test_unlinkable_source_is_reported(self, controller, page, notes):
        _, bound = page
        bound['handle_chart_click'](self.click('c'))
        assert controller.state.is_active is False
        assert notes == ['This Lume cannot be linked']
