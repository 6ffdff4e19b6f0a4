import pytest
from PySide6.QtCore import QPointF

from seatmap.gestures import GestureState
from seatmap.models import ElementKind
from seatmap.utils import MIN_SIZE, element_transform


class TestMarqueeSelector:
    @pytest.fixture
    def scene(self, populate, make_element):
        return populate(
            make_element("a", 0, 0, 20, 20),
            make_element("b", 100, 0, 20, 20),
            make_element("c", 200, 200, 20, 20),
        )

    def test_plain_drag_selects_exact_hits(self, scene):
        scene.selection.set_all(["c"])
        assert scene.marquee.begin(QPointF(-10, -10))
        hits = scene.marquee.update(QPointF(110, 10))
        assert hits == ["a", "b"]
        assert scene.selection.ids() == ("a", "b")
        assert scene.marquee.end()
        assert scene.selection.ids() == ("a", "b")
        assert scene.marquee.state is GestureState.IDLE

    def test_shift_drag_is_monotonic_union(self, scene):
        scene.selection.set_all(["c"])
        scene.marquee.begin(QPointF(-10, -10), modifier=True)
        scene.marquee.update(QPointF(10, 10))
        assert set(scene.selection) == {"c", "a"}
        # shrinking the rectangle never drops the initial selection
        scene.marquee.update(QPointF(-5, -5))
        assert scene.selection.ids() == ("c",)

    def test_zero_size_marquee_replaces_with_empty(self, scene):
        scene.selection.set_all(["a", "b"])
        scene.marquee.begin(QPointF(500, 500))
        assert scene.marquee.update(QPointF(500, 500)) == []
        scene.marquee.end()
        assert len(scene.selection) == 0

    def test_uses_world_coordinates(self, scene):
        scene.viewport.set_scale(2.0, QPointF(0, 0))
        scene.marquee.begin(QPointF(390, 390))
        scene.marquee.update(QPointF(450, 450))
        # screen 390..450 is world 195..225
        assert scene.selection.ids() == ("c",)
        r = scene.marquee.rect()
        assert (r.left(), r.right()) == pytest.approx((195, 225))

    def test_rotated_element_hit_by_its_bounding_box(self, populate, make_element):
        ctx = populate(make_element("w", 100, 100, 40, 10, kind=ElementKind.WALL, rotation=90))
        # rotated about its top-left, the wall covers x 90..100
        ctx.marquee.begin(QPointF(85, 120))
        ctx.marquee.update(QPointF(92, 125))
        assert ctx.selection.ids() == ("w",)

    def test_shift_drag_drops_ids_deleted_mid_gesture(self, scene):
        scene.selection.set_all(["a"])
        scene.marquee.begin(QPointF(90, -10), modifier=True)
        scene.store.remove({"a"})
        scene.marquee.update(QPointF(130, 30))
        assert scene.selection.ids() == ("b",)
        assert all(i in scene.store for i in scene.selection)

    def test_update_and_end_when_idle(self, scene):
        assert scene.marquee.update(QPointF(1, 1)) is None
        assert not scene.marquee.end()
        assert scene.marquee.state is GestureState.IDLE


class TestDragCoordinator:
    def test_scenario_a_snaps_to_neighbour_edge(self, populate, make_element):
        ctx = populate(make_element("E1", 100, 100, 50, 50), make_element("E2", 152, 100, 50, 50))
        assert ctx.drag.begin("E2")
        frame = ctx.drag.move(QPointF(149, 100))
        assert frame.positions["E2"].x() == pytest.approx(150)
        vertical = [g for g in frame.guides if g.is_vertical]
        assert len(vertical) == 1
        assert vertical[0].line.x1() == pytest.approx(150)
        ctx.drag.end()
        assert ctx.store.get("E2").x == pytest.approx(150)
        assert ctx.drag.guides == []

    def test_scenario_b_followers_share_raw_delta(self, populate, make_element):
        ctx = populate(
            make_element("E1", 0, 0, 30, 30),
            make_element("E2", 400, 300, 30, 30),
            make_element("E3", 900, 700, 30, 30),
        )
        starts = {el.id: (el.x, el.y) for el in ctx.store}
        ctx.selection.set_all(["E1", "E2", "E3"])
        ctx.drag.begin("E2")
        ctx.drag.move(QPointF(420, 290))
        committed = ctx.drag.end()
        assert set(committed) == {"E1", "E2", "E3"}
        for i, (x, y) in starts.items():
            el = ctx.store.get(i)
            assert (el.x, el.y) == pytest.approx((x + 20, y - 10))
        assert ctx.selection.ids() == ("E1", "E2", "E3")

    def test_snap_moves_only_the_active_element(self, populate, make_element):
        ctx = populate(
            make_element("anchor", 0, 0, 50, 50),
            make_element("active", 100, 300, 50, 50),
            make_element("follower", 600, 600, 50, 50),
        )
        ctx.selection.set_all(["active", "follower"])
        ctx.drag.begin("active")
        frame = ctx.drag.move(QPointF(52, 300))
        assert frame.positions["active"].x() == pytest.approx(50)
        assert frame.positions["follower"].x() == pytest.approx(552)

    def test_scenario_c_single_drag_deselects(self, populate, make_element):
        ctx = populate(make_element("solo", 0, 0), make_element("other", 500, 500))
        ctx.selection.select_one("solo")
        ctx.drag.begin("solo")
        ctx.drag.move(QPointF(200, 220))
        ctx.drag.end()
        assert len(ctx.selection) == 0
        assert (ctx.store.get("solo").x, ctx.store.get("solo").y) == (200, 220)

    def test_dragging_unselected_element_selects_it(self, populate, make_element):
        ctx = populate(make_element("a", 0, 0), make_element("b", 300, 300))
        ctx.selection.select_one("a")
        ctx.drag.begin("b")
        assert ctx.selection.ids() == ("a", "b")

    def test_dangling_id_skipped_at_commit(self, populate, make_element):
        ctx = populate(make_element("a", 0, 0), make_element("b", 300, 300))
        ctx.selection.set_all(["a", "b"])
        ctx.drag.begin("a")
        ctx.drag.move(QPointF(10, 10))
        ctx.store.remove({"b"})
        assert set(ctx.drag.end()) == {"a"}
        assert ctx.store.get("a").x == 10

    def test_begin_unknown_element(self, ctx):
        assert not ctx.drag.begin("ghost")
        assert ctx.active_gesture() is None

    def test_move_after_end_is_ignored(self, populate, make_element):
        ctx = populate(make_element("a", 0, 0))
        ctx.drag.begin("a")
        ctx.drag.end()
        assert ctx.drag.move(QPointF(99, 99)) is None
        assert ctx.store.get("a").x == 0

    def test_stray_end_resets(self, ctx):
        assert ctx.drag.end() == {}
        assert ctx.drag.state is GestureState.IDLE


class TestTransformFinalizer:
    def test_scenario_d_rotation_commits_snapped(self, populate, make_element):
        ctx = populate(make_element("a", 10, 10, 80, 40))
        ctx.selection.select_one("a")
        assert ctx.transform.begin("a")
        guides = ctx.transform.update(rotation=43)
        assert [g.key for g in guides] == ["rot-snap-45"]
        el = ctx.transform.end()
        assert el.rotation == 45
        assert ctx.transform.guides == []

    def test_unsnapped_rotation_is_kept(self, populate, make_element):
        ctx = populate(make_element("a"))
        ctx.selection.select_one("a")
        ctx.transform.begin()
        assert ctx.transform.update(rotation=20) == []
        assert ctx.transform.end().rotation == pytest.approx(20)

    def test_scale_absorbed_into_size(self, populate, make_element):
        ctx = populate(make_element("a", 0, 0, 100, 40))
        ctx.selection.select_one("a")
        ctx.transform.begin()
        ctx.transform.update(x=-10, y=5, scale_x=1.5, scale_y=0.5)
        el = ctx.transform.end()
        assert (el.x, el.y, el.width, el.height) == pytest.approx((-10, 5, 150, 20))

    @pytest.mark.parametrize("sx,sy", [(0.01, 1.0), (1.0, 0.001), (0.0, 0.0)])
    def test_min_size_floor(self, populate, make_element, sx, sy):
        ctx = populate(make_element("a", 0, 0, 100, 100))
        ctx.selection.select_one("a")
        ctx.transform.begin()
        ctx.transform.update(scale_x=sx, scale_y=sy)
        el = ctx.transform.end()
        if sx < 1:
            assert el.width == MIN_SIZE
        if sy < 1:
            assert el.height == MIN_SIZE

    def test_requires_exactly_one_selected(self, populate, make_element):
        ctx = populate(make_element("a"), make_element("b", 200, 0))
        assert not ctx.transform.begin()
        ctx.selection.set_all(["a", "b"])
        assert not ctx.transform.begin()
        ctx.selection.select_one("a")
        assert not ctx.transform.begin("b")
        assert ctx.transform.begin("a")

    def test_snapped_rotation_keeps_centre(self, populate, make_element):
        ctx = populate(make_element("a", 0, 0, 200, 100))
        ctx.selection.select_one("a")
        ctx.transform.begin("a")
        center = QPointF(100, 50)
        # the rotation handle moves the origin so the centre stays put
        origin = center - element_transform(0, 0, 43).map(QPointF(100, 50))
        ctx.transform.update(x=origin.x(), y=origin.y(), rotation=43)
        el = ctx.transform.end()
        assert el.rotation == 45
        c = el.center()
        assert (c.x(), c.y()) == pytest.approx((100, 50))

    def test_stray_end(self, ctx):
        assert ctx.transform.end() is None
        assert ctx.transform.state is GestureState.IDLE


class TestExclusivity:
    def test_only_one_gesture_at_a_time(self, populate, make_element):
        ctx = populate(make_element("a"))
        ctx.selection.select_one("a")
        assert ctx.drag.begin("a")
        assert ctx.active_gesture() == "drag"
        assert not ctx.marquee.begin(QPointF(500, 500))
        assert not ctx.pan.begin(QPointF(0, 0))
        assert not ctx.transform.begin("a")
        ctx.drag.end()
        assert ctx.pan.begin(QPointF(0, 0))
        assert not ctx.drag.begin("a")
        assert not ctx.marquee.begin(QPointF(500, 500))

    def test_shortcuts_ignored_during_gestures(self, populate, make_element):
        ctx = populate(make_element("a"), make_element("b", 300, 300))
        ctx.selection.select_one("a")
        ctx.copy()
        ctx.marquee.begin(QPointF(500, 500), modifier=True)
        assert not ctx.handle_key("delete")
        assert "a" in ctx.store
        ctx.marquee.end()

        ctx.drag.begin("b")
        assert not ctx.handle_key("v", modifier=True)
        ctx.drag.end()
        assert len(ctx.store) == 2
        # shortcuts work again once idle
        assert ctx.handle_key("v", modifier=True)
        assert ctx.selection.ids() == ("new-1",)

    def test_pan_moves_viewport(self, ctx):
        ctx.pan.begin(QPointF(10, 10))
        ctx.pan.move(QPointF(25, 5))
        ctx.pan.move(QPointF(30, 0))
        assert ctx.pan.end()
        assert (ctx.viewport.pan.x(), ctx.viewport.pan.y()) == (20, -10)
        assert not ctx.pan.move(QPointF(100, 100))
