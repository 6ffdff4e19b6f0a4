import pytest
from PySide6.QtCore import QPointF

from seatmap.viewport import ViewportController


def assert_point(p, x, y):
    assert p.x() == pytest.approx(x)
    assert p.y() == pytest.approx(y)


class TestViewportController:
    def test_world_screen_roundtrip(self):
        vp = ViewportController(scale=2.0, pan=QPointF(30, -10))
        assert_point(vp.to_world(QPointF(130, 90)), 50, 50)
        assert_point(vp.to_screen(QPointF(50, 50)), 130, 90)

    def test_zoom_preserves_anchor(self):
        vp = ViewportController(scale=1.5, pan=QPointF(20, 40))
        anchor = QPointF(300, 200)
        before = vp.to_world(anchor)
        vp.zoom_at(anchor, 120)
        assert vp.scale == pytest.approx(1.5 * 1.04)
        assert_point(vp.to_world(anchor), before.x(), before.y())

    def test_zoom_direction_follows_wheel_sign(self):
        vp = ViewportController()
        vp.zoom_at(QPointF(0, 0), -120)
        assert vp.scale == pytest.approx(1 / 1.04)
        assert vp.zoom_at(QPointF(0, 0), 0) == pytest.approx(1 / 1.04)

    def test_scale_is_clamped(self):
        vp = ViewportController(scale=9.9)
        for _ in range(10):
            vp.zoom_at(QPointF(5, 5), 120)
        assert vp.scale == 10.0
        vp.set_scale(0.01, QPointF(0, 0))
        assert vp.scale == 0.5

    def test_bad_limits(self):
        with pytest.raises(ValueError):
            ViewportController(min_scale=0)

    def test_pan_and_reset(self):
        vp = ViewportController(scale=3)
        vp.pan_by(QPointF(10, 5))
        vp.pan_by(QPointF(-4, 1))
        assert_point(vp.pan, 6, 6)
        vp.reset()
        assert vp.scale == 1.0
        assert_point(vp.pan, 0, 0)

    def test_world_rect(self):
        vp = ViewportController(scale=2, pan=QPointF(-100, -50))
        r = vp.world_rect(400, 300)
        assert (r.left(), r.top(), r.width(), r.height()) == pytest.approx((50, 25, 200, 150))
