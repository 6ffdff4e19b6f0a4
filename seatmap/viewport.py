from __future__ import annotations
import logging
from typing import Optional
from PySide6.QtCore import QPointF, QRectF
from PySide6.QtGui import QTransform

from .utils import MIN_SCALE, MAX_SCALE, ZOOM_STEP

logger = logging.getLogger(__name__)


class ViewportController:
    """Pan offset + zoom scale. screen = world * scale + pan."""

    def __init__(self, scale: float = 1.0, pan: Optional[QPointF] = None,
                 min_scale: float = MIN_SCALE, max_scale: float = MAX_SCALE,
                 zoom_step: float = ZOOM_STEP):
        if min_scale <= 0 or max_scale < min_scale:
            raise ValueError(f"bad zoom limits [{min_scale}, {max_scale}]")
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.zoom_step = zoom_step
        self._scale = self.clamp(scale)
        self._pan = QPointF(pan) if pan is not None else QPointF(0.0, 0.0)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def pan(self) -> QPointF:
        return QPointF(self._pan)

    def clamp(self, scale: float) -> float:
        return min(max(scale, self.min_scale), self.max_scale)

    def transform(self) -> QTransform:
        return QTransform(self._scale, 0.0, 0.0, self._scale, self._pan.x(), self._pan.y())

    def to_world(self, screen_pt: QPointF) -> QPointF:
        return (screen_pt - self._pan) / self._scale

    def to_screen(self, world_pt: QPointF) -> QPointF:
        return world_pt * self._scale + self._pan

    def world_rect(self, width: float, height: float) -> QRectF:
        """World-space rectangle visible in a viewport of the given screen size."""
        return QRectF(self.to_world(QPointF(0, 0)), self.to_world(QPointF(width, height)))

    def set_scale(self, scale: float, anchor: QPointF) -> float:
        # the world point under the anchor stays under it
        world = self.to_world(anchor)
        self._scale = self.clamp(scale)
        self._pan = anchor - world * self._scale
        return self._scale

    def zoom_at(self, anchor: QPointF, wheel_delta: float) -> float:
        """Positive wheel delta zooms in by one step, negative zooms out."""
        if not wheel_delta:
            return self._scale
        new_scale = self._scale * self.zoom_step if wheel_delta > 0 else self._scale / self.zoom_step
        self.set_scale(new_scale, anchor)
        logger.debug("zoom %.3f at (%.1f, %.1f)", self._scale, anchor.x(), anchor.y())
        return self._scale

    def pan_by(self, delta: QPointF):
        self._pan = self._pan + delta

    def reset(self):
        self._scale = self.clamp(1.0)
        self._pan = QPointF(0.0, 0.0)
