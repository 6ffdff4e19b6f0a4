from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple
from PySide6.QtCore import QLineF, QPointF, QRectF

from .models import GuideLine
from .utils import (SNAP_THRESHOLD, ROTATION_SNAP_ANGLES, ROTATION_SNAP_THRESHOLD, ROTATION_EXACT_EPS,
                    ROTATION_GUIDE_LENGTH, GUIDE_COLOR, GUIDE_DASH, ROTATION_EXACT_COLOR,
                    ROTATION_NEAR_COLOR, ROTATION_GUIDE_DASH, normalize_angle, angle_distance,
                    vertical_refs, horizontal_refs, line_through)

logger = logging.getLogger(__name__)


@dataclass
class SnapResult:
    guides: List[GuideLine] = field(default_factory=list)
    dx: Optional[float] = None
    dy: Optional[float] = None

    @property
    def snapped(self) -> bool:
        return self.dx is not None or self.dy is not None

    @property
    def correction(self) -> QPointF:
        return QPointF(self.dx or 0.0, self.dy or 0.0)


@dataclass
class RotationSnap:
    guides: List[GuideLine] = field(default_factory=list)
    snapped_angle: Optional[float] = None
    exact: bool = False


def compute_snap(active: QRectF, candidates: Iterable[Tuple[str, QRectF]],
                 threshold: float = SNAP_THRESHOLD, scale: float = 1.0) -> SnapResult:
    """
    Nearest edge/centre alignment of `active` against every candidate box.

    Both axes are searched independently over left/centre/right (vertical
    lines) and top/centre/bottom (horizontal lines). A pair counts only when
    its distance is strictly below threshold / scale, so the snap distance
    stays constant on screen whatever the zoom.
    """
    limit = threshold / scale
    min_x = min_y = limit
    best_x: Optional[Tuple[float, float, str, QRectF]] = None
    best_y: Optional[Tuple[float, float, str, QRectF]] = None

    active_v = vertical_refs(active)
    active_h = horizontal_refs(active)
    for other_id, other in candidates:
        for a in active_v:
            for o in vertical_refs(other):
                d = abs(a - o)
                if d < min_x:
                    min_x = d
                    best_x = (o - a, o, other_id, other)
        for a in active_h:
            for o in horizontal_refs(other):
                d = abs(a - o)
                if d < min_y:
                    min_y = d
                    best_y = (o - a, o, other_id, other)

    result = SnapResult()
    if best_x is not None:
        dx, target, other_id, other = best_x
        y1 = min(active.top(), other.top())
        y2 = max(active.bottom(), other.bottom())
        result.dx = dx
        result.guides.append(GuideLine(f"v-{other_id}-{target:g}", QLineF(target, y1, target, y2),
                                       GUIDE_COLOR, GUIDE_DASH))
    if best_y is not None:
        dy, target, other_id, other = best_y
        x1 = min(active.left(), other.left())
        x2 = max(active.right(), other.right())
        result.dy = dy
        result.guides.append(GuideLine(f"h-{other_id}-{target:g}", QLineF(x1, target, x2, target),
                                       GUIDE_COLOR, GUIDE_DASH))
    if result.snapped:
        logger.debug("snap dx=%s dy=%s", result.dx, result.dy)
    return result


def compute_rotation_snap(angle: float, center: Optional[QPointF] = None, scale: float = 1.0,
                          angles: Sequence[float] = ROTATION_SNAP_ANGLES,
                          threshold: float = ROTATION_SNAP_THRESHOLD,
                          exact_eps: float = ROTATION_EXACT_EPS,
                          guide_length: float = ROTATION_GUIDE_LENGTH) -> RotationSnap:
    """Nearest standard angle within `threshold` degrees (inclusive), with its guide."""
    normalized = normalize_angle(angle)
    best: Optional[float] = None
    best_d = threshold
    for target in angles:
        d = angle_distance(normalized, target)
        if d <= threshold and (best is None or d < best_d):
            best, best_d = normalize_angle(target), d

    if best is None:
        return RotationSnap()
    exact = best_d < exact_eps
    guides: List[GuideLine] = []
    if center is not None:
        color = ROTATION_EXACT_COLOR if exact else ROTATION_NEAR_COLOR
        guides.append(GuideLine(f"rot-snap-{best:g}", line_through(center, best, guide_length / scale),
                                color, ROTATION_GUIDE_DASH))
    return RotationSnap(guides, best, exact)
