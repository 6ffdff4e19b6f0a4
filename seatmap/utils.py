from __future__ import annotations
import math
from typing import Optional, Tuple
from PySide6.QtCore import QPointF, QRectF, QLineF
from PySide6.QtGui import QColor, QTransform

# ===== Canvas =====
STAGE_W = 780.0
STAGE_H = 750.0
GRID_STEP = 25.0
MAJOR_EVERY = 4

# ===== Geometry =====
MIN_SIZE = 5.0

# ===== Snapping =====
SNAP_THRESHOLD = 5.0                      # screen px, divided by the zoom scale
ROTATION_SNAP_ANGLES = (0.0, 45.0, 90.0, 135.0, 180.0, 225.0, 270.0, 315.0)
ROTATION_SNAP_THRESHOLD = 5.0             # degrees
ROTATION_EXACT_EPS = 0.1                  # degrees
ROTATION_GUIDE_LENGTH = 50.0              # screen px from the element centre

# ===== Viewport =====
MIN_SCALE = 0.5
MAX_SCALE = 10.0
ZOOM_STEP = 1.04

# ===== Placement =====
PASTE_OFFSET = 10.0                       # screen px
ADD_OFFSET = 50.0                         # screen px from the viewport origin
BACKGROUND_OPACITY = 0.95

# ===== Colors =====
GUIDE_COLOR = QColor(0, 161, 255)
GUIDE_DASH = (4.0, 6.0)
ROTATION_EXACT_COLOR = QColor(0, 255, 0)
ROTATION_NEAR_COLOR = QColor(255, 0, 255)
ROTATION_GUIDE_DASH = (4.0, 4.0)
MARQUEE_FILL = QColor(0, 161, 255, 40)
MARQUEE_BORDER = QColor(0, 161, 255)
SELECTED_BORDER = QColor(255, 140, 0)
ELEMENT_BORDER = QColor("#334155")
HANDLE_FILL = QColor(255, 255, 255)
HANDLE_BORDER = QColor(80, 80, 80)
BG_COLOR = QColor("#F2F4F7")
GRID_MINOR = QColor("#E2E6EC")
GRID_MAJOR = QColor("#C4CCD8")

KIND_COLORS = {
    "TABLE": "#aed9e0",
    "DANCEFLOOR": "#f5f5f5",
    "DJ_BOOTH": "#d2b48c",
    "STAGE": "#b0c4de",
    "BAR": "#deb887",
    "ENTRANCE": "#90ee90",
    "WALL": "#696969",
}
DEFAULT_ELEMENT_COLOR = "#e0e0e0"


def element_color(kind: str, color: Optional[str] = None) -> QColor:
    return QColor(color or KIND_COLORS.get(kind, DEFAULT_ELEMENT_COLOR))


def normalize_angle(deg: float) -> float:
    """Map any angle in degrees into [0, 360)."""
    a = math.fmod(float(deg), 360.0)
    if a < 0:
        a += 360.0
    # -1e-17 + 360 rounds to 360.0
    if a >= 360.0:
        a = 0.0
    return a


def angle_distance(a: float, b: float) -> float:
    d = abs(normalize_angle(a) - normalize_angle(b))
    return min(d, 360.0 - d)


def rect_from_points(p1: QPointF, p2: QPointF) -> QRectF:
    return QRectF(p1, p2).normalized()


def rects_intersect(a: QRectF, b: QRectF) -> bool:
    # touching edges count as overlap
    return not (
        a.right()  < b.left()  or
        a.left()   > b.right() or
        a.bottom() < b.top()   or
        a.top()    > b.bottom()
    )


def element_transform(x: float, y: float, rotation: float) -> QTransform:
    """Local -> world transform of an element; rotation pivots on the top-left corner."""
    t = QTransform()
    t.translate(x, y)
    t.rotate(rotation)
    return t


def bounding_rect(x: float, y: float, w: float, h: float, rotation: float = 0.0) -> QRectF:
    if abs(math.fmod(rotation, 360.0)) < 1e-12:
        return QRectF(x, y, w, h)
    return element_transform(x, y, rotation).mapRect(QRectF(0, 0, w, h))


def rotated_center(x: float, y: float, w: float, h: float, rotation: float = 0.0) -> QPointF:
    if abs(math.fmod(rotation, 360.0)) < 1e-12:
        return QPointF(x + w / 2.0, y + h / 2.0)
    return element_transform(x, y, rotation).map(QPointF(w / 2.0, h / 2.0))


def vertical_refs(r: QRectF) -> Tuple[float, float, float]:
    return (r.left(), r.left() + r.width() / 2.0, r.right())


def horizontal_refs(r: QRectF) -> Tuple[float, float, float]:
    return (r.top(), r.top() + r.height() / 2.0, r.bottom())


def line_through(center: QPointF, angle_deg: float, half_length: float) -> QLineF:
    rad = math.radians(angle_deg)
    dx = math.cos(rad) * half_length
    dy = math.sin(rad) * half_length
    return QLineF(center.x() - dx, center.y() - dy, center.x() + dx, center.y() + dy)
