from __future__ import annotations
import math, re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple
from PySide6.QtCore import QLineF, QPointF, QRectF
from PySide6.QtGui import QColor

from .utils import (MIN_SIZE, SNAP_THRESHOLD, ROTATION_SNAP_ANGLES, ROTATION_SNAP_THRESHOLD,
                    ROTATION_EXACT_EPS, ROTATION_GUIDE_LENGTH, MIN_SCALE, MAX_SCALE, ZOOM_STEP,
                    PASTE_OFFSET, ADD_OFFSET, normalize_angle, bounding_rect, rotated_center)


class LayoutError(ValueError):
    """Element data that cannot form a valid LayoutElement."""


class ElementKind:
    TABLE = "TABLE"
    DANCEFLOOR = "DANCEFLOOR"
    DJ_BOOTH = "DJ_BOOTH"
    ENTRANCE = "ENTRANCE"
    STAGE = "STAGE"
    WALL = "WALL"
    BAR = "BAR"
    OTHER = "OTHER"
    ALL = (TABLE, DANCEFLOOR, DJ_BOOTH, ENTRANCE, STAGE, WALL, BAR, OTHER)


class TableShape:
    RECTANGLE = "RECTANGLE"
    CIRCLE = "CIRCLE"
    ALL = (RECTANGLE, CIRCLE)


class CornerStyle:
    STRAIGHT = "STRAIGHT"
    ROUNDED = "ROUNDED"
    ALL = (STRAIGHT, ROUNDED)


_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# identity and placement are never copied to the clipboard
COPY_EXCLUDED = ("id", "persisted_id", "x", "y")


def _finite(name: str, value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise LayoutError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise LayoutError(f"{name} must be finite, got {value!r}")
    return v


@dataclass
class LayoutElement:
    id: str
    kind: str
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    rotation: float = 0.0
    label: Optional[str] = None
    opacity: float = 1.0
    color: Optional[str] = None
    corner_style: str = CornerStyle.STRAIGHT
    # TABLE only
    shape: Optional[str] = None
    seat_count: Optional[int] = None
    # id given by the external store, None until the first save
    persisted_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise LayoutError(f"element id must be a non-empty string, got {self.id!r}")
        if self.kind not in ElementKind.ALL:
            raise LayoutError(f"unknown element kind {self.kind!r}")
        if self.corner_style not in CornerStyle.ALL:
            raise LayoutError(f"unknown corner style {self.corner_style!r}")

        if self.kind == ElementKind.TABLE:
            if self.shape is not None and self.shape not in TableShape.ALL:
                raise LayoutError(f"unknown table shape {self.shape!r}")
            if self.seat_count is not None:
                try:
                    self.seat_count = int(self.seat_count)
                except (TypeError, ValueError):
                    raise LayoutError(f"seat count must be an integer, got {self.seat_count!r}") from None
                if self.seat_count < 0:
                    raise LayoutError(f"seat count must be >= 0, got {self.seat_count}")
        elif self.shape is not None or self.seat_count is not None:
            raise LayoutError(f"{self.kind} element {self.id} cannot carry table fields")

        if self.color is not None and not (isinstance(self.color, str) and _HEX_COLOR.match(self.color)):
            raise LayoutError(f"color must be #RRGGBB, got {self.color!r}")
        if self.label is not None and not isinstance(self.label, str):
            raise LayoutError(f"label must be a string, got {self.label!r}")

        self.x = _finite("x", self.x)
        self.y = _finite("y", self.y)
        self.width = max(MIN_SIZE, _finite("width", self.width))
        self.height = max(MIN_SIZE, _finite("height", self.height))
        if self.is_circle:
            self.height = self.width
        self.rotation = normalize_angle(_finite("rotation", self.rotation))
        self.opacity = min(1.0, max(0.0, _finite("opacity", self.opacity)))

    @property
    def is_table(self) -> bool:
        return self.kind == ElementKind.TABLE

    @property
    def is_circle(self) -> bool:
        return self.shape == TableShape.CIRCLE

    def pos(self) -> QPointF:
        return QPointF(self.x, self.y)

    def rect(self) -> QRectF:
        return QRectF(self.x, self.y, self.width, self.height)

    def bounding_rect(self) -> QRectF:
        """World-space axis-aligned box, rotation included."""
        return bounding_rect(self.x, self.y, self.width, self.height, self.rotation)

    def center(self) -> QPointF:
        return rotated_center(self.x, self.y, self.width, self.height, self.rotation)

    def with_changes(self, **changes) -> "LayoutElement":
        try:
            return replace(self, **changes)
        except TypeError as e:
            raise LayoutError(str(e)) from None

    def attributes(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in COPY_EXCLUDED}


@dataclass(frozen=True)
class ClipboardEntry:
    attributes: Dict[str, Any]

    @classmethod
    def from_element(cls, element: LayoutElement) -> "ClipboardEntry":
        return cls(element.attributes())

    @property
    def label(self) -> Optional[str]:
        return self.attributes.get("label")

    def materialize(self, element_id: str, pos: QPointF) -> LayoutElement:
        return LayoutElement(id=element_id, x=pos.x(), y=pos.y(), **self.attributes)


@dataclass(frozen=True)
class GuideLine:
    key: str
    line: QLineF
    color: QColor
    dash: Tuple[float, ...] = ()

    @property
    def is_vertical(self) -> bool:
        return self.line.x1() == self.line.x2()


@dataclass
class Layout:
    elements: List[LayoutElement] = field(default_factory=list)
    background_ref: Optional[str] = None


@dataclass
class EditorConfig:
    snap_threshold: float = SNAP_THRESHOLD
    rotation_snap_angles: Tuple[float, ...] = ROTATION_SNAP_ANGLES
    rotation_snap_threshold: float = ROTATION_SNAP_THRESHOLD
    rotation_exact_eps: float = ROTATION_EXACT_EPS
    rotation_guide_length: float = ROTATION_GUIDE_LENGTH
    min_scale: float = MIN_SCALE
    max_scale: float = MAX_SCALE
    zoom_step: float = ZOOM_STEP
    paste_offset: float = PASTE_OFFSET
    add_offset: float = ADD_OFFSET
