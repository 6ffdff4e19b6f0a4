from __future__ import annotations
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from PySide6.QtCore import QPointF

from .models import ElementKind, TableShape, CornerStyle, LayoutElement
from .utils import BACKGROUND_OPACITY


def new_element_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ElementTemplate:
    """What the palette hands over when the user adds an element."""
    kind: str
    label: str
    width: float
    height: float
    shape: Optional[str] = None
    seat_count: Optional[int] = None
    opacity: float = 1.0
    color: Optional[str] = None
    corner_style: Optional[str] = None


PALETTE: Tuple[ElementTemplate, ...] = (
    ElementTemplate(ElementKind.TABLE, "Rectangular table", 120, 50, TableShape.RECTANGLE, 8,
                    color="#f5f5f5", corner_style=CornerStyle.ROUNDED),
    ElementTemplate(ElementKind.TABLE, "Round table", 100, 100, TableShape.CIRCLE, 10, color="#f5f5f5"),
    ElementTemplate(ElementKind.DANCEFLOOR, "Dance floor", 200, 200),
    ElementTemplate(ElementKind.DJ_BOOTH, "DJ booth", 100, 60),
    ElementTemplate(ElementKind.ENTRANCE, "Entrance", 80, 20),
    ElementTemplate(ElementKind.STAGE, "Stage", 200, 100),
    ElementTemplate(ElementKind.WALL, "Wall", 200, 10),
    ElementTemplate(ElementKind.BAR, "Bar", 180, 60),
    ElementTemplate(ElementKind.OTHER, "Other", 80, 80),
)


class ElementFactory:
    def __init__(self, id_factory: Callable[[], str] = new_element_id):
        self.new_id = id_factory

    def create_from_template(self, template: ElementTemplate, pos: QPointF,
                             has_background: bool = False) -> LayoutElement:
        # elements sit slightly translucent over a background image
        opacity = BACKGROUND_OPACITY if has_background else template.opacity
        return LayoutElement(
            id=self.new_id(),
            kind=template.kind,
            x=pos.x(), y=pos.y(),
            width=template.width, height=template.height,
            rotation=0.0,
            label=template.label,
            opacity=opacity,
            color=template.color,
            corner_style=template.corner_style or CornerStyle.STRAIGHT,
            shape=template.shape,
            seat_count=template.seat_count,
        )
