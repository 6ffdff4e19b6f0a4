from __future__ import annotations
from typing import Optional
from PySide6.QtCore import Qt, QRectF, QPointF
from PySide6.QtGui import QBrush, QColor, QPainter, QPen, QFont
from PySide6.QtWidgets import QGraphicsRectItem, QGraphicsLineItem, QGraphicsItem

from .models import LayoutElement, GuideLine, CornerStyle
from .utils import (ELEMENT_BORDER, SELECTED_BORDER, HANDLE_FILL, HANDLE_BORDER,
                    MARQUEE_FILL, MARQUEE_BORDER, element_color)

ROTATE_HANDLE_GAP = 24.0


class TransformHandle(QGraphicsRectItem):
    """Corner (tl/tr/bl/br) or rotation (rot) grip; constant size on screen."""
    SIZE = 10.0

    def __init__(self, owner: "ElementItem", role: str):
        s = self.SIZE
        super().__init__(-s / 2, -s / 2, s, s, owner)
        self.role = role
        self.setZValue(1000)
        self.setBrush(HANDLE_FILL)
        self.setPen(QPen(HANDLE_BORDER, 1))
        self.setFlag(QGraphicsItem.ItemIgnoresTransformations, True)
        self.setCursor({
            "tl": Qt.SizeFDiagCursor, "br": Qt.SizeFDiagCursor,
            "tr": Qt.SizeBDiagCursor, "bl": Qt.SizeBDiagCursor,
            "rot": Qt.CrossCursor,
        }[role])

    def paint(self, painter: QPainter, option, widget=None):
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setPen(self.pen())
        painter.setBrush(self.brush())
        if self.role == "rot":
            painter.drawEllipse(self.rect())
        else:
            painter.drawRect(self.rect())


class ElementItem(QGraphicsRectItem):
    """Draws one LayoutElement. Geometry always comes from the store or a live gesture frame."""

    def __init__(self, element: LayoutElement, parent: Optional[QGraphicsItem] = None):
        super().__init__(parent)
        self.element_id = element.id
        self._element = element
        self._highlight = False
        self._handles = []
        self.setAcceptHoverEvents(True)
        self.sync(element)

    @property
    def element(self) -> LayoutElement:
        return self._element

    def sync(self, element: LayoutElement):
        self._element = element
        self.show_geometry(element.pos(), element.width, element.height, element.rotation)
        self.setOpacity(element.opacity)
        self.update_tooltip()

    def show_geometry(self, pos: QPointF, width: float, height: float, rotation: float):
        self.setPos(pos)
        self.setRect(QRectF(0, 0, width, height))
        self.setRotation(rotation)
        self._layout_handles()

    def set_highlight(self, on: bool):
        if on != self._highlight:
            self._highlight = on
            self.update()

    def update_tooltip(self):
        el = self._element
        seats = f"\nSeats: {el.seat_count}" if el.seat_count is not None else ""
        self.setToolTip(
            f"{el.kind}: {el.label or '(no label)'}\n"
            f"Size: {el.width:.0f} × {el.height:.0f}{seats}"
        )

    # ---- handles ----
    def set_handles_visible(self, on: bool):
        if on and not self._handles:
            self._handles = [TransformHandle(self, role) for role in ("tl", "tr", "bl", "br", "rot")]
            self._layout_handles()
        elif not on and self._handles:
            for h in self._handles:
                h.setParentItem(None)
                if self.scene():
                    self.scene().removeItem(h)
            self._handles = []

    def _layout_handles(self):
        r = self.rect()
        for h in self._handles:
            if   h.role == "tl":  h.setPos(r.left(),  r.top())
            elif h.role == "tr":  h.setPos(r.right(), r.top())
            elif h.role == "bl":  h.setPos(r.left(),  r.bottom())
            elif h.role == "br":  h.setPos(r.right(), r.bottom())
            else:                 h.setPos(r.center().x(), r.top() - ROTATE_HANDLE_GAP)

    def paint(self, painter: QPainter, option, widget=None):
        painter.setRenderHint(QPainter.Antialiasing, True)
        el = self._element
        r = self.rect()
        if self._highlight:
            pen = QPen(SELECTED_BORDER, 2, Qt.DashLine)
        else:
            pen = QPen(ELEMENT_BORDER, 1, Qt.SolidLine)
        pen.setCosmetic(True)
        painter.setPen(pen)
        painter.setBrush(QBrush(element_color(el.kind, el.color)))
        if el.is_circle:
            painter.drawEllipse(r)
        elif el.corner_style == CornerStyle.ROUNDED:
            painter.drawRoundedRect(r, 8, 8)
        else:
            painter.drawRect(r)

        if el.label:
            painter.setPen(QColor("#111827"))
            painter.setFont(QFont("", 8, QFont.DemiBold))
            painter.drawText(r, Qt.AlignCenter, el.label)


class GuideItem(QGraphicsLineItem):
    def __init__(self, guide: GuideLine, parent: Optional[QGraphicsItem] = None):
        super().__init__(guide.line, parent)
        self.key = guide.key
        pen = QPen(guide.color, 1)
        pen.setCosmetic(True)
        if guide.dash:
            pen.setDashPattern(list(guide.dash))
        self.setPen(pen)
        self.setZValue(2000)


class MarqueeItem(QGraphicsRectItem):
    def __init__(self, parent: Optional[QGraphicsItem] = None):
        super().__init__(parent)
        pen = QPen(MARQUEE_BORDER, 1, Qt.DashLine)
        pen.setCosmetic(True)
        self.setPen(pen)
        self.setBrush(QBrush(MARQUEE_FILL))
        self.setZValue(3000)
        self.setVisible(False)
