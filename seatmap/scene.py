from __future__ import annotations
import logging, math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from PySide6.QtCore import Qt, QRectF, QPointF, QSizeF, Signal
from PySide6.QtGui import QPainter, QPen, QPixmap, QTransform, QWheelEvent
from PySide6.QtWidgets import (
    QGraphicsScene, QGraphicsView, QGraphicsItem, QGraphicsRectItem, QGraphicsPixmapItem,
    QApplication, QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox
)

from .context import SceneContext
from .gestures import DragFrame
from .items import ElementItem, GuideItem, MarqueeItem, TransformHandle
from .models import GuideLine, LayoutElement
from .utils import BG_COLOR, GRID_STEP, MAJOR_EVERY, GRID_MAJOR, GRID_MINOR, element_transform

logger = logging.getLogger(__name__)


class SeatmapScene(QGraphicsScene):
    """
    Mirrors a SceneContext into graphics items. Scene coordinates are screen
    coordinates; every element lives under `self.world`, whose transform is the
    viewport's pan/zoom.
    """

    def __init__(self, ctx: SceneContext, parent=None):
        super().__init__(parent)
        self.ctx = ctx
        self.setItemIndexMethod(QGraphicsScene.NoIndex)
        self.world = QGraphicsRectItem()
        self.world.setFlag(QGraphicsItem.ItemHasNoContents, True)
        self.addItem(self.world)
        self._items: Dict[str, ElementItem] = {}
        self._guides: List[GuideItem] = []
        self._marquee = MarqueeItem(self.world)
        self._background: Optional[QGraphicsPixmapItem] = None
        self._background_ref: Optional[str] = None
        self.ctx.selection.on_change = self._apply_selection
        self.apply_viewport()

    # ---- sync from the engine ----
    def apply_viewport(self):
        self.world.setTransform(self.ctx.viewport.transform())
        self.update()

    def refresh(self):
        live = set()
        for z, el in enumerate(self.ctx.store):
            live.add(el.id)
            item = self._items.get(el.id)
            if item is None:
                item = ElementItem(el, self.world)
                self._items[el.id] = item
            else:
                item.sync(el)
            item.setZValue(z)
        for gone in set(self._items) - live:
            item = self._items.pop(gone)
            item.set_handles_visible(False)
            self.removeItem(item)
        self._apply_selection()
        self._apply_background()
        self.show_guides(self.ctx.guides())

    def _apply_selection(self):
        single = self.ctx.selection.single
        for element_id, item in self._items.items():
            item.set_highlight(element_id in self.ctx.selection)
            item.set_handles_visible(element_id == single and not self.ctx.drag.is_active)

    def _apply_background(self):
        ref = self.ctx.background_ref
        if ref == self._background_ref:
            return
        self._background_ref = ref
        if self._background is not None:
            self.removeItem(self._background)
            self._background = None
        if ref and Path(ref).exists():
            self._background = QGraphicsPixmapItem(QPixmap(ref), self.world)
            self._background.setZValue(-1)
        elif ref:
            logger.info("background %s is not a local file, not drawn", ref)

    # ---- live gesture frames ----
    def show_frame(self, frame: Optional[DragFrame]):
        if frame is None:
            return
        for element_id, pos in frame.positions.items():
            item = self._items.get(element_id)
            if item is not None:
                item.setPos(pos)
        self.show_guides(frame.guides)

    def show_transform(self, element_id: str, pos: QPointF, width: float, height: float,
                       rotation: float, guides: List[GuideLine]):
        item = self._items.get(element_id)
        if item is not None:
            item.show_geometry(pos, width, height, rotation)
        self.show_guides(guides)

    def show_guides(self, guides: List[GuideLine]):
        for g in self._guides:
            self.removeItem(g)
        self._guides = [GuideItem(g, self.world) for g in guides]

    def show_marquee(self):
        rect = self.ctx.marquee.rect()
        self._marquee.setVisible(rect is not None)
        if rect is not None:
            self._marquee.setRect(rect)

    # ---- hit testing (scene == screen coordinates) ----
    def handle_at(self, screen_pt: QPointF) -> Optional[str]:
        for it in self.items(screen_pt):
            if isinstance(it, TransformHandle):
                return it.role
        return None

    def element_at(self, screen_pt: QPointF) -> Optional[str]:
        for it in self.items(screen_pt):
            if isinstance(it, ElementItem):
                return it.element_id
        return None

    def drawBackground(self, painter: QPainter, rect: QRectF):
        painter.fillRect(rect, BG_COLOR)
        vp = self.ctx.viewport
        area = QRectF(vp.to_world(rect.topLeft()), vp.to_world(rect.bottomRight()))
        step = GRID_STEP
        painter.save()
        painter.setTransform(vp.transform(), True)
        x = math.floor(area.left() / step) * step; i = int(round(x / step))
        while x < area.right():
            is_major = (i % MAJOR_EVERY == 0)
            pen = QPen(GRID_MAJOR if is_major else GRID_MINOR, 1)
            pen.setCosmetic(True)
            painter.setPen(pen)
            painter.drawLine(QPointF(x, area.top()), QPointF(x, area.bottom()))
            x += step; i += 1
        y = math.floor(area.top() / step) * step; j = int(round(y / step))
        while y < area.bottom():
            is_major = (j % MAJOR_EVERY == 0)
            pen = QPen(GRID_MAJOR if is_major else GRID_MINOR, 1)
            pen.setCosmetic(True)
            painter.setPen(pen)
            painter.drawLine(QPointF(area.left(), y), QPointF(area.right(), y))
            y += step; j += 1
        painter.restore()


@dataclass
class _PendingPress:
    element_id: str
    world: QPointF
    additive: bool


class SeatmapView(QGraphicsView):
    scaleChanged = Signal(float)
    layoutChanged = Signal()

    def __init__(self, scene: SeatmapScene):
        super().__init__(scene)
        self.ctx = scene.ctx
        self.setRenderHint(QPainter.Antialiasing, True)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setTransformationAnchor(QGraphicsView.NoAnchor)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self._space_down = False
        self._press: Optional[_PendingPress] = None
        self._handle_role: Optional[str] = None
        self._handle_element: Optional[LayoutElement] = None

    def _scene_pt(self, event) -> QPointF:
        return self.mapToScene(event.position().toPoint())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        vw = self.viewport().width(); vh = self.viewport().height()
        self.setSceneRect(0, 0, vw, vh)
        self.ctx.viewport_size = QSizeF(vw, vh)

    # ---- pointer ----
    def mousePressEvent(self, e):
        pt = self._scene_pt(e)
        self.ctx.track_pointer(pt)
        if e.button() == Qt.MiddleButton or (e.button() == Qt.LeftButton and self._space_down):
            if self.ctx.pan.begin(pt):
                self.viewport().setCursor(Qt.ClosedHandCursor)
            e.accept()
            return
        if e.button() != Qt.LeftButton:
            super().mousePressEvent(e)
            return

        sc: SeatmapScene = self.scene()
        role = sc.handle_at(pt)
        if role is not None:
            element = self.ctx.store.get(self.ctx.selection.single or "")
            if element is not None and self.ctx.transform.begin(element.id):
                self._handle_role, self._handle_element = role, element
            e.accept()
            return

        additive = bool(e.modifiers() & Qt.ShiftModifier)
        element_id = sc.element_at(pt)
        if element_id is not None:
            self._press = _PendingPress(element_id, self.ctx.viewport.to_world(pt), additive)
        elif self.ctx.marquee.begin(pt, additive):
            sc.show_marquee()
        e.accept()

    def mouseMoveEvent(self, e):
        pt = self._scene_pt(e)
        world = self.ctx.track_pointer(pt)
        sc: SeatmapScene = self.scene()
        if self.ctx.pan.is_active:
            self.ctx.pan.move(pt)
            sc.apply_viewport()
            return
        if self.ctx.marquee.is_active:
            self.ctx.marquee.update(pt)
            sc.show_marquee()
            return
        if self.ctx.transform.is_active:
            self._transform_to(world)
            return
        if self._press is not None and e.buttons() & Qt.LeftButton:
            # shift-press only toggles on release
            if self._press.additive:
                return
            if not self.ctx.drag.is_active:
                if not self.ctx.drag.begin(self._press.element_id):
                    self._press = None
                    return
                sc.refresh()
            start = self.ctx.drag.start_position(self._press.element_id)
            sc.show_frame(self.ctx.drag.move(start + (world - self._press.world)))
            return
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e):
        sc: SeatmapScene = self.scene()
        if self.ctx.pan.is_active:
            self.ctx.pan.end()
            self.viewport().unsetCursor()
            return
        if self.ctx.marquee.is_active:
            self.ctx.marquee.end()
            sc.show_marquee()
            sc.refresh()
            return
        if self.ctx.transform.is_active:
            self.ctx.transform.end()
            self._handle_role = self._handle_element = None
            sc.refresh()
            self.layoutChanged.emit()
            return
        if self.ctx.drag.is_active:
            self.ctx.drag.end()
            self._press = None
            sc.refresh()
            self.layoutChanged.emit()
            return
        if self._press is not None:
            self.ctx.selection.toggle(self._press.element_id, self._press.additive)
            self._press = None
            sc.refresh()
            return
        super().mouseReleaseEvent(e)

    def _transform_to(self, world: QPointF):
        el = self._handle_element
        role = self._handle_role
        if el is None or role is None:
            return
        sc: SeatmapScene = self.scene()
        if role == "rot":
            c = el.center()
            angle = math.degrees(math.atan2(world.y() - c.y(), world.x() - c.x())) + 90.0
            # keep the centre fixed while the pivot is the top-left corner
            origin = c - QTransform().rotate(angle).map(QPointF(el.width / 2.0, el.height / 2.0))
            guides = self.ctx.transform.update(x=origin.x(), y=origin.y(), rotation=angle)
            sc.show_transform(el.id, origin, el.width, el.height, angle, guides)
            return

        inverse, ok = element_transform(el.x, el.y, el.rotation).inverted()
        if not ok:
            return
        local = inverse.map(world)
        x0, y0, x1, y1 = 0.0, 0.0, el.width, el.height
        if "l" in role: x0 = min(local.x(), x1 - 1.0)
        else:           x1 = max(local.x(), x0 + 1.0)
        if "t" in role: y0 = min(local.y(), y1 - 1.0)
        else:           y1 = max(local.y(), y0 + 1.0)
        sx = (x1 - x0) / el.width
        sy = (y1 - y0) / el.height
        origin = element_transform(el.x, el.y, el.rotation).map(QPointF(x0, y0))
        guides = self.ctx.transform.update(x=origin.x(), y=origin.y(), scale_x=sx, scale_y=sy)
        sc.show_transform(el.id, origin, el.width * sx, el.height * sy, el.rotation, guides)

    def wheelEvent(self, event: QWheelEvent):
        pt = self.mapToScene(event.position().toPoint())
        scale = self.ctx.viewport.zoom_at(pt, event.angleDelta().y())
        self.scene().apply_viewport()
        self.scaleChanged.emit(scale)
        event.accept()

    # ---- keyboard ----
    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self._space_down = True
            self.viewport().setCursor(Qt.OpenHandCursor)
            event.accept()
            return
        key = event.key()
        if key == Qt.Key_Delete:
            name = "delete"
        elif key == Qt.Key_Backspace:
            name = "backspace"
        elif int(Qt.Key_A) <= int(key) <= int(Qt.Key_Z):
            name = chr(int(key)).lower()
        else:
            super().keyPressEvent(event)
            return
        modifier = bool(event.modifiers() & (Qt.ControlModifier | Qt.MetaModifier))
        focus = QApplication.focusWidget()
        in_text = isinstance(focus, (QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox))
        if self.ctx.handle_key(name, modifier, in_text):
            self.scene().refresh()
            self.layoutChanged.emit()
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event):
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self._space_down = False
            self.viewport().unsetCursor()
            event.accept()
            return
        super().keyReleaseEvent(event)
