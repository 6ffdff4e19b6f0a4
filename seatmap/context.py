from __future__ import annotations
import logging
from typing import Callable, List, Optional, Set, Tuple
from PySide6.QtCore import QPointF, QSizeF

from .clipboard import Clipboard
from .factory import ElementFactory, ElementTemplate, new_element_id
from .gestures import MarqueeSelector, DragCoordinator, TransformFinalizer, PanGesture
from .models import ClipboardEntry, EditorConfig, GuideLine, Layout, LayoutElement
from .selection import SelectionManager
from .state import LayoutBackend, LayoutStorageError
from .store import ElementStore
from .utils import STAGE_W, STAGE_H
from .viewport import ViewportController

logger = logging.getLogger(__name__)

DELETE_KEYS = ("delete", "backspace")


class SceneContext:
    """
    Everything a gesture handler may touch: element store, selection,
    viewport, clipboard and the gesture state machines themselves.
    """

    def __init__(self, backend: Optional[LayoutBackend] = None, config: Optional[EditorConfig] = None,
                 id_factory: Callable[[], str] = new_element_id):
        self.config = config or EditorConfig()
        self.backend = backend
        self.selection = SelectionManager()
        self.store = ElementStore(on_removed=self.selection.prune)
        self.viewport = ViewportController(min_scale=self.config.min_scale,
                                           max_scale=self.config.max_scale,
                                           zoom_step=self.config.zoom_step)
        self.clipboard = Clipboard()
        self.factory = ElementFactory(id_factory)
        self.background_ref: Optional[str] = None
        self.viewport_size = QSizeF(STAGE_W, STAGE_H)
        self.pointer_world: Optional[QPointF] = None

        self.marquee = MarqueeSelector(self)
        self.drag = DragCoordinator(self)
        self.transform = TransformFinalizer(self)
        self.pan = PanGesture(self)

    # ---- gestures ----
    def gestures(self):
        return (self.marquee, self.drag, self.transform, self.pan)

    def active_gesture(self) -> Optional[str]:
        for g in self.gestures():
            if g.is_active:
                return g.name
        return None

    def reset_gestures(self):
        for g in self.gestures():
            g._reset()

    def guides(self) -> List[GuideLine]:
        return self.drag.guides + self.transform.guides

    def track_pointer(self, screen_pt: QPointF) -> QPointF:
        self.pointer_world = self.viewport.to_world(screen_pt)
        return self.pointer_world

    def view_center(self) -> QPointF:
        return self.viewport.world_rect(self.viewport_size.width(), self.viewport_size.height()).center()

    # ---- element operations ----
    def add_element(self, template: ElementTemplate, pos: Optional[QPointF] = None) -> LayoutElement:
        if pos is None:
            offset = self.config.add_offset / self.viewport.scale
            pos = self.viewport.to_world(QPointF(0, 0)) + QPointF(offset, offset)
        element = self.factory.create_from_template(template, pos, has_background=bool(self.background_ref))
        self.store.add(element)
        self.selection.set_all([element.id])
        return element

    def update_element(self, element_id: str, **attrs) -> Optional[LayoutElement]:
        return self.store.update(element_id, **attrs)

    def delete_selected(self) -> Set[str]:
        ids = self.selection.ids()
        if not ids:
            return set()
        removed = self.store.remove(ids)
        self.selection.clear()
        logger.info("deleted %d elements", len(removed))
        return removed

    def copy(self) -> Optional[ClipboardEntry]:
        return self.clipboard.copy(self.selection, self.store)

    def paste(self, screen_pt: Optional[QPointF] = None) -> Optional[LayoutElement]:
        if screen_pt is not None:
            world = self.track_pointer(screen_pt)
        else:
            world = self.pointer_world if self.pointer_world is not None else self.view_center()
        step = self.config.paste_offset / self.viewport.scale
        return self.clipboard.paste(world, QPointF(step, step), self.store, self.selection,
                                    self.factory.new_id)

    def handle_key(self, key: str, modifier: bool = False, in_text_input: bool = False) -> bool:
        """Copy / paste / delete shortcuts; text inputs keep their own keys."""
        if in_text_input:
            return False
        running = self.active_gesture()
        if running is not None:
            logger.debug("shortcut %r ignored while %s is in progress", key, running)
            return False
        key = key.lower()
        if modifier and key == "c":
            self.copy()
            return True
        if modifier and key == "v":
            self.paste()
            return True
        if key in DELETE_KEYS and len(self.selection):
            self.delete_selected()
            return True
        return False

    def stats(self) -> Tuple[int, int]:
        return self.store.table_count(), self.store.seat_total()

    # ---- load / save boundary ----
    def _require_backend(self) -> LayoutBackend:
        if self.backend is None:
            raise LayoutStorageError("no layout backend configured")
        return self.backend

    def _apply_layout(self, layout: Layout):
        self.reset_gestures()
        self.store.replace_all(layout.elements)
        self.selection.clear()
        self.background_ref = layout.background_ref

    def load(self, scene_id: str) -> Layout:
        layout = self._require_backend().load_layout(scene_id)
        self._apply_layout(layout)
        return layout

    def save(self, scene_id: str) -> Layout:
        # a failed save leaves the in-memory layout untouched
        layout = self._require_backend().save_layout(scene_id, self.store.get_all(), self.background_ref)
        self._apply_layout(layout)
        return layout

    def discard_changes(self, scene_id: str) -> Layout:
        return self.load(scene_id)

    def set_background(self, ref: Optional[str]):
        self.background_ref = ref or None
