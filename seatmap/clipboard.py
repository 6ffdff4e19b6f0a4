from __future__ import annotations
import logging
from typing import Callable, Optional
from PySide6.QtCore import QPointF

from .models import ClipboardEntry, LayoutElement
from .selection import SelectionManager
from .store import ElementStore

logger = logging.getLogger(__name__)


class Clipboard:
    """Single slot: each copy overwrites the previous entry."""

    def __init__(self):
        self._entry: Optional[ClipboardEntry] = None

    @property
    def entry(self) -> Optional[ClipboardEntry]:
        return self._entry

    @property
    def has_entry(self) -> bool:
        return self._entry is not None

    def copy(self, selection: SelectionManager, store: ElementStore) -> Optional[ClipboardEntry]:
        # only the most recently selected element is remembered
        last = selection.last
        if last is None:
            return None
        element = store.get(last)
        if element is None:
            logger.warning("copy skipped, selected element %s is gone", last)
            return None
        self._entry = ClipboardEntry.from_element(element)
        logger.info("copied %s", element.label or element.kind)
        return self._entry

    def paste(self, world_pos: QPointF, offset: QPointF, store: ElementStore,
              selection: SelectionManager, new_id: Callable[[], str]) -> Optional[LayoutElement]:
        if self._entry is None:
            return None
        element = store.add(self._entry.materialize(new_id(), world_pos + offset))
        selection.set_all([element.id])
        logger.info("pasted %s as %s", element.label or element.kind, element.id)
        return element
