from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from .models import ElementKind, LayoutElement, LayoutError

logger = logging.getLogger(__name__)


class ElementStore:
    """
    Ordered id -> LayoutElement map, the single source of truth for geometry.
    Every mutation is synchronous; `on_removed` receives the ids that left the
    store so that the selection can be pruned.
    """

    def __init__(self, on_removed: Optional[Callable[[Set[str]], None]] = None,
                 on_change: Optional[Callable[[], None]] = None):
        self._elements: Dict[str, LayoutElement] = {}
        self.on_removed = on_removed
        self.on_change = on_change

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[LayoutElement]:
        return iter(list(self._elements.values()))

    def _changed(self):
        if self.on_change:
            self.on_change()

    def get(self, element_id: str) -> Optional[LayoutElement]:
        return self._elements.get(element_id)

    def get_all(self) -> List[LayoutElement]:
        return list(self._elements.values())

    def ids(self) -> List[str]:
        return list(self._elements)

    def add(self, element: LayoutElement) -> LayoutElement:
        if element.id in self._elements:
            raise LayoutError(f"duplicate element id {element.id!r}")
        self._elements[element.id] = element
        self._changed()
        return element

    def update(self, element_id: str, **attrs) -> Optional[LayoutElement]:
        current = self._elements.get(element_id)
        if current is None:
            logger.warning("update skipped, no element %s", element_id)
            return None
        if "id" in attrs and attrs["id"] != element_id:
            raise LayoutError("element id cannot be changed")
        updated = current.with_changes(**attrs)
        self._elements[element_id] = updated
        self._changed()
        return updated

    def remove(self, ids: Iterable[str]) -> Set[str]:
        removed: Set[str] = set()
        for i in ids:
            if self._elements.pop(i, None) is not None:
                removed.add(i)
        if removed:
            if self.on_removed:
                self.on_removed(removed)
            self._changed()
        return removed

    def replace_all(self, elements: Iterable[LayoutElement]):
        incoming: Dict[str, LayoutElement] = {}
        for el in elements:
            if el.id in incoming:
                logger.warning("duplicate element id %s dropped", el.id)
                continue
            incoming[el.id] = el
        gone = set(self._elements) - set(incoming)
        self._elements = incoming
        if gone and self.on_removed:
            self.on_removed(gone)
        self._changed()

    # ---- stats for the host ----
    def tables(self) -> List[LayoutElement]:
        return [el for el in self._elements.values() if el.kind == ElementKind.TABLE]

    def table_count(self) -> int:
        return len(self.tables())

    def seat_total(self) -> int:
        return sum(el.seat_count for el in self.tables() if el.seat_count is not None)

    def existing_table_labels(self, exclude_id: Optional[str] = None) -> List[str]:
        return [el.label for el in self.tables() if el.id != exclude_id and el.label is not None]
