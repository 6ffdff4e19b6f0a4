from __future__ import annotations
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class SelectionManager:
    """Ordered set of selected element ids; the order is the order of selection."""

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._ids: List[str] = []
        self.on_change = on_change

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._ids)

    @property
    def last(self) -> Optional[str]:
        return self._ids[-1] if self._ids else None

    @property
    def single(self) -> Optional[str]:
        return self._ids[0] if len(self._ids) == 1 else None

    def is_selected(self, element_id: str) -> bool:
        return element_id in self._ids

    def _replace(self, ids: List[str]) -> bool:
        if ids == self._ids:
            return False
        self._ids = ids
        if self.on_change:
            self.on_change()
        return True

    def select_one(self, element_id: str) -> bool:
        # clicking the sole selected element keeps the selection as is
        if self._ids == [element_id]:
            return False
        return self._replace([element_id])

    def toggle(self, element_id: str, modifier: bool = False) -> bool:
        if not modifier:
            return self.select_one(element_id)
        if element_id in self._ids:
            return self.discard(element_id)
        return self._replace(self._ids + [element_id])

    def add(self, element_id: str) -> bool:
        if element_id in self._ids:
            return False
        return self._replace(self._ids + [element_id])

    def discard(self, element_id: str) -> bool:
        if element_id not in self._ids:
            return False
        return self._replace([i for i in self._ids if i != element_id])

    def clear(self) -> bool:
        return self._replace([])

    def set_all(self, ids: Iterable[str]) -> bool:
        ordered: List[str] = []
        for i in ids:
            if i not in ordered:
                ordered.append(i)
        return self._replace(ordered)

    def prune(self, removed: Iterable[str]) -> bool:
        gone = set(removed)
        if not gone.intersection(self._ids):
            return False
        logger.debug("pruning %d removed ids from selection", len(gone.intersection(self._ids)))
        return self._replace([i for i in self._ids if i not in gone])
