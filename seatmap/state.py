from __future__ import annotations
import json, logging, os, re, uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from .models import CornerStyle, ElementKind, Layout, LayoutElement, LayoutError
from .utils import MIN_SIZE

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
_SAFE_SCENE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class LayoutStorageError(RuntimeError):
    """The layout backend could not read or write a layout."""


class LayoutBackend(Protocol):
    def load_layout(self, scene_id: str) -> Layout: ...

    def save_layout(self, scene_id: str, elements: List[LayoutElement],
                    background_ref: Optional[str]) -> Layout: ...


def new_persisted_id() -> str:
    return uuid.uuid4().hex


def element_to_dict(el: LayoutElement) -> Dict[str, Any]:
    return {
        "id": el.persisted_id,
        "type": el.kind,
        "x": el.x, "y": el.y,
        "width": el.width, "height": el.height,
        "rotation": el.rotation,
        "label": el.label,
        "opacity": el.opacity,
        "color": el.color,
        "cornerStyle": el.corner_style,
        "shape": el.shape,
        "numberOfSeats": el.seat_count,
    }


def _size(raw: Dict, key: str) -> float:
    # missing or non-positive sizes are clamped instead of rejected
    v = raw.get(key)
    if v is None:
        return MIN_SIZE
    try:
        return max(MIN_SIZE, float(v))
    except (TypeError, ValueError):
        raise LayoutError(f"{key} must be a number, got {v!r}") from None


def _label(v: Any) -> Optional[str]:
    # numeric labels are kept as text
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return f"{v:g}"
    raise LayoutError(f"label must be a string, got {v!r}")


def element_from_dict(raw: Dict[str, Any]) -> LayoutElement:
    if not isinstance(raw, dict):
        raise LayoutError(f"element must be an object, got {type(raw).__name__}")
    kind = raw.get("type")
    shape = raw.get("shape")
    seats = raw.get("numberOfSeats")
    if kind != ElementKind.TABLE and (shape is not None or seats is not None):
        logger.warning("dropping table fields from %s element %s", kind, raw.get("id"))
        shape = seats = None
    persisted = raw.get("id") or None
    return LayoutElement(
        id=persisted or uuid.uuid4().hex,
        kind=kind,
        x=raw.get("x", 0.0), y=raw.get("y", 0.0),
        width=_size(raw, "width"), height=_size(raw, "height"),
        rotation=raw.get("rotation") or 0.0,
        label=_label(raw.get("label")),
        opacity=1.0 if raw.get("opacity") is None else raw["opacity"],
        color=raw.get("color"),
        corner_style=raw.get("cornerStyle") or CornerStyle.STRAIGHT,
        shape=shape,
        seat_count=seats,
        persisted_id=persisted,
    )


class LayoutState:
    """Layout <-> JSON document."""

    def serialize(self, elements: Iterable[LayoutElement], background_ref: Optional[str]) -> Dict:
        return {
            "version": FORMAT_VERSION,
            "elements": [element_to_dict(el) for el in elements],
            "backgroundUrl": background_ref,
        }

    def deserialize(self, data: Dict) -> Layout:
        if not isinstance(data, dict):
            raise LayoutStorageError("layout document must be a JSON object")
        raw_elements = data.get("elements")
        if raw_elements is None:
            raw_elements = []
        if not isinstance(raw_elements, list):
            raise LayoutStorageError(f"elements must be a list, got {type(raw_elements).__name__}")
        elements: List[LayoutElement] = []
        seen = set()
        for raw in raw_elements:
            try:
                el = element_from_dict(raw)
            except LayoutError as e:
                logger.warning("skipping invalid element: %s", e)
                continue
            if el.id in seen:
                logger.warning("skipping duplicate element id %s", el.id)
                continue
            seen.add(el.id)
            elements.append(el)
        background = data.get("backgroundUrl") or None
        if background is not None and not isinstance(background, str):
            logger.warning("ignoring non-string backgroundUrl %r", background)
            background = None
        return Layout(elements, background)


class JsonLayoutBackend:
    """One `<scene_id>.json` per scene, replaced wholesale on every save."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.state = LayoutState()

    def path_for(self, scene_id: str) -> Path:
        if not _SAFE_SCENE_ID.match(scene_id or ""):
            raise LayoutStorageError(f"invalid scene id {scene_id!r}")
        return self.directory / f"{scene_id}.json"

    def load_layout(self, scene_id: str) -> Layout:
        path = self.path_for(scene_id)
        if not path.exists():
            logger.info("no layout for %s, starting empty", scene_id)
            return Layout()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LayoutStorageError(f"cannot read {path}: {e}") from e
        layout = self.state.deserialize(data)
        logger.info("loaded %d elements for %s", len(layout.elements), scene_id)
        return layout

    def save_layout(self, scene_id: str, elements: List[LayoutElement],
                    background_ref: Optional[str]) -> Layout:
        path = self.path_for(scene_id)
        saved = [el if el.persisted_id else el.with_changes(persisted_id=new_persisted_id())
                 for el in elements]
        data = self.state.serialize(saved, background_ref)
        tmp = path.with_name(path.name + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, path)
        except OSError as e:
            raise LayoutStorageError(f"cannot write {path}: {e}") from e
        logger.info("saved %d elements for %s", len(saved), scene_id)
        # the session id becomes the persisted one from here on
        return Layout([el.with_changes(id=el.persisted_id) for el in saved], background_ref)
