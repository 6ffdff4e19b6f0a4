from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
from PySide6.QtCore import QPointF, QRectF

from .models import GuideLine, LayoutElement
from .snapping import compute_snap, compute_rotation_snap
from .utils import (MIN_SIZE, bounding_rect, element_transform, rect_from_points, rects_intersect,
                    rotated_center)

if TYPE_CHECKING:
    from .context import SceneContext

logger = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class Gesture:
    """One pointer gesture: a single state field plus a single payload."""
    name = "gesture"

    def __init__(self, ctx: "SceneContext"):
        self.ctx = ctx
        self.state = GestureState.IDLE
        self.payload = None

    @property
    def is_active(self) -> bool:
        return self.state is GestureState.ACTIVE

    def _can_begin(self) -> bool:
        running = self.ctx.active_gesture()
        if running is not None:
            logger.debug("%s refused while %s is in progress", self.name, running)
            return False
        return True

    def _activate(self, payload):
        self.payload = payload
        self.state = GestureState.ACTIVE

    def _reset(self):
        self.state = GestureState.IDLE
        self.payload = None

    def _stray_end(self):
        logger.warning("%s end without a matching start, resetting", self.name)
        self._reset()


# ---- marquee ----
@dataclass
class MarqueePayload:
    start: QPointF
    current: QPointF
    initial_selection: Tuple[str, ...]
    additive: bool


class MarqueeSelector(Gesture):
    name = "marquee"

    def begin(self, screen_pt: QPointF, modifier: bool = False) -> bool:
        """Pointer-down on empty canvas."""
        if not self._can_begin():
            return False
        world = self.ctx.viewport.to_world(screen_pt)
        self._activate(MarqueePayload(world, QPointF(world), self.ctx.selection.ids(), bool(modifier)))
        if not modifier:
            self.ctx.selection.clear()
        return True

    def rect(self) -> Optional[QRectF]:
        if not self.is_active:
            return None
        return rect_from_points(self.payload.start, self.payload.current)

    def update(self, screen_pt: QPointF) -> Optional[List[str]]:
        if not self.is_active:
            return None
        p: MarqueePayload = self.payload
        p.current = self.ctx.viewport.to_world(screen_pt)
        area = self.rect()
        hits = [el.id for el in self.ctx.store if rects_intersect(area, el.bounding_rect())]
        if p.additive:
            # ids removed since begin must not come back
            kept = [i for i in p.initial_selection if i in self.ctx.store]
            self.ctx.selection.set_all(kept + hits)
        else:
            self.ctx.selection.set_all(hits)
        return hits

    def end(self) -> bool:
        if not self.is_active:
            self._stray_end()
            return False
        self._reset()
        return True


# ---- multi-drag ----
@dataclass
class DragFrame:
    positions: Dict[str, QPointF]
    guides: List[GuideLine]


@dataclass
class DragPayload:
    active_id: str
    start_positions: Dict[str, QPointF]
    selection_snapshot: Tuple[str, ...]
    live_positions: Dict[str, QPointF] = field(default_factory=dict)
    guides: List[GuideLine] = field(default_factory=list)


class DragCoordinator(Gesture):
    name = "drag"

    @property
    def guides(self) -> List[GuideLine]:
        return list(self.payload.guides) if self.is_active else []

    def start_position(self, element_id: str) -> Optional[QPointF]:
        if not self.is_active:
            return None
        return self.payload.start_positions.get(element_id)

    def live_position(self, element_id: str) -> Optional[QPointF]:
        if not self.is_active:
            return None
        return self.payload.live_positions.get(element_id)

    def begin(self, active_id: str) -> bool:
        if not self._can_begin():
            return False
        if self.ctx.store.get(active_id) is None:
            logger.warning("drag refused, no element %s", active_id)
            return False
        # dragging an unselected element pulls it into the selection
        self.ctx.selection.add(active_id)
        snapshot = self.ctx.selection.ids()
        starts: Dict[str, QPointF] = {}
        for i in snapshot:
            el = self.ctx.store.get(i)
            if el is not None:
                starts[i] = el.pos()
        self._activate(DragPayload(active_id, starts, snapshot,
                                   {i: QPointF(p) for i, p in starts.items()}))
        return True

    def move(self, active_pos: QPointF) -> Optional[DragFrame]:
        """`active_pos` is the raw, unsnapped top-left of the active element."""
        if not self.is_active:
            return None
        p: DragPayload = self.payload
        active = self.ctx.store.get(p.active_id)
        if active is None:
            logger.warning("active element %s vanished mid-drag", p.active_id)
            return DragFrame(dict(p.live_positions), [])

        delta = active_pos - p.start_positions[p.active_id]
        for i, start in p.start_positions.items():
            p.live_positions[i] = start + delta

        moving = bounding_rect(active_pos.x(), active_pos.y(), active.width, active.height, active.rotation)
        candidates = []
        for el in self.ctx.store:
            if el.id == p.active_id:
                continue
            live = p.live_positions.get(el.id)
            box = el.bounding_rect() if live is None else \
                bounding_rect(live.x(), live.y(), el.width, el.height, el.rotation)
            candidates.append((el.id, box))

        snap = compute_snap(moving, candidates, self.ctx.config.snap_threshold, self.ctx.viewport.scale)
        # only the active element takes the correction
        p.live_positions[p.active_id] = active_pos + snap.correction
        p.guides = snap.guides
        return DragFrame(dict(p.live_positions), list(p.guides))

    def end(self) -> Dict[str, QPointF]:
        if not self.is_active:
            self._stray_end()
            return {}
        p: DragPayload = self.payload
        self._reset()
        committed: Dict[str, QPointF] = {}
        for i in p.start_positions:
            pos = p.live_positions.get(i, p.start_positions[i])
            if self.ctx.store.update(i, x=pos.x(), y=pos.y()) is None:
                logger.warning("drag commit skipped %s, element is gone", i)
                continue
            committed[i] = pos
        # a lone dragged element is released unselected
        if len(p.selection_snapshot) == 1:
            self.ctx.selection.clear()
        return committed


# ---- resize / rotate ----
@dataclass
class TransformPayload:
    element_id: str
    x: float
    y: float
    rotation: float
    scale_x: float = 1.0
    scale_y: float = 1.0
    guides: List[GuideLine] = field(default_factory=list)


class TransformFinalizer(Gesture):
    """Resize/rotate of exactly one selected element."""
    name = "transform"

    @property
    def guides(self) -> List[GuideLine]:
        return list(self.payload.guides) if self.is_active else []

    def begin(self, element_id: Optional[str] = None) -> bool:
        if not self._can_begin():
            return False
        single = self.ctx.selection.single
        if single is None:
            logger.debug("transform needs exactly one selected element, have %d", len(self.ctx.selection))
            return False
        if element_id is not None and element_id != single:
            logger.debug("transform target %s is not the selected element", element_id)
            return False
        el = self.ctx.store.get(single)
        if el is None:
            logger.warning("transform refused, no element %s", single)
            return False
        self._activate(TransformPayload(el.id, el.x, el.y, el.rotation))
        return True

    def update(self, x: Optional[float] = None, y: Optional[float] = None,
               rotation: Optional[float] = None, scale_x: Optional[float] = None,
               scale_y: Optional[float] = None) -> List[GuideLine]:
        if not self.is_active:
            return []
        p: TransformPayload = self.payload
        if x is not None: p.x = float(x)
        if y is not None: p.y = float(y)
        if rotation is not None: p.rotation = float(rotation)
        if scale_x is not None: p.scale_x = float(scale_x)
        if scale_y is not None: p.scale_y = float(scale_y)

        el = self.ctx.store.get(p.element_id)
        if el is None:
            p.guides = []
            return []
        center = rotated_center(p.x, p.y, el.width * p.scale_x, el.height * p.scale_y, p.rotation)
        p.guides = self._rotation_snap(p.rotation, center).guides
        return list(p.guides)

    def _rotation_snap(self, angle: float, center: Optional[QPointF] = None):
        cfg = self.ctx.config
        return compute_rotation_snap(angle, center, self.ctx.viewport.scale,
                                     angles=cfg.rotation_snap_angles,
                                     threshold=cfg.rotation_snap_threshold,
                                     exact_eps=cfg.rotation_exact_eps,
                                     guide_length=cfg.rotation_guide_length)

    def end(self) -> Optional[LayoutElement]:
        if not self.is_active:
            self._stray_end()
            return None
        p: TransformPayload = self.payload
        # scale factors and guides die with the payload
        self._reset()
        el = self.ctx.store.get(p.element_id)
        if el is None:
            logger.warning("transform commit skipped, element %s is gone", p.element_id)
            return None
        width = max(MIN_SIZE, el.width * p.scale_x)
        height = max(MIN_SIZE, el.height * p.scale_y)
        x, y = p.x, p.y
        snapped = self._rotation_snap(p.rotation).snapped_angle
        rotation = p.rotation
        if snapped is not None and snapped != p.rotation:
            rotation = snapped
            # the snapped element stays centred on its rotation guide
            center = rotated_center(p.x, p.y, width, height, p.rotation)
            origin = center - element_transform(0.0, 0.0, snapped).map(QPointF(width / 2.0, height / 2.0))
            x, y = origin.x(), origin.y()
        return self.ctx.store.update(p.element_id, x=x, y=y, width=width, height=height,
                                     rotation=rotation)


# ---- stage pan ----
@dataclass
class PanPayload:
    last: QPointF


class PanGesture(Gesture):
    name = "pan"

    def begin(self, screen_pt: QPointF) -> bool:
        if not self._can_begin():
            return False
        self._activate(PanPayload(QPointF(screen_pt)))
        return True

    def move(self, screen_pt: QPointF) -> bool:
        if not self.is_active:
            return False
        self.ctx.viewport.pan_by(screen_pt - self.payload.last)
        self.payload.last = QPointF(screen_pt)
        return True

    def end(self) -> bool:
        if not self.is_active:
            self._stray_end()
            return False
        self._reset()
        return True
