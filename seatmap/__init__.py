from .utils import *
from .models import (LayoutElement, LayoutError, ElementKind, TableShape, CornerStyle,
                     ClipboardEntry, GuideLine, Layout, EditorConfig)
from .store import ElementStore
from .selection import SelectionManager
from .viewport import ViewportController
from .snapping import SnapResult, RotationSnap, compute_snap, compute_rotation_snap
from .gestures import MarqueeSelector, DragCoordinator, DragFrame, TransformFinalizer, PanGesture
from .clipboard import Clipboard
from .factory import ElementFactory, ElementTemplate, PALETTE, new_element_id
from .state import LayoutState, LayoutBackend, JsonLayoutBackend, LayoutStorageError
from .context import SceneContext
from .items import ElementItem, GuideItem, MarqueeItem, TransformHandle
from .scene import SeatmapScene, SeatmapView

__all__ = [
    "LayoutElement", "LayoutError", "ElementKind", "TableShape", "CornerStyle",
    "ClipboardEntry", "GuideLine", "Layout", "EditorConfig",
    "ElementStore", "SelectionManager", "ViewportController",
    "SnapResult", "RotationSnap", "compute_snap", "compute_rotation_snap",
    "MarqueeSelector", "DragCoordinator", "DragFrame", "TransformFinalizer", "PanGesture",
    "Clipboard", "ElementFactory", "ElementTemplate", "PALETTE", "new_element_id",
    "LayoutState", "LayoutBackend", "JsonLayoutBackend", "LayoutStorageError",
    "SceneContext", "SeatmapScene", "SeatmapView",
    "STAGE_W", "STAGE_H",
]
