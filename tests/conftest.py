import itertools

import pytest

from seatmap.context import SceneContext
from seatmap.models import ElementKind, Layout, LayoutElement
from seatmap.state import LayoutStorageError
from seatmap.store import ElementStore


class MemoryBackend:
    """In-memory layout backend; `fail_save` simulates an unreachable store."""

    def __init__(self, layouts=None):
        self.layouts = dict(layouts or {})
        self.saved = []
        self.fail_save = False

    def load_layout(self, scene_id):
        return self.layouts.get(scene_id, Layout())

    def save_layout(self, scene_id, elements, background_ref):
        if self.fail_save:
            raise LayoutStorageError("backend unavailable")
        self.saved.append((scene_id, list(elements), background_ref))
        layout = Layout(list(elements), background_ref)
        self.layouts[scene_id] = layout
        return layout


def build_element(element_id, x=0.0, y=0.0, width=50.0, height=50.0, kind=ElementKind.OTHER, **kw):
    return LayoutElement(id=element_id, kind=kind, x=x, y=y, width=width, height=height, **kw)


@pytest.fixture
def make_element():
    return build_element


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def ctx(backend):
    counter = itertools.count(1)
    return SceneContext(backend=backend, id_factory=lambda: f"new-{next(counter)}")


@pytest.fixture
def store():
    return ElementStore()


@pytest.fixture
def populate(ctx):
    def _populate(*elements):
        for el in elements:
            ctx.store.add(el)
        return ctx
    return _populate
