import json

import pytest

from seatmap.context import SceneContext
from seatmap.factory import PALETTE
from seatmap.models import ElementKind, LayoutError, TableShape
from seatmap.state import (FORMAT_VERSION, JsonLayoutBackend, LayoutState, LayoutStorageError,
                           element_from_dict, element_to_dict)
from seatmap.utils import MIN_SIZE


class TestElementDicts:
    def test_wire_keys(self, make_element):
        el = make_element("s", 1, 2, kind=ElementKind.TABLE, seat_count=6, persisted_id="p1")
        data = element_to_dict(el)
        assert data["id"] == "p1"
        assert data["type"] == "TABLE"
        assert data["numberOfSeats"] == 6
        assert data["cornerStyle"] == "STRAIGHT"

    def test_sizes_clamped_on_load(self):
        el = element_from_dict({"id": "a", "type": "STAGE", "width": -10})
        assert el.width == MIN_SIZE
        assert el.height == MIN_SIZE

    def test_table_fields_dropped_from_other_kinds(self):
        el = element_from_dict({"id": "a", "type": "BAR", "shape": "CIRCLE", "numberOfSeats": 4})
        assert el.shape is None and el.seat_count is None

    def test_numeric_label_kept_as_text(self):
        assert element_from_dict({"id": "a", "type": "TABLE", "label": 5}).label == "5"
        assert element_from_dict({"id": "b", "type": "TABLE", "label": 2.5}).label == "2.5"

    def test_unusable_label_rejected(self):
        with pytest.raises(LayoutError):
            element_from_dict({"id": "a", "type": "BAR", "label": ["x"]})

    def test_missing_id_gets_session_id(self):
        el = element_from_dict({"type": "WALL"})
        assert el.id
        assert el.persisted_id is None


class TestLayoutState:
    def test_invalid_elements_skipped(self):
        layout = LayoutState().deserialize({
            "elements": [
                {"id": "ok", "type": "BAR"},
                {"id": "bad", "type": "SOFA"},
                {"id": "ok", "type": "WALL"},
                "junk",
                {"id": "color", "type": "BAR", "color": "red"},
            ],
            "backgroundUrl": "",
        })
        assert [el.id for el in layout.elements] == ["ok"]
        assert layout.background_ref is None

    @pytest.mark.parametrize("elements", [5, "abc", {"id": "a"}])
    def test_elements_must_be_a_list(self, elements):
        with pytest.raises(LayoutStorageError):
            LayoutState().deserialize({"elements": elements})

    def test_non_string_background_dropped(self):
        assert LayoutState().deserialize({"elements": [], "backgroundUrl": 7}).background_ref is None

    def test_not_an_object(self):
        with pytest.raises(LayoutStorageError):
            LayoutState().deserialize([1, 2])


class TestJsonLayoutBackend:
    def test_missing_file_is_empty(self, tmp_path):
        layout = JsonLayoutBackend(tmp_path).load_layout("hall")
        assert layout.elements == [] and layout.background_ref is None

    def test_save_assigns_persisted_ids(self, tmp_path, make_element):
        backend = JsonLayoutBackend(tmp_path)
        kept = make_element("session-1", persisted_id="p-keep")
        fresh = make_element("session-2", 10, 20, kind=ElementKind.TABLE,
                             shape=TableShape.CIRCLE, seat_count=10)
        layout = backend.save_layout("hall", [kept, fresh], "bg.png")
        ids = [el.id for el in layout.elements]
        assert ids[0] == "p-keep"
        assert ids[1] != "session-2"
        assert all(el.id == el.persisted_id for el in layout.elements)

        data = json.loads((tmp_path / "hall.json").read_text(encoding="utf-8"))
        assert data["version"] == FORMAT_VERSION
        assert data["backgroundUrl"] == "bg.png"
        assert [e["id"] for e in data["elements"]] == ids
        assert not (tmp_path / "hall.json.tmp").exists()

    def test_save_then_load(self, tmp_path, make_element):
        backend = JsonLayoutBackend(tmp_path)
        original = make_element("a", 12.5, 7, 80, 30, kind=ElementKind.STAGE, rotation=90,
                                label="Main stage", color="#b0c4de")
        saved = backend.save_layout("hall", [original], None)
        (loaded,) = backend.load_layout("hall").elements
        assert loaded == saved.elements[0]
        assert loaded.label == "Main stage" and loaded.rotation == 90

    def test_save_replaces_all(self, tmp_path, make_element):
        backend = JsonLayoutBackend(tmp_path)
        backend.save_layout("hall", [make_element("a"), make_element("b")], None)
        backend.save_layout("hall", [make_element("c", persisted_id="c")], None)
        assert [el.id for el in backend.load_layout("hall").elements] == ["c"]

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "hall.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(LayoutStorageError):
            JsonLayoutBackend(tmp_path).load_layout("hall")

    def test_malformed_document_is_a_storage_error(self, tmp_path):
        (tmp_path / "hall.json").write_text('{"elements": 5}', encoding="utf-8")
        with pytest.raises(LayoutStorageError):
            JsonLayoutBackend(tmp_path).load_layout("hall")

    @pytest.mark.parametrize("scene_id", ["", "../etc", "a/b"])
    def test_unsafe_scene_id(self, tmp_path, scene_id):
        with pytest.raises(LayoutStorageError):
            JsonLayoutBackend(tmp_path).load_layout(scene_id)

    def test_unwritable_directory(self, tmp_path, make_element):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(LayoutStorageError):
            JsonLayoutBackend(blocker / "sub").save_layout("hall", [make_element("a")], None)


def test_context_save_reconciles_ids(tmp_path):
    ctx = SceneContext(backend=JsonLayoutBackend(tmp_path))
    ctx.factory.new_id = lambda: "local"
    el = ctx.add_element(PALETTE[0])
    ctx.selection.select_one(el.id)
    ctx.save("hall")
    (saved,) = ctx.store.get_all()
    assert saved.id != "local"
    assert saved.id == saved.persisted_id
    assert len(ctx.selection) == 0
