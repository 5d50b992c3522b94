"""Tests for seeding the store from JSON files and plaintext exports."""

import json

import pytest

from vaultdb.utils.errors import (
    AlreadyBuiltError,
    ImportConflictError,
    InvalidExtensionError,
    InvalidImportStructureError,
    UnknownEntityError,
)
from vaultdb.utils.maintain import check_store_import, export_filename

from conftest import CRYPTO_SECRET, VECTOR_SECRET


def _write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def registered(db):
    db.register_entity("categories")
    db.register_entity("comments")
    return db


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------

class TestImport:
    def test_import_for_entity_seeds_build(self, registered, tmp_path):
        src = _write_json(tmp_path / "cats.json", [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}])
        registered.import_for_entity("categories", src)
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        assert [r["id"] for r in registered.find("categories")] == ["1", "2"]
        assert registered.find("categories", force_fetch=True) == registered.find("categories")
        assert registered.find("comments") == []

    def test_import_for_whole_store(self, registered, tmp_path):
        src = _write_json(tmp_path / "all.json", {
            "categories": [{"id": "1"}],
            "comments": [{"id": "c1", "text": "hi"}, {"id": "c2", "text": "yo"}],
        })
        registered.import_for_whole_store(src)
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        assert registered.find("categories") == [{"id": "1"}]
        assert len(registered.find("comments")) == 2

    def test_import_after_build(self, built_db, tmp_path):
        src = _write_json(tmp_path / "cats.json", [])
        with pytest.raises(AlreadyBuiltError):
            built_db.import_for_entity("categories", src)
        with pytest.raises(AlreadyBuiltError):
            built_db.import_for_whole_store(src)

    def test_import_unknown_entity(self, registered, tmp_path):
        src = _write_json(tmp_path / "users.json", [{"id": "1"}])
        with pytest.raises(UnknownEntityError):
            registered.import_for_entity("users", src)

    def test_whole_store_with_unregistered_entity(self, registered, tmp_path):
        src = _write_json(tmp_path / "all.json", {"users": [{"id": "1"}]})
        with pytest.raises(UnknownEntityError):
            registered.import_for_whole_store(src)

    def test_entity_then_whole_store_conflict(self, registered, tmp_path):
        cats = _write_json(tmp_path / "cats.json", [{"id": "1"}])
        everything = _write_json(tmp_path / "all.json", {"comments": [{"id": "c1"}]})
        registered.import_for_entity("categories", cats)
        with pytest.raises(ImportConflictError):
            registered.import_for_whole_store(everything)
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        assert registered.find("categories") == []
        assert registered.find("comments") == []

    def test_whole_store_then_entity_conflict(self, registered, tmp_path):
        cats = _write_json(tmp_path / "cats.json", [{"id": "1"}])
        everything = _write_json(tmp_path / "all.json", {"comments": [{"id": "c1"}]})
        registered.import_for_whole_store(everything)
        with pytest.raises(ImportConflictError):
            registered.import_for_entity("categories", cats)
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        assert registered.find("categories") == []
        assert registered.find("comments") == []

    @pytest.mark.parametrize("data", [{"id": "1"}, [1, 2], [{"id": "1"}, "x"], "text"])
    def test_entity_import_shape(self, registered, tmp_path, data):
        src = _write_json(tmp_path / "bad.json", data)
        with pytest.raises(InvalidImportStructureError):
            registered.import_for_entity("categories", src)

    @pytest.mark.parametrize("data", [[{"id": "1"}], {"categories": {"id": "1"}}, {"categories": [1]}])
    def test_whole_store_import_shape(self, data):
        with pytest.raises(InvalidImportStructureError):
            check_store_import(data)

    def test_import_invalid_json(self, registered, tmp_path):
        src = tmp_path / "broken.json"
        src.write_text("[{", encoding="utf-8")
        with pytest.raises(InvalidImportStructureError):
            registered.import_for_entity("categories", src)

    def test_imports_cleared_after_build(self, registered, tmp_path):
        src = _write_json(tmp_path / "cats.json", [{"id": "1"}])
        registered.import_for_entity("categories", src)
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        registered.delete_one("categories", "1")
        registered.save_one("categories")
        registered.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
        assert registered.find("categories") == []


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

class TestExport:
    def test_export_for_entity(self, built_db, tmp_path):
        built_db.create_one("categories", {"id": "1", "name": "Unsaved"})
        out = built_db.export_for_entity("categories", tmp_path / "exports")
        assert out == tmp_path / "exports" / "db_export_categories.json"
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data[0]["name"] == "Unsaved"

    def test_export_whole_store(self, built_db, tmp_path):
        built_db.create_one("comments", {"id": "c1"})
        out = built_db.export_whole_store(tmp_path / "exports")
        assert out.name == "db_export_all.json"
        data = json.loads(out.read_text(encoding="utf-8"))
        assert set(data) == {"categories", "comments"}
        assert data["comments"][0]["id"] == "c1"

    def test_export_custom_filename(self, built_db, tmp_path):
        out = built_db.export_whole_store(tmp_path, "backup.json")
        assert out == tmp_path / "backup.json"
        assert json.loads(out.read_text()) == {"categories": [], "comments": []}

    def test_export_filename_without_extension(self, built_db, tmp_path):
        out = built_db.export_for_entity("comments", tmp_path, "backup")
        assert out.name == "backup.json"

    def test_bad_extension_rolls_back_new_dir(self, built_db, tmp_path):
        target = tmp_path / "new" / "nested"
        with pytest.raises(InvalidExtensionError):
            built_db.export_for_entity("categories", target, "file.pdf")
        assert not target.exists()
        assert not (tmp_path / "new").exists()

    def test_bad_extension_keeps_existing_dir(self, built_db, tmp_path):
        target = tmp_path / "existing"
        target.mkdir()
        (target / "keep.txt").write_text("x")
        with pytest.raises(InvalidExtensionError):
            built_db.export_whole_store(target, "file.pdf")
        assert (target / "keep.txt").exists()

    def test_export_unknown_entity(self, built_db, tmp_path):
        with pytest.raises(UnknownEntityError):
            built_db.export_for_entity("users", tmp_path)

    @pytest.mark.parametrize("name, expected", [(None, "d.json"), ("a.json", "a.json"), (".json", ".json"), ("a", "a.json"), (".env", ".env.json")])
    def test_export_filename(self, name, expected):
        assert export_filename(name, "d.json") == expected

    @pytest.mark.parametrize("name", ["a.JSON", "a.Json", "a.json.bak"])
    def test_export_extension_is_case_sensitive(self, name):
        with pytest.raises(InvalidExtensionError):
            export_filename(name, "d.json")
