"""Tests for loading and saving the taxonomy document."""

import json
import logging
import sys

import pytest

from tagsys.errors import MalformedTaxonomyError, TaxonomyIOError
from tagsys.taxonomy_file import TaxonomyFile
from tagsys.types import Forest, TagNode


@pytest.fixture
def store(tmp_path):
    return TaxonomyFile(tmp_path / "tags.json")


class TestLoad:
    def test_load_document(self, store):
        store.path.write_text(json.dumps([
            {"name": "work", "assignable": False, "children": [
                {"name": "urgent", "assignable": True, "children": []},
            ]},
        ]))
        forest = store.load()
        assert forest.roots[0].name == "work"
        assert forest.roots[0].children[0].name == "urgent"

    def test_missing_file_raises(self, store):
        with pytest.raises(TaxonomyIOError, match="tagsys init"):
            store.load()

    def test_missing_ok_returns_empty(self, store):
        assert store.load(missing_ok=True) == Forest()
        assert not store.exists()

    def test_invalid_json(self, store):
        store.path.write_text('[{"name": "a",')
        with pytest.raises(MalformedTaxonomyError, match="line 1"):
            store.load()

    def test_invalid_shape(self, store):
        store.path.write_text('[{"name": "a", "assignable": true}]')
        with pytest.raises(MalformedTaxonomyError, match="children"):
            store.load()

    def test_directory_is_io_error(self, tmp_path):
        with pytest.raises(TaxonomyIOError):
            TaxonomyFile(tmp_path).load()

    def test_duplicates_warned(self, store, caplog):
        store.path.write_text(json.dumps([
            {"name": "a", "assignable": True, "children": [
                {"name": "b", "assignable": True, "children": []},
            ]},
            {"name": "b", "assignable": True, "children": []},
        ]))
        with caplog.at_level(logging.WARNING, logger="tagsys"):
            forest = store.load()
        assert len(forest) == 3
        assert "duplicate tag names: b" in caplog.text

    def test_nesting_too_deep(self, store):
        depth = sys.getrecursionlimit() + 100
        opens = "".join(
            f'{{"name": "n{i}", "assignable": true, "children": [' for i in range(depth)
        )
        store.path.write_text("[" + opens + "]}" * depth + "]")
        with pytest.raises(MalformedTaxonomyError, match="nested too deeply"):
            store.load()


class TestSave:
    def test_minified_output(self, store):
        store.save(Forest(roots=[TagNode("a", False)]))
        assert store.path.read_text() == '[{"name":"a","assignable":false,"children":[]}]'

    def test_creates_parent_directory(self, tmp_path):
        store = TaxonomyFile(tmp_path / "nested" / "dir" / "tags.json")
        store.save(Forest())
        assert store.path.read_text() == "[]"

    def test_overwrites_whole_file(self, store):
        store.path.write_text(" " * 4096)
        store.save(Forest())
        assert store.path.read_text() == "[]"

    def test_non_ascii_names(self, store, work_forest):
        work_forest.roots.append(TagNode("été"))
        store.save(work_forest)
        assert "été" in store.path.read_text(encoding="utf-8")
        assert store.load() == work_forest

    def test_round_trip(self, store, work_forest):
        store.save(work_forest)
        assert store.load() == work_forest

    def test_round_trip_document_ignores_key_order(self, store):
        doc = [{"children": [], "assignable": True, "name": "x"}]
        store.path.write_text(json.dumps(doc))
        store.save(store.load())
        assert json.loads(store.path.read_text()) == doc

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(TaxonomyIOError):
            TaxonomyFile(blocker / "tags.json").save(Forest())
