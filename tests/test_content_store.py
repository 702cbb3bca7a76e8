#!/usr/bin/env python3
"""Unit tests for editor.content_store and editor.backends modules."""

import json
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from editor.backends import FileBackend
from editor.content_store import ContentStore, template_slug_from_id


class TestTemplateSlugFromId:
    def test_prefix(self):
        assert template_slug_from_id("dental--1234-abcd") == "dental"

    def test_no_separator(self):
        assert template_slug_from_id("dental") == "dental"

    def test_strips(self):
        assert template_slug_from_id("  spa--x ") == "spa"


class TestCacheOnlyStore:
    def test_create(self):
        store = ContentStore()
        record = store.create("dental")
        assert record.id.startswith("dental--")
        assert record.template_slug == "dental"
        assert record.files == {}
        assert record.version == 0
        assert store.get(record.id) is record

    def test_create_ids_are_unique(self):
        store = ContentStore()
        assert store.create("spa").id != store.create("spa").id

    def test_ensure_is_idempotent(self):
        store = ContentStore()
        first = store.ensure("law--abc")
        second = store.ensure("law--abc")
        assert first is second
        assert first.template_slug == "law"

    def test_get_unknown_returns_none(self):
        assert ContentStore().get("nope") is None

    def test_read_absent_returns_none(self):
        store = ContentStore()
        store.ensure("p")
        assert store.read("p", "app/page.tsx") is None
        assert store.read("unknown", "app/page.tsx") is None

    def test_write_then_read(self):
        store = ContentStore()
        record = store.write("p", "app/page.tsx", "hello", 3)
        assert record.version == 3
        assert store.read("p", "app/page.tsx") == "hello"
        assert store.ensure("p").version == 3

    def test_write_keeps_other_files(self):
        store = ContentStore()
        store.write("p", "a.tsx", "A", 1)
        store.write("p", "b.tsx", "B", 2)
        assert store.read("p", "a.tsx") == "A"
        assert store.read("p", "b.tsx") == "B"

    def test_history_without_backend(self):
        store = ContentStore()
        store.save_history("p", {"version": 1})
        assert store.load_history("p") is None


class TestFileBackedStore:
    def test_write_through_survives_restart(self, tmp_path):
        store = ContentStore(backend=FileBackend(data_dir=str(tmp_path)))
        record = store.create("clinic")
        store.write(record.id, "app/page.tsx", "<main/>", 1)

        reopened = ContentStore(backend=FileBackend(data_dir=str(tmp_path)))
        loaded = reopened.get(record.id)
        assert loaded is not None
        assert loaded.version == 1
        assert loaded.template_slug == "clinic"
        assert reopened.read(record.id, "app/page.tsx") == "<main/>"

    def test_ensure_unknown_writes_through(self, tmp_path):
        store = ContentStore(backend=FileBackend(data_dir=str(tmp_path)))
        store.ensure("spa--xyz")

        documents = list((tmp_path / "projects").glob("*.json"))
        assert len(documents) == 1
        data = json.loads(documents[0].read_text(encoding="utf-8"))
        assert data["id"] == "spa--xyz"
        assert data["template_slug"] == "spa"

    def test_ensure_prefers_durable_record(self, tmp_path):
        ContentStore(backend=FileBackend(data_dir=str(tmp_path))).write("p", "f.txt", "durable", 5)

        cold = ContentStore(backend=FileBackend(data_dir=str(tmp_path)))
        record = cold.ensure("p")
        assert record.version == 5
        assert record.files == {"f.txt": "durable"}

    def test_history_round_trip(self, tmp_path):
        store = ContentStore(backend=FileBackend(data_dir=str(tmp_path)))
        store.save_history("p", {"version": 2, "undo": [], "redo": []})
        assert store.load_history("p") == {"version": 2, "undo": [], "redo": []}

    def test_history_disabled(self, tmp_path):
        store = ContentStore(backend=FileBackend(data_dir=str(tmp_path), persist_history=False))
        store.save_history("p", {"version": 2})
        assert store.load_history("p") is None
        assert not (tmp_path / "history").exists()

    def test_dry_run_writes_nothing(self, tmp_path):
        backend = FileBackend(data_dir=str(tmp_path / "data"), dry_run=True)
        store = ContentStore(backend=backend)
        store.write("p", "f.txt", "x", 1)

        assert not (tmp_path / "data").exists()
        # One write for materializing the project, one for the content
        assert len(backend.persistor.get_write_log()) == 2
        # The cache still serves the write within this process
        assert store.read("p", "f.txt") == "x"
