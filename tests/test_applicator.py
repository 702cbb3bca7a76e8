#!/usr/bin/env python3
"""Unit tests for editor.applicator module."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from editor.applicator import PatchApplicator, coerce_operations, compute_after
from editor.content_store import ContentStore
from editor.exceptions import InvalidRequestError, UnsupportedPatchError
from editor.history import HistoryLedger
from models.schemas import PatchOperation, PatchType

PAGE = "app/page.tsx"


def snippet(match: str, content: str, path: str = PAGE) -> dict:
    return {"patchType": "replace-snippet", "filePath": path, "match": match, "content": content}


def replace(content: str, path: str = PAGE) -> dict:
    return {"patchType": "replace", "filePath": path, "content": content}


def insert(content: str, path: str = PAGE) -> dict:
    return {"patchType": "insert", "filePath": path, "content": content}


@pytest.fixture
def store():
    return ContentStore()


@pytest.fixture
def ledger():
    return HistoryLedger()


@pytest.fixture
def applicator(store, ledger):
    return PatchApplicator(store=store, ledger=ledger)


def seed_content(store: ContentStore, content: str, project_id: str = "p1", path: str = PAGE):
    store.write(project_id, path, content, 0)


class TestComputeAfter:
    def test_replace_snippet(self):
        op = PatchOperation(**snippet("bar", "baz"))
        assert compute_after(op, "foo bar foo") == ("foo baz foo", None)

    def test_replace(self):
        op = PatchOperation(**replace("new"))
        assert compute_after(op, "old") == ("new", None)

    def test_insert_appends_with_newline(self):
        op = PatchOperation(**insert("tail"))
        assert compute_after(op, "head") == ("head\ntail", None)

    def test_insert_into_empty(self):
        op = PatchOperation(**insert("only"))
        assert compute_after(op, "") == ("only", None)

    @pytest.mark.parametrize("source,match,reason", [
        ("a x a", "a", "Ambiguous match (multiple occurrences)."),
        ("alpha", "omega", "Match not found."),
        ("alpha", "   ", "Empty match string."),
    ])
    def test_skip_reasons(self, source, match, reason):
        op = PatchOperation(**snippet(match, "y"))
        assert compute_after(op, source) == (None, reason)

    def test_style_update_raises(self):
        op = PatchOperation(patch_type=PatchType.STYLE_UPDATE, file_path=PAGE)
        with pytest.raises(UnsupportedPatchError):
            compute_after(op, "x")


class TestCoerceOperations:
    def test_accepts_models_and_dicts(self):
        ops = coerce_operations([PatchOperation(**replace("a")), replace("b")])
        assert [op.content for op in ops] == ["a", "b"]
        assert all(op.patch_type == PatchType.REPLACE for op in ops)

    def test_snake_case_keys(self):
        ops = coerce_operations([{"patch_type": "insert", "file_path": PAGE, "content": "x"}])
        assert ops[0].patch_type == PatchType.INSERT

    def test_rejects_non_list(self):
        with pytest.raises(InvalidRequestError):
            coerce_operations({"changes": []})

    def test_rejects_unknown_patch_type(self):
        with pytest.raises(InvalidRequestError):
            coerce_operations([{"patchType": "delete", "filePath": PAGE}])

    def test_rejects_non_object(self):
        with pytest.raises(InvalidRequestError, match="index 0"):
            coerce_operations(["replace"])

    def test_rejects_unsafe_path(self):
        with pytest.raises(InvalidRequestError, match="unsafe filePath"):
            coerce_operations([replace("x", path="../etc/passwd")])


class TestApply:
    def test_exact_replace_commits(self, applicator, store, ledger):
        seed_content(store, "foo bar foo")
        result = applicator.apply("p1", [snippet("bar", "baz")])

        assert result.committed is True
        assert result.version == 1
        assert result.can_undo is True
        assert result.can_redo is False
        assert result.skipped == []
        assert len(result.applied) == 1
        assert result.applied[0].match == "bar"
        assert result.applied[0].content == "baz"
        assert store.read("p1", PAGE) == "foo baz foo"
        assert store.ensure("p1").version == 1

    def test_ambiguous_is_skipped(self, applicator, store, ledger):
        seed_content(store, "a x a")
        result = applicator.apply("p1", [snippet("a", "b")])

        assert result.committed is False
        assert result.applied == []
        assert result.skipped[0].reason == "Ambiguous match (multiple occurrences)."
        assert store.read("p1", PAGE) == "a x a"
        assert ledger.state("p1").version == 0

    def test_not_found_leaves_everything_unchanged(self, applicator, store, ledger):
        seed_content(store, "hello world")
        result = applicator.apply("p1", [snippet("missing", "x")])

        assert result.skipped[0].reason == "Match not found."
        assert result.skipped[0].file_path == PAGE
        assert result.version == 0
        assert store.read("p1", PAGE) == "hello world"
        assert ledger.state("p1").can_undo is False

    def test_fuzzy_replace(self, applicator, store):
        seed_content(store, "hello   \n  world")
        result = applicator.apply("p1", [snippet("hello world", "X")])
        assert result.committed
        assert store.read("p1", PAGE) == "X"

    def test_noop_replace_is_dropped(self, applicator, store, ledger):
        seed_content(store, "same")
        result = applicator.apply("p1", [replace("same")])

        assert result.committed is False
        assert result.applied == []
        assert result.skipped == []
        assert result.version == 0
        assert ledger.state("p1").version == 0

    def test_zero_commits_reports_default_state(self, applicator, store, ledger):
        ledger.seed("p1", 5)
        seed_content(store, "x")
        result = applicator.apply("p1", [snippet("nope", "y")])
        assert (result.version, result.can_undo, result.can_redo) == (0, False, False)

    def test_same_path_sees_previous_output(self, applicator, store):
        seed_content(store, "one")
        result = applicator.apply("p1", [
            replace("one two"),
            snippet("two", "three"),
            insert("four"),
        ])
        assert len(result.applied) == 3
        assert result.version == 3
        assert store.read("p1", PAGE) == "one three\nfour"

    def test_skip_does_not_abort_batch(self, applicator, store):
        seed_content(store, "abc")
        result = applicator.apply("p1", [snippet("zzz", "y"), snippet("abc", "xyz")])
        assert len(result.skipped) == 1
        assert len(result.applied) == 1
        assert store.read("p1", PAGE) == "xyz"

    def test_multiple_files(self, applicator, store):
        result = applicator.apply("p1", [insert("a", path="a.tsx"), insert("b", path="b.tsx")])
        assert result.version == 2
        assert store.read("p1", "a.tsx") == "a"
        assert store.read("p1", "b.tsx") == "b"

    def test_style_update_aborts_before_any_commit(self, applicator, store, ledger):
        seed_content(store, "abc")
        style = {
            "patchType": "style-update",
            "filePath": PAGE,
            "targetSelector": ".hero",
            "cssProps": {"color": "red"},
        }
        with pytest.raises(UnsupportedPatchError):
            applicator.apply("p1", [replace("new"), style])
        assert store.read("p1", PAGE) == "abc"
        assert ledger.state("p1").version == 0

    def test_missing_project_id(self, applicator):
        with pytest.raises(InvalidRequestError, match="Missing projectId"):
            applicator.apply("  ", [replace("x")])

    def test_applied_carries_diff_stats(self, applicator, store):
        seed_content(store, "line1\nline2\n")
        result = applicator.apply("p1", [snippet("line2", "changed\nadded")])
        applied = result.applied[0]
        assert applied.lines_added == 2
        assert applied.lines_removed == 1


class TestFallbackSource:
    def test_uses_fallback_when_store_is_empty(self, store, ledger):
        originals = {PAGE: "export default function Page() {}"}
        applicator = PatchApplicator(store, ledger, fallback_loader=originals.get)

        result = applicator.apply("p1", [snippet("Page", "Home")])
        assert result.committed
        assert store.read("p1", PAGE) == "export default function Home() {}"

    def test_store_content_wins_over_fallback(self, store, ledger):
        seed_content(store, "edited")
        applicator = PatchApplicator(store, ledger, fallback_loader=lambda path: "original")
        assert applicator.load_before("p1", PAGE) == "edited"

    def test_missing_everywhere_is_empty(self, store, ledger):
        applicator = PatchApplicator(store, ledger, fallback_loader=lambda path: None)
        assert applicator.load_before("p1", PAGE) == ""

    def test_unreadable_fallback_rejects_batch_before_commit(self, store, ledger):
        def loader(path):
            if path == "b.tsx":
                raise ValueError("Unsafe file path.")
            return None

        applicator = PatchApplicator(store, ledger, fallback_loader=loader)
        with pytest.raises(InvalidRequestError, match="Cannot read b.tsx"):
            applicator.apply("p1", [insert("a", path="a.tsx"), insert("b", path="b.tsx")])

        assert store.get("p1") is None
        assert ledger.state("p1").version == 0
