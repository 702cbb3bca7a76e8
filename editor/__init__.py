"""Editor package - patch application, history and content storage."""
from .applicator import PatchApplicator
from .backends import DurableBackend, FileBackend
from .content_store import ContentStore, template_slug_from_id
from .exceptions import EditorError, InvalidRequestError, UnsupportedPatchError
from .history import HistoryLedger

__all__ = [
    "PatchApplicator",
    "DurableBackend",
    "FileBackend",
    "ContentStore",
    "template_slug_from_id",
    "EditorError",
    "InvalidRequestError",
    "UnsupportedPatchError",
    "HistoryLedger",
]
