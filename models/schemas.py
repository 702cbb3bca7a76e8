"""Pydantic schemas for the patch engine data contracts.

These schemas are used at entry points to validate input and provide
type-safe data structures throughout the engine. Components receive
model instances rather than raw dicts.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Patch Plan Schemas
# =============================================================================


class PatchType(str, Enum):
    REPLACE_SNIPPET = "replace-snippet"
    REPLACE = "replace"
    INSERT = "insert"
    STYLE_UPDATE = "style-update"


StyleValue = Union[str, int, float, None]


class PatchOperation(BaseModel):
    """One requested edit to one file.

    Accepts the camelCase keys agents emit (filePath, patchType, ...)
    as well as the snake_case field names.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    patch_type: PatchType = Field(alias="patchType")
    file_path: str = Field(alias="filePath")
    description: str = ""
    match: Optional[str] = None
    content: Optional[str] = None
    css_props: Optional[Dict[str, StyleValue]] = Field(default=None, alias="cssProps")
    target_selector: Optional[str] = Field(default=None, alias="targetSelector")


class PatchPlan(BaseModel):
    """Ordered batch of patch operations."""
    changes: List[PatchOperation] = Field(default_factory=list)


# =============================================================================
# History Schemas
# =============================================================================


class ChangeRecord(BaseModel):
    """Immutable before/after snapshot of one committed edit."""
    model_config = ConfigDict(frozen=True)

    file_path: str
    before: str
    after: str


class HistoryState(BaseModel):
    """Read-only view of a project's ledger."""
    version: int = 0
    can_undo: bool = False
    can_redo: bool = False


class HistoryStep(HistoryState):
    """Ledger state after an undo/redo, with the entry that moved (if any)."""
    entry: Optional[ChangeRecord] = None


# =============================================================================
# Content Store Schemas
# =============================================================================


class ProjectRecord(BaseModel):
    """Current content and version of one editable project."""
    id: str
    template_slug: str
    files: Dict[str, str] = Field(default_factory=dict)  # logical path -> content
    version: int = 0
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


# =============================================================================
# Result Schemas
# =============================================================================


class AppliedChange(BaseModel):
    """An operation that changed content and was committed."""
    patch_type: PatchType
    file_path: str
    match: str = ""
    content: str = ""
    lines_added: int = 0
    lines_removed: int = 0


class SkippedChange(BaseModel):
    """An operation that was not applied, with a reason the agent can act on."""
    patch_type: PatchType
    file_path: str
    reason: str


class BatchResult(BaseModel):
    """Outcome of applying a batch of patch operations."""
    committed: bool = False
    version: int = 0
    can_undo: bool = False
    can_redo: bool = False
    applied: List[AppliedChange] = Field(default_factory=list)
    skipped: List[SkippedChange] = Field(default_factory=list)


class HistoryResult(HistoryState):
    """Outcome of an undo or redo request.

    content holds the restored text of file_path when a step happened,
    so callers can push it into a live rendering surface.
    """
    file_path: Optional[str] = None
    content: Optional[str] = None


class FileContext(BaseModel):
    """Current content of a file prepared for an agent prompt."""
    file_path: str
    content: str
    truncated: bool = False
    excerpts: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
