"""Data models for the patch engine."""

from models.schemas import (
    AppliedChange,
    BatchResult,
    ChangeRecord,
    FileContext,
    HistoryResult,
    HistoryState,
    HistoryStep,
    PatchOperation,
    PatchPlan,
    PatchType,
    ProjectRecord,
    SkippedChange,
)

__all__ = [
    "AppliedChange",
    "BatchResult",
    "ChangeRecord",
    "FileContext",
    "HistoryResult",
    "HistoryState",
    "HistoryStep",
    "PatchOperation",
    "PatchPlan",
    "PatchType",
    "ProjectRecord",
    "SkippedChange",
]
