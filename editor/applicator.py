"""Patch application for agent-proposed edits.

Applies an ordered batch of patch operations to a project:
- Each operation is applied independently (skip-and-continue)
- Operations on the same path see the previous operation's output
- Real changes are committed to the history ledger, then the content store
- No-op edits are dropped silently
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from editor.content_store import ContentStore
from editor.exceptions import InvalidRequestError, UnsupportedPatchError
from editor.history import HistoryLedger
from models.schemas import (
    AppliedChange,
    BatchResult,
    ChangeRecord,
    HistoryState,
    PatchOperation,
    PatchType,
    SkippedChange,
)
from utils.diff_utils import compute_diff_stats
from utils.logging import get_logger
from utils.plan_parser import is_safe_relative_path
from utils.snippet_locator import MatchStatus, locate_snippet, replace_span

logger = get_logger("applicator")

FallbackLoader = Callable[[str], Optional[str]]

SKIP_REASONS = {
    MatchStatus.AMBIGUOUS: "Ambiguous match (multiple occurrences).",
    MatchStatus.NOT_FOUND: "Match not found.",
    MatchStatus.INVALID_MATCH: "Empty match string.",
}


def coerce_operations(operations: Iterable[Any]) -> List[PatchOperation]:
    """Validate a batch into PatchOperation models.

    Raises:
        InvalidRequestError: If the batch is not a list of operations.
    """
    if operations is None or isinstance(operations, (str, bytes, dict)):
        raise InvalidRequestError("Patch batch must be a list of operations.")

    coerced: List[PatchOperation] = []
    for index, op in enumerate(operations):
        if isinstance(op, PatchOperation):
            coerced.append(op)
            continue
        if not isinstance(op, dict):
            raise InvalidRequestError(f"Change at index {index} must be an object.")
        try:
            coerced.append(PatchOperation.model_validate(op))
        except ValidationError as e:
            raise InvalidRequestError(f"Change at index {index} is malformed: {e}") from e

    for index, op in enumerate(coerced):
        if not is_safe_relative_path(op.file_path):
            raise InvalidRequestError(f"Change at index {index} has unsafe filePath.")
    return coerced


def check_supported(operations: List[PatchOperation]) -> None:
    """Reject the whole batch if any operation has no text transformation.

    Raises:
        UnsupportedPatchError: The batch contains a style-update.
    """
    for op in operations:
        if op.patch_type == PatchType.STYLE_UPDATE:
            raise UnsupportedPatchError(
                "style-update is not supported yet. Use replace/insert for now."
            )


def compute_after(
    op: PatchOperation,
    before: str,
    fuzzy: bool = True,
    fuzzy_require_unique: bool = True,
) -> Tuple[Optional[str], Optional[str]]:
    """Compute the new text for one operation.

    Returns:
        Tuple of (after, skip_reason). Exactly one of them is None.
    """
    if op.patch_type == PatchType.REPLACE_SNIPPET:
        located = locate_snippet(
            before,
            op.match or "",
            fuzzy=fuzzy,
            fuzzy_require_unique=fuzzy_require_unique,
        )
        if not located.found:
            return None, SKIP_REASONS[located.status]
        logger.debug(f"{op.file_path}: snippet found via {located.strategy} at {located.start}-{located.end}")
        return replace_span(before, located.start, located.end, op.content or ""), None

    if op.patch_type == PatchType.REPLACE:
        return op.content or "", None

    if op.patch_type == PatchType.INSERT:
        insert = op.content or ""
        return (f"{before}\n{insert}" if before else insert), None

    # style-update is rejected before the batch runs
    raise UnsupportedPatchError(f"{op.patch_type.value} has no text transformation.")


class PatchApplicator:
    """Applies patch batches against a content store and history ledger."""

    def __init__(
        self,
        store: ContentStore,
        ledger: HistoryLedger,
        fallback_loader: Optional[FallbackLoader] = None,
        fuzzy: bool = True,
        fuzzy_require_unique: bool = True,
    ):
        self.store = store
        self.ledger = ledger
        self.fallback_loader = fallback_loader
        self.fuzzy = fuzzy
        self.fuzzy_require_unique = fuzzy_require_unique

    def load_before(self, project_id: str, file_path: str) -> str:
        """Current text of a path: stored content, else template source, else empty."""
        content = self.store.read(project_id, file_path)
        if content is not None:
            return content
        if self.fallback_loader is not None:
            original = self.fallback_loader(file_path)
            if original is not None:
                return original
        return ""

    def preload(self, project_id: str, operations: List[PatchOperation]) -> Dict[str, str]:
        """Read the starting content of every path the batch touches.

        Raises:
            InvalidRequestError: A path cannot be read (e.g. its template
                source resolves outside the templates root). Nothing has
                been committed at that point.
        """
        contents: Dict[str, str] = {}
        for op in operations:
            if op.file_path in contents:
                continue
            try:
                contents[op.file_path] = self.load_before(project_id, op.file_path)
            except ValueError as e:
                raise InvalidRequestError(f"Cannot read {op.file_path}: {e}") from e
        return contents

    def apply(self, project_id: str, operations: Iterable[Any]) -> BatchResult:
        """Apply a batch of operations to a project.

        Args:
            project_id: Target project identifier
            operations: PatchOperation models or equivalent dicts, in order

        Returns:
            BatchResult with ledger state after the last commit and the
            applied/skipped operations

        Raises:
            InvalidRequestError: Missing project id, malformed batch or a
                path whose starting content cannot be read
            UnsupportedPatchError: The batch contains a style-update
        """
        project_id = str(project_id or "").strip()
        if not project_id:
            raise InvalidRequestError("Missing projectId.")

        ops = coerce_operations(operations)
        check_supported(ops)
        running = self.preload(project_id, ops)

        record = self.store.ensure(project_id)
        self.ledger.seed(project_id, record.version)

        applied: List[AppliedChange] = []
        skipped: List[SkippedChange] = []
        last_state: Optional[HistoryState] = None

        logger.info(f"Applying {len(ops)} operation(s) to {project_id}")

        for index, op in enumerate(ops):
            before = running[op.file_path]
            after, reason = compute_after(
                op, before, fuzzy=self.fuzzy, fuzzy_require_unique=self.fuzzy_require_unique
            )
            if reason is not None:
                logger.warning(f"Op {index + 1} ({op.patch_type.value} {op.file_path}) skipped: {reason}")
                skipped.append(SkippedChange(
                    patch_type=op.patch_type, file_path=op.file_path, reason=reason,
                ))
                continue

            if after == before:
                logger.debug(f"Op {index + 1} ({op.file_path}) is a no-op, dropped")
                continue

            last_state = self.ledger.push(
                project_id, ChangeRecord(file_path=op.file_path, before=before, after=after)
            )
            self.store.write(project_id, op.file_path, after, last_state.version)
            running[op.file_path] = after

            stats = compute_diff_stats(before, after)
            applied.append(AppliedChange(
                patch_type=op.patch_type,
                file_path=op.file_path,
                match=op.match or "",
                content=op.content or "",
                lines_added=stats["lines_added"],
                lines_removed=stats["lines_removed"],
            ))
            logger.info(f"Op {index + 1} committed to {op.file_path} (version {last_state.version})")

        state = last_state or HistoryState()
        logger.info(f"Batch done for {project_id}: {len(applied)} applied, {len(skipped)} skipped")
        return BatchResult(
            committed=bool(applied),
            version=state.version,
            can_undo=state.can_undo,
            can_redo=state.can_redo,
            applied=applied,
            skipped=skipped,
        )
