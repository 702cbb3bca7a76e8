from typing import Any, Iterable, Optional

from config import AppConfig
from editor.applicator import PatchApplicator, check_supported, coerce_operations
from editor.backends import FileBackend
from editor.content_store import ContentStore
from editor.exceptions import InvalidRequestError
from editor.history import HistoryLedger
from models.schemas import BatchResult, FileContext, HistoryResult, HistoryState, ProjectRecord
from utils.excerpts import build_targeted_excerpts, clamp_max_chars, truncate_content
from utils.logging import get_logger
from utils.plan_parser import is_safe_relative_path, parse_patch_plan
from utils.source_loader import TemplateSourceLoader

logger = get_logger("orchestrator")


def _require_project_id(project_id: Optional[str]) -> str:
    normalized = str(project_id or "").strip()
    if not normalized:
        raise InvalidRequestError("Missing projectId.")
    return normalized


class EditorService:
    """Entry point for editor requests: apply, undo, redo and context.

    Owns the process-scoped registries (content store, history ledger) and
    hands them to the applicator. Requests for one project must not run
    concurrently; the service does no locking.

    Request flow:
    1. Restore or seed the project's history
    2. Run the operation against ledger and store
    3. Persist the history snapshot when a durable backend is configured
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[ContentStore] = None,
        ledger: Optional[HistoryLedger] = None,
        source_loader: Optional[TemplateSourceLoader] = None,
    ):
        self.config = config or AppConfig()

        if store is None:
            backend = None
            if self.config.store.backend == "file":
                backend = FileBackend(
                    data_dir=self.config.store.data_dir,
                    dry_run=self.config.store.dry_run,
                    persist_history=self.config.store.persist_history,
                )
                logger.info(f"Durable file backend at {self.config.store.data_dir}")
            elif self.config.store.backend != "memory":
                logger.warning(f"Unknown store backend '{self.config.store.backend}', using memory only")
            store = ContentStore(backend=backend)

        self.store = store
        self.ledger = ledger or HistoryLedger()
        self.source_loader = source_loader or TemplateSourceLoader(self.config.editor.templates_dir)
        self.applicator = PatchApplicator(
            store=self.store,
            ledger=self.ledger,
            fallback_loader=self.source_loader,
            fuzzy=self.config.matching.fuzzy,
            fuzzy_require_unique=self.config.matching.fuzzy_require_unique,
        )

    def _ensure_history(self, project_id: str) -> ProjectRecord:
        """Make sure the ledger knows the project before it is mutated.

        A persisted history wins unless it is older than the stored content;
        otherwise the counter starts from the stored version so it never goes
        backwards across restarts.
        """
        record = self.store.ensure(project_id)
        if not self.ledger.has(project_id):
            persisted = self.store.load_history(project_id)
            if persisted is not None and int(persisted.get("version", 0)) >= record.version:
                self.ledger.restore(project_id, persisted)
                return record
            if persisted is not None:
                # Its stacks describe content that has since been overwritten
                logger.warning(
                    f"Discarding stale history for {project_id} "
                    f"(history version {persisted.get('version')}, content version {record.version})"
                )
            self.ledger.seed(project_id, record.version)
        return record

    def _persist_history(self, project_id: str) -> None:
        if self.store.is_durable:
            self.store.save_history(project_id, self.ledger.snapshot(project_id))

    def create_project(self, template_slug: str) -> ProjectRecord:
        slug = str(template_slug or "").strip()
        if not slug:
            raise InvalidRequestError("Missing templateSlug.")
        record = self.store.create(slug)
        self.ledger.seed(record.id, record.version)
        return record

    def apply(self, project_id: str, operations: Iterable[Any]) -> BatchResult:
        """Apply an already-validated batch of patch operations."""
        project_id = _require_project_id(project_id)
        ops = coerce_operations(operations)
        check_supported(ops)

        self._ensure_history(project_id)
        result = self.applicator.apply(project_id, ops)
        if result.committed:
            self._persist_history(project_id)
        return result

    def apply_plan(self, project_id: str, raw_plan: Any) -> BatchResult:
        """Parse an agent response into a patch plan and apply it.

        Raises:
            InvalidRequestError: Missing project id or unparseable plan
        """
        project_id = _require_project_id(project_id)
        parsed = parse_patch_plan(raw_plan)
        if not parsed.ok:
            raise InvalidRequestError(parsed.error)
        for warning in parsed.warnings:
            logger.warning(f"Plan for {project_id}: {warning}")
        return self.apply(project_id, parsed.plan.changes)

    def undo(self, project_id: str) -> HistoryResult:
        """Step back one change and restore its 'before' content."""
        project_id = _require_project_id(project_id)
        self._ensure_history(project_id)

        step = self.ledger.undo(project_id)
        if step.entry is None:
            logger.info(f"Nothing to undo for {project_id}")
            return HistoryResult(version=step.version, can_undo=step.can_undo, can_redo=step.can_redo)

        self.store.write(project_id, step.entry.file_path, step.entry.before, step.version)
        self._persist_history(project_id)
        logger.info(f"Undid change to {step.entry.file_path} for {project_id} (version {step.version})")
        return HistoryResult(
            version=step.version,
            can_undo=step.can_undo,
            can_redo=step.can_redo,
            file_path=step.entry.file_path,
            content=step.entry.before,
        )

    def redo(self, project_id: str) -> HistoryResult:
        """Re-apply the last undone change and restore its 'after' content."""
        project_id = _require_project_id(project_id)
        self._ensure_history(project_id)

        step = self.ledger.redo(project_id)
        if step.entry is None:
            logger.info(f"Nothing to redo for {project_id}")
            return HistoryResult(version=step.version, can_undo=step.can_undo, can_redo=step.can_redo)

        self.store.write(project_id, step.entry.file_path, step.entry.after, step.version)
        self._persist_history(project_id)
        logger.info(f"Redid change to {step.entry.file_path} for {project_id} (version {step.version})")
        return HistoryResult(
            version=step.version,
            can_undo=step.can_undo,
            can_redo=step.can_redo,
            file_path=step.entry.file_path,
            content=step.entry.after,
        )

    def history_state(self, project_id: str) -> HistoryState:
        project_id = _require_project_id(project_id)
        self._ensure_history(project_id)
        return self.ledger.state(project_id)

    def read_file(self, project_id: str, file_path: str) -> str:
        """Current content of a file, falling back to the template source."""
        project_id = _require_project_id(project_id)
        if not is_safe_relative_path(file_path):
            raise InvalidRequestError("Unsafe file path.")
        return self.applicator.load_before(project_id, file_path)

    def context(
        self,
        project_id: str,
        file_path: str,
        max_chars: Optional[int] = None,
        query: Optional[str] = None,
    ) -> FileContext:
        """Prepare a file's current content for an agent prompt."""
        file_path = str(file_path or "").strip()
        if not file_path:
            raise InvalidRequestError("Missing filePath.")

        raw = self.read_file(project_id, file_path)
        limit = clamp_max_chars(max_chars, default=self.config.editor.context_max_chars)
        content, truncated = truncate_content(raw, limit)

        excerpts = []
        if query:
            excerpts = build_targeted_excerpts(
                raw,
                query,
                radius=self.config.editor.excerpt_radius,
                max_excerpts=self.config.editor.max_excerpts,
            )

        return FileContext(
            file_path=file_path,
            content=content,
            truncated=truncated,
            excerpts=excerpts,
            metadata={"total_chars": len(raw), "max_chars": limit},
        )
