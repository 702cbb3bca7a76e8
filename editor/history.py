"""Per-project undo/redo history with a monotonic version counter."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.schemas import ChangeRecord, HistoryState, HistoryStep
from utils.logging import get_logger

logger = get_logger("history")


@dataclass
class ProjectHistory:
    undo: List[ChangeRecord] = field(default_factory=list)
    redo: List[ChangeRecord] = field(default_factory=list)
    version: int = 0

    def state(self) -> HistoryState:
        return HistoryState(
            version=self.version,
            can_undo=len(self.undo) > 0,
            can_redo=len(self.redo) > 0,
        )


class HistoryLedger:
    """Process-scoped registry of project histories.

    Stacks and version change only through push, undo and redo. Callers
    must not issue concurrent requests for the same project; there is no
    internal locking.
    """

    def __init__(self):
        self._histories: Dict[str, ProjectHistory] = {}

    def _ensure(self, project_id: str) -> ProjectHistory:
        key = str(project_id or "").strip()
        history = self._histories.get(key)
        if history is None:
            history = ProjectHistory()
            self._histories[key] = history
        return history

    def has(self, project_id: str) -> bool:
        return str(project_id or "").strip() in self._histories

    def seed(self, project_id: str, version: int) -> HistoryState:
        """Start a not-yet-seen project's counter at a persisted version.

        Has no effect once the project has a history in this process, so the
        counter can never move backwards.
        """
        if not self.has(project_id):
            history = self._ensure(project_id)
            history.version = max(0, int(version))
            logger.debug(f"Seeded history for {project_id} at version {history.version}")
        return self._ensure(project_id).state()

    def push(self, project_id: str, entry: ChangeRecord) -> HistoryState:
        """Record a newly applied change and discard the redo branch."""
        history = self._ensure(project_id)
        history.undo.append(entry)
        history.redo = []
        history.version += 1
        return history.state()

    def undo(self, project_id: str) -> HistoryStep:
        """Move the most recent change onto the redo stack.

        Returns the moved entry; the caller restores entry.before. With
        nothing to undo, returns the current state and entry=None.
        """
        history = self._ensure(project_id)
        entry: Optional[ChangeRecord] = history.undo.pop() if history.undo else None
        if entry is not None:
            history.redo.append(entry)
            history.version += 1
        return HistoryStep(entry=entry, **history.state().model_dump())

    def redo(self, project_id: str) -> HistoryStep:
        """Re-apply the most recently undone change; caller restores entry.after."""
        history = self._ensure(project_id)
        entry: Optional[ChangeRecord] = history.redo.pop() if history.redo else None
        if entry is not None:
            history.undo.append(entry)
            history.version += 1
        return HistoryStep(entry=entry, **history.state().model_dump())

    def state(self, project_id: str) -> HistoryState:
        return self._ensure(project_id).state()

    def snapshot(self, project_id: str) -> Dict[str, Any]:
        """Export one project's history as plain data for persistence."""
        history = self._ensure(project_id)
        return {
            "version": history.version,
            "undo": [entry.model_dump() for entry in history.undo],
            "redo": [entry.model_dump() for entry in history.redo],
        }

    def restore(self, project_id: str, data: Dict[str, Any]) -> HistoryState:
        """Load a persisted history for a project not yet seen in this process."""
        if self.has(project_id):
            return self.state(project_id)
        history = self._ensure(project_id)
        history.undo = [ChangeRecord(**entry) for entry in data.get("undo", [])]
        history.redo = [ChangeRecord(**entry) for entry in data.get("redo", [])]
        history.version = max(0, int(data.get("version", 0)))
        logger.debug(
            f"Restored history for {project_id}: version={history.version}, "
            f"undo={len(history.undo)}, redo={len(history.redo)}"
        )
        return history.state()
