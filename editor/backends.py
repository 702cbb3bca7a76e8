"""Durable backends for the content store.

A backend persists whole project documents (content, version and, when
enabled, history). The content store treats a missing backend as
cache-only operation for the lifetime of the process.
"""

import hashlib
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from models.schemas import ProjectRecord
from utils.logging import get_logger
from utils.persistence import Persistor

logger = get_logger("backends")


class DurableBackend(ABC):
    """Interface for durable project storage."""

    name: str = "base"

    @abstractmethod
    def load(self, project_id: str) -> Optional[ProjectRecord]:
        raise NotImplementedError()

    @abstractmethod
    def save(self, record: ProjectRecord) -> None:
        raise NotImplementedError()

    def load_history(self, project_id: str) -> Optional[Dict[str, Any]]:
        return None

    def save_history(self, project_id: str, data: Dict[str, Any]) -> None:
        return None


def _document_key(project_id: str) -> str:
    # Project ids are opaque; hash them into a filesystem-safe name
    return hashlib.sha256(project_id.encode("utf-8")).hexdigest()[:32]


class FileBackend(DurableBackend):
    """Stores one JSON document per project under a data directory.

    Layout:
        <data_dir>/projects/<key>.json   - ProjectRecord
        <data_dir>/history/<key>.json    - history snapshot
    """

    name = "file"

    def __init__(self, data_dir: str = "data", dry_run: bool = False, persist_history: bool = True):
        self.persistor = Persistor(base_dir=data_dir, dry_run=dry_run)
        self.persist_history = persist_history

    def load(self, project_id: str) -> Optional[ProjectRecord]:
        raw = self.persistor.load_json(f"projects/{_document_key(project_id)}.json")
        if raw is None:
            return None
        record = ProjectRecord(**raw)
        if record.id != project_id:
            logger.warning(f"Document key collision for {project_id} (stored id {record.id})")
            return None
        return record

    def save(self, record: ProjectRecord) -> None:
        self.persistor.save_json(
            f"projects/{_document_key(record.id)}.json",
            record.model_dump(mode="json"),
        )

    def load_history(self, project_id: str) -> Optional[Dict[str, Any]]:
        if not self.persist_history:
            return None
        raw = self.persistor.load_json(f"history/{_document_key(project_id)}.json")
        if raw is None or raw.get("project_id") != project_id:
            return None
        return raw.get("history")

    def save_history(self, project_id: str, data: Dict[str, Any]) -> None:
        if not self.persist_history:
            return
        self.persistor.save_json(
            f"history/{_document_key(project_id)}.json",
            {"project_id": project_id, "history": data},
        )
