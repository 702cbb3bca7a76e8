"""Versioned content store: in-process cache over an optional durable backend.

Reconciliation rule: the durable backend is the source of truth on a cold
start (cache miss); within a live process the cache is authoritative.
Writes go to the cache first, then the backend. The two are not
transactionally linked.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from editor.backends import DurableBackend
from models.schemas import ProjectRecord
from utils.logging import get_logger

logger = get_logger("content_store")

ID_SEPARATOR = "--"


def template_slug_from_id(project_id: str) -> str:
    """Recover the template slug from a '<slug>--<suffix>' project id."""
    normalized = str(project_id or "").strip()
    if ID_SEPARATOR in normalized:
        return normalized.split(ID_SEPARATOR)[0]
    return normalized


class ContentStore:
    def __init__(self, backend: Optional[DurableBackend] = None):
        self.backend = backend
        self._cache: Dict[str, ProjectRecord] = {}

    @property
    def is_durable(self) -> bool:
        return self.backend is not None

    def _write_through(self, record: ProjectRecord) -> None:
        self._cache[record.id] = record
        if self.backend is not None:
            self.backend.save(record)

    def create(self, template_slug: str) -> ProjectRecord:
        """Allocate a fresh project for a template, empty and at version 0."""
        slug = str(template_slug or "").strip()
        record = ProjectRecord(
            id=f"{slug}{ID_SEPARATOR}{uuid.uuid4()}",
            template_slug=slug,
        )
        self._write_through(record)
        logger.info(f"Created project {record.id}")
        return record

    def get(self, project_id: str) -> Optional[ProjectRecord]:
        """Return the record for project_id without creating one."""
        key = str(project_id or "").strip()
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        if self.backend is not None:
            loaded = self.backend.load(key)
            if loaded is not None:
                self._cache[key] = loaded
                return loaded
        return None

    def ensure(self, project_id: str) -> ProjectRecord:
        """Return the record for project_id, materializing it if unknown.

        Unknown ids are never an error: a zero-content record is synthesized,
        its slug recovered from the id prefix, and written through.
        """
        key = str(project_id or "").strip()
        existing = self.get(key)
        if existing is not None:
            return existing

        record = ProjectRecord(id=key, template_slug=template_slug_from_id(key))
        self._write_through(record)
        logger.info(f"Materialized unknown project {key} (template: {record.template_slug})")
        return record

    def read(self, project_id: str, file_path: str) -> Optional[str]:
        """Current content of file_path, or None when nothing was recorded.

        None tells the caller to fall back to the unedited template source.
        """
        record = self.get(project_id)
        if record is None:
            return None
        return record.files.get(file_path)

    def write(self, project_id: str, file_path: str, content: str, version: int) -> ProjectRecord:
        """Record content and version together, cache first then backend."""
        current = self.ensure(project_id)
        if version < current.version:
            logger.warning(
                f"Version for {current.id} moving backwards ({current.version} -> {version}); "
                "concurrent writers?"
            )

        files = dict(current.files)
        files[file_path] = content
        record = current.model_copy(update={
            "files": files,
            "version": version,
            "updated_at": datetime.now(timezone.utc),
        })
        self._write_through(record)
        logger.debug(f"Wrote {file_path} for {record.id} at version {version} ({len(content)} chars)")
        return record

    def load_history(self, project_id: str) -> Optional[Dict[str, Any]]:
        if self.backend is None:
            return None
        return self.backend.load_history(str(project_id or "").strip())

    def save_history(self, project_id: str, data: Dict[str, Any]) -> None:
        if self.backend is not None:
            self.backend.save_history(str(project_id or "").strip(), data)
