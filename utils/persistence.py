import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from utils.logging import get_logger

logger = get_logger("persistence")


class Persistor:
    def __init__(self, base_dir: str = "data", dry_run: bool = False, log_writes: bool = True):
        self.base_dir = Path(base_dir)
        self.dry_run = dry_run
        self.log_writes = log_writes
        self._write_log: List[Dict[str, Any]] = []  # Track what would be written in dry-run

    def _ensure(self, path: Path):
        if not self.dry_run:
            path.parent.mkdir(parents=True, exist_ok=True)

    def _log_write(self, path: Path, content_type: str, size: int):
        """Log a write operation (for dry-run tracking)."""
        entry = {
            "path": str(path),
            "type": content_type,
            "size": size,
        }
        self._write_log.append(entry)
        if self.log_writes:
            logger.info(f"[DRY-RUN] Would write {content_type} ({size} bytes) to: {path}")

    def get_write_log(self) -> List[Dict[str, Any]]:
        """Get list of all writes that would have been made."""
        return self._write_log.copy()

    def _safe_path(self, rel_path: str) -> Path:
        ppath = Path(rel_path)
        # remove any parent traversal components for safety
        parts = [part for part in ppath.parts if part not in ("..", ".", "/", "\\")]
        if not parts:
            raise ValueError(f"Empty relative path: {rel_path!r}")
        return self.base_dir.joinpath(*parts)

    def save_json(self, rel_path: str, obj: Any) -> Path:
        p = self._safe_path(rel_path)
        content = json.dumps(obj, indent=2, ensure_ascii=False, default=str)

        if self.dry_run:
            self._log_write(p, "json", len(content))
            return p

        self._ensure(p)
        # Write to a sibling temp file first so readers never see a partial document
        tmp = p.with_suffix(p.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(p)
        return p

    def load_json(self, rel_path: str) -> Optional[Any]:
        p = self._safe_path(rel_path)
        if not p.exists():
            return None
        with open(p, "r", encoding="utf-8") as f:
            return json.load(f)
