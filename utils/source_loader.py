"""Fallback loader for unedited template source.

When a project has no recorded content for a path, the editor reads the
original file from the templates root instead.
"""

from pathlib import Path
from typing import Optional

from utils.logging import get_logger

logger = get_logger("source_loader")


class TemplateSourceLoader:
    def __init__(self, root: str = "."):
        self.root = Path(root).resolve()

    def resolve_safe_path(self, relative_path: str) -> Path:
        """Resolve relative_path under the root, refusing anything outside it."""
        normalized = str(relative_path or "").replace("\\", "/")
        full_path = (self.root / normalized).resolve()
        if not full_path.is_relative_to(self.root):
            raise ValueError("Unsafe file path.")
        return full_path

    def load(self, relative_path: str) -> Optional[str]:
        """Read the original source, or None when the file does not exist."""
        full_path = self.resolve_safe_path(relative_path)
        try:
            return full_path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            logger.debug(f"No template source for {relative_path} under {self.root}")
            return None

    def __call__(self, relative_path: str) -> Optional[str]:
        return self.load(relative_path)
