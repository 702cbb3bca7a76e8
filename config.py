from typing import Optional
from pydantic import BaseModel
import yaml
import os


class StoreConfig(BaseModel):
    """Where project content (and history) is kept."""
    backend: str = "memory"        # "memory" (cache only) or "file"
    data_dir: str = "data"         # Root for the file backend
    persist_history: bool = True   # If True, undo/redo stacks survive restarts (file backend)
    dry_run: bool = False          # If True, log durable writes instead of performing them


class MatchingConfig(BaseModel):
    """Snippet matching behavior for replace-snippet patches."""
    fuzzy: bool = True                 # Fall back to whitespace-normalized matching
    fuzzy_require_unique: bool = True  # Reject a second normalized hit as ambiguous


class EditorConfig(BaseModel):
    templates_dir: str = "."        # Root of unedited template source (fallback content)
    context_max_chars: int = 12000  # Default context budget (clamped to 1000..40000)
    excerpt_radius: int = 700       # Chars of context on each side of an excerpt hit
    max_excerpts: int = 4


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_file: str = "patch_ledger.log"
    console: bool = True


class AppConfig(BaseModel):
    store: StoreConfig = StoreConfig()
    matching: MatchingConfig = MatchingConfig()
    editor: EditorConfig = EditorConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Optional[str] = None) -> AppConfig:
    path = path or os.environ.get("PATCH_LEDGER_CONFIG", "config.yml")
    raw = {}
    # Defaults if no config file
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # Allow the data directory to be redirected per deployment
    data_dir_env = os.environ.get("PATCH_LEDGER_DATA_DIR")
    if data_dir_env:
        store = dict(raw.get("store") or {})
        store["data_dir"] = data_dir_env
        raw["store"] = store

    return AppConfig(**raw)
