"""Utils package - Utility modules for the patch engine.

This package provides shared utilities used by the editor and CLI:
- snippet_locator: Find the unique span a snippet refers to
- plan_parser: Parse agent responses into patch plans
- diff_utils: Generate diffs and change statistics
- excerpts: Prepare file context for agent prompts
- source_loader: Read unedited template source
- logging: Centralized logging configuration
- persistence: JSON document storage on disk
"""

# Snippet location
from utils.snippet_locator import (
    LocateResult,
    MatchStatus,
    locate_snippet,
    map_normalized_span,
    normalize_whitespace,
    replace_span,
)

# Patch plan parsing
from utils.plan_parser import (
    PlanParseResult,
    extract_first_json_object,
    is_safe_relative_path,
    parse_patch_plan,
)

# Diff utilities
from utils.diff_utils import make_unified_diff, compute_diff_stats

# Context preparation
from utils.excerpts import build_targeted_excerpts, clamp_max_chars, truncate_content

# Fallback source
from utils.source_loader import TemplateSourceLoader

# Logging configuration
from utils.logging import get_logger

# Persistence utilities
from utils.persistence import Persistor

__all__ = [
    # Snippet location
    "LocateResult",
    "MatchStatus",
    "locate_snippet",
    "map_normalized_span",
    "normalize_whitespace",
    "replace_span",
    # Patch plan parsing
    "PlanParseResult",
    "extract_first_json_object",
    "is_safe_relative_path",
    "parse_patch_plan",
    # Diff utilities
    "make_unified_diff",
    "compute_diff_stats",
    # Context preparation
    "build_targeted_excerpts",
    "clamp_max_chars",
    "truncate_content",
    # Fallback source
    "TemplateSourceLoader",
    # Logging
    "get_logger",
    # Persistence
    "Persistor",
]
