"""Diff helpers for reporting committed changes.

- Unified diffs for CLI previews of a changed file
- Line-level statistics attached to applied operations
"""

from typing import Dict
import difflib


def make_unified_diff(original: str, patched: str, path: str, context: int = 3) -> str:
    """Generate a unified diff between original and patched content.

    Args:
        original: Content before the change
        patched: Content after the change
        path: Logical file path for diff headers
        context: Number of context lines around each hunk

    Returns:
        Unified diff string, empty when nothing changed
    """
    if original == patched:
        return ""
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        patched.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        n=context,
    )
    return "".join(diff)


def compute_diff_stats(original: str, patched: str) -> Dict[str, int]:
    """Count added, removed and unchanged lines between two texts."""
    matcher = difflib.SequenceMatcher(None, original.splitlines(), patched.splitlines())

    stats = {"lines_added": 0, "lines_removed": 0, "lines_unchanged": 0}
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            stats["lines_unchanged"] += i2 - i1
            continue
        # replace counts as both a removal and an addition
        if tag in ("replace", "delete"):
            stats["lines_removed"] += i2 - i1
        if tag in ("replace", "insert"):
            stats["lines_added"] += j2 - j1
    return stats
