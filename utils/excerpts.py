"""Context preparation for agent prompts.

Builds the file context an agent sees before proposing patches:
- Truncation to a clamped character budget
- Targeted excerpts around phrases and keywords from the user's request
"""

import re
from typing import Dict, List, Tuple

DEFAULT_MAX_CHARS = 12000
MIN_MAX_CHARS = 1000
MAX_MAX_CHARS = 40000

STOP_WORDS = frozenset({
    "the", "and", "for", "with", "that", "this", "make", "change", "update",
    "add", "remove", "set", "to", "a", "an", "in", "on", "of", "it", "is",
    "are", "be", "as", "at", "from", "into",
})

_QUOTED_RE = re.compile(r"\"([^\"]{4,120})\"|'([^']{4,120})'")


def clamp_max_chars(value=None, default: int = DEFAULT_MAX_CHARS) -> int:
    try:
        requested = int(value) if value else default
    except (TypeError, ValueError):
        requested = default
    return min(max(requested, MIN_MAX_CHARS), MAX_MAX_CHARS)


def truncate_content(raw: str, max_chars: int) -> Tuple[str, bool]:
    """Cut raw to max_chars; the flag reports whether anything was dropped."""
    if len(raw) > max_chars:
        return raw[:max_chars], True
    return raw, False


def extract_quoted_phrases(text: str) -> List[str]:
    phrases = []
    for m in _QUOTED_RE.finditer(str(text or "")):
        value = (m.group(1) or m.group(2) or "").strip()
        if value:
            phrases.append(value)
    return phrases


def extract_keywords(text: str, limit: int = 12) -> List[str]:
    """Lower-cased tokens of 4+ chars that are not stop words, deduplicated."""
    cleaned = re.sub(r"[^a-zA-Z0-9\s\-_/]", " ", str(text or "")).lower()
    tokens = [t for t in cleaned.split() if len(t) >= 4 and t not in STOP_WORDS][:limit]
    return list(dict.fromkeys(tokens))


def _style_anchors(query: str) -> List[str]:
    lower = str(query or "").lower()
    anchors = []
    if "background" in lower or "bg " in lower or "bg-" in lower:
        anchors.extend(["bg-", "className="])
    if "color" in lower or "theme" in lower:
        anchors.append("className=")
    return anchors


def build_targeted_excerpts(
    content: str,
    query: str,
    radius: int = 700,
    max_excerpts: int = 4,
) -> List[str]:
    """Cut windows of content around the first hit of each query term.

    Overlapping windows are merged; at most max_excerpts are rendered.
    """
    content = str(content or "")
    terms = extract_quoted_phrases(query) + extract_keywords(query) + _style_anchors(query)
    terms = [t for t in dict.fromkeys(terms) if t]

    lower = content.lower()
    windows: List[Tuple[int, int, str]] = []
    for term in terms:
        idx = lower.find(term.lower())
        if idx == -1:
            continue
        start = max(0, idx - radius)
        end = min(len(content), idx + len(term) + radius)
        windows.append((start, end, term))

    windows.sort(key=lambda w: w[0])

    merged: List[Dict] = []
    for start, end, term in windows:
        if not merged or start > merged[-1]["end"]:
            merged.append({"start": start, "end": end, "terms": [term]})
            continue
        merged[-1]["end"] = max(merged[-1]["end"], end)
        merged[-1]["terms"].append(term)

    excerpts = []
    for i, window in enumerate(merged[:max_excerpts], start=1):
        matched = ", ".join(dict.fromkeys(window["terms"]))
        excerpts.append("\n".join([
            f"--- EXCERPT {i} (matched: {matched}) ---",
            content[window["start"]:window["end"]],
            f"--- END EXCERPT {i} ---",
        ]))
    return excerpts
