"""Patch plan parsing for agent responses.

Agents answer with free text that embeds a JSON object of the form
{"changes": [{"filePath", "patchType", "description", "match", "content", ...}]}.
This module extracts that object and checks each change's shape before the
plan reaches the applicator. Problems are returned, not raised.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json

from models.schemas import PatchOperation, PatchPlan, PatchType
from utils.logging import get_logger

logger = get_logger("plan_parser")

PATCH_TYPES = {t.value for t in PatchType}


@dataclass
class PlanParseResult:
    """Result of parsing an agent patch plan."""
    ok: bool
    plan: Optional[PatchPlan] = None
    warnings: List[str] = field(default_factory=list)
    error: str = ""


def is_safe_relative_path(file_path: str) -> bool:
    normalized = str(file_path or "").replace("\\", "/")
    if not normalized.strip():
        return False
    if normalized.startswith("/"):
        return False
    if ".." in normalized:
        return False
    return True


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} block in text, or None.

    Braces are counted naively; braces inside JSON strings are not
    special-cased.
    """
    raw = str(text or "")
    first_brace = raw.find("{")
    if first_brace == -1:
        return None

    depth = 0
    for i in range(first_brace, len(raw)):
        ch = raw[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        if depth == 0:
            return raw[first_brace:i + 1]
    return None


def _fail(error: str) -> PlanParseResult:
    logger.warning(f"Rejected patch plan: {error}")
    return PlanParseResult(ok=False, error=error)


def _validate_change(index: int, item: Any, warnings: List[str]) -> Any:
    """Return a PatchOperation, or an error string."""
    if not isinstance(item, dict):
        return f"Change at index {index} must be an object."

    file_path = str(item.get("filePath") or "").strip()
    if not is_safe_relative_path(file_path):
        return f"Change at index {index} has unsafe filePath."

    patch_type = str(item.get("patchType") or "").strip()
    if patch_type not in PATCH_TYPES:
        return f"Change at index {index} has invalid patchType."

    description = str(item.get("description") or "").strip()
    if not description:
        warnings.append(f"Change at index {index} is missing a description.")

    target_selector = item.get("targetSelector")
    if not isinstance(target_selector, str) or not target_selector.strip():
        target_selector = None
    else:
        target_selector = target_selector.strip()

    match = item.get("match") if isinstance(item.get("match"), str) else None
    content = item.get("content") if isinstance(item.get("content"), str) else None
    css_props = item.get("cssProps") if isinstance(item.get("cssProps"), dict) else None

    if patch_type == PatchType.STYLE_UPDATE.value:
        if not target_selector:
            return f"style-update change at index {index} requires targetSelector."
        if css_props is None:
            return f"style-update change at index {index} requires cssProps."
    elif patch_type == PatchType.REPLACE_SNIPPET.value:
        if not match or not match.strip():
            return f"replace-snippet change at index {index} requires match."
        if not content:
            return f"replace-snippet change at index {index} requires content."
    elif not content:
        return f"{patch_type} change at index {index} requires content."

    return PatchOperation(
        file_path=file_path,
        patch_type=PatchType(patch_type),
        description=description,
        match=match,
        content=content,
        css_props=css_props,
        target_selector=target_selector,
    )


def parse_patch_plan(payload: Any) -> PlanParseResult:
    """Parse and validate an agent patch plan.

    Args:
        payload: Raw agent text containing a JSON object, or an already
            decoded dict

    Returns:
        PlanParseResult; on failure ok=False and error explains why
    """
    raw: Any = payload
    if isinstance(payload, str):
        extracted = extract_first_json_object(payload)
        if extracted is None:
            return _fail("No JSON object found in AI response.")
        try:
            raw = json.loads(extracted)
        except json.JSONDecodeError:
            return _fail("AI response JSON could not be parsed.")

    if not isinstance(raw, dict):
        return _fail("AI patch plan must be a JSON object.")

    changes_raw = raw.get("changes")
    if not isinstance(changes_raw, list):
        return _fail("AI patch plan must include an array 'changes'.")

    warnings: List[str] = []
    changes: List[PatchOperation] = []
    for index, item in enumerate(changes_raw):
        result = _validate_change(index, item, warnings)
        if isinstance(result, str):
            return _fail(result)
        changes.append(result)

    for warning in warnings:
        logger.debug(warning)
    return PlanParseResult(ok=True, plan=PatchPlan(changes=changes), warnings=warnings)
