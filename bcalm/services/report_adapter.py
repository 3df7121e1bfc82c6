# bcalm/services/report_adapter.py
"""
Boundary adapter for analysis-worker results.

Workers have shipped several shapes over time: camelCase or snake_case keys,
a single-element array around the body, `overall_score` instead of `score`,
`top_strengths` / `top_fixes` / `seven_step_plan` with objects instead of
plain strings. Everything is folded into one `AnalysisReport` here so the rest
of the code only ever sees that type.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bcalm.core.errors import InvalidPayload
from bcalm.models.analysis import AnalysisReport

logger = logging.getLogger(__name__)

# keys searched, in order, when a list item is an object
_ITEM_TEXT_KEYS = ("point", "fix", "action", "text")

_MISSING = object()

def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return _MISSING

def _item_text(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in _ITEM_TEXT_KEYS:
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None

def _string_list(value: Any) -> Tuple[List[str], bool]:
    """Returns (items, ok)."""
    if value is _MISSING:
        return [], False
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return [], False
    out = []
    for item in value:
        text = _item_text(item)
        if text is None:
            return [], False
        out.append(text)
    return out, True

def _flag(value: Any) -> Tuple[bool, bool]:
    if value is _MISSING:
        return False, True
    if isinstance(value, bool):
        return value, True
    return False, False

def unwrap_body(raw: Any) -> Any:
    if isinstance(raw, list) and len(raw) == 1:
        return raw[0]
    return raw

def parse_callback_payload(raw: Any) -> AnalysisReport:
    """
    Validate and normalize a callback body. Raises InvalidPayload naming every
    offending field (camelCase names, as the worker sends them).
    """
    data = unwrap_body(raw)
    if not isinstance(data, dict):
        raise InvalidPayload(["body"], "Callback body must be a JSON object")

    errors: List[str] = []

    job_id = _first(data, "jobId")
    if job_id is _MISSING:
        meta = data.get("meta")
        if isinstance(meta, dict):
            job_id = _first(meta, "jobId")
    if not isinstance(job_id, str) or not job_id.strip():
        errors.append("jobId")

    score = _first(data, "score", "overall_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        errors.append("score")

    strengths, ok = _string_list(_first(data, "strengths", "top_strengths"))
    if not ok:
        errors.append("strengths")
    gaps, ok = _string_list(_first(data, "gaps", "top_fixes"))
    if not ok:
        errors.append("gaps")
    quick_wins, ok = _string_list(_first(data, "quickWins", "quick_wins", "seven_step_plan"))
    if not ok:
        errors.append("quickWins")

    notes = _first(data, "notes", "summary")
    if notes is _MISSING:
        notes = None
    elif not isinstance(notes, str):
        errors.append("notes")

    needs_jd, ok = _flag(_first(data, "needsJd", "needs_jd"))
    if not ok:
        errors.append("needsJd")
    needs_target_role, ok = _flag(_first(data, "needsTargetRole", "needs_target_role"))
    if not ok:
        errors.append("needsTargetRole")

    if errors:
        logger.warning("Rejected callback payload, invalid fields: %s", errors)
        raise InvalidPayload(errors)

    return AnalysisReport(
        job_id=job_id,
        score=float(score),
        strengths=strengths,
        gaps=gaps,
        quick_wins=quick_wins,
        notes=notes,
        needs_jd=needs_jd,
        needs_target_role=needs_target_role,
        raw=data,
    )
