from __future__ import annotations

import re
from typing import Any

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")
# "1." / "2)" / "3 -" / "Q4:" style prefixes on LLM-produced list lines
_NUMBERING_PATTERN = re.compile(r"^\s*(?:Q\s*)?\d+\s*[\).:\-]?\s*", re.IGNORECASE)
_QUESTION_LABEL_PATTERN = re.compile(r"^\s*Q\s*[:.\-]\s*", re.IGNORECASE)


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def split_lines(text: str) -> list[str]:
    lines = [line.strip() for line in (text or "").splitlines()]
    return [line for line in lines if line]


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def strip_numbering(line: str) -> str:
    return strip_bullet_prefix(_NUMBERING_PATTERN.sub("", line, count=1))


def strip_question_label(text: str) -> str:
    return _QUESTION_LABEL_PATTERN.sub("", text or "", count=1).strip()


def pick(payload: dict[str, Any], *keys: str) -> Any:
    """First non-null value among ``keys``; LLMs mix snake_case and camelCase."""
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def clamp_score(value: Any) -> int:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    return int(max(0.0, min(100.0, round(score))))


def string_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
    return items[:limit] if limit is not None else items


def object_list(value: Any, first: str, second: str) -> list[dict[str, str]]:
    if not isinstance(value, list):
        return []
    rows: list[dict[str, str]] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            rows.append({first: item.strip(), second: ""})
        elif isinstance(item, dict) and str(item.get(first) or "").strip():
            rows.append({first: str(item[first]).strip(), second: str(item.get(second) or "").strip()})
    return rows
