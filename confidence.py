"""Deterministic confidence helpers used to rank and cap research items."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from models import ResearchItem


def clamp(value: Any, default: float = 0.5) -> float:
    """Coerce a provider score into [0, 1]."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if score != score:  # NaN
        return default
    return max(0.0, min(1.0, score))


def rank_by_confidence(items: Iterable[ResearchItem]) -> List[ResearchItem]:
    """Highest confidence first; ties keep their input order."""
    return sorted(items, key=lambda item: item.confidence, reverse=True)


def cap_sources(items: Sequence[ResearchItem], limit: int) -> List[ResearchItem]:
    """Keep the `limit` most confident items, or all of them in input order if within limit."""
    if limit <= 0:
        return []
    if len(items) <= limit:
        return list(items)
    return rank_by_confidence(items)[:limit]


def dedupe_by_url(items: Iterable[ResearchItem]) -> List[ResearchItem]:
    """
    Collapse records that point at the same URL, keeping the most confident one
    in the position of the first occurrence. Items without a URL are never merged.
    """
    result: List[ResearchItem] = []
    positions = {}
    for item in items:
        key = _url_key(item.url)
        if not key:
            result.append(item)
            continue
        if key not in positions:
            positions[key] = len(result)
            result.append(item)
            continue
        pos = positions[key]
        if item.confidence > result[pos].confidence:
            result[pos] = item
    return result


def _url_key(url: Optional[str]) -> str:
    if not url or url.strip() in ("", "#"):
        return ""
    return url.strip().rstrip("/").lower()


def percent(confidence: float) -> int:
    return int(round(clamp(confidence) * 100))
