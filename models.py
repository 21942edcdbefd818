from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class Provider(str, Enum):
    """External research data sources."""
    PERPLEXITY = "perplexity"
    EXA = "exa"


class ResearchItem(BaseModel):
    """Single research snippet as returned by a provider or the classifier."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    source: str
    content: str = ""
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    timestamp: str = Field(default_factory=utc_timestamp)
    url: Optional[str] = None
    fetched_by: Optional[Provider] = Field(default=None, alias="fetchedBy")

    @field_validator("confidence", mode="before")
    def clamp_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.5
        return max(0.0, min(1.0, value))

    @field_validator("content", mode="before")
    def coerce_content(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ClassifiedData(BaseModel):
    """Signals, noise and the strategic recommendation for one query."""

    model_config = ConfigDict(populate_by_name=True)

    signals: List[ResearchItem] = Field(default_factory=list)
    noise: List[ResearchItem] = Field(default_factory=list)
    strategic_decision: str = Field(default="", alias="strategicDecision")

    @property
    def is_empty(self) -> bool:
        return not self.signals and not self.noise


class ApiResponse(BaseModel):
    """JSON envelope emitted by the CLI in --json mode."""
    success: bool
    data: Optional[ClassifiedData] = None
    error: Optional[str] = None


class ClassificationEntry(BaseModel):
    """One classified item in an LLM response; index points into the prompt's items."""
    index: int
    reason: str = ""
    content: Optional[str] = None

    @field_validator("reason", mode="before")
    def coerce_reason(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("content", mode="before")
    def join_bullet_lists(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, list):
            return "\n".join(str(part) for part in v if part)
        return str(v)


class ChunkResult(BaseModel):
    """Parsed JSON contract of a classification request."""

    model_config = ConfigDict(populate_by_name=True)

    signals: List[ClassificationEntry] = Field(default_factory=list)
    noise: List[ClassificationEntry] = Field(default_factory=list)
    statistics: List[str] = Field(default_factory=list)
    strategic_decision: str = Field(default="", alias="strategicDecision")

    @field_validator("signals", "noise", mode="before")
    def drop_malformed_entries(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        kept = []
        for entry in v:
            if not isinstance(entry, dict):
                continue
            index = entry.get("index")
            if isinstance(index, bool) or not isinstance(index, (int, str)):
                continue
            if isinstance(index, str) and not index.strip().isdigit():
                continue
            kept.append(entry)
        return kept

    @field_validator("statistics", mode="before")
    def coerce_statistics(cls, v: Any) -> List[str]:
        if not isinstance(v, list):
            return []
        return [str(stat) for stat in v if stat]

    @field_validator("strategic_decision", mode="before")
    def coerce_decision(cls, v: Any) -> str:
        return "" if v is None else str(v)

    def offset(self, start_index: int) -> "ChunkResult":
        """Shift chunk-local indices into positions of the full item list."""
        if not start_index:
            return self
        return self.model_copy(
            update={
                "signals": [e.model_copy(update={"index": e.index + start_index}) for e in self.signals],
                "noise": [e.model_copy(update={"index": e.index + start_index}) for e in self.noise],
            }
        )
