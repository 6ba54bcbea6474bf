"""Content records shared by the scorer, aggregator and collectors.

A ``ContentItem`` is the raw, write-once record a fetcher produces. Scoring
never mutates it; the scorer wraps it in a ``ScoredItem`` that carries the
derived fields (score, tags, symbols, sentiment). Derived fields found on
input data are dropped by ``ContentItem.from_dict`` and are always
recomputed.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class SourceKind(str, Enum):
    """Closed category of content origin."""

    NEWS = "news"
    PODCAST = "podcast"
    EMAIL = "email"

    @classmethod
    def parse(cls, value: Union[str, "SourceKind"]) -> "SourceKind":
        """Parse a kind from its value, accepting plural spellings.

        Raises:
            ValueError: If the value names no known kind.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized.endswith("s") and normalized[:-1] in cls._value2member_map_:
            normalized = normalized[:-1]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unknown source kind '{value}'. "
                f"Must be one of: {[k.value for k in cls]}"
            ) from None


class Sentiment(str, Enum):
    """Coarse sentiment label."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


# Fields computed by the scorer; ignored when present on input records
DERIVED_FIELDS = frozenset(
    {"score", "relevance_score", "relevanceScore", "tags", "marketTags",
     "symbols", "sentiment", "breakdown"}
)


def _compute_id(source_name: str, title: str, timestamp: str) -> str:
    """Compute a stable id for records that arrive without one."""
    content = f"{source_name}|{title}|{timestamp}".lower()
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class ContentItem:
    """One raw piece of content from any source."""

    id: str
    kind: SourceKind
    source_name: str
    timestamp: Union[str, datetime]
    title: str = ""
    body: str = ""
    source_url: Optional[str] = None
    source_author: Optional[str] = None

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        kind: Optional[Union[str, SourceKind]] = None,
    ) -> "ContentItem":
        """Build an item from a raw mapping (e.g. a JSONL record).

        ``kind`` overrides any kind stored in the record. Derived fields
        such as ``score`` or ``tags`` are ignored.
        """
        raw_kind = kind if kind is not None else data.get("kind", data.get("source_kind"))
        if raw_kind is None:
            raise ValueError("Content record has no source kind")

        source_name = str(data.get("source_name") or "unknown")
        title = str(data.get("title") or "")
        timestamp = data.get("timestamp") or ""
        if not isinstance(timestamp, datetime):
            timestamp = str(timestamp)

        item_id = data.get("id")
        if not item_id:
            item_id = _compute_id(source_name, title, str(timestamp))

        return cls(
            id=str(item_id),
            kind=SourceKind.parse(raw_kind),
            source_name=source_name,
            timestamp=timestamp,
            title=title,
            body=str(data.get("body") or ""),
            source_url=data.get("source_url"),
            source_author=data.get("source_author"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the raw fields."""
        timestamp = self.timestamp
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return {
            "id": self.id,
            "kind": self.kind.value,
            "source_name": self.source_name,
            "source_url": self.source_url,
            "source_author": self.source_author,
            "timestamp": timestamp,
            "title": self.title,
            "body": self.body,
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    """Unweighted subscores, each in [0, 100]."""

    tags: float
    symbols: float
    authority: float
    recency: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "tags": self.tags,
            "symbols": self.symbols,
            "authority": self.authority,
            "recency": self.recency,
        }


@dataclass(frozen=True)
class ScoredItem:
    """Scored view of a ContentItem.

    ``published_at`` is the parsed timestamp, or None when the raw
    timestamp could not be parsed.
    """

    item: ContentItem
    score: float
    breakdown: ScoreBreakdown
    tags: Tuple[str, ...]
    symbols: Tuple[str, ...]
    sentiment: Sentiment
    published_at: Optional[datetime] = None

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def kind(self) -> SourceKind:
        return self.item.kind

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def source_name(self) -> str:
        return self.item.source_name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize raw and derived fields together."""
        data = self.item.to_dict()
        data.update(
            {
                "score": round(self.score, 2),
                "breakdown": {k: round(v, 2) for k, v in self.breakdown.to_dict().items()},
                "tags": list(self.tags),
                "symbols": list(self.symbols),
                "sentiment": self.sentiment.value,
            }
        )
        return data


@dataclass
class Snapshot:
    """Composed output of one aggregation pass."""

    summary_text: str
    key_events: List[ScoredItem] = field(default_factory=list)
    alert_items: List[ScoredItem] = field(default_factory=list)
    cross_source_patterns: List[str] = field(default_factory=list)
    source_breakdown: Dict[SourceKind, int] = field(
        default_factory=lambda: dict.fromkeys(SourceKind, 0)
    )

    @property
    def total_items(self) -> int:
        return sum(self.source_breakdown.values())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible primitives."""
        return {
            "summary": self.summary_text,
            "key_events": [item.to_dict() for item in self.key_events],
            "alert_items": [item.to_dict() for item in self.alert_items],
            "cross_source_patterns": list(self.cross_source_patterns),
            "source_breakdown": {
                kind.value: self.source_breakdown.get(kind, 0) for kind in SourceKind
            },
        }
