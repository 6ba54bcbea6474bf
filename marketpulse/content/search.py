"""Query search over scored content.

Scores items normally, then boosts those that match the query directly:
in the title, in the body, or as an extracted symbol.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from marketpulse.content.models import ContentItem, ScoredItem
from marketpulse.content.score import RelevanceScorer
from marketpulse.content.snapshot import rank_key
from marketpulse.logging_setup import get_logger

logger = get_logger("content.search")

TITLE_MATCH_BOOST = 15.0
BODY_MATCH_BOOST = 10.0
SYMBOL_MATCH_BOOST = 20.0


@dataclass(frozen=True)
class SearchHit:
    """A scored item with its query-boosted relevance."""

    scored: ScoredItem
    query_boost: float
    relevance: float

    @property
    def id(self) -> str:
        return self.scored.id


def compute_query_boost(scored: ScoredItem, query: str) -> float:
    """Boost for direct query matches (case-insensitive)."""
    query_lower = query.strip().lower()
    boost = 0.0
    if query_lower in scored.item.title.lower():
        boost += TITLE_MATCH_BOOST
    if query_lower in scored.item.body.lower():
        boost += BODY_MATCH_BOOST
    if any(symbol.lower() == query_lower for symbol in scored.symbols):
        boost += SYMBOL_MATCH_BOOST
    return boost


def search_items(
    items: Iterable[Union[ContentItem, ScoredItem]],
    scorer: RelevanceScorer,
    query: str,
    min_relevance: float = 50.0,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[SearchHit]:
    """Rank items against a free-text query.

    Args:
        items: Items to search.
        scorer: Relevance scorer.
        query: Search text; must not be blank.
        min_relevance: Minimum boosted relevance to keep.
        limit: Optional cap on hits returned.
        now: Reference time for recency.

    Returns:
        Hits ordered by boosted relevance, then recency, then id.

    Raises:
        ValueError: If the query is blank.
    """
    if not query or not query.strip():
        raise ValueError("Search query cannot be empty")

    if now is None:
        now = datetime.now(timezone.utc)

    hits: List[SearchHit] = []
    for scored in scorer.score_items(items, now=now):
        boost = compute_query_boost(scored, query)
        relevance = min(100.0, scored.score + boost)
        if relevance >= min_relevance:
            hits.append(SearchHit(scored=scored, query_boost=boost, relevance=relevance))

    hits.sort(key=lambda hit: (-hit.relevance,) + rank_key(hit.scored)[1:])
    logger.info("Search %r matched %d items (min_relevance=%.0f)", query, len(hits), min_relevance)

    if limit is not None:
        hits = hits[:limit]
    return hits
