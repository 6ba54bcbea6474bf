"""Relevance scoring with recency decay and source authority.

Combines text signals (keyword tags, ticker symbols), source authority and
an exponential recency decay into one explainable 0-100 score. Scoring is
pure and deterministic: the only clock read is a single "now" per call,
and callers may pin it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from marketpulse.content.authority import SourceAuthorityTable
from marketpulse.content.models import ContentItem, ScoreBreakdown, ScoredItem, Sentiment
from marketpulse.content.scoring_config import WEIGHT_KEYS, ScoringConfig
from marketpulse.content.signals import extract_signals, summarize_tiers
from marketpulse.logging_setup import get_logger

logger = get_logger("content.score")

TimestampLike = Union[str, datetime, int, float, None]


@dataclass(frozen=True)
class ScoreResult:
    """Output of scoring one piece of text."""

    score: float
    breakdown: ScoreBreakdown
    tags: Tuple[str, ...]
    symbols: Tuple[str, ...]
    sentiment: Sentiment


def parse_timestamp(value: TimestampLike) -> Optional[datetime]:
    """Parse a timestamp into an aware UTC datetime.

    Accepts datetimes, ISO 8601 strings (with or without ``Z``), RFC 2822
    dates as found in email headers, and epoch seconds. Naive values are
    taken as UTC.

    Returns:
        The parsed datetime, or None if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    dt: Optional[datetime] = None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError):
                return None
        if dt is None:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_recency_score(
    timestamp: TimestampLike,
    now: datetime,
    window_hours: float = 48.0,
) -> float:
    """Exponential recency decay.

    ``100 * exp(-age_hours / (window_hours / 3))`` for ages within the
    window; 0 for future timestamps, ages past the window, and timestamps
    that do not parse.
    """
    published = parse_timestamp(timestamp)
    if published is None:
        logger.debug("Unparseable timestamp, recency set to 0: %r", timestamp)
        return 0.0

    age_hours = (now - published).total_seconds() / 3600.0
    if age_hours < 0 or age_hours > window_hours:
        return 0.0

    return 100.0 * math.exp(-age_hours / (window_hours / 3.0))


def combine_subscores(breakdown: ScoreBreakdown, weights: Mapping[str, float]) -> float:
    """Weighted average of subscores, clamped to [0, 100].

    Normalizing by the weight total keeps the result in range for any
    positive weights and keeps each factor's share proportional.
    """
    subscores = breakdown.to_dict()
    total_weight = sum(weights[key] for key in WEIGHT_KEYS)
    weighted = sum(subscores[key] / 100.0 * weights[key] for key in WEIGHT_KEYS)
    final_score = 100.0 * weighted / total_weight
    return max(0.0, min(100.0, final_score))


class RelevanceScorer:
    """Deterministic relevance scorer.

    Construction validates the configuration (ScoringConfig raises
    ScoringConfigError on bad shape), so a misconfigured scorer never
    exists.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        authority: Optional[SourceAuthorityTable] = None,
    ):
        """Initialize scorer.

        Args:
            config: Scoring configuration (defaults when omitted). The scorer
                keeps a re-validated copy, so later edits to the caller's
                object do not reach it.
            authority: Shared authority table. When omitted, a table seeded
                with defaults and the config's overrides is created.
        """
        self.config = (
            ScoringConfig.from_dict(config.to_dict()) if config is not None else ScoringConfig()
        )
        if authority is None:
            authority = SourceAuthorityTable(self.config.source_authority_overrides)
        self.authority = authority

        logger.info(
            "Relevance scorer ready: tiers=%s weights=%s window=%.1fh",
            summarize_tiers(self.config),
            self.config.weights,
            self.config.recency_window_hours,
        )

    def score(
        self,
        title: Optional[str],
        body: Optional[str],
        source_name: str,
        timestamp: TimestampLike,
        now: Optional[datetime] = None,
    ) -> ScoreResult:
        """Score one piece of content.

        Args:
            title: Item title.
            body: Item body text.
            source_name: Display name of the originating source.
            timestamp: Publication/receipt time.
            now: Reference time; read from the clock once when omitted.

        Returns:
            ScoreResult with final score, unweighted breakdown, tags,
            symbols and sentiment.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        signals = extract_signals(title, body, self.config)
        breakdown = ScoreBreakdown(
            tags=signals.tag_score,
            symbols=signals.symbol_score,
            authority=self.authority.get(source_name),
            recency=compute_recency_score(timestamp, now, self.config.recency_window_hours),
        )

        return ScoreResult(
            score=combine_subscores(breakdown, self.config.weights),
            breakdown=breakdown,
            tags=signals.tags,
            symbols=signals.symbols,
            sentiment=signals.sentiment,
        )

    def score_item(
        self,
        item: Union[ContentItem, ScoredItem],
        now: Optional[datetime] = None,
    ) -> ScoredItem:
        """Score an item, always recomputing derived fields.

        A ScoredItem is re-scored from its raw item; its old score is
        never reused.
        """
        raw = item.item if isinstance(item, ScoredItem) else item
        result = self.score(raw.title, raw.body, raw.source_name, raw.timestamp, now=now)
        return ScoredItem(
            item=raw,
            score=result.score,
            breakdown=result.breakdown,
            tags=result.tags,
            symbols=result.symbols,
            sentiment=result.sentiment,
            published_at=parse_timestamp(raw.timestamp),
        )

    def score_items(
        self,
        items: Iterable[Union[ContentItem, ScoredItem]],
        now: Optional[datetime] = None,
    ) -> List[ScoredItem]:
        """Score many items against one reference time."""
        if now is None:
            now = datetime.now(timezone.utc)
        return [self.score_item(item, now=now) for item in items]

    def update_source_authority(self, source_name: str, authority: float) -> float:
        """Tune a source's authority at runtime (clamped to 0-100)."""
        return self.authority.update(source_name, authority)

    def get_source_authority(self, source_name: str) -> float:
        """Authority the scorer would use for a source name."""
        return self.authority.get(source_name)
