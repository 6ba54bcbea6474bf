"""Text signal extraction.

Turns raw title + body text into keyword tags, candidate ticker symbols
and a coarse sentiment label. Everything here is a pure function of its
inputs and never raises on bad text: ``None`` or blank input yields empty
tags/symbols and neutral sentiment.

Symbol extraction is a plain all-caps regex followed by a denylist of
common uppercase words. It is a cheap precision fix, not NLP: real tickers
that are also common words (ALL, the insurer; ARE, the REIT) are excluded
on purpose, and capitalized words missing from the denylist still slip
through.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from marketpulse.content.models import Sentiment
from marketpulse.content.scoring_config import TIERS, ScoringConfig

# 1-5 uppercase letters, optionally followed by up to 2 digits
SYMBOL_PATTERN = re.compile(r"\b[A-Z]{1,5}\d{0,2}\b")

WORD_PATTERN = re.compile(r"[a-z]+")

SYMBOL_POINTS = 20
MAJOR_SYMBOL_BONUS = 10

# Common uppercase words and abbreviations that are not tickers
SYMBOL_DENYLIST: frozenset = frozenset({
    "A", "I", "AM", "AN", "AS", "AT", "BE", "BY", "DO", "GO", "HE", "IF",
    "IN", "IS", "IT", "ME", "MY", "NO", "OF", "OK", "ON", "OR", "SO", "TO",
    "UP", "US", "WE",
    "THE", "AND", "FOR", "ARE", "BUT", "NOT", "YOU", "ALL", "CAN", "HER",
    "WAS", "ONE", "OUR", "HAD", "HAS", "HIS", "HIM", "WHO", "OIL", "GAS",
    "NEW", "NOW", "TWO", "WAY", "ITS", "MAY", "DAY", "GET", "USE", "MAN",
    "OLD", "SEE", "HOW", "ILL", "BIG", "PUT", "END", "WHY", "LET", "SAY",
    "SHE", "TRY", "FAR", "RUN", "OWN", "TOP", "OUT", "OFF", "TOO", "YES",
    "BACK", "CALL", "EACH", "FROM", "GOOD", "HIGH", "JUST", "LAST", "LONG",
    "LOOK", "MAKE", "MOST", "MOVE", "MUCH", "NEXT", "OPEN", "OVER", "SAID",
    "SAME", "SHOW", "TAKE", "THAN", "THAT", "THEM", "THIS", "TIME", "VERY",
    "WANT", "WELL", "WERE", "WHAT", "WHEN", "WILL", "WITH", "YEAR", "YOUR",
    "ABOUT", "AFTER", "THEIR", "THERE", "THESE", "WHERE", "WHICH", "WOULD",
    "CEO", "CFO", "COO", "CTO", "IPO", "ETF", "EPS", "GDP", "CPI", "SEC",
    "FDA", "FED", "FOMC", "USA", "USD", "EU", "UK", "AI", "PR", "RSS",
    "URL", "YOY", "QOQ", "Q1", "Q2", "Q3", "Q4", "FY", "EST", "ET", "PM",
    "NEWS", "LLC", "INC", "LTD", "CO",
})

POSITIVE_WORDS: frozenset = frozenset({
    "bull", "bullish", "gain", "gains", "rise", "rises", "rising", "up",
    "surge", "surges", "surging", "jump", "jumps", "jumping", "rally",
    "rallies", "rallying", "boost", "boosts", "strong", "strength",
    "outperform", "beat", "beats", "exceed", "exceeds", "growth",
    "positive", "optimistic", "upgrade", "upgrades", "buy", "recommend",
    "record",
})

NEGATIVE_WORDS: frozenset = frozenset({
    "bear", "bearish", "fall", "falls", "falling", "drop", "drops",
    "dropping", "decline", "declines", "declining", "down", "plunge",
    "plunges", "plunging", "crash", "crashes", "crashing", "weak",
    "weakness", "underperform", "miss", "misses", "below", "concern",
    "concerns", "worry", "worries", "risk", "risks", "negative",
    "pessimistic", "downgrade", "downgrades", "sell",
})


@dataclass(frozen=True)
class TextSignals:
    """Signals extracted from one item's text."""

    tags: Tuple[str, ...]
    tag_score: float
    symbols: Tuple[str, ...]
    symbol_score: float
    sentiment: Sentiment


def _combine(title: Optional[str], body: Optional[str]) -> str:
    return f"{title or ''} {body or ''}"


def extract_tags(
    text: str,
    keyword_tiers: Mapping[str, Sequence[str]],
    tier_points: Mapping[str, float],
) -> Tuple[float, Tuple[str, ...]]:
    """Match tiered keyword phrases against text.

    Each distinct phrase found as a case-insensitive substring scores its
    tier's points once, however often it occurs. A phrase listed in more
    than one tier counts for the first (highest) tier only.

    Returns:
        (tag subscore clamped to [0, 100], matched phrases lower-cased
        in tier order)
    """
    if not text:
        return 0.0, ()

    text_lower = text.lower()
    tags: List[str] = []
    seen: Set[str] = set()
    score = 0.0

    for tier in TIERS:
        points = tier_points.get(tier, 0.0)
        for phrase in keyword_tiers.get(tier, ()):
            key = phrase.strip().lower()
            if not key or key in seen:
                continue
            if key in text_lower:
                seen.add(key)
                tags.append(key)
                score += points

    return max(0.0, min(100.0, score)), tuple(tags)


def extract_symbols(
    text: str,
    major_symbols: Iterable[str] = (),
) -> Tuple[float, Tuple[str, ...]]:
    """Extract candidate ticker symbols from original-case text.

    Returns:
        (symbol subscore in [0, 100], symbols in first-appearance order)
    """
    if not text:
        return 0.0, ()

    symbols: List[str] = []
    seen: Set[str] = set()
    for match in SYMBOL_PATTERN.finditer(text):
        candidate = match.group(0)
        if candidate in seen:
            continue
        seen.add(candidate)
        if _is_valid_symbol(candidate):
            symbols.append(candidate)

    if not symbols:
        return 0.0, ()

    majors = {s.upper() for s in major_symbols}
    major_count = sum(1 for s in symbols if s in majors)
    score = SYMBOL_POINTS * len(symbols) + MAJOR_SYMBOL_BONUS * major_count
    return float(min(100, score)), tuple(symbols)


def _is_valid_symbol(candidate: str) -> bool:
    """Check if an all-caps token looks like a ticker."""
    letters = candidate.rstrip("0123456789")
    if not 1 <= len(letters) <= 5:
        return False
    return candidate not in SYMBOL_DENYLIST and letters not in SYMBOL_DENYLIST


def count_sentiment_words(text: str) -> Tuple[int, int]:
    """Count positive and negative lexicon words (whole words)."""
    if not text:
        return 0, 0

    positive = 0
    negative = 0
    for word in WORD_PATTERN.findall(text.lower()):
        if word in POSITIVE_WORDS:
            positive += 1
        elif word in NEGATIVE_WORDS:
            negative += 1
    return positive, negative


def detect_sentiment(title: Optional[str], body: Optional[str] = None) -> Sentiment:
    """Vote a coarse sentiment label from lexicon word counts.

    Ties, including text with no lexicon words, are neutral.
    """
    positive, negative = count_sentiment_words(_combine(title, body))
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def extract_signals(
    title: Optional[str],
    body: Optional[str],
    config: Optional[ScoringConfig] = None,
) -> TextSignals:
    """Extract tags, symbols and sentiment from an item's text.

    Args:
        title: Item title (may be None or empty).
        body: Item body (may be None or empty).
        config: Scoring configuration; defaults when omitted.

    Returns:
        TextSignals with subscores in [0, 100].
    """
    if config is None:
        config = ScoringConfig()

    text = _combine(title, body)
    if not text.strip():
        return TextSignals((), 0.0, (), 0.0, Sentiment.NEUTRAL)

    tag_score, tags = extract_tags(text, config.keyword_tiers, config.tier_points)
    symbol_score, symbols = extract_symbols(text, config.major_symbols)

    return TextSignals(
        tags=tags,
        tag_score=tag_score,
        symbols=symbols,
        symbol_score=symbol_score,
        sentiment=detect_sentiment(title, body),
    )


def summarize_tiers(config: ScoringConfig) -> Dict[str, int]:
    """Number of phrases configured per tier."""
    return {tier: len(config.keyword_tiers.get(tier, ())) for tier in TIERS}
