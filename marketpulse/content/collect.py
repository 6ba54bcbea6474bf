"""Fan-out fetching and fan-in collection.

Fetchers for news, podcasts and email are external collaborators; this
module only defines the narrow contracts they satisfy and runs them in
parallel. A failing, rate-limited or slow source contributes zero items
and never fails the snapshot. Caching applies to raw fetcher output only,
so authority or weight changes still affect cached items on the next
score.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from marketpulse.config import get_config
from marketpulse.content.models import ContentItem, Snapshot, SourceKind
from marketpulse.content.score import RelevanceScorer
from marketpulse.content.snapshot import aggregate
from marketpulse.logging_setup import get_logger, log_event

logger = get_logger("content.collect")

# Seconds raw fetcher output stays cached, per source kind
CACHE_TTL_SECONDS: Dict[SourceKind, int] = {
    SourceKind.NEWS: 3600,
    SourceKind.PODCAST: 86400,
    SourceKind.EMAIL: 7200,
}


@dataclass
class FetchResult:
    """Items from one fetch, plus a non-fatal error marker."""

    items: List[ContentItem] = field(default_factory=list)
    error: Optional[str] = None


@runtime_checkable
class Fetcher(Protocol):
    """Source fetcher for one kind of content."""

    kind: SourceKind

    def fetch(self, timeframe: str, filters: Optional[Mapping[str, Any]] = None) -> FetchResult:
        ...


class Cache(Protocol):
    """Key/value cache with per-entry TTL."""

    def get(self, key: str) -> Tuple[Any, bool]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...


class RateLimiter(Protocol):
    """Guards third-party API budgets."""

    def try_acquire(self, source_id: str, budget: str) -> bool:
        ...


class MemoryCache:
    """In-process TTL cache (not persistent)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None, False
            return value, True

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
            for stale_key in expired:
                del self._entries[stale_key]
            self._entries[key] = (value, now + ttl_seconds)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def parse_timeframe(timeframe: str) -> timedelta:
    """Parse a timeframe string like '30m', '6h', '7d' or '1w'.

    A bare number is taken as hours.

    Raises:
        ValueError: If the string is not a timeframe.
    """
    text = (timeframe or "").strip().lower()
    units = {"m": "minutes", "h": "hours", "d": "days", "w": "weeks"}

    try:
        if text and text[-1] in units:
            value = int(text[:-1])
            unit = units[text[-1]]
        else:
            value = int(text)
            unit = "hours"
    except ValueError:
        raise ValueError(f"Invalid timeframe '{timeframe}'") from None

    if value <= 0:
        raise ValueError(f"Timeframe must be positive: '{timeframe}'")
    return timedelta(**{unit: value})


def fetch_cache_key(
    kind: SourceKind,
    timeframe: str,
    filters: Optional[Mapping[str, Any]] = None,
) -> str:
    """Cache key for raw fetcher output: kind, timeframe and filter hash."""
    filter_blob = json.dumps(filters or {}, sort_keys=True, default=str)
    filter_hash = hashlib.sha256(filter_blob.encode()).hexdigest()[:16]
    return f"{kind.value}:{timeframe}:{filter_hash}"


def _fetch_one(
    fetcher: Fetcher,
    timeframe: str,
    filters: Optional[Mapping[str, Any]],
    cache: Optional[Cache],
    rate_limiter: Optional[RateLimiter],
    budgets: Mapping[SourceKind, str],
) -> List[ContentItem]:
    kind = fetcher.kind
    key = fetch_cache_key(kind, timeframe, filters)

    if cache is not None:
        cached, found = cache.get(key)
        if found:
            logger.debug("Cache hit for %s", key)
            return list(cached)

    if rate_limiter is not None and kind in budgets:
        if not rate_limiter.try_acquire(kind.value, budgets[kind]):
            logger.warning("Rate limit reached for %s, skipping fetch", kind.value)
            return []

    result = fetcher.fetch(timeframe, filters)
    if result.error:
        logger.warning(
            "Partial fetch for %s: %s (%d items kept)", kind.value, result.error, len(result.items)
        )

    items = list(result.items)
    if cache is not None and result.error is None:
        cache.set(key, items, CACHE_TTL_SECONDS[kind])
    return items


def collect_items(
    fetchers: Sequence[Fetcher],
    timeframe: str,
    filters: Optional[Mapping[str, Any]] = None,
    cache: Optional[Cache] = None,
    rate_limiter: Optional[RateLimiter] = None,
    budgets: Optional[Mapping[SourceKind, str]] = None,
    max_workers: Optional[int] = None,
) -> Dict[SourceKind, List[ContentItem]]:
    """Run fetchers in parallel and gather whatever arrives.

    Args:
        fetchers: One fetcher per source kind.
        timeframe: Timeframe passed to each fetcher (e.g. '6h').
        filters: Filters passed to each fetcher.
        cache: Optional cache for raw fetcher output.
        rate_limiter: Optional limiter consulted before each fetch.
        budgets: Budget string per kind for the rate limiter (e.g. '100/hour').
        max_workers: Thread pool size; FETCH_MAX_WORKERS when omitted.

    Returns:
        Items per kind; every kind is present, failed kinds are empty.
    """
    parse_timeframe(timeframe)
    if max_workers is None:
        max_workers = get_config().fetch.max_workers

    results: Dict[SourceKind, List[ContentItem]] = {kind: [] for kind in SourceKind}
    if not fetchers:
        return results

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {
            executor.submit(
                _fetch_one, fetcher, timeframe, filters, cache, rate_limiter, budgets or {}
            ): fetcher.kind
            for fetcher in fetchers
        }

        for future in as_completed(futures):
            kind = futures[future]
            try:
                results[kind].extend(future.result())
                log_event(
                    logger, logging.INFO, "Fetched items", kind=kind.value, count=len(results[kind])
                )
            except Exception as e:
                logger.warning("Fetch failed for %s: %s", kind.value, e)

    return results


def build_market_snapshot(
    fetchers: Sequence[Fetcher],
    scorer: RelevanceScorer,
    timeframe: Optional[str] = None,
    priority_symbols: Optional[Sequence[str]] = None,
    filters: Optional[Mapping[str, Any]] = None,
    cache: Optional[Cache] = None,
    rate_limiter: Optional[RateLimiter] = None,
    budgets: Optional[Mapping[SourceKind, str]] = None,
    now: Optional[datetime] = None,
) -> Snapshot:
    """Fetch every source in parallel, then aggregate once."""
    if timeframe is None:
        timeframe = get_config().fetch.default_timeframe

    items_by_kind = collect_items(
        fetchers,
        timeframe,
        filters=filters,
        cache=cache,
        rate_limiter=rate_limiter,
        budgets=budgets,
    )
    return aggregate(items_by_kind, scorer, priority_symbols=priority_symbols, now=now)
