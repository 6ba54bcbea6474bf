"""Pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone

import pytest

from marketpulse.config import reset_config
from marketpulse.content.models import ContentItem, SourceKind
from marketpulse.content.score import RelevanceScorer
from marketpulse.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset global state before each test."""
    reset_config()
    reset_logging()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def now() -> datetime:
    """Pinned reference time for deterministic recency."""
    return datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def scorer() -> RelevanceScorer:
    """Scorer with the default configuration."""
    return RelevanceScorer()


@pytest.fixture
def make_item(now: datetime) -> Callable[..., ContentItem]:
    """Factory for content items aged relative to ``now``."""

    def _make(
        item_id: str,
        title: str,
        body: str = "",
        kind: SourceKind = SourceKind.NEWS,
        source_name: str = "Random Blog",
        hours_ago: float = 0.0,
    ) -> ContentItem:
        return ContentItem(
            id=item_id,
            kind=kind,
            source_name=source_name,
            timestamp=(now - timedelta(hours=hours_ago)).isoformat(),
            title=title,
            body=body,
        )

    return _make
