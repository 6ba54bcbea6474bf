"""Source authority lookup.

Maps a source name to a 0-100 authority score: exact table match first,
then a case-insensitive provider-name fragment match, then a default.

The table is the one piece of mutable state shared between concurrent
scoring calls. Readers grab the current immutable mapping without locking;
writers copy, modify and swap it under a lock, so a reader always sees a
complete table and concurrent updates are last-writer-wins.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from marketpulse.logging_setup import get_logger

logger = get_logger("content.authority")

DEFAULT_AUTHORITY = 50

# Named providers the table starts with
DEFAULT_SOURCE_AUTHORITY: Dict[str, float] = {
    "Bloomberg API": 100,
    "Reuters API": 95,
    "Financial Times": 90,
    "Wall Street Journal": 90,
    "MarketWatch": 80,
    "Yahoo Finance": 75,
    "CNBC": 70,
    "Chat with Traders": 85,
    "The Meb Faber Research Podcast": 80,
    "Gmail": 60,
}

# Checked in order against the lower-cased source name
PROVIDER_FRAGMENTS: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("bloomberg",), 95),
    (("reuters",), 90),
    (("financial times", "ft.com"), 90),
    (("wall street journal", "wsj"), 90),
    (("marketwatch",), 80),
    (("yahoo finance",), 75),
    (("cnbc",), 70),
    (("seeking alpha",), 65),
    (("motley fool",), 60),
)


def _clamp(authority: float) -> float:
    return max(0.0, min(100.0, float(authority)))


def fragment_authority(source_name: str) -> Optional[float]:
    """Authority from well-known provider name fragments, if any match."""
    name_lower = (source_name or "").lower()
    for fragments, authority in PROVIDER_FRAGMENTS:
        if any(fragment in name_lower for fragment in fragments):
            return float(authority)
    return None


class SourceAuthorityTable:
    """Thread-safe source name to authority mapping."""

    def __init__(
        self,
        overrides: Optional[Mapping[str, float]] = None,
        include_defaults: bool = True,
        default: float = DEFAULT_AUTHORITY,
    ):
        """Initialize the table.

        Args:
            overrides: Exact-name authorities applied over the defaults.
            include_defaults: Seed with the named default providers.
            default: Authority for sources nothing else matches.
        """
        table: Dict[str, float] = {}
        if include_defaults:
            table.update({k: float(v) for k, v in DEFAULT_SOURCE_AUTHORITY.items()})
        for name, authority in (overrides or {}).items():
            table[name] = _clamp(authority)

        self._default = _clamp(default)
        self._table: Mapping[str, float] = MappingProxyType(table)
        self._write_lock = threading.Lock()

    def get(self, source_name: str) -> float:
        """Look up the authority of a source."""
        table = self._table
        if source_name in table:
            return table[source_name]

        authority = fragment_authority(source_name)
        if authority is not None:
            return authority
        return self._default

    def update(self, source_name: str, authority: float) -> float:
        """Set the exact-match authority of a source, clamped to 0-100.

        Returns:
            The stored (clamped) authority.
        """
        value = _clamp(authority)
        with self._write_lock:
            table = dict(self._table)
            table[source_name] = value
            self._table = MappingProxyType(table)

        logger.info("Updated source authority: %s=%.1f", source_name, value)
        return value

    def remove(self, source_name: str) -> bool:
        """Drop an exact-match entry; lookups fall back to fragments."""
        with self._write_lock:
            if source_name not in self._table:
                return False
            table = dict(self._table)
            del table[source_name]
            self._table = MappingProxyType(table)
        return True

    def snapshot(self) -> Dict[str, float]:
        """Copy of the current exact-match entries."""
        return dict(self._table)

    def __contains__(self, source_name: object) -> bool:
        return source_name in self._table

    def __len__(self) -> int:
        return len(self._table)
