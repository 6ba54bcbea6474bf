"""Relevance scoring configuration schema and validation.

Provides the ScoringConfig dataclass and utilities for loading/saving it
as YAML. Shape errors are raised once, at construction, as
ScoringConfigError so a bad config fails fast instead of producing
meaningless scores.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from marketpulse.config import get_config
from marketpulse.logging_setup import get_logger

logger = get_logger("content.scoring_config")

TIERS: Tuple[str, ...] = ("high", "medium", "low")

WEIGHT_KEYS: Tuple[str, ...] = ("tags", "symbols", "authority", "recency")

KIND_KEYS: Tuple[str, ...] = ("news", "podcast", "email")

VALID_KEYS = {
    "keyword_tiers",
    "tier_points",
    "weights",
    "recency_window_hours",
    "alert_threshold",
    "top_k_per_kind",
    "major_symbols",
    "source_authority_overrides",
}

DEFAULT_KEYWORD_TIERS: Dict[str, List[str]] = {
    "high": [
        "earnings", "fed", "federal reserve", "interest rate", "rate hike",
        "rate cut", "inflation", "recession", "merger", "acquisition", "ipo",
        "bankruptcy", "guidance", "layoffs", "bull market", "bear market",
    ],
    "medium": [
        "revenue", "profit", "dividend", "buyback", "upgrade", "downgrade",
        "rates", "stock", "market", "trading", "investment", "portfolio",
        "outlook", "forecast", "treasury", "yields",
    ],
    "low": [
        "price", "volume", "analysis", "report", "shares", "investor",
        "sector", "quarter", "growth", "update",
    ],
}

DEFAULT_TIER_POINTS: Dict[str, float] = {"high": 25.0, "medium": 15.0, "low": 8.0}

DEFAULT_WEIGHTS: Dict[str, float] = {
    "tags": 35.0,
    "symbols": 35.0,
    "authority": 20.0,
    "recency": 10.0,
}

DEFAULT_TOP_K: Dict[str, int] = {"news": 3, "podcast": 2, "email": 2}

DEFAULT_MAJOR_SYMBOLS: Tuple[str, ...] = (
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "SPY", "QQQ",
)


class ScoringConfigError(Exception):
    """Raised when scoring configuration is invalid."""

    pass


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass
class ScoringConfig:
    """Tunables for relevance scoring and snapshot selection.

    Attributes:
        keyword_tiers: Phrases per tier (high, medium, low).
        tier_points: Points per distinct matched phrase in each tier.
        weights: Relative weights of the four subscores; any positive scale.
        recency_window_hours: Age beyond which recency scores 0.
        alert_threshold: Minimum score for an alert item (0-100).
        top_k_per_kind: Key events taken per source kind.
        major_symbols: High-liquidity tickers that earn a symbol bonus.
        source_authority_overrides: Source name to authority (0-100).
    """

    keyword_tiers: Dict[str, List[str]] = field(
        default_factory=lambda: {t: list(v) for t, v in DEFAULT_KEYWORD_TIERS.items()}
    )
    tier_points: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIER_POINTS))
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    recency_window_hours: float = 48.0
    alert_threshold: float = 80.0
    top_k_per_kind: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_TOP_K))
    major_symbols: Tuple[str, ...] = DEFAULT_MAJOR_SYMBOLS
    source_authority_overrides: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalize configuration after initialization."""
        self._validate_keyword_tiers()
        self._validate_tier_points()
        self._validate_weights()

        if not _is_number(self.recency_window_hours) or self.recency_window_hours <= 0:
            raise ScoringConfigError(
                f"recency_window_hours must be a positive number, got {self.recency_window_hours!r}"
            )

        if not _is_number(self.alert_threshold) or not 0 <= self.alert_threshold <= 100:
            raise ScoringConfigError(
                f"alert_threshold must be within 0-100, got {self.alert_threshold!r}"
            )

        self._validate_top_k()

        if isinstance(self.major_symbols, str) or not all(
            isinstance(s, str) and s.strip() for s in self.major_symbols
        ):
            raise ScoringConfigError("major_symbols must be a list of non-empty strings")
        self.major_symbols = tuple(s.strip().upper() for s in self.major_symbols)

        for name, authority in self.source_authority_overrides.items():
            if not isinstance(name, str) or not name:
                raise ScoringConfigError("source_authority_overrides keys must be source names")
            if not _is_number(authority) or not 0 <= authority <= 100:
                raise ScoringConfigError(
                    f"Authority for '{name}' must be within 0-100, got {authority!r}"
                )

    def _validate_keyword_tiers(self) -> None:
        if not isinstance(self.keyword_tiers, Mapping):
            raise ScoringConfigError("keyword_tiers must be a mapping of tier to phrases")

        unknown = set(self.keyword_tiers) - set(TIERS)
        if unknown:
            raise ScoringConfigError(
                f"Unknown keyword tiers: {sorted(unknown)}. Valid tiers: {list(TIERS)}"
            )

        normalized: Dict[str, List[str]] = {}
        for tier in TIERS:
            phrases = self.keyword_tiers.get(tier, [])
            if isinstance(phrases, str) or not isinstance(phrases, (list, tuple)):
                raise ScoringConfigError(
                    f"Keyword tier '{tier}' must be a list, got {type(phrases).__name__}"
                )
            for phrase in phrases:
                if not isinstance(phrase, str) or not phrase.strip():
                    raise ScoringConfigError(
                        f"Keyword tier '{tier}' contains a blank or non-string phrase"
                    )
            normalized[tier] = [p.strip() for p in phrases]

        if not any(normalized.values()):
            raise ScoringConfigError("keyword_tiers must contain at least one phrase")

        self.keyword_tiers = normalized

    def _validate_tier_points(self) -> None:
        unknown = set(self.tier_points) - set(TIERS)
        if unknown:
            raise ScoringConfigError(f"Unknown tier_points keys: {sorted(unknown)}")

        points = dict(DEFAULT_TIER_POINTS)
        points.update(self.tier_points)
        for tier, value in points.items():
            if not _is_number(value) or value < 0:
                raise ScoringConfigError(
                    f"tier_points['{tier}'] must be a non-negative number, got {value!r}"
                )
        self.tier_points = {tier: float(points[tier]) for tier in TIERS}

    def _validate_weights(self) -> None:
        unknown = set(self.weights) - set(WEIGHT_KEYS)
        if unknown:
            raise ScoringConfigError(
                f"Unknown weights: {sorted(unknown)}. Valid keys: {list(WEIGHT_KEYS)}"
            )
        missing = set(WEIGHT_KEYS) - set(self.weights)
        if missing:
            raise ScoringConfigError(f"Missing weights: {sorted(missing)}")

        for key in WEIGHT_KEYS:
            value = self.weights[key]
            if not _is_number(value) or value <= 0:
                raise ScoringConfigError(
                    f"Weight '{key}' must be a positive number, got {value!r}"
                )
        self.weights = {key: float(self.weights[key]) for key in WEIGHT_KEYS}

    def _validate_top_k(self) -> None:
        unknown = set(self.top_k_per_kind) - set(KIND_KEYS)
        if unknown:
            raise ScoringConfigError(
                f"Unknown top_k_per_kind keys: {sorted(unknown)}. Valid keys: {list(KIND_KEYS)}"
            )

        top_k = dict(DEFAULT_TOP_K)
        top_k.update(self.top_k_per_kind)
        for kind, value in top_k.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ScoringConfigError(
                    f"top_k_per_kind['{kind}'] must be a non-negative integer, got {value!r}"
                )
        self.top_k_per_kind = top_k

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "ScoringConfig":
        """Create a config from a raw mapping, defaulting missing sections.

        Partial ``weights``, ``tier_points`` and ``top_k_per_kind`` are
        merged over the defaults; ``keyword_tiers`` replaces them.
        """
        unknown = set(config_dict) - VALID_KEYS
        if unknown:
            raise ScoringConfigError(
                f"Unknown scoring config keys: {sorted(unknown)}. Valid keys: {sorted(VALID_KEYS)}"
            )

        for key in ("keyword_tiers", "tier_points", "weights", "top_k_per_kind",
                    "source_authority_overrides"):
            if key in config_dict and not isinstance(config_dict[key], Mapping):
                raise ScoringConfigError(f"'{key}' must be a mapping")

        kwargs: Dict[str, Any] = {}
        if "keyword_tiers" in config_dict:
            kwargs["keyword_tiers"] = dict(config_dict["keyword_tiers"])
        if "weights" in config_dict:
            kwargs["weights"] = {**DEFAULT_WEIGHTS, **config_dict["weights"]}
        for key in ("tier_points", "top_k_per_kind", "source_authority_overrides"):
            if key in config_dict:
                kwargs[key] = dict(config_dict[key])
        if "major_symbols" in config_dict:
            kwargs["major_symbols"] = config_dict["major_symbols"]
        for key in ("recency_window_hours", "alert_threshold"):
            if key in config_dict:
                kwargs[key] = config_dict[key]

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword_tiers": {t: list(v) for t, v in self.keyword_tiers.items()},
            "tier_points": dict(self.tier_points),
            "weights": dict(self.weights),
            "recency_window_hours": self.recency_window_hours,
            "alert_threshold": self.alert_threshold,
            "top_k_per_kind": dict(self.top_k_per_kind),
            "major_symbols": list(self.major_symbols),
            "source_authority_overrides": dict(self.source_authority_overrides),
        }


def load_scoring_config(config_path: Path | str) -> ScoringConfig:
    """Load scoring configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated ScoringConfig instance.

    Raises:
        ScoringConfigError: If configuration is invalid.
        FileNotFoundError: If config file doesn't exist.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Scoring config not found: {config_path}")

    logger.info("Loading scoring config from %s", config_path)

    with open(config_path, encoding="utf-8") as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        raise ScoringConfigError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ScoringConfigError(f"Scoring config must be a mapping: {config_path}")

    return ScoringConfig.from_dict(config_dict)


def save_scoring_config(config: ScoringConfig, output_path: Path | str) -> None:
    """Save scoring configuration to a YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info("Saved scoring config to %s", output_path)


def scoring_config_from_env() -> ScoringConfig:
    """Build the scoring config named by the environment.

    Loads SCORING_CONFIG_PATH when set, otherwise defaults, then applies
    RECENCY_WINDOW_HOURS and ALERT_THRESHOLD overrides.
    """
    env = get_config().scoring

    if env.config_path:
        config_dict = load_scoring_config(env.config_path).to_dict()
    else:
        config_dict = ScoringConfig().to_dict()

    if env.recency_window_hours is not None:
        config_dict["recency_window_hours"] = env.recency_window_hours
    if env.alert_threshold is not None:
        config_dict["alert_threshold"] = env.alert_threshold

    return ScoringConfig.from_dict(config_dict)
