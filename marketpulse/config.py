"""Configuration management for MarketPulse.

Loads process-level configuration from environment variables with sane
defaults. Uses python-dotenv to load from .env file if present. Scoring
tunables (keyword tiers, weights, authority overrides) live in
``marketpulse.content.scoring_config`` and are loaded from YAML.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _get_env_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.getenv(key, default)


@dataclass(frozen=True)
class DataConfig:
    """Input/output locations."""

    data_dir: Path
    output_dir: Path

    @classmethod
    def from_env(cls) -> "DataConfig":
        """Create DataConfig from environment variables."""
        return cls(
            data_dir=Path(_get_env_str("DATA_DIR", "./data")),
            output_dir=Path(_get_env_str("OUTPUT_DIR", "./runs")),
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration.

    ``file`` is an optional path; when set, log lines are also appended there.
    """

    level: str
    format: str
    file: str

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Create LoggingConfig from environment variables."""
        return cls(
            level=_get_env_str("LOG_LEVEL", "INFO"),
            format=_get_env_str("LOG_FORMAT", "json"),
            file=_get_env_str("LOG_FILE", ""),
        )


@dataclass(frozen=True)
class ScoringEnvConfig:
    """Environment overrides for relevance scoring.

    ``recency_window_hours`` and ``alert_threshold`` are None unless the
    corresponding variable is set, so YAML values are only overridden on
    purpose.
    """

    config_path: str
    recency_window_hours: float | None
    alert_threshold: float | None

    @classmethod
    def from_env(cls) -> "ScoringEnvConfig":
        """Create ScoringEnvConfig from environment variables."""
        window = (
            _get_env_float("RECENCY_WINDOW_HOURS", 48.0)
            if os.getenv("RECENCY_WINDOW_HOURS") is not None
            else None
        )
        threshold = (
            _get_env_float("ALERT_THRESHOLD", 80.0)
            if os.getenv("ALERT_THRESHOLD") is not None
            else None
        )
        return cls(
            config_path=_get_env_str("SCORING_CONFIG_PATH", ""),
            recency_window_hours=window,
            alert_threshold=threshold,
        )


@dataclass(frozen=True)
class FetchConfig:
    """Fan-out fetch configuration."""

    max_workers: int
    default_timeframe: str

    @classmethod
    def from_env(cls) -> "FetchConfig":
        """Create FetchConfig from environment variables."""
        return cls(
            max_workers=_get_env_int("FETCH_MAX_WORKERS", 3),
            default_timeframe=_get_env_str("DEFAULT_TIMEFRAME", "6h"),
        )


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    data: DataConfig
    logging: LoggingConfig
    scoring: ScoringEnvConfig
    fetch: FetchConfig

    @classmethod
    def from_env(cls) -> "Config":
        """Create Config from environment variables."""
        return cls(
            data=DataConfig.from_env(),
            logging=LoggingConfig.from_env(),
            scoring=ScoringEnvConfig.from_env(),
            fetch=FetchConfig.from_env(),
        )


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
