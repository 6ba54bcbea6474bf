"""Tests for scoring configuration validation and YAML loading."""

from pathlib import Path

import pytest
import yaml

from marketpulse.config import reset_config
from marketpulse.content.scoring_config import (
    DEFAULT_TOP_K,
    DEFAULT_WEIGHTS,
    ScoringConfig,
    ScoringConfigError,
    load_scoring_config,
    save_scoring_config,
    scoring_config_from_env,
)


class TestScoringConfigDefaults:
    """Tests for default configuration."""

    def test_defaults_are_valid(self):
        """Default config constructs without error."""
        config = ScoringConfig()
        assert config.weights == DEFAULT_WEIGHTS
        assert config.recency_window_hours == 48.0
        assert config.alert_threshold == 80.0
        assert config.top_k_per_kind == DEFAULT_TOP_K
        assert "earnings" in config.keyword_tiers["high"]

    def test_defaults_not_shared(self):
        """Mutable defaults are per-instance."""
        a = ScoringConfig()
        b = ScoringConfig()
        a.keyword_tiers["high"].append("widget")
        assert "widget" not in b.keyword_tiers["high"]

    def test_major_symbols_normalized(self):
        """Major symbols are stripped, uppercased and made a tuple."""
        config = ScoringConfig(major_symbols=[" aapl", "msft "])
        assert config.major_symbols == ("AAPL", "MSFT")


class TestScoringConfigValidation:
    """Tests for construction-time validation."""

    @pytest.mark.parametrize("value", [-1.0, 0.0, float("nan"), "heavy"])
    def test_bad_weight(self, value):
        """Weights must be positive finite numbers."""
        weights = dict(DEFAULT_WEIGHTS, tags=value)
        with pytest.raises(ScoringConfigError, match="tags"):
            ScoringConfig(weights=weights)

    def test_missing_weight(self):
        """All four weights are required."""
        with pytest.raises(ScoringConfigError, match="Missing weights"):
            ScoringConfig(weights={"tags": 1.0, "symbols": 1.0, "authority": 1.0})

    def test_unknown_weight(self):
        """Unknown weight keys are rejected."""
        with pytest.raises(ScoringConfigError, match="Unknown weights"):
            ScoringConfig(weights=dict(DEFAULT_WEIGHTS, sentiment=5.0))

    def test_empty_tiers(self):
        """At least one phrase is required."""
        with pytest.raises(ScoringConfigError, match="at least one phrase"):
            ScoringConfig(keyword_tiers={"high": [], "medium": [], "low": []})

    def test_blank_phrase(self):
        """Blank phrases are rejected."""
        with pytest.raises(ScoringConfigError, match="blank"):
            ScoringConfig(keyword_tiers={"high": ["earnings", "  "]})

    def test_unknown_tier(self):
        """Tiers other than high/medium/low are rejected."""
        with pytest.raises(ScoringConfigError, match="Unknown keyword tiers"):
            ScoringConfig(keyword_tiers={"urgent": ["earnings"]})

    def test_tier_as_string(self):
        """A tier must be a list, not a bare string."""
        with pytest.raises(ScoringConfigError, match="must be a list"):
            ScoringConfig(keyword_tiers={"high": "earnings"})

    def test_negative_tier_points(self):
        """Tier points must be non-negative."""
        with pytest.raises(ScoringConfigError, match="tier_points"):
            ScoringConfig(tier_points={"high": -5})

    @pytest.mark.parametrize("value", [0, -12])
    def test_bad_window(self, value):
        """Recency window must be positive."""
        with pytest.raises(ScoringConfigError, match="recency_window_hours"):
            ScoringConfig(recency_window_hours=value)

    @pytest.mark.parametrize("value", [-1, 120])
    def test_threshold_out_of_range(self, value):
        """Alert threshold must be within 0-100."""
        with pytest.raises(ScoringConfigError, match="alert_threshold"):
            ScoringConfig(alert_threshold=value)

    def test_bad_top_k(self):
        """Top-k values must be non-negative integers."""
        with pytest.raises(ScoringConfigError, match="top_k_per_kind"):
            ScoringConfig(top_k_per_kind={"news": -1})
        with pytest.raises(ScoringConfigError, match="top_k_per_kind"):
            ScoringConfig(top_k_per_kind={"news": 2.5})

    def test_unknown_top_k_kind(self):
        """Top-k keys must be source kinds."""
        with pytest.raises(ScoringConfigError, match="Unknown top_k_per_kind"):
            ScoringConfig(top_k_per_kind={"tweets": 2})

    def test_override_out_of_range(self):
        """Authority overrides must be within 0-100."""
        with pytest.raises(ScoringConfigError, match="Authority"):
            ScoringConfig(source_authority_overrides={"My Feed": 150})


class TestFromDict:
    """Tests for building configs from raw mappings."""

    def test_partial_weights_merge(self):
        """Partial weights fill in from defaults."""
        config = ScoringConfig.from_dict({"weights": {"recency": 40}})
        assert config.weights["recency"] == 40.0
        assert config.weights["tags"] == DEFAULT_WEIGHTS["tags"]

    def test_partial_top_k_merge(self):
        """Partial top-k fills in from defaults."""
        config = ScoringConfig.from_dict({"top_k_per_kind": {"email": 0}})
        assert config.top_k_per_kind == {"news": 3, "podcast": 2, "email": 0}

    def test_keyword_tiers_replace(self):
        """Keyword tiers replace the defaults."""
        config = ScoringConfig.from_dict({"keyword_tiers": {"low": ["widget"]}})
        assert config.keyword_tiers == {"high": [], "medium": [], "low": ["widget"]}

    def test_unknown_key(self):
        """Unknown top-level keys are rejected."""
        with pytest.raises(ScoringConfigError, match="Unknown scoring config keys"):
            ScoringConfig.from_dict({"weight": {"tags": 1}})

    def test_section_must_be_mapping(self):
        """Mapping sections reject lists."""
        with pytest.raises(ScoringConfigError, match="'weights' must be a mapping"):
            ScoringConfig.from_dict({"weights": [1, 2, 3, 4]})


class TestLoadSave:
    """Tests for YAML load/save."""

    def test_load_yaml(self, tmp_path: Path):
        """Load a partial YAML config."""
        path = tmp_path / "scoring.yaml"
        path.write_text(
            yaml.dump(
                {
                    "alert_threshold": 65,
                    "source_authority_overrides": {"Desk Notes": 88},
                    "major_symbols": ["aapl"],
                }
            )
        )

        config = load_scoring_config(path)
        assert config.alert_threshold == 65
        assert config.source_authority_overrides == {"Desk Notes": 88}
        assert config.major_symbols == ("AAPL",)

    def test_save_then_load(self, tmp_path: Path):
        """A saved config loads back equal."""
        config = ScoringConfig(alert_threshold=70.0, recency_window_hours=24.0)
        path = tmp_path / "nested" / "scoring.yaml"
        save_scoring_config(config, path)

        assert load_scoring_config(path) == config

    def test_missing_file(self, tmp_path: Path):
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_scoring_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path):
        """Empty file is a config error."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ScoringConfigError, match="Empty"):
            load_scoring_config(path)

    def test_non_mapping_file(self, tmp_path: Path):
        """A YAML list is a config error."""
        path = tmp_path / "list.yaml"
        path.write_text("- earnings\n- fed\n")
        with pytest.raises(ScoringConfigError, match="mapping"):
            load_scoring_config(path)

    def test_invalid_values_in_file(self, tmp_path: Path):
        """Validation errors surface from loading."""
        path = tmp_path / "bad.yaml"
        path.write_text("weights:\n  tags: -3\n")
        with pytest.raises(ScoringConfigError):
            load_scoring_config(path)


class TestScoringConfigFromEnv:
    """Tests for environment-driven config."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        """No env gives the default config."""
        for key in ("SCORING_CONFIG_PATH", "RECENCY_WINDOW_HOURS", "ALERT_THRESHOLD"):
            monkeypatch.delenv(key, raising=False)
        reset_config()

        assert scoring_config_from_env() == ScoringConfig()

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Env values override the YAML file they point at."""
        path = tmp_path / "scoring.yaml"
        path.write_text("alert_threshold: 60\nrecency_window_hours: 12\n")
        monkeypatch.setenv("SCORING_CONFIG_PATH", str(path))
        monkeypatch.setenv("ALERT_THRESHOLD", "90")
        monkeypatch.delenv("RECENCY_WINDOW_HOURS", raising=False)
        reset_config()

        config = scoring_config_from_env()
        assert config.alert_threshold == 90.0
        assert config.recency_window_hours == 12

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch):
        """An out-of-range env override fails validation."""
        monkeypatch.delenv("SCORING_CONFIG_PATH", raising=False)
        monkeypatch.setenv("ALERT_THRESHOLD", "150")
        reset_config()

        with pytest.raises(ScoringConfigError):
            scoring_config_from_env()
