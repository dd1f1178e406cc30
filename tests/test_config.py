"""Tests for configuration models and presets."""

import pytest
from pydantic import ValidationError

from foliosearch.config import (
    HYBRID,
    MULTIMODAL,
    TEXT_ONLY,
    SearchConfig,
    StrategyWeights,
    load_settings,
    preset,
)


class TestStrategyWeights:
    def test_defaults(self):
        w = StrategyWeights()
        assert (w.semantic, w.keyword, w.fuzzy, w.metadata) == (0.60, 0.15, 0.10, 0.15)

    def test_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            StrategyWeights(semantic=0.5)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            StrategyWeights(semantic=0.8, keyword=-0.05)

    def test_overrides(self):
        w = StrategyWeights().with_overrides({"semantic": 0.5, "fuzzy": 0.2})
        assert w.semantic == 0.5 and w.fuzzy == 0.2 and w.keyword == 0.15

    def test_unknown_override(self):
        with pytest.raises(ValueError, match="Unknown search strategies"):
            StrategyWeights().with_overrides({"colour": 0.0})


class TestPresets:
    def test_hybrid(self):
        assert HYBRID.enabled == {"semantic", "keyword", "fuzzy", "metadata"}
        assert HYBRID.thresholds.combined == 0.12
        assert HYBRID.thresholds.semantic == 0.15
        assert HYBRID.max_results == 50
        assert HYBRID.default_limit == 20

    def test_multimodal(self):
        assert MULTIMODAL.weights.semantic == 0.7
        assert MULTIMODAL.weights.image == 0.3
        assert MULTIMODAL.enabled == {"semantic", "image"}

    def test_text_only(self):
        assert TEXT_ONLY.weights.semantic == 1.0
        assert TEXT_ONLY.enabled == {"semantic"}

    def test_lookup(self):
        assert preset("multimodal") is MULTIMODAL
        with pytest.raises(ValueError):
            preset("fastest")

    def test_unknown_enabled_strategy(self):
        with pytest.raises(ValidationError):
            SearchConfig(enabled=frozenset({"semantic", "colour"}))


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.text_model == "all-MiniLM-L6-v2"
        assert settings.history.max_entries is None
        assert settings.search.embedding_timeout is None
        assert len(settings.history.default_searches) == 25

    def test_environment(self, tmp_path):
        settings = load_settings({
            "FOLIOSEARCH_CORPUS_PATH": str(tmp_path / "works.json"),
            "FOLIOSEARCH_HISTORY_PATH": str(tmp_path / "history.json"),
            "FOLIOSEARCH_TEXT_MODEL": "paraphrase-MiniLM-L3-v2",
            "FOLIOSEARCH_IMAGE_MODEL": "",
            "FOLIOSEARCH_EMBEDDING_TIMEOUT": "2.5",
            "FOLIOSEARCH_HISTORY_MAX_ENTRIES": "500",
            "FOLIOSEARCH_LOG_LEVEL": "DEBUG",
        })
        assert settings.corpus_path == tmp_path / "works.json"
        assert settings.history.path == tmp_path / "history.json"
        assert settings.text_model == "paraphrase-MiniLM-L3-v2"
        assert settings.image_model is None
        assert settings.search.embedding_timeout == 2.5
        assert settings.history.max_entries == 500
        assert settings.log_level == "DEBUG"
