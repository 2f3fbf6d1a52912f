"""
Unit tests for configuration models and stage overrides.
"""

import os

import pytest

from newsreels.config import (
    AppConfig,
    PipelineConfig,
    load_config,
    load_stages_config,
    stage_settings,
)
from newsreels.core import ConfigurationError


@pytest.mark.unit
class TestAppConfig:

    def test_defaults(self, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        config = AppConfig()

        assert config.pipeline.batch_size == 5
        assert config.pipeline.cycle_interval == 7200
        assert config.retry.max_attempts == 3
        assert config.cache.ttl == 3600
        assert config.rate_limits.as_dict() == {"scrape": 5, "prompts": 2, "images": 2, "audio": 2}
        assert config.content.hashtags == ["#nepal", "#news", "#nepalinews"]
        assert config.render.fps == 30
        assert config.server.port == 3001
        assert config.server.enabled

    def test_env_overrides(self, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("BATCH_SIZE", "2")
        monkeypatch.setenv("DEFAULT_HASHTAGS", "#a, #b")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PORT", "8080")

        config = AppConfig()

        assert config.pipeline.batch_size == 2
        assert config.content.hashtags == ["#a", "#b"]
        assert config.log_level == "DEBUG"
        assert config.server.port == 8080

    def test_invalid_values(self, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            load_config()

    def test_collaborators_path_format(self, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("COLLABORATORS", "just_a_module")

        with pytest.raises(ConfigurationError):
            load_config()


@pytest.mark.unit
class TestStageOverrides:

    def test_missing_file(self, temp_dir):
        assert load_stages_config(os.path.join(temp_dir, "stages.yml")) == {}

    def test_load_and_apply(self, temp_dir):
        path = os.path.join(temp_dir, "stages.yml")
        with open(path, "w", encoding="utf-8") as f:
            f.write("stages:\n  images:\n    batch_size: 2\n    item_delay: 3\n  bogus:\n    batch_size: 9\n")

        overrides = load_stages_config(path)
        pipeline = PipelineConfig()

        assert set(overrides) == {"images"}
        assert stage_settings("images", pipeline, overrides).batch_size == 2
        assert stage_settings("images", pipeline, overrides).item_delay == 3.0
        assert stage_settings("audio", pipeline, overrides).batch_size == pipeline.batch_size

    def test_stage_defaults(self):
        pipeline = PipelineConfig()

        assert stage_settings("video", pipeline).batch_size == 3
        assert stage_settings("publish", pipeline).item_delay == 5.0
        assert stage_settings("scrape", pipeline).batch_size == pipeline.max_articles

    @pytest.mark.parametrize("content", [
        "- images\n- audio\n",
        "just text\n",
        "stages:\n  - images\n",
        "stages:\n  images: 3\n",
    ])
    def test_malformed_file_falls_back(self, temp_dir, content):
        path = os.path.join(temp_dir, "stages.yml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

        assert load_stages_config(path) == {}
