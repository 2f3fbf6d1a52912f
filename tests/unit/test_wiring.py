"""
Unit tests for building the default orchestrator from configuration.
"""

import sys
from unittest.mock import MagicMock

import pytest

from newsreels.config import AppConfig
from newsreels.core import ConfigurationError, RateLimiterRegistry, ResultCache
from newsreels.orchestrator import PipelineOrchestrator
from newsreels.services import HtmlFetcher, LocalStorage, Storage
from newsreels.wiring import build_container, build_orchestrator, load_collaborators


@pytest.mark.unit
class TestLoadCollaborators:

    def test_errors(self):
        with pytest.raises(ConfigurationError):
            load_collaborators("")
        with pytest.raises(ConfigurationError):
            load_collaborators("no_such_module_xyz:factory")
        with pytest.raises(ConfigurationError):
            load_collaborators("os.path:sep")

    def test_factory_from_config(self, monkeypatch, temp_dir, collaborators, store):
        monkeypatch.chdir(temp_dir)
        factory = MagicMock(return_value=collaborators)
        module = MagicMock(build=factory)
        monkeypatch.setitem(sys.modules, "fake_collaborators", module)
        monkeypatch.setenv("COLLABORATORS", "fake_collaborators:build")

        orchestrator = build_orchestrator(AppConfig(), store=store)

        config_arg, fetcher_arg = factory.call_args[0]
        assert config_arg.collaborators == "fake_collaborators:build"
        assert fetcher_arg is orchestrator.fetcher
        assert orchestrator.stages[0].scraper is collaborators.scraper


@pytest.mark.unit
class TestBuildOrchestrator:

    def test_stage_order(self, monkeypatch, temp_dir, collaborators, store):
        monkeypatch.chdir(temp_dir)
        orchestrator = build_orchestrator(AppConfig(), collaborators, store=store)

        assert [s.name for s in orchestrator.stages] == [
            "Scrape", "Prompts", "Images", "Audio", "Video", "Publish", "Cleanup"
        ]
        assert orchestrator.store is store
        assert orchestrator.cycle_interval == 7200
        video = orchestrator.stages[4]
        assert video.batch_size == 3
        assert video.render_options["zoom_intensity"] == 0.04

    def test_shared_cache_and_limiters(self, monkeypatch, temp_dir, collaborators, store):
        monkeypatch.chdir(temp_dir)
        container = build_container(AppConfig(), collaborators, store=store)
        orchestrator = container.resolve(PipelineOrchestrator)
        prompts, images = orchestrator.stages[1], orchestrator.stages[2]
        limiters = container.resolve(RateLimiterRegistry)

        assert prompts.caller.cache is container.resolve(ResultCache)
        assert images.caller.cache is prompts.caller.cache
        assert images.caller.limiter is limiters.get("images")
        assert orchestrator.stages[0].caller.cache is None
        assert orchestrator.stages[4].caller.limiter is None
        assert orchestrator.fetcher is container.resolve(HtmlFetcher)

    def test_local_storage_when_bundle_has_none(self, monkeypatch, temp_dir, collaborators, store):
        monkeypatch.chdir(temp_dir)
        collaborators.storage = None

        storage = build_container(AppConfig(), collaborators, store=store).resolve(Storage)

        assert isinstance(storage, LocalStorage)
