"""
Integration tests for the full pipeline.
"""

import asyncio
import os

import pytest

from conftest import FakeImageGenerator, FakePublisher, MemoryStorage, make_item, make_prompted_item
from newsreels.config import AppConfig
from newsreels.wiring import build_orchestrator
from newsreels.pipeline import StageRunner
from newsreels.pipeline.stages import AudioStage, ImageStage, VideoStage
from newsreels.services import LocalStorage
from newsreels.state import EligibilityPredicate, ImagePrompt, InMemoryItemStore, JsonFileItemStore, Stage


@pytest.fixture
def fast_config(monkeypatch, temp_dir):
    """Default configuration with every pause and rate limit out of the way."""
    monkeypatch.chdir(temp_dir)
    for name in ("ITEM_DELAY_SEC", "PUBLISH_DELAY_SEC", "IMAGE_PROMPT_DELAY_SEC",
                 "RETRY_BASE_DELAY_SEC", "FETCH_RETRY_BASE_DELAY_SEC"):
        monkeypatch.setenv(name, "0")
    for name in ("SCRAPE_RPS", "PROMPTS_RPS", "IMAGES_RPS", "AUDIO_RPS", "DEFAULT_RPS"):
        monkeypatch.setenv(name, "1000")
    return AppConfig()


@pytest.mark.integration
class TestPipeline:
    """Test pipeline integration."""

    def test_one_cycle_takes_articles_to_published(self, fast_config, collaborators, storage):
        store = InMemoryItemStore()
        orchestrator = build_orchestrator(fast_config, collaborators, store=store)

        report = asyncio.run(orchestrator.run_cycle())
        items = asyncio.run(store.list_items())

        assert report.ok
        assert len(items) == 2
        for item in items:
            assert item.stage == Stage.PUBLISHED
            assert item.cleaned_up
        assert len(collaborators.publisher.posts) == 2
        assert storage.files == {}

    def test_second_cycle_does_no_external_work(self, fast_config, collaborators):
        store = InMemoryItemStore()
        orchestrator = build_orchestrator(fast_config, collaborators, store=store)

        asyncio.run(orchestrator.run_cycle())
        asyncio.run(orchestrator.run_cycle())

        assert collaborators.scraper.calls == 2
        assert collaborators.prompt_service.calls == 2
        assert len(collaborators.video_renderer.requests) == 2
        assert len(collaborators.publisher.posts) == 2

    def test_resume_after_restart(self, fast_config, collaborators, temp_dir):
        """A crash after images leaves work the next process picks up."""
        path = os.path.join(temp_dir, "items.json")
        collaborators.video_renderer.render = _raise(RuntimeError("renderer crashed"))

        first = build_orchestrator(fast_config, collaborators, store=JsonFileItemStore(path))
        asyncio.run(first.run_cycle())

        items = asyncio.run(JsonFileItemStore(path).list_items())
        assert all(i.is_done(Stage.AUDIO_READY) and not i.is_done(Stage.VIDEO_READY) for i in items)
        assert all("renderer crashed" in i.last_error(Stage.VIDEO_READY) for i in items)

        del collaborators.video_renderer.render
        image_calls = len(collaborators.image_generator.prompts)
        second = build_orchestrator(fast_config, collaborators, store=JsonFileItemStore(path))
        asyncio.run(second.run_cycle())

        items = asyncio.run(JsonFileItemStore(path).list_items())
        assert all(i.is_done(Stage.PUBLISHED) for i in items)
        assert len(collaborators.image_generator.prompts) == image_calls

    def test_ambiguous_publish_waits_for_operator(self, fast_config, collaborators):
        store = InMemoryItemStore()
        collaborators.publisher = FakePublisher(error=ConnectionResetError("connection reset"))
        orchestrator = build_orchestrator(fast_config, collaborators, store=store)

        asyncio.run(orchestrator.run_cycle())
        asyncio.run(orchestrator.run_cycle())

        items = asyncio.run(store.list_items())
        assert len(collaborators.publisher.posts) == 2
        assert all(i.publish_unconfirmed for i in items)

        asyncio.run(orchestrator.confirm_publish(items[0].id, posted=True))
        asyncio.run(orchestrator.confirm_publish(items[1].id, posted=False))
        collaborators.publisher.error = None
        asyncio.run(orchestrator.run_cycle())

        items = asyncio.run(store.list_items())
        assert all(i.is_done(Stage.PUBLISHED) and i.cleaned_up for i in items)
        assert len(collaborators.publisher.posts) == 3

    def test_images_stage_single_item(self, caller, sleep):
        """One prompted item, one stored image: done, and nothing left for the stage."""
        class FixedRefStorage(MemoryStorage):
            async def write(self, path, data):
                await super().write(path, data)
                return "/img/a.png"

        store = InMemoryItemStore()
        item = make_item("https://x/1", scraped=True, prompts_ready=True)
        item.derived_text = "text"
        item.image_prompts = [ImagePrompt(prompt="a")]
        asyncio.run(store.create_if_absent(item))
        runner = StageRunner(store, item_delay=0, sleep=sleep)

        asyncio.run(ImageStage(FakeImageGenerator(), FixedRefStorage(), caller, sleep=sleep).run(runner))

        stored = asyncio.run(store.get(item.id))
        assert stored.is_done(Stage.IMAGES_READY)
        assert stored.media_refs == ["/img/a.png"]
        assert asyncio.run(store.find_by_predicate(EligibilityPredicate.NEEDS_IMAGES)) == []

    def test_images_partial_timeout_then_video(self, caller, sleep, temp_dir, collaborators):
        """Two of five image calls time out: three images stored, video still renders."""
        store = InMemoryItemStore()
        item = make_prompted_item()
        asyncio.run(store.create_if_absent(item))
        storage = LocalStorage(temp_dir)
        generator = FakeImageGenerator(fail_on={"flood scene 2", "flood scene 5"})

        runner = StageRunner(store, item_delay=0, sleep=sleep)

        asyncio.run(ImageStage(generator, storage, caller, sleep=sleep).run(runner))
        stored = asyncio.run(store.get(item.id))
        assert stored.is_done(Stage.IMAGES_READY)
        assert len(stored.media_refs) == 3
        assert os.path.exists(os.path.join(temp_dir, "generated_images", item.id, "image_4.png"))

        asyncio.run(AudioStage(collaborators.audio_generator, storage, caller).run(runner))
        asyncio.run(VideoStage(collaborators.video_renderer, storage, caller).run(runner))

        stored = asyncio.run(store.get(item.id))
        assert stored.is_done(Stage.VIDEO_READY)
        assert collaborators.video_renderer.requests[0].image_refs == stored.media_refs
        assert EligibilityPredicate.NEEDS_PUBLISH.matches(stored)


def _raise(error):
    async def render(request):
        raise error
    return render
