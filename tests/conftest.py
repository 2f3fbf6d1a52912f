"""
Pytest fixtures and configuration.

Shared fixtures and collaborator doubles for all tests.
"""

import shutil
import tempfile
from typing import Dict, List, Optional

import pytest

from newsreels.core import Container, RetryPolicy, ResultCache, PublishRejectedError
from newsreels.pipeline import ExternalCaller, StageRunner
from newsreels.services import (
    AudioGenerator,
    Collaborators,
    ImageGenerator,
    PromptBundle,
    PromptService,
    RenderRequest,
    Scraper,
    SocialPublisher,
    Storage,
    VideoRenderer,
)
from newsreels.state import ImagePrompt, InMemoryItemStore, Item, RawArticle, Stage


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays, never waits."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------- Collaborator doubles ----------

class FakeScraper(Scraper):
    def __init__(self, articles: Optional[List[RawArticle]] = None):
        self.articles = articles or []
        self.calls = 0

    async def scrape_news(self) -> List[RawArticle]:
        self.calls += 1
        return list(self.articles)


def make_bundle(title: str = "Derived title", prompts: int = 5) -> PromptBundle:
    return PromptBundle(
        derived_title=title,
        derived_text="A short paraphrase of the article.",
        hashtags=["Nepal", "#Politics"],
        image_prompts=[ImagePrompt(prompt=f"scene {n}", aspect="16:9") for n in range(1, prompts + 1)],
    )


class FakePromptService(PromptService):
    def __init__(
        self,
        bundle: Optional[PromptBundle] = None,
        fail: bool = False,
        error: Optional[Exception] = None
    ):
        self.bundle = bundle or make_bundle()
        self.fail = fail
        self.error = error
        self.calls = 0

    async def generate(self, title: str, content: str) -> PromptBundle:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.fail:
            raise ConnectionError("prompt service down")
        return self.bundle


class FakeImageGenerator(ImageGenerator):
    def __init__(self, fail_on: Optional[set] = None):
        self.fail_on = fail_on or set()
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if prompt in self.fail_on:
            raise TimeoutError(f"image timeout for {prompt}")
        return f"png:{prompt}".encode()


class FakeAudioGenerator(AudioGenerator):
    def __init__(self):
        self.texts: List[str] = []

    async def generate(self, text: str) -> bytes:
        self.texts.append(text)
        return b"\x00\x01" * 240


class FakeRenderer(VideoRenderer):
    def __init__(self):
        self.requests: List[RenderRequest] = []

    async def render(self, request: RenderRequest) -> bytes:
        self.requests.append(request)
        return b"mp4-bytes"


class FakePublisher(SocialPublisher):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.posts: List[tuple] = []

    async def publish(self, video_ref: str, caption: str, hashtags: List[str]) -> None:
        self.posts.append((video_ref, caption, list(hashtags)))
        if self.error is not None:
            raise self.error


class MemoryStorage(Storage):
    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    async def write(self, path: str, data: bytes) -> str:
        self.files[path] = data
        return f"/{path}"

    async def delete(self, path: str) -> None:
        self.deleted.append(path)
        prefix = path.rstrip("/") + "/"
        for key in [k for k in self.files if k == path or k.startswith(prefix)]:
            del self.files[key]


# ---------- Factories ----------

def make_item(link: str = "https://news.example.com/a/1", **flags) -> Item:
    """Item with the given stage flags set, e.g. make_item(scraped=True)."""
    item = Item(source_link=link, title="Flood hits valley", body="Heavy rain caused floods.")
    for name, done in flags.items():
        item.flag(Stage.from_flag(name)).done = done
    return item


def make_prompted_item(link: str = "https://news.example.com/a/1") -> Item:
    item = make_item(link, scraped=True, prompts_ready=True)
    item.derived_title = "Floods in the valley"
    item.derived_text = "Heavy rain flooded the valley overnight."
    item.hashtags = ["#nepal", "#floods"]
    item.image_prompts = [ImagePrompt(prompt=f"flood scene {n}") for n in range(1, 6)]
    return item


# ---------- Fixtures ----------

@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after test."""
    tmpdir = tempfile.mkdtemp(prefix="test_newsreels_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def container():
    """Provide a fresh DI container."""
    return Container()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryItemStore()


@pytest.fixture
def runner(store, sleep):
    return StageRunner(store, batch_size=5, item_delay=1.5, sleep=sleep)


@pytest.fixture
def retry(sleep):
    return RetryPolicy(max_attempts=3, base_delay=2.0, sleep=sleep)


@pytest.fixture
def cache():
    return ResultCache(default_ttl=3600)


@pytest.fixture
def caller(retry, cache):
    """Retry + cache, no rate limit."""
    return ExternalCaller(retry, cache=cache, name="test")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def collaborators(storage):
    return Collaborators(
        scraper=FakeScraper([
            RawArticle(title="Flood hits valley", link="https://News.Example.com/a/1/?utm_source=x",
                       content="Heavy rain caused floods.", posted_date="2024-07-01"),
            RawArticle(title="Budget passed", link="https://news.example.com/a/2",
                       content="Parliament passed the budget."),
        ]),
        prompt_service=FakePromptService(),
        image_generator=FakeImageGenerator(),
        audio_generator=FakeAudioGenerator(),
        video_renderer=FakeRenderer(),
        publisher=FakePublisher(),
        storage=storage,
    )


@pytest.fixture
def rejected_publisher():
    return FakePublisher(error=PublishRejectedError("caption too long"))
