"""
Collaborator contracts.

The pipeline core depends only on these abstractions. Scraping, prompt
writing, media generation, rendering and posting are implemented outside
the core and injected (see ``Collaborators``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..state.models import ImagePrompt, RawArticle


@dataclass
class PromptBundle:
    """Paraphrase/prompt service response for one article."""
    derived_title: str
    derived_text: str
    hashtags: List[str] = field(default_factory=list)
    image_prompts: List[ImagePrompt] = field(default_factory=list)


@dataclass
class RenderRequest:
    """Inputs for one video render."""
    title: str
    text: str
    image_refs: List[str]
    audio_ref: str
    fps: int = 30
    volume: float = 0.9
    image_display_time: float = 4.0
    transition_duration: float = 0.5
    zoom_intensity: float = 0.04


class Scraper(ABC):
    """News source."""

    @abstractmethod
    async def scrape_news(self) -> List[RawArticle]:
        """Latest articles from the source, newest first."""
        pass


class PromptService(ABC):
    """Paraphrase/localize an article and write image prompts for it."""

    @abstractmethod
    async def generate(self, title: str, content: str) -> PromptBundle:
        pass


class ImageGenerator(ABC):

    @abstractmethod
    async def generate(self, prompt: str) -> bytes:
        """Encoded image bytes for ``prompt``."""
        pass


class AudioGenerator(ABC):

    @abstractmethod
    async def generate(self, text: str) -> bytes:
        """Narration for ``text`` (raw PCM or encoded audio)."""
        pass


class VideoRenderer(ABC):

    @abstractmethod
    async def render(self, request: RenderRequest) -> bytes:
        """Rendered video file contents."""
        pass


class Storage(ABC):
    """Where generated artifacts live."""

    @abstractmethod
    async def write(self, path: str, data: bytes) -> str:
        """Persist ``data`` at relative ``path``; return its web-accessible path."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove a file or directory. Missing paths are not an error."""
        pass


class SocialPublisher(ABC):
    """
    Posts a rendered video.

    Must raise PublishRejectedError when the platform definitely did not
    accept the post. Any other exception is treated as "maybe posted".
    """

    @abstractmethod
    async def publish(self, video_ref: str, caption: str, hashtags: List[str]) -> None:
        pass


@dataclass
class Collaborators:
    """Bundle of external collaborators handed to the orchestrator."""
    scraper: Scraper
    prompt_service: PromptService
    image_generator: ImageGenerator
    audio_generator: AudioGenerator
    video_renderer: VideoRenderer
    publisher: SocialPublisher
    storage: Optional[Storage] = None
