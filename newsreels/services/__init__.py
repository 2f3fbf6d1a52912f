"""External collaborator contracts and the implementations shipped with the core."""

from .interfaces import (
    Scraper,
    PromptService,
    PromptBundle,
    ImageGenerator,
    AudioGenerator,
    VideoRenderer,
    RenderRequest,
    Storage,
    SocialPublisher,
    Collaborators,
)
from .storage import LocalStorage, encode_wav
from .fetcher import HtmlFetcher
from .media_server import ARTIFACT_DIRS, MediaServer

__all__ = [
    "Scraper",
    "PromptService",
    "PromptBundle",
    "ImageGenerator",
    "AudioGenerator",
    "VideoRenderer",
    "RenderRequest",
    "Storage",
    "SocialPublisher",
    "Collaborators",
    "LocalStorage",
    "encode_wav",
    "HtmlFetcher",
    "MediaServer",
    "ARTIFACT_DIRS",
]
