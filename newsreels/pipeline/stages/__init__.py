"""Pipeline stages, in pipeline order."""

from .scrape_stage import ScrapeStage
from .prompt_stage import PromptStage
from .image_stage import ImageStage
from .audio_stage import AudioStage
from .video_stage import VideoStage
from .publish_stage import PublishStage
from .cleanup_stage import CleanupStage

__all__ = [
    "ScrapeStage",
    "PromptStage",
    "ImageStage",
    "AudioStage",
    "VideoStage",
    "PublishStage",
    "CleanupStage",
]
