"""
Pydantic configuration models for type-safe settings.

All environment variables are validated and typed here.
"""

from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _settings_config() -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class PipelineConfig(BaseSettings):
    """Batching, pacing and scheduling."""

    model_config = _settings_config()

    batch_size: int = Field(default=5, ge=1, alias="BATCH_SIZE")
    video_batch_size: int = Field(default=3, ge=1, alias="VIDEO_BATCH_SIZE")
    max_articles: int = Field(default=5, ge=1, alias="MAX_ARTICLES")
    item_delay: float = Field(default=1.5, ge=0, alias="ITEM_DELAY_SEC")
    publish_delay: float = Field(default=5.0, ge=0, alias="PUBLISH_DELAY_SEC")
    image_prompt_delay: float = Field(default=1.5, ge=0, alias="IMAGE_PROMPT_DELAY_SEC")
    concurrency: int = Field(default=1, ge=1, alias="STAGE_CONCURRENCY")
    cycle_interval: float = Field(default=7200.0, gt=0, alias="CYCLE_INTERVAL_SEC")
    stages_file: str = Field(default="stages.yml", alias="STAGES_FILE")


class RetryConfig(BaseSettings):
    """Retry policy for external calls."""

    model_config = _settings_config()

    max_attempts: int = Field(default=3, ge=1, alias="MAX_ATTEMPTS")
    base_delay: float = Field(default=2.0, ge=0, alias="RETRY_BASE_DELAY_SEC")
    max_delay: float = Field(default=60.0, ge=0, alias="RETRY_MAX_DELAY_SEC")
    fetch_base_delay: float = Field(default=1.0, ge=0, alias="FETCH_RETRY_BASE_DELAY_SEC")


class CacheConfig(BaseSettings):
    """Result cache for generation calls."""

    model_config = _settings_config()

    ttl: float = Field(default=3600.0, gt=0, alias="CACHE_TTL_SEC")
    sweep_interval: float = Field(default=600.0, gt=0, alias="CACHE_SWEEP_SEC")
    max_entries: int = Field(default=512, ge=1, alias="CACHE_MAX_ENTRIES")

    # Fingerprint prefix lengths per request type
    prompt_key_chars: int = Field(default=50, ge=1, alias="PROMPT_KEY_CHARS")
    image_key_chars: int = Field(default=400, ge=1, alias="IMAGE_KEY_CHARS")
    audio_key_chars: int = Field(default=100, ge=1, alias="AUDIO_KEY_CHARS")


class RateLimitConfig(BaseSettings):
    """Requests per second, per external dependency."""

    model_config = _settings_config()

    scrape: int = Field(default=5, ge=1, alias="SCRAPE_RPS")
    prompts: int = Field(default=2, ge=1, alias="PROMPTS_RPS")
    images: int = Field(default=2, ge=1, alias="IMAGES_RPS")
    audio: int = Field(default=2, ge=1, alias="AUDIO_RPS")
    default: int = Field(default=2, ge=1, alias="DEFAULT_RPS")

    def as_dict(self) -> Dict[str, int]:
        return {
            "scrape": self.scrape,
            "prompts": self.prompts,
            "images": self.images,
            "audio": self.audio,
        }


class StorageConfig(BaseSettings):
    """Where items and artifacts live."""

    model_config = _settings_config()

    public_dir: str = Field(default="public", alias="PUBLIC_DIR")
    store_path: str = Field(default=".state/items.json", alias="STORE_PATH")


class ServerConfig(BaseSettings):
    """Static media server started by `serve`."""

    model_config = _settings_config()

    enabled: bool = Field(default=True, alias="SERVE_MEDIA")
    host: str = Field(default="0.0.0.0", alias="MEDIA_HOST")
    port: int = Field(default=3001, ge=0, le=65535, alias="PORT")


class ContentConfig(BaseSettings):
    """Article text handling."""

    model_config = _settings_config()

    # Comma-separated; used when the prompt service gives none
    default_hashtags: str = Field(default="#nepal,#news,#nepalinews", alias="DEFAULT_HASHTAGS")
    expected_image_prompts: int = Field(default=5, ge=1, alias="EXPECTED_IMAGE_PROMPTS")
    body_max_chars: int = Field(default=5000, ge=1, alias="BODY_MAX_CHARS")
    prompt_input_chars: int = Field(default=4000, ge=1, alias="PROMPT_INPUT_CHARS")

    @property
    def hashtags(self) -> List[str]:
        return [tag.strip() for tag in self.default_hashtags.split(",") if tag.strip()]


class AudioConfig(BaseSettings):
    """Narration encoding."""

    model_config = _settings_config()

    raw_pcm: bool = Field(default=True, alias="AUDIO_RAW_PCM")
    sample_rate: int = Field(default=24000, ge=8000, alias="AUDIO_SAMPLE_RATE")
    channels: int = Field(default=1, ge=1, le=2, alias="AUDIO_CHANNELS")
    sample_width: int = Field(default=2, ge=1, le=4, alias="AUDIO_SAMPLE_WIDTH")


class RenderConfig(BaseSettings):
    """Parameters forwarded to the video renderer."""

    model_config = _settings_config()

    fps: int = Field(default=30, ge=1, le=60, alias="RENDER_FPS")
    volume: float = Field(default=0.9, ge=0, le=1, alias="RENDER_VOLUME")
    image_display_time: float = Field(default=4.0, gt=0, alias="RENDER_IMAGE_DISPLAY_SEC")
    transition_duration: float = Field(default=0.5, ge=0, alias="RENDER_TRANSITION_SEC")
    zoom_intensity: float = Field(default=0.04, ge=0, alias="RENDER_ZOOM_INTENSITY")


class AppConfig(BaseSettings):
    """Main application configuration combining all sub-configs."""

    model_config = _settings_config()

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    collaborators: str = Field(default="", alias="COLLABORATORS")

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return level

    @field_validator("collaborators")
    @classmethod
    def validate_collaborators(cls, v: str) -> str:
        if v and ":" not in v:
            raise ValueError("COLLABORATORS must look like 'package.module:factory'")
        return v
