"""
Wiring - Builds the default orchestrator's object graph from configuration.

Every service is registered in a Container and built on first use; the
orchestrator is the root of the graph. Passing ``collaborators`` or ``store``
replaces the configured ones.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List, Optional

from .config import AppConfig, load_stages_config, stage_settings
from .core import ConfigurationError, Container, RateLimiterRegistry, ResultCache, RetryPolicy
from .orchestrator import PipelineOrchestrator
from .pipeline import ExternalCaller, PipelineStage, StageRunner
from .pipeline.stages import (
    AudioStage,
    CleanupStage,
    ImageStage,
    PromptStage,
    PublishStage,
    ScrapeStage,
    VideoStage,
)
from .services import Collaborators, HtmlFetcher, LocalStorage, Storage
from .state import ItemStore, JsonFileItemStore

logger = logging.getLogger(__name__)

CollaboratorFactory = Callable[[AppConfig, HtmlFetcher], Collaborators]


def load_collaborators(path: str) -> CollaboratorFactory:
    """
    Import a collaborator factory from a ``package.module:function`` path.

    The factory is called as ``factory(config, fetcher)`` and returns a
    Collaborators bundle.
    """
    if not path or ":" not in path:
        raise ConfigurationError(
            "No collaborators configured. Set COLLABORATORS=package.module:factory"
        )
    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import collaborator module {module_name}: {e}") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigurationError(f"{path} is not a callable collaborator factory")
    return factory


def _fetcher(config: AppConfig, c: Container) -> HtmlFetcher:
    fetch_retry = RetryPolicy(
        max_attempts=config.retry.max_attempts,
        base_delay=config.retry.fetch_base_delay,
        max_delay=config.retry.max_delay,
        logger_name="newsreels.fetch",
    )
    caller = ExternalCaller(
        fetch_retry,
        cache=c.resolve(ResultCache),
        limiter=c.resolve(RateLimiterRegistry).get("scrape"),
        name="fetch",
    )
    return HtmlFetcher(caller)


def _caller(c: Container, name: str, cached: bool = True, limited: bool = True) -> ExternalCaller:
    return ExternalCaller(
        c.resolve(RetryPolicy),
        cache=c.resolve(ResultCache) if cached else None,
        limiter=c.resolve(RateLimiterRegistry).get(name) if limited else None,
        name=name,
    )


def _stages(config: AppConfig, c: Container) -> List[PipelineStage]:
    """The fixed stage sequence: Scrape, Prompts, Images, Audio, Video, Publish, Cleanup."""
    bundle = c.resolve(Collaborators)
    storage = c.resolve(Storage)
    hashtags = config.content.hashtags
    overrides = load_stages_config(config.pipeline.stages_file)

    def settings(name: str) -> Dict[str, Any]:
        s = stage_settings(name, config.pipeline, overrides)
        return {"batch_size": s.batch_size, "item_delay": s.item_delay}

    return [
        ScrapeStage(
            bundle.scraper,
            _caller(c, "scrape", cached=False),
            max_articles=settings("scrape")["batch_size"],
            body_max_chars=config.content.body_max_chars,
        ),
        PromptStage(
            bundle.prompt_service,
            _caller(c, "prompts"),
            default_hashtags=hashtags,
            expected_prompts=config.content.expected_image_prompts,
            input_chars=config.content.prompt_input_chars,
            body_max_chars=config.content.body_max_chars,
            key_chars=config.cache.prompt_key_chars,
            **settings("prompts"),
        ),
        ImageStage(
            bundle.image_generator,
            storage,
            _caller(c, "images"),
            prompt_delay=config.pipeline.image_prompt_delay,
            key_chars=config.cache.image_key_chars,
            **settings("images"),
        ),
        AudioStage(
            bundle.audio_generator,
            storage,
            _caller(c, "audio"),
            raw_pcm=config.audio.raw_pcm,
            sample_rate=config.audio.sample_rate,
            channels=config.audio.channels,
            sample_width=config.audio.sample_width,
            key_chars=config.cache.audio_key_chars,
            **settings("audio"),
        ),
        VideoStage(
            bundle.video_renderer,
            storage,
            _caller(c, "render", cached=False, limited=False),
            render_options=config.render.model_dump(),
            **settings("video"),
        ),
        PublishStage(
            bundle.publisher,
            _caller(c, "publish", cached=False),
            default_hashtags=hashtags,
            **settings("publish"),
        ),
        CleanupStage(storage, batch_size=settings("cleanup")["batch_size"]),
    ]


def build_container(
    config: AppConfig,
    collaborators: Optional[Collaborators] = None,
    store: Optional[ItemStore] = None
) -> Container:
    """Register every service the default orchestrator needs."""
    container = Container()

    if store is not None:
        container.register_instance(ItemStore, store)
    else:
        container.register(ItemStore, lambda c: JsonFileItemStore(config.storage.store_path))

    container.register(
        ResultCache,
        lambda c: ResultCache(
            default_ttl=config.cache.ttl,
            max_entries=config.cache.max_entries,
            sweep_interval=config.cache.sweep_interval,
        ),
    )
    container.register(
        RateLimiterRegistry,
        lambda c: RateLimiterRegistry(config.rate_limits.as_dict(), config.rate_limits.default),
    )
    container.register(
        RetryPolicy,
        lambda c: RetryPolicy(
            max_attempts=config.retry.max_attempts,
            base_delay=config.retry.base_delay,
            max_delay=config.retry.max_delay,
        ),
    )
    container.register(
        StageRunner,
        lambda c: StageRunner(
            c.resolve(ItemStore),
            batch_size=config.pipeline.batch_size,
            item_delay=config.pipeline.item_delay,
            concurrency=config.pipeline.concurrency,
        ),
    )
    container.register(HtmlFetcher, lambda c: _fetcher(config, c))

    if collaborators is not None:
        container.register_instance(Collaborators, collaborators)
    else:
        container.register(
            Collaborators,
            lambda c: load_collaborators(config.collaborators)(config, c.resolve(HtmlFetcher)),
        )

    container.register(
        Storage,
        lambda c: c.resolve(Collaborators).storage or LocalStorage(config.storage.public_dir),
    )
    container.register(
        PipelineOrchestrator,
        lambda c: PipelineOrchestrator(
            c.resolve(ItemStore),
            c.resolve(StageRunner),
            _stages(config, c),
            cache=c.resolve(ResultCache),
            cycle_interval=config.pipeline.cycle_interval,
            fetcher=c.resolve(HtmlFetcher),
        ),
    )
    return container


def build_orchestrator(
    config: AppConfig,
    collaborators: Optional[Collaborators] = None,
    store: Optional[ItemStore] = None
) -> PipelineOrchestrator:
    """Default orchestrator wired from configuration."""
    orchestrator = build_container(config, collaborators, store).resolve(PipelineOrchestrator)
    logger.debug(f"Wired stages: {', '.join(s.name for s in orchestrator.stages)}")
    return orchestrator
