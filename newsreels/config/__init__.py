# -*- coding: utf-8 -*-
"""Configuration module."""
from .models import (
    AppConfig,
    PipelineConfig,
    RetryConfig,
    CacheConfig,
    RateLimitConfig,
    StorageConfig,
    ServerConfig,
    ContentConfig,
    AudioConfig,
    RenderConfig,
)
from .settings import get_config, load_config, set_config
from .stage_loader import StageSettings, load_stages_config, stage_settings

__all__ = [
    'AppConfig', 'PipelineConfig', 'RetryConfig', 'CacheConfig', 'RateLimitConfig',
    'StorageConfig', 'ServerConfig', 'ContentConfig', 'AudioConfig', 'RenderConfig',
    'get_config', 'load_config', 'set_config',
    'StageSettings', 'load_stages_config', 'stage_settings',
]
