"""
Settings access.

Configuration is read from the environment (and .env) on first use and then
shared; tests and the CLI can replace it with ``set_config``.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..core.exceptions import ConfigurationError
from .models import AppConfig

logger = logging.getLogger(__name__)

_config: Optional[AppConfig] = None


def load_config() -> AppConfig:
    """Build a fresh AppConfig from the environment."""
    try:
        config = AppConfig()
    except ValidationError as e:
        logger.error(f"❌ Configuration error: {e}")
        raise ConfigurationError(str(e)) from e
    logger.debug("✅ Configuration loaded successfully")
    return config


def get_config() -> AppConfig:
    """Get the shared typed configuration object."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Replace (or with None, reset) the shared configuration."""
    global _config
    _config = config
