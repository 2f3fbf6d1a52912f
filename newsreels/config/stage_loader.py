# -*- coding: utf-8 -*-
"""
Per-stage overrides from stages.yml.

Example stages.yml:

    stages:
      images:
        batch_size: 3
        item_delay: 2.0
      publish:
        item_delay: 5
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import PipelineConfig

logger = logging.getLogger(__name__)

KNOWN_STAGES = ("scrape", "prompts", "images", "audio", "video", "publish", "cleanup")


@dataclass(frozen=True)
class StageSettings:
    batch_size: int
    item_delay: float


def load_stages_config(config_path: str = "stages.yml") -> Dict[str, Dict[str, Any]]:
    """
    Load per-stage overrides. A missing file means no overrides.

    Returns:
        Mapping of stage name to its override dict
    """
    possible_paths = [
        Path(config_path),
        Path.cwd() / config_path,
    ]

    for path in possible_paths:
        if not path.exists():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"⚠️ Failed to load {path}: {e}")
            continue

        stages = raw.get("stages") if isinstance(raw, dict) else None
        if not isinstance(stages, dict):
            if raw:
                logger.warning(f"⚠️ Ignoring {path}: expected a 'stages' mapping")
            return {}

        overrides = {}
        for name, values in stages.items():
            if name not in KNOWN_STAGES:
                logger.warning(f"⚠️ Ignoring unknown stage in {path}: {name}")
            elif values is not None and not isinstance(values, dict):
                logger.warning(f"⚠️ Ignoring stage {name} in {path}: expected a mapping")
            else:
                overrides[name] = dict(values or {})
        logger.info(f"✅ Loaded stage overrides from: {path}")
        return overrides

    logger.debug(f"{config_path} not found, using defaults")
    return {}


def stage_settings(
    name: str,
    pipeline: PipelineConfig,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None
) -> StageSettings:
    """Batch size and pacing for one stage: override, else stage default."""
    if name == "scrape":
        batch_size, item_delay = pipeline.max_articles, pipeline.item_delay
    elif name == "video":
        batch_size, item_delay = pipeline.video_batch_size, pipeline.item_delay
    elif name == "publish":
        batch_size, item_delay = pipeline.batch_size, pipeline.publish_delay
    else:
        batch_size, item_delay = pipeline.batch_size, pipeline.item_delay

    override = (overrides or {}).get(name, {})
    return StageSettings(
        batch_size=int(override.get("batch_size", batch_size)),
        item_delay=float(override.get("item_delay", item_delay)),
    )
