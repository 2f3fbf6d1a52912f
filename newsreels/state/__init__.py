# -*- coding: utf-8 -*-
"""Item state: model, eligibility predicates and store gateway."""

from .models import (
    Stage,
    StageFlag,
    Item,
    ImagePrompt,
    RawArticle,
    CreateResult,
    EligibilityPredicate,
)
from .store import ItemStore, InMemoryItemStore, apply_stage_update
from .json_store import JsonFileItemStore

__all__ = [
    'Stage', 'StageFlag', 'Item', 'ImagePrompt', 'RawArticle', 'CreateResult',
    'EligibilityPredicate', 'ItemStore', 'InMemoryItemStore', 'apply_stage_update',
    'JsonFileItemStore',
]
