# -*- coding: utf-8 -*-
# json_store.py - item store persisted as one JSON document {id: item}
import json
import logging
import os
from typing import Any, Dict, List, Optional

from ..core.exceptions import StoreUnavailableError
from .models import CreateResult, Item, Stage
from .store import InMemoryItemStore

logger = logging.getLogger(__name__)


def _load_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise StoreUnavailableError(f"Cannot read item store {path}: {e}") from e


def _save_json(path: str, data: Dict[str, Any]) -> None:
    tmp = f"{path}.tmp"
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError as e:
        raise StoreUnavailableError(f"Cannot write item store {path}: {e}") from e


class JsonFileItemStore(InMemoryItemStore):
    """
    Flat collection of item records keyed by id, kept in a JSON file.

    Every write rewrites the file (temp file + rename) before the in-memory
    record changes, so a flag is visible to queries only once it is durably
    recorded. A failed write leaves both the file and memory as they were.
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        raw = _load_json(self.path)
        for item_id, data in raw.items():
            item = Item.from_dict(data)
            self._items[item_id] = item
            self._by_link[item.source_link] = item_id
        self._loaded = True
        logger.info(f"📂 Loaded {len(self._items)} items from {self.path}")

    def _commit(self, item: Item) -> None:
        snapshot = {item_id: existing.to_dict() for item_id, existing in self._items.items()}
        snapshot[item.id] = item.to_dict()
        _save_json(self.path, snapshot)
        super()._commit(item)

    async def find_by_predicate(self, predicate) -> List[Item]:
        self._ensure_loaded()
        return await super().find_by_predicate(predicate)

    async def create_if_absent(self, item: Item) -> CreateResult:
        self._ensure_loaded()
        return await super().create_if_absent(item)

    async def update_stage(
        self,
        item_id: str,
        stage: Stage,
        payload: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> Item:
        self._ensure_loaded()
        return await super().update_stage(item_id, stage, payload, error)

    async def set_fields(self, item_id: str, fields: Dict[str, Any]) -> Item:
        self._ensure_loaded()
        return await super().set_fields(item_id, fields)

    async def get(self, item_id: str) -> Optional[Item]:
        self._ensure_loaded()
        return await super().get(item_id)

    async def list_items(self) -> List[Item]:
        self._ensure_loaded()
        return await super().list_items()
