"""
Item Store Gateway.

The store is the single source of truth for cross-run progress. Stages only
ever talk to it through this interface: query by eligibility predicate,
create with dedup on the normalized source link, and record a stage's
success or failure.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.exceptions import ItemNotFoundError, StageGateError
from .models import CreateResult, EligibilityPredicate, Item, Stage, utcnow

logger = logging.getLogger(__name__)


def apply_stage_update(
    item: Item,
    stage: Stage,
    payload: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None
) -> Item:
    """
    Apply a stage result to ``item`` in place.

    Success (no ``error``): merges ``payload``, sets the flag, clears
    last_error. Refuses with StageGateError when the stage's inputs or
    outputs are missing afterwards.

    Failure: records last_error, leaves the flag false, merges ``payload``
    as annotations. A failure reported against a flag that is already done
    is ignored; flags never go back to false.
    """
    flag = item.flag(stage)
    now = utcnow()

    if error is not None:
        if flag.done:
            logger.warning(
                f"Ignoring failure for {item.id} at {stage.flag}: already done ({error})"
            )
            return item
        if payload:
            item.apply_payload(payload)
        flag.last_error = error
        flag.updated_at = now
        item.updated_at = now
        return item

    candidate = copy.deepcopy(item)
    if payload:
        candidate.apply_payload(payload)

    missing = candidate.missing_inputs(stage) + candidate.missing_outputs(stage)
    if missing:
        raise StageGateError(
            f"Cannot mark {stage.flag} on {item.id}: missing {', '.join(missing)}"
        )

    if payload:
        item.apply_payload(payload)
    flag.done = True
    flag.last_error = None
    flag.updated_at = now
    item.updated_at = now
    return item


class ItemStore(ABC):
    """Abstract read/write access to persistent item state."""

    @abstractmethod
    async def find_by_predicate(self, predicate: EligibilityPredicate) -> List[Item]:
        """Items matching ``predicate``, in insertion order."""
        pass

    @abstractmethod
    async def create_if_absent(self, item: Item) -> CreateResult:
        """Store ``item`` unless one with the same source_link exists."""
        pass

    @abstractmethod
    async def update_stage(
        self,
        item_id: str,
        stage: Stage,
        payload: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> Item:
        """Record a stage success (``error`` is None) or failure."""
        pass

    @abstractmethod
    async def set_fields(self, item_id: str, fields: Dict[str, Any]) -> Item:
        """Merge annotation fields without touching stage flags."""
        pass

    @abstractmethod
    async def get(self, item_id: str) -> Optional[Item]:
        pass

    @abstractmethod
    async def list_items(self) -> List[Item]:
        pass


class InMemoryItemStore(ItemStore):
    """
    Process-local store. Returned items are copies, so callers cannot change
    stored state except through the gateway.

    Writes are applied to a copy of the record and handed to ``_commit``;
    the stored record is only replaced once the commit succeeds.
    """

    def __init__(self, items: Optional[List[Item]] = None):
        self._items: Dict[str, Item] = {}
        self._by_link: Dict[str, str] = {}
        self._lock = asyncio.Lock()
        for item in items or []:
            self._items[item.id] = copy.deepcopy(item)
            self._by_link[item.source_link] = item.id

    async def find_by_predicate(self, predicate: EligibilityPredicate) -> List[Item]:
        return [copy.deepcopy(item) for item in self._items.values() if predicate.matches(item)]

    async def create_if_absent(self, item: Item) -> CreateResult:
        async with self._lock:
            existing = self._by_link.get(item.source_link)
            if existing is not None:
                return CreateResult(created=False, id=existing)
            self._commit(copy.deepcopy(item))
            return CreateResult(created=True, id=item.id)

    async def update_stage(
        self,
        item_id: str,
        stage: Stage,
        payload: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> Item:
        async with self._lock:
            item = copy.deepcopy(self._require(item_id))
            apply_stage_update(item, stage, payload, error)
            self._commit(item)
            return copy.deepcopy(item)

    async def set_fields(self, item_id: str, fields: Dict[str, Any]) -> Item:
        async with self._lock:
            item = copy.deepcopy(self._require(item_id))
            item.apply_payload(fields)
            item.updated_at = utcnow()
            self._commit(item)
            return copy.deepcopy(item)

    async def get(self, item_id: str) -> Optional[Item]:
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item else None

    async def list_items(self) -> List[Item]:
        return [copy.deepcopy(item) for item in self._items.values()]

    def _commit(self, item: Item) -> None:
        """Make ``item`` the stored record for its id."""
        self._items[item.id] = item
        self._by_link[item.source_link] = item.id

    def _require(self, item_id: str) -> Item:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(f"No item with id {item_id}")
        return item
