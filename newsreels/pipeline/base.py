"""
Base classes for pipeline stages and the generic stage runner.

Every per-item stage works the same way: ask the store for eligible items,
take a batch, run the stage's ``process`` on each item, and write the
outcome back. StageRunner owns that loop so stages only describe the work
for a single item.
"""

import asyncio
import logging
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..core import Result, StageGateError, StoreError
from ..state.models import EligibilityPredicate, Item, Stage
from ..state.store import ItemStore

Payload = Dict[str, Any]
ProcessFn = Callable[[Item], Awaitable[Result]]


@dataclass
class StageError:
    """
    Failure value a stage can return instead of a plain message when the
    failure should also leave annotation fields on the item.
    """
    message: str
    annotations: Payload = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class StageOutcome:
    """What happened to one item in one stage run."""
    item_id: str
    success: bool
    error: Optional[str] = None
    skipped: bool = False


def summarize(outcomes: List[StageOutcome]) -> Dict[str, int]:
    """Counts for logging: succeeded / failed / skipped."""
    return {
        "succeeded": sum(1 for o in outcomes if o.success),
        "failed": sum(1 for o in outcomes if not o.success and not o.skipped),
        "skipped": sum(1 for o in outcomes if o.skipped),
    }


class StageRunner:
    """
    Executes one pipeline stage over a batch of eligible items.

    Items are processed sequentially with a fixed pause between them
    (``concurrency=1``, the default) or through a bounded worker pool.
    A failing item is recorded and the batch continues. Store failures are
    not caught here: they abort the stage run.
    """

    def __init__(
        self,
        store: ItemStore,
        batch_size: int = 5,
        item_delay: float = 1.5,
        concurrency: int = 1,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.batch_size = batch_size
        self.item_delay = item_delay
        self.concurrency = concurrency
        self._sleep = sleep or asyncio.sleep
        self.logger = logging.getLogger("pipeline.runner")

    async def run(
        self,
        stage: Stage,
        predicate: EligibilityPredicate,
        process: ProcessFn,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None,
        name: Optional[str] = None
    ) -> List[StageOutcome]:
        """
        Run ``process`` over up to ``batch_size`` items matching ``predicate``.

        Returns:
            One StageOutcome per item taken, in query order
        """
        label = name or stage.flag
        limit = self.batch_size if batch_size is None else batch_size
        delay = self.item_delay if item_delay is None else item_delay

        eligible = await self.store.find_by_predicate(predicate)
        if not eligible:
            self.logger.info(f"[{label}] No items need this stage")
            return []

        batch = eligible[:limit]
        self.logger.info(
            f"[{label}] {len(eligible)} eligible, processing {len(batch)}"
        )

        if self.concurrency == 1:
            outcomes = []
            for index, item in enumerate(batch):
                outcomes.append(await self._process_one(stage, item, process, label))
                if delay > 0 and index < len(batch) - 1:
                    await self._sleep(delay)
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def worker(item: Item) -> StageOutcome:
                async with semaphore:
                    outcome = await self._process_one(stage, item, process, label)
                    if delay > 0:
                        await self._sleep(delay)
                    return outcome

            outcomes = list(await asyncio.gather(*(worker(item) for item in batch)))

        counts = summarize(outcomes)
        self.logger.info(
            f"[{label}] Done: {counts['succeeded']} ok, "
            f"{counts['failed']} failed, {counts['skipped']} skipped"
        )
        return outcomes

    async def _process_one(
        self,
        stage: Stage,
        item: Item,
        process: ProcessFn,
        label: str
    ) -> StageOutcome:
        missing = item.missing_inputs(stage)
        if missing:
            reason = f"missing {', '.join(missing)}"
            self.logger.warning(f"[{label}] ⏭️ Skipping {item.id}: {reason}")
            return StageOutcome(item_id=item.id, success=False, error=reason, skipped=True)

        try:
            result = await process(item)
        except StoreError:
            raise
        except Exception as e:
            self.logger.error(f"[{label}] Unhandled error for {item.id}: {e}", exc_info=True)
            result = Result.err(str(e))

        if result.is_ok():
            try:
                await self.store.update_stage(item.id, stage, payload=result.unwrap() or {})
            except StageGateError as e:
                self.logger.error(f"[{label}] ❌ {item.id}: {e}")
                await self.store.update_stage(item.id, stage, error=str(e))
                return StageOutcome(item_id=item.id, success=False, error=str(e))
            self.logger.info(f"[{label}] ✅ {item.id}")
            return StageOutcome(item_id=item.id, success=True)

        error = result.unwrap_err()
        annotations = error.annotations if isinstance(error, StageError) else None
        message = str(error)
        await self.store.update_stage(item.id, stage, payload=annotations or None, error=message)
        self.logger.error(f"[{label}] ❌ {item.id}: {message}")
        return StageOutcome(item_id=item.id, success=False, error=message)


class PipelineStage(ABC):
    """
    One step of the fixed pipeline sequence.

    Per-item stages set ``stage`` and ``predicate`` and implement
    ``process``; StageRunner does the rest. Stages that do not map to a
    stage flag (scrape, cleanup) override ``run``.
    """

    stage: Optional[Stage] = None
    predicate: Optional[EligibilityPredicate] = None

    def __init__(
        self,
        name: Optional[str] = None,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None
    ):
        self.name = name or self.__class__.__name__
        self.batch_size = batch_size
        self.item_delay = item_delay
        self.logger = logging.getLogger(f"pipeline.{self.name}")

    async def process(self, item: Item) -> Result[Payload, Union[str, StageError]]:
        """
        Do this stage's work for one item.

        Returns:
            Result.ok(payload fields to merge) or Result.err(message)
        """
        raise NotImplementedError(f"{self.name} does not process single items")

    async def run(self, runner: StageRunner) -> List[StageOutcome]:
        """Run this stage once over its eligible items."""
        self.logger.info(f"Starting stage: {self.name}")
        return await runner.run(
            self.stage,
            self.predicate,
            self.process,
            batch_size=self.batch_size,
            item_delay=self.item_delay,
            name=self.name,
        )
