"""
Orchestrator - Runs the fixed stage sequence on a schedule.

Every cycle walks Scrape -> Prompts -> Images -> Audio -> Video -> Publish ->
Cleanup once. All progress lives in the item store, so a cycle never has to
finish: whatever did not get done is picked up by the next one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .core import ItemNotFoundError, PipelineError, ResultCache
from .pipeline import PipelineStage, StageRunner, summarize
from .services import HtmlFetcher
from .state import Item, ItemStore, Stage
from .state.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Per-stage outcome counts for one cycle."""
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    stages: Dict[str, Dict[str, int]] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class PipelineOrchestrator:
    """
    Lightweight coordinator: owns the stage list, the run-in-progress flag
    and the timer. All real work is delegated to the stages.
    """

    def __init__(
        self,
        store: ItemStore,
        runner: StageRunner,
        stages: List[PipelineStage],
        cache: Optional[ResultCache] = None,
        cycle_interval: float = 7200.0,
        fetcher: Optional[HtmlFetcher] = None
    ):
        self.store = store
        self.runner = runner
        self.stages = stages
        self.cache = cache
        self.cycle_interval = cycle_interval
        self.fetcher = fetcher
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run_cycle(self) -> Optional[CycleReport]:
        """
        Run every stage once, in order.

        Returns:
            CycleReport, or None when a cycle was already running and this
            trigger was skipped
        """
        if self._running:
            logger.warning("⏭️ Previous cycle still running, skipping this trigger")
            return None

        self._running = True
        report = CycleReport()
        try:
            logger.info("=" * 60)
            logger.info(f"🚀 Starting pipeline cycle ({len(self.stages)} stages)")
            logger.info("=" * 60)

            if self.cache is not None:
                expired = self.cache.sweep()
                if expired:
                    logger.debug(f"Swept {expired} expired cache entries")

            for index, stage in enumerate(self.stages, 1):
                logger.info(f"Stage {index}/{len(self.stages)}: {stage.name}")
                try:
                    outcomes = await stage.run(self.runner)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"❌ Stage {stage.name} failed: {e}", exc_info=True)
                    report.errors[stage.name] = str(e)
                    continue
                report.stages[stage.name] = summarize(outcomes)
        finally:
            self._running = False
            report.finished_at = utcnow()

        self._log_report(report)
        return report

    async def run_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Trigger a cycle now and then every ``cycle_interval`` seconds until
        ``stop_event`` is set. Triggers are not queued: one that fires while a
        cycle is running is skipped.
        """
        stop_event = stop_event or asyncio.Event()
        pending = set()

        logger.info(f"⏰ Scheduler started, every {self.cycle_interval:g}s")
        while not stop_event.is_set():
            task = asyncio.create_task(self._triggered())
            pending.add(task)
            task.add_done_callback(pending.discard)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.cycle_interval)
            except asyncio.TimeoutError:
                pass

        if pending:
            logger.info("Waiting for the running cycle to finish...")
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Scheduler stopped")

    async def _triggered(self) -> None:
        try:
            await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Cycle aborted: {e}", exc_info=True)

    async def confirm_publish(self, item_id: str, posted: bool) -> Item:
        """
        Resolve a publish whose outcome was unknown.

        Args:
            item_id: Item marked publish_unconfirmed
            posted: True if the video did go out, False to allow a new attempt
        """
        item = await self.store.get(item_id)
        if item is None:
            raise ItemNotFoundError(f"No item with id {item_id}")
        if not item.publish_unconfirmed:
            raise PipelineError(f"Item {item_id} has no unconfirmed publish")

        if posted:
            logger.info(f"✅ Publish of {item_id} confirmed")
            return await self.store.update_stage(
                item_id, Stage.PUBLISHED, payload={"publish_unconfirmed": False}
            )

        logger.info(f"🔁 Publish of {item_id} marked as not posted, will retry")
        return await self.store.set_fields(item_id, {"publish_unconfirmed": False})

    async def status(self) -> Dict[str, int]:
        """Item counts by furthest contiguous stage, plus parked publishes."""
        counts: Dict[str, int] = {"new": 0}
        counts.update({stage.flag: 0 for stage in Stage})
        counts["publish_unconfirmed"] = 0
        for item in await self.store.list_items():
            stage = item.stage
            counts[stage.flag if stage else "new"] += 1
            if item.publish_unconfirmed:
                counts["publish_unconfirmed"] += 1
        return counts

    async def close(self) -> None:
        if self.fetcher is not None:
            await self.fetcher.close()

    def _log_report(self, report: CycleReport) -> None:
        elapsed = (report.finished_at - report.started_at).total_seconds()
        logger.info("=" * 60)
        logger.info(f"Cycle finished in {elapsed:.1f}s")
        for name, counts in report.stages.items():
            logger.info(
                f"  {name}: {counts['succeeded']} ok, "
                f"{counts['failed']} failed, {counts['skipped']} skipped"
            )
        for name, error in report.errors.items():
            logger.info(f"  {name}: aborted ({error})")
        logger.info("=" * 60)

