"""
Cleanup Stage - Deletes generated media of published items.
"""

from typing import List, Optional

from ..base import PipelineStage, StageOutcome, StageRunner
from ...services.interfaces import Storage
from ...services.media_server import ARTIFACT_DIRS
from ...state.models import EligibilityPredicate, Stage


class CleanupStage(PipelineStage):
    """
    Remove image/audio/video side files once ``published`` is stored.

    The item record itself is kept. Items whose cleanup fails stay in
    needs_cleanup and are tried again next cycle.
    """

    predicate = EligibilityPredicate.NEEDS_CLEANUP

    def __init__(self, storage: Storage, batch_size: Optional[int] = None):
        super().__init__("Cleanup", batch_size=batch_size)
        self.storage = storage

    async def run(self, runner: StageRunner) -> List[StageOutcome]:
        self.logger.info(f"Starting stage: {self.name}")

        items = await runner.store.find_by_predicate(self.predicate)
        if not items:
            self.logger.info("Nothing to clean up")
            return []

        limit = runner.batch_size if self.batch_size is None else self.batch_size
        outcomes = []
        for item in items[:limit]:
            if not item.is_done(Stage.PUBLISHED):
                continue
            try:
                for directory in ARTIFACT_DIRS:
                    await self.storage.delete(f"{directory}/{item.id}")
            except OSError as e:
                self.logger.error(f"Cleanup failed for {item.id}: {e}")
                outcomes.append(StageOutcome(item_id=item.id, success=False, error=str(e)))
                continue

            await runner.store.set_fields(item.id, {"cleaned_up": True})
            self.logger.info(f"🧹 Cleaned up {item.id}")
            outcomes.append(StageOutcome(item_id=item.id, success=True))

        return outcomes
