"""
Publish Stage - Posts the rendered video to the social platform.
"""

from typing import Any, Dict, List, Optional, Union

from ..base import PipelineStage, StageError
from ..external import ExternalCaller
from ...core import PublishRejectedError, Result
from ...content.fingerprint import normalize_hashtags
from ...services.interfaces import SocialPublisher
from ...state.models import EligibilityPredicate, Item, Stage


class PublishStage(PipelineStage):
    """
    Publish each rendered video once per cycle.

    Dependencies:
    - SocialPublisher: posts video + caption + hashtags
    - ExternalCaller: single attempt, never retried within a run

    A PublishRejectedError means the post definitely did not happen and the
    item is retried next cycle. Any other failure may have posted anyway:
    the item is marked publish_unconfirmed and is left out of publishing
    until an operator confirms what happened.
    """

    stage = Stage.PUBLISHED
    predicate = EligibilityPredicate.NEEDS_PUBLISH

    def __init__(
        self,
        publisher: SocialPublisher,
        caller: ExternalCaller,
        default_hashtags: Optional[List[str]] = None,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None
    ):
        super().__init__("Publish", batch_size=batch_size, item_delay=item_delay)
        self.publisher = publisher
        self.caller = caller
        self.default_hashtags = default_hashtags or []

    async def process(self, item: Item) -> Result[Dict[str, Any], Union[str, StageError]]:
        hashtags = item.hashtags or normalize_hashtags(self.default_hashtags)

        self.logger.info(f"📤 Publishing {item.id}...")
        result = await self.caller.call(
            lambda: self.publisher.publish(item.video_ref, item.derived_text, hashtags),
            max_attempts=1,
        )

        if result.is_ok():
            return Result.ok({"publish_unconfirmed": False})

        cause = result.unwrap_err().last_error
        if isinstance(cause, PublishRejectedError):
            return Result.err(f"Publish rejected: {cause}")

        self.logger.warning(
            f"⚠️ Publish outcome unknown for {item.id}; holding it until confirmed manually"
        )
        return Result.err(StageError(
            f"Publish unconfirmed: {cause}",
            annotations={"publish_unconfirmed": True},
        ))
