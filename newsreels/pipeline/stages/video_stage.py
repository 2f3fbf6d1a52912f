"""
Video Stage - Renders the short from the item's images and narration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..base import PipelineStage
from ..external import ExternalCaller
from ...core import ExternalServiceError, Result
from ...services.interfaces import RenderRequest, Storage, VideoRenderer
from ...state.models import EligibilityPredicate, Item, Stage


class VideoStage(PipelineStage):
    """
    Render the final video.

    Dependencies:
    - VideoRenderer: RenderRequest -> video bytes
    - Storage: persists generated_video/<item id>/<timestamp>.mp4
    - ExternalCaller: retry (renders are never cached)

    Requires item:
    - image_done, audio_done, media_refs, audio_ref (checked by the runner)

    Updates item with:
    - video_ref
    """

    stage = Stage.VIDEO_READY
    predicate = EligibilityPredicate.NEEDS_VIDEO

    def __init__(
        self,
        renderer: VideoRenderer,
        storage: Storage,
        caller: ExternalCaller,
        render_options: Optional[Dict[str, Any]] = None,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None
    ):
        super().__init__("Video", batch_size=batch_size, item_delay=item_delay)
        self.renderer = renderer
        self.storage = storage
        self.caller = caller
        self.render_options = render_options or {}

    def build_request(self, item: Item) -> RenderRequest:
        return RenderRequest(
            title=item.derived_title or item.title,
            text=item.derived_text,
            image_refs=list(item.media_refs),
            audio_ref=item.audio_ref,
            **self.render_options,
        )

    async def process(self, item: Item) -> Result[Dict[str, Any], str]:
        request = self.build_request(item)

        self.logger.info(f"🎬 Rendering {item.id} ({len(request.image_refs)} images)...")
        result = await self.caller.call(lambda: self._render(request))
        if result.is_err():
            return Result.err(str(result.unwrap_err()))

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        ref = await self.storage.write(f"generated_video/{item.id}/{timestamp}.mp4", result.unwrap())
        self.logger.info(f"Video rendered: {ref}")
        return Result.ok({"video_ref": ref})

    async def _render(self, request: RenderRequest) -> bytes:
        data = await self.renderer.render(request)
        if not data:
            raise ExternalServiceError("Renderer returned no data")
        return data
