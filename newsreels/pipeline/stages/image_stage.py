"""
Image Stage - Generates one image per prompt and stores them with the item.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from ..base import PipelineStage
from ..external import ExternalCaller
from ...core import ExternalServiceError, Result
from ...content.fingerprint import fingerprint
from ...services.interfaces import ImageGenerator, Storage
from ...state.models import EligibilityPredicate, Item, Stage


class ImageStage(PipelineStage):
    """
    Generate images for every image prompt.

    Dependencies:
    - ImageGenerator: prompt -> image bytes
    - Storage: persists images under generated_images/<item id>/
    - ExternalCaller: images rate limit + cache + retry

    Updates item with:
    - media_refs: web paths, in prompt order

    The cache holds image bytes rather than paths so a hit for another
    item's prompt still writes a file this item owns.
    """

    stage = Stage.IMAGES_READY
    predicate = EligibilityPredicate.NEEDS_IMAGES

    def __init__(
        self,
        image_generator: ImageGenerator,
        storage: Storage,
        caller: ExternalCaller,
        prompt_delay: float = 1.5,
        key_chars: int = 400,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        super().__init__("Images", batch_size=batch_size, item_delay=item_delay)
        self.image_generator = image_generator
        self.storage = storage
        self.caller = caller
        self.prompt_delay = prompt_delay
        self.key_chars = key_chars
        self._sleep = sleep or asyncio.sleep

    async def process(self, item: Item) -> Result[Dict[str, Any], str]:
        prompts = [p.prompt for p in item.image_prompts if p.prompt.strip()]
        refs = []
        errors = []

        for index, prompt in enumerate(prompts, 1):
            result = await self.caller.call(
                lambda prompt=prompt: self._generate(prompt),
                cache_key=fingerprint("image", prompt, prefix=self.key_chars),
            )

            if result.is_ok():
                path = f"generated_images/{item.id}/image_{index}.png"
                refs.append(await self.storage.write(path, result.unwrap()))
                self.logger.info(f"Generated image {index}/{len(prompts)} for {item.id}")
            else:
                errors.append(str(result.unwrap_err()))
                self.logger.error(f"Failed image {index}/{len(prompts)} for {item.id}: {errors[-1]}")

            if self.prompt_delay > 0 and index < len(prompts):
                await self._sleep(self.prompt_delay)

        if not refs:
            last = errors[-1] if errors else "no prompts"
            return Result.err(f"No images generated ({len(errors)} failed): {last}")

        if errors:
            self.logger.warning(f"⚠️ {item.id}: {len(errors)}/{len(prompts)} images failed, continuing with {len(refs)}")

        return Result.ok({"media_refs": refs})

    async def _generate(self, prompt: str) -> bytes:
        data = await self.image_generator.generate(prompt)
        if not data:
            raise ExternalServiceError("No image data received")
        return data
