"""
Prompt Stage - Paraphrases the article and writes hashtags and image prompts.
"""

from typing import Any, Dict, List, Optional

from ..base import PipelineStage
from ..external import ExternalCaller
from ...core import ExternalServiceError, PermanentError, Result
from ...content.fingerprint import fingerprint, normalize_hashtags
from ...services.interfaces import PromptBundle, PromptService
from ...state.models import EligibilityPredicate, ImagePrompt, Item, Stage


class PromptStage(PipelineStage):
    """
    Generate derived text, hashtags and image prompts.

    Dependencies:
    - PromptService: paraphrase/prompt generation
    - ExternalCaller: prompts rate limit + cache + retry

    Updates item with:
    - derived_title, derived_text, hashtags, image_prompts

    Transient failures leave prompts_ready false so the next cycle retries.
    A permanent refusal does not drop the item: the original title and body
    pass through with default hashtags and title-based placeholder prompts.
    """

    stage = Stage.PROMPTS_READY
    predicate = EligibilityPredicate.NEEDS_PROMPTS

    def __init__(
        self,
        prompt_service: PromptService,
        caller: ExternalCaller,
        default_hashtags: Optional[List[str]] = None,
        expected_prompts: int = 5,
        input_chars: int = 4000,
        body_max_chars: int = 5000,
        key_chars: int = 50,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None
    ):
        super().__init__("Prompts", batch_size=batch_size, item_delay=item_delay)
        self.prompt_service = prompt_service
        self.caller = caller
        self.default_hashtags = default_hashtags or []
        self.expected_prompts = expected_prompts
        self.input_chars = input_chars
        self.body_max_chars = body_max_chars
        self.key_chars = key_chars

    async def process(self, item: Item) -> Result[Dict[str, Any], str]:
        content = item.body[:self.input_chars]
        key = fingerprint("prompts", item.title, content[:self.key_chars])

        self.logger.info(f"🔮 Generating prompts for {item.id}...")
        result = await self.caller.call(
            lambda: self._generate(item.title, content),
            cache_key=key,
        )

        if result.is_err():
            error = result.unwrap_err()
            if isinstance(error.last_error, PermanentError):
                self.logger.warning(
                    f"⚠️ Prompt service refused {item.id}, passing original text through: "
                    f"{error.last_error}"
                )
                return Result.ok(self._fallback(item))
            return Result.err(f"Prompt generation failed: {error}")

        bundle = result.unwrap()
        return Result.ok({
            "derived_title": bundle.derived_title or item.title,
            "derived_text": bundle.derived_text,
            "hashtags": normalize_hashtags(bundle.hashtags) or normalize_hashtags(self.default_hashtags),
            "image_prompts": list(bundle.image_prompts),
        })

    async def _generate(self, title: str, content: str) -> PromptBundle:
        bundle = await self.prompt_service.generate(title, content)
        prompts = [p for p in (bundle.image_prompts or []) if p.prompt.strip()]
        if not bundle.derived_text or len(prompts) != self.expected_prompts:
            raise ExternalServiceError(
                f"Incomplete data from prompt service "
                f"(text: {bool(bundle.derived_text)}, prompts: {len(prompts)}/{self.expected_prompts})"
            )
        return bundle

    def _fallback(self, item: Item) -> Dict[str, Any]:
        return {
            "derived_title": item.title,
            "derived_text": item.body[:self.body_max_chars] or item.title,
            "hashtags": normalize_hashtags(self.default_hashtags),
            "image_prompts": [
                ImagePrompt(prompt=f"{item.title}, news illustration {n}")
                for n in range(1, self.expected_prompts + 1)
            ],
        }
