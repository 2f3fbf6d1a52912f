"""
Audio Stage - Narrates the derived title and text.
"""

from typing import Any, Dict, Optional

from ..base import PipelineStage
from ..external import ExternalCaller
from ...core import ExternalServiceError, Result
from ...content.fingerprint import fingerprint
from ...services.interfaces import AudioGenerator, Storage
from ...services.storage import encode_wav
from ...state.models import EligibilityPredicate, Item, Stage


class AudioStage(PipelineStage):
    """
    Generate narration audio.

    Dependencies:
    - AudioGenerator: text -> audio bytes
    - Storage: persists generated_audio/<item id>/audio.wav
    - ExternalCaller: audio rate limit + cache + retry

    Updates item with:
    - audio_ref
    """

    stage = Stage.AUDIO_READY
    predicate = EligibilityPredicate.NEEDS_AUDIO

    def __init__(
        self,
        audio_generator: AudioGenerator,
        storage: Storage,
        caller: ExternalCaller,
        raw_pcm: bool = True,
        sample_rate: int = 24000,
        channels: int = 1,
        sample_width: int = 2,
        key_chars: int = 100,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None
    ):
        super().__init__("Audio", batch_size=batch_size, item_delay=item_delay)
        self.audio_generator = audio_generator
        self.storage = storage
        self.caller = caller
        self.raw_pcm = raw_pcm
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.key_chars = key_chars

    @staticmethod
    def narration_text(item: Item) -> str:
        return f"{item.derived_title or item.title}.\n {item.derived_text}"

    async def process(self, item: Item) -> Result[Dict[str, Any], str]:
        text = self.narration_text(item)

        self.logger.info(f"🎤 Generating audio for {item.id}...")
        result = await self.caller.call(
            lambda: self._generate(text),
            cache_key=fingerprint("audio", text, prefix=self.key_chars),
        )
        if result.is_err():
            return Result.err(str(result.unwrap_err()))

        audio = result.unwrap()
        if self.raw_pcm:
            audio = encode_wav(audio, self.channels, self.sample_rate, self.sample_width)

        ref = await self.storage.write(f"generated_audio/{item.id}/audio.wav", audio)
        return Result.ok({"audio_ref": ref})

    async def _generate(self, text: str) -> bytes:
        data = await self.audio_generator.generate(text)
        if not data:
            raise ExternalServiceError("No audio data received")
        return data
