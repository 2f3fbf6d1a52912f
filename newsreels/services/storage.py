"""
Local filesystem storage for generated artifacts.

Files are written under a public root and addressed by web paths
(``/generated_images/<id>/image_1.png``) so a static file server can expose
them to the renderer and publisher.
"""

import asyncio
import io
import logging
import os
import shutil
import wave

from .interfaces import Storage

logger = logging.getLogger(__name__)


def encode_wav(pcm: bytes, channels: int = 1, sample_rate: int = 24000, sample_width: int = 2) -> bytes:
    """Wrap raw little-endian PCM samples in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


class LocalStorage(Storage):
    """Storage collaborator backed by a directory."""

    def __init__(self, public_dir: str = "public"):
        self.public_dir = os.path.abspath(public_dir)

    def resolve(self, path: str) -> str:
        """Filesystem path for a relative or web path; refuses to leave the root."""
        full = os.path.abspath(os.path.join(self.public_dir, path.lstrip("/")))
        if os.path.commonpath([full, self.public_dir]) != self.public_dir:
            raise ValueError(f"Path escapes storage root: {path}")
        return full

    async def write(self, path: str, data: bytes) -> str:
        full = self.resolve(path)
        await asyncio.to_thread(self._write_file, full, data)
        web_path = "/" + os.path.relpath(full, self.public_dir).replace(os.sep, "/")
        logger.debug(f"Wrote {len(data)} bytes to {web_path}")
        return web_path

    async def delete(self, path: str) -> None:
        full = self.resolve(path)
        if full == self.public_dir:
            raise ValueError("Refusing to delete the storage root")
        await asyncio.to_thread(self._delete_path, full)

    @staticmethod
    def _write_file(full: str, data: bytes) -> None:
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(data)

    @staticmethod
    def _delete_path(full: str) -> None:
        if os.path.isdir(full):
            shutil.rmtree(full)
            logger.info(f"🗑️ Deleted: {full}")
        elif os.path.exists(full):
            os.remove(full)
            logger.info(f"🗑️ Deleted: {full}")
