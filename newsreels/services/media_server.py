"""
HTTP access to generated media.

Serves the storage root so the web paths LocalStorage hands out
(``/generated_video/<id>/<ts>.mp4``) resolve for the renderer and publisher.
"""

import logging
import os
from typing import Optional

from aiohttp import web

ARTIFACT_DIRS = ("generated_images", "generated_audio", "generated_video")

logger = logging.getLogger(__name__)


class MediaServer:
    """Static file server over the public directory."""

    def __init__(self, public_dir: str = "public", host: str = "0.0.0.0", port: int = 3001):
        self.public_dir = os.path.abspath(public_dir)
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        for directory in ARTIFACT_DIRS:
            path = os.path.join(self.public_dir, directory)
            os.makedirs(path, exist_ok=True)
            app.router.add_static(f"/{directory}", path)
        app.router.add_static("/public", self.public_dir)
        return app

    async def start(self) -> None:
        if self._runner is not None:
            return
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        await web.TCPSite(runner, self.host, self.port).start()
        self._runner = runner
        logger.info(f"🌐 Serving {self.public_dir} on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Media server stopped")
