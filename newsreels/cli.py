"""
CLI entrypoint. Use from project root:
  python -m newsreels.cli run                 # one cycle
  python -m newsreels.cli serve               # cycle now, then every CYCLE_INTERVAL_SEC
                                              # (also serves PUBLIC_DIR media on PORT)
  python -m newsreels.cli status
  python -m newsreels.cli confirm-publish <item id> --posted | --not-posted
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from .config import get_config
from .core import NewsReelsError
from .orchestrator import PipelineOrchestrator
from .services import MediaServer
from .state import Stage
from .wiring import build_orchestrator

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="newsreels",
        description="Resumable news-to-video pipeline"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run every stage once and exit")
    sub.add_parser("serve", help="Run a cycle now and then on the configured interval")
    sub.add_parser("status", help="Show item counts per stage")

    confirm = sub.add_parser(
        "confirm-publish",
        help="Resolve a publish whose outcome was unknown"
    )
    confirm.add_argument("item_id", help="Item id shown in the logs")
    outcome = confirm.add_mutually_exclusive_group(required=True)
    outcome.add_argument("--posted", dest="posted", action="store_true",
                         help="The video did go out")
    outcome.add_argument("--not-posted", dest="posted", action="store_false",
                         help="The video did not go out; publish again next cycle")
    return parser


async def _serve(orchestrator: PipelineOrchestrator, media: Optional[MediaServer] = None) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass
    if media is not None:
        await media.start()
    try:
        await orchestrator.run_forever(stop)
    finally:
        if media is not None:
            await media.stop()


async def _dispatch(
    args: argparse.Namespace,
    orchestrator: PipelineOrchestrator,
    media: Optional[MediaServer] = None
) -> int:
    try:
        if args.command == "run":
            report = await orchestrator.run_cycle()
            return 0 if report is not None and report.ok else 1

        if args.command == "serve":
            await _serve(orchestrator, media)
            return 0

        if args.command == "status":
            for name, count in (await orchestrator.status()).items():
                print(f"{name:>20}: {count}")
            return 0

        if args.command == "confirm-publish":
            item = await orchestrator.confirm_publish(args.item_id, args.posted)
            state = "published" if item.is_done(Stage.PUBLISHED) else "queued for publishing"
            print(f"✅ {item.id}: {state}")
            return 0
    finally:
        await orchestrator.close()

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = get_config()
    except NewsReelsError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    try:
        orchestrator = build_orchestrator(config)
        media = None
        if config.server.enabled:
            media = MediaServer(config.storage.public_dir, config.server.host, config.server.port)
        return asyncio.run(_dispatch(args, orchestrator, media))
    except KeyboardInterrupt:
        print("\n\n⚠️ Interrupted by user")
        return 130
    except NewsReelsError as e:
        logger.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
