# src/bumble/cli/main.py

"""
CLI entrypoint: preload every resource listed in a JSON manifest.

    bumble-preload assets.json

Manifest format: [{"name": "hero", "url": "img/hero.png", "type": "image"}, ...]
Exit status is 1 when any resource failed to load.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from ..config import get_settings
from ..host.game_loop import GameLoop, run_game_loop
from ..logging_setup import setup_logging
from ..preloader.preloader import Resource

logger = logging.getLogger(__name__)


def load_manifest(path: Path) -> list[Resource]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: manifest must be a JSON list")
    return [Resource.from_dict(entry) for entry in raw]


async def preload(loop: GameLoop, resources: list[Resource]) -> None:
    loop.preloader.load_all(resources)

    def _watch():
        # game routine: runs once the preloader settles, then stops the loop
        yield None
        loop.stop()

    loop.run_task(_watch, name="preload-watch")
    await run_game_loop(loop)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bumble-preload", description=__doc__.splitlines()[1])
    parser.add_argument("manifest", type=Path, help="JSON list of resources")
    parser.add_argument("--asset-root", type=Path, default=None, help="base directory for relative URLs")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    if args.asset_root is not None:
        settings = replace(settings, asset_root=args.asset_root)

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    try:
        resources = load_manifest(args.manifest)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read manifest: %s", exc)
        return 2

    logger.info("Preloading %d resources...", len(resources))
    loop = GameLoop(settings)
    try:
        asyncio.run(preload(loop, resources))
    finally:
        loop.close()

    pre = loop.preloader
    logger.info("Loaded %d/%d resources (%d failed).", pre.loaded, pre.started, pre.failed)
    for name, error in pre.failures.items():
        logger.error("  %s: %r", name, error)
    return 1 if pre.failed else 0


if __name__ == "__main__":
    sys.exit(main())
