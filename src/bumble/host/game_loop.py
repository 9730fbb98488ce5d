# src/bumble/host/game_loop.py

from __future__ import annotations

"""
Host tick source.

GameLoop owns the game's TaskScheduler and the ResourcePreloader. While
resources are loading only the preloader is driven; afterwards every tick
drives the game routines.
"""

import asyncio
import logging

from ..config import Settings, get_settings
from ..core.ports import ResourceFetcher
from ..preloader.fetch import ThreadedFetcher
from ..preloader.preloader import ResourcePreloader
from ..tasks.task_models import TaskBody
from ..tasks.task_scheduler import Task, TaskScheduler

logger = logging.getLogger(__name__)


class GameLoop:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        framerate: float | None = None,
        fetcher: ResourceFetcher | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.framerate = float(framerate or self.settings.framerate)
        if self.framerate <= 0:
            raise ValueError(f"framerate must be positive, got {self.framerate}")

        self._fetcher = fetcher or ThreadedFetcher.from_settings(self.settings)
        self._routines = TaskScheduler(name="routines")
        self._preloader = ResourcePreloader(self._fetcher)
        self._running = True
        self.ticks = 0

    @property
    def preloader(self) -> ResourcePreloader:
        return self._preloader

    @property
    def routines(self) -> TaskScheduler:
        return self._routines

    @property
    def running(self) -> bool:
        return self._running

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.framerate

    def run_task(self, body: TaskBody, *, name: str | None = None) -> Task:
        return self._routines.submit(body, name=name)

    def clear_tasks(self) -> None:
        self._routines.clear()

    def update(self) -> None:
        """One tick."""
        self.ticks += 1
        if self._preloader.loading():
            self._preloader.update()
        else:
            self._routines.drive()

    def stop(self) -> None:
        self._running = False

    def close(self) -> None:
        self.stop()
        self._fetcher.close()


async def run_game_loop(loop: GameLoop, *, max_ticks: int | None = None) -> int:
    """
    Call loop.update() once per frame interval until loop.stop() or max_ticks.

    An exception escaping update() is logged and the loop keeps ticking.
    To stop from outside, call loop.stop() or cancel the coroutine.
    Returns the number of ticks run.
    """
    interval = loop.frame_interval
    ticks = 0

    while loop.running:
        if max_ticks is not None and ticks >= max_ticks:
            break

        try:
            loop.update()
        except Exception:
            logger.exception("frame update failed (tick=%d)", loop.ticks)
        ticks += 1

        await asyncio.sleep(interval)

    return ticks
