# src/bumble/preloader/preloader.py

from __future__ import annotations

"""
Resource preloader.

One loading task per resource on a private TaskScheduler:
fetch (one suspension) -> store in the per-kind cache -> count as loaded.

A failed fetch is recorded in `failures` and counted in `failed`, so
loading() can settle even though progress() stays below 1.0.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import ResourceFetcher
from ..errors import OperationRejected
from ..tasks.task_models import Single
from ..tasks.task_scheduler import Task, TaskScheduler

logger = logging.getLogger(__name__)


class ResourceKind(StrEnum):
    IMAGE = "image"
    AUDIO = "audio"
    DATA = "data"


@dataclass(slots=True, frozen=True)
class Resource:
    name: str
    url: str
    kind: ResourceKind

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Resource:
        """Manifest entry: {"name": ..., "url": ..., "type": "image|audio|data"}."""
        kind = raw.get("type", raw.get("kind"))
        try:
            return cls(name=str(raw["name"]), url=str(raw["url"]), kind=ResourceKind(kind))
        except KeyError as exc:
            raise ValueError(f"resource entry missing {exc.args[0]!r}: {raw!r}") from None
        except ValueError:
            raise ValueError(f"unknown resource type {kind!r} for {raw.get('name')!r}") from None


class ResourcePreloader:
    def __init__(self, fetcher: ResourceFetcher) -> None:
        self._fetcher = fetcher
        self._routines = TaskScheduler(name="preloader")
        self._loading = False
        self._caches: dict[ResourceKind, dict[str, Any]] = {kind: {} for kind in ResourceKind}

        self.started = 0
        self.loaded = 0
        self.failed = 0
        self.failures: dict[str, BaseException | None] = {}

    # ---- progress ----

    def loading(self) -> bool:
        return self._loading

    def progress(self) -> float:
        """
        loaded / started. Latches loading() off once everything started has
        either loaded or failed.
        """
        if self.started == 0:
            self._loading = False
            return 1.0
        ratio = self.loaded / self.started
        if ratio >= 1.0 or self.loaded + self.failed >= self.started:
            self._loading = False
        return ratio

    def update(self) -> None:
        self._routines.drive()
        self.progress()

    # ---- cache access ----

    def get_image(self, name: str) -> Any | None:
        return self._caches[ResourceKind.IMAGE].get(name)

    def get_audio(self, name: str) -> Any | None:
        return self._caches[ResourceKind.AUDIO].get(name)

    def get_data(self, name: str) -> Any | None:
        return self._caches[ResourceKind.DATA].get(name)

    def clear_images(self) -> None:
        self._caches[ResourceKind.IMAGE] = {}

    def clear_audios(self) -> None:
        self._caches[ResourceKind.AUDIO] = {}

    def clear_datas(self) -> None:
        self._caches[ResourceKind.DATA] = {}

    def clear_all(self) -> None:
        self.clear_images()
        self.clear_audios()
        self.clear_datas()

    # ---- loading ----

    def load_image(self, name: str, url: str) -> Task:
        return self._start(ResourceKind.IMAGE, name, url)

    def load_audio(self, name: str, url: str) -> Task:
        return self._start(ResourceKind.AUDIO, name, url)

    def load_data(self, name: str, url: str) -> Task:
        return self._start(ResourceKind.DATA, name, url)

    def load(self, resource: Resource) -> Task:
        return self._start(ResourceKind(resource.kind), resource.name, resource.url)

    def load_all(self, resources: Iterable[Resource]) -> list[Task]:
        return [self.load(r) for r in resources]

    def _start(self, kind: ResourceKind, name: str, url: str) -> Task:
        self._loading = True
        self.started += 1
        return self._routines.submit(self._load_body(kind, name, url), name=f"load:{kind.value}:{name}")

    def _load_body(self, kind: ResourceKind, name: str, url: str):
        # Cache lookup happens on the first step, not at submit time.
        if name not in self._caches[kind]:
            try:
                op = self._fetcher.fetch(url, kind.value)
                value = yield Single(op)
            except OperationRejected as exc:
                self._record_failure(name, url, exc.error)
                return None
            except Exception as exc:
                self._record_failure(name, url, exc)
                return None
            self._caches[kind][name] = value

        self.loaded += 1
        logger.debug("Loaded %s %r (%d/%d)", kind.value, name, self.loaded, self.started)
        return self._caches[kind].get(name)

    def _record_failure(self, name: str, url: str, error: BaseException | None) -> None:
        self.failed += 1
        self.failures[name] = error
        logger.warning("Failed to load %r from %s: %r", name, url, error)
