# src/bumble/preloader/fetch.py

from __future__ import annotations

"""
Thread-pool resource fetcher.

fetch() returns a concurrent.futures.Future right away; the scheduler polls
it. Only the I/O runs on worker threads.
"""

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

_HTTP_SCHEMES = {"http", "https"}
_KINDS = {"image", "audio", "data"}


class ThreadedFetcher:
    def __init__(
        self,
        *,
        asset_root: str | Path = ".",
        max_workers: int = 4,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._asset_root = Path(asset_root)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bumble-fetch")
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> ThreadedFetcher:
        return cls(
            asset_root=settings.asset_root,
            max_workers=settings.fetch_workers,
            timeout=settings.fetch_timeout,
        )

    def fetch(self, url: str, kind: str) -> Future:
        if kind not in _KINDS:
            raise ValueError(f"unknown resource kind {kind!r}")
        return self._pool.submit(self._fetch_sync, url, kind)

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ThreadedFetcher:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- worker side ----

    def _fetch_sync(self, url: str, kind: str) -> Any:
        payload = self._read(url)
        logger.debug("Fetched %s (%d bytes)", url, len(payload))
        if kind == "data":
            return json.loads(payload)
        return payload

    def _read(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme in _HTTP_SCHEMES:
            resp = self._client.get(url)
            resp.raise_for_status()
            return resp.content

        path = Path(parsed.path) if parsed.scheme == "file" else Path(url)
        if not path.is_absolute():
            path = self._asset_root / path
        return path.read_bytes()
