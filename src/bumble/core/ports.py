# src/bumble/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the scheduler and the preloader.

The scheduler never assumes a concrete async primitive. concurrent.futures.Future,
asyncio.Future and bumble.tasks.operations.PendingOperation all fit AsyncOperation.
"""

from typing import Any, Protocol


class AsyncOperation(Protocol):
    """A single-shot external result observed by polling."""

    def done(self) -> bool: ...
    def result(self) -> Any: ...
    def exception(self) -> BaseException | None: ...


class ResourceFetcher(Protocol):
    """Starts fetching one resource and returns the pending operation."""

    def fetch(self, url: str, kind: str) -> AsyncOperation: ...
    def close(self) -> None: ...
