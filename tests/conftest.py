# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from bumble.config import Settings
from bumble.tasks.task_scheduler import TaskScheduler

from .fakes import FakeFetcher


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Explicit settings for tests.

    Built directly rather than from the environment, to keep unit tests
    isolated and deterministic.
    """
    return Settings(
        app_name="bumble-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        framerate=1000.0,
        fetch_workers=2,
        fetch_timeout=5.0,
        asset_root=tmp_path,
    )


@pytest.fixture()
def scheduler() -> TaskScheduler:
    return TaskScheduler(name="test")


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()
