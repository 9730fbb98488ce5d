# tests/test_fetch.py

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from bumble.preloader.fetch import ThreadedFetcher


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/level.json":
        return httpx.Response(200, json={"level": 1})
    if request.url.path == "/hero.png":
        return httpx.Response(200, content=b"\x89PNG")
    return httpx.Response(404)


@pytest.fixture()
def http_fetcher(tmp_path: Path):
    client = httpx.Client(transport=httpx.MockTransport(_handler))
    fetcher = ThreadedFetcher(asset_root=tmp_path, max_workers=2, client=client)
    yield fetcher
    fetcher.close()
    client.close()


def test_fetch_local_files_relative_to_asset_root(http_fetcher: ThreadedFetcher, tmp_path: Path) -> None:
    (tmp_path / "data.json").write_text(json.dumps({"a": [1, 2]}), encoding="utf-8")
    (tmp_path / "img.png").write_bytes(b"raw-bytes")

    assert http_fetcher.fetch("data.json", "data").result(timeout=5) == {"a": [1, 2]}
    assert http_fetcher.fetch("img.png", "image").result(timeout=5) == b"raw-bytes"
    assert http_fetcher.fetch(str(tmp_path / "img.png"), "audio").result(timeout=5) == b"raw-bytes"


def test_fetch_http(http_fetcher: ThreadedFetcher) -> None:
    assert http_fetcher.fetch("https://assets.test/level.json", "data").result(timeout=5) == {"level": 1}
    assert http_fetcher.fetch("https://assets.test/hero.png", "image").result(timeout=5) == b"\x89PNG"


def test_fetch_errors_surface_on_the_future(http_fetcher: ThreadedFetcher) -> None:
    not_found = http_fetcher.fetch("https://assets.test/nope.png", "image")
    assert isinstance(not_found.exception(timeout=5), httpx.HTTPStatusError)

    missing = http_fetcher.fetch("does-not-exist.bin", "image")
    assert isinstance(missing.exception(timeout=5), FileNotFoundError)


def test_fetch_rejects_unknown_kind(http_fetcher: ThreadedFetcher) -> None:
    with pytest.raises(ValueError):
        http_fetcher.fetch("x", "video")


def test_from_settings(settings) -> None:
    fetcher = ThreadedFetcher.from_settings(settings)
    try:
        (settings.asset_root / "f.json").write_text("[]", encoding="utf-8")
        assert fetcher.fetch("f.json", "data").result(timeout=5) == []
    finally:
        fetcher.close()
