#!/usr/bin/env python3
"""
Tests for the renderer pieces that do not need a live browser.
"""
import asyncio
import os
from datetime import datetime

import pytest

from prop24.errors import RendererError
from prop24.renderer import PageRenderer, diagnostic_dir_name


class ShotPage:
    """Page stub whose screenshot either writes a marker file or fails."""

    def __init__(self, fail=False):
        self.fail = fail

    async def screenshot(self, path, full_page=False):
        if self.fail:
            raise RuntimeError("screenshot failed")
        with open(path, "wb") as f:
            f.write(b"png")


def test_diagnostic_dir_name():
    when = datetime(2024, 3, 15, 8, 5, 9)
    assert diagnostic_dir_name("Sea Point, Cape Town", when) == "2024-03-15T08-05-09_Sea-Point--Cape-Town"


def test_snapshot_directory_created_per_run(tmp_path):
    renderer = PageRenderer("Sandton", screenshot_root=str(tmp_path))
    assert os.path.isdir(renderer.snapshot_dir)
    assert os.path.dirname(renderer.snapshot_dir) == str(tmp_path)


def test_snapshots_are_numbered(tmp_path):
    renderer = PageRenderer("Sandton", screenshot_root=str(tmp_path))

    async def shoot():
        return [await renderer.snapshot(ShotPage(), label) for label in ("homepage loaded", "search")]

    first, second = asyncio.run(shoot())
    assert os.path.basename(first).startswith("001_homepage-loaded_")
    assert os.path.basename(second).startswith("002_search_")
    assert first.endswith(".png") and os.path.exists(first)


def test_snapshot_failure_is_swallowed(tmp_path):
    renderer = PageRenderer("Sandton", screenshot_root=str(tmp_path))
    assert asyncio.run(renderer.snapshot(ShotPage(fail=True), "boom")) is None


def test_screenshots_disabled(tmp_path):
    renderer = PageRenderer("Sandton", screenshots=False, screenshot_root=str(tmp_path))
    assert renderer.snapshot_dir is None
    assert os.listdir(tmp_path) == []
    assert asyncio.run(renderer.snapshot(ShotPage(), "x")) is None


def test_open_page_before_launch_raises():
    renderer = PageRenderer("Sandton", screenshots=False)
    with pytest.raises(RendererError):
        asyncio.run(renderer.open_page())


def test_close_is_idempotent():
    renderer = PageRenderer("Sandton", screenshots=False)

    async def close_twice():
        await renderer.close()
        await renderer.close()

    asyncio.run(close_twice())
    assert renderer._closed
