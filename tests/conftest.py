"""Shared fixtures for the thumbnail toolkit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from PIL import Image

from thumbnail_toolkit.config import ThumbConfig, VideoThumbConfig, reset_config
from thumbnail_toolkit.core.ffmpeg import FFmpegProbe

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_global_state() -> Iterator[None]:
    """Reset process-wide caches between tests."""
    reset_config()
    FFmpegProbe.clear_cache()
    yield
    reset_config()
    FFmpegProbe.clear_cache()


@pytest.fixture
def png_config() -> ThumbConfig:
    """Photo config writing PNG stills, available in every Pillow build."""
    return ThumbConfig(heights=(240, 480), still_extension="png", video=VideoThumbConfig())


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a solid-colour image and return its path."""

    def _make(name: str = "photo.png", size: tuple[int, int] = (400, 300), mode: str = "RGB") -> Path:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color="red" if mode == "RGB" else (255, 0, 0, 128)).save(path)
        return path

    return _make
