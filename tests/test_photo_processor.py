"""Tests for the photo thumbnail pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import pytest
from PIL import Image, features

from thumbnail_toolkit.config import StillCodecOptions, ThumbConfig
from thumbnail_toolkit.core.base import CodecError, ConfigurationError, ProcessingError
from thumbnail_toolkit.processors.photo_processor import PhotoThumbnailer, encoder_options, target_width

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def test_target_width() -> None:
    """Test aspect-preserving widths, rounded half away from zero."""
    assert target_width(4000, 3000, 240) == 320
    assert target_width(4000, 3000, 480) == 640
    assert target_width(3, 2, 1) == 2  # 1.5 rounds up
    assert target_width(1, 1000, 240) == 0


def test_target_width_zero_height() -> None:
    """Test that a zero source height is a codec error, not a division fault."""
    with pytest.raises(CodecError):
        target_width(100, 0, 240)


def test_encoder_options() -> None:
    """Test the mapping of codec settings onto Pillow save arguments."""
    options = StillCodecOptions(quality=70, alpha_quality=50, speed=10)
    assert encoder_options("AVIF", options) == {"quality": 70, "speed": 10}
    assert encoder_options("WEBP", options) == {"quality": 70, "alpha_quality": 50, "method": 0}
    assert encoder_options("WEBP", StillCodecOptions(speed=1))["method"] == 6
    assert encoder_options("JPEG", options) == {"quality": 70}
    assert encoder_options("PNG", options) == {}


def test_photo_stills_have_expected_sizes(
    make_image: Callable[..., Path], png_config: ThumbConfig, tmp_path: Path
) -> None:
    """Test a 4000x3000 photo at heights 240 and 480."""
    source = make_image("photo.png", size=(4000, 3000))
    workspace = tmp_path / "ws"
    workspace.mkdir()

    names = PhotoThumbnailer(png_config).generate(source, workspace)

    assert names == ["240p.png", "480p.png"]
    with Image.open(workspace / "240p.png") as small, Image.open(workspace / "480p.png") as large:
        assert small.size == (320, 240)
        assert large.size == (640, 480)


@pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF support")
def test_photo_stills_as_avif(make_image: Callable[..., Path], tmp_path: Path) -> None:
    """Test the default AVIF output."""
    source = make_image("photo.png", size=(400, 300))
    workspace = tmp_path / "ws"
    workspace.mkdir()
    config = ThumbConfig(heights=(240,))

    names = PhotoThumbnailer(config).generate(source, workspace)

    assert names == ["240p.avif"]
    with Image.open(workspace / "240p.avif") as still:
        assert still.format == "AVIF"
        assert still.size == (320, 240)


def test_degenerate_heights_are_skipped(make_image: Callable[..., Path], tmp_path: Path) -> None:
    """Test that heights producing zero width write nothing and raise nothing."""
    source = make_image("needle.png", size=(1, 1000))
    workspace = tmp_path / "ws"
    workspace.mkdir()
    config = ThumbConfig(heights=(240, 1000), still_extension="png")

    names = PhotoThumbnailer(config).generate(source, workspace)

    assert names == ["1000p.png"]
    assert sorted(p.name for p in workspace.iterdir()) == ["1000p.png"]


def test_alpha_is_flattened_for_jpeg(make_image: Callable[..., Path], tmp_path: Path) -> None:
    """Test that RGBA sources can be written as JPEG stills."""
    source = make_image("logo.png", size=(200, 100), mode="RGBA")
    workspace = tmp_path / "ws"
    workspace.mkdir()
    config = ThumbConfig(heights=(50,), still_extension="jpg")

    PhotoThumbnailer(config).generate(source, workspace)

    with Image.open(workspace / "50p.jpg") as still:
        assert still.mode == "RGB"
        assert still.size == (100, 50)


def test_webp_keeps_alpha(make_image: Callable[..., Path], tmp_path: Path) -> None:
    """Test that WebP stills keep transparency."""
    source = make_image("logo.png", size=(200, 100), mode="RGBA")
    workspace = tmp_path / "ws"
    workspace.mkdir()
    config = ThumbConfig(heights=(50,), still_extension="webp")

    PhotoThumbnailer(config).generate(source, workspace)

    with Image.open(workspace / "50p.webp") as still:
        assert still.mode == "RGBA"


def test_undecodable_source_raises_codec_error(tmp_path: Path, png_config: ThumbConfig) -> None:
    """Test that garbage input is reported as a codec error."""
    source = tmp_path / "broken.jpg"
    source.write_bytes(b"definitely not a jpeg")

    with pytest.raises(CodecError, match="Could not decode"):
        PhotoThumbnailer(png_config).generate(source, tmp_path)


def test_missing_source_raises_codec_error(tmp_path: Path, png_config: ThumbConfig) -> None:
    """Test that a vanished source is a (retryable) codec error."""
    with pytest.raises(CodecError):
        PhotoThumbnailer(png_config).generate(tmp_path / "gone.jpg", tmp_path)


def test_one_failing_height_fails_the_photo(
    make_image: Callable[..., Path], png_config: ThumbConfig, tmp_path: Path
) -> None:
    """Test that an encoder error on any height fails the whole photo."""
    source = make_image("photo.png")

    with (
        patch("thumbnail_toolkit.processors.photo_processor.encoder_options", side_effect=ValueError("bad option")),
        pytest.raises(CodecError, match="bad option"),
    ):
        PhotoThumbnailer(png_config).generate(source, tmp_path)


def test_no_heights_is_a_no_op(make_image: Callable[..., Path], tmp_path: Path) -> None:
    """Test that an empty height list decodes nothing."""
    source = tmp_path / "not-even-read.jpg"
    assert PhotoThumbnailer(ThumbConfig(heights=())).generate(source, tmp_path) == []


def test_backend_selection() -> None:
    """Test the choice between Pillow and ffmpeg for still encoding."""
    assert PhotoThumbnailer(ThumbConfig(still_extension="png")).use_pillow
    assert not PhotoThumbnailer(ThumbConfig(still_extension="png", photo_backend="ffmpeg")).use_pillow
    assert not PhotoThumbnailer(ThumbConfig(still_extension="bmp")).use_pillow

    with pytest.raises(ConfigurationError, match="bmp"):
        PhotoThumbnailer(ThumbConfig(still_extension="bmp", photo_backend="pillow"))


def test_ffmpeg_backend_command(tmp_path: Path) -> None:
    """Test that the ffmpeg backend renders every height from one input."""
    source = tmp_path / "photo.tga"
    workspace = tmp_path / "ws"
    workspace.mkdir()
    config = ThumbConfig(heights=(240, 480), still_extension="png", photo_backend="ffmpeg")

    def fake_run(command: list[str], file_path: Path | None = None) -> None:
        for name in ("240p.png", "480p.png"):
            (workspace / name).write_bytes(b"png")

    ffmpeg = Mock()
    ffmpeg.run_command.side_effect = fake_run

    names = PhotoThumbnailer(config, ffmpeg=ffmpeg).generate(source, workspace)

    assert names == ["240p.png", "480p.png"]
    command = ffmpeg.run_command.call_args[0][0]
    assert command == [
        "ffmpeg",
        "-y",
        "-i",
        str(source),
        "-filter_complex",
        "[0:v:0]split=2[s0][s1];[s0]scale=-1:240[out_s0];[s1]scale=-1:480[out_s1]",
        "-map",
        "[out_s0]",
        "-frames:v",
        "1",
        str(workspace / "240p.png"),
        "-map",
        "[out_s1]",
        "-frames:v",
        "1",
        str(workspace / "480p.png"),
    ]


def test_ffmpeg_backend_missing_output(tmp_path: Path) -> None:
    """Test that a silent ffmpeg run without outputs is an error."""
    config = ThumbConfig(heights=(240,), still_extension="png", photo_backend="ffmpeg")

    with pytest.raises(ProcessingError, match="240p.png"):
        PhotoThumbnailer(config, ffmpeg=Mock()).generate(tmp_path / "photo.tga", tmp_path)
