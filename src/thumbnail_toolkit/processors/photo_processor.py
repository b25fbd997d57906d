"""Photo thumbnails: decode once, resize and encode once per configured height."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any

from PIL import Image

from ..core.base import CodecError, ConfigurationError, ProcessingError
from ..core.ffmpeg import FFmpegProcessor
from ..core.filter_graph import FilterGraphBuilder
from ..core.output_plan import still_filename
from ..core.thermal import get_encode_worker_count

if TYPE_CHECKING:
    from pathlib import Path

    from ..config import StillCodecOptions, ThumbConfig

LOG = logging.getLogger(__name__)

# Still extensions with a Pillow encoder mapping
PILLOW_FORMATS = {
    "avif": "AVIF",
    "webp": "WEBP",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
}

# Pillow's WebP "method" runs 0 (fast) .. 6 (slow)
WEBP_MAX_METHOD = 6


def pillow_can_encode(extension: str) -> bool:
    """Whether the installed Pillow build can write ``extension``."""
    format_name = PILLOW_FORMATS.get(extension)
    if format_name is None:
        return False
    Image.init()
    return format_name in Image.SAVE


def target_width(orig_width: int, orig_height: int, height: int) -> int:
    """
    Width keeping the aspect ratio at ``height``, rounded half away from zero.

    Raises:
        CodecError: if the source height is zero

    """
    if orig_height <= 0:
        msg = f"Cannot scale an image with height {orig_height}"
        raise CodecError(msg)
    return math.floor(orig_width * height / orig_height + 0.5)


def encoder_options(format_name: str, options: StillCodecOptions) -> dict[str, Any]:
    """Map the generic quality/alpha/speed settings onto Pillow save() arguments."""
    if format_name == "AVIF":
        # Pillow's AVIF encoder has no separate alpha quality
        return {"quality": options.quality, "speed": options.speed}
    if format_name == "WEBP":
        method = round(WEBP_MAX_METHOD * (10 - options.speed) / 9)
        return {"quality": options.quality, "alpha_quality": options.alpha_quality, "method": method}
    if format_name == "JPEG":
        return {"quality": options.quality}
    return {}


class PhotoThumbnailer:
    """
    Produces ``<height>p.<still_extension>`` for every configured height.

    The source is decoded once into an RGBA image that is only read by the
    per-height workers, so heights can be resized and encoded in parallel.
    Extensions Pillow cannot write are handled by a single ffmpeg call.
    """

    def __init__(self, config: ThumbConfig, ffmpeg: FFmpegProcessor | None = None) -> None:
        """Pick the backend for the configured still extension."""
        self.config = config
        self.ffmpeg = ffmpeg or FFmpegProcessor()
        self.use_pillow = self._select_backend()

    def _select_backend(self) -> bool:
        backend = self.config.photo_backend
        extension = self.config.still_extension
        if backend == "ffmpeg":
            return False
        can_encode = pillow_can_encode(extension)
        if backend == "pillow" and not can_encode:
            msg = f"Pillow cannot encode .{extension} stills; use photo_backend 'ffmpeg' or 'auto'"
            raise ConfigurationError(msg)
        if not can_encode:
            LOG.info("Pillow cannot encode .%s, photo stills will use ffmpeg", extension)
        return can_encode

    def generate(self, source: Path, workspace: Path) -> list[str]:
        """Write all stills for ``source`` into ``workspace``; return their names."""
        if not self.config.heights:
            return []
        if self.use_pillow:
            return self._generate_with_pillow(source, workspace)
        return self._generate_with_ffmpeg(source, workspace)

    def decode(self, source: Path) -> Image.Image:
        """Decode ``source`` into an RGBA image."""
        try:
            with Image.open(source) as image:
                rgba = image.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            msg = f"Could not decode {source}: {e}"
            raise CodecError(msg, file_path=source, cause=e) from e

        width, height = rgba.size
        if width == 0 or height == 0:
            msg = f"Source image {source} has zero size ({width}x{height})"
            raise CodecError(msg, file_path=source)
        return rgba

    def _generate_with_pillow(self, source: Path, workspace: Path) -> list[str]:
        image = self.decode(source)
        heights = self.config.heights
        LOG.debug("Decoded %s at %dx%d, writing %d stills", source.name, image.width, image.height, len(heights))

        written: dict[int, str] = {}
        with ThreadPoolExecutor(max_workers=get_encode_worker_count(len(heights))) as executor:
            future_to_height = {
                executor.submit(self._write_still, image, height, source, workspace): height for height in heights
            }
            for future in as_completed(future_to_height):
                # The first failure fails the photo; the pool still waits for the rest
                name = future.result()
                if name is not None:
                    written[future_to_height[future]] = name

        return [written[h] for h in heights if h in written]

    def _write_still(self, image: Image.Image, height: int, source: Path, workspace: Path) -> str | None:
        width = target_width(image.width, image.height, height)
        if width == 0 or height == 0:
            LOG.debug("Skipping %dp for %s: degenerate aspect ratio", height, source.name)
            return None

        format_name = PILLOW_FORMATS[self.config.still_extension]
        name = still_filename(height, self.config)
        try:
            resized = image.resize((width, height), Image.Resampling.LANCZOS)
            if format_name == "JPEG":
                resized = resized.convert("RGB")
            resized.save(workspace / name, format=format_name, **encoder_options(format_name, self.config.still_codec))
        except (OSError, ValueError) as e:
            msg = f"Failed to encode {name} for {source}: {e}"
            raise CodecError(msg, file_path=source, cause=e) from e
        return name

    def _generate_with_ffmpeg(self, source: Path, workspace: Path) -> list[str]:
        builder = FilterGraphBuilder()
        index = builder.add_input(source)
        heights = self.config.heights
        names = [still_filename(h, self.config) for h in heights]

        branches = builder.split(builder.stream(index, "v:0"), len(heights), "s")
        for branch, height, name in zip(branches, heights, names):
            builder.add_still_output(builder.scale(branch, height, "out_s"), workspace / name)

        self.ffmpeg.run_command(builder.build(), file_path=source)

        missing = [n for n in names if not (workspace / n).is_file()]
        if missing:
            msg = f"ffmpeg did not write {', '.join(missing)} for {source}"
            raise ProcessingError(msg, file_path=source)
        return names
