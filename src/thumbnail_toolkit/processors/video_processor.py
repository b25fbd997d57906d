"""Video thumbnails and previews from one ffmpeg invocation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config.constants import SEEK_END_MARGIN
from ..core.base import ProcessingError
from ..core.ffmpeg import FFmpegProbe, FFmpegProcessor
from ..core.filter_graph import FilterGraphBuilder
from ..core.output_plan import MediaCategory, percent_still_filename, plan_outputs, still_filename, transcode_filename

if TYPE_CHECKING:
    from pathlib import Path

    from ..config import ThumbConfig
    from ..core.ffmpeg import MediaInfo

LOG = logging.getLogger(__name__)


def percentage_seek(percentage: int, duration: float) -> float:
    """Seek offset of a percentage still, kept short of the end so a frame can be decoded."""
    return min(percentage / 100 * duration, max(0.0, duration - SEEK_END_MARGIN))


def has_video_work(config: ThumbConfig) -> bool:
    video = config.video
    return bool(video.percentages or config.heights or video.transcode_outputs)


def build_video_command(
    source: Path,
    workspace: Path,
    config: ThumbConfig,
    media_info: MediaInfo,
) -> list[str] | None:
    """
    Build the ffmpeg command producing every video artifact at once.

    Inputs are added in a fixed order so input indices and labels are
    deterministic:

    1. one seeked input per percentage still, scaled to
       ``percentage_still_height``;
    2. one input seeked to ``thumb_time``, split once per still height;
    3. one bare input whose video (and audio, when present) is split once
       per transcode output.

    Returns:
        The argument list, or None when nothing is configured

    """
    video = config.video
    builder = FilterGraphBuilder()

    for percentage in video.percentages:
        index = builder.add_input(source, seek=percentage_seek(percentage, media_info.duration))
        label = builder.scale(builder.stream(index, "v"), video.percentage_still_height, "out_ts")
        builder.add_still_output(label, workspace / percent_still_filename(percentage, config))

    if config.heights:
        index = builder.add_input(source, seek=video.thumb_time)
        branches = builder.split(builder.stream(index, "v"), len(config.heights), "ms")
        for branch, height in zip(branches, config.heights):
            label = builder.scale(branch, height, "out_ms")
            builder.add_still_output(label, workspace / still_filename(height, config))

    outputs = video.transcode_outputs
    if outputs:
        index = builder.add_input(source)
        video_branches = builder.split(builder.stream(index, "v:0"), len(outputs), "v")
        if media_info.has_audio:
            audio_branches: list[str | None] = list(
                builder.split(builder.stream(index, "a:0"), len(outputs), "a", audio=True)
            )
        else:
            audio_branches = [None] * len(outputs)

        for output, video_branch, audio_branch in zip(outputs, video_branches, audio_branches):
            label = builder.scale(video_branch, output.height, "out_v", even_width=True)
            options = ["-c:v", video.video_codec, "-crf", str(output.quality), "-b:v", "0"]
            labels = [label]
            if audio_branch is not None:
                labels.append(audio_branch)
                options.extend(["-c:a", video.audio_codec, "-b:a", video.audio_bitrate])
            builder.add_output(labels, workspace / transcode_filename(output.height, config), options)

    if builder.is_empty:
        return None
    return builder.build()


class VideoThumbnailer:
    """Probes a video once and renders all of its artifacts with one ffmpeg run."""

    def __init__(self, config: ThumbConfig, ffmpeg: FFmpegProcessor | None = None) -> None:
        self.config = config
        self.ffmpeg = ffmpeg or FFmpegProcessor()

    def generate(self, source: Path, workspace: Path) -> list[str]:
        """Write all video artifacts for ``source`` into ``workspace``; return their names."""
        if not has_video_work(self.config):
            LOG.debug("No video artifacts configured, nothing to do for %s", source.name)
            return []

        media_info = FFmpegProbe.get_media_info(source)
        LOG.debug(
            "Probed %s: %.2fs, audio=%s", source.name, media_info.duration, "yes" if media_info.has_audio else "no"
        )
        if self.config.video.transcode_outputs and not media_info.has_audio:
            LOG.info("%s has no audio stream, previews will be silent", source.name)

        command = build_video_command(source, workspace, self.config, media_info)
        if command is None:
            return []
        self.ffmpeg.run_command(command, file_path=source)

        names = [a.filename for a in plan_outputs(MediaCategory.VIDEO, self.config)]
        missing = [n for n in names if not (workspace / n).is_file()]
        if missing:
            # e.g. a seek past the last frame encodes nothing but exits 0
            msg = f"ffmpeg did not write {', '.join(missing)} for {source}"
            raise ProcessingError(msg, file_path=source)
        return names
