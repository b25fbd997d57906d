"""Tests for single-invocation video thumbnail commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from thumbnail_toolkit.config import ThumbConfig, TranscodeOutput, VideoThumbConfig
from thumbnail_toolkit.core.base import ProcessingError
from thumbnail_toolkit.core.ffmpeg import MediaInfo, ProbeError
from thumbnail_toolkit.processors.video_processor import VideoThumbnailer, build_video_command, percentage_seek

SOURCE = Path("clip.mp4")
WORKSPACE = Path("ws")
GET_MEDIA_INFO = "thumbnail_toolkit.processors.video_processor.FFmpegProbe.get_media_info"


def _config(
    heights: tuple[int, ...] = (),
    percentages: tuple[int, ...] = (),
    outputs: tuple[TranscodeOutput, ...] = (),
) -> ThumbConfig:
    return ThumbConfig(
        heights=heights,
        video=VideoThumbConfig(
            thumb_time=0.5,
            percentages=percentages,
            percentage_still_height=720,
            transcode_outputs=outputs,
        ),
    )


def test_percentage_stills_and_transcode() -> None:
    """Test a 100 s clip with stills at 0% and 50% plus one 480p preview."""
    config = _config(percentages=(0, 50), outputs=(TranscodeOutput(height=480, quality=35),))

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=100.0, has_audio=True))

    assert command == [
        "ffmpeg",
        "-y",
        "-ss",
        "0",
        "-i",
        "clip.mp4",
        "-ss",
        "50",
        "-i",
        "clip.mp4",
        "-i",
        "clip.mp4",
        "-filter_complex",
        "[0:v]scale=-1:720[out_ts0];"
        "[1:v]scale=-1:720[out_ts1];"
        "[2:v:0]split=1[v0];"
        "[2:a:0]asplit=1[a0];"
        "[v0]scale=-2:480[out_v0]",
        "-map",
        "[out_ts0]",
        "-frames:v",
        "1",
        str(WORKSPACE / "0_percent.avif"),
        "-map",
        "[out_ts1]",
        "-frames:v",
        "1",
        str(WORKSPACE / "50_percent.avif"),
        "-map",
        "[out_v0]",
        "-map",
        "[a0]",
        "-c:v",
        "libvpx-vp9",
        "-crf",
        "35",
        "-b:v",
        "0",
        "-c:a",
        "libopus",
        "-b:a",
        "64k",
        str(WORKSPACE / "480p.webm"),
    ]


def test_multi_height_stills_share_one_seek() -> None:
    """Test that fixed-time stills are split from a single seeked input."""
    config = _config(heights=(240, 480))

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=10.0, has_audio=False))

    assert command is not None
    assert command[2:6] == ["-ss", "0.5", "-i", "clip.mp4"]
    assert command.count("-i") == 1
    graph = command[command.index("-filter_complex") + 1]
    assert graph == "[0:v]split=2[ms0][ms1];[ms0]scale=-1:240[out_ms0];[ms1]scale=-1:480[out_ms1]"
    assert str(WORKSPACE / "240p.avif") in command
    assert str(WORKSPACE / "480p.avif") in command


def test_input_order_is_percentages_then_heights_then_transcodes() -> None:
    """Test the fixed input numbering across all three categories."""
    config = _config(
        heights=(240,),
        percentages=(25,),
        outputs=(TranscodeOutput(480, 35), TranscodeOutput(144, 40)),
    )

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=40.0, has_audio=True))

    assert command is not None
    graph = command[command.index("-filter_complex") + 1]
    assert graph.split(";") == [
        "[0:v]scale=-1:720[out_ts0]",
        "[1:v]split=1[ms0]",
        "[ms0]scale=-1:240[out_ms0]",
        "[2:v:0]split=2[v0][v1]",
        "[2:a:0]asplit=2[a0][a1]",
        "[v0]scale=-2:480[out_v0]",
        "[v1]scale=-2:144[out_v1]",
    ]
    assert command[2:6] == ["-ss", "10", "-i", "clip.mp4"]
    assert command[6:10] == ["-ss", "0.5", "-i", "clip.mp4"]
    assert command[10:12] == ["-i", "clip.mp4"]
    assert command[-1] == str(WORKSPACE / "144p.webm")


def test_transcode_without_audio() -> None:
    """Test that a silent source gets video-only previews instead of failing."""
    config = _config(outputs=(TranscodeOutput(480, 35),))

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=5.0, has_audio=False))

    assert command is not None
    assert "asplit" not in command[command.index("-filter_complex") + 1]
    assert "-c:a" not in command
    assert command.count("-map") == 1


def test_custom_codecs() -> None:
    """Test that the configured encoders are used for previews."""
    config = ThumbConfig(
        heights=(),
        video=VideoThumbConfig(
            percentages=(),
            transcode_outputs=(TranscodeOutput(360, 30),),
            transcode_extension="mkv",
            video_codec="libaom-av1",
            audio_codec="aac",
            audio_bitrate="128k",
        ),
    )

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=5.0, has_audio=True))

    assert command is not None
    assert command[-11:] == [
        "-c:v",
        "libaom-av1",
        "-crf",
        "30",
        "-b:v",
        "0",
        "-c:a",
        "aac",
        "-b:a",
        "128k",
        str(WORKSPACE / "360p.mkv"),
    ]


def test_nothing_configured_builds_nothing() -> None:
    """Test that all-empty categories produce no command."""
    assert build_video_command(SOURCE, WORKSPACE, _config(), MediaInfo(duration=5.0, has_audio=True)) is None


def test_generate_without_work_does_not_probe(tmp_path: Path) -> None:
    """Test that no probe or ffmpeg process runs when nothing is configured."""
    ffmpeg = Mock()
    with patch(GET_MEDIA_INFO) as mock_probe:
        assert VideoThumbnailer(_config(), ffmpeg=ffmpeg).generate(tmp_path / "clip.mp4", tmp_path) == []

    mock_probe.assert_not_called()
    ffmpeg.run_command.assert_not_called()


def test_generate_runs_one_process(tmp_path: Path) -> None:
    """Test that every artifact comes from exactly one ffmpeg run."""
    config = _config(heights=(240,), percentages=(0, 50), outputs=(TranscodeOutput(480, 35),))
    source = tmp_path / "clip.mp4"

    def fake_run(command: list[str], file_path: Path | None = None) -> None:
        for name in ("240p.avif", "0_percent.avif", "50_percent.avif", "480p.webm"):
            (tmp_path / name).write_bytes(b"x")

    ffmpeg = Mock()
    ffmpeg.run_command.side_effect = fake_run

    with patch(GET_MEDIA_INFO, return_value=MediaInfo(duration=100.0, has_audio=True)) as mock_probe:
        names = VideoThumbnailer(config, ffmpeg=ffmpeg).generate(source, tmp_path)

    mock_probe.assert_called_once_with(source)
    ffmpeg.run_command.assert_called_once()
    assert ffmpeg.run_command.call_args.kwargs["file_path"] == source
    assert names == ["240p.avif", "0_percent.avif", "50_percent.avif", "480p.webm"]


def test_generate_probe_failure_propagates(tmp_path: Path) -> None:
    """Test that a failed probe aborts before ffmpeg runs."""
    ffmpeg = Mock()
    with (
        patch(GET_MEDIA_INFO, side_effect=ProbeError("no duration")),
        pytest.raises(ProbeError),
    ):
        VideoThumbnailer(_config(percentages=(0,)), ffmpeg=ffmpeg).generate(tmp_path / "clip.mp4", tmp_path)

    ffmpeg.run_command.assert_not_called()


def test_generate_detects_missing_outputs(tmp_path: Path) -> None:
    """Test that an ffmpeg run that skipped an output is a failure."""
    with (
        patch(GET_MEDIA_INFO, return_value=MediaInfo(duration=1.0, has_audio=False)),
        pytest.raises(ProcessingError, match="99_percent.avif"),
    ):
        VideoThumbnailer(_config(percentages=(99,)), ffmpeg=Mock()).generate(tmp_path / "clip.mp4", tmp_path)


def test_full_percentage_seeks_just_before_the_end() -> None:
    """Test that a 100% still seeks short of the end instead of past the last frame."""
    config = _config(percentages=(0, 100))

    command = build_video_command(SOURCE, WORKSPACE, config, MediaInfo(duration=100.0, has_audio=False))

    assert command is not None
    assert command[2:6] == ["-ss", "0", "-i", "clip.mp4"]
    assert command[6:10] == ["-ss", "99.9", "-i", "clip.mp4"]
    assert str(WORKSPACE / "100_percent.avif") in command


def test_percentage_seek_on_very_short_clips() -> None:
    """Test that the seek never goes negative for clips shorter than the end margin."""
    assert percentage_seek(100, 0.05) == 0.0
    assert percentage_seek(50, 0.05) == 0.0
    assert percentage_seek(50, 10.0) == 5.0
