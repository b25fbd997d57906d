"""Thumbnail processors for photos and videos."""

from .photo_processor import PhotoThumbnailer
from .thumbnail_processor import ThumbnailProcessor, generate_thumbnails, process_directory
from .video_processor import VideoThumbnailer, build_video_command

__all__ = [
    "PhotoThumbnailer",
    "ThumbnailProcessor",
    "VideoThumbnailer",
    "build_video_command",
    "generate_thumbnails",
    "process_directory",
]
