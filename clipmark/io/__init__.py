"""
IO module - Frame sources and annotation persistence

Provides unified interfaces for:
- Capturing frames from still images and videos
- Saving and restoring per-video clips and annotations
- Importing clip lists from JSON
"""

from .frame_source import FrameSource, ArrayFrameSource, VideoFrameSource
from .storage import (
    AnnotationStore,
    StoredState,
    JsonFileStore,
    MemoryStore,
    video_key,
    load_clips_file,
)

__all__ = [
    "FrameSource",
    "ArrayFrameSource",
    "VideoFrameSource",
    "AnnotationStore",
    "StoredState",
    "JsonFileStore",
    "MemoryStore",
    "video_key",
    "load_clips_file",
]
