"""
Core module - Configuration, constants, and exceptions for clipmark
"""

from .config import (
    AnnotatorConfig,
    PoseConfig,
    AnnotationConfig,
    StorageConfig,
    PathConfig,
)
from .constants import (
    COCO_KEYPOINT_NAMES,
    COCO_SKELETON_CONNECTIONS,
    NUM_KEYPOINTS,
    NUM_CANDIDATES,
    MODEL_INPUT_SIZE,
    LETTERBOX_FILL_COLOR,
    ACTION_LABELS,
)
from .exceptions import (
    ClipmarkException,
    ModelLoadError,
    ModelNotLoadedError,
    InferenceError,
    SessionError,
    OutputShapeError,
    FrameCaptureError,
    DataLoadError,
    ConfigError,
    ValidationError,
    handle_clipmark_exception,
)

__all__ = [
    "AnnotatorConfig",
    "PoseConfig",
    "AnnotationConfig",
    "StorageConfig",
    "PathConfig",
    "COCO_KEYPOINT_NAMES",
    "COCO_SKELETON_CONNECTIONS",
    "NUM_KEYPOINTS",
    "NUM_CANDIDATES",
    "MODEL_INPUT_SIZE",
    "LETTERBOX_FILL_COLOR",
    "ACTION_LABELS",
    "ClipmarkException",
    "ModelLoadError",
    "ModelNotLoadedError",
    "InferenceError",
    "SessionError",
    "OutputShapeError",
    "FrameCaptureError",
    "DataLoadError",
    "ConfigError",
    "ValidationError",
    "handle_clipmark_exception",
]
