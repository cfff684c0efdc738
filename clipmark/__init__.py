"""
clipmark - Pose-assisted clip and action annotation for sports video

A Python package for:
- Single-frame multi-person pose detection with an ONNX YOLO-pose model
- Marking clips (in/out ranges) on a video timeline
- Labeling actions by clicking detected persons or drawing boxes
- Persisting per-video state and exporting YOLO-style labels
"""

__version__ = "0.1.0"
__author__ = "clipmark developers"

# Core imports (no heavy dependencies)
from .core.config import AnnotatorConfig, PoseConfig, AnnotationConfig, StorageConfig, PathConfig
from .core.constants import (
    COCO_KEYPOINT_NAMES,
    COCO_SKELETON_CONNECTIONS,
    ACTION_LABELS,
    MODEL_INPUT_SIZE,
    NUM_CANDIDATES,
)
from .core.exceptions import (
    ClipmarkException,
    ModelLoadError,
    ModelNotLoadedError,
    InferenceError,
    SessionError,
    FrameCaptureError,
    DataLoadError,
    ConfigError,
    ValidationError,
)
from .annotation.types import Clip, AnnotationBox, ActionAnnotation


# Lazy imports for modules with external dependencies (numpy, cv2, onnxruntime)
def __getattr__(name):
    """Lazy loading for modules with external dependencies"""
    if name in ("PoseSession", "PoseEstimator", "PersonPose", "LetterboxTransform",
                "preprocess_frame", "decode_output", "parse_pose_output"):
        from . import pose
        return getattr(pose, name)
    elif name in ("non_max_suppression", "calculate_iou", "iou", "bbox_to_yolo"):
        from . import detection
        return getattr(detection, name)
    elif name in ("AnnotationResolver", "ClipTimeline", "annotations_to_yolo",
                  "build_export", "write_export"):
        from . import annotation
        return getattr(annotation, name)
    elif name in ("ArrayFrameSource", "VideoFrameSource", "JsonFileStore", "MemoryStore",
                  "load_clips_file"):
        from . import io
        return getattr(io, name)
    elif name in ("AnnotationWorkspace", "AnalysisResult", "AnalysisStatus"):
        from . import workspace
        return getattr(workspace, name)
    elif name == "draw_pose_overlay":
        from .visualization.drawer import draw_pose_overlay
        return draw_pose_overlay
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Config
    "AnnotatorConfig",
    "PoseConfig",
    "AnnotationConfig",
    "StorageConfig",
    "PathConfig",
    # Constants
    "COCO_KEYPOINT_NAMES",
    "COCO_SKELETON_CONNECTIONS",
    "ACTION_LABELS",
    "MODEL_INPUT_SIZE",
    "NUM_CANDIDATES",
    # Exceptions
    "ClipmarkException",
    "ModelLoadError",
    "ModelNotLoadedError",
    "InferenceError",
    "SessionError",
    "FrameCaptureError",
    "DataLoadError",
    "ConfigError",
    "ValidationError",
    # Annotation types
    "Clip",
    "AnnotationBox",
    "ActionAnnotation",
    # Pose
    "PoseSession",
    "PoseEstimator",
    "PersonPose",
    "LetterboxTransform",
    "preprocess_frame",
    "decode_output",
    "parse_pose_output",
    # Detection
    "non_max_suppression",
    "calculate_iou",
    "iou",
    "bbox_to_yolo",
    # Annotation
    "AnnotationResolver",
    "ClipTimeline",
    "annotations_to_yolo",
    "build_export",
    "write_export",
    # IO
    "ArrayFrameSource",
    "VideoFrameSource",
    "JsonFileStore",
    "MemoryStore",
    "load_clips_file",
    # Workspace
    "AnnotationWorkspace",
    "AnalysisResult",
    "AnalysisStatus",
    # Visualization
    "draw_pose_overlay",
]
