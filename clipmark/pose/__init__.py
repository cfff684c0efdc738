"""
Pose estimation module - 17-keypoint person detection on single frames

Provides:
- Letterbox geometry and frame preprocessing
- ONNX Runtime session handle
- Raw output decoding and coordinate unmapping
- PoseEstimator chaining the whole pipeline
"""

from .types import (
    Keypoint,
    BoundingBox,
    RawDetection,
    PersonPose,
    PoseResult,
    PreprocessResult,
)
from .letterbox import LetterboxTransform
from .preprocessing import preprocess_frame, letterbox_image, image_to_tensor
from .decoder import decode_output
from .inference import PoseSession, create_onnx_session, is_session_failure
from .keypoint_utils import (
    unmap_detection,
    unmap_detections,
    parse_pose_output,
    filter_keypoints,
    compute_keypoint_stats,
    summarize_person,
)
from .estimator import PoseEstimator

__all__ = [
    # Types
    "Keypoint",
    "BoundingBox",
    "RawDetection",
    "PersonPose",
    "PoseResult",
    "PreprocessResult",
    # Geometry / preprocessing
    "LetterboxTransform",
    "preprocess_frame",
    "letterbox_image",
    "image_to_tensor",
    # Inference
    "PoseSession",
    "create_onnx_session",
    "is_session_failure",
    # Post-processing
    "decode_output",
    "unmap_detection",
    "unmap_detections",
    "parse_pose_output",
    "filter_keypoints",
    "compute_keypoint_stats",
    "summarize_person",
    # Estimator
    "PoseEstimator",
]
