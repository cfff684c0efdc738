"""
Keypoint utilities for pose estimation

Provides:
- Coordinate transformations (model input -> source frame)
- Full raw-output post-processing (decode, suppress, unmap)
- Keypoint filtering, summary statistics and the per-person click summary
"""

from typing import Dict, List, Sequence, Union

import numpy as np

from ..core.constants import (
    DEFAULT_CONF_THRESHOLD,
    DEFAULT_IOU_THRESHOLD,
    MODEL_INPUT_SIZE,
    NUM_CANDIDATES,
)
from ..detection.nms import non_max_suppression
from .decoder import decode_output
from .letterbox import LetterboxTransform
from .types import BoundingBox, Keypoint, PersonPose, RawDetection


def unmap_keypoint(keypoint: Keypoint, transform: LetterboxTransform) -> Keypoint:
    """Model-space keypoint -> source-space keypoint, confidence unchanged"""
    x, y = transform.inverse(keypoint.x, keypoint.y)
    return Keypoint(x=x, y=y, confidence=keypoint.confidence)


def unmap_detection(
    detection: RawDetection,
    transform: LetterboxTransform
) -> PersonPose:
    """
    Transform one candidate from model input space to source-frame pixels

    The center-form box becomes top-left form before the inverse letterbox
    is applied; width and height are divided by the scale.

    Args:
        detection: Candidate in model input space
        transform: Letterbox used to build the model input

    Returns:
        PersonPose in source-frame pixel space

    Example:
        >>> t = LetterboxTransform.from_source(1920, 1080, 640)
        >>> det = RawDetection(320, 320, 100, 100, 0.9, [])
        >>> pose = unmap_detection(det, t)
        >>> print(pose.bbox)  # x=810, y=390, width=300, height=300
    """
    x, y = transform.inverse(
        detection.center_x - detection.width / 2,
        detection.center_y - detection.height / 2,
    )
    bbox = BoundingBox(
        x=x,
        y=y,
        width=transform.inverse_length(detection.width),
        height=transform.inverse_length(detection.height),
        confidence=detection.confidence,
    )
    keypoints = [unmap_keypoint(kp, transform) for kp in detection.keypoints]
    return PersonPose(bbox=bbox, keypoints=keypoints)


def unmap_detections(
    detections: List[RawDetection],
    transform: LetterboxTransform
) -> List[PersonPose]:
    """Unmap every detection, preserving order"""
    return [unmap_detection(det, transform) for det in detections]


def parse_pose_output(
    output: Union[np.ndarray, Sequence[float]],
    original_width: int,
    original_height: int,
    input_size: int = MODEL_INPUT_SIZE,
    conf_threshold: float = DEFAULT_CONF_THRESHOLD,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    num_candidates: int = NUM_CANDIDATES
) -> List[PersonPose]:
    """
    Decode, suppress, and unmap a raw model output

    Args:
        output: Flat model output buffer
        original_width: Source frame width
        original_height: Source frame height
        input_size: Model input side used for the letterbox
        conf_threshold: Candidate confidence cutoff
        iou_threshold: NMS overlap threshold
        num_candidates: Candidate stride of the output layout

    Returns:
        Source-space poses in NMS survivorship order
    """
    transform = LetterboxTransform.from_source(original_width, original_height, input_size)
    candidates = decode_output(output, num_candidates, conf_threshold)
    kept = non_max_suppression(candidates, iou_threshold)
    return unmap_detections(kept, transform)


def filter_keypoints(
    keypoints: List[Keypoint],
    conf_threshold: float = 0.5
) -> Dict[int, Keypoint]:
    """
    Keep keypoints strictly above a confidence threshold

    Args:
        keypoints: Keypoints in COCO order
        conf_threshold: Minimum confidence (exclusive)

    Returns:
        Dict mapping COCO index to keypoint

    Example:
        >>> kps = [Keypoint(100, 100, 0.9), Keypoint(110, 95, 0.2)]
        >>> print(list(filter_keypoints(kps)))  # [0]
    """
    return {
        idx: kp for idx, kp in enumerate(keypoints)
        if kp.confidence > conf_threshold
    }


def compute_keypoint_stats(keypoints: List[Keypoint]) -> Dict:
    """
    Compute statistics about keypoints

    Args:
        keypoints: Keypoints in COCO order

    Returns:
        Stats dict with num_keypoints, mean_confidence, center
    """
    if not keypoints:
        return {
            "num_keypoints": 0,
            "mean_confidence": 0.0,
            "center": None,
        }

    coords = np.array([(kp.x, kp.y) for kp in keypoints])
    confs = np.array([kp.confidence for kp in keypoints])
    center = coords.mean(axis=0)

    return {
        "num_keypoints": len(keypoints),
        "mean_confidence": float(np.mean(confs)),
        "center": (float(center[0]), float(center[1])),
    }


def summarize_person(person: PersonPose, person_idx: int) -> Dict:
    """
    Click summary for one detected person

    Args:
        person: Pose in source-frame pixels
        person_idx: Index in the result list (reported 1-based)

    Returns:
        Dict with person number, bbox, box confidence, keypoint count and
        mean keypoint confidence

    Example:
        >>> summary = summarize_person(poses[0], 0)
        >>> print(summary['person'], summary['mean_keypoint_confidence'])
    """
    stats = compute_keypoint_stats(person.keypoints)
    bbox = person.bbox
    return {
        "person": person_idx + 1,
        "bbox": (bbox.x, bbox.y, bbox.width, bbox.height),
        "confidence": bbox.confidence,
        "num_keypoints": stats["num_keypoints"],
        "mean_keypoint_confidence": stats["mean_confidence"],
    }
