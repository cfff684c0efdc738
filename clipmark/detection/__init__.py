"""
Detection module - box geometry and duplicate suppression

Provides:
- Bounding box utilities (IoU, conversions, YOLO normalization)
- Greedy Non-Max Suppression for pose candidates
"""

from .bbox_utils import (
    iou,
    iou_batch,
    calculate_iou,
    center_to_xyxy,
    rect_from_corners,
    bbox_to_yolo,
)
from .nms import non_max_suppression

__all__ = [
    # Bbox utilities
    "iou",
    "iou_batch",
    "calculate_iou",
    "center_to_xyxy",
    "rect_from_corners",
    "bbox_to_yolo",
    # Suppression
    "non_max_suppression",
]
