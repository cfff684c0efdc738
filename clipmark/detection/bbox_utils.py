"""
Bounding box utilities for pose detection and annotation

Box conventions used across the package:
- center form  (cx, cy, w, h): raw model output
- top-left form (x, y, w, h):  PersonPose / annotation boxes
- corner form  (x1, y1, x2, y2): IoU and drawing

Provides:
- Single and batch IoU computation
- Center-form IoU used by NMS
- Box format conversions
- YOLO normalized export conversion
"""

import numpy as np
from typing import Any, Tuple, Union

# RawDetection (anything with to_xyxy) or a (cx, cy, w, h) tuple
CenterBox = Union[Any, Tuple[float, float, float, float]]


def iou(bbox1: np.ndarray, bbox2: np.ndarray) -> float:
    """
    Compute Intersection over Union (IoU) between two corner-form boxes

    Args:
        bbox1: Bounding box [x1, y1, x2, y2]
        bbox2: Bounding box [x1, y1, x2, y2]

    Returns:
        IoU score between 0 and 1, 0 when the union is empty

    Example:
        >>> iou((270, 270, 370, 370), (280, 270, 380, 370))  # 0.818, a duplicate
    """
    x1 = max(bbox1[0], bbox2[0])
    y1 = max(bbox1[1], bbox2[1])
    x2 = min(bbox1[2], bbox2[2])
    y2 = min(bbox1[3], bbox2[3])

    # Intersection area
    inter_area = max(0, x2 - x1) * max(0, y2 - y1)

    # Union area
    area1 = (bbox1[2] - bbox1[0]) * (bbox1[3] - bbox1[1])
    area2 = (bbox2[2] - bbox2[0]) * (bbox2[3] - bbox2[1])
    union_area = area1 + area2 - inter_area

    if union_area == 0:
        return 0.0

    return float(inter_area / union_area)


def iou_batch(bboxes1: np.ndarray, bboxes2: np.ndarray) -> np.ndarray:
    """
    Compute pairwise IoU between two sets of corner-form boxes (vectorized)

    Args:
        bboxes1: Array of shape (N, 4) with [x1, y1, x2, y2]
        bboxes2: Array of shape (M, 4) with [x1, y1, x2, y2]

    Returns:
        IoU matrix of shape (N, M), 0 where the union is empty

    Example:
        >>> head = np.array([[270, 270, 370, 370]])
        >>> rest = np.array([d.to_xyxy() for d in candidates])
        >>> overlaps = iou_batch(head, rest)[0]
    """
    bboxes1 = np.asarray(bboxes1, dtype=np.float64).reshape(-1, 4)
    bboxes2 = np.asarray(bboxes2, dtype=np.float64).reshape(-1, 4)

    # Reshape for broadcasting: (N, 1, 4) and (1, M, 4)
    bboxes2 = np.expand_dims(bboxes2, 0)
    bboxes1 = np.expand_dims(bboxes1, 1)

    # Intersection box
    xx1 = np.maximum(bboxes1[..., 0], bboxes2[..., 0])
    yy1 = np.maximum(bboxes1[..., 1], bboxes2[..., 1])
    xx2 = np.minimum(bboxes1[..., 2], bboxes2[..., 2])
    yy2 = np.minimum(bboxes1[..., 3], bboxes2[..., 3])

    # Intersection area
    w = np.maximum(0., xx2 - xx1)
    h = np.maximum(0., yy2 - yy1)
    wh = w * h

    # Areas
    area1 = (bboxes1[..., 2] - bboxes1[..., 0]) * (bboxes1[..., 3] - bboxes1[..., 1])
    area2 = (bboxes2[..., 2] - bboxes2[..., 0]) * (bboxes2[..., 3] - bboxes2[..., 1])

    # Union area
    union_area = area1 + area2 - wh

    # IoU (avoid division by zero)
    safe_union = np.where(union_area > 0, union_area, 1.0)
    return np.where(union_area > 0, wh / safe_union, 0.0)


def center_to_xyxy(box: CenterBox) -> Tuple[float, float, float, float]:
    """
    Convert a center-form box (or RawDetection) to corner form

    Example:
        >>> center_to_xyxy((320, 320, 100, 100))
        (270.0, 270.0, 370.0, 370.0)
    """
    if hasattr(box, "to_xyxy"):
        return box.to_xyxy()

    cx, cy, w, h = box
    return (cx - w / 2.0, cy - h / 2.0, cx + w / 2.0, cy + h / 2.0)


def calculate_iou(box1: CenterBox, box2: CenterBox) -> float:
    """
    IoU of two center-form boxes

    Args:
        box1: RawDetection or (cx, cy, w, h)
        box2: RawDetection or (cx, cy, w, h)

    Returns:
        IoU in [0, 1]; 1.0 for identical non-empty boxes, 0.0 when disjoint

    Example:
        >>> calculate_iou((50, 50, 100, 100), (50, 50, 100, 100))
        1.0
    """
    return iou(center_to_xyxy(box1), center_to_xyxy(box2))


def rect_from_corners(
    x0: float,
    y0: float,
    x1: float,
    y1: float
) -> Tuple[float, float, float, float]:
    """
    Normalize two drag corners into top-left + size form

    Example:
        >>> rect_from_corners(100, 80, 40, 20)
        (40, 20, 60, 60)
    """
    return (min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))


def bbox_to_yolo(
    bbox: Tuple[float, float, float, float],
    img_width: int,
    img_height: int
) -> Tuple[float, float, float, float]:
    """
    Convert pixel coordinates bbox to YOLO normalized format

    Args:
        bbox: (x1, y1, x2, y2) in pixel coordinates
        img_width: Image width in pixels
        img_height: Image height in pixels

    Returns:
        (x_center, y_center, width, height) in normalized [0, 1] range

    Example:
        >>> bbox_to_yolo((100, 100, 150, 150), 1000, 1000)
        (0.125, 0.125, 0.05, 0.05)
    """
    x1, y1, x2, y2 = bbox

    x_center = ((x1 + x2) / 2.0) / img_width
    y_center = ((y1 + y2) / 2.0) / img_height
    width = (x2 - x1) / img_width
    height = (y2 - y1) / img_height

    return (x_center, y_center, width, height)


