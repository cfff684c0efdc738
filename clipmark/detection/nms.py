"""
Greedy Non-Max Suppression over decoded pose candidates
"""

import logging
from typing import List, TYPE_CHECKING

import numpy as np

from ..core.constants import DEFAULT_IOU_THRESHOLD
from .bbox_utils import iou_batch

if TYPE_CHECKING:
    from ..pose.types import RawDetection

logger = logging.getLogger(__name__)


def non_max_suppression(
    detections: List["RawDetection"],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
) -> List["RawDetection"]:
    """
    Keep the highest-confidence candidate of every overlapping cluster

    Candidates are ranked by confidence with a stable sort, so equal scores
    keep decode order. The head of the ranking is kept and every remaining
    candidate whose IoU with it is strictly greater than iou_threshold is
    dropped, until nothing remains.

    Args:
        detections: Candidates in decode order
        iou_threshold: Overlap above which a candidate counts as a duplicate

    Returns:
        Kept candidates in survivorship order (confidence descending)

    Example:
        >>> kept = non_max_suppression(decode_output(output), iou_threshold=0.45)
        >>> print(len(kept))  # one entry per person
    """
    remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)
    keep: List["RawDetection"] = []

    while remaining:
        current = remaining.pop(0)
        keep.append(current)
        if not remaining:
            break

        others = np.array([d.to_xyxy() for d in remaining])
        overlaps = iou_batch(np.array([current.to_xyxy()]), others)[0]
        remaining = [
            det for det, overlap in zip(remaining, overlaps)
            if not overlap > iou_threshold
        ]

    logger.debug("NMS kept %d of %d candidates", len(keep), len(detections))
    return keep
