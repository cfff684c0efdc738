"""
Drawing utilities for pose overlays and annotation feedback

Provides:
- Per-person palette colors
- Bounding boxes labeled "Person i: xx.x%"
- Skeleton edges and keypoints above a confidence threshold
- Live selection rectangle and pending-label banner

Images are RGB (H, W, 3) uint8 and are drawn on in place.
"""

import cv2
import numpy as np
from typing import Optional, Sequence, Tuple

from ..core.constants import (
    COCO_SKELETON_CONNECTIONS,
    KEYPOINT_DRAW_THRESHOLD,
    PERSON_COLORS,
    SELECTION_COLOR,
)
from ..pose.keypoint_utils import filter_keypoints
from ..pose.types import PersonPose


def person_color(person_idx: int) -> Tuple[int, int, int]:
    """
    Palette color for a person index, cycling through PERSON_COLORS

    Example:
        >>> person_color(0)  # (0, 255, 0)
        >>> person_color(6)  # wraps back to (0, 255, 0)
    """
    return PERSON_COLORS[person_idx % len(PERSON_COLORS)]


def person_label(person: PersonPose, person_idx: int) -> str:
    """Box caption, numbering persons from 1"""
    return f"Person {person_idx + 1}: {person.bbox.confidence * 100:.1f}%"


def draw_bbox(
    image: np.ndarray,
    person: PersonPose,
    person_idx: int,
    thickness: int = 2,
    text_scale: float = 0.6
) -> np.ndarray:
    """
    Draw a person's bounding box with its "Person i: xx.x%" label

    Args:
        image: RGB image (H, W, 3)
        person: Pose in image coordinates
        person_idx: Index of the person in the result list (labeled 1-based)
        thickness: Box line thickness
        text_scale: Text font scale

    Returns:
        Modified image with bbox drawn
    """
    x1, y1, x2, y2 = (int(round(v)) for v in person.bbox.to_xyxy())
    color = person_color(person_idx)

    cv2.rectangle(image, (x1, y1), (x2, y2), color, thickness)

    label = person_label(person, person_idx)
    font = cv2.FONT_HERSHEY_SIMPLEX
    (text_w, text_h), baseline = cv2.getTextSize(label, font, text_scale, 1)

    # Label sits above the box, or inside it at the top edge of the frame
    text_top = y1 - text_h - baseline - 4
    if text_top < 0:
        text_top = y1
    cv2.rectangle(
        image,
        (x1, text_top),
        (x1 + text_w + 4, text_top + text_h + baseline + 4),
        color,
        -1
    )
    cv2.putText(
        image,
        label,
        (x1 + 2, text_top + text_h + 2),
        font,
        text_scale,
        (0, 0, 0),
        1,
        cv2.LINE_AA
    )

    return image


def draw_skeleton(
    image: np.ndarray,
    person: PersonPose,
    person_idx: int,
    conf_threshold: float = KEYPOINT_DRAW_THRESHOLD,
    line_thickness: int = 2,
    point_radius: int = 4
) -> np.ndarray:
    """
    Draw skeleton edges and keypoints with confidence above conf_threshold

    An edge is drawn only when both of its endpoints pass the threshold.

    Args:
        image: RGB image (H, W, 3)
        person: Pose in image coordinates
        person_idx: Index used for palette color
        conf_threshold: Minimum keypoint confidence (exclusive)
        line_thickness: Skeleton line thickness
        point_radius: Keypoint circle radius

    Returns:
        Modified image with skeleton drawn
    """
    color = person_color(person_idx)
    visible = filter_keypoints(person.keypoints, conf_threshold)

    for idx1, idx2 in COCO_SKELETON_CONNECTIONS:
        if idx1 in visible and idx2 in visible:
            pt1 = (int(round(visible[idx1].x)), int(round(visible[idx1].y)))
            pt2 = (int(round(visible[idx2].x)), int(round(visible[idx2].y)))
            cv2.line(image, pt1, pt2, color, line_thickness, cv2.LINE_AA)

    for kp in visible.values():
        center = (int(round(kp.x)), int(round(kp.y)))
        cv2.circle(image, center, point_radius, color, -1)

    return image


def draw_pose_overlay(
    image: np.ndarray,
    poses: Sequence[PersonPose],
    show_bboxes: bool = True,
    show_skeletons: bool = True,
    conf_threshold: float = KEYPOINT_DRAW_THRESHOLD
) -> np.ndarray:
    """
    Draw every detected person onto the image

    Example:
        >>> frame = source.capture()
        >>> draw_pose_overlay(frame, persons)
        >>> cv2.imwrite("overlay.png", cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
    """
    for idx, person in enumerate(poses):
        if show_bboxes:
            draw_bbox(image, person, idx)
        if show_skeletons:
            draw_skeleton(image, person, idx, conf_threshold)

    return image


def draw_selection_rect(
    image: np.ndarray,
    rect: Optional[Tuple[float, float, float, float]],
    color: Tuple[int, int, int] = SELECTION_COLOR,
    thickness: int = 2
) -> np.ndarray:
    """
    Draw the live drag rectangle (x, y, width, height); no-op for None
    """
    if rect is None:
        return image

    x, y, w, h = rect
    cv2.rectangle(
        image,
        (int(round(x)), int(round(y))),
        (int(round(x + w)), int(round(y + h))),
        color,
        thickness
    )
    return image


def add_text_label(
    image: np.ndarray,
    text: str,
    position: Tuple[int, int] = (10, 30),
    font_scale: float = 0.6,
    thickness: int = 1,
    color: Tuple[int, int, int] = (255, 255, 255),
    bg_color: Optional[Tuple[int, int, int]] = (0, 0, 0)
) -> np.ndarray:
    """
    Add text label to image, e.g. the pending action label

    Args:
        image: Input image
        text: Text to display
        position: (x, y) baseline position
        font_scale: Font size
        thickness: Text thickness
        color: Text color
        bg_color: Background color (None for no background)

    Returns:
        Modified image
    """
    font = cv2.FONT_HERSHEY_SIMPLEX
    (text_w, text_h), baseline = cv2.getTextSize(text, font, font_scale, thickness)

    x, y = position

    if bg_color is not None:
        cv2.rectangle(
            image,
            (x - 2, y - text_h - baseline - 2),
            (x + text_w + 2, y + baseline + 2),
            bg_color,
            -1
        )

    cv2.putText(image, text, (x, y), font, font_scale, color, thickness, cv2.LINE_AA)

    return image
