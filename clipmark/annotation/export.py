"""
Annotation export

Provides:
- YOLO-style normalized label lines for action annotations
- The JSON export document (clips, YOLO lines, raw annotations)
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..core.constants import ACTION_LABELS
from ..detection.bbox_utils import bbox_to_yolo
from .types import ActionAnnotation, Clip

logger = logging.getLogger(__name__)


def annotation_to_yolo_line(
    annotation: ActionAnnotation,
    frame_width: int,
    frame_height: int,
    labels: Optional[Sequence[str]] = None
) -> Optional[str]:
    """
    Format one annotation as "<labelIndex> <xc> <yc> <w> <h>"

    Values are normalized by the frame size with 6 decimals.

    Returns:
        The line, or None if the label is not in the label set

    Example:
        >>> ann = ActionAnnotation(1.0, "receive", AnnotationBox(100, 100, 50, 50))
        >>> annotation_to_yolo_line(ann, 1000, 1000)
        '2 0.125000 0.125000 0.050000 0.050000'
    """
    labels = list(labels) if labels is not None else ACTION_LABELS
    if annotation.label not in labels:
        return None

    class_id = labels.index(annotation.label)
    x_center, y_center, width, height = bbox_to_yolo(
        annotation.bbox.to_xyxy(), frame_width, frame_height
    )
    return f"{class_id} {x_center:.6f} {y_center:.6f} {width:.6f} {height:.6f}"


def annotations_to_yolo(
    annotations: Sequence[ActionAnnotation],
    frame_width: int,
    frame_height: int,
    labels: Optional[Sequence[str]] = None
) -> str:
    """
    Convert annotations to newline-separated YOLO label lines

    Annotations with labels outside the label set are skipped.
    Unknown (zero) frame dimensions fall back to 1.
    """
    frame_width = frame_width or 1
    frame_height = frame_height or 1

    lines = []
    for annotation in annotations:
        line = annotation_to_yolo_line(annotation, frame_width, frame_height, labels)
        if line is None:
            logger.debug("Skipping export of unknown label '%s'", annotation.label)
            continue
        lines.append(line)

    return "\n".join(lines)


def build_export(
    clips: Sequence[Clip],
    annotations: Sequence[ActionAnnotation],
    frame_width: int,
    frame_height: int,
    labels: Optional[Sequence[str]] = None
) -> Dict:
    """
    Build the export document

    Returns:
        {'clips': [...], 'annotationsYOLO': str, 'annotations': [...]}
    """
    return {
        'clips': [clip.to_dict() for clip in clips],
        'annotationsYOLO': annotations_to_yolo(annotations, frame_width, frame_height, labels),
        'annotations': [annotation.to_dict() for annotation in annotations],
    }


def write_export(
    output_path: str,
    clips: Sequence[Clip],
    annotations: Sequence[ActionAnnotation],
    frame_width: int,
    frame_height: int,
    labels: Optional[Sequence[str]] = None
) -> Path:
    """
    Write the export document as indented JSON

    Repeated exports to the same path overwrite the previous file.

    Args:
        output_path: Target JSON file

    Returns:
        Path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    document = build_export(clips, annotations, frame_width, frame_height, labels)
    with open(output_path, 'w') as f:
        json.dump(document, f, indent=2)

    logger.info(
        "Exported %d clips and %d annotations to %s",
        len(clips), len(annotations), output_path
    )
    return output_path


def export_filename(video_name: str) -> str:
    """Default export file name for a video"""
    return f"{video_name}.json"
