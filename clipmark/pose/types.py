"""
Pose data types

Model-space candidates (RawDetection) and their source-space public form
(PersonPose), plus the preprocessor output container.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .letterbox import LetterboxTransform


@dataclass
class Keypoint:
    """Single skeletal joint with confidence"""
    x: float
    y: float
    confidence: float

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'confidence': self.confidence}

    @classmethod
    def from_dict(cls, d: Dict) -> "Keypoint":
        return cls(x=float(d['x']), y=float(d['y']), confidence=float(d['confidence']))


@dataclass
class BoundingBox:
    """Axis-aligned box in top-left + size form"""
    x: float
    y: float
    width: float
    height: float
    confidence: float = 1.0

    def contains(self, px: float, py: float) -> bool:
        """Point-in-box test, edges inclusive"""
        return (
            self.x <= px <= self.x + self.width
            and self.y <= py <= self.y + self.height
        )

    def to_xyxy(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_dict(self) -> Dict:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'confidence': self.confidence,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "BoundingBox":
        return cls(
            x=float(d['x']),
            y=float(d['y']),
            width=float(d['width']),
            height=float(d['height']),
            confidence=float(d.get('confidence', 1.0)),
        )


@dataclass
class RawDetection:
    """
    Decoded candidate in model input space (0..input_size)

    The box is center-form, as emitted by the model.
    """
    center_x: float
    center_y: float
    width: float
    height: float
    confidence: float
    keypoints: List[Keypoint] = field(default_factory=list)

    def to_xyxy(self) -> Tuple[float, float, float, float]:
        half_w = self.width / 2.0
        half_h = self.height / 2.0
        return (
            self.center_x - half_w,
            self.center_y - half_h,
            self.center_x + half_w,
            self.center_y + half_h,
        )


@dataclass
class PersonPose:
    """Detected person in source-frame pixel space"""
    bbox: BoundingBox
    keypoints: List[Keypoint] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'bbox': self.bbox.to_dict(),
            'keypoints': [kp.to_dict() for kp in self.keypoints],
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "PersonPose":
        return cls(
            bbox=BoundingBox.from_dict(d['bbox']),
            keypoints=[Keypoint.from_dict(k) for k in d.get('keypoints', [])],
        )


# Ordered as NMS kept them: confidence descending, ties in decode order
PoseResult = List[PersonPose]


@dataclass
class PreprocessResult:
    """Model input tensor plus the geometry needed to undo the letterbox"""
    tensor: np.ndarray
    original_width: int
    original_height: int
    transform: "LetterboxTransform"
