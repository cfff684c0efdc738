"""
Annotation data types

Dict forms use the keys of the exported JSON document (startTime, endTime,
time, label, bbox) so saved state and exports load back unchanged.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.exceptions import ValidationError


@dataclass
class Clip:
    """Marked in/out range on the video timeline; end_time None while open"""
    start_time: float
    end_time: Optional[float] = None

    def __post_init__(self):
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValidationError(
                f"Clip end {self.end_time} is before its start {self.start_time}"
            )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self) -> Dict:
        return {'startTime': self.start_time, 'endTime': self.end_time}

    @classmethod
    def from_dict(cls, d: Dict) -> "Clip":
        start = d['startTime'] if 'startTime' in d else d['start_time']
        end = d.get('endTime', d.get('end_time'))
        return cls(
            start_time=float(start),
            end_time=None if end is None else float(end),
        )


@dataclass
class AnnotationBox:
    """Annotation box in source-frame pixels, top-left + size"""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValidationError(
                f"Box size must be non-negative, got {self.width}x{self.height}"
            )

    def to_xyxy(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, d: Dict) -> "AnnotationBox":
        return cls(
            x=float(d['x']),
            y=float(d['y']),
            width=float(d['width']),
            height=float(d['height']),
        )


@dataclass
class ActionAnnotation:
    """One labeled instant tied to a box"""
    time: float
    label: str
    bbox: AnnotationBox

    def to_dict(self) -> Dict:
        return {'time': self.time, 'label': self.label, 'bbox': self.bbox.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict) -> "ActionAnnotation":
        return cls(
            time=float(d['time']),
            label=str(d['label']),
            bbox=AnnotationBox.from_dict(d['bbox']),
        )
