"""
Letterbox geometry between a source frame and the square model input

The source is scaled uniformly to fit inside a side x side square and centered;
the remaining border is padded with a neutral fill color. The forward map takes
source pixels to model input pixels, the inverse map takes model outputs back.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Scale/offset mapping for one (source size, model side) pair

    Example:
        >>> t = LetterboxTransform.from_source(1920, 1080, 640)
        >>> print(t.scale, t.x_offset, t.y_offset)  # 0.333.. 0.0 140.0
        >>> t.inverse(*t.forward(960, 540))  # (960.0, 540.0) up to rounding
    """
    source_width: int
    source_height: int
    side: int
    scale: float
    x_offset: float
    y_offset: float

    @classmethod
    def from_source(
        cls,
        source_width: int,
        source_height: int,
        side: int
    ) -> "LetterboxTransform":
        """
        Build the transform for a source frame size

        Raises:
            ValidationError: If any dimension is not strictly positive
        """
        if source_width <= 0 or source_height <= 0:
            raise ValidationError(
                f"Source size must be positive, got {source_width}x{source_height}"
            )
        if side <= 0:
            raise ValidationError(f"Model input side must be positive, got {side}")

        scale = min(side / source_width, side / source_height)
        scaled_width = source_width * scale
        scaled_height = source_height * scale

        return cls(
            source_width=source_width,
            source_height=source_height,
            side=side,
            scale=scale,
            x_offset=(side - scaled_width) / 2,
            y_offset=(side - scaled_height) / 2,
        )

    @property
    def scaled_size(self) -> Tuple[float, float]:
        return (self.source_width * self.scale, self.source_height * self.scale)

    def forward(self, x: float, y: float) -> Tuple[float, float]:
        """Source pixel -> model input pixel"""
        return (x * self.scale + self.x_offset, y * self.scale + self.y_offset)

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        """Model input pixel -> source pixel"""
        return ((x - self.x_offset) / self.scale, (y - self.y_offset) / self.scale)

    def inverse_length(self, length: float) -> float:
        """Model-space length -> source-space length"""
        return length / self.scale

    def affine_matrix(self) -> np.ndarray:
        """2x3 forward matrix, suitable for cv2.warpAffine"""
        return np.array(
            [
                [self.scale, 0.0, self.x_offset],
                [0.0, self.scale, self.y_offset],
            ],
            dtype=np.float64,
        )
