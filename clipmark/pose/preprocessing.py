"""
Frame preprocessing for the pose model

Provides:
- Letterbox rasterization onto a neutral square canvas
- Channel-planar float tensor conversion (RGB / 255)
- One-call preprocess_frame() used by the estimator
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from ..core.constants import LETTERBOX_FILL_COLOR, MODEL_INPUT_SIZE
from ..core.exceptions import ValidationError
from .letterbox import LetterboxTransform
from .types import PreprocessResult

logger = logging.getLogger(__name__)


def to_rgb(frame: np.ndarray) -> np.ndarray:
    """
    Normalize a captured pixel buffer to contiguous H x W x 3 uint8 RGB

    Accepts grayscale, RGB, or RGBA input; alpha is dropped.

    Raises:
        ValidationError: If the buffer is not an 8-bit image
    """
    if not isinstance(frame, np.ndarray) or frame.dtype != np.uint8:
        raise ValidationError("Frame must be a uint8 numpy array")

    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValidationError(f"Unsupported frame shape: {frame.shape}")

    return np.ascontiguousarray(frame[..., :3])


def letterbox_image(
    image: np.ndarray,
    transform: LetterboxTransform,
    fill_color: Tuple[int, int, int] = LETTERBOX_FILL_COLOR
) -> np.ndarray:
    """
    Draw the image scaled and centered on a fill-colored square canvas

    The warp uses exactly the transform's forward matrix, so model-space
    coordinates decoded later invert cleanly through the same transform.

    Args:
        image: RGB image (H, W, 3)
        transform: Letterbox geometry for this image size
        fill_color: Padding color (RGB)

    Returns:
        Canvas (side, side, 3) uint8
    """
    side = transform.side
    return cv2.warpAffine(
        image,
        transform.affine_matrix(),
        (side, side),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=tuple(int(c) for c in fill_color),
    )


def image_to_tensor(canvas: np.ndarray) -> np.ndarray:
    """
    Convert an RGB canvas to a [1, 3, H, W] float32 tensor in [0, 1]

    Plane 0/1/2 hold R/G/B, row-major within each plane.
    """
    planar = canvas.transpose(2, 0, 1)  # HWC to CHW
    planar = np.ascontiguousarray(planar).astype(np.float32) / 255.0
    return np.expand_dims(planar, axis=0)


def preprocess_frame(
    frame: np.ndarray,
    input_size: int = MODEL_INPUT_SIZE,
    fill_color: Tuple[int, int, int] = LETTERBOX_FILL_COLOR
) -> PreprocessResult:
    """
    Turn a captured frame into the model input tensor

    Args:
        frame: Pixel buffer from a FrameSource (RGB or RGBA, uint8)
        input_size: Square model input side
        fill_color: Letterbox padding color (RGB)

    Returns:
        PreprocessResult with a tensor of exactly 3 * input_size**2 values

    Example:
        >>> frame = np.zeros((1080, 1920, 3), dtype=np.uint8)
        >>> result = preprocess_frame(frame)
        >>> print(result.tensor.shape)  # (1, 3, 640, 640)
    """
    image = to_rgb(frame)
    height, width = image.shape[:2]

    transform = LetterboxTransform.from_source(width, height, input_size)
    canvas = letterbox_image(image, transform, fill_color)
    tensor = image_to_tensor(canvas)

    logger.debug(
        "Preprocessed %dx%d frame: scale=%.4f offset=(%.1f, %.1f)",
        width, height, transform.scale, transform.x_offset, transform.y_offset
    )

    return PreprocessResult(
        tensor=tensor,
        original_width=width,
        original_height=height,
        transform=transform,
    )
