"""
Frame sources for analysis

Provides:
- FrameSource protocol (capture + frame size + name)
- ArrayFrameSource for in-memory frames and still images
- VideoFrameSource reading frames from a video file with OpenCV
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

import cv2
import numpy as np

from ..core.exceptions import FrameCaptureError, ValidationError
from .storage import video_key

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Anything that can hand the current frame to the pose pipeline"""

    name: str

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def capture(self) -> np.ndarray:
        """Current frame as an H×W×3 RGB uint8 array"""
        ...


class ArrayFrameSource:
    """
    Frame source backed by a single in-memory RGB frame

    Example:
        >>> source = ArrayFrameSource(np.zeros((1080, 1920, 3), np.uint8), name="test")
        >>> frame = source.capture()
    """

    def __init__(self, frame: np.ndarray, name: str = "frame"):
        if frame.ndim != 3 or frame.shape[0] == 0 or frame.shape[1] == 0:
            raise ValidationError(f"Expected a non-empty H×W×C frame, got shape {frame.shape}")
        self.frame = frame
        self.name = name

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

    def capture(self) -> np.ndarray:
        return self.frame

    @classmethod
    def from_image(cls, image_path: str) -> "ArrayFrameSource":
        """
        Load a still image from disk

        Raises:
            FrameCaptureError: If the image is missing or unreadable
        """
        path = Path(image_path)
        if not path.exists():
            raise FrameCaptureError(f"Image file not found: {image_path}")

        image = cv2.imread(str(path))
        if image is None:
            raise FrameCaptureError(
                f"Failed to read image (corrupted or unsupported format): {image_path}"
            )

        return cls(cv2.cvtColor(image, cv2.COLOR_BGR2RGB), name=video_key(image_path))


class VideoFrameSource:
    """
    Frame source reading a video file through cv2.VideoCapture

    The capture position is moved with seek(); capture() returns the frame at
    the current position without advancing it.

    Example:
        >>> with VideoFrameSource("rally_01.mp4") as source:
        ...     source.seek(12.5)
        ...     frame = source.capture()
    """

    def __init__(self, video_path: str):
        self.path = Path(video_path)
        if not self.path.exists():
            raise FrameCaptureError(f"Video file not found: {video_path}")

        self.capture_device: Optional[cv2.VideoCapture] = cv2.VideoCapture(str(self.path))
        if not self.capture_device.isOpened():
            self.capture_device = None
            raise FrameCaptureError(f"Failed to open video: {video_path}")

        self.name = video_key(video_path)
        self.fps = float(self.capture_device.get(cv2.CAP_PROP_FPS)) or 0.0
        self.frame_count = int(self.capture_device.get(cv2.CAP_PROP_FRAME_COUNT))
        self._width = int(self.capture_device.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self.capture_device.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.position = 0.0

        logger.info(
            "Opened %s (%dx%d, %.2f fps, %d frames)",
            self.path.name, self._width, self._height, self.fps, self.frame_count
        )

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def duration(self) -> float:
        if self.fps <= 0:
            return 0.0
        return self.frame_count / self.fps

    def seek(self, time_s: float) -> None:
        """Move the capture position to time_s seconds"""
        if time_s < 0:
            raise ValidationError(f"Seek time must be non-negative, got {time_s}")
        self.position = float(time_s)

    def capture(self) -> np.ndarray:
        """
        Read the frame at the current position

        Raises:
            FrameCaptureError: If the video is closed or the read fails
        """
        if self.capture_device is None:
            raise FrameCaptureError(f"Video is closed: {self.path}")

        self.capture_device.set(cv2.CAP_PROP_POS_MSEC, self.position * 1000.0)
        ok, frame = self.capture_device.read()
        if not ok or frame is None:
            raise FrameCaptureError(
                f"Failed to read frame at {self.position:.3f}s from {self.path.name}"
            )

        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self) -> None:
        if self.capture_device is not None:
            self.capture_device.release()
            self.capture_device = None

    def __enter__(self) -> "VideoFrameSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
