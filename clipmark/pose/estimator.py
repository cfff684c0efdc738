"""
Pose estimation pipeline for single video frames

Provides:
- PoseEstimator: frame -> letterbox tensor -> model -> decode -> NMS -> unmap
- Per-stage helpers reusable without a model (postprocess)

Each frame is analyzed independently; no identity is carried across frames.
"""

import logging
import time
from typing import List, Optional

import numpy as np

from ..core.config import PoseConfig
from ..detection.nms import non_max_suppression
from .decoder import decode_output
from .inference import PoseSession
from .keypoint_utils import unmap_detections
from .preprocessing import preprocess_frame
from .types import PersonPose, PreprocessResult

logger = logging.getLogger(__name__)


class PoseEstimator:
    """
    Single-frame pose estimator on top of a PoseSession

    Example:
        >>> from clipmark.pose import PoseEstimator, PoseSession
        >>> estimator = PoseEstimator(PoseSession(config))
        >>> await estimator.session.load()
        >>> persons = await estimator.estimate(frame)
        >>> print(len(persons))
    """

    def __init__(self, session: PoseSession, config: Optional[PoseConfig] = None):
        self.session = session
        self.config = config or session.config
        self.last_inference_ms: Optional[float] = None

    def preprocess(self, frame: np.ndarray) -> PreprocessResult:
        """Letterbox and tensorize one frame"""
        return preprocess_frame(frame, self.config.input_size)

    def postprocess(
        self,
        output: np.ndarray,
        preprocessed: PreprocessResult
    ) -> List[PersonPose]:
        """
        Decode, suppress, and unmap a raw output for a preprocessed frame

        Args:
            output: Flat model output
            preprocessed: Result of preprocess() for the same frame

        Returns:
            Source-space poses in NMS survivorship order
        """
        candidates = decode_output(
            output,
            num_candidates=self.config.num_candidates,
            conf_threshold=self.config.conf_threshold,
        )
        kept = non_max_suppression(candidates, self.config.iou_threshold)
        return unmap_detections(kept, preprocessed.transform)

    async def estimate(self, frame: np.ndarray) -> List[PersonPose]:
        """
        Estimate poses for every person in a frame

        Args:
            frame: RGB/RGBA uint8 pixel buffer

        Returns:
            List of PersonPose (empty when nobody passes the threshold)

        Raises:
            ModelNotLoadedError: If the session has no model
            InferenceError: If the engine fails (SessionError after a failed retry)
            OutputShapeError: If the output does not match the decode layout
        """
        preprocessed = self.preprocess(frame)

        start = time.perf_counter()
        output = await self.session.run(preprocessed.tensor)
        self.last_inference_ms = (time.perf_counter() - start) * 1000.0

        persons = self.postprocess(output, preprocessed)
        logger.debug(
            "Detected %d persons in %dx%d frame (%.1f ms inference)",
            len(persons),
            preprocessed.original_width,
            preprocessed.original_height,
            self.last_inference_ms,
        )
        return persons
