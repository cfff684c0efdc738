"""
Raw pose model output decoding

The model emits one flat, channel-major buffer: for N candidates, channel c of
candidate i lives at out[c * N + i]. Channels 0-4 are the center-form box and
confidence, followed by (x, y, conf) for each of the 17 COCO keypoints.
"""

import logging
from typing import List, Sequence, Union

import numpy as np

from ..core.constants import (
    BOX_CHANNELS,
    DEFAULT_CONF_THRESHOLD,
    KEYPOINT_CHANNELS,
    NUM_CANDIDATES,
    NUM_KEYPOINTS,
    OUTPUT_CHANNELS,
)
from ..core.exceptions import OutputShapeError
from .types import Keypoint, RawDetection

logger = logging.getLogger(__name__)


def _flatten(output: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    return np.asarray(output, dtype=np.float32).reshape(-1)


def decode_candidate(flat: np.ndarray, index: int, num_candidates: int) -> RawDetection:
    """
    Rebuild one candidate from the flat buffer

    Args:
        flat: Flat output buffer (at least OUTPUT_CHANNELS * num_candidates long)
        index: Candidate index in [0, num_candidates)
        num_candidates: Candidate stride N

    Returns:
        RawDetection in model input space
    """
    n = num_candidates
    i = index

    keypoints = []
    for k in range(NUM_KEYPOINTS):
        base = (BOX_CHANNELS + KEYPOINT_CHANNELS * k) * n + i
        keypoints.append(Keypoint(
            x=float(flat[base]),
            y=float(flat[base + n]),
            confidence=float(flat[base + 2 * n]),
        ))

    return RawDetection(
        center_x=float(flat[i]),
        center_y=float(flat[n + i]),
        width=float(flat[2 * n + i]),
        height=float(flat[3 * n + i]),
        confidence=float(flat[4 * n + i]),
        keypoints=keypoints,
    )


def decode_output(
    output: Union[np.ndarray, Sequence[float]],
    num_candidates: int = NUM_CANDIDATES,
    conf_threshold: float = DEFAULT_CONF_THRESHOLD
) -> List[RawDetection]:
    """
    Decode the model output into candidates at or above the confidence cutoff

    Candidates keep their buffer order so later tie-breaks are deterministic.

    Args:
        output: Flat (or [1, 56, N]) output tensor
        num_candidates: Candidate count N of the model family
        conf_threshold: Hard cutoff; conf < threshold is discarded

    Returns:
        List of RawDetection in increasing candidate index

    Raises:
        OutputShapeError: If the buffer is shorter than the fixed layout
    """
    flat = _flatten(output)
    required = OUTPUT_CHANNELS * num_candidates
    if flat.size < required:
        raise OutputShapeError(
            f"Output has {flat.size} values, layout needs {required} "
            f"({OUTPUT_CHANNELS} channels x {num_candidates} candidates)"
        )

    n = num_candidates
    confidences = flat[4 * n:5 * n]
    survivors = np.flatnonzero(confidences >= conf_threshold)

    detections = [decode_candidate(flat, int(i), n) for i in survivors]

    logger.debug(
        "Decoded %d/%d candidates at conf >= %.2f",
        len(detections), n, conf_threshold
    )
    return detections
