"""
Shared fixtures: synthetic model outputs and in-process inference sessions
"""

import numpy as np
import pytest

from clipmark.core.constants import BOX_CHANNELS, KEYPOINT_CHANNELS, OUTPUT_CHANNELS


def build_output(candidates, num_candidates):
    """
    Flat channel-major output buffer

    Args:
        candidates: Dict of candidate index -> (cx, cy, w, h, conf[, keypoints])
            where keypoints is a list of (x, y, conf)
        num_candidates: Candidate stride N
    """
    n = num_candidates
    out = np.zeros(OUTPUT_CHANNELS * n, dtype=np.float32)
    for i, values in candidates.items():
        cx, cy, w, h, conf = values[:5]
        out[i] = cx
        out[n + i] = cy
        out[2 * n + i] = w
        out[3 * n + i] = h
        out[4 * n + i] = conf
        keypoints = values[5] if len(values) > 5 else []
        for k, (x, y, c) in enumerate(keypoints):
            base = (BOX_CHANNELS + KEYPOINT_CHANNELS * k) * n + i
            out[base] = x
            out[base + n] = y
            out[base + 2 * n] = c
    return out


class FakeSession:
    """Stands in for onnxruntime.InferenceSession.run"""

    def __init__(self, output=None, error=None):
        self.output = output
        self.error = error
        self.calls = []

    def run(self, output_names, feeds):
        self.calls.append((list(output_names), feeds))
        if self.error is not None:
            raise self.error
        return [self.output]


class FakeSessionFactory:
    """Hands out prepared sessions in order, repeating the last one"""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.calls = []

    def __call__(self, model_path, providers):
        self.calls.append((model_path, providers))
        index = min(len(self.calls), len(self.sessions)) - 1
        return self.sessions[index]


@pytest.fixture
def make_output():
    return build_output


@pytest.fixture
def rgb_frame():
    frame = np.zeros((1080, 1920, 3), dtype=np.uint8)
    frame[..., 0] = 10
    frame[..., 1] = 20
    frame[..., 2] = 30
    return frame
