"""
Tests for the pose session handle and estimator

Tests:
- Load-once semantics and concurrent loads
- Feed construction and shape validation
- Concurrent runs queue on the run lock
- Session fault recovery (one rebuild + retry)
- PoseEstimator end to end with an in-process session
"""

import asyncio
import itertools
import threading

import numpy as np
import pytest

from clipmark.core.config import PoseConfig
from clipmark.core.exceptions import (
    InferenceError,
    ModelLoadError,
    ModelNotLoadedError,
    SessionError,
    ValidationError,
)
from clipmark.pose.estimator import PoseEstimator
from clipmark.pose.inference import PoseSession, create_onnx_session, is_session_failure
from clipmark.tests.conftest import FakeSession, FakeSessionFactory, build_output

SIDE = 32
N = 4


def small_config():
    return PoseConfig(model_path="model.onnx", input_size=SIDE, num_candidates=N)


def small_tensor():
    return np.zeros((1, 3, SIDE, SIDE), dtype=np.float32)


def test_load_once():
    """Repeated and concurrent loads of one model build one session"""
    factory = FakeSessionFactory(FakeSession(np.zeros(56 * N)))
    session = PoseSession(small_config(), session_factory=factory)

    async def scenario():
        await asyncio.gather(session.load(), session.load(), session.load())
        await session.load("model.onnx")

    asyncio.run(scenario())
    assert len(factory.calls) == 1
    assert factory.calls[0] == ("model.onnx", ["CPUExecutionProvider"])
    assert session.is_loaded
    assert session.model_path == "model.onnx"
    print("✓ Load once")

    asyncio.run(session.load("other.onnx"))
    assert len(factory.calls) == 2
    assert session.model_path == "other.onnx"

    session.unload()
    assert not session.is_loaded
    assert session.get_model_info()['loaded'] is False
    print("✓ Reload and unload")


def test_run_requires_load():
    session = PoseSession(small_config(), session_factory=FakeSessionFactory(FakeSession()))
    with pytest.raises(ModelNotLoadedError):
        asyncio.run(session.run(small_tensor()))


def test_run_feeds_and_output():
    """Tensor goes in under the input name, flat output comes back"""
    output = np.arange(56 * N, dtype=np.float32).reshape(1, 56, N)
    fake = FakeSession(output)
    session = PoseSession(small_config(), session_factory=FakeSessionFactory(fake))

    async def scenario():
        await session.load()
        return await session.run(small_tensor().reshape(-1))

    result = asyncio.run(scenario())
    assert result.shape == (56 * N,)
    assert result.dtype == np.float32
    assert result[5] == 5

    output_names, feeds = fake.calls[0]
    assert output_names == ["output0"]
    assert list(feeds) == ["images"]
    assert feeds["images"].shape == (1, 3, SIDE, SIDE)
    print("✓ Feeds and output")


def test_concurrent_runs_queue():
    """A second run waits for the first to leave the engine"""
    events = []
    counter = itertools.count()
    first_entered = threading.Event()
    release = threading.Event()

    class RecordingSession(FakeSession):
        def run(self, output_names, feeds):
            call = next(counter)
            events.append(("enter", call))
            if call == 0:
                first_entered.set()
                release.wait(5)
            result = super().run(output_names, feeds)
            events.append(("exit", call))
            return result

    fake = RecordingSession(np.zeros(56 * N, dtype=np.float32))
    session = PoseSession(small_config(), session_factory=FakeSessionFactory(fake))

    async def scenario():
        await session.load()
        runs = asyncio.gather(session.run(small_tensor()), session.run(small_tensor()))
        await asyncio.get_running_loop().run_in_executor(None, first_entered.wait, 5)
        await asyncio.sleep(0.05)
        release.set()
        return await runs

    outputs = asyncio.run(scenario())
    assert len(outputs) == 2
    assert events == [("enter", 0), ("exit", 0), ("enter", 1), ("exit", 1)]
    print("✓ Concurrent runs queue")


def test_run_rejects_wrong_shape():
    session = PoseSession(small_config(), session_factory=FakeSessionFactory(FakeSession()))

    async def scenario():
        await session.load()
        await session.run(np.zeros((1, 3, SIDE, SIDE - 1), dtype=np.float32))

    with pytest.raises(ValidationError):
        asyncio.run(scenario())


def test_session_fault_recovery():
    """A session fault rebuilds the session and retries once"""
    broken = FakeSession(error=RuntimeError("Session crashed"))
    healthy = FakeSession(np.ones(56 * N, dtype=np.float32))
    factory = FakeSessionFactory(broken, healthy)
    session = PoseSession(small_config(), session_factory=factory)

    async def scenario():
        await session.load()
        return await session.run(small_tensor())

    result = asyncio.run(scenario())
    assert np.all(result == 1)
    assert len(factory.calls) == 2
    assert len(broken.calls) == 1
    assert len(healthy.calls) == 1
    print("✓ Session recreated after fault")


def test_session_fault_twice():
    broken = FakeSession(error=RuntimeError("invalid session state"))
    factory = FakeSessionFactory(broken)
    session = PoseSession(small_config(), session_factory=factory)

    async def scenario():
        await session.load()
        await session.run(small_tensor())

    with pytest.raises(SessionError):
        asyncio.run(scenario())
    assert len(factory.calls) == 2
    assert len(broken.calls) == 2


def test_engine_error_not_retried():
    broken = FakeSession(error=ValueError("bad input dtype"))
    factory = FakeSessionFactory(broken)
    session = PoseSession(small_config(), session_factory=factory)

    async def scenario():
        await session.load()
        await session.run(small_tensor())

    with pytest.raises(InferenceError) as exc_info:
        asyncio.run(scenario())
    assert not isinstance(exc_info.value, SessionError)
    assert len(factory.calls) == 1


def test_load_failures():
    """Factory failures and missing files surface as ModelLoadError"""
    def failing_factory(model_path, providers):
        raise OSError("corrupt protobuf")

    session = PoseSession(small_config(), session_factory=failing_factory)
    with pytest.raises(ModelLoadError):
        asyncio.run(session.load())
    assert not session.is_loaded

    with pytest.raises(ModelLoadError):
        create_onnx_session("/nonexistent/model.onnx", ["CPUExecutionProvider"])
    print("✓ Model load failures")


def test_is_session_failure():
    assert is_session_failure(RuntimeError("Session was closed"))
    assert not is_session_failure(ValueError("shape mismatch"))


def test_estimator_single_person():
    """Letterbox -> run -> decode -> NMS -> unmap with a 2:1 frame"""
    # 64x32 frame into a 32 square: scale 0.5, y offset 8
    output = build_output(
        {
            0: (16, 16, 8, 8, 0.95, [(16, 16, 0.9)]),
            1: (17, 16, 8, 8, 0.6),  # duplicate of candidate 0
            2: (4, 12, 2, 2, 0.3),  # below threshold
        },
        num_candidates=N,
    )
    session = PoseSession(small_config(), session_factory=FakeSessionFactory(FakeSession(output)))
    estimator = PoseEstimator(session)
    frame = np.full((32, 64, 3), 200, dtype=np.uint8)

    async def scenario():
        await session.load()
        return await estimator.estimate(frame)

    persons = asyncio.run(scenario())
    assert len(persons) == 1
    bbox = persons[0].bbox
    assert (bbox.x, bbox.y) == pytest.approx((24.0, 8.0))
    assert (bbox.width, bbox.height) == pytest.approx((16.0, 16.0))
    assert bbox.confidence == pytest.approx(0.95)
    assert (persons[0].keypoints[0].x, persons[0].keypoints[0].y) == pytest.approx((32.0, 16.0))
    assert estimator.last_inference_ms is not None
    print("✓ PoseEstimator single person")
