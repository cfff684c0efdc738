"""
Tests for AnnotationWorkspace

Tests:
- Analysis outcomes (OK, NO_DETECTIONS, FAILED, SKIPPED, STALE)
- Continuous analysis and label-triggered analysis
- Clip and annotation persistence through the store
- Export from the workspace
"""

import asyncio
import json
import tempfile
import threading
from pathlib import Path

import cv2
import numpy as np
import pytest

from clipmark.annotation.types import ActionAnnotation, AnnotationBox, Clip
from clipmark.core.config import AnnotatorConfig, PoseConfig
from clipmark.io.frame_source import ArrayFrameSource
from clipmark.io.storage import MemoryStore, StoredState
from clipmark.pose.inference import PoseSession
from clipmark.tests.conftest import FakeSession, FakeSessionFactory, build_output
from clipmark.workspace import AnalysisStatus, AnnotationWorkspace

SIDE = 32
N = 4

# 64x32 frame letterboxed into 32x32: scale 0.5, y offset 8.
# Candidate 0 unmaps to the box (24, 8, 16, 16).
ONE_PERSON = build_output({0: (16, 16, 8, 8, 0.95)}, num_candidates=N)
NOBODY = np.zeros(56 * N, dtype=np.float32)


def make_config():
    config = AnnotatorConfig()
    config.pose = PoseConfig(model_path="model.onnx", input_size=SIDE, num_candidates=N)
    return config


def make_source(name="rally_01"):
    return ArrayFrameSource(np.full((32, 64, 3), 90, dtype=np.uint8), name=name)


def make_workspace(*sessions, store=None):
    config = make_config()
    factory = FakeSessionFactory(*sessions)
    workspace = AnnotationWorkspace(config, PoseSession(config.pose, session_factory=factory))
    workspace.open_video(make_source(), store=store or MemoryStore())
    return workspace, factory


def test_analyze_ok():
    workspace, factory = make_workspace(FakeSession(ONE_PERSON))

    result = asyncio.run(workspace.analyze())
    assert result.status == AnalysisStatus.OK
    assert len(result.persons) == 1
    assert result.persons[0].bbox.x == pytest.approx(24.0)
    assert workspace.detections == result.persons
    assert not workspace.is_analyzing
    assert result.to_dict()['status'] == "ok"
    print("✓ Analysis OK")


def test_analyze_no_detections():
    workspace, _ = make_workspace(FakeSession(NOBODY))
    result = asyncio.run(workspace.analyze())
    assert result.status == AnalysisStatus.NO_DETECTIONS
    assert result.persons == []
    assert workspace.detections == []


def test_analyze_failure_keeps_state():
    def failing_factory(model_path, providers):
        raise OSError("model missing")

    config = make_config()
    store = MemoryStore(StoredState(clips=[Clip(1.0, 2.0)]))
    workspace = AnnotationWorkspace(config, PoseSession(config.pose, session_factory=failing_factory))
    workspace.open_video(make_source(), store=store)

    result = asyncio.run(workspace.analyze())
    assert result.status == AnalysisStatus.FAILED
    assert result.error.startswith("[ModelLoadError]")
    assert workspace.clips == [Clip(1.0, 2.0)]
    assert not workspace.is_analyzing
    assert store.save_count == 0
    print("✓ Failure reported, state untouched")


def test_analyze_without_video():
    workspace = AnnotationWorkspace(make_config())
    result = asyncio.run(workspace.analyze())
    assert result.status == AnalysisStatus.FAILED
    assert result.error.startswith("[ValidationError]")


def test_overlapping_and_stale_analysis():
    """A second request while analyzing is skipped; switching video makes the first stale"""
    started = threading.Event()
    release = threading.Event()

    class BlockingSession(FakeSession):
        def run(self, output_names, feeds):
            started.set()
            release.wait(5)
            return super().run(output_names, feeds)

    workspace, _ = make_workspace(BlockingSession(ONE_PERSON))

    async def scenario():
        await workspace.session.load()
        first = asyncio.create_task(workspace.analyze())
        await asyncio.get_running_loop().run_in_executor(None, started.wait, 5)

        skipped = await workspace.analyze()
        workspace.open_video(make_source("rally_02"), store=MemoryStore())
        release.set()
        return skipped, await first

    skipped, stale = asyncio.run(scenario())
    assert skipped.status == AnalysisStatus.SKIPPED
    assert stale.status == AnalysisStatus.STALE
    assert workspace.video_name == "rally_02"
    assert workspace.detections == []
    print("✓ Skipped and stale analyses")


def test_continuous_mode():
    workspace, _ = make_workspace(FakeSession(ONE_PERSON))

    async def scenario():
        assert await workspace.on_seek(1.0) is None
        enabled = await workspace.set_continuous(True)
        seeked = await workspace.on_seek(2.5)
        workspace.resolver.select_label("set")
        disabled = await workspace.set_continuous(False)
        return enabled, seeked, disabled

    enabled, seeked, disabled = asyncio.run(scenario())
    assert enabled.status == AnalysisStatus.OK
    assert seeked.status == AnalysisStatus.OK
    assert seeked.time == 2.5
    assert disabled is None
    assert workspace.detections == []
    assert workspace.resolver.pending_label is None
    print("✓ Continuous analysis")


def test_select_label_triggers_analysis_and_annotates():
    store = MemoryStore()
    workspace, factory = make_workspace(FakeSession(ONE_PERSON), store=store)
    workspace.seek(3.0)

    async def scenario():
        first = await workspace.select_label("spike")
        second = await workspace.select_label("spike")
        return first, second

    first, second = asyncio.run(scenario())
    assert first.status == AnalysisStatus.OK
    assert second is None  # detections already present

    annotation = workspace.pointer_down(30.0, 15.0)
    assert annotation == ActionAnnotation(3.0, "spike", AnnotationBox(24.0, 8.0, 16.0, 16.0))
    assert store.state.annotations == [annotation]
    assert store.save_count == 1
    print("✓ Label shortcut analysis and click annotation")


def test_clips_persist_and_restore():
    saved = StoredState(
        clips=[Clip(0.0, 1.0)],
        annotations=[ActionAnnotation(0.5, "ball", AnnotationBox(1, 2, 3, 4))],
    )
    store = MemoryStore(saved)
    workspace, _ = make_workspace(FakeSession(NOBODY), store=store)
    assert workspace.clips == [Clip(0.0, 1.0)]
    assert len(workspace.annotations) == 1
    assert store.save_count == 0

    workspace.seek(5.0)
    workspace.mark_in()
    workspace.seek(6.5)
    assert workspace.mark_out() == Clip(5.0, 6.5)
    assert store.state.clips == [Clip(0.0, 1.0), Clip(5.0, 6.5)]

    workspace.delete_clip(0)
    workspace.delete_annotation(0)
    assert store.state.clips == [Clip(5.0, 6.5)]
    assert store.state.annotations == []

    workspace.mark_in()
    assert workspace.discard_clip()
    print("✓ Clip persistence")


def test_import_and_export():
    workspace, _ = make_workspace(FakeSession(NOBODY))

    with tempfile.TemporaryDirectory() as tmpdir:
        clips_path = Path(tmpdir) / "clips.json"
        clips_path.write_text(json.dumps([{'startTime': 2, 'endTime': 3}]))
        assert workspace.import_clips(str(clips_path))
        assert workspace.clips == [Clip(2.0, 3.0)]

        clips_path.write_text(json.dumps({'startTime': 2}))
        assert not workspace.import_clips(str(clips_path))
        assert workspace.clips == [Clip(2.0, 3.0)]

        workspace.resolver.select_label("serve")
        workspace.pointer_down(0, 0)
        workspace.pointer_up(32, 16)

        out_path = workspace.export(str(Path(tmpdir) / "out.json"))
        data = json.loads(out_path.read_text())
        assert data['clips'] == [{'startTime': 2.0, 'endTime': 3.0}]
        assert data['annotationsYOLO'] == "5 0.250000 0.250000 0.500000 0.500000"
    print("✓ Import and export")


def test_render_overlay():
    workspace, _ = make_workspace(FakeSession(ONE_PERSON))
    asyncio.run(workspace.analyze())

    frame = workspace.source.capture()
    overlay = workspace.render_overlay(frame)
    assert overlay.shape == frame.shape
    assert overlay is not frame
    assert (overlay != frame).any()
    assert (frame == 90).all()


def test_continuous_seek_during_analysis_reanalyzes():
    """A seek that lands mid-analysis gets its own analysis once the first finishes"""
    started = threading.Event()
    release = threading.Event()

    class FirstRunBlocks(FakeSession):
        def run(self, output_names, feeds):
            if not started.is_set():
                started.set()
                release.wait(5)
            return super().run(output_names, feeds)

    fake = FirstRunBlocks(ONE_PERSON)
    workspace, _ = make_workspace(fake)
    workspace.continuous = True

    async def scenario():
        await workspace.session.load()
        first = asyncio.create_task(workspace.on_seek(1.0))
        await asyncio.get_running_loop().run_in_executor(None, started.wait, 5)

        second = await workspace.on_seek(2.0)
        release.set()
        return second, await first

    second, first = asyncio.run(scenario())
    assert second.status == AnalysisStatus.SKIPPED
    assert first.status == AnalysisStatus.OK
    assert first.time == 2.0
    assert len(fake.calls) == 2

    asyncio.run(workspace.select_label("block"))
    annotation = workspace.pointer_down(30.0, 15.0)
    assert annotation.time == 2.0
    print("✓ Seek during analysis re-analyzes the new frame")


def test_close_during_model_load_is_stale():
    """Closing the video while the model loads discards the analysis"""
    for load_error in (None, OSError("model missing")):
        load_started = threading.Event()
        release = threading.Event()

        def slow_factory(model_path, providers, load_error=load_error,
                         load_started=load_started, release=release):
            load_started.set()
            release.wait(5)
            if load_error is not None:
                raise load_error
            return FakeSession(ONE_PERSON)

        config = make_config()
        workspace = AnnotationWorkspace(
            config, PoseSession(config.pose, session_factory=slow_factory)
        )
        workspace.open_video(make_source(), store=MemoryStore())

        async def scenario():
            task = asyncio.create_task(workspace.analyze())
            await asyncio.get_running_loop().run_in_executor(None, load_started.wait, 5)
            workspace.close_video()
            release.set()
            return await task

        result = asyncio.run(scenario())
        assert result.status == AnalysisStatus.STALE
        assert result.error is None
        assert not workspace.is_analyzing
        assert workspace.detections == []
    print("✓ Close during model load is stale")


def test_inspect_person():
    workspace, _ = make_workspace(FakeSession(ONE_PERSON))
    asyncio.run(workspace.analyze())

    summary = workspace.inspect_person(30.0, 15.0)
    assert summary['person'] == 1
    assert summary['bbox'] == pytest.approx((24.0, 8.0, 16.0, 16.0))
    assert summary['confidence'] == pytest.approx(0.95)
    assert workspace.inspect_person(2.0, 2.0) is None

    workspace.resolver.select_label("ball")
    assert workspace.inspect_person(30.0, 15.0) is None
    assert workspace.annotations == []
    print("✓ Click summary")


def test_default_store_keyed_by_file_name(tmp_path):
    image_path = tmp_path / "rally_07.png"
    cv2.imwrite(str(image_path), np.zeros((32, 64, 3), dtype=np.uint8))

    config = make_config()
    config.paths.data_root = str(tmp_path / "state")
    workspace = AnnotationWorkspace(
        config, PoseSession(config.pose, session_factory=FakeSessionFactory(FakeSession(NOBODY)))
    )
    workspace.open_video(ArrayFrameSource.from_image(str(image_path)))

    assert workspace.video_name == "rally_07"
    workspace.mark_in()
    workspace.seek(1.0)
    workspace.mark_out()
    assert (tmp_path / "state" / "video_rally_07.json").exists()
