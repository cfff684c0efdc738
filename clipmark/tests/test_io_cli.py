"""
Tests for frame sources and the command line entry point
"""

import json
from pathlib import Path

import cv2
import numpy as np
import pytest

from clipmark.annotation.types import ActionAnnotation, AnnotationBox, Clip
from clipmark.cli import build_parser, main
from clipmark.core.exceptions import FrameCaptureError, ValidationError
from clipmark.io.frame_source import ArrayFrameSource, VideoFrameSource
from clipmark.io.storage import JsonFileStore


def test_array_frame_source():
    frame = np.zeros((48, 80, 3), dtype=np.uint8)
    source = ArrayFrameSource(frame, name="still")
    assert (source.width, source.height) == (80, 48)
    assert source.capture() is frame

    with pytest.raises(ValidationError):
        ArrayFrameSource(np.zeros((0, 10, 3), dtype=np.uint8))


def test_array_frame_source_from_image(tmp_path):
    bgr = np.zeros((20, 30, 3), dtype=np.uint8)
    bgr[..., 0] = 255  # blue in BGR
    image_path = tmp_path / "frame_0001.png"
    cv2.imwrite(str(image_path), bgr)

    source = ArrayFrameSource.from_image(str(image_path))
    assert source.name == "frame_0001"
    assert tuple(source.capture()[0, 0]) == (0, 0, 255)

    with pytest.raises(FrameCaptureError):
        ArrayFrameSource.from_image(str(tmp_path / "missing.png"))

    broken = tmp_path / "broken.png"
    broken.write_text("not an image")
    with pytest.raises(FrameCaptureError):
        ArrayFrameSource.from_image(str(broken))


def test_video_frame_source_missing(tmp_path):
    with pytest.raises(FrameCaptureError):
        VideoFrameSource(str(tmp_path / "missing.mp4"))


def test_cli_parser():
    parser = build_parser()
    args = parser.parse_args(
        ["analyze", "rally.mp4", "--model", "m.onnx", "--time", "1.5", "--time", "3"]
    )
    assert args.command == "analyze"
    assert args.time == [1.5, 3.0]
    assert args.overlay_dir is None

    args = parser.parse_args(["export", "rally", "--output", "out.json", "--width", "1920"])
    assert args.video_name == "rally"
    assert (args.width, args.height) == (1920, 1)


def test_cli_export(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("CLIPMARK_DATA_ROOT", str(tmp_path / "state"))
    store = JsonFileStore(str(tmp_path / "state"), "rally")
    store.save(
        [Clip(1.0, 2.0)],
        [ActionAnnotation(1.5, "block", AnnotationBox(480, 270, 960, 540))],
    )

    out_path = tmp_path / "export" / "rally.json"
    code = main(["export", "rally", "--output", str(out_path), "--width", "1920", "--height", "1080"])
    assert code == 0
    assert str(out_path) in capsys.readouterr().out

    data = json.loads(out_path.read_text())
    assert data['annotationsYOLO'] == "1 0.500000 0.500000 0.500000 0.500000"


def test_cli_export_missing_state(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIPMARK_DATA_ROOT", str(tmp_path))
    assert main(["export", "unknown", "--output", str(tmp_path / "x.json")]) == 1
    assert not (tmp_path / "x.json").exists()


def test_cli_analyze_bad_model(tmp_path, capsys):
    image_path = tmp_path / "frame.png"
    cv2.imwrite(str(image_path), np.zeros((40, 60, 3), dtype=np.uint8))

    code = main(["analyze", str(image_path), "--model", str(tmp_path / "missing.onnx")])
    assert code == 1
    results = json.loads(capsys.readouterr().out)
    assert len(results) == 1
    assert results[0]['status'] == "failed"
    assert "ModelLoadError" in results[0]['error']


def test_cli_export_by_video_path(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIPMARK_DATA_ROOT", str(tmp_path / "state"))
    JsonFileStore(str(tmp_path / "state"), "rally").save([Clip(0.0, 4.0)], [])

    out_path = tmp_path / "rally.json"
    assert main(["export", "/videos/match/rally.mp4", "--output", str(out_path)]) == 0
    assert json.loads(out_path.read_text())['clips'] == [{'startTime': 0.0, 'endTime': 4.0}]
