"""
Annotation workspace: one open video with its clips, annotations and poses

Provides:
- AnnotationWorkspace tying frame capture, pose estimation, the clip
  timeline, the annotation resolver and persistence together
- AnalysisStatus / AnalysisResult describing the outcome of one analysis

Analysis runs on the asyncio event loop. Only one analysis is in flight at a
time (overlapping requests are skipped), and results that arrive after the
video was switched or closed are dropped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

import numpy as np

from .annotation.clips import ClipTimeline
from .annotation.export import export_filename, write_export
from .annotation.resolver import AnnotationResolver, hit_test
from .annotation.types import ActionAnnotation, Clip
from .core.config import AnnotatorConfig
from .core.exceptions import (
    ClipmarkException,
    InferenceError,
    ValidationError,
    handle_clipmark_exception,
)
from .io.frame_source import FrameSource
from .io.storage import AnnotationStore, JsonFileStore, load_clips_file
from .pose.estimator import PoseEstimator
from .pose.inference import PoseSession
from .pose.keypoint_utils import summarize_person
from .pose.types import PersonPose
from .visualization.drawer import add_text_label, draw_pose_overlay, draw_selection_rect

logger = logging.getLogger(__name__)


class AnalysisStatus(Enum):
    OK = "ok"
    NO_DETECTIONS = "no_detections"
    FAILED = "failed"
    SKIPPED = "skipped"
    STALE = "stale"


@dataclass
class AnalysisResult:
    """Outcome of one analyze() call"""
    status: AnalysisStatus
    time: Optional[float] = None
    persons: List[PersonPose] = field(default_factory=list)
    error: Optional[str] = None
    inference_ms: Optional[float] = None

    def to_dict(self):
        return {
            'status': self.status.value,
            'time': self.time,
            'persons': [person.to_dict() for person in self.persons],
            'error': self.error,
            'inference_ms': self.inference_ms,
        }


class AnnotationWorkspace:
    """
    Interactive annotation state for one video at a time

    Example:
        >>> workspace = AnnotationWorkspace(AnnotatorConfig())
        >>> workspace.open_video(VideoFrameSource("rally_01.mp4"))
        >>> await workspace.on_seek(12.4)
        >>> result = await workspace.analyze()
        >>> await workspace.select_label("spike")
        >>> workspace.pointer_down(410.0, 220.0)
        >>> workspace.export()
    """

    def __init__(
        self,
        config: Optional[AnnotatorConfig] = None,
        session: Optional[PoseSession] = None,
        on_redraw: Optional[Callable[[], None]] = None
    ):
        self.config = config or AnnotatorConfig()
        self.session = session or PoseSession(self.config.pose)
        self.estimator = PoseEstimator(self.session, self.config.pose)
        self.on_redraw = on_redraw

        self.timeline = ClipTimeline(on_change=self._save)
        self.resolver = AnnotationResolver(
            labels=self.config.annotation.labels,
            min_box_size=self.config.annotation.min_box_size,
            on_annotation=self._on_annotation,
            on_redraw=self._request_redraw,
        )

        self.source: Optional[FrameSource] = None
        self.store: Optional[AnnotationStore] = None
        self.current_time = 0.0
        self.is_analyzing = False
        self.continuous = False
        self._generation = 0

    # ----- video lifecycle -----

    @property
    def video_name(self) -> Optional[str]:
        return self.source.name if self.source is not None else None

    @property
    def detections(self) -> List[PersonPose]:
        return self.resolver.detections

    @property
    def clips(self) -> List[Clip]:
        return self.timeline.clips

    @property
    def annotations(self) -> List[ActionAnnotation]:
        return self.resolver.annotations

    def open_video(self, source: FrameSource, store: Optional[AnnotationStore] = None) -> None:
        """
        Switch to a new video and restore its saved clips and annotations

        Args:
            source: Frame source for the video
            store: Persistence backend (default: JsonFileStore under data_root)
        """
        self.close_video()

        self.source = source
        self.store = store or JsonFileStore(
            self.config.paths.data_root,
            source.name,
            self.config.storage.ttl_seconds,
        )

        state = self.store.load()
        if state is not None:
            self.timeline.replace(state.clips, notify=False)
            self.resolver.load_annotations(state.annotations)

        logger.info(
            "Opened video '%s' (%dx%d) with %d clips and %d annotations",
            source.name, source.width, source.height,
            len(self.timeline.clips), len(self.resolver.annotations)
        )

    def close_video(self) -> None:
        """Drop the current video; in-flight analysis results become stale"""
        self._generation += 1
        if self.source is not None:
            close = getattr(self.source, 'close', None)
            if close is not None:
                close()
            logger.info("Closed video '%s'", self.source.name)

        self.source = None
        self.store = None
        self.current_time = 0.0
        self.continuous = False
        self.timeline.replace([], notify=False)
        self.resolver.cancel()
        self.resolver.load_annotations([])
        self.resolver.set_detections([])

    # ----- playback -----

    def seek(self, time_s: float) -> None:
        """Move the playhead without analyzing"""
        self.current_time = float(time_s)
        seek = getattr(self.source, 'seek', None)
        if seek is not None:
            seek(self.current_time)

    async def on_seek(self, time_s: float) -> Optional[AnalysisResult]:
        """Move the playhead; in continuous mode also analyze the new frame"""
        self.seek(time_s)
        if self.continuous:
            return await self.analyze()
        return None

    async def set_continuous(self, enabled: bool) -> Optional[AnalysisResult]:
        """
        Toggle continuous analysis

        Enabling analyzes the current frame right away; disabling clears the
        overlay.
        """
        self.continuous = enabled
        logger.info("Continuous analysis %s", "enabled" if enabled else "disabled")
        if enabled:
            return await self.analyze()
        self.clear_overlay()
        return None

    def clear_overlay(self) -> None:
        """Drop detections and any pending label or drag"""
        self.resolver.cancel()
        self.resolver.set_detections([])

    # ----- analysis -----

    async def analyze(self) -> AnalysisResult:
        """
        Detect poses on the frame at the playhead

        Never raises for pipeline failures: they are logged and returned as
        a FAILED result, leaving clips and annotations untouched. In
        continuous mode, a seek that landed while this analysis ran is
        followed by one analysis of the new playhead frame.

        Returns:
            AnalysisResult with status OK, NO_DETECTIONS, FAILED, SKIPPED
            (another analysis is running) or STALE (video changed meanwhile)
        """
        if self.is_analyzing:
            logger.debug("Analysis already running, skipping request")
            return AnalysisResult(AnalysisStatus.SKIPPED, time=self.current_time)

        time_s = self.current_time
        source = self.source
        if source is None:
            error = handle_clipmark_exception(ValidationError("No video is open"))
            return AnalysisResult(AnalysisStatus.FAILED, time=time_s, error=error)

        generation = self._generation
        self.is_analyzing = True
        try:
            await self.session.load()
            if generation != self._generation:
                return self._stale(time_s)
            frame = source.capture()
            persons = await self.estimator.estimate(frame)
        except ClipmarkException as e:
            if generation != self._generation:
                return self._stale(time_s)
            error = handle_clipmark_exception(e)
            return AnalysisResult(AnalysisStatus.FAILED, time=time_s, error=error)
        except Exception as e:
            if generation != self._generation:
                return self._stale(time_s)
            error = handle_clipmark_exception(InferenceError(f"Unexpected analysis failure: {e}"))
            return AnalysisResult(AnalysisStatus.FAILED, time=time_s, error=error)
        finally:
            self.is_analyzing = False

        if generation != self._generation:
            return self._stale(time_s)

        if self.continuous and self.current_time != time_s:
            logger.debug(
                "Playhead moved from %.3fs to %.3fs during analysis, re-analyzing",
                time_s, self.current_time
            )
            return await self.analyze()

        self.resolver.set_detections(persons)
        inference_ms = self.estimator.last_inference_ms

        if not persons:
            logger.info("No persons detected at %.3fs", time_s)
            return AnalysisResult(
                AnalysisStatus.NO_DETECTIONS, time=time_s, inference_ms=inference_ms
            )

        logger.info("Detected %d persons at %.3fs", len(persons), time_s)
        return AnalysisResult(
            AnalysisStatus.OK, time=time_s, persons=persons, inference_ms=inference_ms
        )

    def inspect_person(self, x: float, y: float) -> Optional[Dict]:
        """
        Summary of the person under (x, y) when no label is armed

        Returns:
            summarize_person() dict, or None when a label is pending or no
            box contains the point
        """
        if self.resolver.pending_label is not None:
            return None
        person_idx = hit_test(self.resolver.detections, x, y)
        if person_idx is None:
            return None
        summary = summarize_person(self.resolver.detections[person_idx], person_idx)
        logger.info(
            "Person %d: %.1f%% box confidence, %d keypoints, %.1f%% mean keypoint confidence",
            summary['person'], summary['confidence'] * 100,
            summary['num_keypoints'], summary['mean_keypoint_confidence'] * 100
        )
        return summary

    # ----- annotation -----

    async def select_label(self, label: str) -> Optional[AnalysisResult]:
        """
        Arm a label for the next click or drag

        Analyzes the current frame first when there are no detections yet
        and no analysis is running.

        Raises:
            ValidationError: If label is not in the configured label set
        """
        if not self.resolver.select_label(label):
            return None
        if not self.resolver.detections and not self.is_analyzing and self.source is not None:
            return await self.analyze()
        return None

    def cancel_label(self) -> bool:
        return self.resolver.cancel()

    def pointer_down(self, x: float, y: float) -> Optional[ActionAnnotation]:
        return self.resolver.pointer_down(x, y, self.current_time)

    def pointer_move(self, x: float, y: float) -> None:
        self.resolver.pointer_move(x, y)

    def pointer_up(self, x: float, y: float) -> Optional[ActionAnnotation]:
        return self.resolver.pointer_up(x, y, self.current_time)

    def pointer_leave(self, x: float, y: float) -> Optional[ActionAnnotation]:
        return self.resolver.pointer_leave(x, y, self.current_time)

    def delete_annotation(self, index: int) -> ActionAnnotation:
        annotation = self.resolver.annotations.pop(index)
        self._save()
        self._request_redraw()
        return annotation

    def clear_annotations(self) -> None:
        self.resolver.clear_annotations()
        self._save()

    # ----- clips -----

    def mark_in(self) -> Clip:
        return self.timeline.mark_in(self.current_time)

    def mark_out(self) -> Optional[Clip]:
        return self.timeline.mark_out(self.current_time)

    def discard_clip(self) -> bool:
        return self.timeline.discard_open()

    def delete_clip(self, index: int) -> Clip:
        return self.timeline.delete(index)

    def import_clips(self, file_path: str) -> bool:
        """
        Replace the clip list with clips read from a JSON array file

        Returns:
            False if the file did not hold an array (clips unchanged)

        Raises:
            DataLoadError: If the file cannot be parsed
        """
        clips = load_clips_file(file_path)
        if clips is None:
            return False
        self.timeline.replace(clips)
        logger.info("Imported %d clips from %s", len(clips), file_path)
        return True

    # ----- output -----

    def export(self, output_path: Optional[str] = None) -> Path:
        """
        Write clips and annotations as the export document

        Args:
            output_path: Target file (default: <export_root>/<video>.json)
        """
        if self.source is None:
            raise ValidationError("No video is open")

        if output_path is None:
            output_path = self.config.paths.get_export_path(export_filename(self.source.name))

        return write_export(
            output_path,
            self.timeline.clips,
            self.resolver.annotations,
            self.source.width,
            self.source.height,
            self.config.annotation.labels,
        )

    def render_overlay(self, frame: np.ndarray) -> np.ndarray:
        """Copy of frame with poses, the live drag rectangle and the pending label"""
        image = np.ascontiguousarray(frame[..., :3]).copy()
        draw_pose_overlay(image, self.resolver.detections)
        draw_selection_rect(image, self.resolver.drag_rect)
        if self.resolver.pending_label is not None:
            add_text_label(image, f"Label: {self.resolver.pending_label}")
        return image

    # ----- internals -----

    def _stale(self, time_s: float) -> AnalysisResult:
        logger.info("Discarding analysis at %.3fs: video changed", time_s)
        return AnalysisResult(AnalysisStatus.STALE, time=time_s)

    def _on_annotation(self, annotation: ActionAnnotation) -> None:
        self._save()

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(self.timeline.clips, self.resolver.annotations)

    def _request_redraw(self) -> None:
        if self.on_redraw is not None:
            self.on_redraw()
