"""
Click/drag annotation resolver

A small state machine turning pointer events into ActionAnnotations:

    IDLE --select_label--> PENDING_LABEL
    PENDING_LABEL --pointer_down inside a person box--> IDLE   (annotate person)
    PENDING_LABEL --pointer_down outside all boxes--> DRAWING
    DRAWING --pointer_move--> DRAWING                          (live rectangle)
    DRAWING --pointer_up / pointer_leave--> IDLE               (annotate rectangle
                                                                if large enough)
    PENDING_LABEL / DRAWING --cancel--> IDLE

All coordinates are canvas (source-frame) pixels, i.e. the space poses are
rendered in; use display_to_canvas() to correct raw display positions first.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..core.constants import ACTION_LABELS, MIN_DRAWN_BOX_SIZE
from ..core.exceptions import ValidationError
from ..detection.bbox_utils import rect_from_corners
from ..pose.types import PersonPose
from .types import ActionAnnotation, AnnotationBox

logger = logging.getLogger(__name__)

AnnotationCallback = Callable[[ActionAnnotation], None]
RedrawCallback = Callable[[], None]


class ResolverState(Enum):
    IDLE = "idle"
    PENDING_LABEL = "pending_label"
    DRAWING = "drawing"


def hit_test(poses: Sequence[PersonPose], x: float, y: float) -> Optional[int]:
    """
    Index of the first person whose box contains the point

    Lower indices win when boxes overlap.

    Example:
        >>> idx = hit_test(persons, 120.0, 340.0)
        >>> print(idx)  # None when the click is outside every box
    """
    for idx, person in enumerate(poses):
        if person.bbox.contains(x, y):
            return idx
    return None


def display_to_canvas(
    display_x: float,
    display_y: float,
    display_rect: Tuple[float, float, float, float],
    canvas_size: Tuple[int, int]
) -> Tuple[float, float]:
    """
    Convert a pointer position on the displayed overlay to canvas pixels

    Args:
        display_x: Pointer x in display coordinates
        display_y: Pointer y in display coordinates
        display_rect: (left, top, width, height) of the displayed overlay
        canvas_size: (width, height) of the backing canvas (the frame size)

    Returns:
        (x, y) in canvas pixels
    """
    left, top, width, height = display_rect
    canvas_width, canvas_height = canvas_size
    if width <= 0 or height <= 0:
        raise ValidationError(f"Display size must be positive, got {width}x{height}")

    scale_x = canvas_width / width
    scale_y = canvas_height / height
    return ((display_x - left) * scale_x, (display_y - top) * scale_y)


class AnnotationResolver:
    """
    Resolve label selections and pointer gestures into annotations

    Example:
        >>> resolver = AnnotationResolver(on_annotation=store_annotation)
        >>> resolver.set_detections(persons)
        >>> resolver.select_label("spike")
        >>> annotation = resolver.pointer_down(410.0, 220.0, time=12.4)
    """

    def __init__(
        self,
        labels: Optional[Sequence[str]] = None,
        min_box_size: float = MIN_DRAWN_BOX_SIZE,
        on_annotation: Optional[AnnotationCallback] = None,
        on_redraw: Optional[RedrawCallback] = None
    ):
        self.labels = list(labels) if labels is not None else list(ACTION_LABELS)
        self.min_box_size = min_box_size
        self.on_annotation = on_annotation
        self.on_redraw = on_redraw

        self.state = ResolverState.IDLE
        self.pending_label: Optional[str] = None
        self.detections: List[PersonPose] = []
        self.annotations: List[ActionAnnotation] = []
        self._drag_start: Optional[Tuple[float, float]] = None
        self._drag_end: Optional[Tuple[float, float]] = None

    # ----- state inputs -----

    def set_detections(self, poses: Optional[Sequence[PersonPose]]) -> None:
        """Replace the detection set used for hit-testing"""
        self.detections = list(poses) if poses else []
        self._request_redraw()

    def load_annotations(self, annotations: Sequence[ActionAnnotation]) -> None:
        """Restore annotations from storage without notifying persistence"""
        self.annotations = list(annotations)
        self._request_redraw()

    def select_label(self, label: str) -> bool:
        """
        Make label the pending label

        Ignored while a drag is in progress.

        Returns:
            True if the pending label changed

        Raises:
            ValidationError: If label is not in the label set
        """
        if label not in self.labels:
            raise ValidationError(f"Unknown label '{label}', expected one of {self.labels}")
        if self.state == ResolverState.DRAWING:
            return False

        self.pending_label = label
        self.state = ResolverState.PENDING_LABEL
        self._request_redraw()
        return True

    def cancel(self) -> bool:
        """Discard the pending label and any drag; True if anything was pending"""
        if self.state == ResolverState.IDLE:
            return False
        self._reset()
        return True

    # ----- pointer events -----

    def pointer_down(self, x: float, y: float, time: float) -> Optional[ActionAnnotation]:
        """
        Handle a press at canvas position (x, y)

        With a pending label, a press inside a person box annotates that
        person immediately; a press elsewhere starts a drag.

        Returns:
            The new annotation, if the press produced one
        """
        if self.state != ResolverState.PENDING_LABEL:
            return None

        person_idx = hit_test(self.detections, x, y)
        if person_idx is not None:
            person_box = self.detections[person_idx].bbox
            box = AnnotationBox(
                x=person_box.x,
                y=person_box.y,
                width=person_box.width,
                height=person_box.height,
            )
            return self._resolve(time, box)

        self.state = ResolverState.DRAWING
        self._drag_start = (x, y)
        self._drag_end = (x, y)
        self._request_redraw()
        return None

    def pointer_move(self, x: float, y: float) -> None:
        """Update the live rectangle while drawing"""
        if self.state != ResolverState.DRAWING:
            return
        self._drag_end = (x, y)
        self._request_redraw()

    def pointer_up(self, x: float, y: float, time: float) -> Optional[ActionAnnotation]:
        """
        Finish a drag at (x, y)

        The drawn rectangle becomes an annotation only when both sides exceed
        min_box_size; the pending label is cleared either way.

        Returns:
            The new annotation, or None for a too-small rectangle
        """
        if self.state != ResolverState.DRAWING:
            return None

        self._drag_end = (x, y)
        rect = self.drag_rect
        if rect[2] > self.min_box_size and rect[3] > self.min_box_size:
            return self._resolve(time, AnnotationBox(*rect))

        logger.info(
            "Discarded %.1fx%.1f box for '%s': below %.1f px minimum",
            rect[2], rect[3], self.pending_label, self.min_box_size
        )
        self._reset()
        return None

    def pointer_leave(self, x: float, y: float, time: float) -> Optional[ActionAnnotation]:
        """Pointer left the canvas; ends a drag like pointer_up"""
        return self.pointer_up(x, y, time)

    # ----- views -----

    @property
    def drag_rect(self) -> Optional[Tuple[float, float, float, float]]:
        """Live (x, y, width, height) rectangle while drawing"""
        if self._drag_start is None or self._drag_end is None:
            return None
        return rect_from_corners(*self._drag_start, *self._drag_end)

    def clear_annotations(self) -> None:
        self.annotations = []
        self._request_redraw()

    # ----- internals -----

    def _resolve(self, time: float, box: AnnotationBox) -> ActionAnnotation:
        annotation = ActionAnnotation(time=time, label=self.pending_label, bbox=box)
        self.annotations.append(annotation)
        logger.info(
            "Annotated '%s' at %.3fs: (%.1f, %.1f, %.1f, %.1f)",
            annotation.label, time, box.x, box.y, box.width, box.height
        )
        self._reset()
        if self.on_annotation is not None:
            self.on_annotation(annotation)
        return annotation

    def _reset(self) -> None:
        self.state = ResolverState.IDLE
        self.pending_label = None
        self._drag_start = None
        self._drag_end = None
        self._request_redraw()

    def _request_redraw(self) -> None:
        if self.on_redraw is not None:
            self.on_redraw()
