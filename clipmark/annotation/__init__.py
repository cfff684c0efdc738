"""
Annotation module - Clips and labeled action boxes

Provides:
- Clip / AnnotationBox / ActionAnnotation data types
- ClipTimeline for in/out marking
- AnnotationResolver click/drag state machine
- YOLO-style export
"""

from .types import Clip, AnnotationBox, ActionAnnotation
from .clips import ClipTimeline
from .resolver import (
    ResolverState,
    AnnotationResolver,
    hit_test,
    display_to_canvas,
)
from .export import (
    annotation_to_yolo_line,
    annotations_to_yolo,
    build_export,
    write_export,
    export_filename,
)

__all__ = [
    # Types
    "Clip",
    "AnnotationBox",
    "ActionAnnotation",
    # Timeline
    "ClipTimeline",
    # Resolver
    "ResolverState",
    "AnnotationResolver",
    "hit_test",
    "display_to_canvas",
    # Export
    "annotation_to_yolo_line",
    "annotations_to_yolo",
    "build_export",
    "write_export",
    "export_filename",
]
