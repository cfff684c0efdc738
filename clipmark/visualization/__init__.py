"""
Visualization module - Rendering pose overlays and annotation feedback

Provides:
- Person palette colors
- Bounding box and skeleton drawing
- Live selection rectangle
- Text labels
"""

from .drawer import (
    person_color,
    person_label,
    draw_bbox,
    draw_skeleton,
    draw_pose_overlay,
    draw_selection_rect,
    add_text_label,
)

__all__ = [
    # Color
    "person_color",
    "person_label",
    # Drawing
    "draw_bbox",
    "draw_skeleton",
    "draw_pose_overlay",
    "draw_selection_rect",
    "add_text_label",
]
