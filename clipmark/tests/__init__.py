"""
Tests module - Unit and integration tests for the clipmark package

Provides:
- Core module tests (config, constants, exceptions)
- Detection module tests (IoU, NMS)
- Pose module tests (letterbox, preprocessing, decoding, session handle)
- Annotation module tests (timeline, resolver, export, persistence)
- Workspace and CLI tests
"""

__all__ = []
