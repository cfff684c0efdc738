"""
Custom exceptions for the clipmark annotator

Provides specific exception types for:
- Model loading and session lifecycle errors
- Inference and output decoding errors
- Frame capture errors
- Persistence and configuration errors
"""

import logging

logger = logging.getLogger(__name__)


class ClipmarkException(Exception):
    """
    Base exception class for all clipmark exceptions

    All custom exceptions should inherit from this class for easy
    exception catching and handling at the analysis boundary.
    """
    pass


class ModelLoadError(ClipmarkException):
    """
    Raised when the pose model fails to load

    Reasons:
    - Model file does not exist
    - Model file is corrupted or not an ONNX graph
    - onnxruntime is not installed

    Loading is safe to retry after the cause is fixed.

    Example:
        >>> from clipmark.core.exceptions import ModelLoadError
        >>> try:
        ...     await session.load("missing.onnx")
        ... except ModelLoadError as e:
        ...     print(f"Failed to load model: {e}")
    """
    pass


class ModelNotLoadedError(ClipmarkException):
    """
    Raised when inference is requested before any model is loaded
    """
    pass


class InferenceError(ClipmarkException):
    """
    Raised when model inference fails

    Reasons:
    - Input shape mismatch
    - Engine rejected the feed
    - Output tensor missing
    """
    pass


class SessionError(InferenceError):
    """
    Raised when the inference session faults again after being recreated

    A first session-level fault is recovered by rebuilding the session and
    retrying once; this error means the retry failed as well.
    """
    pass


class OutputShapeError(InferenceError):
    """
    Raised when the raw output tensor is too small for the decode layout
    """
    pass


class FrameCaptureError(ClipmarkException):
    """
    Raised when a frame cannot be captured from a frame source

    Reasons:
    - Video file cannot be opened
    - Seek position past the end of the stream
    - Decoder returned no frame
    """
    pass


class DataLoadError(ClipmarkException):
    """
    Raised when stored clips or annotations fail to load

    Applicable to:
    - Imported clips JSON files
    - Saved workspace state
    """
    pass


class ConfigError(ClipmarkException):
    """
    Raised when configuration is invalid

    Reasons:
    - Invalid configuration file format
    - Configuration value is out of valid range
    """
    pass


class ValidationError(ClipmarkException):
    """
    Raised when input data validation fails

    Applicable to:
    - Non-positive frame or model sizes
    - Tensor shape mismatch
    - Labels outside the configured label set
    """
    pass


def handle_clipmark_exception(e: ClipmarkException, verbose: bool = True) -> str:
    """
    Handle clipmark exceptions with formatted error message

    Args:
        e: The ClipmarkException instance
        verbose: If True, log the error message

    Returns:
        Formatted error message string
    """
    error_type = type(e).__name__
    error_msg = str(e)
    formatted_msg = f"[{error_type}] {error_msg}"

    if verbose:
        logger.error(formatted_msg)

    return formatted_msg
