"""
ONNX Runtime session handle for the pose model

Features:
- Explicit session object owned by the caller (no module-level session)
- Load-once: repeated loads of the same model are no-ops and concurrent
  loads serialize behind one lock
- Inference runs in the default executor so the event loop stays responsive
- Concurrent run() calls queue; they never interleave on one session
- One session rebuild + retry on a session-level engine fault
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..core.config import PoseConfig
from ..core.constants import MODEL_INPUT_CHANNELS
from ..core.exceptions import (
    ClipmarkException,
    InferenceError,
    ModelLoadError,
    ModelNotLoadedError,
    SessionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# (model_path, providers) -> object exposing run(output_names, feeds)
SessionFactory = Callable[[str, List[str]], Any]

# onnxruntime pybind error types that indicate a broken session
_SESSION_FAULT_TYPES = {"Fail", "RuntimeException", "EPFail"}


def create_onnx_session(model_path: str, providers: List[str]) -> Any:
    """
    Build an onnxruntime.InferenceSession

    Raises:
        ModelLoadError: If onnxruntime is missing or the model cannot be read
    """
    try:
        import onnxruntime as ort
    except ImportError as e:
        raise ModelLoadError(
            "onnxruntime package not installed. Install with: pip install onnxruntime"
        ) from e

    if not Path(model_path).exists():
        raise ModelLoadError(f"Model file not found: {model_path}")

    try:
        return ort.InferenceSession(model_path, providers=providers)
    except Exception as e:
        raise ModelLoadError(f"Failed to load pose model '{model_path}': {e}") from e


def is_session_failure(error: Exception) -> bool:
    """
    Whether an engine error means the session itself is unusable

    onnxruntime reports these as its Fail/RuntimeException types; other
    engines are recognized by a message that mentions the session.
    """
    error_type = type(error)
    if (error_type.__module__ or "").startswith("onnxruntime") \
            and error_type.__name__ in _SESSION_FAULT_TYPES:
        return True
    return "session" in str(error).lower()


class PoseSession:
    """
    Pose model session handle

    Example:
        >>> from clipmark.core.config import PoseConfig
        >>> session = PoseSession(PoseConfig(model_path="yolo11n-pose.onnx"))
        >>> await session.load()
        >>> output = await session.run(preprocessed.tensor)
    """

    def __init__(
        self,
        config: Optional[PoseConfig] = None,
        session_factory: Optional[SessionFactory] = None
    ):
        self.config = config or PoseConfig()
        self._factory = session_factory or create_onnx_session
        self._session: Optional[Any] = None
        self._model_path: Optional[str] = None
        self._load_lock = asyncio.Lock()
        self._run_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._session is not None

    @property
    def model_path(self) -> Optional[str]:
        return self._model_path

    async def load(self, model_path: Optional[str] = None) -> None:
        """
        Load the model unless the same model is already loaded

        Args:
            model_path: Model file (defaults to config.model_path)

        Raises:
            ModelLoadError: If the model cannot be loaded
        """
        path = str(model_path or self.config.model_path)

        async with self._load_lock:
            if self._session is not None and self._model_path == path:
                return

            logger.info("Loading pose model: %s", path)
            self._session = await self._build_session(path)
            self._model_path = path
            logger.info("Pose model ready: %s", path)

    def unload(self) -> None:
        """Drop the session; an in-flight run finishes on the old session"""
        if self._session is not None:
            logger.info("Unloading pose model: %s", self._model_path)
        self._session = None
        self._model_path = None

    async def run(self, tensor: np.ndarray) -> np.ndarray:
        """
        Run the model on one preprocessed tensor

        Args:
            tensor: Float tensor with 3 * side * side values

        Returns:
            Flat float32 buffer of the configured output

        Raises:
            ModelNotLoadedError: If load() has not succeeded
            ValidationError: If the tensor does not match [1, 3, side, side]
            SessionError: If the session faults again after being rebuilt
            InferenceError: For any other engine failure
        """
        if self._session is None:
            raise ModelNotLoadedError("Model not loaded")

        feeds = self._build_feeds(tensor)

        async with self._run_lock:
            session = self._session
            if session is None:
                raise ModelNotLoadedError("Model not loaded")

            try:
                return await self._run_in_executor(session, feeds)
            except ClipmarkException:
                raise
            except Exception as e:
                if not is_session_failure(e):
                    raise InferenceError(f"Pose inference failed: {e}") from e
                logger.warning("Inference session fault, recreating session: %s", e)
                first_error = e

            self._session = await self._build_session(self._model_path)
            try:
                return await self._run_in_executor(self._session, feeds)
            except ClipmarkException:
                raise
            except Exception as e:
                raise SessionError(
                    f"Inference failed after session recreation: {e} "
                    f"(first failure: {first_error})"
                ) from e

    def get_model_info(self) -> Dict:
        """
        Get pose model information

        Returns:
            Dictionary with model metadata
        """
        return {
            'model_path': self._model_path or self.config.model_path,
            'loaded': self.is_loaded,
            'input_name': self.config.input_name,
            'output_name': self.config.output_name,
            'input_size': self.config.input_size,
            'providers': list(self.config.providers),
        }

    def _build_feeds(self, tensor: np.ndarray) -> Dict[str, np.ndarray]:
        side = self.config.input_size
        shape = (1, MODEL_INPUT_CHANNELS, side, side)
        array = np.asarray(tensor, dtype=np.float32)
        if array.size != MODEL_INPUT_CHANNELS * side * side:
            raise ValidationError(
                f"Input tensor has {array.size} values, expected shape {list(shape)}"
            )
        return {self.config.input_name: array.reshape(shape)}

    async def _build_session(self, model_path: str) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self._factory, model_path, list(self.config.providers)
            )
        except ClipmarkException:
            raise
        except Exception as e:
            raise ModelLoadError(f"Failed to load pose model '{model_path}': {e}") from e

    async def _run_in_executor(self, session: Any, feeds: Dict[str, np.ndarray]) -> np.ndarray:
        loop = asyncio.get_running_loop()
        outputs = await loop.run_in_executor(
            None, session.run, [self.config.output_name], feeds
        )
        return np.asarray(outputs[0], dtype=np.float32).reshape(-1)
