"""
Per-video annotation state persistence

Provides:
- AnnotationStore protocol (save / load)
- JsonFileStore: one JSON file per video with an expiry window
- MemoryStore: in-process store
- load_clips_file for importing a clip list from JSON
"""

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from ..annotation.types import ActionAnnotation, Clip
from ..core.constants import SECONDS_PER_DAY, STORAGE_PREFIX, STORAGE_TTL_DAYS
from ..core.exceptions import DataLoadError, ValidationError

logger = logging.getLogger(__name__)


def video_key(video_path: str) -> str:
    """
    Storage key for a video: its file name without extension

    Example:
        >>> video_key("/data/rally_01.mp4")
        'rally_01'
    """
    return Path(video_path).stem


@dataclass
class StoredState:
    """Saved clips and annotations plus the save time (epoch seconds)"""
    clips: List[Clip] = field(default_factory=list)
    annotations: List[ActionAnnotation] = field(default_factory=list)
    timestamp: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'clips': [clip.to_dict() for clip in self.clips],
            'annotations': [annotation.to_dict() for annotation in self.annotations],
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "StoredState":
        return cls(
            clips=[Clip.from_dict(c) for c in d.get('clips', [])],
            annotations=[ActionAnnotation.from_dict(a) for a in d.get('annotations', [])],
            timestamp=float(d.get('timestamp', 0.0)),
        )


class AnnotationStore(Protocol):
    def save(self, clips: Sequence[Clip], annotations: Sequence[ActionAnnotation]) -> None: ...

    def load(self) -> Optional[StoredState]: ...


class JsonFileStore:
    """
    Store state for one video in <root>/video_<name>.json

    State older than ttl_seconds is deleted on load and reported as absent.
    Unreadable files are logged and reported as absent.

    Example:
        >>> store = JsonFileStore("~/.clipmark", "rally_01")
        >>> store.save(timeline.clips, resolver.annotations)
        >>> state = store.load()
    """

    def __init__(
        self,
        root: str,
        video_name: str,
        ttl_seconds: float = STORAGE_TTL_DAYS * SECONDS_PER_DAY
    ):
        self.root = Path(root).expanduser()
        self.video_name = video_name
        self.ttl_seconds = ttl_seconds

    @property
    def path(self) -> Path:
        return self.root / f"{STORAGE_PREFIX}{self.video_name}.json"

    def save(
        self,
        clips: Sequence[Clip],
        annotations: Sequence[ActionAnnotation],
        now: Optional[float] = None
    ) -> None:
        state = StoredState(
            clips=list(clips),
            annotations=list(annotations),
            timestamp=time.time() if now is None else now,
        )
        self.root.mkdir(parents=True, exist_ok=True)
        # Write beside the target, then swap it in
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.root
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(state.to_dict(), f)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(
            "Saved %d clips and %d annotations to %s",
            len(state.clips), len(state.annotations), self.path
        )

    def load(self, now: Optional[float] = None) -> Optional[StoredState]:
        if not self.path.exists():
            return None

        try:
            with open(self.path, 'r') as f:
                state = StoredState.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError,
                AttributeError, ValidationError) as e:
            logger.error("Ignoring unreadable saved state %s: %s", self.path, e)
            return None

        now = time.time() if now is None else now
        if now - state.timestamp > self.ttl_seconds:
            logger.warning("Saved state for '%s' expired, removing %s", self.video_name, self.path)
            self.path.unlink(missing_ok=True)
            return None

        logger.info(
            "Restored %d clips and %d annotations for '%s'",
            len(state.clips), len(state.annotations), self.video_name
        )
        return state

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryStore:
    """In-process store; keeps the last saved state"""

    def __init__(self, state: Optional[StoredState] = None):
        self.state = state
        self.save_count = 0

    def save(self, clips: Sequence[Clip], annotations: Sequence[ActionAnnotation]) -> None:
        self.state = StoredState(
            clips=list(clips),
            annotations=list(annotations),
            timestamp=time.time(),
        )
        self.save_count += 1

    def load(self) -> Optional[StoredState]:
        return self.state


def load_clips_file(file_path: str) -> Optional[List[Clip]]:
    """
    Import clips from a JSON file holding an array of clip objects

    Returns:
        The clips, or None if the document is not an array

    Raises:
        DataLoadError: If the file is missing, not valid JSON, or holds
            malformed clip entries
    """
    path = Path(file_path)
    if not path.exists():
        raise DataLoadError(f"Clips file not found: {file_path}")

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Failed to parse clips file {file_path}: {e}") from e

    if not isinstance(data, list):
        logger.warning("Ignoring clips file %s: expected a JSON array", file_path)
        return None

    try:
        return [Clip.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
        raise DataLoadError(f"Malformed clip entry in {file_path}: {e}") from e
