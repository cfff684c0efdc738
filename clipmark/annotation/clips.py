"""
Clip timeline: marking in/out ranges on a video
"""

import logging
from typing import Callable, List, Optional, Sequence

from .types import Clip

logger = logging.getLogger(__name__)


class ClipTimeline:
    """
    Completed clips plus at most one open (in-progress) clip

    Example:
        >>> timeline = ClipTimeline(on_change=save_state)
        >>> timeline.mark_in(3.2)
        >>> timeline.mark_out(5.0)
        >>> print(timeline.clips)  # [Clip(start_time=3.2, end_time=5.0)]
    """

    def __init__(
        self,
        clips: Optional[Sequence[Clip]] = None,
        on_change: Optional[Callable[[], None]] = None
    ):
        self.clips: List[Clip] = list(clips) if clips else []
        self.current: Optional[Clip] = None
        self.on_change = on_change

    def mark_in(self, time: float) -> Clip:
        """Open a clip at time, replacing any open clip"""
        self.current = Clip(start_time=time)
        return self.current

    def mark_out(self, time: float) -> Optional[Clip]:
        """
        Close the open clip at time and append it

        Returns:
            The completed clip, or None if no clip is open or time is
            before the clip start
        """
        if self.current is None:
            return None
        if time < self.current.start_time:
            logger.warning(
                "Ignoring clip end %.3fs before start %.3fs",
                time, self.current.start_time
            )
            return None

        clip = Clip(start_time=self.current.start_time, end_time=time)
        self.current = None
        self.clips.append(clip)
        self._changed()
        return clip

    def discard_open(self) -> bool:
        """Drop the open clip; True if there was one"""
        if self.current is None:
            return False
        self.current = None
        return True

    def delete(self, index: int) -> Clip:
        """Remove a completed clip by index"""
        clip = self.clips.pop(index)
        self._changed()
        return clip

    def clear(self) -> None:
        self.clips = []
        self._changed()

    def replace(self, clips: Sequence[Clip], notify: bool = True) -> None:
        """Swap in a new clip list (restored or imported)"""
        self.clips = list(clips)
        self.current = None
        if notify:
            self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
