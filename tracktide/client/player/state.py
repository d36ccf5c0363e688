from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from tracktide.client.models import Track


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of the engine handed to listeners."""

    current_track: Optional[Track] = None
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    volume: float = 0.5
    last_error: Optional[str] = None
    queue: Tuple[Track, ...] = ()
    current_index: int = -1

    @property
    def is_idle(self) -> bool:
        return self.current_track is None

    @property
    def is_paused(self) -> bool:
        return self.current_track is not None and not self.is_playing


__all__ = ["PlaybackState"]
