"""Playback engine and the audio output contract it drives."""

from .audio import AudioFailed, AudioOutput, DurationChanged, TimeUpdated, TrackEnded
from .engine import LOAD_FAILURE_MESSAGE, START_FAILURE_MESSAGES, PlaybackEngine
from .state import PlaybackState

__all__ = [
    "AudioOutput",
    "AudioFailed",
    "DurationChanged",
    "TimeUpdated",
    "TrackEnded",
    "PlaybackEngine",
    "PlaybackState",
    "START_FAILURE_MESSAGES",
    "LOAD_FAILURE_MESSAGE",
]
