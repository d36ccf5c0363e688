"""
Audio output contract used by the playback engine.

A concrete output (a desktop audio backend, a browser bridge, a test fake)
implements AudioOutput. Starting playback is asynchronous: play() and
resume() return a Future that resolves once the output confirms the start,
or fails with PlaybackError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class TimeUpdated:
    position: float


@dataclass(frozen=True)
class DurationChanged:
    duration: float


@dataclass(frozen=True)
class TrackEnded:
    pass


@dataclass(frozen=True)
class AudioFailed:
    reason: str = ""


AudioEvent = Union[TimeUpdated, DurationChanged, TrackEnded, AudioFailed]
AudioEventHandler = Callable[[AudioEvent], None]


class AudioOutput(ABC):
    """A single decode/output pipeline; loading a source replaces the old one."""

    @abstractmethod
    def load(self, source: str) -> None:
        ...

    @abstractmethod
    def play(self) -> Future:
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> Future:
        ...

    @abstractmethod
    def seek(self, seconds: float) -> None:
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    def set_event_handler(self, handler: Optional[AudioEventHandler]) -> None:
        """Replace the event handler; None detaches it."""


__all__ = [
    "AudioOutput",
    "AudioEvent",
    "AudioEventHandler",
    "TimeUpdated",
    "DurationChanged",
    "TrackEnded",
    "AudioFailed",
]
