#!/usr/bin/env python
"""
Playback engine: one audio output, a queue and the transport controls.

Every play() bumps a generation counter. Audio events and start resolutions
carry the generation they were issued for and are dropped once a newer play()
or stop() happened, so a superseded track can never touch the state. Failures
never raise: they surface through ``last_error`` and, when the queue has a
successor, trigger a single delayed auto-advance.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from tracktide.client.models import Track
from tracktide.client.player.audio import (
    AudioEvent,
    AudioFailed,
    AudioOutput,
    DurationChanged,
    TimeUpdated,
    TrackEnded,
)
from tracktide.client.player.state import PlaybackState
from tracktide.client.session import LOGOUT
from tracktide.errors import PlaybackError

logger = logging.getLogger(__name__)

START_FAILURE_MESSAGES: Dict[str, str] = {
    PlaybackError.UNSUPPORTED: "Audio preview not available for this song.",
    PlaybackError.BLOCKED: "Audio playback was blocked. Please try again.",
    PlaybackError.GENERIC: "Failed to play song. Please try again.",
}
LOAD_FAILURE_MESSAGE = "Failed to load audio. The preview may not be available."

DEFAULT_AUTO_ADVANCE_DELAY = 2.0

StateListener = Callable[[PlaybackState], None]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


def _resolved(value: bool) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class PlaybackEngine:
    def __init__(
        self,
        audio: AudioOutput,
        *,
        history_recorder: Optional[Callable[[Track], object]] = None,
        auto_advance_delay: float = DEFAULT_AUTO_ADVANCE_DELAY,
        scheduler: Optional[Callable[[float, Callable[[], None]], object]] = None,
        executor: Optional[Executor] = None,
        volume: float = 0.5,
    ) -> None:
        self._audio = audio
        self._history_recorder = history_recorder
        self.auto_advance_delay = max(0.0, float(auto_advance_delay))
        self._schedule = scheduler or timer_scheduler
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="tracktide-history")
        self._lock = threading.RLock()
        self._listeners: Dict[int, StateListener] = {}
        self._next_listener_id = 1

        self._current_track: Optional[Track] = None
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._volume = self._clamp_volume(volume)
        self._last_error: Optional[str] = None
        self._queue: List[Track] = []
        self._current_index = -1

        self._generation = 0
        self._starting = False
        # Pause requested while the start was still pending
        self._pause_on_start = False
        self._failed_generation: Optional[int] = None
        self._pending_advance = None

        self._audio.set_volume(self._volume)

    # --- state ----------------------------------------------------------

    @staticmethod
    def _clamp_volume(volume: float) -> float:
        return max(0.0, min(1.0, float(volume)))

    @property
    def state(self) -> PlaybackState:
        with self._lock:
            return PlaybackState(
                current_track=self._current_track,
                is_playing=self._is_playing,
                current_time=self._current_time,
                duration=self._duration,
                volume=self._volume,
                last_error=self._last_error,
                queue=tuple(self._queue),
                current_index=self._current_index,
            )

    @property
    def current_track(self) -> Optional[Track]:
        return self.state.current_track

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def queue(self):
        return self.state.queue

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def last_error(self) -> Optional[str]:
        return self.state.last_error

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            lid = self._next_listener_id
            self._next_listener_id += 1
            self._listeners[lid] = listener

        def _unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(lid, None)

        return _unsubscribe

    def _emit(self) -> None:
        snapshot = self.state
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Playback listener failed")

    # --- transport ------------------------------------------------------

    def play(self, track: Track) -> Future:
        """Start ``track``; the future resolves True once audio is playing."""
        result: Future = Future()
        with self._lock:
            self._cancel_pending_advance()
            self._generation += 1
            generation = self._generation
            # Detach the superseded source before touching the output
            self._audio.set_event_handler(None)
            self._audio.pause()

            self._current_track = track
            self._is_playing = False
            self._current_time = 0.0
            self._duration = 0.0
            self._last_error = None
            self._starting = True
            self._pause_on_start = False

            self._audio.set_event_handler(lambda event, g=generation: self._on_audio_event(g, event))
            try:
                if not track.preview:
                    raise PlaybackError("Track has no preview", kind=PlaybackError.UNSUPPORTED)
                self._audio.load(track.preview)
                start = self._audio.play()
            except Exception as exc:
                self._fail(generation, exc)
                result.set_result(False)
                return result
        self._emit()
        start.add_done_callback(lambda f: self._on_start_resolved(generation, f, result))
        return result

    def _on_start_resolved(self, generation: int, start: Future, result: Future) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding start resolution of superseded generation %s", generation)
                result.set_result(False)
                return
            if self._failed_generation == generation:
                # An AudioFailed event already settled this generation
                result.set_result(False)
                return
            self._starting = False
            error = None
            if start.cancelled():
                error = PlaybackError("Playback start was cancelled")
            else:
                error = start.exception()
            if error is not None:
                self._fail(generation, error)
                result.set_result(False)
                return
            self._last_error = None
            if self._pause_on_start:
                self._pause_on_start = False
                self._audio.pause()
                self._is_playing = False
            else:
                self._is_playing = True
            track = self._current_track
        self._emit()
        self._record_history(track)
        result.set_result(True)

    def _fail(self, generation: int, error: BaseException, message: Optional[str] = None) -> None:
        with self._lock:
            if generation != self._generation or self._failed_generation == generation:
                return
            self._failed_generation = generation
            self._starting = False
            self._pause_on_start = False
            track = self._current_track
            if message is None:
                kind = getattr(error, "kind", PlaybackError.GENERIC)
                message = START_FAILURE_MESSAGES.get(kind, START_FAILURE_MESSAGES[PlaybackError.GENERIC])
            logger.warning("Playback failed for %s: %s", track.id if track else None, error)

            self._audio.set_event_handler(None)
            self._current_track = None
            self._is_playing = False
            self._current_time = 0.0
            self._duration = 0.0
            self._last_error = message

            if self._has_successor():
                self._pending_advance = self._schedule(
                    self.auto_advance_delay,
                    lambda: self._auto_advance(generation),
                )
        self._emit()

    def _has_successor(self) -> bool:
        return bool(self._queue) and self._current_index < len(self._queue) - 1

    def _auto_advance(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._pending_advance = None
            if not self._has_successor():
                return
            logger.info("Advancing past failed track")
            self.next()

    def _cancel_pending_advance(self) -> None:
        pending, self._pending_advance = self._pending_advance, None
        if pending is not None and hasattr(pending, "cancel"):
            pending.cancel()

    def _record_history(self, track: Optional[Track]) -> None:
        if track is None or self._history_recorder is None:
            return
        try:
            future = self._executor.submit(self._history_recorder, track)
        except RuntimeError as exc:
            logger.warning("Could not schedule play history write: %s", exc)
            return

        def _log_outcome(f: Future) -> None:
            if f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                logger.warning("Failed to save to play history: %s", exc)
                return
            outcome = f.result()
            if getattr(outcome, "ok", True) is False:
                logger.info("Play history not saved: %s", getattr(outcome, "message", None))

        future.add_done_callback(_log_outcome)

    def _on_audio_event(self, generation: int, event: AudioEvent) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if isinstance(event, TimeUpdated):
                self._current_time = max(0.0, float(event.position))
            elif isinstance(event, DurationChanged):
                self._duration = max(0.0, float(event.duration))
            elif isinstance(event, TrackEnded):
                self._is_playing = False
                self.next()
                return
            elif isinstance(event, AudioFailed):
                self._fail(generation, PlaybackError(event.reason or "audio error"), LOAD_FAILURE_MESSAGE)
                return
            else:
                return
        self._emit()

    def play_pause(self) -> None:
        with self._lock:
            if self._current_track is None:
                return
            if self._starting:
                # Applied once the pending start resolves; a second press undoes it
                self._pause_on_start = not self._pause_on_start
                return
            if self._is_playing:
                self._audio.pause()
                self._is_playing = False
            else:
                generation = self._generation
                try:
                    resume = self._audio.resume()
                except Exception as exc:
                    logger.warning("Failed to resume playback: %s", exc)
                    return
                resume.add_done_callback(lambda f: self._on_resume_resolved(generation, f))
                return
        self._emit()

    def _on_resume_resolved(self, generation: int, resume: Future) -> None:
        with self._lock:
            if generation != self._generation or self._current_track is None:
                return
            if resume.cancelled() or resume.exception() is not None:
                # Stay paused; the track stays loaded and last_error is untouched
                logger.warning(
                    "Failed to resume playback: %s",
                    None if resume.cancelled() else resume.exception(),
                )
                return
            self._is_playing = True
        self._emit()

    def next(self) -> Future:
        with self._lock:
            if self._queue and self._current_index < len(self._queue) - 1:
                self._current_index += 1
                return self.play(self._queue[self._current_index])
            if self._current_track is not None:
                # No usable queue: restart the current track
                return self.play(self._current_track)
        return _resolved(False)

    def previous(self) -> Future:
        with self._lock:
            if self._queue and self._current_index > 0:
                self._current_index -= 1
                return self.play(self._queue[self._current_index])
            if self._current_track is not None:
                return self.play(self._current_track)
        return _resolved(False)

    def seek_to(self, seconds: float) -> None:
        with self._lock:
            if self._current_track is None:
                return
            position = max(0.0, float(seconds))
            if self._duration > 0:
                position = min(position, self._duration)
            self._audio.seek(position)
            self._current_time = position
        self._emit()

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._volume = self._clamp_volume(volume)
            self._audio.set_volume(self._volume)
        self._emit()

    def stop(self) -> None:
        with self._lock:
            self._cancel_pending_advance()
            self._generation += 1
            self._starting = False
            self._pause_on_start = False
            self._audio.set_event_handler(None)
            self._audio.pause()
            self._current_track = None
            self._is_playing = False
            self._current_time = 0.0
            self._duration = 0.0
            self._last_error = None
        self._emit()

    def clear_error(self) -> None:
        with self._lock:
            self._last_error = None
        self._emit()

    # --- queue ----------------------------------------------------------

    def set_current_queue(self, tracks: Sequence[Track], selected_id=None) -> int:
        """Replace the queue; returns the selected index or -1."""
        with self._lock:
            self._queue = list(tracks)
            self._current_index = -1
            if selected_id is not None:
                wanted = str(selected_id)
                for index, track in enumerate(self._queue):
                    if track.id == wanted:
                        self._current_index = index
                        break
            index = self._current_index
        self._emit()
        return index

    def add_to_queue(self, track: Track) -> None:
        with self._lock:
            self._queue.append(track)
        self._emit()

    def remove_from_queue(self, index: int) -> bool:
        with self._lock:
            if index < 0 or index >= len(self._queue):
                logger.debug("Ignoring queue removal at invalid index %s", index)
                return False
            del self._queue[index]
            if index < self._current_index:
                self._current_index -= 1
            elif self._current_index >= len(self._queue):
                self._current_index = len(self._queue) - 1
        self._emit()
        return True

    def clear_queue(self) -> None:
        with self._lock:
            self._queue = []
            self._current_index = -1
        self._emit()

    # --- lifecycle ------------------------------------------------------

    def bind_session(self, session) -> Callable[[], None]:
        """Stop playback synchronously whenever the session logs out."""

        def _on_change(change) -> None:
            if change.kind == LOGOUT:
                self.stop()

        return session.subscribe(_on_change)

    def shutdown(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False)


__all__ = [
    "PlaybackEngine",
    "START_FAILURE_MESSAGES",
    "LOAD_FAILURE_MESSAGE",
    "DEFAULT_AUTO_ADVANCE_DELAY",
    "timer_scheduler",
]
