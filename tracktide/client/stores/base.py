#!/usr/bin/env python
"""
Shared plumbing for the library state stores.

A store caches one slice of the user's library and keeps it in step with the
backend. The cache only changes after the server acknowledged a write, and
no exception escapes a public store method: failures come back as a
StoreResult carrying the taxonomy error.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tracktide.client.session import LOGIN, LOGOUT, SessionChange
from tracktide.errors import AuthError, TrackTideError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreResult:
    ok: bool
    value: Any = None
    error: Optional[TrackTideError] = None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    @classmethod
    def success(cls, value: Any = None) -> "StoreResult":
        return cls(True, value, None)

    @classmethod
    def failure(cls, error: TrackTideError) -> "StoreResult":
        return cls(False, None, error)


class LibraryStore:
    """Base class: session wiring, error capture and load epochs."""

    name = "library"

    def __init__(self, api, session) -> None:
        self._api = api
        self._session = session
        self._lock = threading.RLock()
        # Bumped on every cache reset so a load started before a logout
        # cannot repopulate the cache afterwards
        self._epoch = 0
        self.last_error: Optional[TrackTideError] = None
        self._unsubscribe = session.subscribe(self._on_session_change)

    def close(self) -> None:
        self._unsubscribe()

    def clear_error(self) -> None:
        self.last_error = None

    def load(self) -> StoreResult:
        with self._lock:
            epoch = self._epoch
        return self._run("load", lambda: self._load(epoch))

    def _load(self, epoch: int) -> Any:
        raise NotImplementedError

    def _reset(self) -> None:
        raise NotImplementedError

    def _current_epoch(self, epoch: int) -> bool:
        return epoch == self._epoch

    def _on_session_change(self, change: SessionChange) -> None:
        if change.kind == LOGOUT:
            with self._lock:
                self._epoch += 1
                self._reset()
                self.last_error = None
        elif change.kind == LOGIN:
            self.load()

    def _require_session(self) -> None:
        if not self._session.is_authenticated:
            raise AuthError("Authentication required")

    def _run(self, operation: str, func: Callable[[], Any], *, needs_session: bool = True) -> StoreResult:
        try:
            if needs_session:
                self._require_session()
            value = func()
        except TrackTideError as exc:
            logger.warning("%s store: %s failed: %s", self.name, operation, exc.message)
            self.last_error = exc
            return StoreResult.failure(exc)
        except (KeyError, TypeError, ValueError):
            logger.exception("%s store: malformed response during %s", self.name, operation)
            error = TrackTideError("Unexpected response from the TrackTide server")
            self.last_error = error
            return StoreResult.failure(error)
        self.last_error = None
        return StoreResult.success(value)


__all__ = ["StoreResult", "LibraryStore"]
