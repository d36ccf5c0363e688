#!/usr/bin/env python
"""
Client session context: the bearer credential and the signed-in user.

The credential is persisted in a small JSON document under the fixed keys
"token" and "user"; removing "token" is the logout signal. Changes made in
this process are pushed synchronously to subscribers. Changes made by another
process are only picked up by SessionWatcher, which polls the file at a
bounded interval.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from tracktide.settings import MAX_POLL_SECONDS

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"

LOGIN = "login"
LOGOUT = "logout"


@dataclass(frozen=True)
class SessionChange:
    kind: str
    token: Optional[str]
    user: Optional[dict]


SessionListener = Callable[[SessionChange], None]


class MemorySessionStorage:
    """Process-local storage, for embedding and tests."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(data or {})
        self._lock = threading.RLock()

    def read(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def write(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self._data = dict(data)


class FileSessionStorage:
    """JSON document on disk, rewritten atomically."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.RLock()

    def read(self) -> Dict[str, Any]:
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except FileNotFoundError:
                return {}
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
                return {}
            return data if isinstance(data, dict) else {}

    def write(self, data: Dict[str, Any]) -> None:
        with self._lock:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".session-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except Exception:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise


class SessionContext:
    """Holds the credential and notifies subscribers on login/logout."""

    def __init__(self, storage) -> None:
        self._storage = storage
        self._lock = threading.RLock()
        self._listeners: Dict[int, SessionListener] = {}
        self._next_id = 1
        stored = storage.read()
        self._token: Optional[str] = stored.get(TOKEN_KEY) or None
        self._user: Optional[dict] = stored.get(USER_KEY) if self._token else None

    @property
    def token(self) -> Optional[str]:
        with self._lock:
            return self._token

    @property
    def user(self) -> Optional[dict]:
        with self._lock:
            return dict(self._user) if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            sid = self._next_id
            self._next_id += 1
            self._listeners[sid] = listener

        def _unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(sid, None)

        return _unsubscribe

    def login(self, token: str, user: Optional[dict] = None) -> None:
        if not token:
            raise ValueError("token must not be empty")
        with self._lock:
            data = self._storage.read()
            data[TOKEN_KEY] = token
            data[USER_KEY] = user
            self._storage.write(data)
            self._token = token
            self._user = dict(user) if user else None
        logger.info("Session started for %s", (user or {}).get("email", "unknown user"))
        self._notify(SessionChange(LOGIN, token, user))

    def logout(self) -> None:
        with self._lock:
            data = self._storage.read()
            data.pop(TOKEN_KEY, None)
            data.pop(USER_KEY, None)
            self._storage.write(data)
            was_authenticated = self._token is not None
            self._token = None
            self._user = None
        if was_authenticated:
            logger.info("Session ended")
            self._notify(SessionChange(LOGOUT, None, None))

    def refresh_from_storage(self) -> bool:
        """Adopt a credential change written by another process.

        Returns True when the stored credential differed from ours and
        subscribers were notified.
        """
        stored = self._storage.read()
        token = stored.get(TOKEN_KEY) or None
        user = stored.get(USER_KEY) if token else None
        with self._lock:
            if token == self._token:
                return False
            self._token = token
            self._user = dict(user) if user else None
        change = SessionChange(LOGIN, token, user) if token else SessionChange(LOGOUT, None, None)
        self._notify(change)
        return True

    def _notify(self, change: SessionChange) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.exception("Session listener failed on %s", change.kind)


class PeriodicTask:
    """Runs ``func`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, func: Callable[[], Any], interval: float, name: str = "tracktide-periodic") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.func = func
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.func()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)


class SessionWatcher(PeriodicTask):
    """Fallback poll for credential changes made outside this process."""

    def __init__(self, session: SessionContext, interval: float = 5.0) -> None:
        interval = min(float(interval), MAX_POLL_SECONDS)
        super().__init__(session.refresh_from_storage, interval, name="tracktide-session-watcher")
        self.session = session


__all__ = [
    "TOKEN_KEY",
    "USER_KEY",
    "LOGIN",
    "LOGOUT",
    "SessionChange",
    "MemorySessionStorage",
    "FileSessionStorage",
    "SessionContext",
    "PeriodicTask",
    "SessionWatcher",
]
