"""Play history store with an optional bounded auto refresh."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from tracktide.client.models import PlayRecord, Track
from tracktide.client.session import PeriodicTask
from tracktide.client.stores.base import LibraryStore, StoreResult
from tracktide.settings import MAX_POLL_SECONDS

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


class PlayHistoryStore(LibraryStore):
    name = "play-history"

    def __init__(self, api, session, refresh_seconds: float = 30.0) -> None:
        self._records: List[PlayRecord] = []
        self.refresh_seconds = min(float(refresh_seconds), MAX_POLL_SECONDS)
        self._refresher: Optional[PeriodicTask] = None
        super().__init__(api, session)

    @property
    def records(self) -> Tuple[PlayRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def _reset(self) -> None:
        self._records = []

    def _load(self, epoch: int):
        payload = self._api.get("/history")
        records = [PlayRecord.from_api(item) for item in payload.get("playHistory") or []]
        with self._lock:
            if self._current_epoch(epoch):
                self._records = records
        return self.records

    def record_play(self, track: Track) -> StoreResult:
        """Upsert a play; the record moves to the top of the history."""

        def _record():
            payload = self._api.post("/history", json=track.to_song_payload())
            record = PlayRecord.from_api(payload["playRecord"])
            with self._lock:
                others = [rec for rec in self._records if rec.track.id != record.track.id]
                self._records = ([record] + others)[:HISTORY_LIMIT]
            return record

        return self._run("record_play", _record)

    def start_auto_refresh(self, interval: Optional[float] = None) -> None:
        seconds = self.refresh_seconds if interval is None else min(float(interval), MAX_POLL_SECONDS)
        with self._lock:
            if self._refresher is not None and self._refresher.running:
                return
            self._refresher = PeriodicTask(self._refresh, seconds, name="tracktide-history-refresh")
            self._refresher.start()

    def stop_auto_refresh(self) -> None:
        with self._lock:
            refresher, self._refresher = self._refresher, None
        if refresher is not None:
            refresher.stop()

    def _refresh(self) -> None:
        if self._session.is_authenticated:
            self.load()

    def close(self) -> None:
        self.stop_auto_refresh()
        super().close()


__all__ = ["PlayHistoryStore", "HISTORY_LIMIT"]
