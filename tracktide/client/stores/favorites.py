"""Favorites store: liked songs keyed by song id."""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from tracktide.client.models import FavoriteRecord, Track
from tracktide.client.stores.base import LibraryStore, StoreResult
from tracktide.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class FavoritesStore(LibraryStore):
    name = "favorites"

    def __init__(self, api, session) -> None:
        self._records: Dict[str, FavoriteRecord] = {}
        super().__init__(api, session)

    @property
    def favorites(self) -> Tuple[FavoriteRecord, ...]:
        with self._lock:
            records: List[FavoriteRecord] = list(self._records.values())
        records.sort(key=lambda rec: (rec.liked_at, rec.id), reverse=True)
        return tuple(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def is_favorite(self, song_id) -> bool:
        with self._lock:
            return str(song_id) in self._records

    def _reset(self) -> None:
        self._records = {}

    def _load(self, epoch: int):
        payload = self._api.get("/favorites")
        records = [FavoriteRecord.from_api(item) for item in payload.get("favorites") or []]
        with self._lock:
            if self._current_epoch(epoch):
                self._records = {rec.track.id: rec for rec in records}
        return self.favorites

    def add(self, track: Track, context: str = "search") -> StoreResult:
        def _add():
            if self.is_favorite(track.id):
                raise ConflictError("Song is already in favorites")
            body = dict(track.to_song_payload(), context=context)
            payload = self._api.post("/favorites", json=body)
            record = FavoriteRecord.from_api(payload["favorite"])
            with self._lock:
                self._records[record.track.id] = record
            return record

        return self._run("add", _add)

    def remove(self, song_id) -> StoreResult:
        song_id = str(song_id)

        def _remove():
            if not self.is_favorite(song_id):
                raise NotFoundError("Song not found in favorites")
            self._api.delete(f"/favorites/{song_id}")
            with self._lock:
                return self._records.pop(song_id, None)

        return self._run("remove", _remove)

    def toggle(self, track: Track, context: str = "search") -> StoreResult:
        if self.is_favorite(track.id):
            return self.remove(track.id)
        return self.add(track, context)


__all__ = ["FavoritesStore"]
