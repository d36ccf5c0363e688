"""Artist follow store."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Tuple, Union

from tracktide.client.models import Artist
from tracktide.client.api import OPTIONAL
from tracktide.client.stores.base import LibraryStore, StoreResult
from tracktide.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

ARTIST = "artist"


class FollowStore(LibraryStore):
    name = "follows"

    def __init__(self, api, session) -> None:
        # Keyed by (followed type, followed id)
        self._following: Dict[Tuple[str, str], Artist] = {}
        super().__init__(api, session)

    @property
    def artists(self) -> Tuple[Artist, ...]:
        with self._lock:
            return tuple(a for (kind, _), a in self._following.items() if kind == ARTIST)

    def is_following(self, artist_id) -> bool:
        with self._lock:
            return (ARTIST, str(artist_id)) in self._following

    def _reset(self) -> None:
        self._following = {}

    def _load(self, epoch: int):
        payload = self._api.get("/artists/following")
        artists = [Artist.from_api(item) for item in payload.get("artists") or []]
        with self._lock:
            if self._current_epoch(epoch):
                self._following = {(ARTIST, a.id): replace(a, is_following=True) for a in artists}
        return self.artists

    def follow(self, artist: Union[Artist, str, int]) -> StoreResult:
        record = artist if isinstance(artist, Artist) else Artist(id=str(artist), name="")

        def _follow():
            if self.is_following(record.id):
                raise ConflictError("Already following this artist")
            self._api.post(f"/artists/{record.id}/follow")
            followed = replace(record, is_following=True)
            with self._lock:
                self._following[(ARTIST, followed.id)] = followed
            return followed

        return self._run("follow", _follow)

    def unfollow(self, artist_id) -> StoreResult:
        artist_id = str(artist_id)

        def _unfollow():
            if not self.is_following(artist_id):
                raise NotFoundError("Not following this artist")
            self._api.delete(f"/artists/{artist_id}/follow")
            with self._lock:
                return self._following.pop((ARTIST, artist_id), None)

        return self._run("unfollow", _unfollow)

    def popular(self, limit: int = 20) -> StoreResult:
        def _popular() -> List[Artist]:
            payload = self._api.get("/artists/popular", params={"limit": limit}, auth=OPTIONAL)
            return [Artist.from_api(item) for item in payload.get("artists") or []]

        return self._run("popular", _popular, needs_session=False)


__all__ = ["FollowStore"]
