#!/usr/bin/env python
"""
Playlist store.

Memberships are held in a sparse position index per playlist: entries are
keyed by song id and carry the position the server assigned. Removing a song
leaves a gap; the next add takes max(position) + 1. Order is computed on
read (position ascending, newer additions first on ties).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Set, Tuple

from tracktide.client.models import PlaylistEntry, PlaylistSummary, Track
from tracktide.client.stores.base import LibraryStore, StoreResult
from tracktide.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class PositionIndex:
    """Sparse ordered index of playlist entries."""

    def __init__(self, entries=()) -> None:
        self._entries: Dict[str, PlaylistEntry] = {}
        for entry in entries:
            self.insert(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, song_id) -> bool:
        return str(song_id) in self._entries

    def insert(self, entry: PlaylistEntry) -> None:
        self._entries[entry.track.id] = entry

    def remove(self, song_id) -> Optional[PlaylistEntry]:
        return self._entries.pop(str(song_id), None)

    def next_position(self) -> int:
        return max((entry.position for entry in self._entries.values()), default=0) + 1

    def ordered(self) -> List[PlaylistEntry]:
        # Two-pass stable sort: newest first, then by position
        entries = sorted(self._entries.values(), key=lambda e: e.added_at, reverse=True)
        entries.sort(key=lambda e: e.position)
        return entries

    def positions(self) -> List[int]:
        return [entry.position for entry in self.ordered()]

    def total_duration(self) -> int:
        return sum(entry.track.duration for entry in self._entries.values())


class PlaylistStore(LibraryStore):
    name = "playlists"

    def __init__(self, api, session) -> None:
        self._playlists: Dict[int, PlaylistSummary] = {}
        self._indexes: Dict[int, PositionIndex] = {}
        # (playlist id, song id) pairs known to be members
        self._members: Set[Tuple[int, str]] = set()
        super().__init__(api, session)

    @property
    def playlists(self) -> Tuple[PlaylistSummary, ...]:
        with self._lock:
            items = list(self._playlists.values())
        items.sort(key=lambda p: (p.updated_at, p.id), reverse=True)
        return tuple(items)

    def summary(self, playlist_id: int) -> Optional[PlaylistSummary]:
        with self._lock:
            return self._playlists.get(int(playlist_id))

    def songs(self, playlist_id: int) -> List[PlaylistEntry]:
        with self._lock:
            index = self._indexes.get(int(playlist_id))
            return index.ordered() if index is not None else []

    def contains(self, playlist_id: int, song_id) -> bool:
        with self._lock:
            return (int(playlist_id), str(song_id)) in self._members

    def _reset(self) -> None:
        self._playlists = {}
        self._indexes = {}
        self._members = set()

    def _load(self, epoch: int):
        payload = self._api.get("/playlists")
        playlists = {}
        members = set()
        for item in payload.get("playlists") or []:
            summary = PlaylistSummary.from_api(item)
            playlists[summary.id] = summary
            for song in item.get("songs") or []:
                members.add((summary.id, str(song["songId"])))
        with self._lock:
            if self._current_epoch(epoch):
                self._playlists = playlists
                self._members = members
                self._indexes = {pid: idx for pid, idx in self._indexes.items() if pid in playlists}
        return self.playlists

    def _require_known(self, playlist_id: int) -> PlaylistSummary:
        with self._lock:
            summary = self._playlists.get(playlist_id)
        if summary is None:
            raise NotFoundError("Playlist not found")
        return summary

    def _sync_summary(
        self,
        playlist_id: int,
        updated_at: Optional[str] = None,
        *,
        delta: int = 0,
        duration: int = 0,
    ) -> None:
        """Refresh the aggregates of one playlist summary.

        With a full index the counts are recomputed from it. A playlist only
        known from load() has no index yet, so the server totals are shifted
        by the acknowledged change instead.
        """
        summary = self._playlists.get(playlist_id)
        if summary is None:
            return
        index = self._indexes.get(playlist_id)
        if index is not None:
            song_count, total_duration = len(index), index.total_duration()
        else:
            song_count = max(0, summary.song_count + delta)
            total_duration = max(0, summary.total_duration + delta * duration)
        self._playlists[playlist_id] = replace(
            summary,
            song_count=song_count,
            total_duration=total_duration,
            updated_at=updated_at or summary.updated_at,
        )

    def create(self, name: str, description: str = "", is_public: bool = False) -> StoreResult:
        def _create():
            if not (name or "").strip():
                raise ValidationError("Playlist name is required")
            payload = self._api.post(
                "/playlists",
                json={"name": name, "description": description, "isPublic": is_public},
            )
            summary = PlaylistSummary.from_api(payload["playlist"])
            with self._lock:
                self._playlists[summary.id] = summary
                self._indexes[summary.id] = PositionIndex()
            return summary

        return self._run("create", _create)

    def get(self, playlist_id: int) -> StoreResult:
        """Fetch one playlist with its songs and refresh the local index."""
        playlist_id = int(playlist_id)

        def _get():
            payload = self._api.get(f"/playlists/{playlist_id}")
            summary = PlaylistSummary.from_api(payload["playlist"])
            index = PositionIndex(PlaylistEntry.from_api(item) for item in payload.get("songs") or [])
            with self._lock:
                self._playlists[playlist_id] = summary
                self._indexes[playlist_id] = index
                self._members = {m for m in self._members if m[0] != playlist_id}
                self._members.update((playlist_id, entry.track.id) for entry in index.ordered())
                return summary, index.ordered()

        return self._run("get", _get)

    def update(
        self,
        playlist_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> StoreResult:
        playlist_id = int(playlist_id)

        def _update():
            body = {}
            if name is not None:
                if not name.strip():
                    raise ValidationError("Playlist name is required")
                body["name"] = name
            if description is not None:
                body["description"] = description
            if is_public is not None:
                body["isPublic"] = is_public
            payload = self._api.put(f"/playlists/{playlist_id}", json=body)
            summary = PlaylistSummary.from_api(payload["playlist"])
            with self._lock:
                self._playlists[playlist_id] = summary
            return summary

        return self._run("update", _update)

    def delete(self, playlist_id: int) -> StoreResult:
        playlist_id = int(playlist_id)

        def _delete():
            self._api.delete(f"/playlists/{playlist_id}")
            with self._lock:
                removed = self._playlists.pop(playlist_id, None)
                self._indexes.pop(playlist_id, None)
                self._members = {m for m in self._members if m[0] != playlist_id}
            return removed

        return self._run("delete", _delete)

    def add_track(self, playlist_id: int, track: Track) -> StoreResult:
        playlist_id = int(playlist_id)

        def _add():
            self._require_known(playlist_id)
            if self.contains(playlist_id, track.id):
                raise ConflictError("Song is already in this playlist")
            payload = self._api.post(f"/playlists/{playlist_id}/songs", json=track.to_song_payload())
            entry = PlaylistEntry.from_api(payload["playlistSong"])
            with self._lock:
                index = self._indexes.get(playlist_id)
                if index is not None:
                    index.insert(entry)
                self._members.add((playlist_id, entry.track.id))
                self._sync_summary(playlist_id, entry.added_at, delta=1, duration=entry.track.duration)
            return entry

        return self._run("add_track", _add)

    def remove_track(self, playlist_id: int, song_id) -> StoreResult:
        playlist_id = int(playlist_id)
        song_id = str(song_id)

        def _remove():
            self._require_known(playlist_id)
            if not self.contains(playlist_id, song_id):
                raise NotFoundError("Song not found in playlist")
            payload = self._api.delete(f"/playlists/{playlist_id}/songs/{song_id}")
            removed = PlaylistEntry.from_api(payload["removedSong"])
            with self._lock:
                self._members.discard((playlist_id, song_id))
                index = self._indexes.get(playlist_id)
                if index is not None:
                    removed = index.remove(song_id) or removed
                self._sync_summary(playlist_id, delta=-1, duration=removed.track.duration)
            return removed

        return self._run("remove_track", _remove)


__all__ = ["PlaylistStore", "PositionIndex"]
