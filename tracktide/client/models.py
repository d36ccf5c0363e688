"""Immutable client-side records built from API payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Track:
    """Catalog song metadata plus its preview URI."""

    id: str
    title: str
    artist: str
    album: str
    duration: int
    preview: str
    cover: str = ""
    cover_small: str = ""
    artist_picture: str = ""
    link: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Track":
        """Build a track from either a search result or a stored song record."""
        if "songId" in data:
            return cls(
                id=_text(data["songId"]),
                title=_text(data.get("songTitle")),
                artist=_text(data.get("artistName")),
                album=_text(data.get("albumName")),
                duration=int(data.get("duration") or 0),
                preview=_text(data.get("preview")),
                cover=_text(data.get("cover")),
            )
        return cls(
            id=_text(data["id"]),
            title=_text(data.get("title")),
            artist=_text(data.get("artist")),
            album=_text(data.get("album")),
            duration=int(data.get("duration") or 0),
            preview=_text(data.get("preview")),
            cover=_text(data.get("cover")),
            cover_small=_text(data.get("cover_small")),
            artist_picture=_text(data.get("artistPicture")),
            link=_text(data.get("link")),
        )

    def to_song_payload(self) -> Dict[str, Any]:
        return {
            "songId": self.id,
            "songTitle": self.title,
            "artistName": self.artist,
            "albumName": self.album,
            "duration": self.duration,
            "cover": self.cover,
            "preview": self.preview,
        }


@dataclass(frozen=True)
class FavoriteRecord:
    id: int
    track: Track
    liked_at: str
    context: str = "search"

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "FavoriteRecord":
        return cls(
            id=int(data["id"]),
            track=Track.from_api(data),
            liked_at=_text(data.get("likedAt")),
            context=_text(data.get("context") or "search"),
        )


@dataclass(frozen=True)
class PlayRecord:
    id: int
    track: Track
    played_at: str
    completed: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "PlayRecord":
        return cls(
            id=int(data["id"]),
            track=Track.from_api(data),
            played_at=_text(data.get("playedAt")),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class PlaylistSummary:
    id: int
    name: str
    description: str = ""
    is_public: bool = False
    song_count: int = 0
    total_duration: int = 0
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "PlaylistSummary":
        return cls(
            id=int(data["id"]),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            is_public=bool(data.get("isPublic", False)),
            song_count=int(data.get("songCount") or 0),
            total_duration=int(data.get("totalDuration") or 0),
            created_at=_text(data.get("createdAt")),
            updated_at=_text(data.get("updatedAt")),
        )


@dataclass(frozen=True)
class PlaylistEntry:
    track: Track
    position: int
    added_at: str = ""
    added_by: Optional[int] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "PlaylistEntry":
        return cls(
            track=Track.from_api(data),
            position=int(data["position"]),
            added_at=_text(data.get("addedAt")),
            added_by=data.get("addedBy"),
        )


@dataclass(frozen=True)
class SearchEntry:
    id: int
    query: str
    timestamp: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "SearchEntry":
        return cls(id=int(data["id"]), query=_text(data["query"]), timestamp=_text(data.get("timestamp")))


@dataclass(frozen=True)
class SearchResults:
    tracks: tuple
    total: int
    query: str


@dataclass(frozen=True)
class Artist:
    id: str
    name: str
    picture: str = ""
    picture_big: str = ""
    followers: int = 0
    genre: str = ""
    is_following: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Artist":
        genre = data.get("genre")
        return cls(
            id=_text(data["id"]),
            name=_text(data.get("name")),
            picture=_text(data.get("picture")),
            picture_big=_text(data.get("picture_big")),
            followers=int(data.get("followers") or 0),
            genre=genre if isinstance(genre, str) else _text(genre),
            is_following=bool(data.get("isFollowing", False)),
        )


__all__ = [
    "Track",
    "FavoriteRecord",
    "PlayRecord",
    "PlaylistSummary",
    "PlaylistEntry",
    "SearchEntry",
    "SearchResults",
    "Artist",
]
