"""Library state stores kept in step with the backend."""

from .base import LibraryStore, StoreResult
from .favorites import FavoritesStore
from .follows import FollowStore
from .history import PlayHistoryStore
from .playlists import PlaylistStore, PositionIndex
from .search_history import SearchHistoryStore

__all__ = [
    "LibraryStore",
    "StoreResult",
    "FavoritesStore",
    "FollowStore",
    "PlayHistoryStore",
    "PlaylistStore",
    "PositionIndex",
    "SearchHistoryStore",
]
