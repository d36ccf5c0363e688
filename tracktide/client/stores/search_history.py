"""Search history store; also the entry point for catalog searches."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Tuple

from tracktide.client.models import SearchEntry, SearchResults
from tracktide.client.stores.base import LibraryStore, StoreResult
from tracktide.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_HISTORY_LIMIT = 5


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat()


class SearchHistoryStore(LibraryStore):
    name = "search-history"

    def __init__(self, api, session) -> None:
        self._entries: List[SearchEntry] = []
        super().__init__(api, session)

    @property
    def entries(self) -> Tuple[SearchEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    @property
    def queries(self) -> List[str]:
        return [entry.query for entry in self.entries]

    def _reset(self) -> None:
        self._entries = []

    def _load(self, epoch: int):
        payload = self._api.get("/search/history")
        entries = [SearchEntry.from_api(item) for item in payload.get("history") or []]
        with self._lock:
            if self._current_epoch(epoch):
                self._entries = entries[:SEARCH_HISTORY_LIMIT]
        return self.entries

    def search(self, query: str) -> StoreResult:
        """Search the catalog; signed-in searches are remembered."""
        query = (query or "").strip()

        def _search():
            if not query:
                raise ValidationError("Query parameter 'q' is required")
            tracks, total = self._api.search(query)
            if self._session.is_authenticated:
                self._remember(query)
            return SearchResults(tracks=tuple(tracks), total=total, query=query)

        return self._run("search", _search, needs_session=False)

    def _remember(self, query: str) -> None:
        # Mirrors the server upsert: an existing query moves to the front
        with self._lock:
            existing = next((e for e in self._entries if e.query == query), None)
            others = [e for e in self._entries if e.query != query]
            entry = SearchEntry(
                id=existing.id if existing else 0,
                query=query,
                timestamp=_now_iso(),
            )
            self._entries = ([entry] + others)[:SEARCH_HISTORY_LIMIT]
        if existing is None:
            # The server assigned the id; fetch it so remove() can target it
            self.load()

    def remove(self, entry_id: int) -> StoreResult:
        entry_id = int(entry_id)

        def _remove():
            with self._lock:
                known = any(e.id == entry_id for e in self._entries)
            if not known:
                raise NotFoundError("Search history item not found")
            self._api.delete(f"/search/history/{entry_id}")
            with self._lock:
                self._entries = [e for e in self._entries if e.id != entry_id]
            return entry_id

        return self._run("remove", _remove)


__all__ = ["SearchHistoryStore", "SEARCH_HISTORY_LIMIT"]
