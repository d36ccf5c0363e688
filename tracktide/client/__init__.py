#!/usr/bin/env python
"""
Client library: session context, library stores and the playback engine.

build_client() wires the pieces the way a view layer expects them: every
store and the engine subscribe to one SessionContext, the engine records
successful plays through the play history store, and a SessionWatcher picks
up logins/logouts made by other processes sharing the session file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tracktide.client.api import ApiClient
from tracktide.client.player import AudioOutput, PlaybackEngine
from tracktide.client.session import FileSessionStorage, SessionContext, SessionWatcher
from tracktide.client.stores import (
    FavoritesStore,
    FollowStore,
    PlayHistoryStore,
    PlaylistStore,
    SearchHistoryStore,
)
from tracktide.settings import ClientSettings, load_client_settings

logger = logging.getLogger(__name__)


@dataclass
class TrackTideClient:
    settings: ClientSettings
    session: SessionContext
    api: ApiClient
    favorites: FavoritesStore
    history: PlayHistoryStore
    playlists: PlaylistStore
    searches: SearchHistoryStore
    follows: FollowStore
    engine: PlaybackEngine
    watcher: Optional[SessionWatcher] = None
    _unsubscribers: List[Any] = field(default_factory=list, repr=False)

    @property
    def stores(self):
        return (self.favorites, self.history, self.playlists, self.searches, self.follows)

    def load_library(self) -> Dict[str, Any]:
        """Load every store; returns the StoreResult of each by name."""
        return {store.name: store.load() for store in self.stores}

    def close(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        for store in self.stores:
            store.close()
        self.engine.shutdown()


def build_client(
    audio: AudioOutput,
    *,
    settings: Optional[ClientSettings] = None,
    storage=None,
    http=None,
    scheduler=None,
    executor=None,
    watch_session: bool = True,
) -> TrackTideClient:
    settings = settings or load_client_settings()
    session = SessionContext(storage if storage is not None else FileSessionStorage(settings.session_file))
    api = ApiClient.from_settings(settings, session, http=http)

    history = PlayHistoryStore(api, session, refresh_seconds=settings.history_refresh_seconds)
    engine = PlaybackEngine(
        audio,
        history_recorder=history.record_play,
        auto_advance_delay=settings.auto_advance_delay,
        scheduler=scheduler,
        executor=executor,
        volume=settings.default_volume,
    )
    client = TrackTideClient(
        settings=settings,
        session=session,
        api=api,
        favorites=FavoritesStore(api, session),
        history=history,
        playlists=PlaylistStore(api, session),
        searches=SearchHistoryStore(api, session),
        follows=FollowStore(api, session),
        engine=engine,
    )
    client._unsubscribers.append(engine.bind_session(session))

    if watch_session:
        client.watcher = SessionWatcher(session, settings.session_poll_seconds)
        client.watcher.start()
    logger.info("TrackTide client ready against %s", settings.api_url)
    return client


__all__ = ["TrackTideClient", "build_client"]
