#!/usr/bin/env python
"""
Deezer catalog client.

Searches tracks and resolves artists through Deezer's public API, mapping
their payloads to the song/artist shapes the API serves. Every transport or
payload problem surfaces as a CatalogError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from tracktide.errors import CatalogError
from tracktide.utils.cache import TTLCache

logger = logging.getLogger(__name__)

# Deezer reports quota exhaustion inside a 200 body with this error code
_QUOTA_ERROR_CODE = 4
_ARTIST_PLACEHOLDER = 'https://via.placeholder.com/300x300?text=Artist'


def map_track(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a Deezer track object into the song shape served by the API."""
    artist = raw.get('artist') or {}
    album = raw.get('album') or {}
    if raw.get('id') is None or not raw.get('title'):
        raise CatalogError('Malformed track in catalog response')
    return {
        'id': raw['id'],
        'title': raw['title'],
        'artist': artist.get('name') or 'Unknown Artist',
        'album': album.get('title') or '',
        'duration': int(raw.get('duration') or 0),
        'preview': raw.get('preview') or '',
        'cover': album.get('cover_medium') or '',
        'cover_small': album.get('cover_small') or '',
        'artistPicture': artist.get('picture_medium') or '',
        'link': raw.get('link') or '',
    }


def map_artist(raw: Dict[str, Any], fallback_id: Any = None) -> Dict[str, Any]:
    picture = raw.get('picture_medium') or _ARTIST_PLACEHOLDER
    return {
        'id': raw.get('id') or fallback_id,
        'name': raw.get('name') or 'Unknown Artist',
        'picture': picture,
        'picture_big': raw.get('picture_big') or picture,
        'followers': raw.get('nb_fan') or 0,
        'genre': raw.get('genre') or 'Unknown',
    }


class DeezerCatalog:
    def __init__(
        self,
        base_url: str = 'https://api.deezer.com',
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        artist_cache: Optional[TTLCache] = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._artist_cache = artist_cache or TTLCache(maxsize=256, ttl=300)

    def _get(self, path: str, params: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise CatalogError('Music catalog timed out') from exc
        except requests.RequestException as exc:
            raise CatalogError('Music catalog is unreachable') from exc

        if response.status_code == 429:
            raise CatalogError('Music catalog rate limit reached', rate_limited=True)
        if response.status_code >= 400:
            raise CatalogError(f'Music catalog returned HTTP {response.status_code}')
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError('Malformed catalog response') from exc
        if not isinstance(payload, dict):
            raise CatalogError('Malformed catalog response')

        error = payload.get('error')
        if error:
            code = error.get('code') if isinstance(error, dict) else None
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise CatalogError(
                f'Music catalog error: {message}',
                rate_limited=code == _QUOTA_ERROR_CODE,
            )
        return payload

    def search(self, query: str) -> Tuple[List[Dict[str, Any]], int]:
        payload = self._get('/search', params={'q': query})
        data = payload.get('data') or []
        if not isinstance(data, list):
            raise CatalogError('Malformed catalog response')
        songs = []
        for raw in data:
            try:
                songs.append(map_track(raw))
            except CatalogError:
                logger.warning("Skipping malformed catalog track: %r", raw)
        total = payload.get('total')
        return songs, int(total) if isinstance(total, int) else len(songs)

    def get_artist(self, artist_id: Any) -> Dict[str, Any]:
        key = ('artist', str(artist_id))
        return self._artist_cache.get_or_load(
            key,
            lambda: map_artist(self._get(f'/artist/{artist_id}'), fallback_id=artist_id),
        )

    def get_artists(self, artist_ids) -> List[Dict[str, Any]]:
        """Resolve several artists, skipping the ones the catalog cannot serve."""
        artists = []
        for artist_id in artist_ids:
            try:
                artists.append(self.get_artist(artist_id))
            except CatalogError as exc:
                logger.error("Error fetching artist %s: %s", artist_id, exc)
        return artists


__all__ = ["DeezerCatalog", "map_track", "map_artist"]
