import pytest
import requests

from tests.support.stubs import RaisingAdapter, make_track, song_payload
from tracktide.client.stores import FavoritesStore
from tracktide.errors import AuthError, ConflictError, NetworkError, NotFoundError, TrackTideError


@pytest.fixture
def favorites(api, client_session):
    store = FavoritesStore(api, client_session)
    yield store
    store.close()


@pytest.mark.unit
def test_login_loads_existing_favorites(api, client_session, favorites, signup, client):
    _, headers = signup(email="ada@example.com")
    client.post("/api/favorites", json=song_payload("1"), headers=headers)
    client.post("/api/favorites", json=song_payload("2"), headers=headers)

    api.login("ada@example.com", "secret123")

    assert [rec.track.id for rec in favorites.favorites] == ["2", "1"]
    assert favorites.is_favorite("1")


@pytest.mark.unit
def test_add_updates_cache_after_ack(api, favorites):
    api.signup("Ada", "ada@example.com", "secret123")

    result = favorites.add(make_track(1), context="playlist")

    assert result.ok
    assert result.value.track.id == "1"
    assert result.value.context == "playlist"
    assert favorites.is_favorite("1")
    assert len(favorites) == 1


@pytest.mark.unit
def test_duplicate_add_is_reported_without_network_call(api, favorites, sent_requests):
    api.signup("Ada", "ada@example.com", "secret123")
    favorites.add(make_track(1))
    before = len(sent_requests)

    result = favorites.add(make_track(1))

    assert not result.ok
    assert isinstance(result.error, ConflictError)
    assert result.message == "Song is already in favorites"
    assert len(favorites) == 1
    assert len(sent_requests) == before
    assert favorites.last_error is result.error


@pytest.mark.unit
def test_remove_and_remove_missing(api, favorites, sent_requests):
    api.signup("Ada", "ada@example.com", "secret123")
    favorites.add(make_track(1))

    removed = favorites.remove("1")
    assert removed.ok
    assert not favorites.is_favorite("1")

    before = len(sent_requests)
    missing = favorites.remove("1")
    assert isinstance(missing.error, NotFoundError)
    assert missing.message == "Song not found in favorites"
    assert len(sent_requests) == before


@pytest.mark.unit
def test_toggle(api, favorites):
    api.signup("Ada", "ada@example.com", "secret123")
    track = make_track(5)

    assert favorites.toggle(track).ok
    assert favorites.is_favorite("5")
    assert favorites.toggle(track).ok
    assert not favorites.is_favorite("5")


@pytest.mark.unit
def test_mutation_without_session_fails_locally(favorites, sent_requests):
    result = favorites.add(make_track(1))

    assert isinstance(result.error, AuthError)
    assert sent_requests == []
    assert len(favorites) == 0


@pytest.mark.unit
def test_logout_clears_cache(api, favorites):
    api.signup("Ada", "ada@example.com", "secret123")
    favorites.add(make_track(1))

    api.logout()
    assert len(favorites) == 0
    assert favorites.last_error is None


@pytest.mark.unit
def test_server_conflict_leaves_cache_unchanged(api, favorites, client, client_session):
    api.signup("Ada", "ada@example.com", "secret123")
    # Another device liked the song; our cache has not seen it yet
    client.post(
        "/api/favorites",
        json=song_payload("9"),
        headers={"Authorization": f"Bearer {client_session.token}"},
    )

    result = favorites.add(make_track(9))
    assert isinstance(result.error, ConflictError)
    assert len(favorites) == 0


@pytest.mark.unit
def test_network_failure_is_reported(client_session):
    from tracktide.client.api import ApiClient

    http = requests.Session()
    http.mount("http://tracktide.test", RaisingAdapter())
    api = ApiClient("http://tracktide.test/api", client_session, http=http)
    client_session.login("tok", {"id": 1})
    store = FavoritesStore(api, client_session)

    result = store.add(make_track(1))
    assert isinstance(result.error, NetworkError)
    assert len(store) == 0


@pytest.mark.unit
def test_malformed_response_is_reported(client_session):
    class BrokenApi:
        def get(self, path, **kwargs):
            return {"favorites": [{"songId": "1"}]}

    client_session.login("tok", {"id": 1})
    store = FavoritesStore(BrokenApi(), client_session)

    result = store.load()
    assert not result.ok
    assert type(result.error) is TrackTideError
    assert len(store) == 0


@pytest.mark.unit
def test_load_finishing_after_logout_is_discarded(client_session):
    class LogoutDuringLoadApi:
        def get(self, path, **kwargs):
            client_session.logout()
            return {
                "favorites": [
                    {
                        "id": 1,
                        "songId": "1",
                        "songTitle": "Track 1",
                        "artistName": "Daft Punk",
                        "albumName": "Discovery",
                        "duration": 201,
                        "cover": "c",
                        "preview": "p",
                        "likedAt": "2024-01-01T00:00:00",
                    }
                ]
            }

    client_session.login("tok", {"id": 1})
    store = FavoritesStore(LogoutDuringLoadApi(), client_session)

    store.load()
    assert len(store) == 0
