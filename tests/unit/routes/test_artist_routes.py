import pytest

from tests.support.stubs import catalog_artist


@pytest.mark.unit
def test_follow_and_list_following(client, auth_headers, catalog_stub):
    catalog_stub.artists["27"] = catalog_artist(27, "Daft Punk")

    resp = client.post("/api/artists/27/follow", headers=auth_headers)
    assert resp.status_code == 201
    data = resp.get_json()
    assert data["message"] == "Artist followed successfully"
    assert data["follow"]["followedId"] == "27"
    assert data["follow"]["followedType"] == "artist"

    artists = client.get("/api/artists/following", headers=auth_headers).get_json()["artists"]
    assert len(artists) == 1
    assert artists[0]["name"] == "Daft Punk"
    assert artists[0]["isFollowing"] is True
    assert artists[0]["followedAt"] == data["follow"]["followedAt"]


@pytest.mark.unit
def test_follow_twice_is_rejected(client, auth_headers):
    client.post("/api/artists/27/follow", headers=auth_headers)
    resp = client.post("/api/artists/27/follow", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Already following this artist", "code": "conflict"}


@pytest.mark.unit
def test_unfollow(client, auth_headers):
    client.post("/api/artists/27/follow", headers=auth_headers)

    resp = client.delete("/api/artists/27/follow", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["removedFollow"]["followedId"] == "27"
    assert client.get("/api/artists/following", headers=auth_headers).get_json()["artists"] == []

    again = client.delete("/api/artists/27/follow", headers=auth_headers)
    assert again.status_code == 404
    assert again.get_json()["error"] == "Not following this artist"


@pytest.mark.unit
def test_following_skips_artists_the_catalog_cannot_resolve(client, auth_headers, catalog_stub):
    client.post("/api/artists/13/follow", headers=auth_headers)
    client.post("/api/artists/27/follow", headers=auth_headers)
    catalog_stub.failing_artists.add("13")

    resp = client.get("/api/artists/following", headers=auth_headers)
    assert resp.status_code == 200
    assert [artist["id"] for artist in resp.get_json()["artists"]] == [27]


@pytest.mark.unit
def test_popular_artists_anonymous(app, client):
    app.config["POPULAR_ARTIST_IDS"] = [13, 27, 412]

    resp = client.get("/api/artists/popular")
    assert resp.status_code == 200
    artists = resp.get_json()["artists"]
    assert sorted(artist["id"] for artist in artists) == [13, 27, 412]
    assert all(artist["isFollowing"] is False for artist in artists)


@pytest.mark.unit
def test_popular_artists_flags_followed(app, client, auth_headers):
    app.config["POPULAR_ARTIST_IDS"] = [13, 27]
    client.post("/api/artists/27/follow", headers=auth_headers)

    artists = client.get("/api/artists/popular", headers=auth_headers).get_json()["artists"]
    flags = {artist["id"]: artist["isFollowing"] for artist in artists}
    assert flags == {13: False, 27: True}


@pytest.mark.unit
def test_popular_artists_respects_limit(app, client):
    app.config["POPULAR_ARTIST_IDS"] = list(range(1, 11))

    artists = client.get("/api/artists/popular?limit=3").get_json()["artists"]
    assert len(artists) == 3
    assert len({artist["id"] for artist in artists}) == 3


@pytest.mark.unit
def test_follow_routes_require_auth(client):
    assert client.get("/api/artists/following").status_code == 401
    assert client.post("/api/artists/27/follow").status_code == 401
    assert client.delete("/api/artists/27/follow").status_code == 401
