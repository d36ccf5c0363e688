from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from tracktide.settings import MAX_POLL_SECONDS, ClientSettings, load_client_settings


@pytest.mark.unit
def test_defaults():
    s = ClientSettings()
    assert s.api_url == "http://localhost:3001/api"
    assert s.session_poll_seconds == 5.0
    assert s.auto_advance_delay == 2.0
    assert s.history_refresh_seconds == 30.0
    assert s.request_timeout == 10.0
    assert s.default_volume == 0.5
    assert Path(s.session_file) == Path.home() / ".tracktide" / "session.json"


@pytest.mark.unit
def test_env_values_are_loaded(monkeypatch, tmp_path):
    monkeypatch.setenv("TRACKTIDE_API_URL", "https://tracktide.example/api/")
    monkeypatch.setenv("TRACKTIDE_SESSION_FILE", str(tmp_path / "s.json"))
    monkeypatch.setenv("TRACKTIDE_SESSION_POLL_SECONDS", "12")
    monkeypatch.setenv("TRACKTIDE_AUTO_ADVANCE_DELAY", "0")
    monkeypatch.setenv("TRACKTIDE_DEFAULT_VOLUME", "0.8")

    s = load_client_settings()
    assert s.api_url == "https://tracktide.example/api"
    assert s.session_file == str(tmp_path / "s.json")
    assert s.session_poll_seconds == 12.0
    assert s.auto_advance_delay == 0.0
    assert s.default_volume == 0.8


@pytest.mark.unit
def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("TRACKTIDE_REQUEST_TIMEOUT", "3")
    s = load_client_settings({"request_timeout": 7})
    assert s.request_timeout == 7.0


@pytest.mark.unit
def test_blank_env_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("TRACKTIDE_API_URL", "   ")
    monkeypatch.setenv("TRACKTIDE_SESSION_FILE", "")
    s = load_client_settings()
    assert s.api_url == "http://localhost:3001/api"
    assert s.session_file.endswith("session.json")


@pytest.mark.unit
@pytest.mark.parametrize(
    "field, raw, expected",
    [
        ("session_poll_seconds", "abc", 5.0),
        ("session_poll_seconds", -1, 5.0),
        ("session_poll_seconds", 0, 5.0),
        ("history_refresh_seconds", 300, MAX_POLL_SECONDS),
        ("auto_advance_delay", -3, 0.0),
        ("auto_advance_delay", "soon", 2.0),
        ("request_timeout", 0, 10.0),
        ("default_volume", 4, 1.0),
        ("default_volume", -0.5, 0.0),
    ],
)
def test_invalid_values_are_normalized(field, raw, expected):
    assert getattr(ClientSettings(**{field: raw}), field) == expected


@pytest.mark.unit
@given(st.floats(min_value=0.001, max_value=1e6, allow_nan=False, allow_infinity=False))
def test_poll_intervals_never_exceed_thirty_seconds(seconds):
    s = ClientSettings(session_poll_seconds=seconds, history_refresh_seconds=seconds)
    assert 0 < s.session_poll_seconds <= MAX_POLL_SECONDS
    assert 0 < s.history_refresh_seconds <= MAX_POLL_SECONDS
    assert s.session_poll_seconds == min(seconds, MAX_POLL_SECONDS)


@pytest.mark.unit
@given(st.floats(allow_nan=False, allow_infinity=False))
def test_volume_is_always_within_unit_range(volume):
    assert 0.0 <= ClientSettings(default_volume=volume).default_volume <= 1.0
