import json
import threading

import pytest

from tracktide.client.session import (
    LOGIN,
    LOGOUT,
    FileSessionStorage,
    MemorySessionStorage,
    PeriodicTask,
    SessionContext,
    SessionWatcher,
)
from tracktide.settings import MAX_POLL_SECONDS

USER = {"id": 1, "name": "Ada", "email": "ada@example.com"}


@pytest.mark.unit
def test_login_persists_and_notifies():
    storage = MemorySessionStorage()
    session = SessionContext(storage)
    changes = []
    session.subscribe(changes.append)

    session.login("tok-1", USER)

    assert session.is_authenticated
    assert session.token == "tok-1"
    assert session.user == USER
    assert storage.read() == {"token": "tok-1", "user": USER}
    assert [c.kind for c in changes] == [LOGIN]
    assert changes[0].token == "tok-1"


@pytest.mark.unit
def test_logout_clears_keys_and_notifies_once():
    storage = MemorySessionStorage({"theme": "dark"})
    session = SessionContext(storage)
    changes = []
    session.subscribe(changes.append)
    session.login("tok-1", USER)

    session.logout()
    session.logout()

    assert not session.is_authenticated
    assert session.user is None
    assert storage.read() == {"theme": "dark"}
    assert [c.kind for c in changes] == [LOGIN, LOGOUT]


@pytest.mark.unit
def test_empty_token_is_rejected():
    session = SessionContext(MemorySessionStorage())
    with pytest.raises(ValueError):
        session.login("", USER)
    assert not session.is_authenticated


@pytest.mark.unit
def test_restores_credential_from_storage():
    session = SessionContext(MemorySessionStorage({"token": "saved", "user": USER}))
    assert session.token == "saved"
    assert session.user == USER


@pytest.mark.unit
def test_user_without_token_is_ignored():
    session = SessionContext(MemorySessionStorage({"user": USER}))
    assert session.token is None
    assert session.user is None


@pytest.mark.unit
def test_unsubscribe_stops_notifications():
    session = SessionContext(MemorySessionStorage())
    changes = []
    unsubscribe = session.subscribe(changes.append)
    unsubscribe()
    unsubscribe()

    session.login("tok", USER)
    assert changes == []


@pytest.mark.unit
def test_failing_listener_does_not_block_others(caplog):
    session = SessionContext(MemorySessionStorage())
    seen = []

    def broken(change):
        raise RuntimeError("listener bug")

    session.subscribe(broken)
    session.subscribe(seen.append)

    session.login("tok", USER)

    assert [c.kind for c in seen] == [LOGIN]
    assert "Session listener failed" in caplog.text


@pytest.mark.unit
def test_refresh_adopts_external_login_and_logout():
    storage = MemorySessionStorage()
    session = SessionContext(storage)
    changes = []
    session.subscribe(changes.append)

    assert session.refresh_from_storage() is False

    storage.write({"token": "from-other-tab", "user": USER})
    assert session.refresh_from_storage() is True
    assert session.token == "from-other-tab"

    # Same credential again: nothing to do
    assert session.refresh_from_storage() is False

    storage.write({})
    assert session.refresh_from_storage() is True
    assert not session.is_authenticated
    assert [c.kind for c in changes] == [LOGIN, LOGOUT]


@pytest.mark.unit
def test_file_storage_roundtrip_and_shared_between_contexts(tmp_path):
    path = tmp_path / "nested" / "session.json"
    first = SessionContext(FileSessionStorage(str(path)))
    first.login("tok-file", USER)

    assert json.loads(path.read_text(encoding="utf-8")) == {"token": "tok-file", "user": USER}

    second = SessionContext(FileSessionStorage(str(path)))
    assert second.token == "tok-file"

    second.logout()
    assert first.refresh_from_storage() is True
    assert not first.is_authenticated


@pytest.mark.unit
@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", ""])
def test_file_storage_tolerates_garbage(tmp_path, content):
    path = tmp_path / "session.json"
    path.write_text(content, encoding="utf-8")
    storage = FileSessionStorage(str(path))

    assert storage.read() == {}
    assert SessionContext(storage).token is None


@pytest.mark.unit
def test_file_storage_missing_file_reads_empty(tmp_path):
    assert FileSessionStorage(str(tmp_path / "absent.json")).read() == {}


@pytest.mark.unit
def test_periodic_task_runs_until_stopped():
    ran = threading.Event()
    task = PeriodicTask(ran.set, interval=0.01, name="test-task")

    task.start()
    task.start()
    assert ran.wait(2.0)
    assert task.running

    task.stop(timeout=2.0)
    assert not task.running


@pytest.mark.unit
def test_periodic_task_survives_failures():
    calls = []
    done = threading.Event()

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first run fails")
        done.set()

    task = PeriodicTask(flaky, interval=0.01)
    task.start()
    try:
        assert done.wait(2.0)
    finally:
        task.stop(timeout=2.0)


@pytest.mark.unit
def test_periodic_task_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicTask(lambda: None, interval=0)


@pytest.mark.unit
def test_session_watcher_interval_is_capped():
    session = SessionContext(MemorySessionStorage())
    assert SessionWatcher(session, interval=120).interval == MAX_POLL_SECONDS
    assert SessionWatcher(session, interval=2).interval == 2.0


@pytest.mark.unit
def test_session_watcher_picks_up_external_logout():
    storage = MemorySessionStorage({"token": "tok", "user": USER})
    session = SessionContext(storage)
    logged_out = threading.Event()
    session.subscribe(lambda change: change.kind == LOGOUT and logged_out.set())

    watcher = SessionWatcher(session, interval=0.01)
    watcher.start()
    try:
        storage.write({})
        assert logged_out.wait(2.0)
    finally:
        watcher.stop(timeout=2.0)
    assert not session.is_authenticated
