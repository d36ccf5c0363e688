import pytest
from hypothesis import assume, given, strategies as st

from tests.support.stubs import FakeAudioOutput, ImmediateExecutor, ManualScheduler, make_track
from tracktide.client.player import PlaybackEngine

track_ids = st.lists(st.integers(min_value=1, max_value=10_000), min_size=1, max_size=12, unique=True)


def _engine(recorder=None):
    return PlaybackEngine(
        FakeAudioOutput(),
        history_recorder=recorder,
        scheduler=ManualScheduler(),
        executor=ImmediateExecutor(),
    )


@pytest.mark.unit
@given(ids=track_ids, wanted=st.integers(min_value=1, max_value=10_000))
def test_set_current_queue_round_trip(ids, wanted):
    engine = _engine()
    tracks = [make_track(n) for n in ids]

    index = engine.set_current_queue(tracks, str(wanted))

    expected = ids.index(wanted) if wanted in ids else -1
    assert index == expected
    assert engine.state.current_index == expected


@pytest.mark.unit
@given(ids=track_ids, data=st.data())
def test_removing_before_current_keeps_current_track(ids, data):
    assume(len(ids) >= 2)
    engine = _engine()
    tracks = [make_track(n) for n in ids]
    current = data.draw(st.integers(min_value=1, max_value=len(ids) - 1))
    removed = data.draw(st.integers(min_value=0, max_value=current - 1))
    engine.set_current_queue(tracks, tracks[current].id)

    assert engine.remove_from_queue(removed) is True

    state = engine.state
    assert state.current_index == current - 1
    assert state.queue[state.current_index] is tracks[current]
    assert len(state.queue) == len(ids) - 1


@pytest.mark.unit
@given(ids=track_ids, data=st.data())
def test_removal_never_leaves_index_out_of_bounds(ids, data):
    engine = _engine()
    tracks = [make_track(n) for n in ids]
    current = data.draw(st.integers(min_value=0, max_value=len(ids) - 1))
    engine.set_current_queue(tracks, tracks[current].id)

    for _ in range(data.draw(st.integers(min_value=1, max_value=len(ids)))):
        queue = engine.state.queue
        if not queue:
            break
        engine.remove_from_queue(data.draw(st.integers(min_value=0, max_value=len(queue) - 1)))

    state = engine.state
    assert -1 <= state.current_index < max(len(state.queue), 1)
    if not state.queue:
        assert state.current_index == -1


@pytest.mark.unit
@given(ids=track_ids)
def test_next_on_last_track_restarts_it(ids):
    engine = _engine()
    tracks = [make_track(n) for n in ids]
    last = tracks[-1]
    engine.set_current_queue(tracks, last.id)
    engine.play(last)

    engine.next()

    state = engine.state
    assert state.current_index == len(tracks) - 1
    assert state.current_track == last
    assert state.is_playing


@pytest.mark.unit
@given(repeats=st.integers(min_value=1, max_value=5))
def test_replaying_a_track_keeps_one_history_entry(repeats):
    history = {}
    order = []

    def upsert(track):
        # Same shape as the server-side upsert: one row per track id, newest first
        history[track.id] = len(order)
        order.append(track.id)

    engine = _engine(upsert)
    track = make_track(1)
    for _ in range(repeats):
        engine.play(track)

    assert list(history) == [track.id]
    assert history[track.id] == repeats - 1
