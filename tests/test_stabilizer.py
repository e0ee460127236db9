import pytest

from vision.stabilizer import RecognitionDebouncer, SessionRecognitionState, advance


def run(frames, required_hits=3, commit=None, state=None):
    state = state or SessionRecognitionState()
    confirmed_at = []
    for i, ids in enumerate(frames):
        state, newly = advance(state, ids, required_hits, commit)
        confirmed_at.extend((i, sid) for sid in newly)
    return state, confirmed_at


def test_confirms_on_third_consecutive_hit():
    state, confirmed_at = run([["S1"], ["S1"], ["S1"]])
    assert confirmed_at == [(2, "S1")]
    assert state.is_confirmed("S1")
    assert state.hits("S1") == 0


def test_single_miss_restarts_count():
    state, confirmed_at = run([["S1"], ["S1"], [], ["S1"], ["S1"]])
    assert confirmed_at == []
    assert not state.is_confirmed("S1")
    assert state.hits("S1") == 2


def test_confirmed_at_most_once():
    calls = []

    def commit(sid):
        calls.append(sid)
        return True

    state, confirmed_at = run([["S1"]] * 10, commit=commit)
    assert calls == ["S1"]
    assert confirmed_at == [(2, "S1")]


def test_failed_commit_leaves_student_eligible():
    results = iter([False, True])
    calls = []

    def commit(sid):
        calls.append(sid)
        return next(results)

    state, confirmed_at = run([["S1"]] * 6, commit=commit)
    assert calls == ["S1", "S1"]
    assert confirmed_at == [(5, "S1")]
    assert state.is_confirmed("S1")


def test_independent_counters_per_student():
    frames = [["S1", "S2"], ["S1"], ["S1", "S2"], ["S2"], ["S2"]]
    state, confirmed_at = run(frames)
    assert confirmed_at == [(2, "S1"), (4, "S2")]
    assert state.confirmed == frozenset({"S1", "S2"})


def test_duplicate_ids_in_one_frame_count_once():
    state, _ = run([["S1", "S1", "S1"]])
    assert state.hits("S1") == 1
    assert not state.is_confirmed("S1")


def test_required_hits_of_one_confirms_immediately():
    _, confirmed_at = run([["S1"]], required_hits=1)
    assert confirmed_at == [(0, "S1")]


def test_required_hits_must_be_positive():
    with pytest.raises(ValueError):
        advance(SessionRecognitionState(), ["S1"], 0)


def test_advance_does_not_mutate_input_state():
    start = SessionRecognitionState()
    mid, _ = advance(start, ["S1"], 3)
    after, _ = advance(mid, [], 3)
    assert start.hit_counters == {}
    assert mid.hit_counters == {"S1": 1}
    assert after.hit_counters == {}


def test_debouncer_reset_forgets_everything():
    d = RecognitionDebouncer(required_hits=2)
    d.step(["S1"])
    assert d.step(["S1"]) == ["S1"]
    d.reset()
    assert d.state == SessionRecognitionState()
    assert d.step(["S1"]) == []


def test_two_hits_miss_three_hits_confirms_once():
    calls = []

    def commit(sid):
        calls.append(sid)
        return True

    frames = [["S1"], ["S1"], [], ["S1"], ["S1"], ["S1"]]
    state, confirmed_at = run(frames, commit=commit)
    assert confirmed_at == [(5, "S1")]
    assert calls == ["S1"]
    assert state.is_confirmed("S1")
