import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select, text

from pinyin_quiz.core.errors import ConflictError, TransientStoreError
from pinyin_quiz.db.models import Question, VocabTest
from pinyin_quiz.db.transactions import KeyedLocks, WriteGate


def _run_concurrently(fn, n):
    barrier = threading.Barrier(n)

    def _call(i):
        barrier.wait()
        try:
            return fn(i)
        except Exception as e:  # collecté pour assertion
            return e

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(_call, range(n)))


def test_concurrent_submissions_advance_once(lifecycle, recorder, store, session_token, answer_key):
    lifecycle.start(session_token, 3)
    answer = answer_key(store, session_token, 1)

    outcomes = _run_concurrently(
        lambda _i: recorder.submit_answer(session_token, session_token, 1, answer), 2
    )

    errors = [o for o in outcomes if isinstance(o, Exception)]
    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 1
    assert len(errors) == 1 and isinstance(errors[0], ConflictError)
    assert lifecycle.status(session_token).currentQuestion == 2


def test_many_concurrent_submissions(lifecycle, recorder, session_token):
    lifecycle.start(session_token, 5)
    outcomes = _run_concurrently(
        lambda i: recorder.submit_answer(session_token, session_token, 1, f"try{i}"), 8
    )
    assert sum(not isinstance(o, Exception) for o in outcomes) == 1
    assert all(isinstance(o, ConflictError) for o in outcomes if isinstance(o, Exception))
    assert lifecycle.status(session_token).currentQuestion == 2


def test_concurrent_starts_create_one_test(lifecycle, store, session_token):
    outcomes = _run_concurrently(lambda _i: lifecycle.start(session_token, 4), 6)

    assert sum(not isinstance(o, Exception) for o in outcomes) == 1
    assert all(isinstance(o, ConflictError) for o in outcomes if isinstance(o, Exception))
    with store.read() as db:
        assert db.execute(select(func.count()).select_from(VocabTest)).scalar_one() == 1
        assert db.execute(select(func.count(Question.id))).scalar_one() == 4


def test_concurrent_sessions_progress_independently(lifecycle, recorder, identity, store, answer_key):
    tokens = [identity.resolve(None) for _ in range(4)]

    def _play(i):
        token = tokens[i]
        lifecycle.start(token, 3)
        for n in range(1, 4):
            res = recorder.submit_answer(token, token, n, answer_key(store, token, n))
        return res

    outcomes = _run_concurrently(_play, 4)
    assert all(not isinstance(o, Exception) for o in outcomes), outcomes
    assert all(o.complete and o.result.score == 3 for o in outcomes)


def test_write_lock_wait_is_bounded(lifecycle, store, session_token):
    store.gate.timeout = 0.05
    with store.gate.hold():
        with pytest.raises(TransientStoreError) as exc:
            lifecycle.start(session_token, 2)
    assert exc.value.retryable is True

    # verrou relâché : l'opération passe
    lifecycle.start(session_token, 2)


def test_readers_are_not_blocked_by_write_lock(lifecycle, store, session_token):
    lifecycle.start(session_token, 2)
    store.gate.timeout = 0.05
    with store.gate.hold():
        assert lifecycle.resume(session_token).question.questionNumber == 1


def test_keyed_locks_timeout_and_cleanup():
    locks = KeyedLocks(timeout=0.05)
    held = threading.Event()
    release = threading.Event()

    def _holder():
        with locks.hold("abc"):
            held.set()
            release.wait(2)

    t = threading.Thread(target=_holder)
    t.start()
    held.wait(2)

    with pytest.raises(TransientStoreError):
        with locks.hold("abc"):
            pass
    # une autre clé n'est pas bloquée
    with locks.hold("other"):
        pass

    release.set()
    t.join(2)
    assert len(locks) == 0


def test_write_gate_releases_on_error():
    gate = WriteGate(timeout=0.05)
    with pytest.raises(RuntimeError):
        with gate.hold():
            raise RuntimeError("boom")
    with gate.hold():
        pass


def test_read_operational_error_is_retryable(store):
    # sqlite lève OperationalError ("no such table") comme pour "database is locked"
    with pytest.raises(TransientStoreError) as exc:
        with store.read() as db:
            db.execute(text("SELECT * FROM missing_table"))
    assert exc.value.retryable is True
