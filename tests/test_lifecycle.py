import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from pinyin_quiz.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from pinyin_quiz.db.models import Question, VocabTest, Word
from pinyin_quiz.db.vocabulary import WORDS
from pinyin_quiz.models.quiz import QuizState
from pinyin_quiz.services.lifecycle import LifecycleManager, parse_int


def _questions(store, session):
    with store.read() as db:
        return db.execute(
            select(Question.question_number, Question.word_id)
            .where(Question.test_id == session)
            .order_by(Question.question_number)
        ).all()


def _test_count(store):
    with store.read() as db:
        return db.execute(select(func.count()).select_from(VocabTest)).scalar_one()


def test_start_materializes_all_questions(lifecycle, store, session_token):
    first = lifecycle.start(session_token, 10)

    assert first.testID == session_token
    assert first.questionNumber == 1
    assert first.totalQuestions == 10

    rows = _questions(store, session_token)
    assert [n for n, _ in rows] == list(range(1, 11))
    assert len({w for _, w in rows}) == 10

    status = lifecycle.status(session_token)
    assert status.state == QuizState.in_progress
    assert status.currentQuestion == 1


def test_start_whole_vocabulary(lifecycle, store, session_token):
    lifecycle.start(session_token, len(WORDS))
    rows = _questions(store, session_token)
    assert len(rows) == len(WORDS)
    assert len({w for _, w in rows}) == len(WORDS)


def test_second_start_conflicts(lifecycle, store, session_token):
    lifecycle.start(session_token, 3)
    with pytest.raises(ConflictError):
        lifecycle.start(session_token, 3)
    assert _test_count(store) == 1
    assert len(_questions(store, session_token)) == 3


@pytest.mark.parametrize("count", [0, -3, len(WORDS) + 1])
def test_start_rejects_out_of_range_count(lifecycle, store, session_token, count):
    with pytest.raises(ValidationError):
        lifecycle.start(session_token, count)
    assert _test_count(store) == 0


def test_max_questions_lowers_the_cap(store, session_token):
    lc = LifecycleManager(store, max_questions=5)
    assert lc.question_cap() == 5
    with pytest.raises(ValidationError):
        lc.start(session_token, 6)
    lc.start(session_token, 5)


def test_start_unknown_session(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.start("f" * 32, 3)


def test_failed_insert_leaves_no_partial_test(store, session_token):
    class DuplicateSequencer:
        def sequence(self, word_ids, count):
            return [(n, word_ids[0]) for n in range(1, count + 1)]

    lc = LifecycleManager(store, sequencer=DuplicateSequencer())
    with pytest.raises(IntegrityError):
        lc.start(session_token, 4)

    assert _test_count(store) == 0
    assert _questions(store, session_token) == []
    assert lc.status(session_token).state == QuizState.no_test


def test_resume_returns_current_question(lifecycle, session_token):
    first = lifecycle.start(session_token, 4)
    page = lifecycle.resume(session_token)
    assert page.view == "question"
    assert page.question == first


def test_resume_without_test(lifecycle, session_token):
    with pytest.raises(NotFoundError):
        lifecycle.resume(session_token)


def test_delete_removes_test_and_questions(lifecycle, store, session_token):
    lifecycle.start(session_token, 6)
    lifecycle.delete(session_token)

    assert _test_count(store) == 0
    assert _questions(store, session_token) == []
    with pytest.raises(NotFoundError):
        lifecycle.resume(session_token)
    assert lifecycle.status(session_token).state == QuizState.no_test


def test_delete_without_test(lifecycle, session_token):
    with pytest.raises(NotFoundError):
        lifecycle.delete(session_token)


def test_start_again_after_delete(lifecycle, store, session_token):
    lifecycle.start(session_token, 3)
    lifecycle.delete(session_token)
    first = lifecycle.start(session_token, 7)
    assert first.totalQuestions == 7
    assert len(_questions(store, session_token)) == 7


def test_sessions_do_not_share_tests(lifecycle, identity, session_token):
    other = identity.resolve(None)
    lifecycle.start(session_token, 2)
    assert lifecycle.status(other).state == QuizState.no_test
    lifecycle.start(other, 3)
    assert lifecycle.status(session_token).totalQuestions == 2


def test_authorize(lifecycle, session_token):
    lifecycle.authorize(session_token, session_token)
    for bad in (None, "", "0" * 32, "é" * 32):
        with pytest.raises(AuthorizationError):
            lifecycle.authorize(session_token, bad)


def test_score_requires_completed_test(lifecycle, session_token):
    lifecycle.start(session_token, 2)
    with pytest.raises(ConflictError):
        lifecycle.score(session_token)


def test_vocabulary_is_seeded_once(store):
    from pinyin_quiz.db.vocabulary import seed_vocabulary

    seed_vocabulary(store)
    with store.read() as db:
        assert db.execute(select(func.count(Word.id))).scalar_one() == len(WORDS)


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "2.5"])
def test_parse_int_rejects(raw):
    with pytest.raises(ValidationError):
        parse_int(raw, "number-of-questions")


def test_parse_int_accepts():
    assert parse_int(" 12 ", "n") == 12
