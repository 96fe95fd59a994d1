import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from pinyin_quiz.core.config import get_settings
from pinyin_quiz.db.database import Store
from pinyin_quiz.db.models import Question, Word
from pinyin_quiz.db.vocabulary import seed_vocabulary
from pinyin_quiz.main import create_app
from pinyin_quiz.services.answers import AnswerRecorder
from pinyin_quiz.services.identity import SessionIdentityProvider
from pinyin_quiz.services.lifecycle import LifecycleManager
from pinyin_quiz.services.sequencer import QuestionSequencer


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """
    Settings isolés : base SQLite temporaire, variables d'env de test.
    """
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("APP_NAME", "Pinyin Quiz API (tests)")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'quiz.db'}")
    monkeypatch.setenv("WRITE_LOCK_TIMEOUT_SECONDS", "2")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    # IMPORTANT: vider le cache des settings pour prendre en compte les env
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def test_client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def store(settings):
    s = Store(settings.DATABASE_URL, write_timeout=2.0)
    s.init_schema()
    seed_vocabulary(s)
    yield s
    s.dispose()


@pytest.fixture
def identity(store):
    return SessionIdentityProvider(store)


@pytest.fixture
def lifecycle(store):
    return LifecycleManager(store, sequencer=QuestionSequencer(random.Random(1234)))


@pytest.fixture
def recorder(lifecycle):
    return AnswerRecorder(lifecycle)


@pytest.fixture
def session_token(identity):
    return identity.resolve(None)


@pytest.fixture
def answer_key():
    """
    answer_key(store, session, n) -> pinyin attendu pour la question n.
    """
    def _lookup(store, session, number):
        with store.read() as db:
            return db.execute(
                select(Word.pinyin)
                .join(Question, Question.word_id == Word.id)
                .where(Question.test_id == session, Question.question_number == number)
            ).scalar_one()
    return _lookup
