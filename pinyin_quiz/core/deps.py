from typing import Iterator

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from pinyin_quiz.core.config import Settings, get_settings
from pinyin_quiz.core.security import set_session_cookie
from pinyin_quiz.db.database import Store
from pinyin_quiz.services.answers import AnswerRecorder
from pinyin_quiz.services.identity import SessionIdentityProvider
from pinyin_quiz.services.lifecycle import LifecycleManager


def get_settings_dep(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(store: Store = Depends(get_store)) -> Iterator[Session]:
    """
    Session en lecture seule (les écritures passent par les services).
    """
    with store.read() as db:
        yield db


def get_identity(request: Request) -> SessionIdentityProvider:
    return request.app.state.identity


def get_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.lifecycle


def get_recorder(request: Request) -> AnswerRecorder:
    return request.app.state.recorder


def get_session_token(
    request: Request,
    response: Response,
    identity: SessionIdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings_dep),
) -> str:
    """
    Résout (ou crée) la session du client et (re)pose le cookie.
    Le jeton est aussi gardé sur `request.state` pour les réponses d'erreur.
    """
    token = identity.resolve(request.cookies.get(settings.SESSION_COOKIE_NAME))
    request.state.session_token = token
    set_session_cookie(response, token, settings)
    return token
