import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pinyin_quiz.core.config import Settings, get_settings
from pinyin_quiz.core.errors import FatalStartupError, QuizError
from pinyin_quiz.core.logging import setup_logging
from pinyin_quiz.core.security import set_session_cookie
from pinyin_quiz.db.database import Store
from pinyin_quiz.db.vocabulary import seed_vocabulary
from pinyin_quiz.routers import practice, quiz, system
from pinyin_quiz.services.answers import AnswerRecorder
from pinyin_quiz.services.identity import SessionIdentityProvider
from pinyin_quiz.services.lifecycle import LifecycleManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Usine de l'application : `uvicorn pinyin_quiz.main:create_app --factory`.
    Lève FatalStartupError si la base est injoignable.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json_output=settings.APP_ENV == "prod")

    store = Store(
        settings.DATABASE_URL,
        write_timeout=settings.WRITE_LOCK_TIMEOUT_SECONDS,
        busy_timeout_ms=settings.SQLITE_BUSY_TIMEOUT_MS,
    )
    store.init_schema()
    try:
        words = seed_vocabulary(store)
    except QuizError as e:
        raise FatalStartupError(f"Initialisation du vocabulaire impossible : {e.detail}") from e
    logger.info("store ready (%d words)", words)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        store.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API du quiz de vocabulaire chinois (caractère -> pinyin)",
        lifespan=lifespan,
    )

    lifecycle = LifecycleManager(store, max_questions=settings.MAX_QUESTIONS)
    app.state.settings = settings
    app.state.store = store
    app.state.identity = SessionIdentityProvider(store)
    app.state.lifecycle = lifecycle
    app.state.recorder = AnswerRecorder(lifecycle)

    # Middleware CORS
    origins = [o.strip() for o in (settings.CORS_ORIGINS or "").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError):
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "%s %s -> %d: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.detail,
            extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
        )
        headers = {"Retry-After": "1"} if exc.retryable else None
        response = JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "retryable": exc.retryable},
            headers=headers,
        )
        # session résolue avant l'erreur : le client doit recevoir son cookie
        token = getattr(request.state, "session_token", None)
        if token:
            set_session_cookie(response, token, settings)
        return response

    # Routers
    app.include_router(system.router)
    app.include_router(quiz.router)
    app.include_router(practice.router)

    return app
