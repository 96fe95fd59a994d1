from fastapi import Response

from pinyin_quiz.core.config import Settings


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """
    Cookie de session anonyme : http-only, SameSite=Strict, longue durée.
    """
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="strict",
    )
