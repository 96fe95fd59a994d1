from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Base
    APP_ENV: str = "dev"  # dev | test | prod
    APP_NAME: str = "Pinyin Quiz API"
    APP_VERSION: str = "0.1.0"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Storage
    DATABASE_URL: str = "sqlite:///./pinyin_quiz.db"
    SQLITE_BUSY_TIMEOUT_MS: int = 5000

    # Concurrence : attente max (secondes) du verrou d'écriture
    WRITE_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Tests de vocabulaire (0 = taille du vocabulaire)
    MAX_QUESTIONS: int = 0

    # Cookie de session anonyme
    SESSION_COOKIE_NAME: str = "session_id"
    SESSION_COOKIE_MAX_AGE: int = 10 * 365 * 24 * 60 * 60
    SESSION_COOKIE_SECURE: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
