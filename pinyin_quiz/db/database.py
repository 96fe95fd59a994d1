"""
Couche de persistance : engine SQLAlchemy, sessions lecture / écriture.

Écritures : une transaction par opération, ouverte en `BEGIN IMMEDIATE` sur
SQLite (SERIALIZABLE ailleurs), sous WriteGate + verrou de session.
Lectures : transaction différée, snapshot cohérent en WAL sans bloquer.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager, nullcontext
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pinyin_quiz.core.errors import FatalStartupError, TransientStoreError
from pinyin_quiz.db.transactions import KeyedLocks, WriteGate

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _install_sqlite_hooks(engine: Engine, busy_timeout_ms: int) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        # pysqlite n'émet plus son propre BEGIN : on le pilote dans _on_begin
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        if mode not in ("DEFERRED", "IMMEDIATE"):
            mode = "DEFERRED"
        conn.exec_driver_sql(f"BEGIN {mode}")


class Store:
    """
    Point d'accès unique à la base (créé par `create_app`, gardé sur app.state).
    """

    def __init__(
        self,
        url: str,
        *,
        write_timeout: float = 5.0,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        kwargs = {}
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, **kwargs)

        if self.is_sqlite:
            _install_sqlite_hooks(self.engine, busy_timeout_ms)
            write_engine = self.engine.execution_options(sqlite_begin="IMMEDIATE")
        else:
            write_engine = self.engine.execution_options(isolation_level="SERIALIZABLE")

        self._read_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self._write_factory = sessionmaker(bind=write_engine, autoflush=False, expire_on_commit=False)

        self.gate = WriteGate(timeout=write_timeout)
        self.session_locks = KeyedLocks(timeout=write_timeout)

    # ---------- schema ----------

    def init_schema(self) -> None:
        """
        Vérifie la connexion et crée les tables. Lève FatalStartupError si la
        base est injoignable.
        """
        from pinyin_quiz.db import models  # noqa: F401  (enregistre les tables)

        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error("database unreachable at startup: %s", e)
            raise FatalStartupError(f"Base injoignable ({self.url}): {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()

    # ---------- transactions ----------

    @contextmanager
    def read(self) -> Iterator[Session]:
        db = self._read_factory()
        try:
            yield db
        except OperationalError as e:
            logger.warning("read transaction failed (store busy?): %s", e)
            raise TransientStoreError("Base occupée, réessayez.") from e
        finally:
            db.close()

    @contextmanager
    def write(self, key: Optional[str] = None) -> Iterator[Session]:
        """
        Transaction d'écriture atomique : commit en sortie, rollback complet
        sur toute exception.
        """
        session_lock = self.session_locks.hold(key) if key else nullcontext()
        with session_lock, self.gate.hold():
            db = self._write_factory()
            try:
                yield db
                db.commit()
            except OperationalError as e:
                db.rollback()
                logger.warning("write transaction failed (store busy?): %s", e)
                raise TransientStoreError("Base occupée, réessayez.") from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()
