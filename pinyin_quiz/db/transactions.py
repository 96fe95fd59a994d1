"""
Verrous de coordination des écritures.

Ils ne contiennent aucun état métier : la base reste la seule source de vérité.
- WriteGate : un seul writer en vol à la fois dans le process, attente bornée.
- KeyedLocks : un verrou par jeton de session autour de start/answer/delete.
Ordre d'acquisition : verrou de session, puis WriteGate.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from pinyin_quiz.core.errors import TransientStoreError

logger = logging.getLogger(__name__)


class WriteGate:
    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._lock = threading.Lock()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.timeout):
            logger.warning("write lock not acquired within %.2fs", self.timeout)
            raise TransientStoreError("Base occupée, réessayez.")
        try:
            yield
        finally:
            self._lock.release()


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    """
    Un verrou par clé, libéré du registre quand plus personne ne l'utilise.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        acquired = entry.lock.acquire(timeout=self.timeout)
        try:
            if not acquired:
                logger.warning("session lock not acquired within %.2fs", self.timeout)
                raise TransientStoreError("Session occupée, réessayez.")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    self._entries.pop(key, None)
