import logging
import re
import secrets
from typing import Optional

from sqlalchemy import select

from pinyin_quiz.core.errors import GenerationError
from pinyin_quiz.db.database import Store
from pinyin_quiz.db.models import SessionRecord

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16  # 128 bits
_TOKEN_RE = re.compile(r"^[0-9a-f]{32}$")


def is_well_formed(token: Optional[str]) -> bool:
    return bool(token) and _TOKEN_RE.match(token) is not None


class SessionIdentityProvider:
    """
    Émet et valide les jetons de session anonymes.
    Un jeton bien formé mais inconnu (ligne perdue) est recréé à la volée.
    """

    def __init__(self, store: Store) -> None:
        self.store = store

    def issue(self) -> str:
        try:
            return secrets.token_hex(TOKEN_BYTES)
        except (NotImplementedError, OSError) as e:
            logger.error("randomness source unavailable: %s", e)
            raise GenerationError("Impossible de générer un identifiant de session.") from e

    def validate(self, token: Optional[str]) -> bool:
        if not is_well_formed(token):
            return False

        with self.store.read() as db:
            exists = db.get(SessionRecord, token) is not None
        if exists:
            return True

        self._register(token, healed=True)
        return True

    def resolve(self, token: Optional[str]) -> str:
        """
        Retourne un jeton utilisable : celui fourni s'il est valide, sinon un
        nouveau jeton enregistré en base.
        """
        if self.validate(token):
            return token  # type: ignore[return-value]

        new_token = self.issue()
        self._register(new_token, healed=False)
        return new_token

    def _register(self, token: str, *, healed: bool) -> None:
        with self.store.write() as db:
            # re-vérification sous verrou : une requête concurrente a pu la créer
            found = db.execute(
                select(SessionRecord.token).where(SessionRecord.token == token)
            ).scalar_one_or_none()
            if found is None:
                db.add(SessionRecord(token=token))
                if healed:
                    logger.info("session record re-created for known token")
                else:
                    logger.info("new session issued")
