"""
Erreurs métier du moteur de quiz.

Chaque erreur porte son code HTTP ; le handler enregistré dans
`create_app` les convertit en réponse `{"detail": ...}`.
"""
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class QuizError(Exception):
    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(QuizError):
    """Entrée mal formée ou hors bornes."""
    status_code = HTTP_400_BAD_REQUEST


class AuthorizationError(QuizError):
    """Le test adressé n'appartient pas à la session."""
    status_code = HTTP_403_FORBIDDEN


class NotFoundError(QuizError):
    status_code = HTTP_404_NOT_FOUND


class ConflictError(QuizError):
    """Test déjà existant, réponse déjà enregistrée ou hors séquence."""
    status_code = HTTP_409_CONFLICT


class TransientStoreError(QuizError):
    """Verrou d'écriture non obtenu à temps / base occupée. Peut être rejouée."""
    status_code = HTTP_500_INTERNAL_SERVER_ERROR
    retryable = True


class GenerationError(QuizError):
    """Source d'aléa indisponible pour générer un jeton."""
    status_code = HTTP_500_INTERNAL_SERVER_ERROR


class FatalStartupError(RuntimeError):
    """Base injoignable au démarrage : le process ne doit pas démarrer."""
