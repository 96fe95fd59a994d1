"""
Cycle de vie d'un test : NO_TEST -> IN_PROGRESS -> COMPLETE, suppression
possible depuis tout état.

Toutes les mutations passent par `Store.write(key=session)` : une transaction,
verrou de session + verrou d'écriture, rollback complet en cas d'erreur.
"""
from __future__ import annotations

import hmac
import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from pinyin_quiz.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from pinyin_quiz.db.database import Store
from pinyin_quiz.db.models import Question, SessionRecord, VocabTest, Word
from pinyin_quiz.models.quiz import (
    AnswerFeedback,
    QuestionOut,
    QuizPage,
    QuizState,
    QuizStatus,
    ScoreSummary,
)
from pinyin_quiz.services.sequencer import QuestionSequencer

logger = logging.getLogger(__name__)


def parse_int(raw: Optional[str], name: str) -> int:
    """
    Convertit un paramètre de requête en entier, ValidationError sinon.
    """
    if raw is None or raw.strip() == "":
        raise ValidationError(f"Paramètre '{name}' manquant.")
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError(f"Paramètre '{name}' invalide : entier attendu.")


class LifecycleManager:
    def __init__(
        self,
        store: Store,
        sequencer: Optional[QuestionSequencer] = None,
        max_questions: int = 0,
    ) -> None:
        self.store = store
        self.sequencer = sequencer or QuestionSequencer()
        self.max_questions = max_questions

    # ---------- public API ----------

    def authorize(self, session: str, test_id: Optional[str]) -> None:
        """
        Seul contrôle d'appartenance "ce test est-il celui de cette session".
        L'identifiant d'un test est le jeton de la session propriétaire.
        """
        if not test_id or not hmac.compare_digest(str(test_id).encode(), str(session).encode()):
            raise AuthorizationError("Ce test n'appartient pas à votre session.")

    def question_cap(self, db: Optional[Session] = None) -> int:
        if db is None:
            with self.store.read() as rdb:
                return self.question_cap(rdb)
        size = int(db.execute(select(func.count(Word.id))).scalar_one())
        if self.max_questions > 0:
            return min(size, self.max_questions)
        return size

    def start(self, session: str, desired_count: int) -> QuestionOut:
        """
        Crée le test et ses N questions dans une seule transaction.
        """
        with self.store.write(key=session) as db:
            if db.get(SessionRecord, session) is None:
                raise NotFoundError("Session inconnue.")
            if db.get(VocabTest, session) is not None:
                raise ConflictError("Un test est déjà en cours pour cette session.")

            cap = self.question_cap(db)
            if not (1 <= desired_count <= cap):
                raise ValidationError(f"Le nombre de questions doit être compris entre 1 et {cap}.")

            word_ids = db.execute(select(Word.id).order_by(Word.id)).scalars().all()
            positions = self.sequencer.sequence(word_ids, desired_count)

            test = VocabTest(session_token=session, total_questions=desired_count, current_question=1)
            db.add(test)
            db.add_all(
                Question(test_id=session, question_number=number, word_id=word_id)
                for number, word_id in positions
            )
            db.flush()

            first = self.question_at(db, test, 1)
            logger.info("test started (%d questions)", desired_count)
            return first

    def resume(self, session: str) -> QuizPage:
        """
        Question courante, ou score final si le test est terminé.
        """
        with self.store.read() as db:
            test = self.load_test(db, session)
            if test.is_complete:
                return QuizPage(view="score", result=self.build_score(db, test))
            return QuizPage(view="question", question=self.question_at(db, test, test.current_question))

    def status(self, session: str) -> QuizStatus:
        with self.store.read() as db:
            test = db.get(VocabTest, session)
            if test is None:
                return QuizStatus(state=QuizState.no_test)
            return QuizStatus(
                state=QuizState.complete if test.is_complete else QuizState.in_progress,
                testID=test.session_token,
                currentQuestion=test.current_question,
                totalQuestions=test.total_questions,
            )

    def score(self, session: str) -> ScoreSummary:
        with self.store.read() as db:
            test = self.load_test(db, session)
            if not test.is_complete:
                raise ConflictError("Le test n'est pas terminé.")
            return self.build_score(db, test)

    def delete(self, session: str) -> None:
        """
        Supprime le test et toutes ses questions (atomique).
        """
        with self.store.write(key=session) as db:
            self.load_test(db, session)
            db.execute(delete(Question).where(Question.test_id == session))
            db.execute(delete(VocabTest).where(VocabTest.session_token == session))
            logger.info("test deleted")

    # ---------- helpers (aussi utilisés par AnswerRecorder) ----------

    def load_test(self, db: Session, session: str) -> VocabTest:
        test = db.get(VocabTest, session)
        if test is None:
            raise NotFoundError("Aucun test en cours.")
        return test

    def question_at(self, db: Session, test: VocabTest, number: int) -> QuestionOut:
        q = db.execute(
            select(Question).where(
                Question.test_id == test.session_token,
                Question.question_number == number,
            )
        ).scalar_one_or_none()
        if q is None:
            raise NotFoundError(f"Question {number} introuvable.")
        return QuestionOut(
            testID=test.session_token,
            questionNumber=q.question_number,
            totalQuestions=test.total_questions,
            character=q.word.character,
        )

    def build_score(self, db: Session, test: VocabTest) -> ScoreSummary:
        """
        score = nombre de réponses strictement égales au pinyin du mot.
        """
        score = db.execute(
            select(func.count(Question.id))
            .join(Word, Word.id == Question.word_id)
            .where(
                Question.test_id == test.session_token,
                Question.submitted_answer == Word.pinyin,
            )
        ).scalar_one()

        questions = db.execute(
            select(Question)
            .where(Question.test_id == test.session_token)
            .order_by(Question.question_number)
        ).scalars().all()

        return ScoreSummary(
            testID=test.session_token,
            score=int(score),
            total=test.total_questions,
            details=[feedback_for(q) for q in questions],
        )


def feedback_for(q: Question) -> AnswerFeedback:
    return AnswerFeedback(
        questionNumber=q.question_number,
        character=q.word.character,
        correctPinyin=q.word.pinyin,
        userAnswer=q.submitted_answer,
        isCorrect=q.submitted_answer is not None and q.submitted_answer == q.word.pinyin,
    )
