import logging
from typing import Optional

from sqlalchemy import select, update

from pinyin_quiz.core.errors import ConflictError, ValidationError
from pinyin_quiz.db.models import Question, VocabTest, utcnow
from pinyin_quiz.models.quiz import AnswerResponse
from pinyin_quiz.services.lifecycle import LifecycleManager, feedback_for

logger = logging.getLogger(__name__)

MAX_ANSWER_LENGTH = 64


class AnswerRecorder:
    """
    Enregistre une réponse, la corrige et fait avancer le test d'une question.
    Une question déjà répondue ne peut pas être resoumise (409).
    """

    def __init__(self, lifecycle: LifecycleManager) -> None:
        self.lifecycle = lifecycle
        self.store = lifecycle.store

    def submit_answer(
        self,
        session: str,
        test_id: Optional[str],
        question_number: int,
        answer: Optional[str],
    ) -> AnswerResponse:
        self.lifecycle.authorize(session, test_id)

        if answer is None or answer == "":
            raise ValidationError("Réponse manquante.")
        if len(answer) > MAX_ANSWER_LENGTH:
            raise ValidationError(f"Réponse trop longue (max {MAX_ANSWER_LENGTH} caractères).")

        with self.store.write(key=session) as db:
            test = self.lifecycle.load_test(db, session)
            if test.is_complete:
                raise ConflictError("Le test est déjà terminé.")

            question = db.execute(
                select(Question).where(
                    Question.test_id == session,
                    Question.question_number == question_number,
                )
            ).scalar_one_or_none()
            if question is None:
                raise ConflictError(
                    f"Question {question_number} hors séquence (question courante : {test.current_question})."
                )
            if question.submitted_answer is not None:
                raise ConflictError(f"La question {question_number} a déjà une réponse.")
            if question_number != test.current_question:
                raise ConflictError(
                    f"Question {question_number} hors séquence (question courante : {test.current_question})."
                )

            question.submitted_answer = answer
            question.answered_at = utcnow()
            db.flush()

            # avance conditionnelle : n'avance que depuis la position lue
            advanced = db.execute(
                update(VocabTest)
                .where(
                    VocabTest.session_token == session,
                    VocabTest.current_question == question_number,
                )
                .values(current_question=question_number + 1)
                .execution_options(synchronize_session=False)
            )
            if advanced.rowcount != 1:
                raise ConflictError("Le test a avancé entre-temps, réessayez.")
            db.refresh(test)

            feedback = feedback_for(question)

            if test.is_complete:
                result = self.lifecycle.build_score(db, test)
                logger.info("test completed: %d/%d", result.score, result.total)
                return AnswerResponse(feedback=feedback, complete=True, result=result)

            next_question = self.lifecycle.question_at(db, test, test.current_question)
            return AnswerResponse(feedback=feedback, complete=False, nextQuestion=next_question)
