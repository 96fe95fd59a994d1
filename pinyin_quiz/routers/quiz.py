from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from pinyin_quiz.core.deps import get_lifecycle, get_recorder, get_session_token
from pinyin_quiz.models.quiz import (
    AnswerResponse,
    HomeView,
    QuestionOut,
    QuizPage,
    QuizState,
)
from pinyin_quiz.services.answers import AnswerRecorder
from pinyin_quiz.services.lifecycle import LifecycleManager, parse_int

router = APIRouter(tags=["quiz"])


def _home(session: str, lifecycle: LifecycleManager) -> HomeView:
    status = lifecycle.status(session)
    view = "start-test" if status.state == QuizState.no_test else "resume-test"
    return HomeView(view=view, maxQuestions=lifecycle.question_cap(), test=status)


@router.get("/", response_model=HomeView)
def home(
    session: str = Depends(get_session_token),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
):
    return _home(session, lifecycle)


@router.post("/tests", response_model=QuestionOut, status_code=HTTP_201_CREATED)
def create_test(
    number_of_questions: Optional[str] = Query(None, alias="number-of-questions"),
    session: str = Depends(get_session_token),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
):
    count = parse_int(number_of_questions, "number-of-questions")
    return lifecycle.start(session, count)


@router.get("/tests/{token}", response_model=QuizPage)
def get_test(
    token: str,
    session: str = Depends(get_session_token),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
):
    lifecycle.authorize(session, token)
    return lifecycle.resume(session)


@router.patch("/question", response_model=AnswerResponse)
def answer_question(
    test_id: Optional[str] = Query(None, alias="testID"),
    question_number: Optional[str] = Query(None, alias="questionNumber"),
    user_answer: Optional[str] = Query(None, alias="userAnswer"),
    session: str = Depends(get_session_token),
    recorder: AnswerRecorder = Depends(get_recorder),
):
    number = parse_int(question_number, "questionNumber")
    return recorder.submit_answer(session, test_id, number, user_answer)


@router.delete("/tests/{token}", response_model=HomeView)
def delete_test(
    token: str,
    session: str = Depends(get_session_token),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
):
    lifecycle.authorize(session, token)
    lifecycle.delete(session)
    return _home(session, lifecycle)
