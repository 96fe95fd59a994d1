from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class QuizState(str, Enum):
    no_test = "NO_TEST"
    in_progress = "IN_PROGRESS"
    complete = "COMPLETE"


class QuestionOut(BaseModel):
    testID: str
    questionNumber: int = Field(..., ge=1)
    totalQuestions: int = Field(..., ge=1)
    character: str = Field(..., description="Caractère(s) à transcrire en pinyin")
    # Le pinyin attendu n'est jamais renvoyé avant la réponse


class AnswerFeedback(BaseModel):
    questionNumber: int
    character: str
    correctPinyin: str
    userAnswer: Optional[str] = None
    isCorrect: bool = False


class ScoreSummary(BaseModel):
    testID: str
    score: int = Field(..., ge=0)
    total: int = Field(..., ge=1)
    details: List[AnswerFeedback]


class QuizPage(BaseModel):
    """Vue de GET /tests/{token} : question courante ou score final."""
    view: str  # question | score
    question: Optional[QuestionOut] = None
    result: Optional[ScoreSummary] = None


class AnswerResponse(BaseModel):
    feedback: AnswerFeedback
    complete: bool
    nextQuestion: Optional[QuestionOut] = None
    result: Optional[ScoreSummary] = None


class QuizStatus(BaseModel):
    state: QuizState
    testID: Optional[str] = None
    currentQuestion: Optional[int] = None
    totalQuestions: Optional[int] = None


class HomeView(BaseModel):
    view: str  # start-test | resume-test
    maxQuestions: int
    test: QuizStatus


class PracticeWord(BaseModel):
    wordID: int
    character: str


class PracticeCheck(BaseModel):
    wordID: int
    character: str
    correctPinyin: str
    userAnswer: str
    isCorrect: bool
