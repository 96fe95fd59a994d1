"""
Mode entraînement : un mot au hasard, correction immédiate, sans test ni état.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pinyin_quiz.core.deps import get_db
from pinyin_quiz.core.errors import NotFoundError, ValidationError
from pinyin_quiz.db.models import Word
from pinyin_quiz.models.quiz import PracticeCheck, PracticeWord
from pinyin_quiz.services.lifecycle import parse_int

router = APIRouter(prefix="/practice", tags=["practice"])


@router.get("/random-word", response_model=PracticeWord)
def random_word(db: Session = Depends(get_db)):
    w = db.execute(select(Word).order_by(func.random()).limit(1)).scalar_one_or_none()
    if w is None:
        raise HTTPException(503, detail="Vocabulaire vide.")
    return PracticeWord(wordID=w.id, character=w.character)


@router.get("/check-answer", response_model=PracticeCheck)
def check_answer(
    word_id: Optional[str] = Query(None, alias="wordID"),
    user_answer: Optional[str] = Query(None, alias="userAnswer"),
    db: Session = Depends(get_db),
):
    wid = parse_int(word_id, "wordID")
    if not user_answer:
        raise ValidationError("Réponse manquante.")

    w = db.get(Word, wid)
    if w is None:
        raise NotFoundError("Mot introuvable.")

    # comparaison exacte, sans normalisation (casse, espaces, tons)
    return PracticeCheck(
        wordID=w.id,
        character=w.character,
        correctPinyin=w.pinyin,
        userAnswer=user_answer,
        isCorrect=user_answer == w.pinyin,
    )
