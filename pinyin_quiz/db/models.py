from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinyin_quiz.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRecord(Base):
    """Session anonyme (jeton du cookie). Jamais supprimée."""

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(32), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    test: Mapped[Optional["VocabTest"]] = relationship(
        "VocabTest",
        back_populates="session",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Word(Base):
    """Catalogue de vocabulaire (lecture seule)."""

    __tablename__ = "words"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    pinyin: Mapped[str] = mapped_column(String(64), nullable=False)


class VocabTest(Base):
    """
    Un test par session au plus : la clé primaire est le jeton du propriétaire.
    current_question va de 1 à total_questions + 1 (= terminé).
    """

    __tablename__ = "tests"
    __table_args__ = (
        CheckConstraint("total_questions >= 1", name="ck_tests_total_positive"),
        CheckConstraint(
            "current_question >= 1 AND current_question <= total_questions + 1",
            name="ck_tests_current_bounds",
        ),
    )

    session_token: Mapped[str] = mapped_column(
        ForeignKey("sessions.token", ondelete="CASCADE"),
        primary_key=True,
    )
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    current_question: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    session: Mapped["SessionRecord"] = relationship("SessionRecord", back_populates="test")
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.question_number",
    )

    @property
    def is_complete(self) -> bool:
        return self.current_question > self.total_questions


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("test_id", "question_number", name="uq_questions_position"),
        UniqueConstraint("test_id", "word_id", name="uq_questions_word"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.session_token", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    question_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..N
    word_id: Mapped[int] = mapped_column(ForeignKey("words.id"), nullable=False)

    submitted_answer: Mapped[str | None] = mapped_column(String(64), nullable=True)
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    test: Mapped["VocabTest"] = relationship("VocabTest", back_populates="questions")
    word: Mapped["Word"] = relationship("Word", lazy="joined")
