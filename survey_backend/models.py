from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Questions and responses are removed by the database cascade on survey delete
    questions = relationship(
        "Question",
        back_populates="survey",
        order_by="Question.order_num",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    responses = relationship(
        "Response",
        back_populates="survey",
        order_by="Response.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("survey_id", "order_num", name="uq_questions_survey_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(
        Integer, ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False
    )
    question_text = Column(Text, nullable=False)
    question_type = Column(String(50), nullable=False)  # text, multiple_choice, range
    options = Column(JSON, nullable=True)  # shape depends on question_type
    required = Column(Boolean, nullable=False, default=True)
    order_num = Column(Integer, nullable=False)

    survey = relationship("Survey", back_populates="questions")
    answers = relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Response(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(
        Integer, ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False
    )
    respondent_name = Column(String(255), nullable=False)
    respondent_email = Column(String(255), nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())

    survey = relationship("Survey", back_populates="responses")
    # Answers have no ordinal column; primary key order is their submission order
    answers = relationship(
        "Answer",
        back_populates="response",
        order_by="Answer.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Answer(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    response_id = Column(
        Integer,
        ForeignKey("responses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    answer_value = Column(Text, nullable=False)

    response = relationship("Response", back_populates="answers")
    question = relationship("Question", back_populates="answers")
