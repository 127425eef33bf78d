import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from .. import errors, models
from ..schemas import QuestionCreate
from .question_options import validate_options

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise errors.ValidationError(details=f"'{field}' must be a non-empty string")
    return value


def _prepare_questions(questions: Sequence[QuestionCreate]) -> List[dict]:
    """Validate question definitions and assign 1-based order numbers."""
    if not questions:
        raise errors.ValidationError(details="'questions' must be a non-empty array")

    rows = []
    for position, question in enumerate(questions, start=1):
        _require_text(question.question_text, f"questions[{position - 1}].question_text")
        rows.append(
            {
                "question_text": question.question_text,
                "question_type": question.question_type,
                "options": validate_options(question.question_type, question.options),
                "required": question.required,
                # Client supplied order values are ignored
                "order_num": position,
            }
        )
    return rows


async def create_survey(
    db: AsyncSession,
    title: str,
    description: Optional[str],
    created_by: str,
    questions: Sequence[QuestionCreate],
) -> models.Survey:
    """Insert a survey and all of its questions in one transaction."""
    _require_text(title, "title")
    _require_text(created_by, "created_by")
    question_rows = _prepare_questions(questions)

    try:
        async with db.begin():
            survey = models.Survey(
                title=title, description=description, created_by=created_by
            )
            db.add(survey)
            await db.flush()  # assigns the survey id
            await db.refresh(survey)

            db.add_all(
                models.Question(survey_id=survey.id, **row) for row in question_rows
            )
            await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Error creating survey '%s'", title)
        raise errors.StorageError("Failed to create survey", details=str(exc)) from exc

    logger.info(
        "Survey %s created by '%s' with %d questions",
        survey.id,
        created_by,
        len(question_rows),
    )
    return survey


async def get_survey(db: AsyncSession, survey_id: int) -> models.Survey:
    result = await db.execute(
        select(models.Survey)
        .options(selectinload(models.Survey.questions))
        .where(models.Survey.id == survey_id)
    )
    survey = result.scalar_one_or_none()
    if survey is None:
        raise errors.NotFoundError("Survey not found")
    return survey


async def list_surveys(db: AsyncSession) -> List[models.Survey]:
    result = await db.execute(
        select(models.Survey).order_by(
            models.Survey.created_at.desc(), models.Survey.id.desc()
        )
    )
    return list(result.scalars().all())


async def update_survey(
    db: AsyncSession, survey_id: int, title: str, description: Optional[str]
) -> models.Survey:
    """Change title and description only; questions are immutable."""
    _require_text(title, "title")
    try:
        async with db.begin():
            survey = await db.get(models.Survey, survey_id)
            if survey is None:
                raise errors.NotFoundError("Survey not found")
            survey.title = title
            survey.description = description
            await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Error updating survey %s", survey_id)
        raise errors.StorageError("Failed to update survey", details=str(exc)) from exc
    return survey


async def delete_survey(db: AsyncSession, survey_id: int) -> None:
    """Delete a survey; the database cascades to questions, responses and answers."""
    try:
        async with db.begin():
            survey = await db.get(models.Survey, survey_id)
            if survey is None:
                raise errors.NotFoundError("Survey not found")
            await db.delete(survey)
    except SQLAlchemyError as exc:
        logger.exception("Error deleting survey %s", survey_id)
        raise errors.StorageError("Failed to delete survey", details=str(exc)) from exc
    logger.info("Survey %s deleted", survey_id)
