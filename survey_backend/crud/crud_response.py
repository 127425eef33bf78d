import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from .. import errors, models

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedResponse:
    response_id: int
    survey_id: int
    survey_title: str
    submitted_at: Optional[datetime]


def _check_submission(survey_id, respondent_name, respondent_email, answers) -> None:
    if survey_id is None:
        raise errors.ValidationError(details="'survey_id' is required")
    for field, value in (
        ("respondent_name", respondent_name),
        ("respondent_email", respondent_email),
    ):
        if value is None or not str(value).strip():
            raise errors.ValidationError(details=f"'{field}' must be a non-empty string")
    if not isinstance(answers, list):
        raise errors.ValidationError(details="'answers' must be an array")


async def record_response(
    db: AsyncSession,
    survey_id: int,
    respondent_name: str,
    respondent_email: str,
    answers: List[Tuple[int, str]],
) -> RecordedResponse:
    """Persist one response and its answers atomically.

    ``answers`` is a list of ``(question_id, value)`` pairs; rows are inserted
    in that order. Every question must belong to ``survey_id``. Any failure
    rolls back the whole submission and is raised as :class:`RecordingFailed`.
    An empty answer list is accepted, and identical submissions are recorded
    as separate responses.
    """
    _check_submission(survey_id, respondent_name, respondent_email, answers)

    try:
        async with db.begin():
            survey = await db.get(models.Survey, survey_id)
            if survey is None:
                raise errors.RecordingFailed(
                    details=f"survey {survey_id} does not exist"
                )

            response = models.Response(
                survey_id=survey_id,
                respondent_name=respondent_name,
                respondent_email=respondent_email,
            )
            db.add(response)
            await db.flush()  # assigns the response id
            await db.refresh(response)

            question_ids = set(
                (
                    await db.execute(
                        select(models.Question.id).where(
                            models.Question.survey_id == survey_id
                        )
                    )
                ).scalars()
            )
            for position, (question_id, value) in enumerate(answers):
                if question_id not in question_ids:
                    raise errors.RecordingFailed(
                        details=f"answer {position}: question {question_id} "
                        f"does not belong to survey {survey_id}"
                    )
                # The unit of work emits INSERTs in the order objects were added
                db.add(
                    models.Answer(
                        response_id=response.id,
                        question_id=question_id,
                        answer_value=value,
                    )
                )
            await db.flush()

            recorded = RecordedResponse(
                response_id=response.id,
                survey_id=survey_id,
                survey_title=survey.title,
                submitted_at=response.submitted_at,
            )
    except errors.RecordingFailed:
        logger.warning("Rolled back submission for survey %s", survey_id)
        raise
    except SQLAlchemyError as exc:
        logger.exception("Error saving survey response for survey %s", survey_id)
        raise errors.RecordingFailed(details=str(exc)) from exc

    logger.info(
        "Response %s recorded for survey %s with %d answers",
        recorded.response_id,
        survey_id,
        len(answers),
    )
    return recorded


def answer_pairs(answers: Iterable) -> List[Tuple[int, str]]:
    """``(question_id, answer_value)`` pairs from request answer objects."""
    return [(answer.question_id, answer.answer_value) for answer in answers]


async def get_response(db: AsyncSession, response_id: int) -> models.Response:
    result = await db.execute(
        select(models.Response)
        .options(selectinload(models.Response.answers))
        .where(models.Response.id == response_id)
    )
    response = result.scalar_one_or_none()
    if response is None:
        raise errors.NotFoundError("Response not found")
    return response


async def list_responses(db: AsyncSession, survey_id: int) -> List[models.Response]:
    if await db.get(models.Survey, survey_id) is None:
        raise errors.NotFoundError("Survey not found")
    result = await db.execute(
        select(models.Response)
        .options(selectinload(models.Response.answers))
        .where(models.Response.survey_id == survey_id)
        .order_by(models.Response.id)
    )
    return list(result.scalars().all())
