"""Insert the Career Readiness Survey unless a survey with that title exists.

Run with ``python -m survey_backend.seed``.
"""
import asyncio
import logging

from sqlalchemy.future import select

from . import models
from .crud import crud_survey
from .database import AsyncSessionFactory, create_db_and_tables, engine
from .logging_setup import configure_logging
from .schemas import QuestionCreate

logger = logging.getLogger(__name__)

CAREER_SURVEY_TITLE = "Career Readiness Survey"
CONFIDENCE_SCALE = {
    "min": 0,
    "max": 10,
    "labels": ["Not confident at all", "Extremely confident"],
}

CAREER_QUESTIONS = [
    QuestionCreate(
        question_text="What type of career or industry are you most interested in pursuing?",
        question_type="text",
    ),
    QuestionCreate(
        question_text="Have you researched potential career paths that align with your major or skills?",
        question_type="multiple_choice",
        options=["Yes", "No"],
    ),
    QuestionCreate(
        question_text="How confident are you in understanding the skills required for your desired job?",
        question_type="range",
        options=CONFIDENCE_SCALE,
    ),
    QuestionCreate(
        question_text="Do you have a clear, long-term career plan?",
        question_type="multiple_choice",
        options=["Yes", "No", "Somewhat, but I need more guidance"],
    ),
    QuestionCreate(
        question_text="Do you have an updated and professional resume?",
        question_type="multiple_choice",
        options=["Yes", "No"],
    ),
    QuestionCreate(
        question_text="How confident are you in writing a compelling cover letter?",
        question_type="range",
        options=CONFIDENCE_SCALE,
    ),
    QuestionCreate(
        question_text="How comfortable are you with answering common interview questions?",
        question_type="range",
        options={
            "min": 0,
            "max": 10,
            "labels": ["Not comfortable at all", "Extremely comfortable"],
        },
    ),
    QuestionCreate(
        question_text="Have you participated in mock interviews?",
        question_type="multiple_choice",
        options=[
            "Yes, multiple times",
            "Yes, once or twice",
            "No, but I would like to",
            "No, and I don't plan to",
        ],
    ),
    QuestionCreate(
        question_text="What additional career support would be most helpful to you?",
        question_type="text",
        required=False,
    ),
]


async def seed_career_survey(session_factory=AsyncSessionFactory):
    """Return the id of the created survey, or None if it already existed."""
    async with session_factory() as session:
        existing = await session.execute(
            select(models.Survey.id).where(models.Survey.title == CAREER_SURVEY_TITLE)
        )
        if existing.first() is not None:
            logger.info("'%s' already present, nothing to seed", CAREER_SURVEY_TITLE)
            return None

    async with session_factory() as session:
        survey = await crud_survey.create_survey(
            session,
            title=CAREER_SURVEY_TITLE,
            description="A survey to assess career preparedness and planning",
            created_by="career-services",
            questions=CAREER_QUESTIONS,
        )
    logger.info("Career survey created with ID: %s", survey.id)
    return survey.id


async def main() -> None:
    configure_logging()
    await create_db_and_tables()
    await seed_career_survey()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
