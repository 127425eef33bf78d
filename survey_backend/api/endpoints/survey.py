from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...crud import crud_response, crud_survey
from ...database import get_db_session
from ...schemas import (
    ResponseOut,
    SurveyCreate,
    SurveyDeleteResponse,
    SurveyDetail,
    SurveyOut,
    SurveyUpdate,
)

router = APIRouter()


@router.get("", response_model=List[SurveyOut])
async def read_all_surveys(db: AsyncSession = Depends(get_db_session)):
    return await crud_survey.list_surveys(db)


@router.post("", response_model=SurveyOut, status_code=status.HTTP_201_CREATED)
async def create_survey_item(
    survey_in: SurveyCreate, db: AsyncSession = Depends(get_db_session)
):
    return await crud_survey.create_survey(
        db,
        title=survey_in.title,
        description=survey_in.description,
        created_by=survey_in.created_by,
        questions=survey_in.questions,
    )


@router.get("/{survey_id}", response_model=SurveyDetail)
async def read_survey_item(survey_id: int, db: AsyncSession = Depends(get_db_session)):
    return await crud_survey.get_survey(db, survey_id)


@router.put("/{survey_id}", response_model=SurveyOut)
async def update_survey_item(
    survey_id: int, survey_in: SurveyUpdate, db: AsyncSession = Depends(get_db_session)
):
    return await crud_survey.update_survey(
        db, survey_id, title=survey_in.title, description=survey_in.description
    )


@router.delete("/{survey_id}", response_model=SurveyDeleteResponse)
async def delete_survey_item(survey_id: int, db: AsyncSession = Depends(get_db_session)):
    await crud_survey.delete_survey(db, survey_id)
    return SurveyDeleteResponse()


@router.get("/{survey_id}/responses", response_model=List[ResponseOut])
async def read_survey_responses(
    survey_id: int, db: AsyncSession = Depends(get_db_session)
):
    return await crud_response.list_responses(db, survey_id)
