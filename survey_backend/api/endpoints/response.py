import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ... import config
from ...crud import crud_response
from ...database import get_db_session
from ...notifications import NotificationDispatcher, get_notification_dispatcher
from ...schemas import ResponseCreate, ResponseOut, ResponseSubmitResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "", response_model=ResponseSubmitResult, status_code=status.HTTP_201_CREATED
)
async def create_response_item(
    resp_in: ResponseCreate,
    db: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    recorded = await crud_response.record_response(
        db,
        survey_id=resp_in.survey_id,
        respondent_name=resp_in.respondent_name,
        respondent_email=resp_in.respondent_email,
        answers=crud_response.answer_pairs(resp_in.answers),
    )

    # The response is committed at this point; mail failures only flip email_sent
    delivery = await dispatcher.notify(
        resp_in.respondent_name, resp_in.respondent_email, recorded.survey_title
    )
    if not delivery.success:
        logger.warning(
            "Response %s stored but thank you email failed: %s",
            recorded.response_id,
            delivery.detail,
        )

    return ResponseSubmitResult(
        response_id=recorded.response_id,
        email_sent=delivery.success,
        timestamp=delivery.timestamp,
        username=config.SERVICE_USERNAME,
    )


@router.get("/{response_id}", response_model=ResponseOut)
async def read_response_item(
    response_id: int, db: AsyncSession = Depends(get_db_session)
):
    return await crud_response.get_response(db, response_id)
