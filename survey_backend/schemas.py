import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .crud.question_options import present_options


# --- Schemas for survey definitions ---


class QuestionCreate(BaseModel):
    question_text: str = Field(..., min_length=1)
    question_type: str = Field(..., min_length=1)
    options: Optional[Any] = None
    required: bool = True
    # Accepted for compatibility with older clients; order_num is always the list position
    order_num: Optional[int] = None


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    created_by: str = Field(..., min_length=1)
    questions: List[QuestionCreate] = Field(..., min_length=1)


class SurveyUpdate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None


class SurveyOut(BaseModel):
    """Survey row without its questions (list and create responses)."""

    id: int
    title: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuestionOut(BaseModel):
    id: int
    survey_id: int
    question_text: str
    question_type: str
    options: Optional[Any] = None
    required: bool
    order_num: int

    model_config = ConfigDict(from_attributes=True)

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v, info):
        question_type = info.data.get("question_type")
        if question_type is None:
            return v
        return present_options(question_type, v)


class SurveyDetail(SurveyOut):
    questions: List[QuestionOut] = []


class SurveyDeleteResponse(BaseModel):
    message: str = "Survey deleted successfully"


# --- Schemas for responses ---


class AnswerCreate(BaseModel):
    question_id: int
    answer_value: str

    @field_validator("answer_value", mode="before")
    @classmethod
    def stringify_answer(cls, v):
        # Answers are stored as raw text; structured values are kept as JSON
        if isinstance(v, (list, dict)):
            return json.dumps(v)
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v


class ResponseCreate(BaseModel):
    survey_id: int
    respondent_name: str = Field(..., min_length=1)
    respondent_email: EmailStr
    answers: List[AnswerCreate]


class ResponseSubmitResult(BaseModel):
    message: str = "Survey response recorded successfully"
    response_id: int
    email_sent: bool
    timestamp: datetime
    username: str


class AnswerOut(BaseModel):
    id: int
    question_id: int
    answer_value: str

    model_config = ConfigDict(from_attributes=True)


class ResponseOut(BaseModel):
    id: int
    survey_id: int
    respondent_name: str
    respondent_email: str
    submitted_at: Optional[datetime] = None
    answers: List[AnswerOut] = []

    model_config = ConfigDict(from_attributes=True)
