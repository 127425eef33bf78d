"""Question type registry and the shape check for each type's ``options`` payload.

``text`` questions carry no options, ``multiple_choice`` questions carry a
non-empty list of labels and ``range`` questions carry
``{"min": int, "max": int, "labels": [low, high]}``. Stored payloads are read
back leniently: anything that does not match its type (or belongs to a type
this module does not know) is returned untouched as :class:`OpaqueOptions`.
"""
import enum
import json
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, List, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StrictInt,
    StrictStr,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .. import errors


class QuestionType(str, enum.Enum):
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple_choice"
    RANGE = "range"


class ChoiceOptions(RootModel[Annotated[List[StrictStr], Field(min_length=1)]]):
    """Ordered answer labels of a multiple choice question."""

    def to_payload(self) -> List[str]:
        return list(self.root)


class RangeOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min: StrictInt
    max: StrictInt
    labels: Tuple[StrictStr, StrictStr]

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min >= self.max:
            raise ValueError("min must be less than max")
        return self

    def to_payload(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max, "labels": list(self.labels)}


@dataclass(frozen=True)
class OpaqueOptions:
    """Stored options that are kept exactly as they were written."""

    raw: Any

    def to_payload(self) -> Any:
        return self.raw


QuestionOptions = Union[None, ChoiceOptions, RangeOptions, OpaqueOptions]


def _decode(options: Any) -> Any:
    # Older rows hold the payload as a JSON encoded string
    if isinstance(options, str):
        return json.loads(options)
    return options


def _parse_text(options: Any) -> None:
    return None


def _parse_multiple_choice(options: Any) -> ChoiceOptions:
    return ChoiceOptions.model_validate(_decode(options))


def _parse_range(options: Any) -> RangeOptions:
    decoded = _decode(options)
    if not isinstance(decoded, dict):
        raise ValueError("range options must be an object with min, max and labels")
    return RangeOptions.model_validate(decoded)


_PARSERS: Dict[QuestionType, Callable[[Any], QuestionOptions]] = {
    QuestionType.TEXT: _parse_text,
    QuestionType.MULTIPLE_CHOICE: _parse_multiple_choice,
    QuestionType.RANGE: _parse_range,
}


def resolve_question_type(question_type: str) -> QuestionType:
    try:
        return QuestionType(question_type)
    except ValueError:
        raise errors.UnsupportedQuestionType(
            details=f"'{question_type}' is not one of "
            + ", ".join(t.value for t in QuestionType)
        )


def validate_options(question_type: str, options: Any) -> Any:
    """Check ``options`` against ``question_type`` and return the payload to store.

    Raises :class:`UnsupportedQuestionType` for unknown types and
    :class:`QuestionOptionsError` when the payload has the wrong shape.
    """
    kind = resolve_question_type(question_type)
    try:
        parsed = _PARSERS[kind](options)
    except (PydanticValidationError, ValueError) as exc:
        raise errors.QuestionOptionsError(
            details=f"{kind.value}: {_describe(exc)}"
        ) from exc
    return parsed.to_payload() if parsed is not None else None


def read_options(question_type: str, stored: Any) -> QuestionOptions:
    """Interpret stored options without rejecting anything."""
    try:
        kind = QuestionType(question_type)
    except ValueError:
        return OpaqueOptions(stored) if stored is not None else None
    try:
        return _PARSERS[kind](stored)
    except (PydanticValidationError, ValueError):
        return OpaqueOptions(stored)


def present_options(question_type: str, stored: Any) -> Any:
    """JSON payload for a stored question, canonical where the stored data allows it."""
    parsed = read_options(question_type, stored)
    return parsed.to_payload() if parsed is not None else None


def _describe(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first['msg']}" if location else first["msg"]
    return str(exc)
