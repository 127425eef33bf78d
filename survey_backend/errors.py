"""Domain errors and the HTTP status each one maps to."""
from typing import Any, Optional


class SurveyServiceError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None, details: Any = None):
        self.error = error or self.error
        self.details = details
        super().__init__(self.error if details is None else f"{self.error}: {details}")

    def to_body(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(SurveyServiceError):
    """Missing or malformed request data; raised before any storage is touched."""

    status_code = 400
    error = "Missing required fields"


class QuestionOptionsError(ValidationError):
    error = "Invalid question options"


class UnsupportedQuestionType(ValidationError):
    error = "Unsupported question type"


class NotFoundError(SurveyServiceError):
    status_code = 404
    error = "Not found"


class StorageError(SurveyServiceError):
    """A transaction failed and was rolled back."""

    status_code = 500
    error = "Storage failure"


class RecordingFailed(StorageError):
    error = "Failed to save survey response"


class NotificationFailed(SurveyServiceError):
    """Mail delivery failed. Never returned to clients as an error response."""

    error = "Notification failed"
