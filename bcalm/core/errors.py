# bcalm/core/errors.py
"""
Error kinds shared by the assessment engine and the CV analysis pipeline.

Services raise these at the operation boundary; `bcalm.main` renders them as
JSON responses of the shape {"error": <kind>, "detail": <message>, ...extra}.
"""
from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    status_code: int = 400
    kind: str = "ServiceError"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.kind, "detail": self.message}
        body.update(self.extra)
        return body


class NotFound(ServiceError):
    status_code = 404
    kind = "NotFound"
    default_message = "Not found"


class Forbidden(ServiceError):
    status_code = 403
    kind = "Forbidden"
    default_message = "You do not have access to this resource"


class Unauthorized(ServiceError):
    status_code = 401
    kind = "Unauthorized"
    default_message = "Invalid or missing secret"


class AlreadyCompleted(ServiceError):
    status_code = 409
    kind = "AlreadyCompleted"
    default_message = "Already completed"


class NotCompleted(ServiceError):
    kind = "NotCompleted"
    default_message = "Assessment not yet completed"


class IncompleteAnswers(ServiceError):
    kind = "IncompleteAnswers"
    default_message = "Answer all questions before finishing"

    def __init__(self, answered: int, total: int, message: Optional[str] = None):
        super().__init__(message, answered=answered, total=total)
        self.answered = answered
        self.total = total


class InvalidAnswer(ServiceError):
    status_code = 422
    kind = "InvalidAnswer"
    default_message = "Answers must be between 1 and 5"


class InvalidPayload(ServiceError):
    status_code = 422
    kind = "InvalidPayload"
    default_message = "Invalid payload"

    def __init__(self, fields: List[str], message: Optional[str] = None):
        super().__init__(message or f"Invalid payload fields: {', '.join(fields)}", fields=fields)
        self.fields = fields


class OnboardingIncomplete(ServiceError):
    kind = "OnboardingIncomplete"
    default_message = "Please complete onboarding first"


class MissingFile(ServiceError):
    kind = "MissingFile"
    default_message = "CV file is required"


class InvalidUpload(ServiceError):
    kind = "InvalidUpload"
    default_message = "Only PDF, DOC, DOCX and TXT files are allowed"
