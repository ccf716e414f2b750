"""
Domain error taxonomy

Every error is scoped to the operation that raised it. The API layer maps
each class to an HTTP status in app.main.
"""
from typing import Any, Dict, List, Optional


class QuizPlatformError(Exception):
    """Base class for all domain errors"""

    status_code = 500
    error_code = "quiz_platform_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class ValidationReason:
    """A single reason a quiz document was rejected"""

    def __init__(self, code: str, message: str, question_index: Optional[int] = None):
        self.code = code
        self.message = message
        self.question_index = question_index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "question_index": self.question_index
        }

    def __repr__(self):
        return f"<ValidationReason(code={self.code}, question_index={self.question_index})>"


class QuizValidationError(QuizPlatformError):
    """Malformed quiz document; blocks persistence"""

    status_code = 422
    error_code = "validation_error"

    def __init__(self, reasons: List[ValidationReason], message: Optional[str] = None):
        self.reasons = reasons
        summary = "; ".join(r.message for r in reasons)
        super().__init__(
            message or f"The quiz could not be accepted: {summary}. "
            "Regenerate it or edit it manually."
        )

    @property
    def codes(self) -> List[str]:
        return [r.code for r in self.reasons]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reasons"] = [r.to_dict() for r in self.reasons]
        return data


class UnscorableQuizError(QuizValidationError):
    """Quiz with zero questions cannot be attempted or scored"""

    error_code = "unscorable_quiz"

    def __init__(self):
        super().__init__(
            [ValidationReason("no_questions", "The quiz has no questions")],
            message="This quiz has no questions and cannot be attempted."
        )


class InvalidRequestError(QuizPlatformError):
    """Request field present but unusable, e.g. a blank class name"""

    status_code = 400
    error_code = "invalid_request"


class EmptyGenerationInputError(QuizPlatformError):
    """Neither images nor raw text were provided for generation"""

    status_code = 400
    error_code = "empty_generation_input"


class NotFoundError(QuizPlatformError):
    """Missing class, quiz, or unknown join code"""

    status_code = 404
    error_code = "not_found"


class PermissionDeniedError(QuizPlatformError):
    """Teacher does not own the requested class"""

    status_code = 403
    error_code = "permission_denied"


class ExternalServiceError(QuizPlatformError):
    """AI collaborator failed or returned unusable output"""

    status_code = 502
    error_code = "external_service_error"
    retry_hint = "Please try again, or try different material."

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retry"] = self.retry_hint
        return data


class CascadeDeleteError(QuizPlatformError):
    """Deleting a class or quiz failed part-way; the transaction was rolled back"""

    status_code = 500
    error_code = "cascade_delete_failed"
