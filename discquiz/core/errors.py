from __future__ import annotations

"""Domain-specific exception hierarchy for the quiz engine."""

from typing import Any

from discquiz.i18n.ko_messages import DomainErrorMessages, SessionErrorMessages

__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "SessionNotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "NavigationError",
    "NoQuestionsAvailableError",
    "SubmissionInFlightError",
    "ConfigurationError",
]


class DomainError(Exception):
    """Base class for recoverable domain-level errors."""

    status_code: int = 400
    error_code: str = "domain_error"
    default_message: str = DomainErrorMessages.DOMAIN_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        final_message = message or self.default_message
        super().__init__(final_message)
        self.message = final_message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DomainError, ValueError):
    """Raised when request data cannot be applied to the session."""

    error_code = "validation_error"
    default_message = DomainErrorMessages.VALIDATION_ERROR


class NotFoundError(DomainError):
    error_code = "not_found"
    status_code = 404
    default_message = DomainErrorMessages.NOT_FOUND


class SessionNotFoundError(NotFoundError):
    error_code = "session_not_found"
    default_message = SessionErrorMessages.NOT_FOUND


class ConflictError(DomainError):
    error_code = "conflict"
    status_code = 409
    default_message = DomainErrorMessages.CONFLICT


class InvalidTransitionError(ConflictError):
    """Raised when an event is not accepted by the current screen."""

    error_code = "invalid_transition"


class NavigationError(ConflictError):
    """Raised when a quiz navigation guard rejects a move."""

    error_code = "navigation_blocked"


class SubmissionInFlightError(ConflictError):
    """Raised when an answer arrives while the previous one is still settling."""

    error_code = "submission_in_flight"
    status_code = 429
    default_message = SessionErrorMessages.SUBMISSION_IN_FLIGHT


class NoQuestionsAvailableError(DomainError):
    """Raised when no question matches the chosen demographic, even after fallback."""

    error_code = "no_questions_available"
    status_code = 422
    default_message = SessionErrorMessages.NO_QUESTIONS


class ConfigurationError(DomainError):
    """Raised when content tables or settings are unusable."""

    error_code = "configuration_error"
    status_code = 500
    default_message = DomainErrorMessages.CONFIGURATION_ERROR
