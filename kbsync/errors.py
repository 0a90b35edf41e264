# KBSync Errors
# Error taxonomy shared by the engine, tasks and adapters

from enum import Enum
from typing import Any, Optional

from kbsync.model.errors import ErrorBody


class ErrorCodes(str, Enum):
    """Machine readable error codes reported with failed entities."""

    INTERRUPTED = "interrupted"
    CONFIGURER_ERROR = "configurer.error"
    DOWNLOAD_FAILURE = "download.failure"
    VALIDATION_ERROR = "validation.error"
    MISSING_REFERENCE_ERROR = "not.found"
    TRANSFORMATION_ERROR = "transformation.error"
    THIRD_PARTY_UNEXPECTED_ERROR = "third.party.unexpected.error"
    THIRD_PARTY_INVALID_CREDENTIALS = "third.party.invalid.credentials"
    INTERNAL_SERVER_ERROR = "internal.server.error"


class ErrorBase(Exception):
    """Base class for every error raised by kbsync."""

    def __init__(
        self,
        code: ErrorCodes | str,
        message: str,
        *,
        entity_name: Optional[str] = None,
        message_params: Optional[dict[str, Any]] = None,
    ):
        self.code = code.value if isinstance(code, ErrorCodes) else code
        self.message = message
        self.entity_name = entity_name
        self.message_params = message_params
        super().__init__(message)

    def to_error_body(self) -> ErrorBody:
        """Convert to the error body attached to failed entities."""
        return ErrorBody(
            code=self.code,
            message_with_params=self.message,
            entity_name=self.entity_name,
            message_params=self.message_params,
        )


class Interrupted(ErrorBase):
    """Cooperative cancellation signal. Not a fault."""

    def __init__(self, message: str = "Process interrupted"):
        super().__init__(ErrorCodes.INTERRUPTED, message)


class TransformationError(ErrorBase):
    """Item level shape problem which may resolve itself on a later attempt."""

    def __init__(
        self,
        code: ErrorCodes | str = ErrorCodes.TRANSFORMATION_ERROR,
        message: str = "Transformation failed",
        *,
        entity_name: Optional[str] = None,
        message_params: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, message, entity_name=entity_name, message_params=message_params)


class MissingReferenceError(TransformationError):
    """A referenced category, label or document could not be resolved."""

    def __init__(self, entity_type: str, entity_id: Optional[str] = None):
        params: dict[str, Any] = {"entity_type": entity_type}
        if entity_id:
            params["entity_id"] = entity_id
        super().__init__(
            ErrorCodes.MISSING_REFERENCE_ERROR,
            "Referred entity not found",
            entity_name=entity_type,
            message_params=params,
        )


class ConfigurerError(ErrorBase):
    """Policy violation that needs a configuration change by the operator."""

    def __init__(self, message: str, *, cause: Optional[str] = None):
        super().__init__(
            ErrorCodes.CONFIGURER_ERROR,
            message,
            message_params={"cause": cause} if cause else None,
        )


class ValidationError(ErrorBase):
    """A required collaborator or configuration value is missing."""

    def __init__(self, message: str):
        super().__init__(ErrorCodes.VALIDATION_ERROR, message)


class ApiError(ErrorBase):
    """Unexpected response from a third party system."""

    def __init__(self, message: str, *, code: ErrorCodes | str = ErrorCodes.THIRD_PARTY_UNEXPECTED_ERROR, **params: Any):
        super().__init__(code, message, message_params=params or None)


class InvalidCredentialsError(ApiError):
    """Authentication against a third party system failed."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, code=ErrorCodes.THIRD_PARTY_INVALID_CREDENTIALS, **details)


class DownloadError(ErrorBase):
    """Fetching a remote resource failed."""

    def __init__(self, message: str):
        super().__init__(ErrorCodes.DOWNLOAD_FAILURE, message)


def error_body_from(error: BaseException) -> ErrorBody:
    """
    Normalize any exception into an error body.

    Args:
        error: The caught exception.

    Returns:
        ErrorBody describing the error.
    """
    if isinstance(error, ErrorBase):
        return error.to_error_body()
    return ErrorBody(
        code=ErrorCodes.INTERNAL_SERVER_ERROR.value,
        message_with_params=str(error) or error.__class__.__name__,
    )


def validate_non_null(value: Any, message: str) -> None:
    """Raise ValidationError when value is empty."""
    if not value:
        raise ValidationError(message)


# Run level faults: never captured into a failed entity
FATAL_ERRORS: tuple[type[ErrorBase], ...] = (ConfigurerError, ValidationError)
