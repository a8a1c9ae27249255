"""Base domain exceptions and their translation into API errors.

Services raise subclasses of the four bases below; they never build HTTP
responses.  ``DomainExceptionHandler`` (wired through
``DRF_STANDARDIZED_ERRORS["EXCEPTION_HANDLER_CLASS"]``) converts them into
DRF exceptions so every error shares the standardized envelope::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": null}]}
"""

from __future__ import annotations

from typing import Dict, List

from drf_standardized_errors.handler import ExceptionHandler
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status


class DomainError(Exception):
    """Root of every business-rule failure."""

    code = "domain_error"


class EntityNotFound(DomainError):
    """A referenced record does not exist (404)."""

    code = "not_found"


class AccessDenied(DomainError):
    """The caller's role or ownership does not allow the operation (403)."""

    code = "permission_denied"


class BusinessRuleViolation(DomainError):
    """The request conflicts with the current state of the data (400)."""

    code = "state_conflict"


class OtpRejected(DomainError):
    """A one-time code did not match or has expired (400)."""

    code = "otp_rejected"


_STATUS_BY_ERROR = (
    (EntityNotFound, status.HTTP_404_NOT_FOUND),
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (BusinessRuleViolation, status.HTTP_400_BAD_REQUEST),
    (OtpRejected, status.HTTP_400_BAD_REQUEST),
)


class DomainAPIException(exceptions.APIException):
    def __init__(self, detail: str, code: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(detail=detail, code=code)


class DomainExceptionHandler(ExceptionHandler):
    """Standardized-errors handler that also understands domain exceptions."""

    def convert_known_exceptions(self, exc: Exception) -> Exception:
        for error_class, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_class):
                return DomainAPIException(
                    detail=str(exc) or error_class.__doc__ or "",
                    code=exc.code,
                    status_code=status_code,
                )
        if isinstance(exc, PydanticValidationError):
            return exceptions.ValidationError(pydantic_errors_to_dict(exc))
        return super().convert_known_exceptions(exc)


def pydantic_errors_to_dict(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Flatten pydantic errors into DRF's ``{field: [messages]}`` shape."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
        message = error["msg"].removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return errors
