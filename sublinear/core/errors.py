from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


class SublinearError(Exception):
    """Base class for failures surfaced to API callers."""

    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(SublinearError):
    code = "unauthorized"

    def __init__(self) -> None:
        super().__init__("Unauthorized")


class NotFoundError(SublinearError):
    code = "not_found"

    def __init__(self, kind: str) -> None:
        super().__init__(f"Entity not found: {kind}")
        self.kind = kind


class ValidationFailedError(SublinearError):
    code = "validation_error"


class ConstraintViolationError(SublinearError):
    """A uniqueness or foreign-key rejection from storage.

    Issue numbers and project slugs are allocated check-then-act, so two
    concurrent writers can race onto the same value. The storage constraint
    rejects the loser; callers should regenerate and retry.
    """

    code = "constraint_violation"
    retryable = True

    def __init__(self, message: str = "Write rejected by a storage constraint") -> None:
        super().__init__(message)


class DecodeError(SublinearError):
    code = "internal_error"


def error_entry(exc: Exception) -> dict[str, Any]:
    """Render an exception as one entry of a GraphQL-style ``errors`` list."""

    if isinstance(exc, SublinearError):
        entry: dict[str, Any] = {"message": exc.message, "extensions": {"code": exc.code}}
        if isinstance(exc, ConstraintViolationError):
            entry["extensions"]["retryable"] = exc.retryable
        return entry
    return {"message": "Internal server error", "extensions": {"code": "internal_error"}}


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": exc.errors()},
        )
    raise exc
