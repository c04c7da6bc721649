"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger("finance.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ResourceConflictError(AppException):
    """Raised when a client-supplied identifier or unique name already exists."""

    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        super().__init__(
            message=message or f"{resource} with ID {resource_id} already exists",
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "id": resource_id}
        )


class StorageUnavailableError(AppException):
    """Raised when the database cannot be reached. Safe to retry."""

    def __init__(self, message: str = "Storage backend unavailable, please retry"):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"retryable": True}
        )


class PostingError(AppException):
    """Raised when an approved reimbursement could not be written to the ledger."""

    def __init__(self, reimbursement_id: str, reason: str):
        super().__init__(
            message=f"Failed to post reimbursement {reimbursement_id} to the ledger: {reason}",
            error_code="ERR_POSTING_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"reimbursement_id": reimbursement_id}
        )


class DuplicatePostingError(Exception):
    """
    The ledger already holds a transaction with this id.

    Raised by the posting engine when the header insert hits the primary key.
    Callers roll back and treat it as an already-posted outcome.
    """

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} already exists")


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "exc_type": type(exc).__name__},
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
