"""
Error taxonomy for the pharmacy service and its data-access client.

- Validation errors: rejected before any I/O, first message shown to the user.
- Remote-unavailable errors: network/HTTP failures and missing tables.
  The client may serve these from the local store, but always says so.
- Rejections: the remote store understood the request and refused it
  (insufficient stock, duplicate email). Never converted into a fallback.

Handlers use generic error messages externally, detailed logging internally.
"""
from typing import List, Optional

from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

# Postgres undefined_table SQLSTATE
_UNDEFINED_TABLE = "42P01"


class PharmacyError(Exception):
    """Base class for domain errors raised outside the HTTP layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PharmacyError):
    """Field bag failed validation. `errors` keeps every message, in order."""

    def __init__(self, errors: List[str]):
        super().__init__(errors[0] if errors else "Invalid data")
        self.errors = list(errors)


class NotFoundError(PharmacyError):
    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(PharmacyError):
    pass


class InsufficientStockError(PharmacyError):
    def __init__(self, quantity: int, current_stock: int):
        super().__init__("Insufficient stock")
        self.quantity = quantity
        self.current_stock = current_stock
        self.details = f"Cannot reduce stock by {quantity}. Current stock: {current_stock}"


class RemoteUnavailableError(PharmacyError):
    """Remote store could not serve the call (network, 404, 5xx, missing table)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteRejectedError(PharmacyError):
    """Remote store answered and refused the request."""

    def __init__(self, message: str, status_code: int, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or [message]


def is_table_missing_error(error: BaseException) -> bool:
    """Classify a driver error as "table missing" by matching code and message text."""
    orig = getattr(error, "orig", error)
    if getattr(orig, "pgcode", None) == _UNDEFINED_TABLE:
        return True
    text = str(error).lower()
    if "no such table" in text:
        return True
    return "relation" in text and "does not exist" in text


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource") -> HTTPException:
        """
        404 naming the resource type only.

        Example:
            if not med:
                raise BusinessError.not_found("Medicine")
        """
        logger.info(f"Not found: {resource}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Generic 401 for every bearer token failure."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business rule errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Quantity must be a positive integer", "Insufficient stock"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for resource conflicts.
        Example: "Email already registered"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """Generic 500 - logs the actual error internally, hides it from the caller."""
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )
