"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error payloads for the scheduler and operator tooling
- Machine-readable error codes
- Detailed error information for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Record not found
    └── ConflictError - State conflicts (duplicates, concurrent modifications)

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Monthly fee cannot be negative")

    # Raise with error code and details
    raise NotFoundError(
        f"Student {student_id} not found",
        error_code="STUDENT_NOT_FOUND",
        details={"student_id": student_id},
    )

    # Convert to dict for a task result or log record
    try:
        ...
    except BaseApplicationError as e:
        summary["failures"].append(e.to_dict())

Note:
    These exceptions are for domain/business logic errors.
    Database errors are wrapped by the owning app (see billing.exceptions).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for programmatic handling
        details: Additional error context (ids, amounts, etc.)

    Example:
        try:
            ledger.debit(student.id, Decimal("150000.00"))
        except BaseApplicationError as e:
            logger.warning(f"Debit rejected: {e.error_code}")
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a JSON-serializable dictionary.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Student 7 not found",
                "error_code": "STUDENT_NOT_FOUND",
                "details": {"student_id": 7}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Malformed operator input (periods, amounts)
    - Business rule violations (negative fees, etc.)

    Example:
        raise ValidationError(
            "Amount must be positive",
            error_code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested record is not found.

    Example:
        student = Student.objects.filter(id=student_id).first()
        if not student:
            raise NotFoundError(
                f"Student {student_id} not found",
                error_code="STUDENT_NOT_FOUND",
                details={"student_id": student_id},
            )
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current record state.

    Use for:
    - Duplicate entries (unique constraint violations)
    - Concurrent modification conflicts
    - Invalid state transitions
    """

    default_error_code: str = "CONFLICT"
