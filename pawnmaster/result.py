"""Outcome values for form-facing contract actions.

Screens call the controller and get a Result back instead of an
exception, so a failed renewal or redemption can be shown next to the
form that caused it.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from pawnmaster.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    PawnMasterError,
    ValidationError,
)

T = TypeVar('T')


class ErrorType:
    """Categories a screen can branch on."""
    NOT_FOUND = "NOT_FOUND"      # contract or customer reference unknown
    INACTIVE = "INACTIVE"        # contract already redeemed, forfeited or cancelled
    VALIDATION = "VALIDATION"    # bad form input
    DATABASE = "DATABASE"


@dataclass
class Result(Generic[T]):
    """Success flag plus either a value or an error message.

    Usage:
        result = controller.submit_renewal("HD-0001", "500.000")
        if result:
            contract = result.value
        else:
            show_warning(result.error)
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None) -> 'Result[T]':
        return cls(success=False, error=error, error_type=error_type)

    @classmethod
    def from_exception(cls, exc: PawnMasterError) -> 'Result[T]':
        """Failure result carrying the category that matches ``exc``."""
        if isinstance(exc, ValidationError):
            error_type = ErrorType.VALIDATION
        elif isinstance(exc, InvalidStateTransitionError):
            error_type = ErrorType.INACTIVE
        elif isinstance(exc, NotFoundError):
            error_type = ErrorType.NOT_FOUND
        else:
            error_type = ErrorType.DATABASE
        return cls.fail(exc.message, error_type)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Value of a successful result.

        Raises:
            ValueError: If the action failed.
        """
        if not self.success:
            raise ValueError(f"Contract action failed: {self.error}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.success else default
