"""
Custom exception classes and error handling.

Provides consistent error responses across the API.
The scoring services never raise these; only the HTTP layer does.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )


class InvalidWeightsError(ValidationError):
    """Adherence weights that do not sum to 1.0."""

    def __init__(self, total: float):
        super().__init__(
            detail=f"Adherence weights must sum to 1.0 (got {total:.3f})",
            field="weights"
        )


class InvalidDateRangeError(ValidationError):
    """Microcycle that ends before it starts."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            detail=f"Microcycle end {end} is before start {start}",
            field="end"
        )
