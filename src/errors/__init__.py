"""Error handling framework for the filter compiler.

This package provides:
- Error code registry with E-XXXX format codes
- Mapping from filter error codes onto registry codes
- Error formatting and grouping utilities

Error categories:
- E-2xxx: Validation errors
- E-4xxx: System/internal errors
"""

from src.errors.registry import (
    ErrorCategory,
    ErrorCode,
    ERROR_REGISTRY,
    FILTER_ERROR_CODES,
    error_code_for,
    get_error,
    get_errors_by_category,
)
from src.errors.formatter import (
    DbViewError,
    format_error,
    format_error_summary,
    group_errors,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "FILTER_ERROR_CODES",
    "error_code_for",
    "get_error",
    "get_errors_by_category",
    # Formatter
    "DbViewError",
    "format_error",
    "group_errors",
    "format_error_summary",
]
