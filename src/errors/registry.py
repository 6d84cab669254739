"""Error code registry with E-XXXX format codes.

This module defines the error code system for the filter compiler,
organizing errors into categories:
- E-2xxx: Validation errors (E-205x condition validation, E-206x dialect
  rejections)
- E-4xxx: System/internal errors (contract breaches)

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-2xxx: Validation errors
    SYSTEM = "system"  # E-4xxx: System/internal errors


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str  # E-XXXX format
    category: ErrorCategory
    title: str  # Short title for display
    message_template: str  # Message with {placeholders}
    remediation: str  # Action user should take
    is_retryable: bool = False  # Can be retried without user action


# Error registry - all defined error codes
ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Condition validation (E-205x)
    "E-2050": ErrorCode(
        code="E-2050",
        category=ErrorCategory.VALIDATION,
        title="Missing Filter Column",
        message_template="A filter has no column selected.",
        remediation="Pick a column for the filter or remove it.",
    ),
    "E-2051": ErrorCode(
        code="E-2051",
        category=ErrorCategory.VALIDATION,
        title="Operator Not Valid For Column Type",
        message_template="{detail}",
        remediation="Choose an operator offered for this column's type.",
    ),
    "E-2052": ErrorCode(
        code="E-2052",
        category=ErrorCategory.VALIDATION,
        title="Missing Filter Value",
        message_template="{detail}",
        remediation="Enter a value for the filter. For 'In List', separate values with commas.",
    ),
    "E-2053": ErrorCode(
        code="E-2053",
        category=ErrorCategory.VALIDATION,
        title="Incomplete Range",
        message_template="{detail}",
        remediation="Enter both the lower and the upper bound of the range.",
    ),
    "E-2055": ErrorCode(
        code="E-2055",
        category=ErrorCategory.VALIDATION,
        title="Invalid Filter Value",
        message_template="{detail}",
        remediation="Enter plain text, a number, a date or true/false as the filter value.",
    ),
    "E-2054": ErrorCode(
        code="E-2054",
        category=ErrorCategory.VALIDATION,
        title="Filter Too Large",
        message_template="{detail}",
        remediation="Reduce the number of filters or list values, or raise the limit in dbview-filters.yaml.",
    ),
    # Dialect rejections (E-206x)
    "E-2060": ErrorCode(
        code="E-2060",
        category=ErrorCategory.VALIDATION,
        title="Operator Not Supported By Database",
        message_template="{detail}",
        remediation="Use a different operator for this database, or filter the results client-side.",
    ),
    "E-2061": ErrorCode(
        code="E-2061",
        category=ErrorCategory.VALIDATION,
        title="Logic Not Supported By Database",
        message_template="{detail}",
        remediation="Switch the filter logic to AND, or run one query per condition.",
    ),
    "E-2062": ErrorCode(
        code="E-2062",
        category=ErrorCategory.VALIDATION,
        title="Filtering Not Supported For Database",
        message_template="{detail}",
        remediation="Browse the data without filters.",
    ),
    # System errors (E-405x)
    "E-4050": ErrorCode(
        code="E-4050",
        category=ErrorCategory.SYSTEM,
        title="Unknown Filter Operator",
        message_template="{detail}",
        remediation="Reload the filter bar. If the problem persists, report it as a bug.",
    ),
    "E-4051": ErrorCode(
        code="E-4051",
        category=ErrorCategory.SYSTEM,
        title="Filter Compiled Without Validation",
        message_template="{detail}",
        remediation="This is an internal error. Report it as a bug.",
    ),
}

# Filter error code (FilterErrorCode value) → registry code
FILTER_ERROR_CODES: dict[str, str] = {
    "EMPTY_COLUMN": "E-2050",
    "OPERATOR_TYPE_MISMATCH": "E-2051",
    "MISSING_VALUE": "E-2052",
    "INCOMPLETE_RANGE": "E-2053",
    "INVALID_VALUE": "E-2055",
    "STRUCTURAL_LIMIT_EXCEEDED": "E-2054",
    "UNSUPPORTED_OPERATOR": "E-2060",
    "UNSUPPORTED_LOGIC": "E-2061",
    "UNSUPPORTED_DATABASE": "E-2062",
    "UNKNOWN_OPERATOR": "E-4050",
    "INVALID_ARITY": "E-4051",
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category.

    Args:
        category: The error category to filter by.

    Returns:
        List of ErrorCode objects in the specified category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]


def error_code_for(filter_code: str) -> str:
    """Map a filter error code (e.g. "MISSING_VALUE") onto its registry code.

    Unmapped codes fall back to E-4051 (internal error).
    """
    code = filter_code.value if isinstance(filter_code, Enum) else filter_code
    return FILTER_ERROR_CODES.get(code, "E-4051")
