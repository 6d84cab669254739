"""Error formatting and grouping utilities.

This module provides:
- DbViewError exception class for filter errors
- Column-labelled error formatting for user display
- Error grouping to combine duplicates across filter conditions
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from src.errors.registry import error_code_for, get_error

if TYPE_CHECKING:
    from src.filters.models.filter_set import ValidationIssue


@dataclass
class DbViewError(Exception):
    """Application error with code, message, and context.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        remediation: Action user should take to resolve.
        condition_ids: Ids of the affected filter conditions.
        column: Affected column name, if applicable.
        is_retryable: Whether the operation can be retried without user action.
        details: Additional context dictionary.
    """

    code: str
    message: str
    remediation: str
    condition_ids: list[str] = field(default_factory=list)  # Affected conditions
    column: str | None = None  # Affected column name
    is_retryable: bool = False
    details: dict = field(default_factory=dict)  # Additional context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code}: {self.message}"

    @classmethod
    def from_code(cls, code: str, **kwargs: object) -> DbViewError:
        """Create error from registry code with context substitution.

        Args:
            code: Error code in E-XXXX format.
            **kwargs: Context values for message template substitution.
                Special keys 'condition_ids', 'column', 'details' are used
                for DbViewError fields rather than message substitution.

        Returns:
            DbViewError instance with formatted message.
        """
        condition_ids = kwargs.get("condition_ids", [])
        if not isinstance(condition_ids, list):
            condition_ids = []
        column = kwargs.get("column")
        if not isinstance(column, str):
            column = None
        details = kwargs.get("details", {})
        if not isinstance(details, dict):
            details = {}

        error_def = get_error(code)
        if not error_def:
            return cls(
                code=code,
                message=f"Unknown error: {code}",
                remediation="Report this as a bug.",
                condition_ids=condition_ids,
                column=column,
                details=details,
            )

        # 'column' stays available to templates
        template_kwargs = {
            k: v for k, v in kwargs.items() if k not in ("condition_ids", "details")
        }
        try:
            message = error_def.message_template.format(**template_kwargs)
        except KeyError:
            # Keep template if some placeholders are missing
            message = error_def.message_template

        return cls(
            code=error_def.code,
            message=message,
            remediation=error_def.remediation,
            is_retryable=error_def.is_retryable,
            condition_ids=condition_ids,
            column=column,
            details=details,
        )

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> DbViewError:
        """Create error from a validation issue or compiler rejection."""
        return cls.from_code(
            error_code_for(issue.code),
            detail=issue.message,
            column=issue.column,
            condition_ids=[issue.condition_id] if issue.condition_id else [],
            details={"filter_error_code": issue.code.value},
        )


def format_error(error: DbViewError, include_remediation: bool = True) -> str:
    """Format error for display next to the filter bar.

    Errors are labelled by the column they concern. Condition ids are
    internal to the UI, so several affected filters show up as a count.

    Args:
        error: The DbViewError to format.
        include_remediation: Whether to include remediation steps.

    Returns:
        Multi-line formatted string suitable for user display.
    """
    label = f"{error.code} [{error.column}]" if error.column else error.code
    lines = [f"{label}: {error.message}"]

    if len(error.condition_ids) > 1:
        lines.append(f"  Applies to {len(error.condition_ids)} filters")

    if include_remediation:
        lines.append(f"  Action: {error.remediation}")

    return "\n".join(lines)


def group_errors(errors: list[DbViewError]) -> list[DbViewError]:
    """Merge errors repeated for the same column, combining condition ids.

    Two empty filters on ``age`` become one error covering both conditions;
    the same problem on different columns stays separate. First-seen order
    is kept and the inputs are not modified.
    """
    groups: dict[tuple[str, str, str | None], DbViewError] = {}

    for error in errors:
        key = (error.code, error.message, error.column)
        if key not in groups:
            groups[key] = replace(error, condition_ids=[], details=dict(error.details))
        merged = groups[key].condition_ids
        merged.extend(cid for cid in error.condition_ids if cid not in merged)

    return list(groups.values())


def format_error_summary(errors: list[DbViewError]) -> str:
    """Format every error of a build for display, one block per column problem."""
    if not errors:
        return "No errors."

    blocks = [format_error(error) for error in group_errors(errors)]
    if len(blocks) > 1:
        blocks.insert(0, f"{len(blocks)} problems with the current filters:")
    return "\n".join(blocks)
