"""Filter validation and normalization.

Checks conditions against the operator metadata table and the target
column's type category, and canonicalizes condition objects before they
reach a dialect compiler. Validation never raises: every problem comes back
as a ValidationIssue so the UI can show all of them at once.

Callers run validate → normalize → compile, in that order. Compilers call
bind_operand(), which fails fast when that order was skipped.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Any

from src.filters.filter_config import FilterSettings, get_filter_settings
from src.filters.models.filter_set import (
    ColumnTypeInfo,
    ColumnTypeLookup,
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
    FilterSetValidation,
    ListValue,
    NoValue,
    OneValue,
    Operand,
    TwoValues,
    TypeCategory,
    ValidationIssue,
    ValidationResult,
    ValueArity,
    infer_type_category,
)
from src.filters.operators import metadata_for, needs_value, operators_for_type

ColumnType = TypeCategory | ColumnTypeInfo | str | None

# Operand types a condition may carry; bool and datetime are covered as subclasses.
SCALAR_TYPES = (str, int, float, Decimal, date, time)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _trim(value: Any) -> Any:
    """Trim strings; whitespace-only strings become None."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _split_list_value(value: Any) -> list[Any]:
    """Turn an `in` operand into a list.

    A comma-separated string is the one wire shape reinterpreted as a
    collection. Elements are trimmed and empty / null elements dropped;
    non-string elements keep their type.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, str):
        items = value.split(",")
    else:
        items = [value]

    result = []
    for item in items:
        item = _trim(item)
        if item is not None:
            result.append(item)
    return result


def _non_scalar_values(arity: ValueArity, value: Any, value2: Any) -> list[Any]:
    """Operands that are not plain scalars (dicts, nested lists, objects)."""
    if arity == ValueArity.none:
        return []
    if arity == ValueArity.list:
        candidates = list(value) if isinstance(value, (list, tuple)) else []
    else:
        candidates = [value, value2]
    return [v for v in candidates if v is not None and not isinstance(v, SCALAR_TYPES)]


def normalize(condition: FilterCondition) -> FilterCondition:
    """Return a canonical copy of a condition.

    - Trims column_name and string values (whitespace-only → None).
    - Operators without values lose any stray value / value2.
    - value2 is kept only for between.
    - `in` values become a list (comma-separated strings are split).

    Idempotent: normalize(normalize(c)) == normalize(c).
    """
    arity = metadata_for(condition.operator).value_arity
    value = condition.value
    value2 = condition.value2

    if arity == ValueArity.none:
        value, value2 = None, None
    elif arity == ValueArity.one:
        value, value2 = _trim(value), None
    elif arity == ValueArity.two:
        value, value2 = _trim(value), _trim(value2)
    else:
        value, value2 = _split_list_value(value), None

    return condition.model_copy(
        update={
            "column_name": condition.column_name.strip(),
            "value": value,
            "value2": value2,
        }
    )


def bind_operand(condition: FilterCondition) -> Operand:
    """Derive the tagged operand of a validated, normalized condition.

    Raises:
        FilterCompilationError: INVALID_ARITY when the values do not fit the
            operator's arity or are not scalars, meaning validation or
            normalization was skipped.
    """
    arity = metadata_for(condition.operator).value_arity

    if arity == ValueArity.none:
        return NoValue()

    if arity == ValueArity.one:
        if condition.value is None:
            raise _arity_error(condition, "requires a value")
        if _non_scalar_values(arity, condition.value, None):
            raise _arity_error(condition, "requires a scalar value")
        return OneValue(value=condition.value)

    if arity == ValueArity.two:
        if condition.value is None or condition.value2 is None:
            raise _arity_error(condition, "requires both value and value2")
        if _non_scalar_values(arity, condition.value, condition.value2):
            raise _arity_error(condition, "requires scalar values")
        return TwoValues(low=condition.value, high=condition.value2)

    if not isinstance(condition.value, (list, tuple)):
        raise _arity_error(condition, "requires a list value; normalize() the condition first")
    if _non_scalar_values(arity, condition.value, None):
        raise _arity_error(condition, "requires scalar values")
    return ListValue(values=tuple(condition.value))


def _arity_error(condition: FilterCondition, detail: str) -> FilterCompilationError:
    return FilterCompilationError(
        FilterErrorCode.INVALID_ARITY,
        f"Operator {condition.operator.value!r} on {condition.column_name!r} {detail}. "
        f"Conditions must be validated before compilation.",
        condition_id=condition.id,
        column=condition.column_name,
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _category_of(column_type: ColumnType) -> TypeCategory | None:
    if column_type is None:
        return None
    if isinstance(column_type, ColumnTypeInfo):
        return column_type.type_category
    if isinstance(column_type, TypeCategory):
        return column_type
    try:
        return TypeCategory(column_type)
    except ValueError:
        return infer_type_category(column_type)


def validate(
    condition: FilterCondition,
    column_type: ColumnType = None,
    *,
    settings: FilterSettings | None = None,
) -> ValidationResult:
    """Validate a single condition.

    Silently skips the type check if the column type is unknown (None).

    Args:
        condition: The condition to validate.
        column_type: Type category, ColumnTypeInfo or raw database type of
            the target column.
        settings: Structural limits; defaults to the process-wide settings.

    Returns:
        ValidationResult with every applicable issue, and the normalized
        condition when there are none.
    """
    settings = settings or get_filter_settings()
    errors: list[ValidationIssue] = []

    def _issue(code: FilterErrorCode, message: str, column: str | None) -> None:
        errors.append(
            ValidationIssue(
                code=code, message=message, condition_id=condition.id, column=column
            )
        )

    try:
        meta = metadata_for(condition.operator)
    except FilterCompilationError as exc:
        if not str(condition.column_name or "").strip():
            _issue(FilterErrorCode.EMPTY_COLUMN, "Column name is required.", None)
        _issue(exc.code, exc.message, condition.column_name or None)
        return ValidationResult(condition_id=condition.id, errors=errors)

    normalized = normalize(condition)
    column = normalized.column_name or None
    op = normalized.operator

    if not normalized.column_name:
        _issue(FilterErrorCode.EMPTY_COLUMN, "Column name is required.", None)

    category = _category_of(column_type)
    if category is not None and op not in operators_for_type(category):
        _issue(
            FilterErrorCode.OPERATOR_TYPE_MISMATCH,
            f"Operator {op.value!r} does not apply to {category.value} column {column!r}.",
            column,
        )

    invalid = _non_scalar_values(meta.value_arity, normalized.value, normalized.value2)
    if invalid:
        _issue(
            FilterErrorCode.INVALID_VALUE,
            f"Operator {op.value!r} on {column!r} accepts only plain values, "
            f"got {type(invalid[0]).__name__}.",
            column,
        )

    if meta.value_arity == ValueArity.one and normalized.value is None:
        _issue(
            FilterErrorCode.MISSING_VALUE,
            f"Operator {op.value!r} requires a value.",
            column,
        )
    elif meta.value_arity == ValueArity.list:
        if not normalized.value:
            _issue(
                FilterErrorCode.MISSING_VALUE,
                f"Operator {op.value!r} requires at least one value.",
                column,
            )
        elif len(normalized.value) > settings.max_in_cardinality:
            _issue(
                FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
                f"IN list on {column!r} has {len(normalized.value)} values, "
                f"exceeding maximum {settings.max_in_cardinality}.",
                column,
            )
    elif meta.value_arity == ValueArity.two and (
        normalized.value is None or normalized.value2 is None
    ):
        _issue(
            FilterErrorCode.INCOMPLETE_RANGE,
            f"Operator {op.value!r} requires both value and value2.",
            column,
        )

    return ValidationResult(
        condition_id=condition.id,
        errors=errors,
        normalized=None if errors else normalized,
    )


def validate_filters(
    filter_set: FilterSet,
    column_type_lookup: ColumnTypeLookup | None = None,
    *,
    settings: FilterSettings | None = None,
) -> FilterSetValidation:
    """Validate every condition of a set and aggregate the results.

    Args:
        filter_set: The set to validate.
        column_type_lookup: Column name → ColumnTypeInfo / TypeCategory.
            Columns missing from the lookup skip the type check.
        settings: Structural limits; defaults to the process-wide settings.
    """
    settings = settings or get_filter_settings()
    lookup = column_type_lookup or {}

    results = [
        validate(
            condition,
            lookup.get(str(condition.column_name or "").strip()),
            settings=settings,
        )
        for condition in filter_set.conditions
    ]

    set_errors = []
    if len(filter_set.conditions) > settings.max_conditions:
        set_errors.append(
            ValidationIssue(
                code=FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
                message=(
                    f"Filter has {len(filter_set.conditions)} conditions, "
                    f"exceeding maximum {settings.max_conditions}."
                ),
            )
        )

    return FilterSetValidation(results=results, set_errors=set_errors)


def are_filters_valid(
    filter_set: FilterSet,
    column_type_lookup: ColumnTypeLookup | None = None,
) -> bool:
    """Check if all conditions in a set are valid."""
    return validate_filters(filter_set, column_type_lookup).valid


def get_filter_errors(
    filter_set: FilterSet,
    column_type_lookup: ColumnTypeLookup | None = None,
) -> list[str]:
    """Flatten validation errors into "column: message" strings.

    Conditions without a column are labelled by position ("Filter 2").
    """
    validation = validate_filters(filter_set, column_type_lookup)
    messages = [issue.message for issue in validation.set_errors]
    for index, (condition, result) in enumerate(
        zip(filter_set.conditions, validation.results), start=1
    ):
        context = str(condition.column_name or "").strip() or f"Filter {index}"
        messages.extend(f"{context}: {issue.message}" for issue in result.errors)
    return messages


# ---------------------------------------------------------------------------
# Empty-condition handling
# ---------------------------------------------------------------------------


def is_filter_empty(condition: FilterCondition) -> bool:
    """True if the operator needs a value and none was entered.

    For between, the condition is empty only when both bounds are missing;
    a half-filled range is reported by validate() as INCOMPLETE_RANGE.
    """
    if not needs_value(condition.operator):
        return False
    normalized = normalize(condition)
    if isinstance(normalized.value, list):
        return not normalized.value
    if normalized.operator == FilterOperator.between:
        return normalized.value is None and normalized.value2 is None
    return normalized.value is None


def remove_empty_filters(filter_set: FilterSet) -> FilterSet:
    """Drop conditions the user has not filled in yet.

    This is the one lossy transform, kept separate so compilers never skip
    conditions on their own.
    """
    kept = tuple(c for c in filter_set.conditions if not is_filter_empty(c))
    return filter_set.model_copy(update={"conditions": kept})


def create_filter(
    column_name: str,
    operator: FilterOperator = FilterOperator.equals,
) -> FilterCondition:
    """Create a new, empty condition with a generated id."""
    return FilterCondition(column_name=column_name, operator=operator)


def normalize_filters(filter_set: FilterSet) -> FilterSet:
    """Normalize every condition of a set."""
    return filter_set.model_copy(
        update={"conditions": tuple(normalize(c) for c in filter_set.conditions)}
    )
