"""Operator metadata table.

Single source of truth for what every FilterOperator consumes (arity),
which column type categories it applies to, and how the UI labels it.
The table is built once at import time and never mutated, so it is safe to
read from any number of threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from src.filters.models.filter_set import (
    FilterCompilationError,
    FilterErrorCode,
    FilterOperator,
    TypeCategory,
    ValueArity,
    infer_type_category,
)

_ALL_TYPES = frozenset(TypeCategory)
_ORDERABLE = frozenset({TypeCategory.numeric, TypeCategory.date})
_STRING_ONLY = frozenset({TypeCategory.string})


@dataclass(frozen=True)
class OperatorMetadata:
    """Immutable description of one operator.

    Attributes:
        operator: The operator described.
        label: Display label for the UI.
        value_arity: How many values the operator consumes.
        applicable_types: Column type categories the operator applies to.
    """

    operator: FilterOperator
    label: str
    value_arity: ValueArity
    applicable_types: frozenset[TypeCategory]


OPERATOR_METADATA = MappingProxyType({
    FilterOperator.equals: OperatorMetadata(
        FilterOperator.equals, "Equals", ValueArity.one, _ALL_TYPES
    ),
    FilterOperator.not_equals: OperatorMetadata(
        FilterOperator.not_equals, "Not Equals", ValueArity.one, _ALL_TYPES
    ),
    FilterOperator.contains: OperatorMetadata(
        FilterOperator.contains, "Contains", ValueArity.one, _STRING_ONLY
    ),
    FilterOperator.starts_with: OperatorMetadata(
        FilterOperator.starts_with, "Starts With", ValueArity.one, _STRING_ONLY
    ),
    FilterOperator.ends_with: OperatorMetadata(
        FilterOperator.ends_with, "Ends With", ValueArity.one, _STRING_ONLY
    ),
    FilterOperator.greater_than: OperatorMetadata(
        FilterOperator.greater_than, "Greater Than", ValueArity.one, _ORDERABLE
    ),
    FilterOperator.less_than: OperatorMetadata(
        FilterOperator.less_than, "Less Than", ValueArity.one, _ORDERABLE
    ),
    FilterOperator.greater_or_equal: OperatorMetadata(
        FilterOperator.greater_or_equal, "Greater or Equal", ValueArity.one, _ORDERABLE
    ),
    FilterOperator.less_or_equal: OperatorMetadata(
        FilterOperator.less_or_equal, "Less or Equal", ValueArity.one, _ORDERABLE
    ),
    FilterOperator.is_null: OperatorMetadata(
        FilterOperator.is_null, "Is NULL", ValueArity.none, _ALL_TYPES
    ),
    FilterOperator.is_not_null: OperatorMetadata(
        FilterOperator.is_not_null, "Is Not NULL", ValueArity.none, _ALL_TYPES
    ),
    FilterOperator.in_: OperatorMetadata(
        FilterOperator.in_,
        "In List",
        ValueArity.list,
        frozenset({TypeCategory.string, TypeCategory.numeric}),
    ),
    FilterOperator.between: OperatorMetadata(
        FilterOperator.between, "Between", ValueArity.two, _ORDERABLE
    ),
})

# UI order (the table above is keyed, this is the order dropdowns show)
ALL_OPERATORS: tuple[FilterOperator, ...] = tuple(OPERATOR_METADATA)

OPERATOR_LABELS = MappingProxyType(
    {op: meta.label for op, meta in OPERATOR_METADATA.items()}
)


def metadata_for(operator: FilterOperator | str) -> OperatorMetadata:
    """Get metadata for an operator.

    Accepts the enum member or its wire value ("in", "between", ...).

    Raises:
        FilterCompilationError: UNKNOWN_OPERATOR if the operator is not in
            the closed set.
    """
    try:
        op = FilterOperator(operator)
    except ValueError:
        raise FilterCompilationError(
            FilterErrorCode.UNKNOWN_OPERATOR,
            f"Unknown operator {operator!r}.",
        ) from None
    return OPERATOR_METADATA[op]


def operators_for_type(type_category: TypeCategory | str) -> list[FilterOperator]:
    """Return the operators applicable to a type category, in UI order.

    ``type_category`` may also be a raw database type (``"varchar(255)"``,
    ``"bigint"``); it is mapped with infer_type_category().
    """
    try:
        category = TypeCategory(type_category)
    except ValueError:
        category = infer_type_category(type_category)
    return [
        op for op, meta in OPERATOR_METADATA.items()
        if category in meta.applicable_types
    ]


def is_operator_valid_for_type(
    operator: FilterOperator | str, type_category: TypeCategory | str
) -> bool:
    """Check if an operator is valid for a given type category."""
    return metadata_for(operator).operator in operators_for_type(type_category)


def needs_value(operator: FilterOperator | str) -> bool:
    """True if the operator takes at least one value."""
    return metadata_for(operator).value_arity != ValueArity.none


def needs_two_values(operator: FilterOperator | str) -> bool:
    """True for between."""
    return metadata_for(operator).value_arity == ValueArity.two


def needs_comma_separated_value(operator: FilterOperator | str) -> bool:
    """True for in: the UI collects a comma-separated list."""
    return metadata_for(operator).value_arity == ValueArity.list


def type_category_for(raw_type: str) -> TypeCategory:
    """Map a raw database column type onto a TypeCategory."""
    return infer_type_category(raw_type)
