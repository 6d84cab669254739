"""FilterSet Cassandra CQL compiler.

CQL restricts WHERE clauses to partition keys (equality), clustering keys
(equality or range, in declared clustering order) and indexed columns.
Everything else needs ALLOW FILTERING or is rejected outright:

- is_null / is_not_null: CQL has no NULL predicate.
- contains / starts_with / ends_with: only on columns with a text-search
  capable (SASI / SAI) index; otherwise there is no LIKE.
- OR across more than one condition: CQL WHERE is AND-only.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import BaseModel, Field

from src.filters.dialects import quote_double
from src.filters.models.filter_set import (
    ColumnTypeInfo,
    ColumnTypeLookup,
    CompiledCqlFilter,
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
    ValidationIssue,
)
from src.filters.operators import ALL_OPERATORS
from src.filters.validation import bind_operand

logger = logging.getLogger(__name__)

UNSUPPORTED_OPERATOR_REASONS: dict[FilterOperator, str] = {
    FilterOperator.is_null: "Cassandra does not support IS NULL. Filter results client-side.",
    FilterOperator.is_not_null: (
        "Cassandra does not support IS NOT NULL. Filter results client-side."
    ),
}

OR_LOGIC_ERROR = (
    "Cassandra does not support OR logic in WHERE clauses. "
    "Use multiple queries or filter results client-side."
)

_PATTERN_OPERATORS = frozenset(
    {FilterOperator.contains, FilterOperator.starts_with, FilterOperator.ends_with}
)
_EQUALITY_OPERATORS = frozenset({FilterOperator.equals, FilterOperator.in_})

_COMPARISONS = {
    FilterOperator.equals: "=",
    FilterOperator.not_equals: "!=",
    FilterOperator.greater_than: ">",
    FilterOperator.greater_or_equal: ">=",
    FilterOperator.less_than: "<",
    FilterOperator.less_or_equal: "<=",
}


class CassandraValidation(BaseModel):
    """Cassandra compatibility of a filter set, for display before querying."""

    supported: list[FilterCondition] = Field(default_factory=list)
    unsupported: list[ValidationIssue] = Field(default_factory=list)
    logic_error: str | None = None

    @property
    def valid(self) -> bool:
        return not self.unsupported and self.logic_error is None


def cassandra_supported_operators() -> list[FilterOperator]:
    """Operators the CQL compiler can emit, in UI order.

    Pattern operators are listed; they still need a text-search index on the
    target column.
    """
    return [op for op in ALL_OPERATORS if op not in UNSUPPORTED_OPERATOR_REASONS]


def compile_cassandra_filter(
    filter_set: FilterSet,
    column_type_lookup: ColumnTypeLookup | None = None,
) -> CompiledCqlFilter:
    """Compile a filter set into a CQL WHERE fragment.

    Args:
        filter_set: Validated and normalized conditions.
        column_type_lookup: Column name → ColumnTypeInfo with key roles and
            index flags. Unknown columns are treated as regular columns.

    Returns:
        CompiledCqlFilter with ``?`` placeholders, positional params and
        whether the caller must append ALLOW FILTERING.

    Raises:
        FilterCompilationError: UNSUPPORTED_LOGIC for OR across several
            conditions, UNSUPPORTED_OPERATOR for conditions CQL cannot
            express, INVALID_ARITY if a condition was not validated.
    """
    lookup = column_type_lookup or {}

    if filter_set.is_empty:
        return CompiledCqlFilter(where_clause="", params=[])

    if filter_set.logic == "OR" and len(filter_set.conditions) > 1:
        raise FilterCompilationError(FilterErrorCode.UNSUPPORTED_LOGIC, OR_LOGIC_ERROR)

    params: list[Any] = []
    fragments = [
        _compile_condition(cond, lookup, params) for cond in filter_set.conditions
    ]
    requires_allow_filtering = needs_allow_filtering(filter_set.conditions, lookup)

    logger.debug(
        "Compiled %d CQL condition(s): %d param(s), allow_filtering=%s",
        len(fragments),
        len(params),
        requires_allow_filtering,
    )
    return CompiledCqlFilter(
        where_clause=" AND ".join(fragments),
        params=params,
        requires_allow_filtering=requires_allow_filtering,
    )


def _compile_condition(
    cond: FilterCondition, lookup: ColumnTypeLookup, params: list[Any]
) -> str:
    """Compile a single condition into a CQL fragment, appending its params."""
    rejection = _rejection(cond, lookup)
    if rejection is not None:
        raise rejection

    operand = bind_operand(cond)
    col = quote_double(cond.column_name)
    op = cond.operator

    if op in _COMPARISONS:
        params.append(operand.value)
        return f"{col} {_COMPARISONS[op]} ?"

    elif op in _PATTERN_OPERATORS:
        value = str(operand.value)
        if op == FilterOperator.contains:
            params.append(f"%{value}%")
        elif op == FilterOperator.starts_with:
            params.append(f"{value}%")
        else:
            params.append(f"%{value}")
        return f"{col} LIKE ?"

    elif op == FilterOperator.in_:
        params.extend(operand.values)
        placeholders = ", ".join("?" for _ in operand.values)
        return f"{col} IN ({placeholders})"

    elif op == FilterOperator.between:
        # CQL has no BETWEEN
        params.extend([operand.low, operand.high])
        return f"{col} >= ? AND {col} <= ?"

    else:
        raise FilterCompilationError(
            FilterErrorCode.UNKNOWN_OPERATOR,
            f"Unknown operator {op!r}.",
            condition_id=cond.id,
            column=cond.column_name,
        )


def _rejection(
    cond: FilterCondition, lookup: ColumnTypeLookup
) -> FilterCompilationError | None:
    """Return the reason CQL cannot express a condition, or None."""
    op = cond.operator
    reason = None

    if op in UNSUPPORTED_OPERATOR_REASONS:
        reason = UNSUPPORTED_OPERATOR_REASONS[op]
    elif op in _PATTERN_OPERATORS:
        info = _column_info(lookup, cond.column_name)
        if info is None or not info.supports_text_search:
            reason = (
                f"Cassandra has no LIKE on {cond.column_name!r}: the column needs "
                f"a text-search (SASI/SAI) index for {op.value!r}."
            )
        elif isinstance(cond.value, str) and "%" in cond.value:
            # CQL LIKE has no escape character
            reason = (
                f"Cassandra LIKE cannot match a literal '%' in the value "
                f"for {cond.column_name!r}."
            )

    if reason is None:
        return None
    return FilterCompilationError(
        FilterErrorCode.UNSUPPORTED_OPERATOR,
        reason,
        condition_id=cond.id,
        column=cond.column_name,
    )


# ---------------------------------------------------------------------------
# ALLOW FILTERING analysis
# ---------------------------------------------------------------------------


def _column_info(lookup: ColumnTypeLookup, column_name: str) -> ColumnTypeInfo | None:
    entry = lookup.get(column_name)
    return entry if isinstance(entry, ColumnTypeInfo) else None


def needs_allow_filtering(
    conditions: Sequence[FilterCondition],
    column_type_lookup: ColumnTypeLookup | None = None,
) -> bool:
    """Check whether a conjunction of conditions needs ALLOW FILTERING.

    True when any of these holds:
    - a condition targets a column that is neither a key nor indexed
      (columns missing from the lookup count as regular columns);
    - not_equals is used anywhere;
    - a partition key is restricted by anything but equality / IN, or only
      part of the partition key is restricted;
    - a clustering column is restricted without the full partition key, or
      while a preceding clustering column is not equality-restricted.
    """
    if not conditions:
        return False
    lookup = column_type_lookup or {}

    restrictions: dict[str, set[FilterOperator]] = {}
    for cond in conditions:
        if cond.operator == FilterOperator.not_equals:
            return True
        info = _column_info(lookup, cond.column_name)
        if info is None:
            return True
        if info.is_partition_key:
            if cond.operator not in _EQUALITY_OPERATORS:
                return True
        elif not info.is_clustering_key and not info.is_indexed:
            return True
        restrictions.setdefault(cond.column_name, set()).add(cond.operator)

    columns = [e for e in lookup.values() if isinstance(e, ColumnTypeInfo)]
    partition_keys = [c.name for c in columns if c.is_partition_key]
    pk_restricted = [name for name in partition_keys if name in restrictions]
    if pk_restricted and len(pk_restricted) != len(partition_keys):
        return True

    clustering = sorted(
        (c for c in columns if c.is_clustering_key),
        key=lambda c: (c.clustering_position is None, c.clustering_position or 0),
    )
    for position, column in enumerate(clustering):
        if column.name not in restrictions:
            continue
        if not partition_keys or len(pk_restricted) != len(partition_keys):
            return True
        for preceding in clustering[:position]:
            ops = restrictions.get(preceding.name)
            if not ops or not ops <= _EQUALITY_OPERATORS:
                return True

    return False


def validate_cassandra_filters(
    filter_set: FilterSet,
    column_type_lookup: ColumnTypeLookup | None = None,
) -> CassandraValidation:
    """Pre-check a filter set for Cassandra before building the query.

    Splits the conditions into supported and unsupported (with a reason),
    so the UI can flag them before anything is sent to the cluster.
    """
    lookup = column_type_lookup or {}

    if filter_set.logic == "OR" and len(filter_set.conditions) > 1:
        return CassandraValidation(
            unsupported=[
                ValidationIssue(
                    code=FilterErrorCode.UNSUPPORTED_LOGIC,
                    message="Cassandra does not support OR logic in WHERE clauses.",
                    condition_id=cond.id,
                    column=cond.column_name or None,
                )
                for cond in filter_set.conditions
            ],
            logic_error=OR_LOGIC_ERROR,
        )

    result = CassandraValidation()
    for cond in filter_set.conditions:
        rejection = _rejection(cond, lookup)
        if rejection is not None:
            result.unsupported.append(rejection.to_issue())
        elif cond.operator == FilterOperator.between and (
            cond.value is None or cond.value2 is None
        ):
            result.unsupported.append(
                ValidationIssue(
                    code=FilterErrorCode.INCOMPLETE_RANGE,
                    message="BETWEEN operator requires both value and value2.",
                    condition_id=cond.id,
                    column=cond.column_name or None,
                )
            )
        else:
            result.supported.append(cond)
    return result
