"""FilterSet SQL compiler — parameterized WHERE fragment generation.

Compiles a validated, normalized FilterSet into a WHERE fragment for one SQL
dialect. Every value is emitted as a bound parameter; only quoted column
identifiers and fixed keywords ever appear in the SQL text.
Identical FilterSet + identical dialect options → identical SQL output.
"""

from __future__ import annotations

import logging
from typing import Any

import sqlglot

from src.filters.dialects import (
    SQLGLOT_DIALECTS,
    IdentifierQuoter,
    SqlDialect,
    SqlDialectOptions,
    dialect_options,
)
from src.filters.filter_config import get_filter_settings
from src.filters.models.filter_set import (
    CompiledSqlFilter,
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
    PlaceholderStyle,
)
from src.filters.validation import bind_operand

logger = logging.getLogger(__name__)

_COMPARISONS = {
    FilterOperator.equals: "=",
    FilterOperator.not_equals: "<>",
    FilterOperator.greater_than: ">",
    FilterOperator.greater_or_equal: ">=",
    FilterOperator.less_than: "<",
    FilterOperator.less_or_equal: "<=",
}


def compile_sql_filter(
    filter_set: FilterSet,
    placeholder_style: PlaceholderStyle | None = None,
    *,
    dialect: SqlDialect | str | None = None,
    quote_identifier: IdentifierQuoter | None = None,
    embed: bool = False,
    start_index: int | None = None,
) -> CompiledSqlFilter:
    """Compile a filter set into a parameterized SQL WHERE fragment.

    Args:
        filter_set: Validated and normalized conditions.
        placeholder_style: Bound-parameter syntax. Defaults to the dialect's.
        dialect: Dialect preset for quoting and pattern matching. Defaults to
            the configured default_sql_dialect.
        quote_identifier: Overrides the dialect's identifier quoting.
        embed: Wrap the combined expression in one outer pair of parentheses
            for splicing into a larger WHERE clause. An empty set then
            yields ``1=1`` instead of an empty clause.
        start_index: First placeholder number, when the caller already bound
            other parameters.

    Returns:
        CompiledSqlFilter with the fragment and its parameters (a list, or a
        name → value dict for named placeholders).

    Raises:
        FilterCompilationError: INVALID_ARITY if a condition was not
            validated, UNKNOWN_OPERATOR on an operator outside the closed set.
    """
    dialect = SqlDialect(dialect or get_filter_settings().default_sql_dialect)
    options = dialect_options(dialect)
    style = placeholder_style or options.placeholder_style
    if start_index is not None:
        style = style.model_copy(update={"start_index": start_index})
    quote = quote_identifier or options.quote_identifier

    param_counter = [style.start_index]
    params: list[Any] | dict[str, Any] = {} if style.kind == "named" else []

    if filter_set.is_empty:
        return CompiledSqlFilter(where_clause="1=1" if embed else "", params=params)

    wrap_compound = filter_set.logic == "OR"
    fragments = [
        _compile_condition(
            cond, options, quote, style, param_counter, params, wrap_compound
        )
        for cond in filter_set.conditions
    ]
    where_sql = f" {filter_set.logic} ".join(fragments)
    if embed:
        where_sql = f"({where_sql})"

    logger.debug(
        "Compiled %d SQL condition(s) (%s, %s placeholders): %d param(s)",
        len(fragments),
        dialect.value,
        style.kind,
        len(params),
    )
    return CompiledSqlFilter(where_clause=where_sql, params=params)


def _compile_condition(
    cond: FilterCondition,
    options: SqlDialectOptions,
    quote: IdentifierQuoter,
    style: PlaceholderStyle,
    param_counter: list[int],
    params: list[Any] | dict[str, Any],
    wrap_compound: bool,
) -> str:
    """Compile a single condition into a SQL fragment.

    Args:
        cond: The condition to compile.
        options: Dialect rendering conventions.
        quote: Identifier quoting function.
        style: Placeholder syntax.
        param_counter: Mutable parameter index counter.
        params: Accumulator for parameter values.
        wrap_compound: Parenthesize BETWEEN / IN fragments (OR logic).

    Returns:
        SQL fragment string.
    """
    operand = bind_operand(cond)
    col = quote(cond.column_name)
    op = cond.operator

    # Dispatch by operator
    if op in _COMPARISONS:
        ph = _next_param(style, param_counter, params, operand.value)
        return f"{col} {_COMPARISONS[op]} {ph}"

    elif op in (
        FilterOperator.contains,
        FilterOperator.starts_with,
        FilterOperator.ends_with,
    ):
        escaped = _escape_like_value(str(operand.value), options.like_metachars)
        if op == FilterOperator.contains:
            pattern = f"%{escaped}%"
        elif op == FilterOperator.starts_with:
            pattern = f"{escaped}%"
        else:
            pattern = f"%{escaped}"
        ph = _next_param(style, param_counter, params, pattern)
        target = options.text_cast.format(col)
        return f"{target} {options.like_operator} {ph} ESCAPE {options.escape_literal}"

    elif op == FilterOperator.in_:
        if not operand.values:
            return "1=0"
        placeholders = ", ".join(
            _next_param(style, param_counter, params, v) for v in operand.values
        )
        fragment = f"{col} IN ({placeholders})"
        return f"({fragment})" if wrap_compound else fragment

    elif op == FilterOperator.between:
        ph_lo = _next_param(style, param_counter, params, operand.low)
        ph_hi = _next_param(style, param_counter, params, operand.high)
        fragment = f"{col} BETWEEN {ph_lo} AND {ph_hi}"
        return f"({fragment})" if wrap_compound else fragment

    elif op == FilterOperator.is_null:
        return f"{col} IS NULL"

    elif op == FilterOperator.is_not_null:
        return f"{col} IS NOT NULL"

    else:
        raise FilterCompilationError(
            FilterErrorCode.UNKNOWN_OPERATOR,
            f"Unknown operator {op!r}.",
            condition_id=cond.id,
            column=cond.column_name,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _next_param(
    style: PlaceholderStyle,
    param_counter: list[int],
    params: list[Any] | dict[str, Any],
    value: Any,
) -> str:
    """Add a parameter and return its placeholder text.

    Args:
        style: Placeholder syntax.
        param_counter: Mutable counter (single-element list).
        params: Parameter accumulator; a dict for named placeholders.
        value: The parameter value to add.

    Returns:
        ``$N``, ``?`` or ``@pN`` depending on the style.
    """
    index = param_counter[0]
    param_counter[0] += 1

    if style.kind == "named":
        name = f"{style.name_prefix}{index}"
        params[name] = value
        return f"{style.marker}{name}"

    params.append(value)
    if style.kind == "question":
        return "?"
    return f"{style.marker}{index}"


def _escape_like_value(value: str, metachars: tuple[str, ...] = ("%", "_")) -> str:
    """Escape special LIKE/ILIKE characters in a value.

    Escapes backslash first, then each metacharacter, with a backslash
    escape character.

    Args:
        value: Raw string value.
        metachars: Pattern metacharacters of the dialect.

    Returns:
        Escaped string safe for LIKE patterns.
    """
    result = value.replace("\\", "\\\\")
    for char in metachars:
        result = result.replace(char, f"\\{char}")
    return result


def validate_sql_syntax(
    where_clause: str, dialect: SqlDialect | str = SqlDialect.postgres
) -> bool:
    """Validate SQL WHERE clause syntax using sqlglot.

    Wraps the clause in a SELECT statement for proper validation.

    Args:
        where_clause: SQL WHERE clause without the 'WHERE' keyword.
        dialect: Dialect whose grammar the clause is checked against.

    Returns:
        True if the syntax is valid.

    Raises:
        ValueError: If the SQL syntax is invalid.
    """
    read = SQLGLOT_DIALECTS[SqlDialect(dialect)]
    try:
        sqlglot.parse(f"SELECT * FROM t WHERE {where_clause}", read=read)
        return True
    except (sqlglot.errors.ParseError, sqlglot.errors.TokenError) as e:
        raise ValueError(f"Invalid SQL syntax: {e}") from e
