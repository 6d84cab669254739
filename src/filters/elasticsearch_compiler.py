"""FilterSet Elasticsearch compiler.

Compiles a validated, normalized FilterSet into a Query DSL ``bool`` query.
Each condition becomes one clause plus a flag saying whether it is negative
(not_equals, is_null); AND logic files negative clauses under ``must_not``,
OR logic wraps them in a nested ``bool.must_not`` inside ``should``.
"""

from __future__ import annotations

import logging
from typing import Any

from src.filters.models.filter_set import (
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
)
from src.filters.validation import bind_operand

logger = logging.getLogger(__name__)

_RANGE_KEYS = {
    FilterOperator.greater_than: "gt",
    FilterOperator.greater_or_equal: "gte",
    FilterOperator.less_than: "lt",
    FilterOperator.less_or_equal: "lte",
}


def compile_elasticsearch_filter(filter_set: FilterSet) -> dict[str, Any]:
    """Compile a filter set into an Elasticsearch bool query.

    Returns:
        ``{"bool": {...}}``, or ``{"match_all": {}}`` for an empty set.

    Raises:
        FilterCompilationError: INVALID_ARITY if a condition was not
            validated, UNKNOWN_OPERATOR on an operator outside the closed set.
    """
    if filter_set.is_empty:
        return {"match_all": {}}

    clauses = [_compile_condition(cond) for cond in filter_set.conditions]

    if filter_set.logic == "OR":
        should = [
            {"bool": {"must_not": [clause]}} if negated else clause
            for clause, negated in clauses
        ]
        query = {"bool": {"should": should, "minimum_should_match": 1}}
    else:
        must = [clause for clause, negated in clauses if not negated]
        must_not = [clause for clause, negated in clauses if negated]
        body: dict[str, Any] = {}
        if must:
            body["must"] = must
        if must_not:
            body["must_not"] = must_not
        query = {"bool": body}

    logger.debug(
        "Compiled %d Elasticsearch clause(s) with %s logic",
        len(clauses),
        filter_set.logic,
    )
    return query


def build_elasticsearch_search_body(
    filter_set: FilterSet,
    from_: int = 0,
    size: int = 100,
    sort: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a complete search request body with paging and optional sort."""
    body: dict[str, Any] = {
        "query": compile_elasticsearch_filter(filter_set),
        "from": from_,
        "size": size,
    }
    if sort:
        body["sort"] = sort
    return body


def _escape_wildcard(value: str) -> str:
    """Escape backslash, ``*`` and ``?`` for wildcard patterns."""
    return value.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")


def _compile_condition(cond: FilterCondition) -> tuple[dict[str, Any], bool]:
    """Compile a single condition.

    Returns:
        Tuple of (clause, negated).
    """
    operand = bind_operand(cond)
    field = cond.column_name
    op = cond.operator

    if op == FilterOperator.equals:
        return {"term": {field: operand.value}}, False

    elif op == FilterOperator.not_equals:
        return {"term": {field: operand.value}}, True

    elif op == FilterOperator.contains:
        return {"match": {field: operand.value}}, False

    elif op == FilterOperator.starts_with:
        # prefix is not analyzed, so match against lower-cased index terms
        return {"prefix": {field: str(operand.value).lower()}}, False

    elif op == FilterOperator.ends_with:
        pattern = "*" + _escape_wildcard(str(operand.value))
        return {"wildcard": {field: {"value": pattern, "case_insensitive": True}}}, False

    elif op in _RANGE_KEYS:
        return {"range": {field: {_RANGE_KEYS[op]: operand.value}}}, False

    elif op == FilterOperator.between:
        return {"range": {field: {"gte": operand.low, "lte": operand.high}}}, False

    elif op == FilterOperator.in_:
        return {"terms": {field: list(operand.values)}}, False

    elif op == FilterOperator.is_null:
        return {"exists": {"field": field}}, True

    elif op == FilterOperator.is_not_null:
        return {"exists": {"field": field}}, False

    else:
        raise FilterCompilationError(
            FilterErrorCode.UNKNOWN_OPERATOR,
            f"Unknown operator {op!r}.",
            condition_id=cond.id,
            column=cond.column_name,
        )
