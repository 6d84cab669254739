"""FilterSet MongoDB compiler.

Compiles a validated, normalized FilterSet into a query document for
``find()`` or an aggregation ``$match`` stage. Values are placed in the
document as-is (the driver encodes them); pattern operators escape regex
metacharacters so user text is always matched literally.
"""

from __future__ import annotations

import logging
import re
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

_REGEX_METACHARS = re.compile(r"[.*+?^${}()|\[\]\\]")

_COMPARISONS = {
    FilterOperator.not_equals: "$ne",
    FilterOperator.greater_than: "$gt",
    FilterOperator.greater_or_equal: "$gte",
    FilterOperator.less_than: "$lt",
    FilterOperator.less_or_equal: "$lte",
}


def escape_regex(value: str) -> str:
    """Escape regex metacharacters so the value matches literally.

    Examples:
        >>> escape_regex("a.b")
        'a\\\\.b'
    """
    return _REGEX_METACHARS.sub(lambda m: "\\" + m.group(0), value)


def compile_mongo_filter(filter_set: FilterSet) -> dict[str, Any]:
    """Compile a filter set into a MongoDB query document.

    AND merges per-condition documents into one, unless a key (field or
    top-level operator such as ``$or``) would repeat; then an explicit
    ``$and`` list is used so no condition is overwritten. OR produces
    ``{"$or": [...]}``. A single condition is returned without a wrapper.

    Returns:
        Query document; ``{}`` for an empty set.

    Raises:
        FilterCompilationError: INVALID_ARITY if a condition was not
            validated, UNKNOWN_OPERATOR on an operator outside the closed set.
    """
    if filter_set.is_empty:
        return {}

    documents = [_compile_condition(cond) for cond in filter_set.conditions]

    if len(documents) == 1:
        query = documents[0]
    elif filter_set.logic == "OR":
        query = {"$or": documents}
    else:
        query = _merge_and(documents)

    logger.debug(
        "Compiled %d Mongo condition(s) with %s logic", len(documents), filter_set.logic
    )
    return query


def build_mongo_match_stage(filter_set: FilterSet) -> dict[str, Any]:
    """Wrap the compiled query in an aggregation ``$match`` stage."""
    return {"$match": compile_mongo_filter(filter_set)}


def _merge_and(documents: list[dict[str, Any]]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for document in documents:
        if any(key in merged for key in document):
            return {"$and": documents}
        merged.update(document)
    return merged


def _compile_condition(cond: FilterCondition) -> dict[str, Any]:
    """Compile a single condition into a query document."""
    operand = bind_operand(cond)
    field = cond.column_name
    op = cond.operator

    if op == FilterOperator.equals:
        return {field: operand.value}

    elif op in _COMPARISONS:
        return {field: {_COMPARISONS[op]: operand.value}}

    elif op == FilterOperator.contains:
        return {field: {"$regex": escape_regex(str(operand.value)), "$options": "i"}}

    elif op == FilterOperator.starts_with:
        return {field: {"$regex": "^" + escape_regex(str(operand.value)), "$options": "i"}}

    elif op == FilterOperator.ends_with:
        return {field: {"$regex": escape_regex(str(operand.value)) + "$", "$options": "i"}}

    elif op == FilterOperator.in_:
        return {field: {"$in": list(operand.values)}}

    elif op == FilterOperator.between:
        return {field: {"$gte": operand.low, "$lte": operand.high}}

    elif op == FilterOperator.is_null:
        # Matches both explicit null and a missing field
        return {"$or": [{field: None}, {field: {"$exists": False}}]}

    elif op == FilterOperator.is_not_null:
        return {field: {"$exists": True, "$ne": None}}

    else:
        raise FilterCompilationError(
            FilterErrorCode.UNKNOWN_OPERATOR,
            f"Unknown operator {op!r}.",
            condition_id=cond.id,
            column=cond.column_name,
        )
