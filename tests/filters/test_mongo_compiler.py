"""Tests for the FilterSet MongoDB compiler."""

import re

import pytest

from src.filters.models import (
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
)
from src.filters.mongo_compiler import (
    build_mongo_match_stage,
    compile_mongo_filter,
    escape_regex,
)
from src.filters.validation import normalize


def _cond(column, operator, value=None, value2=None) -> FilterCondition:
    return normalize(
        FilterCondition(column_name=column, operator=operator, value=value, value2=value2)
    )


def _set(*conditions, logic="AND") -> FilterSet:
    return FilterSet(conditions=conditions, logic=logic)


def _sample_condition(operator: FilterOperator) -> FilterCondition:
    """A valid condition for any operator."""
    if operator == FilterOperator.between:
        return _cond("title", operator, "a", "m")
    if operator == FilterOperator.in_:
        return _cond("title", operator, "a, b")
    return _cond("title", operator, "x")


class TestMongoOperators:
    """Verify the per-operator query documents."""

    def test_equals(self):
        assert compile_mongo_filter(_set(_cond("state", FilterOperator.equals, "CA"))) == {
            "state": "CA"
        }

    @pytest.mark.parametrize(
        "operator,mongo_op",
        [
            (FilterOperator.not_equals, "$ne"),
            (FilterOperator.greater_than, "$gt"),
            (FilterOperator.greater_or_equal, "$gte"),
            (FilterOperator.less_than, "$lt"),
            (FilterOperator.less_or_equal, "$lte"),
        ],
    )
    def test_comparisons(self, operator, mongo_op):
        assert compile_mongo_filter(_set(_cond("age", operator, 30))) == {
            "age": {mongo_op: 30}
        }

    def test_contains(self):
        assert compile_mongo_filter(_set(_cond("name", FilterOperator.contains, "wid"))) == {
            "name": {"$regex": "wid", "$options": "i"}
        }

    def test_starts_with(self):
        query = compile_mongo_filter(_set(_cond("name", FilterOperator.starts_with, "wid")))
        assert query == {"name": {"$regex": "^wid", "$options": "i"}}

    def test_ends_with(self):
        query = compile_mongo_filter(_set(_cond("name", FilterOperator.ends_with, "get")))
        assert query == {"name": {"$regex": "get$", "$options": "i"}}

    def test_in_from_comma_separated_string(self):
        """status in "active, pending" → {status: {$in: [active, pending]}}."""
        query = compile_mongo_filter(
            _set(_cond("status", FilterOperator.in_, "active, pending"))
        )
        assert query == {"status": {"$in": ["active", "pending"]}}

    def test_between(self):
        query = compile_mongo_filter(_set(_cond("age", FilterOperator.between, 18, 65)))
        assert query == {"age": {"$gte": 18, "$lte": 65}}

    def test_is_null_matches_null_and_missing(self):
        query = compile_mongo_filter(_set(_cond("email", FilterOperator.is_null)))
        assert query == {"$or": [{"email": None}, {"email": {"$exists": False}}]}

    def test_is_not_null(self):
        query = compile_mongo_filter(_set(_cond("email", FilterOperator.is_not_null)))
        assert query == {"email": {"$exists": True, "$ne": None}}

    def test_values_keep_their_type(self):
        query = compile_mongo_filter(_set(_cond("active", FilterOperator.equals, True)))
        assert query == {"active": True}

    @pytest.mark.parametrize("operator", list(FilterOperator))
    def test_every_operator_compiles(self, operator):
        """Dispatch is exhaustive over the closed operator set."""
        assert compile_mongo_filter(_set(_sample_condition(operator)))

    def test_unknown_operator_raises(self):
        cond = FilterCondition.model_construct(
            id="f1", column_name="a", operator="regex", value="x", value2=None
        )
        with pytest.raises(FilterCompilationError) as exc_info:
            compile_mongo_filter(_set(cond))
        assert exc_info.value.code == FilterErrorCode.UNKNOWN_OPERATOR


class TestRegexEscaping:
    """User text in pattern operators is matched literally."""

    def test_dot_is_literal(self):
        query = compile_mongo_filter(_set(_cond("name", FilterOperator.contains, "a.b")))
        pattern = re.compile(query["name"]["$regex"], re.IGNORECASE)
        assert pattern.search("xa.by")
        assert not pattern.search("axb")

    @pytest.mark.parametrize("value", ["(a|b)", "a+b", "[x]", "^$", "c:\\temp", "1.5*2?", "{2}"])
    def test_escaped_pattern_matches_only_itself(self, value):
        pattern = re.compile(escape_regex(value))
        assert pattern.fullmatch(value)

    def test_anchors_wrap_escaped_value(self):
        query = compile_mongo_filter(_set(_cond("path", FilterOperator.starts_with, "$HOME")))
        assert query["path"]["$regex"] == "^\\$HOME"


class TestMongoCombination:
    """Verify AND merging and OR wrapping."""

    def test_empty_set(self):
        assert compile_mongo_filter(FilterSet()) == {}

    def test_and_merges_distinct_fields(self):
        query = compile_mongo_filter(
            _set(
                _cond("status", FilterOperator.equals, "active"),
                _cond("age", FilterOperator.greater_than, 18),
            )
        )
        assert query == {"status": "active", "age": {"$gt": 18}}

    def test_and_same_field_uses_explicit_and(self):
        query = compile_mongo_filter(
            _set(
                _cond("age", FilterOperator.greater_than, 18),
                _cond("age", FilterOperator.less_than, 65),
            )
        )
        assert query == {"$and": [{"age": {"$gt": 18}}, {"age": {"$lt": 65}}]}

    def test_and_two_null_checks_do_not_collide(self):
        """Two is_null conditions both produce a top-level $or."""
        query = compile_mongo_filter(
            _set(_cond("a", FilterOperator.is_null), _cond("b", FilterOperator.is_null))
        )
        assert "$and" in query
        assert len(query["$and"]) == 2

    def test_or(self):
        query = compile_mongo_filter(
            _set(
                _cond("status", FilterOperator.equals, "active"),
                _cond("status", FilterOperator.equals, "pending"),
                logic="OR",
            )
        )
        assert query == {"$or": [{"status": "active"}, {"status": "pending"}]}

    def test_single_condition_has_no_wrapper(self):
        query = compile_mongo_filter(
            _set(_cond("a", FilterOperator.equals, 1), logic="OR")
        )
        assert query == {"a": 1}

    def test_match_stage(self):
        stage = build_mongo_match_stage(_set(_cond("a", FilterOperator.equals, 1)))
        assert stage == {"$match": {"a": 1}}

    def test_match_stage_empty(self):
        assert build_mongo_match_stage(FilterSet()) == {"$match": {}}
