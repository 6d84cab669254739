"""Tests for the operator metadata table."""

import pytest

from src.filters.models import (
    FilterCompilationError,
    FilterErrorCode,
    FilterOperator,
    TypeCategory,
    ValueArity,
)
from src.filters.operators import (
    ALL_OPERATORS,
    OPERATOR_LABELS,
    OPERATOR_METADATA,
    is_operator_valid_for_type,
    metadata_for,
    needs_comma_separated_value,
    needs_two_values,
    needs_value,
    operators_for_type,
    type_category_for,
)


class TestOperatorMetadata:
    """Verify the metadata table covers the closed operator set."""

    def test_every_operator_has_metadata(self):
        assert set(OPERATOR_METADATA) == set(FilterOperator)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            OPERATOR_METADATA[FilterOperator.equals] = None  # type: ignore[index]

    @pytest.mark.parametrize(
        "operator,arity",
        [
            (FilterOperator.is_null, ValueArity.none),
            (FilterOperator.is_not_null, ValueArity.none),
            (FilterOperator.equals, ValueArity.one),
            (FilterOperator.contains, ValueArity.one),
            (FilterOperator.between, ValueArity.two),
            (FilterOperator.in_, ValueArity.list),
        ],
    )
    def test_arity(self, operator, arity):
        assert metadata_for(operator).value_arity == arity

    def test_lookup_by_wire_value(self):
        assert metadata_for("in").operator == FilterOperator.in_

    def test_unknown_operator_raises(self):
        with pytest.raises(FilterCompilationError) as exc_info:
            metadata_for("not_contains")
        assert exc_info.value.code == FilterErrorCode.UNKNOWN_OPERATOR

    def test_labels(self):
        assert OPERATOR_LABELS[FilterOperator.in_] == "In List"
        assert OPERATOR_LABELS[FilterOperator.is_null] == "Is NULL"
        assert len(OPERATOR_LABELS) == len(FilterOperator)

    def test_labels_are_read_only(self):
        with pytest.raises(TypeError):
            OPERATOR_LABELS[FilterOperator.in_] = "One Of"  # type: ignore[index]

    def test_ui_order(self):
        assert ALL_OPERATORS[0] == FilterOperator.equals
        assert ALL_OPERATORS[-1] == FilterOperator.between


class TestOperatorsForType:
    """Verify type applicability."""

    def test_string(self):
        ops = operators_for_type(TypeCategory.string)
        assert FilterOperator.contains in ops
        assert FilterOperator.in_ in ops
        assert FilterOperator.greater_than not in ops
        assert FilterOperator.between not in ops

    def test_numeric(self):
        ops = operators_for_type(TypeCategory.numeric)
        assert FilterOperator.between in ops
        assert FilterOperator.in_ in ops
        assert FilterOperator.contains not in ops

    def test_date(self):
        ops = operators_for_type(TypeCategory.date)
        assert FilterOperator.between in ops
        assert FilterOperator.in_ not in ops
        assert FilterOperator.starts_with not in ops

    def test_boolean(self):
        assert operators_for_type(TypeCategory.boolean) == [
            FilterOperator.equals,
            FilterOperator.not_equals,
            FilterOperator.is_null,
            FilterOperator.is_not_null,
        ]

    @pytest.mark.parametrize("category", list(TypeCategory))
    def test_equality_and_null_checks_apply_everywhere(self, category):
        ops = operators_for_type(category)
        for op in (
            FilterOperator.equals,
            FilterOperator.not_equals,
            FilterOperator.is_null,
            FilterOperator.is_not_null,
        ):
            assert op in ops

    def test_raw_database_type(self):
        assert operators_for_type("bigint") == operators_for_type(TypeCategory.numeric)
        assert operators_for_type("varchar(50)") == operators_for_type(
            TypeCategory.string
        )

    def test_result_keeps_ui_order(self):
        ops = operators_for_type(TypeCategory.string)
        assert ops == [op for op in ALL_OPERATORS if op in ops]

    def test_is_operator_valid_for_type(self):
        assert is_operator_valid_for_type("contains", "text")
        assert not is_operator_valid_for_type(FilterOperator.contains, TypeCategory.numeric)

    def test_type_category_for(self):
        assert type_category_for("timestamp") == TypeCategory.date


class TestValuePredicates:
    """Verify predicates derived from arity."""

    @pytest.mark.parametrize("operator", list(FilterOperator))
    def test_needs_value_matches_arity(self, operator):
        expected = metadata_for(operator).value_arity != ValueArity.none
        assert needs_value(operator) is expected

    def test_needs_two_values_only_between(self):
        assert [op for op in FilterOperator if needs_two_values(op)] == [
            FilterOperator.between
        ]

    def test_comma_separated_only_in(self):
        assert [op for op in FilterOperator if needs_comma_separated_value(op)] == [
            FilterOperator.in_
        ]
