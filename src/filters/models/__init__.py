"""Pydantic models for the filter compiler.

This module exports the condition model, the tagged operand variants,
column metadata, validation results and compiled outputs.
"""

from src.filters.models.filter_set import (
    ColumnTypeInfo,
    ColumnTypeLookup,
    CompiledCqlFilter,
    CompiledSqlFilter,
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
    PlaceholderStyle,
    TwoValues,
    TypeCategory,
    ValidationIssue,
    ValidationResult,
    ValueArity,
    infer_type_category,
    new_filter_id,
)

__all__ = [
    # Enums
    "FilterOperator",
    "ValueArity",
    "TypeCategory",
    "FilterErrorCode",
    # Conditions
    "FilterCondition",
    "FilterSet",
    "NoValue",
    "OneValue",
    "TwoValues",
    "ListValue",
    "Operand",
    "new_filter_id",
    # Column metadata
    "ColumnTypeInfo",
    "ColumnTypeLookup",
    "infer_type_category",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "FilterSetValidation",
    # Compilation
    "PlaceholderStyle",
    "CompiledSqlFilter",
    "CompiledCqlFilter",
    "FilterCompilationError",
]
