"""Filter data models for dialect-neutral filter compilation.

This module defines the type hierarchy shared by the validator and every
dialect compiler: FilterCondition (what the UI sends) → validated operand
(NoValue / OneValue / TwoValues / ListValue) → compiled fragment
(CompiledSqlFilter, CompiledCqlFilter, or a plain Mongo / Elasticsearch
document). All models are Pydantic v2 and frozen; an edit always builds a
new object.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FilterOperator(str, Enum):
    """Allowed filter operators. Closed set; compilers reject anything else."""

    equals = "equals"
    not_equals = "not_equals"
    greater_than = "greater_than"
    greater_or_equal = "greater_or_equal"
    less_than = "less_than"
    less_or_equal = "less_or_equal"
    contains = "contains"
    starts_with = "starts_with"
    ends_with = "ends_with"
    in_ = "in"  # Python attribute is `in_` (reserved word); VALUE is "in" (wire-facing)
    between = "between"
    is_null = "is_null"
    is_not_null = "is_not_null"


class ValueArity(str, Enum):
    """How many values an operator consumes."""

    none = "none"
    one = "one"
    two = "two"
    list = "list"


class TypeCategory(str, Enum):
    """Coarse column type categories used for operator applicability."""

    string = "string"
    numeric = "numeric"
    date = "date"
    boolean = "boolean"


class FilterErrorCode(str, Enum):
    """Deterministic error codes for filter validation and compilation."""

    EMPTY_COLUMN = "EMPTY_COLUMN"
    OPERATOR_TYPE_MISMATCH = "OPERATOR_TYPE_MISMATCH"
    MISSING_VALUE = "MISSING_VALUE"
    INVALID_VALUE = "INVALID_VALUE"
    INCOMPLETE_RANGE = "INCOMPLETE_RANGE"
    UNKNOWN_OPERATOR = "UNKNOWN_OPERATOR"
    UNSUPPORTED_OPERATOR = "UNSUPPORTED_OPERATOR"
    UNSUPPORTED_LOGIC = "UNSUPPORTED_LOGIC"
    INVALID_ARITY = "INVALID_ARITY"
    STRUCTURAL_LIMIT_EXCEEDED = "STRUCTURAL_LIMIT_EXCEEDED"
    UNSUPPORTED_DATABASE = "UNSUPPORTED_DATABASE"


# ---------------------------------------------------------------------------
# Column type inference
# ---------------------------------------------------------------------------

_NUMERIC_HINTS = ("int", "numeric", "decimal", "real", "double", "float", "money", "counter")
_NUMERIC_EXACT = {"number", "bigint", "smallint", "tinyint", "varint"}
_DATE_HINTS = ("date", "time")
_BOOLEAN_EXACT = {"boolean", "bool", "bit"}
_NOT_NUMERIC = ("interval", "point")


def infer_type_category(raw_type: str) -> TypeCategory:
    """Map a raw database type string onto a TypeCategory.

    Unknown and textual types fall back to ``string``.

    Examples:
        >>> infer_type_category("INTEGER")
        <TypeCategory.numeric: 'numeric'>
        >>> infer_type_category("timestamp with time zone")
        <TypeCategory.date: 'date'>
        >>> infer_type_category("varchar(255)")
        <TypeCategory.string: 'string'>
    """
    normalized = (raw_type or "").strip().lower()
    # Normalize parameterized types: DECIMAL(10,2) → decimal
    base = normalized.split("(")[0].strip()

    if base in _BOOLEAN_EXACT:
        return TypeCategory.boolean
    if base in _NUMERIC_EXACT:
        return TypeCategory.numeric
    # "interval" and "point" contain "int" but are not numbers
    if not base.startswith(_NOT_NUMERIC) and any(hint in base for hint in _NUMERIC_HINTS):
        return TypeCategory.numeric
    if any(hint in base for hint in _DATE_HINTS):
        return TypeCategory.date
    return TypeCategory.string


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


def new_filter_id() -> str:
    """Generate an opaque, unique filter id."""
    return f"filter_{uuid.uuid4().hex[:12]}"


class FilterCondition(BaseModel):
    """One dialect-neutral predicate as the UI sends it.

    ``value`` / ``value2`` are raw wire values. Their presence is checked
    against the operator arity by the validator; compilers only ever see the
    tagged operand derived from a validated, normalized condition.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_filter_id, description="Opaque uniqueness token.")
    column_name: str = Field(
        default="", alias="columnName", description="Column or field to filter on."
    )
    operator: FilterOperator = Field(
        default=FilterOperator.equals, description="Comparison operator."
    )
    value: Any = Field(default=None, description="First operand (raw).")
    value2: Any = Field(default=None, description="Second operand, only for between.")

    @field_validator("operator", mode="before")
    @classmethod
    def _default_operator(cls, value: Any) -> Any:
        if value is None or value == "":
            return FilterOperator.equals
        return value

    @field_validator("column_name", mode="before")
    @classmethod
    def _coerce_column_name(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class NoValue(BaseModel):
    """Operand of is_null / is_not_null."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class OneValue(BaseModel):
    """Operand of single-value operators."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["one"] = "one"
    value: Any


class TwoValues(BaseModel):
    """Operand of between: inclusive lower and upper bound."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["two"] = "two"
    low: Any
    high: Any


class ListValue(BaseModel):
    """Operand of in."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    values: tuple[Any, ...] = ()


Operand = Annotated[
    Union[NoValue, OneValue, TwoValues, ListValue], Field(discriminator="kind")
]


class FilterSet(BaseModel):
    """An ordered collection of conditions joined by one logic operator."""

    model_config = ConfigDict(frozen=True)

    conditions: tuple[FilterCondition, ...] = Field(
        default=(), description="Conditions in UI order."
    )
    logic: Literal["AND", "OR"] = Field(
        default="AND", description="Logical operator joining conditions."
    )

    @field_validator("logic", mode="before")
    @classmethod
    def _upper_logic(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def is_empty(self) -> bool:
        return not self.conditions


# ---------------------------------------------------------------------------
# Column metadata (supplied by the caller)
# ---------------------------------------------------------------------------


class ColumnTypeInfo(BaseModel):
    """Type and key-role information for one column."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_category: TypeCategory = TypeCategory.string
    is_partition_key: bool = False
    is_clustering_key: bool = False
    clustering_position: int | None = Field(
        default=None, description="0-based position in the declared clustering order."
    )
    is_indexed: bool = False
    supports_text_search: bool = Field(
        default=False, description="Indexed with a LIKE-capable (SASI/SAI) index."
    )

    @classmethod
    def from_db_type(cls, name: str, raw_type: str, **flags: Any) -> "ColumnTypeInfo":
        """Build column info from a raw database type string."""
        return cls(name=name, type_category=infer_type_category(raw_type), **flags)


ColumnTypeLookup = Mapping[str, Union[ColumnTypeInfo, TypeCategory]]


# ---------------------------------------------------------------------------
# Validation output
# ---------------------------------------------------------------------------


class ValidationIssue(BaseModel):
    """One reason a condition (or a whole set) cannot be compiled."""

    code: FilterErrorCode
    message: str
    condition_id: str | None = None
    column: str | None = None


class ValidationResult(BaseModel):
    """Validation outcome for a single condition."""

    condition_id: str
    errors: list[ValidationIssue] = Field(default_factory=list)
    normalized: FilterCondition | None = Field(
        default=None, description="Normalized condition, present only when valid."
    )

    @property
    def valid(self) -> bool:
        return not self.errors


class FilterSetValidation(BaseModel):
    """Aggregated validation outcome for a FilterSet."""

    results: list[ValidationResult] = Field(default_factory=list)
    set_errors: list[ValidationIssue] = Field(
        default_factory=list, description="Errors that belong to the set, not a condition."
    )

    @property
    def valid(self) -> bool:
        return not self.set_errors and all(r.valid for r in self.results)

    @property
    def errors(self) -> list[ValidationIssue]:
        issues = list(self.set_errors)
        for result in self.results:
            issues.extend(result.errors)
        return issues


# ---------------------------------------------------------------------------
# Placeholder styles
# ---------------------------------------------------------------------------


class PlaceholderStyle(BaseModel):
    """Bound-parameter syntax of a SQL dialect.

    ``numbered`` renders ``$1, $2`` (marker + counter), ``question`` renders
    ``?`` and ``named`` renders ``@p0, @p1`` (marker + name).
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["numbered", "question", "named"] = "numbered"
    marker: str = "$"
    start_index: int = 1
    name_prefix: str = "p"

    @classmethod
    def dollar(cls, start_index: int = 1) -> "PlaceholderStyle":
        return cls(kind="numbered", marker="$", start_index=start_index)

    @classmethod
    def question(cls) -> "PlaceholderStyle":
        return cls(kind="question", marker="?", start_index=0)

    @classmethod
    def named(cls, prefix: str = "@", start_index: int = 0) -> "PlaceholderStyle":
        return cls(kind="named", marker=prefix, start_index=start_index)


# ---------------------------------------------------------------------------
# Compilation output
# ---------------------------------------------------------------------------


class CompiledSqlFilter(BaseModel):
    """Output of the SQL compiler: a parameterized WHERE fragment."""

    where_clause: str = Field(
        ..., description="WHERE fragment without the WHERE keyword; empty for no filter."
    )
    params: list[Any] | dict[str, Any] = Field(
        default_factory=list,
        description="Positional values, or name → value for named placeholders.",
    )

    def render_where(self) -> str:
        """Return ``WHERE <clause>`` or an empty string when there is no filter."""
        return f"WHERE {self.where_clause}" if self.where_clause else ""


class CompiledCqlFilter(BaseModel):
    """Output of the Cassandra compiler."""

    where_clause: str = Field(..., description="CQL WHERE fragment; empty for no filter.")
    params: list[Any] = Field(default_factory=list, description="Positional `?` values.")
    requires_allow_filtering: bool = Field(
        default=False, description="Caller must append ALLOW FILTERING."
    )

    def render_where(self) -> str:
        """Return ``WHERE <clause> [ALLOW FILTERING]`` or an empty string."""
        if not self.where_clause:
            return ""
        suffix = " ALLOW FILTERING" if self.requires_allow_filtering else ""
        return f"WHERE {self.where_clause}{suffix}"


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class FilterCompilationError(Exception):
    """Deterministic error raised during filter compilation."""

    def __init__(
        self,
        code: FilterErrorCode,
        message: str,
        *,
        condition_id: str | None = None,
        column: str | None = None,
    ) -> None:
        """Initialize with a deterministic error code and message.

        Args:
            code: The specific error code from FilterErrorCode enum.
            message: Human-readable description of the failure.
            condition_id: Id of the offending condition, when there is one.
            column: Column the offending condition targets.
        """
        self.code = code
        self.message = message
        self.condition_id = condition_id
        self.column = column
        super().__init__(f"[{code.value}] {message}")

    def to_issue(self) -> ValidationIssue:
        """Convert to a structured issue for boundary reporting."""
        return ValidationIssue(
            code=self.code,
            message=self.message,
            condition_id=self.condition_id,
            column=self.column,
        )
