"""Cross-dialect filter compiler.

Translates UI filter conditions ("column X operator Y value Z") into
parameterized SQL WHERE fragments, MongoDB query documents, Elasticsearch
bool queries and Cassandra CQL WHERE clauses.

Main Entry Points:
    build_filter: Validate, normalize and compile for one database type.
    compile_sql_filter / compile_mongo_filter / compile_elasticsearch_filter /
    compile_cassandra_filter: The dialect compilers, for callers that run
    validation themselves.

Supporting Modules:
    operators: Operator metadata table.
    validation: Validation and normalization.
    filter_config: Structural limits loaded from YAML / environment.
"""

# Models
from src.filters.models import (
    ColumnTypeInfo,
    CompiledCqlFilter,
    CompiledSqlFilter,
    FilterCompilationError,
    FilterCondition,
    FilterErrorCode,
    FilterOperator,
    FilterSet,
    PlaceholderStyle,
    TypeCategory,
    ValidationIssue,
)

# Operator metadata
from src.filters.operators import (
    ALL_OPERATORS,
    OPERATOR_LABELS,
    OPERATOR_METADATA,
    metadata_for,
    operators_for_type,
)

# Validation
from src.filters.validation import (
    create_filter,
    get_filter_errors,
    is_filter_empty,
    normalize,
    remove_empty_filters,
    validate,
    validate_filters,
)

# Compilers
from src.filters.dialects import SqlDialect
from src.filters.sql_compiler import compile_sql_filter, validate_sql_syntax
from src.filters.mongo_compiler import build_mongo_match_stage, compile_mongo_filter
from src.filters.elasticsearch_compiler import (
    build_elasticsearch_search_body,
    compile_elasticsearch_filter,
)
from src.filters.cassandra_compiler import (
    compile_cassandra_filter,
    needs_allow_filtering,
    validate_cassandra_filters,
)

# Boundary
from src.filters.builder import DatabaseType, FilterBuildResult, build_filter

__all__ = [
    # Models
    "ColumnTypeInfo",
    "CompiledCqlFilter",
    "CompiledSqlFilter",
    "FilterCompilationError",
    "FilterCondition",
    "FilterErrorCode",
    "FilterOperator",
    "FilterSet",
    "PlaceholderStyle",
    "TypeCategory",
    "ValidationIssue",
    # Operator metadata
    "ALL_OPERATORS",
    "OPERATOR_LABELS",
    "OPERATOR_METADATA",
    "metadata_for",
    "operators_for_type",
    # Validation
    "create_filter",
    "get_filter_errors",
    "is_filter_empty",
    "normalize",
    "remove_empty_filters",
    "validate",
    "validate_filters",
    # Compilers
    "SqlDialect",
    "compile_sql_filter",
    "validate_sql_syntax",
    "compile_mongo_filter",
    "build_mongo_match_stage",
    "compile_elasticsearch_filter",
    "build_elasticsearch_search_body",
    "compile_cassandra_filter",
    "needs_allow_filtering",
    "validate_cassandra_filters",
    # Boundary
    "DatabaseType",
    "FilterBuildResult",
    "build_filter",
]
