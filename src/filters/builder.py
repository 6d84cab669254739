"""Filter builder: the boundary between the UI and the dialect compilers.

Runs validate → normalize → compile for exactly one target database and
turns every validation problem and dialect rejection into a structured
result, so callers never have to catch compiler exceptions themselves.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, Field

from src.errors.formatter import DbViewError, format_error_summary
from src.filters.cassandra_compiler import compile_cassandra_filter
from src.filters.dialects import SqlDialect
from src.filters.elasticsearch_compiler import compile_elasticsearch_filter
from src.filters.filter_config import FilterSettings
from src.filters.models.filter_set import (
    ColumnTypeLookup,
    CompiledCqlFilter,
    CompiledSqlFilter,
    FilterCompilationError,
    FilterErrorCode,
    FilterSet,
    PlaceholderStyle,
    ValidationIssue,
)
from src.filters.mongo_compiler import compile_mongo_filter
from src.filters.sql_compiler import compile_sql_filter
from src.filters.validation import remove_empty_filters, validate_filters

logger = logging.getLogger(__name__)


class DatabaseType(str, Enum):
    """Database types a connection can have."""

    postgres = "postgres"
    mysql = "mysql"
    mariadb = "mariadb"
    sqlserver = "sqlserver"
    sqlite = "sqlite"
    mongodb = "mongodb"
    elasticsearch = "elasticsearch"
    cassandra = "cassandra"
    redis = "redis"


SQL_DATABASES: dict[DatabaseType, SqlDialect] = {
    DatabaseType.postgres: SqlDialect.postgres,
    DatabaseType.mysql: SqlDialect.mysql,
    DatabaseType.mariadb: SqlDialect.mariadb,
    DatabaseType.sqlserver: SqlDialect.sqlserver,
    DatabaseType.sqlite: SqlDialect.sqlite,
}


class FilterBuildResult(BaseModel):
    """Outcome of building a filter for one database.

    Exactly one of ``sql`` / ``mongo`` / ``elasticsearch`` / ``cassandra`` is
    set on success; on failure all are None and ``errors`` says why.
    """

    database_type: str
    errors: list[ValidationIssue] = Field(default_factory=list)
    sql: CompiledSqlFilter | None = None
    mongo: dict | None = None
    elasticsearch: dict | None = None
    cassandra: CompiledCqlFilter | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_errors(self) -> list[DbViewError]:
        """Convert issues into registry-backed errors for display."""
        return [DbViewError.from_issue(issue) for issue in self.errors]

    def summary(self) -> str:
        """User-facing summary of the errors, duplicates grouped."""
        return format_error_summary(self.to_errors())


def build_filter(
    filter_set: FilterSet,
    database_type: DatabaseType | str,
    column_types: ColumnTypeLookup | None = None,
    *,
    placeholder_style: PlaceholderStyle | None = None,
    embed: bool = False,
    drop_empty: bool = False,
    settings: FilterSettings | None = None,
) -> FilterBuildResult:
    """Validate, normalize and compile a filter set for one database.

    Args:
        filter_set: Conditions as collected by the UI.
        database_type: Target database of the active connection.
        column_types: Column name → ColumnTypeInfo / TypeCategory. Required
            for Cassandra key analysis; optional elsewhere.
        placeholder_style: SQL placeholder override; defaults to the dialect's.
        embed: SQL only; wrap the fragment for a larger WHERE clause.
        drop_empty: Remove conditions the user has not filled in before
            validating, instead of reporting them.
        settings: Structural limits; defaults to the process-wide settings.

    Returns:
        FilterBuildResult with the compiled fragment or the errors.
    """
    try:
        db_type = DatabaseType(database_type)
    except ValueError:
        db_type = None
    if db_type is None or db_type == DatabaseType.redis:
        logger.info("Filtering requested for unsupported database %r", database_type)
        return FilterBuildResult(
            database_type=(
                database_type.value
                if isinstance(database_type, Enum)
                else str(database_type)
            ),
            errors=[
                ValidationIssue(
                    code=FilterErrorCode.UNSUPPORTED_DATABASE,
                    message=f"Filtering is not supported for database type {database_type!r}.",
                )
            ],
        )

    if drop_empty:
        filter_set = remove_empty_filters(filter_set)

    validation = validate_filters(filter_set, column_types, settings=settings)
    if not validation.valid:
        logger.info(
            "Filter for %s rejected by validation: %d issue(s)",
            db_type.value,
            len(validation.errors),
        )
        return FilterBuildResult(database_type=db_type.value, errors=validation.errors)

    normalized = filter_set.model_copy(
        update={"conditions": tuple(r.normalized for r in validation.results)}
    )

    try:
        if db_type in SQL_DATABASES:
            compiled = {
                "sql": compile_sql_filter(
                    normalized,
                    placeholder_style,
                    dialect=SQL_DATABASES[db_type],
                    embed=embed,
                )
            }
        elif db_type == DatabaseType.mongodb:
            compiled = {"mongo": compile_mongo_filter(normalized)}
        elif db_type == DatabaseType.elasticsearch:
            compiled = {"elasticsearch": compile_elasticsearch_filter(normalized)}
        else:
            compiled = {"cassandra": compile_cassandra_filter(normalized, column_types)}
    except FilterCompilationError as exc:
        logger.warning("Filter rejected by %s compiler: %s", db_type.value, exc.code.value)
        return FilterBuildResult(database_type=db_type.value, errors=[exc.to_issue()])

    return FilterBuildResult(database_type=db_type.value, **compiled)
