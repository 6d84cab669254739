"""SQL dialect presets for the SQL filter compiler.

Each dialect fixes how identifiers are quoted, which placeholder style the
driver expects, and how pattern operators are rendered (LIKE vs ILIKE, the
text cast applied to the column, the ESCAPE literal and any extra LIKE
metacharacters).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from src.filters.models.filter_set import PlaceholderStyle

IdentifierQuoter = Callable[[str], str]


class SqlDialect(str, Enum):
    """SQL databases the compiler emits fragments for."""

    postgres = "postgres"
    mysql = "mysql"
    mariadb = "mariadb"
    sqlserver = "sqlserver"
    sqlite = "sqlite"


def quote_double(name: str) -> str:
    """ANSI quoting: "name", embedded quotes doubled."""
    return '"' + name.replace('"', '""') + '"'


def quote_backtick(name: str) -> str:
    """MySQL / MariaDB quoting: `name`, embedded backticks doubled."""
    return "`" + name.replace("`", "``") + "`"


def quote_bracket(name: str) -> str:
    """SQL Server quoting: [name], embedded closing brackets doubled."""
    return "[" + name.replace("]", "]]") + "]"


@dataclass(frozen=True)
class SqlDialectOptions:
    """Rendering conventions of one SQL dialect.

    Attributes:
        quote_identifier: Function that quotes a column name.
        placeholder_style: Default bound-parameter syntax.
        like_operator: LIKE, or ILIKE where the dialect has it.
        text_cast: Format string applied to the quoted column before pattern
            matching, e.g. ``{}::text``.
        escape_literal: SQL text of the ESCAPE clause's character literal.
        like_metachars: Characters escaped in pattern values besides the
            escape character itself.
    """

    quote_identifier: IdentifierQuoter
    placeholder_style: PlaceholderStyle
    like_operator: str = "LIKE"
    text_cast: str = "{}"
    escape_literal: str = "'\\'"
    like_metachars: tuple[str, ...] = ("%", "_")


# MySQL treats backslash as an escape inside string literals, so the one-char
# literal '\' must be written '\\'
_MYSQL_OPTIONS = SqlDialectOptions(
    quote_identifier=quote_backtick,
    placeholder_style=PlaceholderStyle.question(),
    escape_literal="'\\\\'",
)

DIALECT_OPTIONS: dict[SqlDialect, SqlDialectOptions] = {
    SqlDialect.postgres: SqlDialectOptions(
        quote_identifier=quote_double,
        placeholder_style=PlaceholderStyle.dollar(),
        like_operator="ILIKE",
        text_cast="{}::text",
    ),
    SqlDialect.mysql: _MYSQL_OPTIONS,
    SqlDialect.mariadb: _MYSQL_OPTIONS,
    SqlDialect.sqlserver: SqlDialectOptions(
        quote_identifier=quote_bracket,
        placeholder_style=PlaceholderStyle.named(),
        text_cast="CAST({} AS NVARCHAR(MAX))",
        like_metachars=("%", "_", "["),
    ),
    SqlDialect.sqlite: SqlDialectOptions(
        quote_identifier=quote_double,
        placeholder_style=PlaceholderStyle.question(),
    ),
}

# sqlglot dialect names used for syntax checks
SQLGLOT_DIALECTS: dict[SqlDialect, str] = {
    SqlDialect.postgres: "postgres",
    SqlDialect.mysql: "mysql",
    SqlDialect.mariadb: "mysql",
    SqlDialect.sqlserver: "tsql",
    SqlDialect.sqlite: "sqlite",
}


def dialect_options(dialect: SqlDialect | str) -> SqlDialectOptions:
    """Return the rendering conventions for a dialect.

    Raises:
        ValueError: If the dialect is not a SqlDialect value.
    """
    return DIALECT_OPTIONS[SqlDialect(dialect)]
