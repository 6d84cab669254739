"""Pytest fixtures for filter compiler tests."""

import sqlite3
from datetime import date

import duckdb
import pytest

from src.filters.models import ColumnTypeInfo, TypeCategory


PRODUCT_ROWS = [
    (1, "Widget", "active", 10.0, date(2024, 1, 15)),
    (2, "Gadget_Pro", "pending", 25.5, date(2024, 2, 20)),
    (3, "100% Cotton", "active", 40.0, date(2024, 3, 1)),
    (4, "widget mini", "archived", 5.0, date(2024, 3, 15)),
    (5, None, "active", None, None),
]


@pytest.fixture
def duckdb_products():
    """In-memory DuckDB with a products table (for $n placeholders)."""
    conn = duckdb.connect(":memory:")
    conn.execute("""
        CREATE TABLE products (
            id INTEGER,
            name VARCHAR,
            status VARCHAR,
            price DOUBLE,
            created_at DATE
        )
    """)
    conn.executemany("INSERT INTO products VALUES (?, ?, ?, ?, ?)", PRODUCT_ROWS)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_products():
    """In-memory SQLite with the same products table (for ? placeholders)."""
    conn = sqlite3.connect(":memory:")
    conn.execute("""
        CREATE TABLE products (
            id INTEGER,
            name TEXT,
            status TEXT,
            price REAL,
            created_at TEXT
        )
    """)
    conn.executemany(
        "INSERT INTO products VALUES (?, ?, ?, ?, ?)",
        [(*row[:4], row[4].isoformat() if row[4] else None) for row in PRODUCT_ROWS],
    )
    yield conn
    conn.close()


@pytest.fixture
def product_column_types() -> dict[str, TypeCategory]:
    """Type categories of the products table."""
    return {
        "id": TypeCategory.numeric,
        "name": TypeCategory.string,
        "status": TypeCategory.string,
        "price": TypeCategory.numeric,
        "created_at": TypeCategory.date,
    }


@pytest.fixture
def cassandra_events() -> dict[str, ColumnTypeInfo]:
    """Column lookup for a Cassandra table.

    PRIMARY KEY ((tenant_id, day), event_time, event_id), a regular index
    on status and a SAI text index on title.
    """
    return {
        "tenant_id": ColumnTypeInfo(
            name="tenant_id", type_category=TypeCategory.string, is_partition_key=True
        ),
        "day": ColumnTypeInfo(
            name="day", type_category=TypeCategory.date, is_partition_key=True
        ),
        "event_time": ColumnTypeInfo(
            name="event_time",
            type_category=TypeCategory.date,
            is_clustering_key=True,
            clustering_position=0,
        ),
        "event_id": ColumnTypeInfo(
            name="event_id",
            type_category=TypeCategory.string,
            is_clustering_key=True,
            clustering_position=1,
        ),
        "status": ColumnTypeInfo(
            name="status", type_category=TypeCategory.string, is_indexed=True
        ),
        "title": ColumnTypeInfo(
            name="title",
            type_category=TypeCategory.string,
            is_indexed=True,
            supports_text_search=True,
        ),
        "payload": ColumnTypeInfo(name="payload", type_category=TypeCategory.string),
    }


@pytest.fixture
def cassandra_users() -> dict[str, ColumnTypeInfo]:
    """Column lookup for a Cassandra table with a single partition key."""
    return {
        "user_id": ColumnTypeInfo(
            name="user_id", type_category=TypeCategory.string, is_partition_key=True
        ),
        "email": ColumnTypeInfo(name="email", type_category=TypeCategory.string),
    }
