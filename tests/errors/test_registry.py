"""Unit tests for src/errors/registry.py.

Tests verify:
- Filter error codes are registered with correct categories and titles
- Every FilterErrorCode maps onto a registered E-XXXX code
"""

import pytest

from src.errors.registry import (
    ERROR_REGISTRY,
    FILTER_ERROR_CODES,
    ErrorCategory,
    error_code_for,
    get_error,
    get_errors_by_category,
)
from src.filters.models import FilterErrorCode


@pytest.mark.parametrize(
    "code,category,title",
    [
        ("E-2050", ErrorCategory.VALIDATION, "Missing Filter Column"),
        ("E-2051", ErrorCategory.VALIDATION, "Operator Not Valid For Column Type"),
        ("E-2052", ErrorCategory.VALIDATION, "Missing Filter Value"),
        ("E-2053", ErrorCategory.VALIDATION, "Incomplete Range"),
        ("E-2055", ErrorCategory.VALIDATION, "Invalid Filter Value"),
        ("E-2054", ErrorCategory.VALIDATION, "Filter Too Large"),
        ("E-2060", ErrorCategory.VALIDATION, "Operator Not Supported By Database"),
        ("E-2061", ErrorCategory.VALIDATION, "Logic Not Supported By Database"),
        ("E-2062", ErrorCategory.VALIDATION, "Filtering Not Supported For Database"),
        ("E-4050", ErrorCategory.SYSTEM, "Unknown Filter Operator"),
        ("E-4051", ErrorCategory.SYSTEM, "Filter Compiled Without Validation"),
    ],
)
def test_filter_error_codes_registered(code, category, title):
    """All filter error codes must be registered."""
    error = get_error(code)
    assert error is not None, f"{code} not found in registry"
    assert error.category == category
    assert error.title == title


class TestRegistryLookup:
    """Verify registry helpers."""

    def test_unknown_code(self):
        assert get_error("E-9999") is None

    def test_registry_keys_match_codes(self):
        for key, error in ERROR_REGISTRY.items():
            assert key == error.code

    def test_every_error_has_remediation(self):
        for error in ERROR_REGISTRY.values():
            assert error.remediation

    def test_by_category(self):
        system = get_errors_by_category(ErrorCategory.SYSTEM)
        assert {e.code for e in system} == {"E-4050", "E-4051"}


class TestFilterErrorCodeMapping:
    """Verify FilterErrorCode → E-XXXX mapping."""

    @pytest.mark.parametrize("filter_code", list(FilterErrorCode))
    def test_every_filter_code_is_mapped(self, filter_code):
        assert filter_code.value in FILTER_ERROR_CODES
        assert get_error(error_code_for(filter_code)) is not None

    def test_mapping_accepts_enum_and_string(self):
        assert error_code_for(FilterErrorCode.MISSING_VALUE) == "E-2052"
        assert error_code_for("MISSING_VALUE") == "E-2052"

    def test_unmapped_code_is_internal_error(self):
        assert error_code_for("SOMETHING_ELSE") == "E-4051"
