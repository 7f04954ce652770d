"""
Unit tests for error handling utilities.
"""
import math

import numpy as np
import pytest

from infra_coverage.utils.error_handling import (
    round_half_up,
    safe_division,
    validate_not_empty,
)
from infra_coverage.utils.exceptions import DataValidationError


class TestSafeDivision:
    """Test safe_division function."""

    def test_normal_division(self):
        assert safe_division(10, 4) == 2.5

    def test_division_by_zero_returns_default(self):
        assert safe_division(10, 0) == 0.0
        assert safe_division(10, 0, default=-1.0) == -1.0

    def test_none_operands_return_default(self):
        assert safe_division(None, 5) == 0.0
        assert safe_division(5, None, default=1.0) == 1.0

    def test_non_finite_result_returns_default(self):
        assert safe_division(math.inf, 1) == 0.0
        assert safe_division(float('nan'), 2, default=3.0) == 3.0


class TestRoundHalfUp:
    """Test round_half_up function."""

    def test_halves_round_away_from_zero(self):
        """Builtin round() would give 2 and 0 here."""
        assert round_half_up(2.5) == 3.0
        assert round_half_up(0.5) == 1.0

    def test_one_decimal(self):
        assert round_half_up(20.65, 1) == 20.7
        assert round_half_up(20.64, 1) == 20.6
        assert round_half_up(0.05, 1) == 0.1

    def test_numpy_scalar(self):
        assert round_half_up(np.float64(49.95), 1) == 50.0

    def test_invalid_values_return_zero(self):
        assert round_half_up(float('nan'), 1) == 0.0
        assert round_half_up(None) == 0.0


class TestValidateNotEmpty:
    """Test validate_not_empty function."""

    def test_passes_with_items(self):
        validate_not_empty([1, 2, 3], "districts")

    def test_raises_when_empty(self):
        with pytest.raises(DataValidationError) as exc_info:
            validate_not_empty([], "districts")

        assert "districts is empty" in str(exc_info.value)
