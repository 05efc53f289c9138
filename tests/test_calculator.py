"""Tests for trip economics."""

import math

import pytest

from ecodrive.calculator import DomainError, compute_trip


class TestComputeTrip:
    """Tests for compute_trip."""

    def test_one_way(self):
        """Test cost for a one-way trip."""
        result = compute_trip(36, False, 12, 5.89)
        assert result.total_distance == 36
        assert result.cost == pytest.approx(36 / 12 * 5.89)

    def test_round_trip_doubles_distance(self):
        """Test that a round trip counts both legs."""
        result = compute_trip(50, True, 10, 5)
        assert result.total_distance == 100
        assert result.cost == pytest.approx(50)

    def test_zero_distance_costs_nothing(self):
        """Test the zero-distance edge."""
        result = compute_trip(0, True, 10, 5.89)
        assert result.total_distance == 0
        assert result.cost == 0

    def test_free_fuel(self):
        """Test that a zero price is allowed."""
        assert compute_trip(10, False, 10, 0).cost == 0

    @pytest.mark.parametrize("consumption", [0, -3])
    def test_non_positive_consumption_rejected(self, consumption):
        """Test that the division is never attempted."""
        with pytest.raises(DomainError):
            compute_trip(10, False, consumption, 5)

    def test_negative_distance_rejected(self):
        with pytest.raises(DomainError):
            compute_trip(-1, False, 10, 5)

    def test_negative_price_rejected(self):
        with pytest.raises(DomainError):
            compute_trip(10, False, 10, -0.01)

    @pytest.mark.parametrize("bad", [math.nan, math.inf])
    def test_non_finite_inputs_rejected(self, bad):
        """Test that nan and inf never reach the formula."""
        with pytest.raises(DomainError):
            compute_trip(bad, False, 10, 5)
        with pytest.raises(DomainError):
            compute_trip(10, False, bad, 5)

    def test_domain_error_is_arithmetic(self):
        assert issubclass(DomainError, ArithmeticError)
