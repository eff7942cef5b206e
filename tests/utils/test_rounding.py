"""Tests for shared rounding helpers."""

import pytest

from adaptive_training.utils import round_half_up


class TestRoundHalfUp:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (12.5, 13),
        (2.4999, 2),
        (-2.5, -2),
    ])
    def test_whole_numbers(self, value, expected):
        assert round_half_up(value) == expected

    def test_whole_numbers_are_ints(self):
        assert isinstance(round_half_up(2.5), int)

    def test_decimal_places(self):
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(2.25, 1) == 2.3
        assert round_half_up(1.09, 2) == 1.09
