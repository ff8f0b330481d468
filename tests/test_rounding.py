"""Tests for display rounding."""

import pytest

from production_engine.utils.rounding import round_half_up


@pytest.mark.parametrize(
    ("value", "expected"),
    [(54.5, 55), (54.49, 54), (0.5, 1), (-0.5, 0), (-54.5, -54), (-54.51, -55), (7.0, 7)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected
