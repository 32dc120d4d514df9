from decimal import Decimal

import pytest

from ordering.services.points_service import round_with_threshold


@pytest.mark.parametrize(
    "value, threshold, expected",
    [
        ("12.7", "0.7", 13),
        ("12.69", "0.7", 12),
        ("12.0", "0.7", 12),
        ("19.5", "0.7", 19),
        ("20.8", "0.7", 21),
        # below one point nothing rounds up
        ("0.9", "0.7", 0),
        ("1.7", "0.7", 2),
        # threshold 0 floors
        ("5.99", "0", 5),
    ],
)
def test_round_with_threshold(value, threshold, expected):
    assert round_with_threshold(Decimal(value), Decimal(threshold)) == expected


def test_round_with_threshold_accepts_floats():
    assert round_with_threshold(12.7, 0.7) == 13
