import pytest

from grammarhub.utils.rounding import percentage, round_half_up


@pytest.mark.parametrize(
    "value,expected",
    [(72.5, 73), (72.4, 72), (0.5, 1), (2.5, 3), (99.99, 100), (0, 0)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_percentage_rounds_half_up():
    # 29/40 = 72.5%
    assert percentage(29, 40) == 73
    assert percentage(2, 3) == 67


def test_percentage_of_empty_total_is_zero():
    assert percentage(5, 0) == 0
