import pytest
from stackvm.utils.int_ops import (
    INT32_MAX,
    INT32_MIN,
    to_int32,
    vm_add,
    vm_div,
    vm_eq,
    vm_gt,
    vm_lt,
    vm_mul,
    vm_sub,
)


def test_to_int32_wraps():
    """Values outside the signed 32-bit range wrap around."""
    assert to_int32(0) == 0
    assert to_int32(-1) == -1
    assert to_int32(INT32_MAX + 1) == INT32_MIN
    assert to_int32(INT32_MIN - 1) == INT32_MAX
    assert to_int32(1 << 32) == 0


def test_arithmetic_basics():
    assert vm_add(2, 3) == 5
    assert vm_sub(2, 3) == -1
    assert vm_mul(-4, 6) == -24
    assert vm_add(INT32_MAX, 1) == INT32_MIN
    assert vm_mul(1 << 16, 1 << 16) == 0


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (0, 5, 0),
        (6, 3, 2),
    ],
)
def test_division_truncates_toward_zero(a, b, expected):
    """Unlike Python's //, the quotient is truncated toward zero."""
    assert vm_div(a, b) == expected


def test_division_min_by_minus_one_wraps():
    assert vm_div(INT32_MIN, -1) == INT32_MIN


def test_division_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        vm_div(1, 0)


def test_comparisons():
    assert vm_lt(1, 2) == 1
    assert vm_lt(2, 1) == 0
    assert vm_lt(2, 2) == 0
    assert vm_gt(2, 1) == 1
    assert vm_gt(1, 2) == 0
    assert vm_gt(2, 2) == 0
    assert vm_eq(-5, -5) == 1
    assert vm_eq(-5, 5) == 0
