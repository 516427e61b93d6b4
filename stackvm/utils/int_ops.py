"""Utilities for 32-bit signed integer operations."""

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
_MASK32 = (1 << 32) - 1


def to_int32(value: int) -> int:
    """Wrap an arbitrary Python int to signed 32-bit two's complement."""
    value &= _MASK32
    if value > INT32_MAX:
        value -= 1 << 32
    return value


def vm_add(a: int, b: int) -> int:
    """Perform addition (wrapping at 2^32)."""
    return to_int32(a + b)


def vm_sub(a: int, b: int) -> int:
    """Perform subtraction (wrapping at 2^32)."""
    return to_int32(a - b)


def vm_mul(a: int, b: int) -> int:
    """Perform multiplication (wrapping at 2^32)."""
    return to_int32(a * b)


def vm_div(a: int, b: int) -> int:
    """
    Perform signed division truncating toward zero.

    Python's ``//`` floors, so the quotient is computed on magnitudes and the
    sign applied afterwards. The caller is responsible for rejecting b == 0.
    INT32_MIN / -1 wraps back to INT32_MIN.
    """
    if b == 0:
        raise ZeroDivisionError("vm_div by zero")
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return to_int32(quotient)


def vm_lt(a: int, b: int) -> int:
    """Signed less than comparison."""
    return 1 if a < b else 0


def vm_gt(a: int, b: int) -> int:
    """Signed greater than comparison."""
    return 1 if a > b else 0


def vm_eq(a: int, b: int) -> int:
    """Equal comparison."""
    return 1 if a == b else 0
