"""
JAsm Machine — ALU Operations

All register arithmetic is 32-bit two's complement with silent wraparound:
  2147483647 + 1  → -2147483648
  -2147483648 * -1 → -2147483648

Division truncates toward zero and the remainder takes the sign of the
dividend:
  -7 / 2 → -3      -7 % 2 → -1      7 % -2 → 1

Callers check for a zero divisor before calling div32/mod32.
"""

from ..config import WORD_BITS

__all__ = ['INT_MIN', 'INT_MAX', 'wrap32', 'add32', 'sub32', 'mul32',
           'div32', 'mod32', 'hex32']

_MASK = (1 << WORD_BITS) - 1
_SIGN = 1 << (WORD_BITS - 1)

INT_MIN = -_SIGN
INT_MAX = _SIGN - 1


def wrap32(value: int) -> int:
    """Reduce any integer to the signed 32-bit range."""
    value &= _MASK
    if value & _SIGN:
        return value - (1 << WORD_BITS)
    return value


def add32(a: int, b: int) -> int:
    return wrap32(a + b)


def sub32(a: int, b: int) -> int:
    return wrap32(a - b)


def mul32(a: int, b: int) -> int:
    return wrap32(a * b)


def div32(a: int, b: int) -> int:
    """Quotient truncated toward zero. b must be non-zero."""
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return wrap32(q)


def mod32(a: int, b: int) -> int:
    """Remainder with the dividend's sign. b must be non-zero."""
    r = abs(a) % abs(b)
    if a < 0:
        r = -r
    return wrap32(r)


def hex32(value: int) -> str:
    """Lowercase hex of the 32-bit pattern, no prefix (-1 → 'ffffffff')."""
    return format(value & _MASK, 'x')
