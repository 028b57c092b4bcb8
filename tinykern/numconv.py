"""Number parsing and printing on 32-bit words, plus a seeded generator."""

from __future__ import annotations

from typing import NamedTuple

__all__ = [
    "LONG_MAX",
    "LONG_MIN",
    "ULONG_MAX",
    "RAND_MAX",
    "strtol",
    "strtoul",
    "atoi",
    "itoa",
    "utoa",
    "Rand",
]

LONG_MAX = 0x7FFFFFFF
LONG_MIN = -0x80000000
ULONG_MAX = 0xFFFFFFFF
RAND_MAX = 0x7FFFFFFF

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_WHITESPACE = " \t\n"
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class _Scan(NamedTuple):
    negative: bool
    magnitude: int
    overflow: bool
    end: int


def _check_parse_base(base: int) -> None:
    if base < 0 or base == 1 or base > 36:
        raise ValueError(f"unsupported base {base}")


def _check_radix(base: int) -> None:
    if not 2 <= base <= 36:
        raise ValueError(f"unsupported base {base}")


def _digit_value(ch: str) -> int | None:
    if ch.isascii() and ch.isalnum():
        return int(ch, 36)
    return None


def _scan(text: str, base: int, positive_limit: int, negative_limit: int) -> _Scan:
    text = text.split("\0", 1)[0]
    n = len(text)
    i = 0
    while i < n and text[i] in _WHITESPACE:
        i += 1
    negative = False
    if i < n and text[i] in "+-":
        negative = text[i] == "-"
        i += 1
    if base in (0, 16) and text[i : i + 1] == "0" and text[i + 1 : i + 2] in ("x", "X"):
        i += 2
        base = 16
    if base == 0:
        base = 8 if text[i : i + 1] == "0" else 10

    limit = negative_limit if negative else positive_limit
    magnitude = 0
    overflow = False
    consumed = False
    while i < n:
        digit = _digit_value(text[i])
        if digit is None or digit >= base:
            break
        consumed = True
        candidate = magnitude * base + digit
        if overflow or candidate > limit:
            overflow = True
        else:
            magnitude = candidate
        i += 1
    return _Scan(negative, magnitude, overflow, i if consumed else 0)


def strtol(text: str, base: int) -> tuple[int, int]:
    """Parse a signed 32-bit integer.

    Returns ``(value, end)`` where ``end`` is the index of the first
    character not consumed, or 0 when no digits were found.  Out-of-range
    input saturates at LONG_MIN or LONG_MAX.
    """
    _check_parse_base(base)
    scan = _scan(text, base, LONG_MAX, -LONG_MIN)
    if scan.overflow:
        value = LONG_MIN if scan.negative else LONG_MAX
    else:
        value = -scan.magnitude if scan.negative else scan.magnitude
    return value, scan.end


def strtoul(text: str, base: int) -> tuple[int, int]:
    """Parse an unsigned 32-bit integer; a leading minus wraps modulo 2**32.

    Returns ``(value, end)`` as :func:`strtol` does; overflow gives ULONG_MAX.
    """
    _check_parse_base(base)
    scan = _scan(text, base, ULONG_MAX, ULONG_MAX)
    if scan.overflow:
        value = ULONG_MAX
    elif scan.negative:
        value = (-scan.magnitude) & _MASK32
    else:
        value = scan.magnitude
    return value, scan.end


def atoi(text: str) -> int:
    """Parse a decimal integer, ignoring anything after the digits."""
    return strtol(text, 10)[0]


def utoa(value: int, base: int) -> str:
    """Render ``value`` as an unsigned 32-bit number in ``base``."""
    _check_radix(base)
    value &= _MASK32
    if value == 0:
        return _DIGITS[0]
    out = []
    while value:
        value, rem = divmod(value, base)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def itoa(value: int, base: int) -> str:
    """Render a 32-bit integer; only base 10 shows a minus sign."""
    _check_radix(base)
    value &= _MASK32
    if value & 0x80000000:
        value -= 1 << 32
    if base == 10 and value < 0:
        return "-" + utoa(-value, base)
    return utoa(value, base)


class Rand:
    """Linear congruential generator yielding values in ``[0, RAND_MAX]``."""

    _MULTIPLIER = 6364136223846793005

    def __init__(self, seed: int = 1) -> None:
        self._state = 0
        self.seed(seed)

    def seed(self, seed: int) -> None:
        """Restart the sequence from ``seed`` (taken as an unsigned 32-bit value)."""
        self._state = seed & _MASK32

    def next(self) -> int:
        """Advance the generator and return the next value."""
        self._state = (self._state * self._MULTIPLIER + 1) & _MASK64
        return (self._state >> 32) & RAND_MAX

    def __iter__(self) -> Rand:
        return self

    def __next__(self) -> int:
        return self.next()