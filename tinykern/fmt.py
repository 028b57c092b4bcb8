"""printf-style formatting following the kernel library's conversion rules.

Integers are treated as 32-bit machine words: ``%d``/``%i`` read them as
signed, ``%u``/``%x``/``%X``/``%o``/``%p`` as unsigned.  ``%a`` formats a
4-byte IPv4 address and ``%la``/``%lA`` a 6-byte hardware address.
"""

from __future__ import annotations

import enum
import operator
from collections.abc import Callable, Iterator
from typing import Any

__all__ = ["sprintf", "cprintf"]

_MASK32 = 0xFFFFFFFF
_SIGN_BIT = 0x80000000
_LOWER = "0123456789abcdefghijklmnopqrstuvwxyz"
_UPPER = _LOWER.upper()
_POINTER_WIDTH = 8


class _Flag(enum.IntFlag):
    NONE = 0
    ZEROPAD = 1
    SIGN = 2
    PLUS = 4
    SPACE = 8
    LEFT = 16
    HEX_PREP = 32
    UPPERCASE = 64


_FLAG_CHARS = {
    "-": _Flag.LEFT,
    "+": _Flag.PLUS,
    " ": _Flag.SPACE,
    "#": _Flag.HEX_PREP,
    "0": _Flag.ZEROPAD,
}

# conversion -> (base, extra flags)
_INTEGER_CONVERSIONS = {
    "o": (8, _Flag.NONE),
    "x": (16, _Flag.NONE),
    "X": (16, _Flag.UPPERCASE),
    "d": (10, _Flag.SIGN),
    "i": (10, _Flag.SIGN),
    "u": (10, _Flag.NONE),
}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _read_int(fmt: str, i: int) -> tuple[int, int]:
    start = i
    while i < len(fmt) and _is_digit(fmt[i]):
        i += 1
    return int(fmt[start:i]), i


def _next_arg(values: Iterator[Any]) -> Any:
    try:
        return next(values)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def _int_arg(values: Iterator[Any]) -> int:
    value = _next_arg(values)
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(f"integer argument expected, got {type(value).__name__}") from None


def _char_arg(values: Iterator[Any]) -> str:
    value = _next_arg(values)
    if isinstance(value, str):
        if len(value) != 1:
            raise TypeError("%c requires a single character")
        return value
    return chr(operator.index(value) & 0xFF)


def _str_arg(values: Iterator[Any]) -> str:
    value = _next_arg(values)
    if value is None:
        return "<NULL>"
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("latin-1")
    if not isinstance(value, str):
        raise TypeError(f"string argument expected, got {type(value).__name__}")
    return value.split("\0", 1)[0]


def _address_arg(values: Iterator[Any], length: int) -> bytes:
    data = bytes(_next_arg(values))
    if len(data) < length:
        raise ValueError(f"address needs {length} bytes, got {len(data)}")
    return data[:length]


def _pad(text: str, width: int, flags: _Flag) -> str:
    fill = " " * max(width - len(text), 0)
    return text + fill if flags & _Flag.LEFT else fill + text


def _to_base(value: int, base: int, digits: str) -> str:
    if value == 0:
        return digits[0]
    out = []
    while value:
        value, rem = divmod(value, base)
        out.append(digits[rem])
    return "".join(reversed(out))


def _number(value: int, base: int, size: int, precision: int, flags: _Flag) -> str:
    digits = _UPPER if flags & _Flag.UPPERCASE else _LOWER
    if flags & _Flag.LEFT:
        flags &= ~_Flag.ZEROPAD
    fill = "0" if flags & _Flag.ZEROPAD else " "

    value &= _MASK32
    sign = ""
    if flags & _Flag.SIGN:
        if value & _SIGN_BIT:
            sign = "-"
            value = (-value) & _MASK32
            size -= 1
        elif flags & _Flag.PLUS:
            sign = "+"
            size -= 1
        elif flags & _Flag.SPACE:
            sign = " "
            size -= 1

    prefix = ""
    if flags & _Flag.HEX_PREP:
        if base == 16:
            prefix = "0x"
            size -= 2
        elif base == 8:
            prefix = "0"
            size -= 1

    body = _to_base(value, base, digits)
    precision = max(precision, len(body))
    size -= precision

    parts = []
    if not flags & (_Flag.ZEROPAD | _Flag.LEFT):
        parts.append(" " * max(size, 0))
        size = 0
    parts.append(sign)
    parts.append(prefix)
    if not flags & _Flag.LEFT:
        parts.append(fill * max(size, 0))
        size = 0
    parts.append("0" * (precision - len(body)))
    parts.append(body)
    parts.append(" " * max(size, 0))
    return "".join(parts)


def _hardware_address(data: bytes, width: int, flags: _Flag) -> str:
    digits = _UPPER if flags & _Flag.UPPERCASE else _LOWER
    text = ":".join(digits[b >> 4] + digits[b & 0x0F] for b in data)
    return _pad(text, width, flags)


def _ip_address(data: bytes, width: int, flags: _Flag) -> str:
    return _pad(".".join(str(b) for b in data), width, flags)


def sprintf(fmt: str, *args: Any) -> str:
    """Format ``args`` according to ``fmt`` and return the resulting text."""
    values = iter(args)
    out: list[str] = []
    i = 0
    n = len(fmt)
    while i < n:
        ch = fmt[i]
        if ch != "%":
            out.append(ch)
            i += 1
            continue
        i += 1

        flags = _Flag.NONE
        while i < n and fmt[i] in _FLAG_CHARS:
            flags |= _FLAG_CHARS[fmt[i]]
            i += 1

        width = -1
        if i < n and _is_digit(fmt[i]):
            width, i = _read_int(fmt, i)
        elif i < n and fmt[i] == "*":
            i += 1
            width = _int_arg(values)
            if width < 0:
                width = -width
                flags |= _Flag.LEFT

        precision = -1
        if i < n and fmt[i] == ".":
            i += 1
            if i < n and _is_digit(fmt[i]):
                precision, i = _read_int(fmt, i)
            elif i < n and fmt[i] == "*":
                i += 1
                precision = _int_arg(values)
            precision = max(precision, 0)

        long_qualifier = False
        if i < n and fmt[i] in "lL":
            long_qualifier = fmt[i] == "l"
            i += 1

        conv = fmt[i] if i < n else ""
        i += 1

        if conv == "c":
            out.append(_pad(_char_arg(values), width, flags))
        elif conv == "s":
            text = _str_arg(values)
            if precision >= 0:
                text = text[:precision]
            out.append(_pad(text, width, flags))
        elif conv == "p":
            if width == -1:
                width = _POINTER_WIDTH
                flags |= _Flag.ZEROPAD
            out.append(_number(_int_arg(values), 16, width, precision, flags))
        elif conv in ("a", "A"):
            if conv == "A":
                flags |= _Flag.UPPERCASE
            if long_qualifier:
                out.append(_hardware_address(_address_arg(values, 6), width, flags))
            else:
                out.append(_ip_address(_address_arg(values, 4), width, flags))
        elif conv in _INTEGER_CONVERSIONS:
            base, extra = _INTEGER_CONVERSIONS[conv]
            out.append(_number(_int_arg(values), base, width, precision, flags | extra))
        else:
            if conv != "%":
                out.append("%")
            out.append(conv)
    return "".join(out)


def cprintf(putstr: Callable[[str], Any], fmt: str, *args: Any) -> int:
    """Format with :func:`sprintf`, hand the text to ``putstr`` and return its length."""
    text = sprintf(fmt, *args)
    putstr(text)
    return len(text)