"""Byte-string searching and comparison with C string semantics.

Text may be given as ``str`` (encoded as UTF-8) or as bytes.  The ``str*``
functions stop at the first NUL byte, as C strings do.  Positions that are
returned are byte offsets; a search that finds nothing returns None.
"""

from __future__ import annotations

from itertools import islice, takewhile

__all__ = [
    "memccpy",
    "memmem",
    "strcmp",
    "strncmp",
    "strspn",
    "strcspn",
    "strpbrk",
    "strnstr",
    "Tokenizer",
]

_Text = "str | bytes | bytearray"


def _raw(value: str | bytes | bytearray) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _cstr(value: str | bytes | bytearray) -> bytes:
    return _raw(value).split(b"\0", 1)[0]


def memccpy(src: str | bytes | bytearray, endchar: int, n: int) -> tuple[bytes, bool]:
    """Copy at most ``n`` bytes of ``src``, stopping after the first ``endchar``.

    Returns the copied bytes and whether ``endchar`` was among them.
    """
    data = _raw(src)[:n]
    idx = data.find(endchar & 0xFF)
    if idx < 0:
        return data, False
    return data[: idx + 1], True


def memmem(haystack: str | bytes | bytearray, needle: str | bytes | bytearray) -> int | None:
    """Return the offset of the first occurrence of ``needle`` in ``haystack``."""
    idx = _raw(haystack).find(_raw(needle))
    return None if idx < 0 else idx


def strcmp(a: str | bytes | bytearray, b: str | bytes | bytearray) -> int:
    """Compare two strings; the sign of the result orders them."""
    for c1, c2 in zip(_cstr(a) + b"\0", _cstr(b) + b"\0"):
        if c1 != c2 or c1 == 0:
            return c1 - c2
    return 0


def strncmp(a: str | bytes | bytearray, b: str | bytes | bytearray, n: int) -> int:
    """Compare at most the first ``n`` bytes of two strings."""
    for c1, c2 in islice(zip(_cstr(a) + b"\0", _cstr(b) + b"\0"), max(n, 0)):
        if c1 != c2 or c1 == 0:
            return c1 - c2
    return 0


def strspn(s: str | bytes | bytearray, accept: str | bytes | bytearray) -> int:
    """Length of the leading run of ``s`` made only of bytes in ``accept``."""
    allowed = set(_cstr(accept))
    return sum(1 for _ in takewhile(allowed.__contains__, _cstr(s)))


def strcspn(s: str | bytes | bytearray, reject: str | bytes | bytearray) -> int:
    """Length of the leading run of ``s`` holding no byte of ``reject``."""
    banned = set(_cstr(reject))
    return sum(1 for _ in takewhile(lambda c: c not in banned, _cstr(s)))


def strpbrk(s: str | bytes | bytearray, accept: str | bytes | bytearray) -> int | None:
    """Offset of the first byte of ``s`` that is in ``accept``."""
    text = _cstr(s)
    idx = strcspn(text, accept)
    return idx if idx < len(text) else None


def strnstr(
    haystack: str | bytes | bytearray, needle: str | bytes | bytearray, length: int
) -> int | None:
    """Find ``needle`` within the first ``length`` bytes of ``haystack``.

    The search ends at a NUL byte in ``haystack``; a needle longer than
    ``length`` is never found.
    """
    ne = _cstr(needle)
    if len(ne) > length:
        return None
    region = _raw(haystack)[:length].split(b"\0", 1)[0]
    idx = region.find(ne)
    return None if idx < 0 else idx


class Tokenizer:
    """Split a string into tokens, one call at a time, like ``strtok``.

    Each call to :meth:`next` may use a different set of delimiters.
    """

    def __init__(self, text: str) -> None:
        self._text = text.split("\0", 1)[0]
        self._pos: int | None = 0

    def next(self, delim: str) -> str | None:
        """Return the next token separated by any character of ``delim``, or None."""
        if self._pos is None:
            return None
        text = self._text
        n = len(text)
        start = self._pos
        while start < n and text[start] in delim:
            start += 1
        if start >= n:
            self._pos = None
            return None
        end = start
        while end < n and text[end] not in delim:
            end += 1
        self._pos = None if end >= n else end + 1
        return text[start:end]