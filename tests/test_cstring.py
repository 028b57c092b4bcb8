import pytest

from tinykern.cstring import (
    Tokenizer,
    memccpy,
    memmem,
    strcmp,
    strcspn,
    strncmp,
    strnstr,
    strpbrk,
    strspn,
)


def test_memccpy_stops_after_endchar():
    copied, found = memccpy(b"abc:def", ord(":"), 10)
    assert found is True
    assert copied == b"abc:"


def test_memccpy_without_endchar_copies_n():
    copied, found = memccpy(b"abcdef", ord("z"), 3)
    assert found is False
    assert copied == b"abc"


@pytest.mark.parametrize(
    "haystack,needle",
    [(b"hello world", b"world"), (b"aaab", b"ab"), (b"abc", b""), (b"a\0b", b"b")],
)
def test_memmem_matches_find(haystack, needle):
    assert memmem(haystack, needle) == haystack.find(needle)


def test_memmem_missing():
    assert memmem(b"hello", b"xyz") is None


def test_strcmp_order():
    assert strcmp("abc", "abc") == 0
    assert strcmp("abc", "abd") < 0
    assert strcmp("abd", "abc") > 0
    assert strcmp("ab", "abc") < 0


def test_strcmp_stops_at_nul():
    assert strcmp(b"ab\0x", b"ab\0y") == 0


def test_strcmp_antisymmetric():
    for a, b in [("x", "y"), ("long", "lo"), ("", "a")]:
        assert strcmp(a, b) == -strcmp(b, a)


def test_strncmp():
    assert strncmp("abcx", "abcy", 3) == 0
    assert strncmp("abcx", "abcy", 4) < 0
    assert strncmp("a", "b", 0) == 0
    assert strncmp("ab", "ab", 10) == 0


def test_strspn_and_strcspn():
    text = "aabbcab"
    assert strspn(text, "ab") == text.index("c")
    assert strcspn("hello", "l") == "hello".index("l")
    assert strcspn("hello", "") == len("hello")
    assert strspn("hello", "") == 0


def test_strpbrk():
    assert strpbrk("hello", "ol") == "hello".index("l")
    assert strpbrk("hello", "xyz") is None
    assert strpbrk("", "a") is None


def test_strnstr():
    text = "hello world"
    assert strnstr(text, "world", len(text)) == text.index("world")
    assert strnstr(text, "world", 8) is None
    assert strnstr(text, "", 0) == 0
    assert strnstr(b"ab\0world", b"world", 8) is None


def test_tokenizer_sequence():
    tok = Tokenizer("  a,b,,c ")
    assert [tok.next(" ,") for _ in range(4)] == ["a", "b", "c", None]
    assert tok.next(" ,") is None


def test_tokenizer_changing_delimiters():
    tok = Tokenizer("key=value;other")
    assert tok.next("=") == "key"
    assert tok.next(";") == "value"
    assert tok.next(";") == "other"
    assert tok.next(";") is None


def test_tokenizer_only_delimiters():
    tok = Tokenizer(",,,")
    assert tok.next(",") is None