import pytest

from emitsec.hashing import of, of_string


@pytest.mark.parametrize(
    "text, expected",
    [
        ("keyban", 861724010),
        ("me", 2539734036),
        ("", 1325880984),
    ],
)
def test_of_string(text, expected):
    assert of_string(text) == expected


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"$share", 1480642916),
        (b"link", 2667034312),
        (b"+", 1815237614),
        (b"hello world", 4008393376),
        (b"a", 0xC103EAB3),
    ],
)
def test_of_bytes(data, expected):
    assert of(data) == expected


def test_of_accepts_bytearray_and_memoryview():
    assert of(bytearray(b"link")) == 2667034312
    assert of(memoryview(b"link")) == 2667034312


def test_string_and_bytes_agree():
    assert of_string("a/b/c/d/e/f/g/h/this/is/emitter") == of(b"a/b/c/d/e/f/g/h/this/is/emitter")


def test_result_fits_32_bits():
    for text in ("x", "xy", "xyz", "xyzw", "a much longer string of text"):
        assert 0 <= of_string(text) <= 0xFFFFFFFF