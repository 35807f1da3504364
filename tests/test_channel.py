from datetime import datetime, timezone

import pytest

from emitsec.channel import (
    Channel,
    ChannelOption,
    ChannelType,
    make_channel,
    parse_channel,
)

S = ChannelType.STATIC
W = ChannelType.WILDCARD
I = ChannelType.INVALID


@pytest.mark.parametrize(
    "key, ch, opts, expected",
    [
        ("emitter", "a/", [], S),
        ("emitter", "a/b/c/", [], S),
        ("emitter", "test-channel/", [], S),
        ("emitter", "test-channel/+/and-more/", [], W),
        ("emitter", "a/-/x/", [], S),
        ("emitter", "a/b/c/d/", [], S),
        ("emitter", "a/b/c/+/", [], W),
        ("emitter", "a/+/c/+/", [], W),
        ("emitter", "b/+/", [], W),
        ("0TJnt4yZPL73zt35h1UTIFsYBLetyD_g", "emitter/", ["test=true", "something=7"], S),
        ("emitter", "a/b/c/d/", ["test=true", "something=7"], S),
        ("emitter", "a/b/c/d/", ["req=13", "something=7"], S),
        ("", "", [], I),
        ("emitter", "a/@/x/", [], I),
        ("emitter", "a", [], I),
        ("emitter", "a/b/c", [], I),
        ("emitter", "a//b/", [], I),
        ("emitter", "a//////b/c", [], I),
        ("emitter", "*", [], I),
        ("emitter", "+", [], I),
        ("emitter", "a/+", [], I),
        ("emitter", "b/+", [], I),
        ("emitter", "b/*+/", [], I),
        ("emitter", "b/+a/", [], I),
        ("emitter", "", [], I),
        ("emitter", "/", [], I),
        ("emitter", "//", [], I),
        ("emitter", "a//", [], I),
        ("emitter", "a/b/c/d/", ["test=true", "something=7", "more=_"], I),
        ("emitter", "a/b/c/d/", ["test==true"], I),
        ("emitter", "a/b/c/d/", ["te_st==true"], I),
        ("emitter", "a/", ["=true"], I),
        ("emitter", "a/", ["test="], I),
    ],
)
def test_parse_channel(key, ch, opts, expected):
    text = key + "/" + ch
    if opts:
        text += "?" + "&".join(opts)

    out = parse_channel(text.encode())
    assert out.channel_type == expected, text
    if expected != I:
        assert out.key == key.encode()
        assert out.channel == ch.encode()
        found = {o.key: o.value for o in out.options}
        for opt in opts:
            name, value = opt.split("=")
            assert found[name] == value


def test_parse_channel_accepts_str():
    out = parse_channel("emitter/a/b/")
    assert out.channel_type == S
    assert out.channel == b"a/b/"
    assert len(out.query) == 2


@pytest.mark.parametrize(
    "text, expected",
    [
        ("emitter/a/?me=0", True),
        ("emitter/a/?me=12000000", False),
        ("emitter/a/?me=1200a", False),
        ("emitter/a/?me=-1", False),
        ("emitter/a/", False),
    ],
)
def test_exclude(text, expected):
    assert parse_channel(text.encode()).exclude() is expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("emitter/a/?ttl=42&abc=9", 42),
        ("emitter/a/?ttl=1200", 1200),
        ("emitter/a/?ttl=1200a", None),
        ("emitter/a/", None),
    ],
)
def test_ttl(text, expected):
    assert parse_channel(text.encode()).ttl() == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("emitter/a/?last=42&abc=9", 42),
        ("emitter/a/?last=1200", 1200),
        ("emitter/a/?last=1200a", None),
        ("emitter/a/", None),
    ],
)
def test_last(text, expected):
    assert parse_channel(text.encode()).last() == expected


def test_option_overflow_is_rejected():
    assert parse_channel(b"emitter/a/?ttl=99999999999999999999").ttl() is None


@pytest.mark.parametrize(
    "text, t0, t1",
    [
        ("emitter/a/?from=42&abc=9", 0, 0),
        ("emitter/a/?from=1200", 0, 0),
        ("emitter/a/?from=1200&until=2550", 0, 0),
        ("emitter/a/?from=1200a", 0, 0),
        ("emitter/a/", 0, 0),
        ("emitter/a/?from=1514764800&until=1514764900", 1514764800, 1514764900),
        ("emitter/a/?from=1514764800", 1514764800, 0),
        ("emitter/a/?until=1514764900", 0, 1514764900),
        ("emitter/a/?from=1514764800&until=3029529610", 1514764800, 0),
        ("emitter/a/?from=1514764900&until=1514764800", 1514764900, 1514764800),
    ],
)
def test_window(text, t0, t1):
    start, end = parse_channel(text.encode()).window()
    assert int(start.timestamp()) == t0
    assert int(end.timestamp()) == t1
    assert start.tzinfo is not None and start.utcoffset().total_seconds() == 0


def test_window_values_are_utc_datetimes():
    start, _ = parse_channel(b"emitter/a/?from=1514764800").window()
    assert start == datetime(2018, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text, target",
    [
        ("emitter/a/?ttl=42&abc=9", 0xC103EAB3),
        ("emitter/$share/a/b/c/", 1480642916),
    ],
)
def test_target(text, target):
    assert parse_channel(text.encode()).target() == target


def test_make_channel():
    channel = make_channel("key1", "emitter/a/")
    assert channel.key == b"key1"
    assert channel.channel == b"emitter/a/"


@pytest.mark.parametrize(
    "text",
    [
        "emitter/a/?last=42&abc=9",
        "emitter/a/?last=1200",
        "emitter/a/?last=1200a",
        "emitter/a/",
    ],
)
def test_channel_string(text):
    assert str(parse_channel(text.encode())) == text


def test_safe_string_omits_key():
    channel = parse_channel(b"emitter/a/b/?ttl=5&last=2")
    assert channel.safe_string() == "a/b/?ttl=5&last=2"
    assert channel.options == [ChannelOption("ttl", "5"), ChannelOption("last", "2")]


def test_trailing_ampersand_accepted():
    channel = parse_channel(b"emitter/a/?ttl=5&")
    assert channel.channel_type == S
    assert channel.ttl() == 5


def test_empty_options_after_question_mark():
    channel = parse_channel(b"emitter/a/?")
    assert channel.channel_type == S
    assert channel.options == []


def test_default_channel_is_invalid():
    assert Channel().channel_type == I