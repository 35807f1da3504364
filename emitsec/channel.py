"""Parsing of channel strings of the form ``key/chan/nel/?opt=value``."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum

from . import hashing

MIN_TIME = 1514764800  # 2018
MAX_TIME = 3029529600  # 2066

_SEPARATOR = ord("/")
_QUERY = ord("?")
_WILDCARDS = (ord("+"), ord("*"))
_INT64_MAX = 2**63 - 1
_EPOCH = datetime.fromtimestamp(0, timezone.utc)

_OPTIONS = re.compile(rb"(?:[A-Za-z0-9]+=[A-Za-z0-9]+(?:&|\Z))+")
_PAIR = re.compile(rb"([A-Za-z0-9]+)=([A-Za-z0-9]+)")


class ChannelType(IntEnum):
    INVALID = 0
    STATIC = 1
    WILDCARD = 2


@dataclass(frozen=True)
class ChannelOption:
    key: str
    value: str


def _is_channel_char(symbol: int) -> bool:
    return 45 <= symbol <= 58 or 65 <= symbol <= 122 or symbol == 36


def _to_time(value: int | None) -> datetime:
    if not value or value < MIN_TIME or value > MAX_TIME:
        return _EPOCH
    return datetime.fromtimestamp(value, timezone.utc)


@dataclass
class Channel:
    """A parsed channel: key, channel path, hashed query and options."""

    key: bytes = b""
    channel: bytes = b""
    query: list[int] = field(default_factory=list)
    options: list[ChannelOption] = field(default_factory=list)
    channel_type: ChannelType = ChannelType.INVALID

    def target(self) -> int:
        """The hash of the first channel segment."""
        return self.query[0]

    def ttl(self) -> int | None:
        return self._option("ttl")

    def last(self) -> int | None:
        return self._option("last")

    def exclude(self) -> bool:
        """Whether the ``me=0`` option was given."""
        return self._option("me") == 0

    def window(self) -> tuple[datetime, datetime]:
        """The ``from``/``until`` options as UTC times; the epoch when absent or out of range."""
        return _to_time(self._option("from")), _to_time(self._option("until"))

    def safe_string(self) -> str:
        """The channel with its options, without the key."""
        text = self.channel.decode("latin-1")
        if not self.options:
            return text
        return text + "?" + "&".join(f"{o.key}={o.value}" for o in self.options)

    def __str__(self) -> str:
        return self.key.decode("latin-1") + "/" + self.safe_string()

    def _option(self, name: str) -> int | None:
        for option in self.options:
            if option.key == name:
                if option.value.isdigit():
                    value = int(option.value)
                    if value <= _INT64_MAX:
                        return value
                return None
        return None

    def _parse_path(self, text: bytes) -> int | None:
        """Parse the channel path; return the bytes consumed, or None if invalid."""
        offset = 0
        chan_chars = 0
        wildcards = 0
        has_wildcard = False
        for i, symbol in enumerate(text):
            if symbol == _SEPARATOR:
                if chan_chars == 0 and wildcards == 0:
                    return None
                self.query.append(hashing.of(text[offset:i]))
                at_end = i + 1 == len(text)
                if at_end or text[i + 1] == _QUERY:
                    self.channel = text[: i + 1]
                    self.channel_type = (
                        ChannelType.WILDCARD if has_wildcard else ChannelType.STATIC
                    )
                    return i + 1 if at_end else i + 2
                offset = i + 1
                chan_chars = 0
                wildcards = 0
            elif symbol in _WILDCARDS:
                if chan_chars or wildcards:
                    return None
                wildcards += 1
                has_wildcard = True
            elif _is_channel_char(symbol):
                if wildcards:
                    return None
                chan_chars += 1
            else:
                return None
        return None


def parse_channel(text: bytes | bytearray | str) -> Channel:
    """Parse ``key/channel/?options``; an unparsable input gives an INVALID channel."""
    if isinstance(text, str):
        text = text.encode("utf-8")
    text = bytes(text)
    channel = Channel()

    separator = text.find(b"/")
    if separator <= 0:
        return channel
    channel.key = text[:separator]

    rest = text[separator + 1 :]
    consumed = channel._parse_path(rest)
    if consumed is None:
        channel.channel_type = ChannelType.INVALID
        return channel

    options = rest[consumed:]
    if options:
        if not _OPTIONS.fullmatch(options):
            channel.channel_type = ChannelType.INVALID
            return channel
        channel.options = [
            ChannelOption(k.decode("ascii"), v.decode("ascii"))
            for k, v in _PAIR.findall(options)
        ]
    return channel


def make_channel(key: str, channel_with_options: str) -> Channel:
    """Parse a channel from a key and a channel string."""
    return parse_channel(f"{key}/{channel_with_options}")