"""Security keys: a 24-byte record of salt, contract, target and permissions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntFlag

from . import hashing
from .channel import Channel

_TIME_OFFSET = 1262304000  # 2010-01-01 00:00:00 UTC
_EPOCH = datetime.fromtimestamp(0, timezone.utc)
_ALL_PARTS_HASH = 1325880984  # hash of "", a key targeting "#/"
_MAX_PARTS = 23


class Permission(IntFlag):
    NONE = 0
    MASTER = 1 << 0
    READ = 1 << 1
    WRITE = 1 << 2
    STORE = 1 << 3
    LOAD = 1 << 4
    PRESENCE = 1 << 5
    EXTEND = 1 << 6
    EXECUTE = 1 << 7
    READ_WRITE = READ | WRITE
    STORE_LOAD = STORE | LOAD
    ALL = 0xFF & ~MASTER


class TargetError(ValueError):
    """Raised when a key target channel cannot be encoded."""


_TARGET_INVALID = (
    "channel should end with `/` for strict types or `/#/` for multi level wildcard"
)
_TARGET_TOO_LONG = "channel can not have more than 23 parts"


class Key:
    """A mutable security key backed by a byte array."""

    def __init__(self, data: bytes | bytearray | None = None) -> None:
        self._data = bytearray(24) if data is None else bytearray(data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index):
        return self._data[index]

    def __setitem__(self, index, value) -> None:
        self._data[index] = value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Key):
            return self._data == other._data
        if isinstance(other, (bytes, bytearray)):
            return self._data == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Key({bytes(self._data)!r})"

    def is_empty(self) -> bool:
        return len(self._data) == 0

    def _get(self, start: int, size: int) -> int:
        return int.from_bytes(self._data[start : start + size], "big")

    def _put(self, start: int, size: int, value: int) -> None:
        self._data[start : start + size] = value.to_bytes(size, "big")

    @property
    def salt(self) -> int:
        return self._get(0, 2)

    @salt.setter
    def salt(self, value: int) -> None:
        self._put(0, 2, value)

    @property
    def master(self) -> int:
        return self._get(2, 2)

    @master.setter
    def master(self, value: int) -> None:
        self._put(2, 2, value)

    @property
    def contract(self) -> int:
        return self._get(4, 4)

    @contract.setter
    def contract(self, value: int) -> None:
        self._put(4, 4, value)

    @property
    def signature(self) -> int:
        return self._get(8, 4)

    @signature.setter
    def signature(self, value: int) -> None:
        self._put(8, 4, value)

    @property
    def permissions(self) -> Permission:
        return Permission(self._data[15])

    @permissions.setter
    def permissions(self, value: int) -> None:
        self._data[15] = int(value)

    @property
    def expires(self) -> datetime:
        """Expiry time in UTC; the epoch means the key never expires."""
        expire = self._get(20, 4)
        if expire > 0:
            expire += _TIME_OFFSET
        return datetime.fromtimestamp(expire, timezone.utc)

    @expires.setter
    def expires(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        expire = int(value.timestamp())
        if expire > 0:
            expire -= _TIME_OFFSET
        self._put(20, 4, expire & 0xFFFFFFFF)

    def validate_channel(self, channel: Channel) -> bool:
        """Check whether the key's target allows the given channel."""
        topic = channel.channel
        if not topic:
            return False

        target = self._get(16, 4)
        target_path = self._get(12, 3)

        # Keys without a bit path only compare the first channel segment.
        if target_path == 0:
            if target == _ALL_PARTS_HASH:
                return True
            return target == channel.target()

        if topic.endswith(b"/"):
            topic = topic[:-1]
        parts = topic.decode("latin-1").split("/")
        if parts[-1] == "#":
            parts.pop()

        max_depth = next(
            (_MAX_PARTS - i for i in range(_MAX_PARTS) if (target_path >> i) & 1),
            0,
        )
        if max_depth == 0:
            max_depth = len(parts)

        exact = (target_path >> 23) & 1 == 1
        if len(parts) < max_depth or (exact and len(parts) != max_depth):
            return False

        masked = []
        for idx, part in enumerate(parts):
            if idx <= 22 and (target_path >> (22 - idx)) & 1:
                if part == "+":
                    return False
                masked.append(part)
            else:
                masked.append("+")

        return hashing.of_string("/".join(masked[:max_depth])) == target

    def set_target(self, channel: str) -> None:
        """Encode the target channel into the key; raises TargetError if invalid."""
        if not channel.endswith("/"):
            raise TargetError(_TARGET_INVALID)

        parts = channel.rstrip("/").split("/")
        bit_path = 1 << 23
        if parts[-1] == "#":
            parts.pop()
            bit_path = 0

        if len(parts) > _MAX_PARTS:
            raise TargetError(_TARGET_TOO_LONG)

        for idx, part in enumerate(parts):
            if part not in ("+", "#"):
                bit_path |= 1 << (22 - idx)

        self._put(12, 3, bit_path)
        self._put(16, 4, hashing.of_string("/".join(parts)))

    def is_expired(self) -> bool:
        expiry = self.expires
        if expiry == _EPOCH:
            return False
        return expiry < datetime.now(timezone.utc)

    def is_master(self) -> bool:
        return self.permissions == Permission.MASTER

    def has_permission(self, flag: int) -> bool:
        return (int(self.permissions) & int(flag)) == int(flag)

    def set_permission(self, flag: int, value: bool) -> None:
        current = int(self.permissions)
        self.permissions = current | int(flag) if value else current & ~int(flag) & 0xFF