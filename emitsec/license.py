"""Licences: the contract, signature and cipher key material of a deployment."""

from __future__ import annotations

import base64
import secrets
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Union

from .b64 import CorruptInputError, decode_key
from .ciphers import Salsa, Shuffle, Xtea
from .codec import CodecError, put_uvarint, read_uvarint, snappy_decode, snappy_encode
from .key import Key, Permission

_TIME_OFFSET = 1262304000  # 2010-01-01 00:00:00 UTC
_EPOCH = datetime.fromtimestamp(0, timezone.utc)
_U32 = 0xFFFFFFFF
_MAX_INT16 = 32767

_MISSING = (
    "No license was found, please provide a valid license key through the "
    "configuration file, an EMITTER_LICENSE environment variable or a valid "
    "vault key 'secrets/emitter/license'"
)


class LicenseError(ValueError):
    """Raised when a licence cannot be parsed."""


class LicenseType(IntEnum):
    UNKNOWN = 0
    CLOUD = 1
    ON_PREMISE = 2


def _encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _decode(text: str) -> bytes:
    try:
        return decode_key(text)
    except CorruptInputError as exc:
        raise LicenseError(str(exc)) from exc


def _random_u32() -> int:
    return secrets.randbits(32)


def _master_key(master_id: int, contract: int, signature: int) -> Key:
    key = Key()
    key.salt = secrets.randbelow(_MAX_INT16)
    key.master = master_id
    key.contract = contract
    key.signature = signature
    key.permissions = Permission.MASTER
    return key


def _unix(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


@dataclass
class V1:
    """Legacy licence with an XTEA key and an expiry date."""

    encryption_key: str = ""
    user: int = 0
    sign: int = 0
    expires: datetime = _EPOCH
    license_type: int = LicenseType.UNKNOWN

    @classmethod
    def generate(cls) -> "V1":
        """Create a new random on-premise licence."""
        return cls(
            encryption_key=_encode(secrets.token_bytes(16)),
            user=_random_u32(),
            sign=_random_u32(),
            expires=_EPOCH,
            license_type=LicenseType.ON_PREMISE,
        )

    @classmethod
    def parse(cls, data: str) -> "V1":
        """Parse the licence text without its version suffix."""
        raw = _decode(data)
        if len(raw) < 32:
            raise LicenseError("license: data is too short")
        user, sign, expiry, kind = struct.unpack(">4I", raw[16:32])
        if expiry > 0:
            expiry += _TIME_OFFSET
        return cls(
            encryption_key=_encode(raw[:16]),
            user=user,
            sign=sign,
            expires=datetime.fromtimestamp(expiry, timezone.utc),
            license_type=kind,
        )

    def new_master_key(self, id: int) -> Key:
        """Create a master key with the given id for this licence."""
        return _master_key(id, self.user, self.sign)

    def cipher(self) -> Xtea:
        return Xtea(self.encryption_key)

    def __str__(self) -> str:
        try:
            key = decode_key(self.encryption_key)
        except CorruptInputError:
            return ""
        expiry = _unix(self.expires)
        if expiry > 0:
            expiry -= _TIME_OFFSET
        output = key[:16].ljust(16, b"\0") + struct.pack(
            ">4I",
            self.user & _U32,
            self.sign & _U32,
            expiry & _U32,
            int(self.license_type) & _U32,
        )
        return _encode(output) + ":1"

    def contract(self) -> int:
        return self.user

    def signature(self) -> int:
        return self.sign

    def master(self) -> int:
        return 1


def _read_bytes(data: bytes, pos: int) -> tuple[bytes, int]:
    length, pos = read_uvarint(data, pos)
    end = pos + length
    if end > len(data):
        raise CodecError("license: unexpected end of data")
    return data[pos:end], end


def _read_u32(data: bytes, pos: int) -> tuple[int, int]:
    value, pos = read_uvarint(data, pos)
    return value & _U32, pos


def _unpack(data: str) -> tuple[bytes, bytes, int, int, int]:
    """Decode base64, decompress and read the varint-packed licence fields."""
    raw = _decode(data)
    try:
        raw = snappy_decode(raw)
        key, pos = _read_bytes(raw, 0)
        salt, pos = _read_bytes(raw, pos)
        user, pos = _read_u32(raw, pos)
        sign, pos = _read_u32(raw, pos)
        index, pos = _read_u32(raw, pos)
    except CodecError as exc:
        raise LicenseError(str(exc)) from exc
    return key, salt, user, sign, index


def _pack(key: bytes, salt: bytes, user: int, sign: int, index: int, version: str) -> str:
    """Pack the licence fields, compress them and append the version suffix."""
    packed = b"".join(
        (
            put_uvarint(len(key)),
            bytes(key),
            put_uvarint(len(salt)),
            bytes(salt),
            put_uvarint(user & _U32),
            put_uvarint(sign & _U32),
            put_uvarint(index & _U32),
        )
    )
    return _encode(snappy_encode(packed)) + ":" + version


@dataclass
class V2:
    """Licence using the XSalsa20 key cipher."""

    encryption_key: bytes = b""
    encryption_salt: bytes = b""
    user: int = 0
    sign: int = 0
    index: int = 0

    @classmethod
    def generate(cls) -> "V2":
        """Create a new random licence."""
        return cls(
            encryption_key=secrets.token_bytes(32),
            encryption_salt=secrets.token_bytes(24),
            user=_random_u32(),
            sign=_random_u32(),
            index=1,
        )

    @classmethod
    def parse(cls, data: str) -> "V2":
        """Parse the licence text without its version suffix."""
        return cls(*_unpack(data))

    def new_master_key(self, id: int) -> Key:
        """Create a master key with the given id for this licence."""
        return _master_key(id, self.user, self.sign)

    def cipher(self) -> Salsa:
        return Salsa(self.encryption_key, self.encryption_salt)

    def __str__(self) -> str:
        return _pack(
            self.encryption_key, self.encryption_salt, self.user, self.sign, self.index, "2"
        )

    def contract(self) -> int:
        return self.user

    def signature(self) -> int:
        return self.sign

    def master(self) -> int:
        return self.index


@dataclass
class V3:
    """Licence using the salted Salsa20 key cipher."""

    encryption_key: bytes = b""
    encryption_salt: bytes = b""
    user: int = 0
    sign: int = 0
    index: int = 0

    @classmethod
    def generate(cls) -> "V3":
        """Create a new random licence."""
        return cls(
            encryption_key=secrets.token_bytes(32),
            encryption_salt=secrets.token_bytes(16),
            user=_random_u32(),
            sign=_random_u32(),
            index=1,
        )

    @classmethod
    def parse(cls, data: str) -> "V3":
        """Parse the licence text without its version suffix."""
        return cls(*_unpack(data))

    def new_master_key(self, id: int) -> Key:
        """Create a master key with the given id for this licence."""
        return _master_key(id, self.user, self.sign)

    def cipher(self) -> Shuffle:
        return Shuffle(self.encryption_key, self.encryption_salt)

    def __str__(self) -> str:
        return _pack(
            self.encryption_key, self.encryption_salt, self.user, self.sign, self.index, "3"
        )

    def contract(self) -> int:
        return self.user

    def signature(self) -> int:
        return self.sign

    def master(self) -> int:
        return self.index


License = Union[V1, V2, V3]


def parse(data: str) -> License:
    """Parse a licence of any version; raises LicenseError when invalid."""
    if len(data) < 5:
        raise LicenseError(_MISSING)
    if data.endswith(":1"):
        return V1.parse(data[:-2])
    if data.endswith(":2"):
        return V2.parse(data[:-2])
    if data.endswith(":3"):
        return V3.parse(data[:-2])
    return V1.parse(data)


def new() -> tuple[str, str]:
    """Generate a new licence and its encrypted master key."""
    license = V3.generate()
    secret = license.new_master_key(1)
    master = license.cipher().encrypt_key(secret)
    return str(license), master