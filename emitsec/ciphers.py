"""Ciphers that encrypt security keys into 32-character tokens and back."""

from __future__ import annotations

import base64
import struct

from .b64 import decode_key
from .key import Key
from .salsa20 import hsalsa20, xor_key_stream

_KEY_SIZE = 24
_TOKEN_SIZE = 32
_MASK = 0xFFFFFFFF

_XTEA_ROUNDS = 32
_XTEA_DELTA = 0x9E3779B9
_XTEA_SUM = 0xC6EF3720  # delta * rounds


class CipherError(ValueError):
    """Raised for invalid cipher keys or invalid encrypted tokens."""


def _encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _plain(key: Key | bytes | bytearray | str) -> bytes:
    """The first 24 bytes of a key, zero-filled when shorter."""
    if isinstance(key, str):
        key = key.encode("utf-8")
    raw = bytes(key)[:_KEY_SIZE]
    return raw + bytes(_KEY_SIZE - len(raw))


def _token_bytes(buffer: bytes | bytearray | str) -> bytes:
    """Validate and base64-decode an encrypted token."""
    if isinstance(buffer, str):
        buffer = buffer.encode("utf-8")
    if len(buffer) != _TOKEN_SIZE:
        raise CipherError("cipher: the key provided is not valid")
    return decode_key(buffer)


class Salsa:
    """XSalsa20 cipher for security keys."""

    def __init__(self, key: bytes, nonce: bytes) -> None:
        if len(key) != 32 or len(nonce) != 24:
            raise CipherError("salsa: invalid cryptographic key")
        self._key = bytes(key)
        self._nonce = bytes(nonce)

    def _box(self, data: bytes) -> bytes:
        sub_key = hsalsa20(self._nonce[:16], self._key)
        counter = self._nonce[16:] + bytes(8)
        return xor_key_stream(data, counter, sub_key)

    def encrypt_key(self, key: Key | bytes) -> str:
        """Encrypt a key into a base64 token."""
        return _encode(self._box(_plain(key)))

    def decrypt_key(self, buffer: bytes | str) -> Key:
        """Decrypt a key from a base64 token."""
        return Key(self._box(_token_bytes(buffer)))


class Shuffle:
    """Salsa20 cipher whose nonce is mixed with the key's salt."""

    def __init__(self, key: bytes, nonce: bytes) -> None:
        if len(key) != 32 or len(nonce) != 16:
            raise CipherError("shuffled: invalid cryptographic key")
        self._key = bytes(key)
        self._nonce = bytes(nonce)

    def _crypt(self, data: bytes) -> bytes:
        salt, body = data[:2], data[2:]
        nonce = bytes(b ^ salt[i % 2] for i, b in enumerate(self._nonce))
        sub_key = hsalsa20(nonce, self._key)
        return salt + xor_key_stream(body, nonce, sub_key)

    def encrypt_key(self, key: Key | bytes) -> str:
        """Encrypt a key into a base64 token."""
        return _encode(self._crypt(_plain(key)))

    def decrypt_key(self, buffer: bytes | str) -> Key:
        """Decrypt a key from a base64 token."""
        return Key(self._crypt(_token_bytes(buffer)))


def _salt_xor(data: bytes) -> bytes:
    """XOR bytes 2..24 with the two salt bytes at the start."""
    salt = data[:2]
    return salt + bytes(b ^ salt[i % 2] for i, b in enumerate(data[2:_KEY_SIZE]))


class Xtea:
    """XTEA cipher for security keys (legacy licences)."""

    def __init__(self, value: str) -> None:
        data = decode_key(value)
        if len(value) != 22 or len(data) != 16:
            raise CipherError("xtea: invalid cryptographic key")
        self._key = struct.unpack(">4I", data)

    def _encrypt(self, data: bytes) -> bytes:
        key = self._key
        out = bytearray()
        for y, z in struct.iter_unpack(">II", data):
            total = 0
            for _ in range(_XTEA_ROUNDS):
                y = (y + ((((z << 4) ^ (z >> 5)) + z) ^ (total + key[total & 3]))) & _MASK
                total = (total + _XTEA_DELTA) & _MASK
                z = (z + ((((y << 4) ^ (y >> 5)) + y) ^ (total + key[(total >> 11) & 3]))) & _MASK
            out += struct.pack(">II", y, z)
        return bytes(out)

    def _decrypt(self, data: bytes) -> bytes:
        key = self._key
        out = bytearray()
        for y, z in struct.iter_unpack(">II", data):
            total = _XTEA_SUM
            for _ in range(_XTEA_ROUNDS):
                z = (z - ((((y << 4) ^ (y >> 5)) + y) ^ (total + key[(total >> 11) & 3]))) & _MASK
                total = (total - _XTEA_DELTA) & _MASK
                y = (y - ((((z << 4) ^ (z >> 5)) + z) ^ (total + key[total & 3]))) & _MASK
            out += struct.pack(">II", y, z)
        return bytes(out)

    def encrypt_key(self, key: Key | bytes) -> str:
        """Encrypt a 24-byte key into a base64 token."""
        raw = bytes(key)
        if len(raw) < _KEY_SIZE:
            raise CipherError("The security key should be 24-bytes long")
        return _encode(self._encrypt(_salt_xor(raw)))

    def decrypt_key(self, buffer: bytes | str) -> Key:
        """Decrypt a key from a base64 token."""
        data = _token_bytes(buffer)
        return Key(_salt_xor(self._decrypt(data)))