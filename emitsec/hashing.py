"""Murmur3 (32-bit) hashing of channel segments and strings."""

from __future__ import annotations

import struct

_C1 = 0xCC9E2D51
_C2 = 0x1B873593
_MASK = 0xFFFFFFFF
_SEED = 37


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def _mix_block(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK
    k1 = _rotl(k1, 15)
    return (k1 * _C2) & _MASK


def of(data: bytes | bytearray | memoryview) -> int:
    """Return the 32-bit murmur3 hash (seed 37) of the data, byte-swapped."""
    data = bytes(data)
    length = len(data)
    body_len = length - length % 4
    h1 = _SEED

    for (k1,) in struct.iter_unpack("<I", data[:body_len]):
        h1 ^= _mix_block(k1)
        h1 = _rotl(h1, 13)
        h1 = (h1 * 5 + 0xE6546B64) & _MASK

    tail = data[body_len:]
    if tail:
        h1 ^= _mix_block(int.from_bytes(tail, "little"))

    h1 ^= length & _MASK
    h1 ^= h1 >> 16
    h1 = (h1 * 0x85EBCA6B) & _MASK
    h1 ^= h1 >> 13
    h1 = (h1 * 0xC2B2AE35) & _MASK
    h1 ^= h1 >> 16

    return int.from_bytes(h1.to_bytes(4, "big"), "little")


def of_string(value: str) -> int:
    """Return the murmur3 hash of a string's UTF-8 bytes."""
    return of(value.encode("utf-8"))