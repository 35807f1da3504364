"""The Salsa20 stream cipher core and the HSalsa20 key derivation."""

from __future__ import annotations

import struct

SIGMA = b"expand 32-byte k"
_MASK = 0xFFFFFFFF
_U64 = 2**64 - 1
_BLOCK = 64
_QUARTER_ROUNDS = (
    (0, 4, 8, 12),
    (5, 9, 13, 1),
    (10, 14, 2, 6),
    (15, 3, 7, 11),
    (0, 1, 2, 3),
    (5, 6, 7, 4),
    (10, 11, 8, 9),
    (15, 12, 13, 14),
)


def _rotl(value: int, shift: int) -> int:
    value &= _MASK
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def _initial_state(block_input: bytes, key: bytes) -> list[int]:
    c = struct.unpack("<4I", SIGMA)
    k = struct.unpack("<8I", key)
    n = struct.unpack("<4I", block_input)
    return [c[0], *k[:4], c[1], *n, c[2], *k[4:], c[3]]


def _mix(state: list[int]) -> list[int]:
    x = list(state)
    for _ in range(10):
        for a, b, c, d in _QUARTER_ROUNDS:
            x[b] ^= _rotl(x[a] + x[d], 7)
            x[c] ^= _rotl(x[b] + x[a], 9)
            x[d] ^= _rotl(x[c] + x[b], 13)
            x[a] ^= _rotl(x[d] + x[c], 18)
    return x


def _check(name: str, value: bytes, size: int) -> bytes:
    value = bytes(value)
    if len(value) != size:
        raise ValueError(f"{name} must be {size} bytes long, got {len(value)}")
    return value


def hsalsa20(nonce: bytes, key: bytes) -> bytes:
    """Derive a 32-byte sub-key from a 16-byte nonce and a 32-byte key."""
    nonce = _check("nonce", nonce, 16)
    key = _check("key", key, 32)
    x = _mix(_initial_state(nonce, key))
    return struct.pack("<8I", x[0], x[5], x[10], x[15], x[6], x[7], x[8], x[9])


def xor_key_stream(data: bytes, counter: bytes, key: bytes) -> bytes:
    """XOR data with the Salsa20 key stream.

    The first 8 bytes of the counter are the nonce, the last 8 a little-endian
    block counter that starts the stream.
    """
    counter = _check("counter", counter, 16)
    key = _check("key", key, 32)
    nonce = counter[:8]
    block_number = int.from_bytes(counter[8:], "little")

    out = bytearray(data)
    for start in range(0, len(out), _BLOCK):
        state = _initial_state(nonce + block_number.to_bytes(8, "little"), key)
        mixed = _mix(state)
        stream = struct.pack(
            "<16I", *((m + s) & _MASK for m, s in zip(mixed, state))
        )
        chunk = out[start : start + _BLOCK]
        out[start : start + _BLOCK] = bytes(a ^ b for a, b in zip(chunk, stream))
        block_number = (block_number + 1) & _U64
    return bytes(out)