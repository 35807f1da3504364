"""Decoding of unpadded URL-safe base64, as used by encrypted keys."""

from __future__ import annotations

_ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
_INVALID = 0xFF
_DECODE_MAP = bytes(
    _ALPHABET.index(code) if code in _ALPHABET else _INVALID for code in range(256)
)


class CorruptInputError(ValueError):
    """Raised when the input is not valid unpadded URL-safe base64."""

    def __init__(self, offset: int) -> None:
        super().__init__(f"illegal base64 data at input byte {offset}")
        self.offset = offset


def decode_key(src: bytes | bytearray | str) -> bytes:
    """Decode unpadded URL-safe base64; raises CorruptInputError on bad input."""
    if isinstance(src, str):
        src = src.encode("utf-8")
    src = bytes(src)
    out = bytearray()

    for start in range(0, len(src), 4):
        chunk = src[start : start + 4]
        values = []
        for offset, code in enumerate(chunk):
            value = _DECODE_MAP[code]
            if value == _INVALID:
                raise CorruptInputError(start + offset)
            values.append(value)
        if len(values) < 2:
            raise CorruptInputError(start)

        padded = values + [0] * (4 - len(values))
        combined = padded[0] << 18 | padded[1] << 12 | padded[2] << 6 | padded[3]
        out += combined.to_bytes(3, "big")[: len(values) - 1]

    return bytes(out)