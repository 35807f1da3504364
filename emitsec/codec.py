"""Unsigned varints and the Snappy block format used by packed licences."""

from __future__ import annotations

_U64 = 2**64 - 1
_MAX_VARINT_LEN = 10
_MAX_BLOCK = 65536
_MIN_MATCH_BLOCK = 17  # shorter blocks are always stored as one literal


class CodecError(ValueError):
    """Raised when encoded data is truncated or corrupt."""


def put_uvarint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as a base-128 varint."""
    if not 0 <= value <= _U64:
        raise ValueError(f"uvarint out of range: {value}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def read_uvarint(data: bytes | bytearray, offset: int = 0) -> tuple[int, int]:
    """Decode a varint at ``offset``; return the value and the offset after it."""
    value = 0
    shift = 0
    for i, byte in enumerate(data[offset:]):
        if i == _MAX_VARINT_LEN:
            break
        if byte < 0x80:
            if i == _MAX_VARINT_LEN - 1 and byte > 1:
                break
            return value | byte << shift, offset + i + 1
        value |= (byte & 0x7F) << shift
        shift += 7
    else:
        raise CodecError("uvarint: unexpected end of data")
    raise CodecError("uvarint: value overflows 64 bits")


def _literal(chunk: bytes) -> bytes:
    if not chunk:
        return b""
    n = len(chunk) - 1
    if n < 60:
        return bytes([n << 2]) + chunk
    size = (n.bit_length() + 7) // 8
    return bytes([(59 + size) << 2]) + n.to_bytes(size, "little") + chunk


def _copy2(offset: int, length: int) -> bytes:
    return bytes([((length - 1) << 2) | 2]) + offset.to_bytes(2, "little")


def _copy(offset: int, length: int) -> bytes:
    out = bytearray()
    while length >= 68:
        out += _copy2(offset, 64)
        length -= 64
    if length > 64:
        out += _copy2(offset, 60)
        length -= 60
    if length >= 12 or offset >= 2048:
        out += _copy2(offset, length)
    else:
        out += bytes([((offset >> 8) << 5) | ((length - 4) << 2) | 1, offset & 0xFF])
    return bytes(out)


def _encode_block(block: bytes) -> bytes:
    if len(block) < _MIN_MATCH_BLOCK:
        return _literal(block)

    out = bytearray()
    seen: dict[bytes, int] = {}
    literal_start = 0
    i = 0
    while i <= len(block) - 4:
        word = block[i : i + 4]
        candidate = seen.get(word)
        seen[word] = i
        if candidate is None:
            i += 1
            continue
        length = 4
        while i + length < len(block) and block[candidate + length] == block[i + length]:
            length += 1
        out += _literal(block[literal_start:i])
        out += _copy(i - candidate, length)
        i += length
        literal_start = i
    out += _literal(block[literal_start:])
    return bytes(out)


def snappy_encode(data: bytes | bytearray) -> bytes:
    """Compress data into a Snappy block."""
    data = bytes(data)
    out = bytearray(put_uvarint(len(data)))
    for start in range(0, len(data), _MAX_BLOCK):
        out += _encode_block(data[start : start + _MAX_BLOCK])
    return bytes(out)


def _take(data: bytes, pos: int, size: int) -> tuple[bytes, int]:
    end = pos + size
    if end > len(data):
        raise CodecError("snappy: corrupt input")
    return data[pos:end], end


def snappy_decode(data: bytes | bytearray) -> bytes:
    """Decompress a Snappy block; raises CodecError when it is corrupt."""
    data = bytes(data)
    expected, pos = read_uvarint(data)
    out = bytearray()

    while pos < len(data):
        tag = data[pos]
        pos += 1
        kind = tag & 3
        if kind == 0:
            n = tag >> 2
            if n >= 60:
                raw, pos = _take(data, pos, n - 59)
                n = int.from_bytes(raw, "little")
            chunk, pos = _take(data, pos, n + 1)
            out += chunk
            continue
        if kind == 1:
            length = 4 + ((tag >> 2) & 7)
            raw, pos = _take(data, pos, 1)
            offset = ((tag & 0xE0) << 3) | raw[0]
        else:
            length = 1 + (tag >> 2)
            raw, pos = _take(data, pos, 2 if kind == 2 else 4)
            offset = int.from_bytes(raw, "little")
        if offset == 0 or offset > len(out):
            raise CodecError("snappy: corrupt input")
        start = len(out) - offset
        for k in range(length):
            out.append(out[start + k])

    if len(out) != expected:
        raise CodecError("snappy: corrupt input")
    return bytes(out)