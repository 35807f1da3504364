# emitsec

Security primitives for a publish/subscribe message broker, written in pure
Python with no third-party dependencies.

## Modules

- `emitsec.hashing`: `of(data)` and `of_string(value)` compute the 32-bit
  Murmur3 variant (seed 37, byte-swapped result) used to hash channel parts.
- `emitsec.channel`: `parse_channel(text)` and `make_channel(key, channel)`
  turn `key/channel/parts/?option=value` strings into a `Channel`. A
  `Channel` has a `channel_type` (`ChannelType.STATIC`, `WILDCARD` or
  `INVALID`), its `key`, `channel`, hashed `query` and `options`, and the
  accessors `target()`, `ttl()`, `last()`, `exclude()` (the `me=0` option),
  `window()` (the `from`/`until` options as UTC datetimes, the epoch when
  absent or out of range), `safe_string()` and `str()`.
- `emitsec.ident`: `ID`, an unsigned 64-bit identifier whose `str()` is the
  upper-case hex of its varint encoding and whose `unique(prefix, salt)` gives
  a PBKDF2-derived base32 string; `IDGenerator` and `new_id()` hand out
  increasing identifiers.
- `emitsec.key`: the 24-byte security `Key` with `salt`, `master`,
  `contract`, `signature`, `permissions` and `expires` properties,
  `set_target()` (raises `TargetError`), `validate_channel()`,
  `has_permission()`, `set_permission()`, `is_master()` and `is_expired()`.
  `Permission` holds the permission flags.
- `emitsec.b64`: `decode_key(src)` decodes unpadded URL-safe base64 and raises
  `CorruptInputError` on bad input.
- `emitsec.salsa20`: `hsalsa20(nonce, key)` and
  `xor_key_stream(data, counter, key)`.
- `emitsec.ciphers`: `Xtea`, `Salsa` and `Shuffle`, each with
  `encrypt_key(key)` giving a 32-character URL-safe string and
  `decrypt_key(token)` giving a `Key` back. Invalid cipher keys or tokens
  raise `CipherError` (or `CorruptInputError` for bad base64).
- `emitsec.codec`: `put_uvarint`, `read_uvarint`, `snappy_encode` and
  `snappy_decode`; corrupt data raises `CodecError`.
- `emitsec.license`: `V1`, `V2` and `V3` licences (`generate()`, `parse()`,
  `cipher()`, `new_master_key(id)`, `contract()`, `signature()`, `master()`,
  `str()`), plus `parse(text)` for any version and `new()` to create a licence
  together with its encrypted master key. Invalid licences raise
  `LicenseError`.

## Installation

```
pip install .
```

## Usage

Parse a channel:

```python
from emitsec.channel import ChannelType, parse_channel

channel = parse_channel(b"emitter/a/b/?ttl=42")
assert channel.channel_type is ChannelType.STATIC
assert channel.ttl() == 42
assert str(channel) == "emitter/a/b/?ttl=42"
```

Build a key, restrict it to a channel and check it:

```python
from emitsec.channel import parse_channel
from emitsec.key import Key, Permission

key = Key(bytes(24))
key.set_target("a/b/c/#/")
key.set_permission(Permission.READ, True)
assert key.has_permission(Permission.READ)
assert key.validate_channel(parse_channel(b"k/a/b/c/d/"))
```

Generate a licence and its master key, then use the licence's cipher:

```python
from emitsec.license import new, parse

license_text, master_text = new()
lic = parse(license_text)
master_key = lic.cipher().decrypt_key(master_text.encode())
assert master_key.is_master()
```

## What this package does not do

It holds only the security building blocks. It has no broker: no MQTT
server, no network or cluster layer, no message storage, and no command-line
tool.

## Tests

```
pip install .[test]
pytest
```