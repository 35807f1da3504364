import base64
import os
from datetime import datetime, timezone

import pytest

from emitsec.b64 import CorruptInputError
from emitsec.ciphers import CipherError, Salsa, Shuffle, Xtea
from emitsec.key import Key, Permission


def make_key(salt=999):
    key = Key()
    key.salt = salt
    key.master = 2
    key.contract = 123
    key.signature = 777
    key.permissions = Permission.READ_WRITE
    key.set_target("a/b/c/")
    key.expires = datetime.fromtimestamp(1497683272, timezone.utc)
    return key


def test_salsa_encrypt_and_decrypt():
    cipher = Salsa(bytes(32), bytes(24))
    key = make_key()

    encoded = cipher.encrypt_key(key)
    assert encoded == "uYkm3UsuorRk0tBqliO18gs5xXmXioMF"

    decoded = cipher.decrypt_key(encoded.encode("ascii"))
    assert decoded == key
    assert decoded.contract == 123


def test_salsa_decrypt_accepts_text():
    cipher = Salsa(bytes(32), bytes(24))
    assert cipher.decrypt_key("uYkm3UsuorRk0tBqliO18gs5xXmXioMF") == make_key()


def test_salsa_errors():
    cipher = Salsa(bytes(32), bytes(24))
    with pytest.raises(CipherError):
        cipher.decrypt_key(b"")
    with pytest.raises(CorruptInputError):
        cipher.decrypt_key(b"aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa*")


def test_new_salsa_rejects_bad_sizes():
    with pytest.raises(CipherError):
        Salsa(b"", b"")
    with pytest.raises(CipherError):
        Salsa(bytes(32), bytes(16))


def test_shuffle_encrypt_and_decrypt():
    cipher = Shuffle(bytes(32), bytes(16))
    key = make_key()

    encoded = cipher.encrypt_key(key)
    assert encoded == "A-dOBQDuXhqoFz-GZZdbpSFCtzmFl7Ng"

    decoded = cipher.decrypt_key(encoded.encode("ascii"))
    assert decoded == key


def test_shuffle_errors():
    cipher = Shuffle(bytes(32), bytes(16))
    with pytest.raises(CipherError):
        cipher.decrypt_key(b"")
    with pytest.raises(CorruptInputError):
        cipher.decrypt_key(b"aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa*")


def test_new_shuffle_rejects_bad_sizes():
    with pytest.raises(CipherError):
        Shuffle(b"", b"")
    with pytest.raises(CipherError):
        Shuffle(bytes(32), bytes(24))


def test_shuffle_keeps_salt_in_clear():
    cipher = Shuffle(os.urandom(32), os.urandom(16))
    encoded = cipher.encrypt_key(make_key(salt=0x1234))
    raw = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
    assert raw[:2] == b"\x12\x34"


def test_shuffle_entropy():
    cipher = Shuffle(os.urandom(32), os.urandom(16))
    k1 = cipher.encrypt_key(make_key(111))
    k2 = cipher.encrypt_key(make_key(333))

    diff = sum(1 for a, b in zip(k1, k2) if a != b)
    assert k1 != k2
    assert diff > 20


def test_shuffle_round_trip_with_random_material():
    cipher = Shuffle(os.urandom(32), os.urandom(16))
    key = make_key(4242)
    assert cipher.decrypt_key(cipher.encrypt_key(key)) == key


def test_xtea_round_trip():
    cipher = Xtea("zT83oDV0DWY5_JysbSTPTA")
    key = make_key()
    encoded = cipher.encrypt_key(key)
    assert len(encoded) == 32
    assert cipher.decrypt_key(encoded) == key


def test_xtea_different_keys_encrypt_differently():
    cipher = Xtea("zT83oDV0DWY5_JysbSTPTA")
    assert cipher.encrypt_key(make_key(1)) != cipher.encrypt_key(make_key(2))


def test_xtea_errors():
    cipher = Xtea("zT83oDV0DWY5_JysbSTPTA")
    with pytest.raises(CipherError):
        cipher.decrypt_key(b"")
    with pytest.raises(CorruptInputError):
        cipher.decrypt_key(b"aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa*")
    with pytest.raises(CipherError):
        cipher.encrypt_key(bytes(10))