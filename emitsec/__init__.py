"""Channel parsing, security keys, key ciphers and licences for a message broker."""

__version__ = "0.1.0"

__all__ = ["hashing", "channel", "ident", "key", "b64", "salsa20", "ciphers", "codec", "license"]