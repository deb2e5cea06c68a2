from __future__ import annotations

import base64
import binascii
from typing import Iterable

from blake3 import blake3
from nacl import exceptions as nacl_exceptions
from nacl.signing import SigningKey


class InvalidSigningKeyError(ValueError):
    """Raised when the configured signing key cannot be parsed."""


def decode_hex(value: str, *, label: str) -> bytes:
    """Decode a hex string, raising a descriptive error when invalid."""
    try:
        return binascii.unhexlify(value)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid hex value for {label}") from exc


def delivery_fingerprint(fields: Iterable[bytes]) -> str:
    """
    Produce a deterministic hexadecimal fingerprint for a delivery.

    Each field is length-prefixed so that concatenated field boundaries
    cannot collide.
    """
    hasher = blake3()
    for chunk in fields:
        hasher.update(len(chunk).to_bytes(4, "big"))
        hasher.update(chunk)
    return hasher.hexdigest()


def load_signing_key(hex_seed: str) -> SigningKey:
    """Build an Ed25519 signing key from a hex-encoded 32 byte seed."""
    raw = decode_hex(hex_seed, label="delivery_signing_key")
    try:
        return SigningKey(raw)
    except (nacl_exceptions.CryptoError, TypeError, ValueError) as exc:
        raise InvalidSigningKeyError("invalid Ed25519 signing key") from exc


def sign_body(signing_key: SigningKey, body: bytes) -> str:
    """Return the base64 detached Ed25519 signature over ``body``."""
    signed = signing_key.sign(body)
    return base64.b64encode(signed.signature).decode("ascii")


__all__ = [
    "decode_hex",
    "delivery_fingerprint",
    "load_signing_key",
    "sign_body",
    "InvalidSigningKeyError",
]
