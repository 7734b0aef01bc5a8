"""
Vault Crypto Core — Key handling and single-secret encryption/decryption.

Wire format of a cipher text:
    base64( [nonce 12B][encrypted_payload + GCM_tag 16B] )

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import hmac
import base64
import binascii
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import DecryptionError, InvalidKeyError

logger = logging.getLogger("navigator.credentials")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256


class EncryptionKey:
    """Opaque handle around raw 256-bit AES-GCM key bytes."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != KEY_LENGTH:
            raise InvalidKeyError(
                f"Encryption key must be exactly {KEY_LENGTH} bytes"
            )
        self._raw = bytes(raw)

    @property
    def raw(self) -> bytes:
        return self._raw

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncryptionKey):
            return NotImplemented
        return hmac.compare_digest(self._raw, other._raw)

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return "<EncryptionKey AES-256-GCM>"


# ---------------------------------------------------------------------------
# Key lifecycle
# ---------------------------------------------------------------------------

def generate_key() -> EncryptionKey:
    """Generate a fresh random 256-bit AES-GCM key.

    Callers are responsible for handing it to a key provider.
    """
    return EncryptionKey(AESGCM.generate_key(bit_length=KEY_LENGTH * 8))


def export_key(key: EncryptionKey) -> str:
    """Export raw key bytes as a base64 string."""
    return base64.b64encode(key.raw).decode("ascii")


def import_key(key_string: str) -> EncryptionKey:
    """Import a key previously produced by :func:`export_key`.

    Raises:
        InvalidKeyError: If the string is not base64 or does not decode
            to exactly 32 bytes.
    """
    try:
        raw = base64.b64decode(key_string, validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidKeyError("Encryption key is not valid base64") from err
    if len(raw) != KEY_LENGTH:
        raise InvalidKeyError(
            f"Encryption key must decode to exactly {KEY_LENGTH} bytes, "
            f"got {len(raw)}"
        )
    return EncryptionKey(raw)


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, key: EncryptionKey) -> str:
    """Encrypt a secret string under AES-256-GCM.

    A fresh nonce is drawn for every call, so identical plaintexts never
    produce identical cipher texts.

    Args:
        plaintext: Secret to encrypt.
        key: Encryption key.

    Returns:
        base64 of nonce + ciphertext + tag.
    """
    cipher = AESGCM(key.raw)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt(cipher_text: str, key: EncryptionKey) -> str:
    """Decrypt a cipher text produced by :func:`encrypt`.

    Args:
        cipher_text: base64 of nonce + ciphertext + tag.
        key: Encryption key.

    Returns:
        Decrypted plaintext.

    Raises:
        DecryptionError: If the value is malformed, was tampered with,
            or was encrypted under a different key.
    """
    try:
        payload = base64.b64decode(cipher_text, validate=True)
    except (binascii.Error, ValueError, TypeError) as err:
        raise DecryptionError("Cipher text is not valid base64") from err
    if len(payload) < NONCE_SIZE:
        raise DecryptionError(
            f"Cipher text too short: {len(payload)} bytes "
            f"(nonce alone is {NONCE_SIZE})"
        )
    if len(payload) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionError(
            f"Cipher text too short: {len(payload)} bytes "
            f"(minimum {NONCE_SIZE + TAG_SIZE})"
        )
    cipher = AESGCM(key.raw)
    nonce = payload[:NONCE_SIZE]
    ct = payload[NONCE_SIZE:]
    try:
        data = cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionError(
            "Authentication failed: wrong key or tampered cipher text"
        ) from err
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted value is not valid UTF-8") from err
