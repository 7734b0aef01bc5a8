"""Exceptions raised by the credential vault."""


class VaultError(Exception):
    """Base class for credential vault errors."""


class DecryptionError(VaultError):
    """A cipher text cannot be decrypted.

    Raised for malformed base64, truncated payloads, authentication tag
    failures (wrong key or tampered data) and non UTF-8 plaintext.
    """


class InvalidKeyError(VaultError):
    """Key material is not a valid 256-bit key."""


class KeyNotFoundError(VaultError):
    """The key provider holds no key for the requested context."""


class ValidationError(VaultError):
    """A credential record cannot be committed."""
