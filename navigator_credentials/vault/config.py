"""
Vault Configuration — Key loading and validated settings.

Reads keys from environment variables in the format:
    CREDENTIAL_VAULT_KEY_<CONTEXT> = <base64-encoded 32-byte key>
    CREDENTIAL_VAULT_ACTIVE_KEY = <context>
    CREDENTIAL_VAULT_REVEAL_TIMEOUT = <seconds>

Security Note:
    Never log key material. Only log key contexts.
"""
import os
import re
import logging

from pydantic import BaseModel, Field, field_validator

from .crypto import export_key, generate_key, import_key, EncryptionKey
from ..exceptions import InvalidKeyError

logger = logging.getLogger("navigator.credentials")

_KEY_ENV_PATTERN = re.compile(r"^CREDENTIAL_VAULT_KEY_(\w+)$")
_CONTEXT_PATTERN = re.compile(r"^[a-z0-9_\-.:]{1,64}$")


def load_keys_from_env() -> dict[str, EncryptionKey]:
    """Load keys from CREDENTIAL_VAULT_KEY_<CONTEXT> environment variables.

    Context names are lower-cased, so ``CREDENTIAL_VAULT_KEY_DEFAULT``
    provides the key for context ``default``.

    Returns:
        Mapping of context to key. Empty if no variable is set.

    Raises:
        InvalidKeyError: If a value is not a base64-encoded 32-byte key.
    """
    keys: dict[str, EncryptionKey] = {}
    for name, value in os.environ.items():
        match = _KEY_ENV_PATTERN.match(name)
        if match:
            context = match.group(1).lower()
            try:
                keys[context] = import_key(value)
            except InvalidKeyError as err:
                raise InvalidKeyError(f"{name}: {err}") from err
    logger.debug("Loaded %d key context(s): %s", len(keys), sorted(keys))
    return keys


def generate_master_key() -> str:
    """Generate a random 32-byte key and return it as base64 string.

    This is a utility for operators to generate new keys.
    """
    return export_key(generate_key())


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    reveal_timeout: float = Field(default=30.0, gt=0)
    active_key_id: str = Field(default="default")
    max_name_length: int = Field(default=100, ge=1)
    max_note_length: int = Field(default=500, ge=1)

    @field_validator("active_key_id")
    @classmethod
    def validate_key_id(cls, v: str) -> str:
        """Key contexts are short lower-case identifiers."""
        if not _CONTEXT_PATTERN.match(v):
            raise ValueError(f"Invalid key context: {v!r}")
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment."""
        values: dict = {}
        timeout = os.environ.get("CREDENTIAL_VAULT_REVEAL_TIMEOUT")
        if timeout is not None:
            values["reveal_timeout"] = float(timeout)
        active = os.environ.get("CREDENTIAL_VAULT_ACTIVE_KEY")
        if active is not None:
            values["active_key_id"] = active.lower()
        return cls(**values)
