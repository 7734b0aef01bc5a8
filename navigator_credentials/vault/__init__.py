"""Credential Vault — Encryption, masking and reveal sessions for card credentials.

Security Note (Threat Model):
    A revealed secret is decrypted in process memory for the length of its
    reveal session. A memory dump taken during that window exposes it.
    Keys are held by the key provider; the vault never persists them.
"""

from .crypto import (
    EncryptionKey,
    generate_key,
    encrypt,
    decrypt,
    export_key,
    import_key,
)
from .masking import mask
from .scheduler import Scheduler, AsyncioScheduler
from .reveal import RevealSession, RevealSessionManager
from .config import VaultConfig, load_keys_from_env, generate_master_key
from .providers import (
    KeyProvider,
    CredentialStore,
    InMemoryKeyProvider,
    EnvKeyProvider,
    InMemoryCredentialStore,
)
from .credential_vault import CredentialVault
from .key_rotation import rotate_credentials

__all__ = [
    "EncryptionKey",
    "generate_key",
    "encrypt",
    "decrypt",
    "export_key",
    "import_key",
    "mask",
    "Scheduler",
    "AsyncioScheduler",
    "RevealSession",
    "RevealSessionManager",
    "VaultConfig",
    "load_keys_from_env",
    "generate_master_key",
    "KeyProvider",
    "CredentialStore",
    "InMemoryKeyProvider",
    "EnvKeyProvider",
    "InMemoryCredentialStore",
    "CredentialVault",
    "rotate_credentials",
]
