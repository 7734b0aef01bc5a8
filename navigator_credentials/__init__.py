"""Navigator Credentials.

Credentials attached to project cards, with encrypted storage, masked
display and time-boxed reveal.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    DecryptionError,
    InvalidKeyError,
    KeyNotFoundError,
    ValidationError,
)
from .credentials import (
    BaseCredential,
    Credential,
    ReferenceCredential,
    EncryptedCredential,
    ExternalCredential,
    new_credential,
    switch_variant,
    validate_credential,
    committable,
)
from .vault import (
    CredentialVault,
    VaultConfig,
    mask,
)
from .form import CredentialForm

__all__ = [
    "__version__",
    "VaultError",
    "DecryptionError",
    "InvalidKeyError",
    "KeyNotFoundError",
    "ValidationError",
    "BaseCredential",
    "Credential",
    "ReferenceCredential",
    "EncryptedCredential",
    "ExternalCredential",
    "new_credential",
    "switch_variant",
    "validate_credential",
    "committable",
    "CredentialVault",
    "VaultConfig",
    "mask",
    "CredentialForm",
]
