"""
CredentialVault — Encryption, masking and persistence of card credentials.

Provides the public API used by the card UI:
- ``mask(plaintext)`` — masked display of a secret
- ``encrypt(plaintext, key)`` / ``decrypt(cipher_text, key)`` — engine calls
- ``seal(plaintext, key_id)`` — encrypt + mask with a provider key
- ``reveal_secret(credential)`` — decrypt an encrypted credential
- ``load(card_id)`` / ``save(card_id, credentials)`` — store round trip
- ``open_form(card_id)`` — editing form with reveal sessions

Security Note:
    Never log plaintext or ciphertext values. Only log card ids, credential
    ids and key contexts.
"""
import logging
from typing import Optional

from .config import VaultConfig
from .crypto import EncryptionKey, decrypt, encrypt, generate_key
from .masking import mask
from .providers import CredentialStore, KeyProvider
from .scheduler import Scheduler
from ..credentials import BaseCredential, EncryptedCredential, committable
from ..exceptions import ValidationError
from ..form import CredentialForm

logger = logging.getLogger("navigator.credentials")


class CredentialVault:
    """Vault bound to a key provider and a credential store.

    Encryption runs in-process; keys are always fetched from the key
    provider and never stored by the vault.
    """

    def __init__(
        self,
        key_provider: KeyProvider,
        store: CredentialStore,
        config: Optional[VaultConfig] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self._keys = key_provider
        self._store = store
        self._config = config or VaultConfig()
        self._scheduler = scheduler

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def scheduler(self) -> Optional[Scheduler]:
        return self._scheduler

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    @staticmethod
    def mask(plaintext: str) -> str:
        return mask(plaintext)

    @staticmethod
    def generate_key() -> EncryptionKey:
        return generate_key()

    async def encrypt(self, plaintext: str, key: EncryptionKey) -> str:
        return encrypt(plaintext, key)

    async def decrypt(self, cipher_text: str, key: EncryptionKey) -> str:
        """Decrypt a cipher text.

        Raises:
            DecryptionError: Wrong key, tampered or malformed cipher text.
        """
        return decrypt(cipher_text, key)

    async def get_key(self, key_id: Optional[str] = None) -> EncryptionKey:
        return await self._keys.get_key(key_id or self._config.active_key_id)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def seal(
        self, plaintext: str, key_id: Optional[str] = None
    ) -> tuple[str, str, str]:
        """Encrypt and mask a secret with a provider key.

        Args:
            plaintext: Secret entered by the user.
            key_id: Key context, defaults to the active key.

        Returns:
            Tuple of (cipher_text, masked_display, key_id).
        """
        key_id = key_id or self._config.active_key_id
        key = await self._keys.get_key(key_id)
        cipher_text = await self.encrypt(plaintext, key)
        return cipher_text, mask(plaintext), key_id

    async def reveal_secret(self, credential: BaseCredential) -> str:
        """Decrypt the secret held by an encrypted credential.

        Raises:
            ValidationError: If the credential holds no cipher text.
            KeyNotFoundError: If its key is unknown to the provider.
            DecryptionError: If the cipher text cannot be decrypted.
        """
        if not isinstance(credential, EncryptedCredential):
            raise ValidationError(
                f"Credential {credential.id} of type {credential.type!r} "
                "holds no secret"
            )
        if not credential.cipher_text:
            raise ValidationError(
                f"Credential {credential.id} has no encrypted value"
            )
        key = await self.get_key(credential.key_id)
        return await self.decrypt(credential.cipher_text, key)

    async def load(self, card_id: str) -> list[BaseCredential]:
        credentials = await self._store.load(card_id)
        logger.debug(
            "Credentials loaded: card=%s count=%d", card_id, len(credentials),
        )
        return credentials

    async def save(
        self, card_id: str, credentials: list[BaseCredential]
    ) -> list[BaseCredential]:
        """Validate and persist the credentials of a card.

        Unnamed rows are dropped before reaching the store.

        Returns:
            The credentials actually saved.

        Raises:
            ValidationError: If a named credential is invalid.
        """
        records = committable(
            credentials,
            max_name_length=self._config.max_name_length,
            max_note_length=self._config.max_note_length,
        )
        await self._store.save(card_id, records)
        logger.info(
            "Credentials committed: card=%s saved=%d dropped=%d",
            card_id, len(records), len(credentials) - len(records),
        )
        return records

    async def open_form(self, card_id: str) -> CredentialForm:
        """Load the credentials of a card into an editing form."""
        credentials = await self.load(card_id)
        return CredentialForm(self, card_id, credentials)
