"""Credential editing form of a project card."""
import logging
from collections.abc import Iterable, Iterator, MutableMapping
from typing import TYPE_CHECKING, Any, Optional

from .credentials import (
    REFERENCE,
    BaseCredential,
    EncryptedCredential,
    credential_class,
    new_credential,
    switch_variant,
    update_credential,
)
from .exceptions import ValidationError, VaultError
from .vault.reveal import RevealSessionManager

if TYPE_CHECKING:
    from .vault.credential_vault import CredentialVault

logger = logging.getLogger("navigator.credentials")


class CredentialForm(MutableMapping[str, BaseCredential]):
    """Dict-like set of credentials being edited for one card.

    Credentials are keyed by their id. The form owns the reveal sessions of
    its credentials: replacing, removing or switching a credential hides it,
    and closing the form tears every session down.
    """

    def __init__(
        self,
        vault: "CredentialVault",
        card_id: str,
        credentials: Optional[Iterable[BaseCredential]] = None,
    ) -> None:
        self._vault = vault
        self._card_id = card_id
        self._credentials: dict[str, BaseCredential] = {}
        self._changed = False
        self._closed = False
        self._sessions = RevealSessionManager(
            self._resolve,
            scheduler=vault.scheduler,
            timeout=vault.config.reveal_timeout,
        )
        self._replace(credentials or [])

    def __repr__(self) -> str:
        return (
            f'<CredentialForm [card:{self._card_id}, changed:{self._changed}] '
            f'credentials={list(self._credentials)}, '
            f'revealed={self._sessions.revealed_ids()}>'
        )

    def _replace(self, credentials: Iterable[BaseCredential]) -> None:
        self._sessions.teardown()
        self._credentials = {c.id: c for c in credentials}
        self._changed = False

    async def _resolve(self, credential_id: str) -> str:
        return await self._vault.reveal_secret(self._credentials[credential_id])

    def _check_open(self) -> None:
        if self._closed:
            raise VaultError(f"Credential form of card {self._card_id} is closed")

    # --- Properties ---

    @property
    def card_id(self) -> str:
        return self._card_id

    @property
    def is_changed(self) -> bool:
        return self._changed

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sessions(self) -> RevealSessionManager:
        return self._sessions

    # --- Editing ---

    def add(self, credential_type: str = REFERENCE, **fields: Any) -> BaseCredential:
        """Append a new credential and return it."""
        self._check_open()
        credential = new_credential(credential_type, **fields)
        if credential.id in self._credentials:
            raise ValidationError(f"Duplicated credential id: {credential.id}")
        self._credentials[credential.id] = credential
        self._changed = True
        return credential

    def edit(self, credential_id: str, **fields: Any) -> BaseCredential:
        """Change fields of a credential, keeping its type."""
        self._check_open()
        credential = update_credential(self[credential_id], **fields)
        self[credential_id] = credential
        return credential

    def switch_type(self, credential_id: str, credential_type: str) -> BaseCredential:
        """Change the disclosure pattern of a credential.

        The secret no longer exists under this id, so any open reveal
        session is closed first.
        """
        self._check_open()
        current = self[credential_id]
        credential_class(credential_type)
        self._sessions.hide(credential_id)
        credential = switch_variant(current, credential_type)
        if credential is not current:
            self._credentials[credential_id] = credential
            self._changed = True
            logger.debug(
                "Credential %s switched %s -> %s",
                credential_id, current.type, credential.type,
            )
        return credential

    async def set_secret(self, credential_id: str, plaintext: str) -> EncryptedCredential:
        """Encrypt a newly entered secret and refresh its masked display."""
        self._check_open()
        credential = self[credential_id]
        if not isinstance(credential, EncryptedCredential):
            raise ValidationError(
                f"Credential {credential_id} of type {credential.type!r} "
                "cannot hold a secret"
            )
        cipher_text, masked, key_id = await self._vault.seal(
            plaintext, credential.key_id
        )
        current = self._credentials.get(credential_id)
        if not isinstance(current, EncryptedCredential):
            raise ValidationError(
                f"Credential {credential_id} was removed or changed type "
                "while its secret was being encrypted"
            )
        updated = update_credential(
            current,
            cipher_text=cipher_text,
            masked_display=masked,
            key_id=key_id,
        )
        self[credential_id] = updated
        return updated

    # --- Reveal sessions ---

    async def reveal(self, credential_id: str) -> Optional[str]:
        """Show the decrypted secret of a credential for a limited time."""
        self._check_open()
        if credential_id not in self._credentials:
            raise KeyError(credential_id)
        return await self._sessions.reveal(credential_id)

    def hide(self, credential_id: str) -> None:
        self._sessions.hide(credential_id)

    def is_revealed(self, credential_id: str) -> bool:
        return self._sessions.is_revealed(credential_id)

    def revealed_value(self, credential_id: str) -> Optional[str]:
        return self._sessions.value(credential_id)

    def display(self, credential_id: str) -> Optional[str]:
        """Value shown for an encrypted credential: revealed or masked."""
        credential = self[credential_id]
        if not isinstance(credential, EncryptedCredential):
            return None
        if self._sessions.is_revealed(credential_id):
            return self._sessions.value(credential_id)
        return credential.masked_display

    def teardown(self) -> None:
        self._sessions.teardown()

    # --- Lifecycle ---

    async def commit(self) -> list[BaseCredential]:
        """Save the form through the vault.

        Unnamed draft rows are dropped from the form as well.
        """
        self._check_open()
        saved = await self._vault.save(self._card_id, list(self._credentials.values()))
        kept = {c.id for c in saved}
        for credential_id in list(self._credentials):
            if credential_id not in kept:
                self._sessions.hide(credential_id)
                del self._credentials[credential_id]
        self._changed = False
        return saved

    async def reset(self) -> None:
        """Discard local edits and reload the card credentials."""
        self._check_open()
        self._replace(await self._vault.load(self._card_id))

    def close(self) -> None:
        self._sessions.teardown()
        self._closed = True

    async def __aenter__(self) -> "CredentialForm":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self) -> Iterator[str]:
        return iter(self._credentials)

    def __contains__(self, key: object) -> bool:
        return key in self._credentials

    def __getitem__(self, key: str) -> BaseCredential:
        return self._credentials[key]

    def __setitem__(self, key: str, value: BaseCredential) -> None:
        self._check_open()
        if value.id != key:
            raise ValidationError(
                f"Credential id {value.id!r} does not match key {key!r}"
            )
        current = self._credentials.get(key)
        if current is not None and (
            current.type != value.type
            or getattr(current, "cipher_text", None) != getattr(value, "cipher_text", None)
        ):
            self._sessions.hide(key)
        self._credentials[key] = value
        self._changed = True

    def __delitem__(self, key: str) -> None:
        del self._credentials[key]
        self._sessions.hide(key)
        self._changed = True

    def remove(self, credential_id: str) -> None:
        del self[credential_id]
