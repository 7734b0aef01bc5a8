"""
Collaborator interfaces consumed by the vault.

- :class:`KeyProvider` supplies the symmetric keys; the vault never
  persists keys itself.
- :class:`CredentialStore` persists credential records per card.

In-memory implementations are provided for tests and single-process use.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .crypto import EncryptionKey
from .config import load_keys_from_env
from ..credentials import BaseCredential, dump_credentials, load_credentials
from ..exceptions import KeyNotFoundError

logger = logging.getLogger("navigator.credentials")


class KeyProvider(ABC):
    """Source of encryption keys, addressed by context."""

    @abstractmethod
    async def get_key(self, context: str) -> EncryptionKey:
        """Return the key for ``context``.

        Raises:
            KeyNotFoundError: If no key is registered for ``context``.
        """

    @abstractmethod
    async def put_key(self, context: str, key: EncryptionKey) -> None:
        """Register (or replace) the key for ``context``."""


class CredentialStore(ABC):
    """Persistence of credential lists keyed by card id."""

    @abstractmethod
    async def load(self, card_id: str) -> list[BaseCredential]:
        """Return the credentials of a card, empty if none were saved."""

    @abstractmethod
    async def save(self, card_id: str, credentials: list[BaseCredential]) -> None:
        """Replace the credentials of a card."""


class InMemoryKeyProvider(KeyProvider):
    """Keeps keys in a process-local mapping."""

    def __init__(self, keys: Optional[dict[str, EncryptionKey]] = None):
        self._keys: dict[str, EncryptionKey] = dict(keys or {})

    async def get_key(self, context: str) -> EncryptionKey:
        try:
            return self._keys[context]
        except KeyError:
            raise KeyNotFoundError(
                f"No encryption key registered for context {context!r}"
            ) from None

    async def put_key(self, context: str, key: EncryptionKey) -> None:
        self._keys[context] = key
        logger.debug("Key registered for context=%s", context)

    def contexts(self) -> list[str]:
        return sorted(self._keys)


class EnvKeyProvider(InMemoryKeyProvider):
    """Key provider seeded from CREDENTIAL_VAULT_KEY_<CONTEXT> variables.

    Keys registered through :meth:`put_key` live for the process only.
    """

    def __init__(self):
        super().__init__(load_keys_from_env())


class InMemoryCredentialStore(CredentialStore):
    """Stores serialized credential lists in a dict.

    Records are kept as JSON bytes so callers never share model
    instances with the store.
    """

    def __init__(self):
        self._cards: dict[str, bytes] = {}

    async def load(self, card_id: str) -> list[BaseCredential]:
        data = self._cards.get(card_id)
        if data is None:
            return []
        return load_credentials(data)

    async def save(self, card_id: str, credentials: list[BaseCredential]) -> None:
        self._cards[card_id] = dump_credentials(credentials)
        logger.debug(
            "Credentials saved: card=%s count=%d", card_id, len(credentials),
        )

    def card_ids(self) -> list[str]:
        return list(self._cards)
