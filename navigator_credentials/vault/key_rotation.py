"""
Vault Key Rotation — Re-encryption of stored credentials under a new key.

Re-encrypts every encrypted credential of the given cards from one key
context to another, one card at a time. Each card is saved on its own, so
an interrupted rotation can simply be run again: credentials already on the
new key are skipped. A card that cannot be saved is left on the old key and
its credentials are counted as errors. Masked displays are left untouched.

Security Note:
    Plaintext exists in memory only during re-encryption of each credential.
    Never log plaintext or ciphertext values.
"""
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .crypto import decrypt, encrypt
from ..credentials import EncryptedCredential, update_credential
from ..exceptions import DecryptionError, VaultError

if TYPE_CHECKING:
    from .credential_vault import CredentialVault

logger = logging.getLogger("navigator.credentials")


async def rotate_credentials(
    vault: "CredentialVault",
    card_ids: Iterable[str],
    old_key_id: str,
    new_key_id: str,
) -> dict:
    """Re-encrypt credentials of ``card_ids`` from old_key_id to new_key_id.

    Args:
        vault: Vault giving access to the key provider and the store.
        card_ids: Cards whose credentials are rotated.
        old_key_id: Source key context to rotate from.
        new_key_id: Target key context to rotate to.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped.

    Raises:
        KeyNotFoundError: If either key context is unknown to the provider.
    """
    old_key = await vault.get_key(old_key_id)
    new_key = await vault.get_key(new_key_id)
    active_id = vault.config.active_key_id
    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}

    logger.info("Starting key rotation from %s to %s", old_key_id, new_key_id)

    for card_id in card_ids:
        credentials = await vault.load(card_id)
        rotated = 0
        result = []
        for credential in credentials:
            if not isinstance(credential, EncryptedCredential) or not credential.cipher_text:
                result.append(credential)
                continue
            stats["total"] += 1
            if (credential.key_id or active_id) != old_key_id:
                stats["skipped"] += 1
                result.append(credential)
                continue
            try:
                plaintext = decrypt(credential.cipher_text, old_key)
            except DecryptionError as err:
                logger.error(
                    "Error rotating credential id=%s card=%s: %s",
                    credential.id, card_id, err,
                )
                stats["errors"] += 1
                result.append(credential)
                continue
            result.append(
                update_credential(
                    credential,
                    cipher_text=encrypt(plaintext, new_key),
                    key_id=new_key_id,
                )
            )
            rotated += 1

        if not rotated:
            continue
        try:
            await vault.save(card_id, result)
        except VaultError as err:
            # the card keeps its previous records, all on the old key
            logger.error("Error saving rotated card=%s: %s", card_id, err)
            stats["errors"] += rotated
            continue
        stats["rotated"] += rotated

    logger.info("Key rotation complete: %s", stats)
    return stats
