"""Tests for the CredentialVault facade."""
import pytest

from navigator_credentials.credentials import (
    EncryptedCredential,
    ExternalCredential,
    ReferenceCredential,
)
from navigator_credentials.exceptions import (
    DecryptionError,
    KeyNotFoundError,
    ValidationError,
)
from navigator_credentials.vault import (
    CredentialVault,
    InMemoryCredentialStore,
    KeyProvider,
    VaultConfig,
    generate_key,
)


class ForbiddenKeyProvider(KeyProvider):
    """Fails the test whenever a key is requested."""

    async def get_key(self, context):
        raise AssertionError("key provider must not be used")

    async def put_key(self, context, key):
        raise AssertionError("key provider must not be used")


def _tamper(cipher_text):
    """Change the first base64 character, i.e. the start of the nonce."""
    first = "B" if cipher_text[0] == "A" else "A"
    return first + cipher_text[1:]


class TestEngine:
    """Engine calls through the vault."""

    @pytest.mark.asyncio
    async def test_encrypt_decrypt(self, vault, key):
        """The vault encrypts and decrypts with a given key."""
        cipher_text = await vault.encrypt("ghp_secret_value", key)
        assert await vault.decrypt(cipher_text, key) == "ghp_secret_value"

    @pytest.mark.asyncio
    async def test_decrypt_wrong_key(self, vault, key):
        """Decrypting with another key raises DecryptionError."""
        cipher_text = await vault.encrypt("ghp_secret_value", key)
        with pytest.raises(DecryptionError):
            await vault.decrypt(cipher_text, generate_key())

    def test_mask(self, vault):
        assert vault.mask("ghp_1234567890abcdefABCDEF") == "ghp_*****CDEF"

    def test_generate_key(self, vault):
        assert vault.generate_key() != vault.generate_key()


class TestSeal:
    """Encrypt + mask with provider keys."""

    @pytest.mark.asyncio
    async def test_seal_uses_active_key(self, vault, key):
        """Sealing uses the active key and masks the value."""
        cipher_text, masked, key_id = await vault.seal("sk_live_51H4RdE2BqJhGwM5N8")
        assert key_id == "default"
        assert masked == "sk_live_*****wM5N8"
        assert await vault.decrypt(cipher_text, key) == "sk_live_51H4RdE2BqJhGwM5N8"

    @pytest.mark.asyncio
    async def test_seal_with_other_key(self, vault, key_provider):
        """Sealing can target another key context."""
        other = generate_key()
        await key_provider.put_key("v2", other)
        cipher_text, _, key_id = await vault.seal("ghp_abcdefghijkl", "v2")
        assert key_id == "v2"
        assert await vault.decrypt(cipher_text, other) == "ghp_abcdefghijkl"

    @pytest.mark.asyncio
    async def test_seal_unknown_key(self, vault):
        """Sealing with an unknown key context raises."""
        with pytest.raises(KeyNotFoundError):
            await vault.seal("ghp_abcdefghijkl", "missing")


class TestRevealSecret:
    """Decrypting credential records."""

    @pytest.mark.asyncio
    async def test_reveal_secret(self, vault):
        """A sealed credential reveals its secret."""
        cipher_text, masked, key_id = await vault.seal("pk_test_abcdefghijklmnop")
        credential = EncryptedCredential(
            name="Stripe", cipher_text=cipher_text, masked_display=masked, key_id=key_id,
        )
        assert await vault.reveal_secret(credential) == "pk_test_abcdefghijklmnop"

    @pytest.mark.asyncio
    async def test_reveal_secret_without_key_id_uses_active(self, vault, key):
        """Records without a key id use the active key."""
        credential = EncryptedCredential(
            name="Stripe", cipher_text=await vault.encrypt("value-1234", key),
        )
        assert await vault.reveal_secret(credential) == "value-1234"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [
        ReferenceCredential(name="Dash", reference_url="https://dash.io"),
        ExternalCredential(name="DB", location="1Password"),
        EncryptedCredential(name="Empty", masked_display="*****"),
    ])
    async def test_nothing_to_reveal(self, vault, credential):
        """Credentials without cipher text cannot be revealed."""
        with pytest.raises(ValidationError):
            await vault.reveal_secret(credential)

    @pytest.mark.asyncio
    async def test_tampered_record(self, vault):
        """A tampered cipher text raises DecryptionError."""
        cipher_text, masked, key_id = await vault.seal("pk_test_abcdefghijklmnop")
        credential = EncryptedCredential(
            name="Stripe", cipher_text=_tamper(cipher_text),
            masked_display=masked, key_id=key_id,
        )
        with pytest.raises(DecryptionError):
            await vault.reveal_secret(credential)


class TestPersistence:
    """Store round trips."""

    @pytest.mark.asyncio
    async def test_save_drops_drafts(self, vault, store):
        """Unnamed rows never reach the store."""
        named = ExternalCredential(name="DB", location="Bitwarden")
        draft = ReferenceCredential(name="")
        saved = await vault.save("card-1", [named, draft])
        assert saved == [named]
        assert await store.load("card-1") == [named]

    @pytest.mark.asyncio
    async def test_save_invalid_named_row(self, vault, store):
        """An invalid row aborts the save and leaves the store empty."""
        bad = ReferenceCredential(name="Dash", reference_url="dash")
        with pytest.raises(ValidationError):
            await vault.save("card-1", [bad])
        assert await store.load("card-1") == []

    @pytest.mark.asyncio
    async def test_config_limits(self, key_provider, store):
        """Save applies the configured limits."""
        vault = CredentialVault(key_provider, store, config=VaultConfig(max_name_length=3))
        with pytest.raises(ValidationError):
            await vault.save("card-1", [ExternalCredential(name="long")])

    @pytest.mark.asyncio
    async def test_load_unknown_card(self, vault):
        assert await vault.load("nothing") == []

    @pytest.mark.asyncio
    async def test_non_secret_credentials_never_need_keys(self):
        """Saving and loading non secret credentials never asks for keys."""
        vault = CredentialVault(ForbiddenKeyProvider(), InMemoryCredentialStore())
        records = [
            ReferenceCredential(name="Dash", reference_url="https://dash.io"),
            ExternalCredential(name="DB", location="1Password"),
        ]
        await vault.save("card-1", records)
        assert await vault.load("card-1") == records
