"""Tests for vault configuration and environment keys."""
import pytest
from pydantic import ValidationError as ModelValidationError

from navigator_credentials.exceptions import InvalidKeyError, KeyNotFoundError
from navigator_credentials.vault import (
    EnvKeyProvider,
    VaultConfig,
    export_key,
    generate_key,
    generate_master_key,
    import_key,
    load_keys_from_env,
)


class TestVaultConfig:
    """Validated settings."""

    def test_defaults(self):
        """Defaults match the documented reveal window and limits."""
        config = VaultConfig()
        assert config.reveal_timeout == 30.0
        assert config.active_key_id == "default"
        assert config.max_name_length == 100
        assert config.max_note_length == 500

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout):
        """A zero or negative reveal window is rejected."""
        with pytest.raises(ModelValidationError):
            VaultConfig(reveal_timeout=timeout)

    def test_invalid_key_id(self):
        """Key ids must look like environment contexts."""
        with pytest.raises(ModelValidationError):
            VaultConfig(active_key_id="Not A Context")

    def test_from_env_defaults(self, clean_env):
        """Without variables from_env() equals the defaults."""
        assert VaultConfig.from_env() == VaultConfig()

    def test_from_env(self, clean_env):
        """Settings are read from the environment and normalized."""
        clean_env.setenv("CREDENTIAL_VAULT_REVEAL_TIMEOUT", "12.5")
        clean_env.setenv("CREDENTIAL_VAULT_ACTIVE_KEY", "V2")
        config = VaultConfig.from_env()
        assert config.reveal_timeout == 12.5
        assert config.active_key_id == "v2"


class TestEnvKeys:
    """Keys loaded from the environment."""

    def test_no_keys(self, clean_env):
        """An environment without key variables yields no keys."""
        assert load_keys_from_env() == {}

    def test_load_keys(self, clean_env):
        """Every CREDENTIAL_VAULT_KEY_<CONTEXT> variable becomes a key."""
        key = generate_key()
        clean_env.setenv("CREDENTIAL_VAULT_KEY_DEFAULT", export_key(key))
        clean_env.setenv("CREDENTIAL_VAULT_KEY_V2", generate_master_key())
        keys = load_keys_from_env()
        assert sorted(keys) == ["default", "v2"]
        assert keys["default"] == key

    def test_invalid_key(self, clean_env):
        """A key of the wrong length raises InvalidKeyError."""
        clean_env.setenv("CREDENTIAL_VAULT_KEY_DEFAULT", "c2hvcnQ=")
        with pytest.raises(InvalidKeyError):
            load_keys_from_env()

    def test_generate_master_key(self):
        """Generated master keys import as 256-bit keys."""
        assert len(import_key(generate_master_key()).raw) == 32

    @pytest.mark.asyncio
    async def test_env_key_provider(self, clean_env):
        """The env provider serves environment keys and accepts new ones."""
        key = generate_key()
        clean_env.setenv("CREDENTIAL_VAULT_KEY_DEFAULT", export_key(key))
        provider = EnvKeyProvider()
        assert await provider.get_key("default") == key
        with pytest.raises(KeyNotFoundError):
            await provider.get_key("v2")
        other = generate_key()
        await provider.put_key("v2", other)
        assert await provider.get_key("v2") == other
