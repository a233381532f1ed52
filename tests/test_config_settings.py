import pytest
from pydantic import ValidationError

from evm_gateway.config import Settings


def test_wallet_passphrase_alias(monkeypatch):
    """Keystore passphrase should load from the gateway alias when present."""

    monkeypatch.delenv("WALLET_PASSPHRASE", raising=False)
    monkeypatch.setenv("GATEWAY_PASSPHRASE", "alias-passphrase")

    settings = Settings()

    assert settings.wallet_passphrase == "alias-passphrase"


def test_wallet_passphrase_from_file(monkeypatch, tmp_path):
    """A mounted secrets file is used when no passphrase is set directly."""

    monkeypatch.delenv("WALLET_PASSPHRASE", raising=False)
    monkeypatch.delenv("GATEWAY_PASSPHRASE", raising=False)
    secret = tmp_path / "passphrase"
    secret.write_text("from-file\n")
    monkeypatch.setenv("WALLET_PASSPHRASE_FILE", str(secret))

    settings = Settings()

    assert settings.wallet_passphrase == "from-file"


def test_direct_passphrase_wins_over_file(monkeypatch, tmp_path):
    secret = tmp_path / "passphrase"
    secret.write_text("from-file")
    monkeypatch.setenv("WALLET_PASSPHRASE", "direct")
    monkeypatch.setenv("WALLET_PASSPHRASE_FILE", str(secret))

    settings = Settings()

    assert settings.wallet_passphrase == "direct"


def test_fee_cache_ttl_bounds(monkeypatch):
    monkeypatch.setenv("FEE_CACHE_TTL_SECONDS", "0.5")

    with pytest.raises(ValidationError):
        Settings()


def test_config_directories(monkeypatch, tmp_path):
    monkeypatch.setenv("CONF_DIR", str(tmp_path))

    settings = Settings()

    assert settings.networks_dir == tmp_path / "networks"
    assert settings.tokens_dir == tmp_path / "tokens"
    assert settings.has_external_signer is False
