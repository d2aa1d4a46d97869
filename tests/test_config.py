from __future__ import annotations

from pathlib import Path

import pytest

from signer_provider.config import DEFAULT_RPC_URL, ProviderSettings
from signer_provider.errors import ConfigurationError
from signer_provider.transport.http import DEFAULT_TIMEOUT

_VARS = ("SIGNER_PROVIDER_RPC", "SIGNER_PROVIDER_TIMEOUT", "SIGNER_PROVIDER_NONCE_TAG", "CHAIN_ID")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults() -> None:
    settings = ProviderSettings.from_env()
    assert settings == ProviderSettings(DEFAULT_RPC_URL, DEFAULT_TIMEOUT, "pending", None)


def test_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SIGNER_PROVIDER_RPC", "https://rpc.example")
    monkeypatch.setenv("SIGNER_PROVIDER_TIMEOUT", "2.5")
    monkeypatch.setenv("SIGNER_PROVIDER_NONCE_TAG", "LATEST")
    monkeypatch.setenv("CHAIN_ID", "0x14a34")

    settings = ProviderSettings.from_env()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.timeout == 2.5
    assert settings.nonce_tag == "latest"
    assert settings.chain_id == 84532


def test_env_file_does_not_override_environment(tmp_path: Path, monkeypatch) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text("SIGNER_PROVIDER_RPC=https://from-file\nCHAIN_ID=5\n", encoding="utf-8")
    monkeypatch.setenv("SIGNER_PROVIDER_RPC", "https://from-env")

    settings = ProviderSettings.from_env(env_path)

    assert settings.rpc_url == "https://from-env"
    assert settings.chain_id == 5


@pytest.mark.parametrize(
    "name, value",
    [
        ("SIGNER_PROVIDER_TIMEOUT", "soon"),
        ("SIGNER_PROVIDER_TIMEOUT", "-1"),
        ("SIGNER_PROVIDER_NONCE_TAG", "earliest"),
        ("CHAIN_ID", "mainnet"),
    ],
)
def test_invalid_values(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match=name):
        ProviderSettings.from_env()
