"""
Provider settings from the environment.

Values are read from an optional .env file (python-dotenv) and the process
environment:

- SIGNER_PROVIDER_RPC: upstream JSON-RPC endpoint
- SIGNER_PROVIDER_TIMEOUT: transport timeout in seconds (0 disables it)
- SIGNER_PROVIDER_NONCE_TAG: ``pending`` or ``latest``
- CHAIN_ID: chain id stamped on locally signed transactions
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .pipeline import NONCE_TAGS
from .transport.http import DEFAULT_TIMEOUT

DEFAULT_RPC_URL = "http://localhost:8545"


@dataclass(frozen=True)
class ProviderSettings:
    rpc_url: str = DEFAULT_RPC_URL
    timeout: float = DEFAULT_TIMEOUT
    nonce_tag: str = "pending"
    chain_id: Optional[int] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "ProviderSettings":
        """
        Load settings from ``env_path`` (if it exists) and the environment.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        if env_path is not None and env_path.exists():
            load_dotenv(env_path, override=False)

        rpc_url = os.environ.get("SIGNER_PROVIDER_RPC", DEFAULT_RPC_URL)

        raw_timeout = os.environ.get("SIGNER_PROVIDER_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ConfigurationError(f"Invalid SIGNER_PROVIDER_TIMEOUT: {raw_timeout!r}") from exc
        if timeout < 0:
            raise ConfigurationError(f"SIGNER_PROVIDER_TIMEOUT must not be negative, got {timeout}")

        nonce_tag = os.environ.get("SIGNER_PROVIDER_NONCE_TAG", "pending").strip().lower()
        if nonce_tag not in NONCE_TAGS:
            raise ConfigurationError(
                f"SIGNER_PROVIDER_NONCE_TAG must be one of {NONCE_TAGS}, got {nonce_tag!r}"
            )

        raw_chain_id = os.environ.get("CHAIN_ID")
        try:
            chain_id = int(raw_chain_id, 0) if raw_chain_id else None
        except ValueError as exc:
            raise ConfigurationError(f"Invalid CHAIN_ID: {raw_chain_id!r}") from exc

        return cls(rpc_url=rpc_url, timeout=timeout, nonce_tag=nonce_tag, chain_id=chain_id)
