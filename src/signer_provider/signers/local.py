"""
Local-key signing backend built on eth-account.

Turns an eth-account LocalAccount into a CapabilitySet:
- eth_accounts returns the account address
- eth_sendTransaction payloads are signed locally
- eth_sign / personal_sign use EIP-191
- eth_signTypedData_v3 uses EIP-712

The key is read from PRIVATE_KEY (environment or .env file). Nothing is
written to disk here.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..capabilities import CapabilitySet


# Default config directory
SIGNER_PROVIDER_DIR = Path.home() / ".signer-provider"
SIGNER_PROVIDER_ENV = SIGNER_PROVIDER_DIR / ".env"


def load_account(env_path: Optional[Path] = None) -> LocalAccount:
    """
    Build the signing account from PRIVATE_KEY.

    A value in ``env_path`` overrides the process environment. The ``0x``
    prefix is optional.

    Raises:
        ValueError: If PRIVATE_KEY is unset or not a secp256k1 key
    """
    env_path = env_path or SIGNER_PROVIDER_ENV
    if env_path.exists():
        load_dotenv(env_path, override=True)

    key = os.environ.get("PRIVATE_KEY", "").strip()
    if not key:
        raise ValueError(f"PRIVATE_KEY not found in the environment or in {env_path}")
    if not key.startswith("0x"):
        key = "0x" + key
    try:
        return Account.from_key(key)
    except Exception as exc:
        raise ValueError(f"PRIVATE_KEY is not a valid secp256k1 key: {exc}") from exc


def _same_address(a: Any, b: Any) -> bool:
    return isinstance(a, str) and isinstance(b, str) and a.lower() == b.lower()


def _to_hex(data: Any) -> str:
    return "0x" + bytes(data).hex()


class _LocalSigner:
    def __init__(self, account: LocalAccount, chain_id: Optional[int] = None) -> None:
        self.account = account
        self.chain_id = chain_id

    def _check_address(self, address: Any) -> None:
        if not _same_address(address, self.account.address):
            raise ValueError(f"Address {address} is not managed by this signer ({self.account.address})")

    def accounts(self) -> list[str]:
        return [self.account.address]

    def sign_transaction(self, tx: dict[str, Any]) -> str:
        """Sign a provider-merged transaction and return the raw hex payload."""
        tx = {k: v for k, v in tx.items() if v is not None}
        sender = tx.pop("from", None)
        if sender is not None:
            self._check_address(sender)

        # eth-account names the gas limit "gas"
        gas_limit = tx.pop("gasLimit", None)
        if "gas" not in tx and gas_limit is not None:
            tx["gas"] = gas_limit
        if "input" in tx and "data" not in tx:
            tx["data"] = tx.pop("input")
        if tx.get("to"):
            tx["to"] = to_checksum_address(tx["to"])
        if self.chain_id is not None and "chainId" not in tx:
            tx["chainId"] = self.chain_id

        signed = self.account.sign_transaction(tx)
        return _to_hex(signed.raw_transaction)

    def sign_message(self, address: str, message: str) -> str:
        """eth_sign: sign hex-encoded data with the EIP-191 prefix."""
        self._check_address(address)
        if isinstance(message, str) and message.startswith("0x"):
            signable = encode_defunct(hexstr=message)
        else:
            signable = encode_defunct(text=message)
        return _to_hex(self.account.sign_message(signable).signature)

    def sign_personal_message(self, first: str, second: str) -> str:
        """personal_sign: accepts ``(address, message)`` or ``(message, address)``."""
        if _same_address(first, self.account.address):
            address, message = first, second
        else:
            address, message = second, first
        return self.sign_message(address, message)

    def sign_typed_data_v3(self, address: str, data: Any) -> str:
        self._check_address(address)
        if isinstance(data, str):
            data = json.loads(data)
        signed = self.account.sign_typed_data(full_message=data)
        return _to_hex(signed.signature)


def local_capabilities(
    account: LocalAccount,
    chain_id: Optional[int] = None,
    **overrides: Any,
) -> CapabilitySet:
    """
    Build a CapabilitySet that signs with a local account.

    Args:
        account: eth-account LocalAccount holding the key
        chain_id: Stamped on transactions that carry no chainId
        overrides: Extra capabilities (e.g. ``gas_price``,
            ``get_transaction_count``) or replacements for the defaults

    Returns:
        CapabilitySet for SignerProvider
    """
    signer = _LocalSigner(account, chain_id=chain_id)
    options: dict[str, Any] = {
        "accounts": signer.accounts,
        "sign_transaction": signer.sign_transaction,
        "sign_message": signer.sign_message,
        "sign_personal_message": signer.sign_personal_message,
        "sign_typed_data_v3": signer.sign_typed_data_v3,
    }
    options.update(overrides)
    return CapabilitySet.from_options(options)
