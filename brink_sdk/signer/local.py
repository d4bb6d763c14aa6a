"""
Private-key signer backed by eth_account.
"""
import logging
from typing import Any, Dict

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Signer holding a private key in memory.

    Args:
        private_key: Hex private key, with or without 0x prefix
    """

    def __init__(self, private_key: str):
        if not private_key:
            raise ValueError("private_key must be provided")
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        self._account: LocalAccount = Account.from_key(private_key)
        self.address = self._account.address

    def sign_digest(self, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
        signed = self._account.unsafe_sign_hash(digest)
        return bytes(signed.signature)

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        return self._account.sign_transaction(transaction_dict)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"
