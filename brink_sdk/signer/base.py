"""
Signer protocol.
"""
from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    """Protocol for owner and transaction signers"""
    address: str

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest and return the 65-byte r || s || v signature"""
        ...

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object with ``raw_transaction``"""
        ...
