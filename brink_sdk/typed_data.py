"""
EIP-712 typed data for account meta calls.

The signed struct is ``MetaDelegateCall(address to,bytes data)`` (or the
partial-signed variant) in the domain of one account on one chain, so a
signature only ever verifies for that account, chain and verifier.
"""
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak, to_checksum_address

from .exceptions import InvalidOperationKind
from .operations import META_DELEGATE_CALL, META_PARTIAL_SIGNED_DELEGATE_CALL

DOMAIN_NAME = "BrinkAccount"

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

META_CALL_FIELDS = [
    {"name": "to", "type": "address"},
    {"name": "data", "type": "bytes"},
]

# Account entry point -> EIP-712 primary type
PRIMARY_TYPES = {
    META_DELEGATE_CALL: "MetaDelegateCall",
    META_PARTIAL_SIGNED_DELEGATE_CALL: "MetaPartialSignedDelegateCall",
}


def primary_type_for(entry_point: str) -> str:
    try:
        return PRIMARY_TYPES[entry_point]
    except KeyError:
        raise InvalidOperationKind(f"No typed data defined for {entry_point!r}")


def signable_message(
    entry_point: str,
    to: str,
    data: bytes,
    chain_id: int,
    version: str,
    account_address: str
) -> SignableMessage:
    """EIP-712 message as an eth_account ``SignableMessage`` (version 0x01)."""
    return encode_typed_data(
        full_message=typed_data(entry_point, to, data, chain_id, version, account_address)
    )


def digest(message: SignableMessage) -> bytes:
    """Final hash signed by the owner: ``keccak256(0x19 ++ version ++ header ++ body)``."""
    return keccak(b"\x19" + message.version + message.header + message.body)


def typed_data(
    entry_point: str,
    to: str,
    data: bytes,
    chain_id: int,
    version: str,
    account_address: str
) -> Dict[str, Any]:
    """Full typed-data structure, as accepted by ``eth_signTypedData_v4`` wallets."""
    primary_type = primary_type_for(entry_point)
    return {
        "types": {
            "EIP712Domain": [dict(f) for f in EIP712_DOMAIN_FIELDS],
            primary_type: [dict(f) for f in META_CALL_FIELDS],
        },
        "primaryType": primary_type,
        "domain": {
            "name": DOMAIN_NAME,
            "version": version,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(account_address),
        },
        "message": {
            "to": to_checksum_address(to),
            "data": "0x" + data.hex(),
        },
    }


def recover(message: SignableMessage, signature: bytes) -> str:
    """Recover the address that signed a message."""
    return Account.recover_message(message, signature=signature)

