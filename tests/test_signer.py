"""
Tests for signer implementations.
"""
import pytest
from eth_account import Account
from eth_utils import keccak

from brink_sdk.signer import LocalSigner, Signer

from test_helpers.environment_factory import TEST_OWNER_KEY


def test_local_signer_address():
    assert LocalSigner(TEST_OWNER_KEY).address == Account.from_key(TEST_OWNER_KEY).address


def test_local_signer_accepts_unprefixed_key():
    assert LocalSigner(TEST_OWNER_KEY[2:]).address == LocalSigner(TEST_OWNER_KEY).address


def test_local_signer_is_a_signer():
    assert isinstance(LocalSigner(TEST_OWNER_KEY), Signer)


def test_sign_digest_recovers():
    signer = LocalSigner(TEST_OWNER_KEY)
    digest = keccak(text="brink")
    signature = signer.sign_digest(digest)

    assert len(signature) == 65
    assert Account._recover_hash(digest, signature=signature) == signer.address


def test_sign_digest_rejects_wrong_length():
    with pytest.raises(ValueError):
        LocalSigner(TEST_OWNER_KEY).sign_digest(b"\x00" * 31)


def test_sign_transaction():
    signer = LocalSigner(TEST_OWNER_KEY)
    signed = signer.sign_transaction({
        "to": "0x3333333333333333333333333333333333333333",
        "value": 0,
        "gas": 21000,
        "gasPrice": 1000000000,
        "nonce": 0,
        "chainId": 5,
    })
    assert Account.recover_transaction(signed.raw_transaction) == signer.address


def test_missing_key():
    with pytest.raises(ValueError):
        LocalSigner("")


def test_repr_hides_key():
    assert TEST_OWNER_KEY[2:] not in repr(LocalSigner(TEST_OWNER_KEY))


def test_signer_protocol_is_exported_from_base():
    from brink_sdk.signer.base import Signer as BaseSigner
    assert BaseSigner is Signer
