"""
Tests for AccountSigner and EIP-712 typed data.
"""
from unittest.mock import MagicMock

import pytest
from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_checksum_address

from brink_sdk.account_signer import AccountSigner, recover_signer
from brink_sdk.address import compute_account_address
from brink_sdk.exceptions import InvalidArguments, InvalidOperationKind, SigningFailed
from brink_sdk.numeric import MAX_UINT256
from brink_sdk.typed_data import digest, signable_message, typed_data

from test_helpers.environment_factory import (
    TEST_CHAIN_ID,
    TEST_DEPLOYMENTS,
    TEST_OWNER_KEY,
    TEST_RECIPIENT,
    TEST_TOKEN,
    TEST_TOKEN_2,
    make_environment,
)


@pytest.fixture
def account_signer(owner_signer, environment):
    return AccountSigner(owner_signer, environment)


class TestTypedData:
    """EIP-712 hashing agrees with eth_account"""

    def test_digest_matches_manual_hashing(self, owner_signer):
        account = compute_account_address(make_environment(), owner_signer.address)
        data = bytes.fromhex("deadbeef")

        domain_type = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
        domain_hash = keccak(encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [keccak(text=domain_type), keccak(text="BrinkAccount"), keccak(text="1"), TEST_CHAIN_ID, account]
        ))
        struct_hash = keccak(encode(
            ["bytes32", "address", "bytes32"],
            [keccak(text="MetaDelegateCall(address to,bytes data)"), to_checksum_address(TEST_RECIPIENT), keccak(data)]
        ))

        message = signable_message("metaDelegateCall", TEST_RECIPIENT, data, TEST_CHAIN_ID, "1", account)

        assert message.header == domain_hash
        assert message.body == struct_hash
        assert digest(message) == keccak(b"\x19\x01" + domain_hash + struct_hash)

    def test_partial_signed_primary_type(self):
        full = typed_data(
            "metaPartialSignedDelegateCall", TEST_RECIPIENT, b"", 1, "1", TEST_TOKEN
        )
        assert full["primaryType"] == "MetaPartialSignedDelegateCall"
        assert full["domain"]["name"] == "BrinkAccount"
        assert full["domain"]["verifyingContract"] == to_checksum_address(TEST_TOKEN)

    def test_unknown_entry_point(self):
        with pytest.raises(InvalidOperationKind):
            signable_message("delegateCall", TEST_RECIPIENT, b"", 1, "1", TEST_TOKEN)

    def test_domain_binds_chain_and_account(self):
        base = digest(signable_message("metaDelegateCall", TEST_RECIPIENT, b"\x01", 1, "1", TEST_TOKEN))
        other_chain = digest(signable_message("metaDelegateCall", TEST_RECIPIENT, b"\x01", 2, "1", TEST_TOKEN))
        other_account = digest(signable_message("metaDelegateCall", TEST_RECIPIENT, b"\x01", 1, "1", TEST_TOKEN_2))
        other_version = digest(signable_message("metaDelegateCall", TEST_RECIPIENT, b"\x01", 1, "2", TEST_TOKEN))

        assert len({base, other_chain, other_account, other_version}) == 4


class TestSign:
    """Signing intents"""

    def test_signature_matches_eth_account(self, account_signer):
        signed = account_signer.sign_eth_transfer(0, 0, TEST_RECIPIENT, 10 ** 17)

        expected = Account.sign_message(
            encode_typed_data(full_message=signed.typed_data), TEST_OWNER_KEY
        )
        assert signed.signature == "0x" + bytes(expected.signature).hex()
        assert signed.message == "0x" + bytes(expected.message_hash).hex()

    def test_bundle_shape(self, account_signer, owner_signer):
        signed = account_signer.sign_token_transfer(0, 3, TEST_TOKEN, TEST_RECIPIENT, 500)

        assert signed.function_name == "metaDelegateCall"
        assert signed.signer == owner_signer.address
        assert signed.account_address == account_signer.account_address()
        assert signed.chain_id == TEST_CHAIN_ID
        assert signed.to == to_checksum_address(TEST_DEPLOYMENTS["transferVerifier"])
        assert [p.name for p in signed.signed_params] == ["to", "data"]

        call_data = signed.signed_params[1].call_data
        assert call_data.function_name == "tokenTransfer"
        assert [p.value for p in call_data.params][:2] == ["0", "3"]
        assert signed.unsigned_params == []

    def test_recover_signer(self, account_signer, owner_signer):
        signed = account_signer.sign_cancel(0, 9)
        assert recover_signer(signed) == owner_signer.address

    def test_tampered_data_recovers_other_address(self, account_signer, owner_signer):
        signed = account_signer.sign_cancel(0, 9)
        other = account_signer.sign_cancel(0, 10)
        tampered = signed.model_copy(update={"signed_params": other.signed_params})

        assert recover_signer(tampered) != owner_signer.address

    def test_upgrade_targets_proxy_admin_verifier(self, account_signer):
        signed = account_signer.sign_upgrade(TEST_TOKEN)
        assert signed.to == to_checksum_address(TEST_DEPLOYMENTS["proxyAdminVerifier"])
        assert signed.signed_params[1].call_data.function_name == "upgradeTo"

    def test_signing_is_deterministic(self, account_signer):
        first = account_signer.sign_eth_transfer(0, 0, TEST_RECIPIENT, 1)
        second = account_signer.sign_eth_transfer("0", "0", TEST_RECIPIENT, "1")
        assert first == second

    def test_bundle_serializes(self, account_signer):
        signed = account_signer.sign_eth_transfer(0, 0, TEST_RECIPIENT, 1)
        dumped = signed.model_dump()
        assert dumped["signed_params"][1]["call_data"]["function_name"] == "ethTransfer"
        assert signed.model_dump_json()


class TestSwaps:
    """Partial-signed limit swaps"""

    def test_swap_is_partial_signed(self, account_signer):
        signed = account_signer.sign_eth_to_token_swap(0, 1, TEST_TOKEN, 10 ** 18, 3000)

        assert signed.function_name == "metaPartialSignedDelegateCall"
        assert signed.typed_data["primaryType"] == "MetaPartialSignedDelegateCall"
        assert signed.to == to_checksum_address(TEST_DEPLOYMENTS["limitSwapVerifier"])
        assert [(p.name, p.type) for p in signed.unsigned_params] == [("to", "address"), ("data", "bytes")]

    def test_default_expiry_is_max_uint256(self, account_signer):
        signed = account_signer.sign_token_to_eth_swap(0, 1, TEST_TOKEN, 3000, 10 ** 18)
        params = signed.signed_params[1].call_data.params

        assert params[-1].name == "expiryBlock"
        assert params[-1].value == str(MAX_UINT256)


class TestGenericMetaCalls:
    """Signing calls to arbitrary verifiers"""

    CALL = {
        "function_name": "fill",
        "param_types": [{"name": "amount", "type": "uint256"}],
        "params": [5],
    }

    def test_sign_meta_delegate_call(self, account_signer, owner_signer):
        signed = account_signer.sign_meta_delegate_call(TEST_TOKEN, self.CALL)
        assert signed.to == to_checksum_address(TEST_TOKEN)
        assert signed.function_name == "metaDelegateCall"
        assert recover_signer(signed) == owner_signer.address

    def test_sign_meta_partial_signed_delegate_call(self, account_signer, owner_signer):
        signed = account_signer.sign_meta_partial_signed_delegate_call(
            TEST_TOKEN, self.CALL, [{"name": "proof", "type": "bytes"}]
        )
        assert signed.function_name == "metaPartialSignedDelegateCall"
        assert signed.unsigned_params[0].name == "proof"
        assert recover_signer(signed) == owner_signer.address


class TestSignErrors:
    """Failure modes"""

    def test_unknown_kind(self, account_signer):
        with pytest.raises(InvalidOperationKind):
            account_signer.sign("mint", 1)

    @pytest.mark.parametrize("kind", ["delegateCall", "externalCall"])
    def test_owner_calls_are_not_signable(self, account_signer, kind):
        with pytest.raises(InvalidOperationKind):
            account_signer.sign(kind, TEST_RECIPIENT, "0x")

    def test_bit_outside_word_is_not_signed(self, environment):
        signer = MagicMock()
        signer.address = "0x6ede982a4e7feb090c28a357401d8f3a6fcc0829"
        account_signer = AccountSigner(signer, environment)

        with pytest.raises(InvalidArguments):
            account_signer.sign_cancel(0, 256)
        signer.sign_digest.assert_not_called()

    def test_signer_failure_is_wrapped(self, environment, owner_signer):
        failing = MagicMock()
        failing.address = owner_signer.address
        failing.sign_digest.side_effect = RuntimeError("device disconnected")
        account_signer = AccountSigner(failing, environment)

        with pytest.raises(SigningFailed) as exc_info:
            account_signer.sign_eth_transfer(0, 0, TEST_RECIPIENT, 1)

        error = exc_info.value
        assert isinstance(error.__cause__, RuntimeError)
        assert error.context["kind"] == "transferEth"
        assert error.context["chain_id"] == TEST_CHAIN_ID
        assert error.context["account"] == account_signer.account_address()

    def test_missing_signer(self, environment):
        with pytest.raises(ValueError):
            AccountSigner(None, environment)
