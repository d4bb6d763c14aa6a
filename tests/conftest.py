"""
Pytest fixtures for the Brink SDK tests.
"""
from unittest.mock import MagicMock

import pytest
from web3 import Web3

from brink_sdk.config import NetworkConfig
from brink_sdk.signer import LocalSigner

from test_helpers.environment_factory import (
    TEST_OWNER_KEY,
    TEST_RELAYER_KEY,
    make_environment,
)

EMPTY_WORD = bytes(32)


@pytest.fixture(autouse=True)
def _reset_network_cache():
    """Never let a cached networks file leak between tests."""
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def environment():
    return make_environment()


@pytest.fixture
def owner_signer():
    return LocalSigner(TEST_OWNER_KEY)


@pytest.fixture
def relayer_signer():
    return LocalSigner(TEST_RELAYER_KEY)


@pytest.fixture
def chain_state():
    """
    Mutable on-chain state behind ``mock_w3``.

    ``code`` maps address (lowercase) to runtime code and ``storage`` maps
    (address, slot) to 32-byte words.
    """
    return {"code": {}, "storage": {}, "balances": {}}


@pytest.fixture
def mock_w3(chain_state):
    """Create a mock Web3 instance backed by ``chain_state``"""
    mock = MagicMock(spec=Web3)
    eth = MagicMock()
    eth.chain_id = 5
    eth.gas_price = 1000000000  # 1 gwei
    eth.get_transaction_count = MagicMock(return_value=7)

    def get_code(address):
        return chain_state["code"].get(address.lower(), b"")

    def get_storage_at(address, position):
        return chain_state["storage"].get((address.lower(), position), EMPTY_WORD)

    def get_balance(address):
        return chain_state["balances"].get(address.lower(), 0)

    def estimate_gas(tx):
        # Base gas + calldata size factor
        return 21000 + (len(tx.get("data", "")) // 2) * 16

    def send_raw_transaction(raw_tx):
        return Web3.keccak(raw_tx)

    def wait_for_receipt(tx_hash, **kwargs):
        return {
            "transactionHash": tx_hash,
            "blockNumber": 12345,
            "blockHash": bytes.fromhex("abcdef1234567890" * 4),
            "status": 1,
            "gasUsed": 85000,
            "from": "0x1234567890123456789012345678901234567890",
            "to": "0x2222222222222222222222222222222222222222",
            "logs": [],
        }

    eth.get_code = MagicMock(side_effect=get_code)
    eth.get_storage_at = MagicMock(side_effect=get_storage_at)
    eth.get_balance = MagicMock(side_effect=get_balance)
    eth.estimate_gas = MagicMock(side_effect=estimate_gas)
    eth.send_raw_transaction = MagicMock(side_effect=send_raw_transaction)
    eth.wait_for_transaction_receipt = MagicMock(side_effect=wait_for_receipt)

    mock.eth = eth
    return mock
