"""
Tests for environment configuration and the NetworkConfig loader.
"""
import json
from unittest.mock import mock_open, patch

import pytest
from eth_utils import to_checksum_address

from brink_sdk.config import Environment, NetworkConfig
from brink_sdk.exceptions import ConfigurationError

from test_helpers.environment_factory import TEST_DEPLOYMENTS, TEST_SALT, environment_dict

MOCK_NETWORKS = {
    "test-network": {**environment_dict(chain_id=123), "rpc": "https://test.example.com"},
    "no-rpc": environment_dict(chain_id=456),
}


class TestEnvironment:
    """Environment model"""

    def test_from_dict_camel_case(self):
        environment = Environment.from_dict(environment_dict())

        assert environment.chain_id == 5
        assert environment.account_deployment_salt == TEST_SALT
        assert environment.account_version == "1"
        assert len(environment.deployments) == len(TEST_DEPLOYMENTS)

    def test_from_dict_snake_case(self):
        environment = Environment.from_dict({
            "chain_id": 1,
            "deployments": [],
            "account_deployment_salt": TEST_SALT.upper().replace("0X", "0x"),
            "account_version": 2,
        })
        assert environment.account_deployment_salt == TEST_SALT
        assert environment.account_version == "2"

    def test_addresses_are_checksummed(self):
        environment = Environment.from_dict(environment_dict())
        assert environment.address_of("transferVerifier") == "0x3333333333333333333333333333333333333333"
        assert environment.address_of("singletonFactory") == to_checksum_address(TEST_DEPLOYMENTS["singletonFactory"])

    def test_missing_deployment(self):
        environment = Environment.from_dict(environment_dict())
        with pytest.raises(ConfigurationError) as exc_info:
            environment.address_of("flashLoanVerifier")
        assert exc_info.value.context["chain_id"] == 5

    def test_contract_name(self):
        data = environment_dict()
        data["deployments"].append({
            "name": "bundler", "contract": "DeployAndExecute", "address": TEST_DEPLOYMENTS["account"]
        })
        environment = Environment.from_dict(data)

        assert environment.contract_name_of("bundler") == "DeployAndExecute"
        assert environment.contract_name_of("singletonFactory") == "SingletonFactory"

    @pytest.mark.parametrize("overrides", [
        {"accountDeploymentSalt": "0x1234"},
        {"accountDeploymentSalt": None},
        {"chainId": "mainnet"},
        {"deployments": [{"name": "account", "address": "0xnope"}]},
    ])
    def test_invalid_configuration(self, overrides):
        with pytest.raises(ConfigurationError):
            Environment.from_dict({**environment_dict(), **overrides})

    def test_frozen(self):
        environment = Environment.from_dict(environment_dict())
        with pytest.raises(Exception):
            environment.chain_id = 1

    def test_from_file(self, tmp_path):
        path = tmp_path / "environment.json"
        path.write_text(json.dumps(environment_dict()))
        assert Environment.from_file(path) == Environment.from_dict(environment_dict())

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Environment.from_file(tmp_path / "missing.json")


class TestNetworkConfig:
    """NetworkConfig loader"""

    def test_load_networks_cached(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with patch("builtins.open") as mocked:
            result = NetworkConfig.load_networks()
            mocked.assert_not_called()

        assert result == MOCK_NETWORKS

    def test_load_networks_from_env(self, monkeypatch):
        monkeypatch.setenv("BRINK_NETWORKS_FILE", "/etc/brink/networks.json")
        with patch("builtins.open", mock_open(read_data=json.dumps(MOCK_NETWORKS))) as mocked:
            result = NetworkConfig.load_networks()

        mocked.assert_called_once_with("/etc/brink/networks.json", "r")
        assert result == MOCK_NETWORKS
        assert NetworkConfig._networks_cache == MOCK_NETWORKS

    def test_load_networks_without_file(self, monkeypatch):
        monkeypatch.delenv("BRINK_NETWORKS_FILE", raising=False)
        with pytest.raises(ConfigurationError):
            NetworkConfig.load_networks()

    def test_load_networks_invalid_json(self, tmp_path):
        path = tmp_path / "networks.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            NetworkConfig.load_networks(path)

    def test_get_network(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_network("test-network")["chainId"] == 123

    def test_get_network_not_found(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("non-existent-network")
        assert "test-network" in str(exc_info.value)

    def test_get_environment(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        environment = NetworkConfig.get_environment("test-network")
        assert environment.chain_id == 123

    def test_get_chain_id(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_chain_id("no-rpc") == 456

    def test_get_rpc_url_default(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network") == "https://test.example.com"

    def test_get_rpc_url_env_override(self, monkeypatch):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        monkeypatch.setenv("TEST_NETWORK_RPC_URL", "https://env.example.com")
        assert NetworkConfig.get_rpc_url("test-network") == "https://env.example.com"

    def test_get_rpc_url_explicit_override(self, monkeypatch):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        monkeypatch.setenv("TEST_NETWORK_RPC_URL", "https://env.example.com")
        assert NetworkConfig.get_rpc_url("test-network", "https://mine.example.com") == "https://mine.example.com"

    def test_get_rpc_url_missing(self, monkeypatch):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        monkeypatch.delenv("NO_RPC_RPC_URL", raising=False)
        with pytest.raises(ConfigurationError):
            NetworkConfig.get_rpc_url("no-rpc")
