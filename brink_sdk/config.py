"""
Environment configuration for the Brink SDK.

An ``Environment`` describes one network deployment of the protocol: chain
id, deployed contract addresses, the account deployment salt and the account
version. It is passed explicitly to every component that needs it.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from eth_utils import is_address, is_hexstr, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NETWORKS_FILE_ENV = "BRINK_NETWORKS_FILE"


class Deployment(BaseModel):
    """A named contract deployment"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    address: str
    contract: Optional[str] = None

    @field_validator("address")
    @classmethod
    def _checksum_address(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError(f"invalid address: {value}")
        return to_checksum_address(value)


class Environment(BaseModel):
    """
    Protocol environment for one network.

    Attributes:
        chain_id: Chain id the account contracts live on
        deployments: Named contract deployments
        account_deployment_salt: 32-byte hex salt for counterfactual accounts
        account_version: Account version, used as the EIP-712 domain version
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chain_id: int = Field(..., alias="chainId")
    deployments: List[Deployment]
    account_deployment_salt: str = Field(..., alias="accountDeploymentSalt")
    account_version: str = Field("1", alias="accountVersion")

    @field_validator("account_deployment_salt")
    @classmethod
    def _check_salt(cls, value: str) -> str:
        if not (isinstance(value, str) and value.startswith("0x") and is_hexstr(value) and len(value) == 66):
            raise ValueError("accountDeploymentSalt must be a 0x-prefixed 32-byte hex string")
        return value.lower()

    @field_validator("account_version", mode="before")
    @classmethod
    def _version_as_str(cls, value: Any) -> str:
        return str(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Environment":
        """
        Build an environment from a configuration dictionary.

        Raises:
            ConfigurationError: If a required field is missing or invalid
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Environment":
        """Load an environment from a JSON file."""
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read environment file {path}: {e}")
        return cls.from_dict(data)

    def find_deployment(self, name: str) -> Optional[Deployment]:
        for deployment in self.deployments:
            if deployment.name == name:
                return deployment
        return None

    def address_of(self, name: str) -> str:
        """
        Get the address of a named deployment.

        Raises:
            ConfigurationError: If there is no deployment with that name
        """
        deployment = self.find_deployment(name)
        if deployment is None:
            raise ConfigurationError(
                f"No deployment named '{name}' in environment",
                {"chain_id": self.chain_id}
            )
        return deployment.address

    def contract_name_of(self, name: str) -> str:
        """Contract name of a deployment, defaulting to the capitalized deployment name."""
        deployment = self.find_deployment(name)
        if deployment is None:
            raise ConfigurationError(
                f"No deployment named '{name}' in environment",
                {"chain_id": self.chain_id}
            )
        return deployment.contract or name[0].upper() + name[1:]


class NetworkConfig:
    """
    Loader for a JSON file of named environments.

    The file maps network names to environment dictionaries, optionally with
    an ``rpc`` URL::

        {"goerli": {"chainId": 5, "rpc": "https://...", "deployments": [...], ...}}
    """

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls, path: Optional[Union[str, Path]] = None) -> Dict[str, Dict[str, Any]]:
        """
        Load network configurations, caching the result.

        Args:
            path: JSON file path; defaults to the BRINK_NETWORKS_FILE env var

        Raises:
            ConfigurationError: If no file is configured or it cannot be read
        """
        if cls._networks_cache is not None and path is None:
            return cls._networks_cache

        path = path or os.environ.get(NETWORKS_FILE_ENV)
        if not path:
            raise ConfigurationError(
                f"No networks file configured; pass a path or set {NETWORKS_FILE_ENV}"
            )

        try:
            with open(path, "r") as f:
                networks = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load networks file {path}: {e}")

        logger.debug(f"Loaded {len(networks)} networks from {path}")
        cls._networks_cache = networks
        return networks

    @classmethod
    def get_network(cls, network_name: str) -> Dict[str, Any]:
        """
        Get the raw configuration of a named network.

        Raises:
            ValueError: If the network is not configured
        """
        networks = cls.load_networks()
        if network_name not in networks:
            available = ", ".join(sorted(networks.keys()))
            raise ValueError(f"Network '{network_name}' not found. Available networks: {available}")
        return networks[network_name]

    @classmethod
    def get_environment(cls, network_name: str) -> Environment:
        """Get the validated environment of a named network."""
        return Environment.from_dict(cls.get_network(network_name))

    @classmethod
    def get_chain_id(cls, network_name: str) -> int:
        return int(cls.get_network(network_name)["chainId"])

    @classmethod
    def get_rpc_url(cls, network_name: str, override: Optional[str] = None) -> str:
        """
        Get the RPC URL of a network.

        Priority: explicit override, ``<NETWORK>_RPC_URL`` env var, config file.
        """
        if override:
            return override

        env_var = f"{network_name.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url

        network = cls.get_network(network_name)
        if "rpc" not in network:
            raise ConfigurationError(f"Network '{network_name}' has no rpc URL configured")
        return network["rpc"]
