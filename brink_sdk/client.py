"""
BrinkSDK - entry point for the Brink SDK.
"""
import logging
from typing import Any, Dict, Optional, Tuple, Union

from web3 import Web3

from .account import Account
from .account_signer import AccountSigner
from .address import compute_account_address
from .config import Environment, NetworkConfig
from .exceptions import ConfigurationError
from .signer import Signer

EnvironmentLike = Union[Environment, Dict[str, Any], str]


class BrinkSDK:
    """
    SDK bound to one protocol environment.

    Args:
        environment: An ``Environment``, an environment dictionary, or the
            name of a network in the networks file (see ``NetworkConfig``)
        logger: Optional logger instance

    Example::

        sdk = BrinkSDK("goerli")
        signer = sdk.account_signer(LocalSigner(private_key))
        signed = signer.sign_eth_transfer(0, 0, recipient, 10 ** 17)
        sdk.account(signer.signer_address(), w3, relayer).transfer_eth(signed)
    """

    def __init__(self, environment: EnvironmentLike, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.environment = self._load_environment(environment)
        self._account_addresses: Dict[str, str] = {}
        self.logger.debug(
            f"BrinkSDK initialized for chain {self.environment.chain_id} "
            f"with {len(self.environment.deployments)} deployments"
        )

    @staticmethod
    def _load_environment(environment: EnvironmentLike) -> Environment:
        if isinstance(environment, Environment):
            return environment
        if isinstance(environment, dict):
            return Environment.from_dict(environment)
        if isinstance(environment, str):
            return NetworkConfig.get_environment(environment)
        raise ConfigurationError(
            f"environment must be an Environment, dict or network name, got {type(environment).__name__}"
        )

    def account(
        self,
        owner_address: str,
        w3: Web3,
        signer: Optional[Signer] = None
    ) -> Account:
        """
        Get the account facade of an owner.

        Args:
            owner_address: Account owner
            w3: Web3 instance for the environment's chain
            signer: Optional transaction signer (owner or relayer)
        """
        return Account(owner_address, self.environment, w3, signer=signer, logger=self.logger)

    def account_signer(self, owner_signer: Signer) -> AccountSigner:
        """Get an intent signer for an owner key."""
        return AccountSigner(owner_signer, self.environment, logger=self.logger)

    def compute_account_address(self, owner_address: str) -> str:
        """Counterfactual account address of an owner (cached per owner)."""
        key = owner_address.lower()
        if key not in self._account_addresses:
            self._account_addresses[key] = compute_account_address(self.environment, owner_address)
        return self._account_addresses[key]

    def new_account(
        self,
        owner_address: str,
        owner_signer: Signer,
        w3: Web3
    ) -> Tuple[Account, AccountSigner]:
        """
        Get both halves of an owner's account: the provider facade and the
        intent signer. The owner signer also signs the account's transactions.
        """
        if owner_signer.address.lower() != owner_address.lower():
            raise ValueError(
                f"Signer address {owner_signer.address} does not match owner {owner_address}"
            )
        return (
            self.account(owner_address, w3, signer=owner_signer),
            self.account_signer(owner_signer),
        )
