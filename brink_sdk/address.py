"""
Counterfactual account addresses.

Accounts are minimal proxies deployed through a CREATE2 singleton factory, so
their address is known before deployment. The proxy is an EIP-1167 clone of
the account implementation with the owner address appended to its runtime
code at a fixed offset.
"""
import logging
from dataclasses import dataclass
from typing import Union

from eth_abi import encode
from eth_utils import is_address, keccak, to_bytes, to_canonical_address, to_checksum_address

from .config import Environment
from .exceptions import InvalidArguments

logger = logging.getLogger(__name__)

# Creation code: copy 0x41 bytes of runtime (45 byte clone + 20 byte owner) and return it
PROXY_CREATION_PREFIX = bytes.fromhex("3d604180600a3d3981f3")
PROXY_RUNTIME_PREFIX = bytes.fromhex("363d3d373d3d3d363d73")
PROXY_RUNTIME_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

# Offset of the owner address within the deployed runtime code
PROXY_OWNER_OFFSET = len(PROXY_RUNTIME_PREFIX) + 20 + len(PROXY_RUNTIME_SUFFIX)

BytesLike = Union[bytes, str]


def _address_bytes(address: str, label: str) -> bytes:
    if not isinstance(address, (str, bytes)) or not is_address(address):
        raise InvalidArguments(f"Invalid {label} address: {address!r}")
    return to_canonical_address(address)


def _salt_bytes(salt: BytesLike) -> bytes:
    try:
        data = salt if isinstance(salt, bytes) else to_bytes(hexstr=salt)
    except (TypeError, ValueError):
        raise InvalidArguments(f"Invalid salt: {salt!r}")
    if len(data) != 32:
        raise InvalidArguments(f"Salt must be 32 bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class ProxyTemplate:
    """Proxy init-code template for one account implementation"""
    implementation: str

    def build(self, owner_address: str) -> bytes:
        """
        Build the proxy deployment bytecode for an owner.

        Args:
            owner_address: Account owner, hardcoded at PROXY_OWNER_OFFSET

        Returns:
            Init code bytes
        """
        implementation = _address_bytes(self.implementation, "implementation")
        owner = _address_bytes(owner_address, "owner")
        return (
            PROXY_CREATION_PREFIX
            + PROXY_RUNTIME_PREFIX
            + implementation
            + PROXY_RUNTIME_SUFFIX
            + owner
        )


def build_init_code(implementation_address: str, owner_address: str) -> bytes:
    """Build proxy init code for an implementation and owner."""
    return ProxyTemplate(implementation_address).build(owner_address)


def account_salt(salt: BytesLike, chain_id: int, owner_address: str) -> bytes:
    """
    Derive the CREATE2 salt actually used for an account deployment.

    The configured salt is combined with the chain id and owner so the same
    owner and salt never collide across networks:
    ``keccak256(abi.encode(bytes32 salt, uint256 chainId, address owner))``.
    """
    if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 0:
        raise InvalidArguments(f"Invalid chain id: {chain_id!r}")
    return keccak(encode(
        ["bytes32", "uint256", "address"],
        [_salt_bytes(salt), chain_id, to_checksum_address(_address_bytes(owner_address, "owner"))]
    ))


def create2_address(deployer_address: str, salt: BytesLike, init_code: BytesLike) -> str:
    """
    EIP-1014 address: last 20 bytes of
    ``keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code))``.
    """
    code = init_code if isinstance(init_code, bytes) else to_bytes(hexstr=init_code)
    digest = keccak(
        b"\xff"
        + _address_bytes(deployer_address, "deployer")
        + _salt_bytes(salt)
        + keccak(code)
    )
    return to_checksum_address(digest[12:])


def derive_address(
    factory_address: str,
    implementation_address: str,
    owner_address: str,
    chain_id: int,
    salt: BytesLike
) -> str:
    """
    Compute the counterfactual account address of an owner.

    Pure and deterministic: identical inputs always give the address the
    factory deploys to.

    Args:
        factory_address: CREATE2 singleton factory
        implementation_address: Account implementation the proxy forwards to
        owner_address: Account owner
        chain_id: Chain id the account lives on
        salt: Configured 32-byte account deployment salt

    Returns:
        Checksummed account address
    """
    init_code = build_init_code(implementation_address, owner_address)
    return create2_address(factory_address, account_salt(salt, chain_id, owner_address), init_code)


def compute_account_address(environment: Environment, owner_address: str) -> str:
    """
    Compute the account address of an owner in an environment.

    Raises:
        ConfigurationError: If the singletonFactory or account deployment is missing
    """
    address = derive_address(
        environment.address_of("singletonFactory"),
        environment.address_of("account"),
        owner_address,
        environment.chain_id,
        environment.account_deployment_salt,
    )
    logger.debug(f"Account address for owner {owner_address[:8]}… on chain {environment.chain_id}: {address}")
    return address
