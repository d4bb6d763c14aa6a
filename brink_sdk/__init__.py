"""
Brink SDK - sign, encode and relay intents for Brink smart accounts.
"""
from .version import __version__
from .client import BrinkSDK
from .account import Account
from .account_signer import AccountSigner, recover_signer
from .address import build_init_code, compute_account_address, create2_address, derive_address
from .bitmap import BitmapState, bitmap_storage_slot, is_used, next_bit, normalize_slot
from .config import Deployment, Environment, NetworkConfig
from .dispatch import DeploymentState, DeploymentTracker, TransactionResolver
from .encoder import MessageEncoder
from .models import (
    BitSlot,
    CallData,
    EncodedMessage,
    Param,
    ParamType,
    SignedMessage,
    SignedParam,
    TransactionInfo,
    TxReceipt,
)
from .numeric import MAX_UINT256
from .operations import OPERATIONS, OperationDescriptor, get_operation
from .signer import LocalSigner, Signer
from .exceptions import (
    BrinkError,
    ConfigurationError,
    InvalidArguments,
    InvalidOperationKind,
    UnsupportedNumericType,
    SigningFailed,
    EstimationFailed,
    AccountNotDeployed,
    AccountAlreadyDeployed,
    TransactionError,
    ProviderError,
)

__all__ = [
    "BrinkSDK",
    "Account",
    "AccountSigner",
    "recover_signer",
    "build_init_code",
    "compute_account_address",
    "create2_address",
    "derive_address",
    "BitmapState",
    "bitmap_storage_slot",
    "normalize_slot",
    "is_used",
    "next_bit",
    "Deployment",
    "Environment",
    "NetworkConfig",
    "DeploymentState",
    "DeploymentTracker",
    "TransactionResolver",
    "MessageEncoder",
    "BitSlot",
    "CallData",
    "EncodedMessage",
    "Param",
    "ParamType",
    "SignedMessage",
    "SignedParam",
    "TransactionInfo",
    "TxReceipt",
    "MAX_UINT256",
    "OPERATIONS",
    "OperationDescriptor",
    "get_operation",
    "LocalSigner",
    "Signer",
    "BrinkError",
    "ConfigurationError",
    "InvalidArguments",
    "InvalidOperationKind",
    "UnsupportedNumericType",
    "SigningFailed",
    "EstimationFailed",
    "AccountNotDeployed",
    "AccountAlreadyDeployed",
    "TransactionError",
    "ProviderError",
    "__version__",
]
