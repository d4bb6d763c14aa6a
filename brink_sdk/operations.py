"""
Operation descriptors.

Each supported intent kind is described once: the verifier function it calls,
the ordered parameters bound by the owner's signature, the parameters a
relayer appends later, the verifier deployment it targets and the account
entry point it is relayed through. The account's own entry points are
described the same way so their calldata comes from the same encoder.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .exceptions import InvalidOperationKind
from .numeric import MAX_UINT256

META_DELEGATE_CALL = "metaDelegateCall"
META_PARTIAL_SIGNED_DELEGATE_CALL = "metaPartialSignedDelegateCall"
DELEGATE_CALL = "delegateCall"
EXTERNAL_CALL = "externalCall"

SWAP_UNSIGNED_PARAMS = (("to", "address"), ("data", "bytes"))


@dataclass(frozen=True)
class OperationDescriptor:
    """
    Immutable definition of one operation kind.

    Attributes:
        kind: Operation kind identifier
        function_name: Function encoded into the call data
        signed_params: Ordered (name, type) pairs bound by the signature
        unsigned_params: Ordered (name, type) pairs supplied at relay time
        verifier: Deployment name of the verifier contract, if any
        entry_point: Account function the signed message is relayed through
        defaults: Values substituted when an argument is omitted
    """
    kind: str
    function_name: str
    signed_params: Tuple[Tuple[str, str], ...]
    unsigned_params: Tuple[Tuple[str, str], ...] = ()
    verifier: Optional[str] = None
    entry_point: Optional[str] = None
    defaults: Tuple[Tuple[str, int], ...] = ()

    @property
    def is_partial_signed(self) -> bool:
        return bool(self.unsigned_params)

    @property
    def is_signable(self) -> bool:
        return self.verifier is not None

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.signed_params)

    @property
    def signed_types(self) -> Tuple[str, ...]:
        return tuple(t for _, t in self.signed_params)

    @property
    def all_types(self) -> Tuple[str, ...]:
        """Types of the full verifier signature, signed then unsigned."""
        return self.signed_types + tuple(t for _, t in self.unsigned_params)


# Swap expiry defaults to "never expires"
_MAX_EXPIRY = (("expiryBlock", MAX_UINT256),)

OPERATIONS: Dict[str, OperationDescriptor] = {
    op.kind: op for op in (
        OperationDescriptor(
            kind="transferEth",
            function_name="ethTransfer",
            signed_params=(
                ("bitmapIndex", "uint256"),
                ("bit", "uint256"),
                ("recipient", "address"),
                ("amount", "uint256"),
            ),
            verifier="transferVerifier",
            entry_point=META_DELEGATE_CALL,
        ),
        OperationDescriptor(
            kind="transferToken",
            function_name="tokenTransfer",
            signed_params=(
                ("bitmapIndex", "uint256"),
                ("bit", "uint256"),
                ("token", "address"),
                ("recipient", "address"),
                ("amount", "uint256"),
            ),
            verifier="transferVerifier",
            entry_point=META_DELEGATE_CALL,
        ),
        OperationDescriptor(
            kind="ethToTokenSwap",
            function_name="ethToToken",
            signed_params=(
                ("bitmapIndex", "uint256"),
                ("bit", "uint256"),
                ("token", "address"),
                ("ethAmount", "uint256"),
                ("tokenAmount", "uint256"),
                ("expiryBlock", "uint256"),
            ),
            unsigned_params=SWAP_UNSIGNED_PARAMS,
            verifier="limitSwapVerifier",
            entry_point=META_PARTIAL_SIGNED_DELEGATE_CALL,
            defaults=_MAX_EXPIRY,
        ),
        OperationDescriptor(
            kind="tokenToEthSwap",
            function_name="tokenToEth",
            signed_params=(
                ("bitmapIndex", "uint256"),
                ("bit", "uint256"),
                ("token", "address"),
                ("tokenAmount", "uint256"),
                ("ethAmount", "uint256"),
                ("expiryBlock", "uint256"),
            ),
            unsigned_params=SWAP_UNSIGNED_PARAMS,
            verifier="limitSwapVerifier",
            entry_point=META_PARTIAL_SIGNED_DELEGATE_CALL,
            defaults=_MAX_EXPIRY,
        ),
        OperationDescriptor(
            kind="tokenToTokenSwap",
            function_name="tokenToToken",
            signed_params=(
                ("bitmapIndex", "uint256"),
                ("bit", "uint256"),
                ("tokenIn", "address"),
                ("tokenOut", "address"),
                ("tokenInAmount", "uint256"),
                ("tokenOutAmount", "uint256"),
                ("expiryBlock", "uint256"),
            ),
            unsigned_params=SWAP_UNSIGNED_PARAMS,
            verifier="limitSwapVerifier",
            entry_point=META_PARTIAL_SIGNED_DELEGATE_CALL,
            defaults=_MAX_EXPIRY,
        ),
        OperationDescriptor(
            kind="upgrade",
            function_name="upgradeTo",
            signed_params=(("implementation", "address"),),
            verifier="proxyAdminVerifier",
            entry_point=META_DELEGATE_CALL,
        ),
        OperationDescriptor(
            kind="cancel",
            function_name="cancel",
            signed_params=(("bitmapIndex", "uint256"), ("bit", "uint256")),
            verifier="cancelVerifier",
            entry_point=META_DELEGATE_CALL,
        ),
        # Account entry points; their parameters match ACCOUNT_ABI
        OperationDescriptor(
            kind=DELEGATE_CALL,
            function_name=DELEGATE_CALL,
            signed_params=(("to", "address"), ("data", "bytes")),
        ),
        OperationDescriptor(
            kind=EXTERNAL_CALL,
            function_name=EXTERNAL_CALL,
            signed_params=(("value", "uint256"), ("to", "address"), ("data", "bytes")),
        ),
        OperationDescriptor(
            kind=META_DELEGATE_CALL,
            function_name=META_DELEGATE_CALL,
            signed_params=(("to", "address"), ("data", "bytes"), ("signature", "bytes")),
        ),
        OperationDescriptor(
            kind=META_PARTIAL_SIGNED_DELEGATE_CALL,
            function_name=META_PARTIAL_SIGNED_DELEGATE_CALL,
            signed_params=(
                ("to", "address"),
                ("data", "bytes"),
                ("signature", "bytes"),
                ("unsignedData", "bytes"),
            ),
        ),
    )
}


def get_operation(kind: str) -> OperationDescriptor:
    """
    Look up the descriptor for an operation kind.

    Raises:
        InvalidOperationKind: If the kind is not supported
    """
    try:
        return OPERATIONS[kind]
    except (KeyError, TypeError):
        raise InvalidOperationKind(
            f"Unknown operation kind: {kind!r}",
            {"supported": ", ".join(sorted(OPERATIONS))}
        )
