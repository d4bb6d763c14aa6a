"""
AccountSigner - signs intents on behalf of an account owner.

The owner never sends a transaction. Each intent is encoded, wrapped in an
EIP-712 message bound to the verifier, the chain and the owner's
counterfactual account, and signed. The resulting ``SignedMessage`` is handed
to a relayer, which submits it through ``metaDelegateCall`` or
``metaPartialSignedDelegateCall``.
"""
import logging
from typing import Any, Dict, Optional, Sequence

from eth_utils import to_bytes

from .address import compute_account_address
from .config import Environment
from .encoder import MessageEncoder
from .exceptions import InvalidOperationKind, SigningFailed
from .models import EncodedMessage, SignedMessage, SignedParam
from .operations import META_DELEGATE_CALL, META_PARTIAL_SIGNED_DELEGATE_CALL, get_operation
from .signer import Signer
from . import typed_data

logger = logging.getLogger(__name__)


class AccountSigner:
    """
    Signer for account intents.

    Args:
        signer: Owner signer (anything implementing ``sign_digest``)
        environment: Protocol environment
        logger: Optional logger instance
    """

    def __init__(
        self,
        signer: Signer,
        environment: Environment,
        logger: Optional[logging.Logger] = None
    ):
        if signer is None:
            raise ValueError("signer must be provided")
        self.signer = signer
        self.environment = environment
        self.logger = logger or logging.getLogger(__name__)
        self.encoder = MessageEncoder(self.logger)
        self._account_address: Optional[str] = None

    def signer_address(self) -> str:
        return self.signer.address

    def account_address(self) -> str:
        """Counterfactual address of the owner's account (computed once)."""
        if self._account_address is None:
            self._account_address = compute_account_address(self.environment, self.signer.address)
        return self._account_address

    def sign(self, kind: str, *args: Any, **kwargs: Any) -> SignedMessage:
        """
        Encode and sign an intent.

        Args:
            kind: Signable operation kind, e.g. ``"transferEth"``
            *args: Operation arguments in descriptor order
            **kwargs: Operation arguments by name

        Returns:
            SignedMessage bundle for a relayer

        Raises:
            InvalidOperationKind: If the kind is unknown or not signable
            InvalidArguments: If the arguments do not match the operation
            SigningFailed: If the signer fails
        """
        op = get_operation(kind)
        if not op.is_signable:
            raise InvalidOperationKind(
                f"{kind} is an owner call and cannot be signed as an intent",
                {"kind": kind}
            )
        encoded = self.encoder.encode(kind, *args, **kwargs)
        verifier = self.environment.address_of(op.verifier)
        return self._sign_encoded(op.entry_point, verifier, encoded)

    def sign_eth_transfer(self, bitmap_index, bit, recipient, amount) -> SignedMessage:
        return self.sign("transferEth", bitmap_index, bit, recipient, amount)

    def sign_token_transfer(self, bitmap_index, bit, token, recipient, amount) -> SignedMessage:
        return self.sign("transferToken", bitmap_index, bit, token, recipient, amount)

    def sign_eth_to_token_swap(
        self, bitmap_index, bit, token, eth_amount, token_amount, expiry_block=None
    ) -> SignedMessage:
        """Sign an ETH to token limit swap. Omitting ``expiry_block`` means it never expires."""
        return self.sign(
            "ethToTokenSwap", bitmap_index, bit, token, eth_amount, token_amount, expiry_block
        )

    def sign_token_to_eth_swap(
        self, bitmap_index, bit, token, token_amount, eth_amount, expiry_block=None
    ) -> SignedMessage:
        return self.sign(
            "tokenToEthSwap", bitmap_index, bit, token, token_amount, eth_amount, expiry_block
        )

    def sign_token_to_token_swap(
        self, bitmap_index, bit, token_in, token_out, token_in_amount, token_out_amount,
        expiry_block=None
    ) -> SignedMessage:
        return self.sign(
            "tokenToTokenSwap", bitmap_index, bit, token_in, token_out,
            token_in_amount, token_out_amount, expiry_block
        )

    def sign_upgrade(self, implementation: str) -> SignedMessage:
        return self.sign("upgrade", implementation)

    def sign_cancel(self, bitmap_index, bit) -> SignedMessage:
        return self.sign("cancel", bitmap_index, bit)

    def sign_meta_delegate_call(self, to: str, call: Dict[str, Any]) -> SignedMessage:
        """
        Sign a delegate call to an arbitrary verifier.

        Args:
            to: Verifier contract address
            call: ``{"function_name", "param_types", "params"}``
        """
        encoded = self.encoder.encode_call(
            call["function_name"], call["param_types"], call["params"]
        )
        return self._sign_encoded(META_DELEGATE_CALL, to, encoded)

    def sign_meta_partial_signed_delegate_call(
        self,
        to: str,
        call: Dict[str, Any],
        unsigned_param_types: Sequence[Any] = ()
    ) -> SignedMessage:
        """
        Sign a delegate call whose trailing params are filled in by the relayer.

        Args:
            to: Verifier contract address
            call: ``{"function_name", "param_types", "params"}`` of the signed part
            unsigned_param_types: ``{name, type}`` entries the relayer encodes
                with ``MessageEncoder.encode_params``
        """
        encoded = self.encoder.encode_call(
            call["function_name"], call["param_types"], call["params"], unsigned_param_types
        )
        return self._sign_encoded(META_PARTIAL_SIGNED_DELEGATE_CALL, to, encoded)

    def _sign_encoded(self, entry_point: str, to: str, encoded: EncodedMessage) -> SignedMessage:
        account_address = self.account_address()
        chain_id = self.environment.chain_id
        data = to_bytes(hexstr=encoded.data)

        message = typed_data.signable_message(
            entry_point, to, data, chain_id, self.environment.account_version, account_address
        )
        message_hash = typed_data.digest(message)

        try:
            signature = self.signer.sign_digest(message_hash)
        except Exception as e:
            self.logger.error(f"Signing {encoded.kind} failed: {e}")
            raise SigningFailed(
                f"Failed to sign {encoded.kind}: {e}",
                {"kind": encoded.kind, "account": account_address, "chain_id": chain_id}
            ) from e

        self.logger.debug(
            f"Signed {encoded.kind} for account {account_address} on chain {chain_id}"
        )

        full_typed_data = typed_data.typed_data(
            entry_point, to, data, chain_id, self.environment.account_version, account_address
        )
        return SignedMessage(
            message="0x" + message_hash.hex(),
            typed_data=full_typed_data,
            signature="0x" + bytes(signature).hex(),
            signer=self.signer.address,
            account_address=account_address,
            chain_id=chain_id,
            function_name=entry_point,
            signed_params=[
                SignedParam(name="to", type="address", value=full_typed_data["message"]["to"]),
                SignedParam(name="data", type="bytes", value=encoded.data, call_data=encoded.call_data),
            ],
            unsigned_params=encoded.unsigned_params,
        )


def recover_signer(signed_message: SignedMessage, version: Optional[str] = None) -> str:
    """
    Recover the address that produced a signed message's signature.

    The message is rebuilt from the bundle's signed params, so a bundle whose
    ``to`` or ``data`` was tampered with recovers to a different address.
    ``version`` defaults to the domain version recorded in the bundle.
    """
    if version is None:
        version = signed_message.typed_data["domain"]["version"]
    message = typed_data.signable_message(
        signed_message.function_name,
        signed_message.to,
        to_bytes(hexstr=signed_message.data),
        signed_message.chain_id,
        version,
        signed_message.account_address,
    )
    return typed_data.recover(message, to_bytes(hexstr=signed_message.signature))
