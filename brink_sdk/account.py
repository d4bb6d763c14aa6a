"""
Account - provider-facing facade for one owner's account.
"""
import logging
from typing import Any, Dict, Optional, Union

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import TxReceipt as Web3TxReceipt

from .bitmap import BitmapState, bitmap_storage_slot, is_used, next_bit, normalize_slot
from .config import Environment
from .dispatch import DEPLOY, CallArgs, DeploymentState, DeploymentTracker, TransactionResolver
from .encoder import MessageEncoder
from .exceptions import (
    BrinkError,
    EstimationFailed,
    InvalidArguments,
    ProviderError,
    TransactionError,
)
from .models import BitSlot, SignedMessage, TransactionInfo, TxReceipt
from .operations import (
    DELEGATE_CALL,
    EXTERNAL_CALL,
    META_DELEGATE_CALL,
    META_PARTIAL_SIGNED_DELEGATE_CALL,
)
from .signer import Signer

logger = logging.getLogger(__name__)

SendResult = Union[str, TxReceipt]


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return HexBytes(value).to_0x_hex()
    return value


class Account:
    """
    Facade over one owner's account.

    Reads deployment state, replay bitmaps and balance from the chain,
    resolves calls to their deploy-or-direct transaction shape, estimates gas
    and sends transactions signed by ``signer``. The signer may be the owner
    (needed for ``delegate_call`` and ``external_call``) or any relayer.

    Args:
        owner_address: Account owner
        environment: Protocol environment
        w3: Web3 instance connected to the environment's chain
        signer: Optional transaction signer; required only for sending
        logger: Optional logger instance
    """

    def __init__(
        self,
        owner_address: str,
        environment: Environment,
        w3: Web3,
        signer: Optional[Signer] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.owner_address = owner_address
        self.environment = environment
        self.w3 = w3
        self.signer = signer
        self.logger = logger or logging.getLogger(__name__)
        self.encoder = MessageEncoder(self.logger)
        self.resolver = TransactionResolver(environment, owner_address, self.logger)
        self.deployment = DeploymentTracker()

    @property
    def address(self) -> str:
        """Counterfactual account address (derived once)."""
        return self.resolver.account_address

    # Read queries

    def is_deployed(self) -> bool:
        """
        Check whether the account contract has code on chain.

        Once observed as deployed the result is cached; an account is never
        undeployed.
        """
        if self.deployment.is_deployed:
            return True

        try:
            code = self.w3.eth.get_code(self.address)
        except Exception as e:
            self.logger.error(f"Failed to read code at {self.address}: {e}")
            raise ProviderError(
                f"Failed to read account code: {e}",
                {"account": self.address, "chain_id": self.environment.chain_id}
            ) from e

        if len(code) > 0:
            self.deployment.mark_deployed()
            return True
        return False

    def load_bitmap(self, bitmap_index: Any) -> int:
        """Read one 256-bit replay bitmap word from account storage."""
        bitmap_index, _ = normalize_slot(bitmap_index, 0)
        slot = bitmap_storage_slot(bitmap_index)
        try:
            raw = self.w3.eth.get_storage_at(self.address, int.from_bytes(slot, "big"))
        except Exception as e:
            self.logger.error(f"Failed to read bitmap {bitmap_index} of {self.address}: {e}")
            raise ProviderError(
                f"Failed to read bitmap storage: {e}",
                {"account": self.address, "chain_id": self.environment.chain_id}
            ) from e
        return int.from_bytes(bytes(raw), "big")

    def bit_used(self, bitmap_index: Any, bit: Any) -> bool:
        """Whether a replay slot has been consumed, read fresh from chain."""
        bitmap_index, bit = normalize_slot(bitmap_index, bit)
        word = self.load_bitmap(bitmap_index)
        return is_used(bitmap_index, bit, BitmapState({bitmap_index: word}))

    def next_bit(self) -> BitSlot:
        """
        Lowest unused replay slot.

        Words are read one at a time until one has a free bit. The slot is
        not reserved: two signers reading at the same time can get the same
        slot, so check ``bit_used`` again before relaying.
        """
        state = BitmapState()
        index = 0
        while True:
            state = state.with_word(index, self.load_bitmap(index))
            slot = next_bit(state, index)
            if slot.bitmap_index == index:
                return slot
            index += 1

    def get_balance(self) -> int:
        """ETH balance of the account in wei."""
        try:
            return self.w3.eth.get_balance(self.address)
        except Exception as e:
            raise ProviderError(
                f"Failed to read balance: {e}",
                {"account": self.address, "chain_id": self.environment.chain_id}
            ) from e

    # Dispatch

    def transaction_info(self, call_kind: str, call_args: CallArgs = None) -> TransactionInfo:
        """
        Resolve a call for the current deployment state and estimate its gas.

        Args:
            call_kind: Account call kind, e.g. ``"metaDelegateCall"`` or ``"deploy"``
            call_args: Arguments of the account function

        Returns:
            TransactionInfo including ``gas_estimate``

        Raises:
            EstimationFailed: If the simulation reverts or the provider fails
        """
        info = self._resolve(call_kind, call_args)
        return info.model_copy(update={"gas_estimate": self._estimate_gas(call_kind, info)})

    def deploy(self, **send_options: Any) -> SendResult:
        """Deploy the account proxy through the singleton factory."""
        return self._dispatch(DEPLOY, None, **send_options)

    def delegate_call(self, to: str, data: Any, **send_options: Any) -> SendResult:
        return self._dispatch(DELEGATE_CALL, [to, data], **send_options)

    def external_call(self, value: Any, to: str, data: Any, **send_options: Any) -> SendResult:
        return self._dispatch(EXTERNAL_CALL, [value, to, data], **send_options)

    def meta_delegate_call(
        self, to: str, data: Any, signature: Any, **send_options: Any
    ) -> SendResult:
        return self._dispatch(META_DELEGATE_CALL, [to, data, signature], **send_options)

    def meta_partial_signed_delegate_call(
        self, to: str, data: Any, signature: Any, unsigned_data: Any, **send_options: Any
    ) -> SendResult:
        return self._dispatch(
            META_PARTIAL_SIGNED_DELEGATE_CALL, [to, data, signature, unsigned_data], **send_options
        )

    # Signed intent helpers

    def transfer_eth(self, signed_message: SignedMessage, **send_options: Any) -> SendResult:
        return self._relay(signed_message, **send_options)

    def transfer_token(self, signed_message: SignedMessage, **send_options: Any) -> SendResult:
        return self._relay(signed_message, **send_options)

    def cancel(self, signed_message: SignedMessage, **send_options: Any) -> SendResult:
        return self._relay(signed_message, **send_options)

    def upgrade(self, signed_message: SignedMessage, **send_options: Any) -> SendResult:
        return self._relay(signed_message, **send_options)

    def send_limit_swap(
        self,
        signed_message: SignedMessage,
        to: str,
        data: Any,
        **send_options: Any
    ) -> SendResult:
        """
        Relay a signed limit swap, filling in the unsigned trade call.

        Args:
            signed_message: Signed swap from ``AccountSigner``
            to: Contract the verifier calls to source the swap
            data: Calldata for ``to``
        """
        self._check_signed_message(signed_message, META_PARTIAL_SIGNED_DELEGATE_CALL)
        unsigned_data = self.encoder.encode_params({
            "param_types": [p.model_dump() for p in signed_message.unsigned_params],
            "params": [to, data],
        })
        return self.meta_partial_signed_delegate_call(
            signed_message.to,
            signed_message.data,
            signed_message.signature,
            unsigned_data,
            **send_options
        )

    def _relay(self, signed_message: SignedMessage, **send_options: Any) -> SendResult:
        self._check_signed_message(signed_message, META_DELEGATE_CALL)
        return self.meta_delegate_call(
            signed_message.to, signed_message.data, signed_message.signature, **send_options
        )

    def _check_signed_message(self, signed_message: SignedMessage, entry_point: str) -> None:
        if signed_message.function_name != entry_point:
            raise InvalidArguments(
                f"Signed message is relayed through {signed_message.function_name}, expected {entry_point}",
                {"account": self.address}
            )
        if signed_message.account_address.lower() != self.address.lower():
            raise InvalidArguments(
                f"Signed message is for account {signed_message.account_address}",
                {"account": self.address}
            )

    # Internals

    def _state(self) -> DeploymentState:
        return DeploymentState.DEPLOYED if self.is_deployed() else DeploymentState.UNDEPLOYED

    def _resolve(self, call_kind: str, call_args: CallArgs) -> TransactionInfo:
        return self.resolver.resolve(call_kind, call_args, self._state())

    def _sender(self) -> str:
        return self.signer.address if self.signer is not None else self.owner_address

    def _estimate_gas(self, call_kind: str, info: TransactionInfo) -> int:
        try:
            gas = self.w3.eth.estimate_gas({
                "from": self._sender(),
                "to": info.contract_address,
                "data": info.data,
                "value": info.value,
            })
        except Exception as e:
            reason = getattr(e, "message", None) or str(e)
            self.logger.error(f"Gas estimation for {info.function_name} failed: {reason}")
            raise EstimationFailed(
                f"Gas estimation failed for {info.contract_name}.{info.function_name}",
                reason=reason,
                context={
                    "kind": call_kind,
                    "account": self.address,
                    "chain_id": self.environment.chain_id,
                }
            ) from e

        self.logger.debug(f"Estimated gas for {info.contract_name}.{info.function_name}: {gas}")
        return gas

    def _dispatch(
        self,
        call_kind: str,
        call_args: CallArgs,
        wait_for_receipt: bool = False,
        gas: Optional[int] = None,
        gas_price_override: Optional[int] = None,
        poll_interval: Optional[float] = None
    ) -> SendResult:
        """
        Resolve, sign and send an account call.

        Args:
            call_kind: Account call kind
            call_args: Arguments of the account function
            wait_for_receipt: Wait for the transaction to be mined
            gas: Gas limit; estimated (plus 10%) when omitted
            gas_price_override: Gas price in wei; the node's price when omitted
            poll_interval: Receipt polling interval in seconds

        Returns:
            Transaction hash, or TxReceipt when ``wait_for_receipt`` is set
        """
        if self.signer is None:
            raise ValueError("A transaction signer is required to send transactions")

        if gas is None:
            info = self.transaction_info(call_kind, call_args)
            gas = int(info.gas_estimate * 1.1)
        else:
            info = self._resolve(call_kind, call_args)

        try:
            from_address = self.signer.address
            tx: Dict[str, Any] = {
                "from": from_address,
                "to": info.contract_address,
                "data": info.data,
                "value": info.value,
                "nonce": self.w3.eth.get_transaction_count(from_address),
                "gas": gas,
                "chainId": self.environment.chain_id,
            }
            if gas_price_override is not None:
                tx["gasPrice"] = gas_price_override
            else:
                tx["gasPrice"] = self.w3.eth.gas_price

            try:
                signed_tx = self.signer.sign_transaction(tx)
            except Exception as e:
                self.logger.error(f"Transaction signing failed: {e}")
                raise TransactionError(f"Failed to sign transaction: {e}") from e

            try:
                tx_hash = _hex(self.w3.eth.send_raw_transaction(signed_tx.raw_transaction))
                self.logger.info(
                    f"Transaction sent: {tx_hash} ({info.contract_name}.{info.function_name})"
                )
            except Exception as e:
                self.logger.error(f"Failed to send transaction: {e}")
                if isinstance(e, Web3Exception):
                    raise
                raise TransactionError(f"Failed to send transaction: {e}") from e

            if not wait_for_receipt:
                return tx_hash

            receipt = self._convert_receipt(self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=120,
                poll_latency=poll_interval or 0.1
            ))
            if receipt.status == 1 and info.contract_address != self.address:
                if self.deployment.mark_deployed():
                    self.logger.info(f"Account {self.address} deployed in {tx_hash}")
            return receipt

        except BrinkError:
            raise
        except Web3Exception as e:
            self.logger.error(f"Web3 error: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error sending {call_kind}: {e}")
            raise TransactionError(f"Transaction failed: {e}") from e

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        """Convert a Web3 receipt to the TxReceipt model."""
        receipt_dict = {key: _hex(value) for key, value in dict(web3_receipt).items()}
        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]
        return TxReceipt.model_validate(receipt_dict)
