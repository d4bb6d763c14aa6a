"""
Dispatch resolution for account calls.

An account call either goes straight to the deployed account, or, while the
account only exists counterfactually, through the ``DeployAndExecute``
bundler which deploys the proxy and forwards the call in one transaction.
``TransactionResolver`` is the single place that makes that choice.
"""
import enum
import logging
import threading
from typing import Any, Dict, Optional, Sequence, Union

from .abi import (
    ACCOUNT_ABI,
    DEPLOY_AND_EXECUTE_ABI,
    SINGLETON_FACTORY_ABI,
    encode_function_call,
    function_inputs,
)
from .address import account_salt, build_init_code, derive_address
from .config import Environment
from .encoder import MessageEncoder
from .exceptions import AccountAlreadyDeployed, AccountNotDeployed, InvalidOperationKind
from .models import ParamType, TransactionInfo
from .operations import DELEGATE_CALL, EXTERNAL_CALL, META_DELEGATE_CALL, META_PARTIAL_SIGNED_DELEGATE_CALL

logger = logging.getLogger(__name__)

DEPLOY = "deploy"

# Calls a relayer may bundle with deployment
BUNDLEABLE_CALLS = (META_DELEGATE_CALL, META_PARTIAL_SIGNED_DELEGATE_CALL)

# Calls only the owner may send, so they need a deployed account
OWNER_CALLS = (DELEGATE_CALL, EXTERNAL_CALL)

CallArgs = Union[Sequence[Any], Dict[str, Any], None]


class DeploymentState(enum.Enum):
    UNDEPLOYED = "undeployed"
    DEPLOYED = "deployed"


class DeploymentTracker:
    """
    Monotonic deployment flag of one account.

    Starts UNDEPLOYED and moves to DEPLOYED at most once; it never moves back.
    """

    def __init__(self, state: DeploymentState = DeploymentState.UNDEPLOYED):
        self._state = state
        self._lock = threading.Lock()

    @property
    def state(self) -> DeploymentState:
        return self._state

    @property
    def is_deployed(self) -> bool:
        return self._state is DeploymentState.DEPLOYED

    def mark_deployed(self) -> bool:
        """Record deployment. Returns True if this call changed the state."""
        with self._lock:
            if self._state is DeploymentState.DEPLOYED:
                return False
            self._state = DeploymentState.DEPLOYED
            return True


class TransactionResolver:
    """
    Resolve an account call kind to the concrete transaction to send.

    Resolution is pure: the caller supplies the deployment state and no
    provider is consulted. Gas is estimated separately by ``Account``.

    Args:
        environment: Protocol environment
        owner_address: Account owner
        logger: Optional logger instance
    """

    def __init__(
        self,
        environment: Environment,
        owner_address: str,
        logger: Optional[logging.Logger] = None
    ):
        self.environment = environment
        self.owner_address = owner_address
        self.logger = logger or logging.getLogger(__name__)
        self.encoder = MessageEncoder(self.logger)
        self._account_address: Optional[str] = None

    @property
    def account_address(self) -> str:
        if self._account_address is None:
            self._account_address = derive_address(
                self.environment.address_of("singletonFactory"),
                self.environment.address_of("account"),
                self.owner_address,
                self.environment.chain_id,
                self.environment.account_deployment_salt,
            )
        return self._account_address

    def resolve(
        self,
        call_kind: str,
        call_args: CallArgs = None,
        state: DeploymentState = DeploymentState.UNDEPLOYED
    ) -> TransactionInfo:
        """
        Resolve a call for the given deployment state.

        Args:
            call_kind: ``deploy``, ``metaDelegateCall``,
                ``metaPartialSignedDelegateCall``, ``delegateCall`` or ``externalCall``
            call_args: Arguments of the account function, positional or by name
            state: Current deployment state of the account

        Returns:
            TransactionInfo without a gas estimate

        Raises:
            InvalidOperationKind: If the call kind is not dispatchable
            AccountAlreadyDeployed: For ``deploy`` on a deployed account
            AccountNotDeployed: For owner calls on an undeployed account
        """
        context = {
            "kind": call_kind,
            "account": self.account_address,
            "chain_id": self.environment.chain_id,
        }

        if call_kind == DEPLOY:
            if state is DeploymentState.DEPLOYED:
                raise AccountAlreadyDeployed("Account is already deployed", context)
            return self._resolve_deploy()

        if call_kind in BUNDLEABLE_CALLS:
            if state is DeploymentState.DEPLOYED:
                return self._resolve_direct(call_kind, call_args)
            return self._resolve_bundled(call_kind, call_args)

        if call_kind in OWNER_CALLS:
            if state is not DeploymentState.DEPLOYED:
                raise AccountNotDeployed(
                    f"{call_kind} requires a deployed account; deploy it first", context
                )
            return self._resolve_direct(call_kind, call_args)

        raise InvalidOperationKind(
            f"Cannot dispatch call kind {call_kind!r}",
            {"supported": ", ".join((DEPLOY,) + BUNDLEABLE_CALLS + OWNER_CALLS)}
        )

    def account_call_data(self, call_kind: str, call_args: CallArgs) -> str:
        """Calldata of an account function call, as hex."""
        return self._encode_account_call(call_kind, call_args).data

    def _encode_account_call(self, call_kind: str, call_args: CallArgs):
        if call_args is None:
            return self.encoder.encode(call_kind)
        if isinstance(call_args, dict):
            return self.encoder.encode(call_kind, **call_args)
        return self.encoder.encode(call_kind, *call_args)

    def _resolve_deploy(self) -> TransactionInfo:
        init_code = build_init_code(self.environment.address_of("account"), self.owner_address)
        salt = account_salt(
            self.environment.account_deployment_salt,
            self.environment.chain_id,
            self.owner_address
        )
        inputs = function_inputs(SINGLETON_FACTORY_ABI, "deploy")
        params = ["0x" + init_code.hex(), "0x" + salt.hex()]
        data = encode_function_call("deploy", inputs, params)

        self.logger.debug(f"Resolved deploy of {self.account_address} through singleton factory")
        return TransactionInfo(
            contract_name=self.environment.contract_name_of("singletonFactory"),
            contract_address=self.environment.address_of("singletonFactory"),
            function_name="deploy",
            param_types=[ParamType(**p) for p in inputs],
            params=params,
            data="0x" + data.hex(),
        )

    def _resolve_direct(self, call_kind: str, call_args: CallArgs) -> TransactionInfo:
        encoded = self._encode_account_call(call_kind, call_args)
        self.logger.debug(f"Resolved {call_kind} directly on account {self.account_address}")
        return TransactionInfo(
            contract_name="Account",
            contract_address=self.account_address,
            function_name=call_kind,
            param_types=[ParamType(**p) for p in function_inputs(ACCOUNT_ABI, call_kind)],
            params=[p.value for p in encoded.params],
            data=encoded.data,
        )

    def _resolve_bundled(self, call_kind: str, call_args: CallArgs) -> TransactionInfo:
        exec_data = self.account_call_data(call_kind, call_args)
        inputs = function_inputs(DEPLOY_AND_EXECUTE_ABI, "deployAndExecute")
        params = [
            self.owner_address,
            self.environment.address_of("account"),
            exec_data,
        ]
        data = encode_function_call("deployAndExecute", inputs, params)

        self.logger.debug(
            f"Resolved {call_kind} through deployAndExecute; account {self.account_address} is not deployed"
        )
        return TransactionInfo(
            contract_name=self.environment.contract_name_of("deployAndExecute"),
            contract_address=self.environment.address_of("deployAndExecute"),
            function_name="deployAndExecute",
            param_types=[ParamType(**p) for p in inputs],
            params=params,
            data="0x" + data.hex(),
        )
