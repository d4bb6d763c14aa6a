"""
Message encoder.

Turns an operation kind plus ordered arguments into its canonical encoding:
a typed parameter list with integers as base-10 strings, and the calldata the
verifier (or account) function receives. Only the signed segment is encoded
here; the unsigned segment of partial-signed operations is encoded by the
relayer with ``encode_params`` after signing.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from .abi import encode_values, function_selector, to_abi_value
from .bitmap import BITS_PER_WORD
from .exceptions import InvalidArguments, UnsupportedNumericType
from .models import EncodedMessage, Param, ParamType
from .operations import OperationDescriptor, get_operation

logger = logging.getLogger(__name__)

_SNAKE_RE = re.compile(r"_([a-z0-9])")


def _camel(name: str) -> str:
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), name)


def display_value(abi_type: str, value: Any) -> Any:
    """Canonical, JSON-friendly form of an already normalized ABI value."""
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, int) and not isinstance(value, bool) and abi_type.startswith("uint"):
        return str(value)
    return value


class MessageEncoder:
    """
    Encoder for operation messages and raw parameter segments.

    Encoding is a pure function of (operation kind, ordered arguments).
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def encode(self, kind: str, *args: Any, **kwargs: Any) -> EncodedMessage:
        """
        Encode an operation bound to concrete arguments.

        Arguments are given positionally in descriptor order, or by name
        (``bitmapIndex`` or ``bitmap_index``). Omitted swap expiries default
        to the maximum uint256 value.

        Args:
            kind: Operation kind, e.g. ``"transferEth"``
            *args: Positional argument values
            **kwargs: Named argument values

        Returns:
            EncodedMessage with canonical params and hex calldata

        Raises:
            InvalidOperationKind: If the kind is unknown
            InvalidArguments: If the arguments do not match the descriptor, or a
                replay bit is outside [0, 255]
            UnsupportedNumericType: If an integer argument cannot be normalized
        """
        op = get_operation(kind)
        values = self._bind_args(op, args, kwargs)

        try:
            normalized = [to_abi_value(t, v) for t, v in zip(op.signed_types, values)]
            encoded_args = encode_values(op.signed_types, normalized)
        except (InvalidArguments, UnsupportedNumericType) as e:
            raise type(e)(e.message, {"kind": kind, **e.context})
        self._check_bit(op, normalized)

        data = function_selector(op.function_name, op.all_types) + encoded_args
        params = [
            Param(name=name, type=abi_type, value=display_value(abi_type, value))
            for (name, abi_type), value in zip(op.signed_params, normalized)
        ]
        self.logger.debug(f"Encoded {kind} as {op.function_name} ({len(data)} bytes)")

        return EncodedMessage(
            kind=kind,
            function_name=op.function_name,
            params=params,
            unsigned_params=[ParamType(name=n, type=t) for n, t in op.unsigned_params],
            data="0x" + data.hex(),
        )

    def encode_params(self, param_spec: Dict[str, Any]) -> str:
        """
        ABI-encode a raw parameter segment, e.g. the unsigned data of a swap.

        Args:
            param_spec: ``{"param_types": [{"name", "type"}], "params": [...]}``
                (``paramTypes`` is accepted as an alias)

        Returns:
            0x-prefixed hex encoding
        """
        param_types = param_spec.get("param_types", param_spec.get("paramTypes"))
        params = param_spec.get("params")
        if param_types is None or params is None:
            raise InvalidArguments("param_spec requires 'param_types' and 'params'")

        types = [self._type_of(p) for p in param_types]
        return "0x" + encode_values(types, list(params)).hex()

    def encode_call(
        self,
        function_name: str,
        param_types: Sequence[Any],
        params: Sequence[Any],
        unsigned_param_types: Sequence[Any] = ()
    ) -> EncodedMessage:
        """
        Encode an arbitrary function call that has no operation descriptor.

        Args:
            function_name: Function name
            param_types: ``{name, type}`` entries of the encoded params
            params: Values for ``param_types``
            unsigned_param_types: ``{name, type}`` entries appended by a
                relayer; part of the selector, not of the encoding
        """
        if len(param_types) != len(params):
            raise InvalidArguments(
                f"{function_name} takes {len(param_types)} params, got {len(params)}",
                {"kind": function_name}
            )
        names = [self._name_of(p, i) for i, p in enumerate(param_types)]
        types = [self._type_of(p) for p in param_types]
        unsigned = [
            ParamType(name=self._name_of(p, i), type=self._type_of(p))
            for i, p in enumerate(unsigned_param_types)
        ]

        normalized = [to_abi_value(t, v) for t, v in zip(types, params)]
        selector = function_selector(function_name, types + [p.type for p in unsigned])
        data = selector + encode_values(types, normalized)

        return EncodedMessage(
            kind=function_name,
            function_name=function_name,
            params=[
                Param(name=n, type=t, value=display_value(t, v))
                for n, t, v in zip(names, types, normalized)
            ],
            unsigned_params=unsigned,
            data="0x" + data.hex(),
        )

    def encode_function_call(
        self,
        function_name: str,
        param_types: Sequence[Any],
        params: Sequence[Any]
    ) -> str:
        """Encode calldata for an arbitrary function, returned as hex."""
        return self.encode_call(function_name, param_types, params).data

    def encode_transfer_eth(self, bitmap_index, bit, recipient, amount) -> EncodedMessage:
        return self.encode("transferEth", bitmap_index, bit, recipient, amount)

    def encode_transfer_token(self, bitmap_index, bit, token, recipient, amount) -> EncodedMessage:
        return self.encode("transferToken", bitmap_index, bit, token, recipient, amount)

    def encode_eth_to_token_swap(
        self, bitmap_index, bit, token, eth_amount, token_amount, expiry_block=None
    ) -> EncodedMessage:
        return self.encode(
            "ethToTokenSwap", bitmap_index, bit, token, eth_amount, token_amount, expiry_block
        )

    def encode_token_to_eth_swap(
        self, bitmap_index, bit, token, token_amount, eth_amount, expiry_block=None
    ) -> EncodedMessage:
        return self.encode(
            "tokenToEthSwap", bitmap_index, bit, token, token_amount, eth_amount, expiry_block
        )

    def encode_token_to_token_swap(
        self, bitmap_index, bit, token_in, token_out, token_in_amount, token_out_amount,
        expiry_block=None
    ) -> EncodedMessage:
        return self.encode(
            "tokenToTokenSwap", bitmap_index, bit, token_in, token_out,
            token_in_amount, token_out_amount, expiry_block
        )

    def encode_upgrade(self, implementation) -> EncodedMessage:
        return self.encode("upgrade", implementation)

    def encode_cancel(self, bitmap_index, bit) -> EncodedMessage:
        return self.encode("cancel", bitmap_index, bit)

    @staticmethod
    def _type_of(param_type: Any) -> str:
        if isinstance(param_type, ParamType):
            return param_type.type
        if isinstance(param_type, dict) and "type" in param_type:
            return param_type["type"]
        if isinstance(param_type, str):
            return param_type
        raise InvalidArguments(f"Invalid param type entry: {param_type!r}")

    @staticmethod
    def _name_of(param_type: Any, position: int) -> str:
        if isinstance(param_type, ParamType):
            return param_type.name
        if isinstance(param_type, dict) and param_type.get("name"):
            return param_type["name"]
        return f"param{position}"

    @staticmethod
    def _check_bit(op: OperationDescriptor, normalized: Sequence[Any]) -> None:
        """A replay slot bit is an index into a 256-bit word."""
        for (name, _), value in zip(op.signed_params, normalized):
            if name == "bit" and value >= BITS_PER_WORD:
                raise InvalidArguments(
                    f"Bit must be in [0, {BITS_PER_WORD - 1}], got {value}", {"kind": op.kind}
                )

    @staticmethod
    def _bind_args(
        op: OperationDescriptor,
        args: Sequence[Any],
        kwargs: Dict[str, Any]
    ) -> List[Any]:
        """Match positional and named arguments to the descriptor's signed params."""
        names = op.param_names
        context = {"kind": op.kind}
        if len(args) > len(names):
            raise InvalidArguments(
                f"{op.kind} takes {len(names)} arguments, got {len(args)}", context
            )

        bound: Dict[str, Any] = dict(zip(names, args))
        for key, value in kwargs.items():
            name = _camel(key)
            if name not in names:
                raise InvalidArguments(f"Unexpected argument '{key}' for {op.kind}", context)
            if name in bound:
                raise InvalidArguments(f"Argument '{name}' given more than once", context)
            bound[name] = value

        defaults = dict(op.defaults)
        values = []
        for name in names:
            value = bound.get(name)
            if value is None and name in defaults:
                value = defaults[name]
            if value is None:
                raise InvalidArguments(f"Missing argument '{name}' for {op.kind}", context)
            values.append(value)
        return values
