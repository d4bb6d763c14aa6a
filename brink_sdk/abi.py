"""
Contract ABIs and ABI encoding helpers.

Only the entry points the SDK builds calldata for are listed. Calldata is
assembled locally (selector + ``eth_abi`` encoding) so that call shapes can be
resolved and inspected without a provider.
"""
import re
from typing import Any, Dict, List, Sequence

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from eth_utils import is_address, is_hexstr, keccak, to_bytes, to_checksum_address

from .exceptions import InvalidArguments
from .numeric import to_uint

ParamType = Dict[str, str]

SINGLETON_FACTORY_ABI = [
    {
        "inputs": [
            {"internalType": "bytes", "name": "initCode", "type": "bytes"},
            {"internalType": "bytes32", "name": "salt", "type": "bytes32"}
        ],
        "name": "deploy",
        "outputs": [{"internalType": "address payable", "name": "createdContract", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

ACCOUNT_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "bytes", "name": "data", "type": "bytes"}
        ],
        "name": "delegateCall",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "value", "type": "uint256"},
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "bytes", "name": "data", "type": "bytes"}
        ],
        "name": "externalCall",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "bytes", "name": "data", "type": "bytes"},
            {"internalType": "bytes", "name": "signature", "type": "bytes"}
        ],
        "name": "metaDelegateCall",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "bytes", "name": "data", "type": "bytes"},
            {"internalType": "bytes", "name": "signature", "type": "bytes"},
            {"internalType": "bytes", "name": "unsignedData", "type": "bytes"}
        ],
        "name": "metaPartialSignedDelegateCall",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    }
]

DEPLOY_AND_EXECUTE_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "accountOwner", "type": "address"},
            {"internalType": "address", "name": "accountImpl", "type": "address"},
            {"internalType": "bytes", "name": "execData", "type": "bytes"}
        ],
        "name": "deployAndExecute",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    }
]

_UINT_RE = re.compile(r"^uint(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")


def function_inputs(abi: List[Dict[str, Any]], function_name: str) -> List[ParamType]:
    """
    Get the ordered ``{name, type}`` inputs of a function in an ABI.

    Raises:
        InvalidArguments: If the ABI has no function with that name
    """
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == function_name:
            return [{"name": i["name"], "type": i["type"]} for i in entry["inputs"]]
    raise InvalidArguments(f"Function {function_name} not found in ABI")


def function_signature(function_name: str, types: Sequence[str]) -> str:
    """Canonical signature string, e.g. ``transfer(address,uint256)``."""
    return f"{function_name}({','.join(types)})"


def function_selector(function_name: str, types: Sequence[str]) -> bytes:
    """First four bytes of the keccak256 hash of the function signature."""
    return keccak(text=function_signature(function_name, types))[:4]


def to_abi_value(abi_type: str, value: Any) -> Any:
    """
    Convert a caller-supplied value into the Python form ``eth_abi`` expects.

    Integers go through the numeric adapters, addresses are checksummed and
    hex strings become bytes for ``bytes``/``bytesN`` parameters.

    Raises:
        InvalidArguments: If the value is not valid for the ABI type
        UnsupportedNumericType: If an integer value cannot be normalized
    """
    uint_match = _UINT_RE.match(abi_type)
    if uint_match:
        return to_uint(value, int(uint_match.group(1) or 256))

    if abi_type == "address":
        if not isinstance(value, (str, bytes)) or not is_address(value):
            raise InvalidArguments(f"Invalid address: {value!r}")
        return to_checksum_address(value)

    if abi_type == "bytes" or _FIXED_BYTES_RE.match(abi_type):
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        elif isinstance(value, str) and (value in ("", "0x") or is_hexstr(value)):
            data = to_bytes(hexstr=value) if value not in ("", "0x") else b""
        else:
            raise InvalidArguments(f"Invalid {abi_type} value: {value!r}")

        fixed = _FIXED_BYTES_RE.match(abi_type)
        if fixed and len(data) != int(fixed.group(1)):
            raise InvalidArguments(
                f"{abi_type} value must be {fixed.group(1)} bytes, got {len(data)}"
            )
        return data

    return value


def encode_values(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    ABI-encode values after normalizing them for their types.

    Raises:
        InvalidArguments: If the counts differ or a value cannot be encoded
    """
    if len(types) != len(values):
        raise InvalidArguments(f"Expected {len(types)} values, got {len(values)}")
    normalized = [to_abi_value(t, v) for t, v in zip(types, values)]
    try:
        return encode(list(types), normalized)
    except (EncodingError, TypeError) as e:
        raise InvalidArguments(f"Failed to ABI-encode values for {list(types)}: {e}")


def encode_function_call(
    function_name: str,
    param_types: Sequence[ParamType],
    params: Sequence[Any]
) -> bytes:
    """
    Build calldata: selector of ``function_name(param types)`` + encoded params.

    Args:
        function_name: Solidity function name
        param_types: Ordered ``{name, type}`` list
        params: Ordered values, one per param type

    Returns:
        Calldata bytes
    """
    types = [p["type"] for p in param_types]
    return function_selector(function_name, types) + encode_values(types, params)
