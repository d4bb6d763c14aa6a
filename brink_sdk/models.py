"""
Data models for the Brink SDK.
"""
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field


class ParamType(BaseModel):
    """Name and Solidity ABI type of one parameter"""
    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class Param(BaseModel):
    """One encoded parameter; integers are canonical base-10 strings"""
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    value: Any


class CallData(BaseModel):
    """Breakdown of a verifier function call carried in a signed ``data`` param"""
    model_config = ConfigDict(frozen=True)

    function_name: str
    params: List[Param]


class EncodedMessage(BaseModel):
    """Canonical encoding of one operation bound to concrete arguments"""
    model_config = ConfigDict(frozen=True)

    kind: str
    function_name: str
    params: List[Param]
    unsigned_params: List[ParamType] = Field(default_factory=list)
    data: str

    @property
    def call_data(self) -> CallData:
        return CallData(function_name=self.function_name, params=self.params)


class SignedParam(BaseModel):
    """One argument of the account entry point a signed message is relayed through"""
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    value: Any
    call_data: Optional[CallData] = None


class SignedMessage(BaseModel):
    """
    Signed intent bundle handed to a relayer.

    ``signed_params`` are the arguments bound by the signature (verifier
    address and encoded call data). ``unsigned_params`` describes the segment
    the relayer encodes later with ``MessageEncoder.encode_params``.
    """
    model_config = ConfigDict(frozen=True)

    message: str
    typed_data: Dict[str, Any]
    signature: str
    signer: str
    account_address: str
    chain_id: int
    function_name: str
    signed_params: List[SignedParam]
    unsigned_params: List[ParamType] = Field(default_factory=list)

    @property
    def to(self) -> str:
        return self.signed_params[0].value

    @property
    def data(self) -> str:
        return self.signed_params[1].value


class BitSlot(BaseModel):
    """A replay-protection slot: one bit of a 256-bit bitmap word"""
    model_config = ConfigDict(frozen=True)

    bitmap_index: int = Field(..., ge=0)
    bit: int = Field(..., ge=0, le=255)


class TransactionInfo(BaseModel):
    """Resolved call shape for a dispatched account call"""
    contract_name: str
    contract_address: str
    function_name: str
    param_types: List[ParamType]
    params: List[Any]
    data: str
    value: int = 0
    gas_estimate: Optional[int] = None


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]]

    model_config = ConfigDict(populate_by_name=True)
