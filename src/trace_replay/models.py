"""Structured models used by the trace replay pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Parsed input (read-only after ingestion)
# ---------------------------------------------------------------------------

class DecodedMethod(BaseModel):
    """Method information a trace service already decoded for an invocation."""
    model_config = ConfigDict(extra="ignore", frozen=True)
    name: str
    signature: Optional[str] = None
    parameters: List[Dict[str, Any]] = Field(default_factory=list)


class Invocation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    from_address: str
    to_address: Optional[str] = None
    selector: Optional[str] = None
    call_data: str = "0x"
    value: str = "0"
    gas_used: Optional[int] = None
    call_type: Optional[str] = None
    decoded_method: Optional[DecodedMethod] = None

    @property
    def is_static_call(self) -> bool:
        return self.call_type == "STATICCALL"


class TraceNode(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    key: str
    order: int
    invocations: Tuple[Invocation, ...] = ()


# ---------------------------------------------------------------------------
# External capability payloads
# ---------------------------------------------------------------------------

class SignatureInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")
    selector: str
    function_name: str
    text_signature: str
    parameter_types: List[str] = Field(default_factory=list)


TokenKind = Literal["ERC20", "Pair", "unknown"]


class TokenInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: TokenKind = "unknown"
    symbol: Optional[str] = None
    name: Optional[str] = None
    decimals: Optional[int] = None
    paired_tokens: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Run-owned records
# ---------------------------------------------------------------------------

class DecodeTier(str, Enum):
    TYPED_ABI = "typed_abi"
    RESOLVER_TYPED = "resolver_typed"
    RESOLVER_RAW = "resolver_raw"
    OPAQUE = "opaque"
    NATIVE_TRANSFER = "native_transfer"


RAW_REPLAY_TIERS = {DecodeTier.RESOLVER_RAW, DecodeTier.OPAQUE, DecodeTier.NATIVE_TRANSFER}


class CallbackKind(str, Enum):
    FLASH_LOAN = "flash_loan"
    BALANCER_FLASH_LOAN = "balancer_flash_loan"
    DYDX_FLASH_LOAN = "dydx_flash_loan"
    MORPHO_FLASH_LOAN = "morpho_flash_loan"
    UNISWAP_V3_SWAP = "uniswap_v3_swap"
    UNISWAP_V3_FLASH = "uniswap_v3_flash"
    GENERIC_FLASH_LOAN = "generic_flash_loan"
    UNKNOWN_CALLBACK = "unknown_callback"


@dataclass
class DecodedParam:
    name: str
    type: str
    value: Any


@dataclass
class DecodedCall:
    """
    One decoded outbound call.

    `signature` is always `name(type,...)`; calls that could not be typed
    keep the verbatim payload in `raw_call_data` for byte-exact replay.
    """
    target: str
    name: str
    signature: str
    params: List[DecodedParam] = field(default_factory=list)
    tier: DecodeTier = DecodeTier.OPAQUE
    selector: Optional[str] = None
    raw_call_data: str = "0x"
    value: str = "0"
    node_key: Optional[str] = None
    order: Optional[int] = None
    # Position among all replayed invocations, for ties within one node
    sequence: int = 0

    @property
    def requires_raw_replay(self) -> bool:
        return self.tier in RAW_REPLAY_TIERS

    @property
    def has_value(self) -> bool:
        try:
            return int(self.value or "0") != 0
        except ValueError:
            return False

    def param_types(self) -> List[str]:
        return [p.type for p in self.params]


@dataclass
class CallbackRegion:
    kind: CallbackKind
    trigger_key: str
    trigger_order: int
    start: int
    end: int
    callback_method: str
    calls: List[DecodedCall] = field(default_factory=list)
    trigger_call: Optional[DecodedCall] = None
    possibly_truncated: bool = False

    def contains(self, order: int) -> bool:
        return self.start <= order < self.end


@dataclass
class WalkResult:
    top_level_calls: List[DecodedCall] = field(default_factory=list)
    callback_regions: List[CallbackRegion] = field(default_factory=list)
    boundary_warnings: List[str] = field(default_factory=list)


@dataclass
class InterfaceDeclaration:
    name: str
    signatures: List[str] = field(default_factory=list)
    addresses: List[str] = field(default_factory=list)


@dataclass
class AddressDeclaration:
    address: str
    name: str
    interface_name: str
    known: bool = False
    comment: Optional[str] = None


@dataclass
class SynthesisResult:
    interface_declarations: List[InterfaceDeclaration] = field(default_factory=list)
    address_declarations: List[AddressDeclaration] = field(default_factory=list)

    def interface_for(self, address: str) -> Optional[str]:
        address = address.lower()
        for declaration in self.address_declarations:
            if declaration.address == address:
                return declaration.interface_name
        return None

    def constant_names(self) -> Dict[str, str]:
        return {d.address: d.name for d in self.address_declarations}


@dataclass
class ReplayModel:
    """Everything the renderer needs, produced by the build phase."""
    main_actor: str
    walk: WalkResult
    synthesis: SynthesisResult
    chain: str = "ethereum"
    rpc_env_var: str = "RPC_URL"
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
