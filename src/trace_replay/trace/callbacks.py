"""
Callback vocabulary: which outbound calls open a callback region, and how
the callback method invoked back into the main actor is classified.

Both tables are evaluated top to bottom; the first matching row wins.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..models import CallbackKind, DecodedCall


@dataclass(frozen=True)
class CallbackTrigger:
    label: str
    matches: Callable[[DecodedCall], bool]
    # None means the callback carries the trigger's own name
    expected_callback: Optional[str]


def _signature_is(signature: str) -> Callable[[DecodedCall], bool]:
    return lambda call: call.signature == signature


def _name_contains(*fragments: str) -> Callable[[DecodedCall], bool]:
    return lambda call: any(f in call.name.lower() for f in fragments)


TRIGGER_TABLE: List[CallbackTrigger] = [
    CallbackTrigger("uniswap_v3_swap", _signature_is("swap(address,bool,int256,uint160,bytes)"), "uniswapV3SwapCallback"),
    CallbackTrigger("uniswap_v3_flash", _signature_is("flash(address,uint256,uint256,bytes)"), "uniswapV3FlashCallback"),
    CallbackTrigger("morpho_flash_loan", _signature_is("flashLoan(address,uint256,bytes)"), "onMorphoFlashLoan"),
    CallbackTrigger("balancer_flash_loan", _signature_is("flashLoan(address,address[],uint256[],bytes)"), "receiveFlashLoan"),
    CallbackTrigger("dydx_operate", lambda call: call.name.lower() == "operate", "callFunction"),
    CallbackTrigger("flash_loan", _name_contains("flashloan"), "executeOperation"),
    CallbackTrigger("callback_name", _name_contains("executeoperation", "receiveflashloan", "callfunction"), None),
]


def match_trigger(call: DecodedCall) -> Optional[str]:
    """
    Expected callback method name if `call` opens a callback region.

    Returns:
        Callback method name, or None when the call is not a trigger
    """
    for trigger in TRIGGER_TABLE:
        if trigger.matches(call):
            return trigger.expected_callback or call.name
    return None


CLASSIFICATION_TABLE: List[Tuple[Callable[[str], bool], CallbackKind]] = [
    (lambda n: "receiveflashloan" in n, CallbackKind.BALANCER_FLASH_LOAN),
    (lambda n: "onmorphoflashloan" in n or "morpho" in n, CallbackKind.MORPHO_FLASH_LOAN),
    (lambda n: "uniswapv3swapcallback" in n, CallbackKind.UNISWAP_V3_SWAP),
    (lambda n: "uniswapv3flashcallback" in n, CallbackKind.UNISWAP_V3_FLASH),
    (lambda n: "callfunction" in n, CallbackKind.DYDX_FLASH_LOAN),
    (lambda n: "flashloan" in n or "executeoperation" in n, CallbackKind.FLASH_LOAN),
    (lambda n: "callback" in n and ("flash" in n or "loan" in n), CallbackKind.GENERIC_FLASH_LOAN),
]


def classify_callback(method_name: Optional[str]) -> CallbackKind:
    """Classify a callback method name (case-insensitive substring match)."""
    name = (method_name or "").lower()
    for predicate, kind in CLASSIFICATION_TABLE:
        if predicate(name):
            return kind
    return CallbackKind.UNKNOWN_CALLBACK
