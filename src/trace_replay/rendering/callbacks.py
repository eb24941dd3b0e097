"""Callback handler declarations per callback kind."""

from dataclasses import dataclass
from typing import Optional

from ..models import CallbackKind

DYDX_ACCOUNT_INFO_STRUCT = """struct AccountInfo {
    address owner;
    uint256 number;
}"""


@dataclass(frozen=True)
class CallbackHandler:
    header: str
    footer: Optional[str] = None
    # File-level declarations the header depends on
    requires: Optional[str] = None

    @property
    def function_name(self) -> str:
        return self.header.split("(", 1)[0].replace("function ", "").strip()

    @property
    def counter_name(self) -> str:
        """State variable counting how often the handler has been entered."""
        return f"{self.function_name}Calls"


FALLBACK_HANDLER = CallbackHandler(header="fallback() external payable")

CALLBACK_HANDLERS = {
    CallbackKind.FLASH_LOAN: CallbackHandler(
        header=(
            "function executeOperation(address[] calldata assets, uint256[] calldata amounts, "
            "uint256[] calldata premiums, address initiator, bytes calldata params) external returns (bool)"
        ),
        footer="return true;",
    ),
    CallbackKind.BALANCER_FLASH_LOAN: CallbackHandler(
        header=(
            "function receiveFlashLoan(address[] memory tokens, uint256[] memory amounts, "
            "uint256[] memory feeAmounts, bytes memory userData) external"
        ),
    ),
    CallbackKind.DYDX_FLASH_LOAN: CallbackHandler(
        header="function callFunction(address sender, AccountInfo memory accountInfo, bytes memory data) external",
        requires=DYDX_ACCOUNT_INFO_STRUCT,
    ),
    CallbackKind.MORPHO_FLASH_LOAN: CallbackHandler(
        header="function onMorphoFlashLoan(uint256 assets, bytes calldata data) external",
    ),
    CallbackKind.UNISWAP_V3_SWAP: CallbackHandler(
        header="function uniswapV3SwapCallback(int256 amount0Delta, int256 amount1Delta, bytes calldata data) external",
    ),
    CallbackKind.UNISWAP_V3_FLASH: CallbackHandler(
        header="function uniswapV3FlashCallback(uint256 fee0, uint256 fee1, bytes calldata data) external",
    ),
    # No fixed selector is known for these; the contract's fallback receives them
    CallbackKind.GENERIC_FLASH_LOAN: FALLBACK_HANDLER,
    CallbackKind.UNKNOWN_CALLBACK: FALLBACK_HANDLER,
}


def handler_for(kind: CallbackKind) -> CallbackHandler:
    return CALLBACK_HANDLERS.get(kind, FALLBACK_HANDLER)
