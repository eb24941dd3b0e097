"""Token metadata enrichment over JSON-RPC."""

import asyncio
import logging
from typing import Dict, Optional

from web3 import Web3

from ..models import TokenInfo

logger = logging.getLogger(__name__)

# Read-only selectors
SYMBOL_SELECTOR = "0x95d89b41"    # symbol()
NAME_SELECTOR = "0x06fdde03"      # name()
DECIMALS_SELECTOR = "0x313ce567"  # decimals()
TOKEN0_SELECTOR = "0x0dfe1681"    # token0()
TOKEN1_SELECTOR = "0xd21220a7"    # token1()


def decode_text_result(result_hex: str) -> Optional[str]:
    """
    Decode a string returned by `symbol()` / `name()`.

    Handles both ABI-encoded dynamic strings and legacy bytes32 returns.
    """
    result_hex = result_hex[2:] if result_hex.startswith("0x") else result_hex
    if not result_hex:
        return None
    try:
        if len(result_hex) > 128:
            # Dynamic string format
            length = int(result_hex[64:128], 16)
            text_hex = result_hex[128:128 + length * 2]
        else:
            # bytes32 format or short string
            text_hex = result_hex[:64]
        text = bytes.fromhex(text_hex).decode("utf-8").rstrip("\x00")
    except (ValueError, UnicodeDecodeError):
        return None
    return text or None


def decode_address_result(result_hex: str) -> Optional[str]:
    result_hex = result_hex[2:] if result_hex.startswith("0x") else result_hex
    if len(result_hex) != 64 or int(result_hex[:24] or "0", 16) != 0:
        return None
    address = "0x" + result_hex[24:]
    if int(address, 16) == 0:
        return None
    return address


class Web3TokenEnrichment:
    """
    Describe contracts as ERC20 tokens or Uniswap-V2-style pairs.

    Results (including misses) are cached per address. `describe()` never
    raises: RPC failures are logged and reported as not found.
    """

    def __init__(self, rpc_url: Optional[str] = None, timeout: float = 10.0, w3: Optional[Web3] = None):
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.w3 = w3
        self._cache: Dict[str, Optional[TokenInfo]] = {}

    def _call(self, address: str, selector: str) -> Optional[str]:
        """eth_call returning the hex result, or None if the call reverts."""
        try:
            result = self.w3.eth.call({"to": Web3.to_checksum_address(address), "data": selector})
        except Exception as e:
            logger.debug(f"eth_call {selector} on {address} failed: {e}")
            return None
        result_hex = result.hex() if isinstance(result, (bytes, bytearray)) else str(result)
        if result_hex.startswith("0x"):
            result_hex = result_hex[2:]
        return result_hex or None

    def _symbol(self, address: str) -> Optional[str]:
        result = self._call(address, SYMBOL_SELECTOR)
        return decode_text_result(result) if result else None

    def _pair_info(self, address: str) -> Optional[TokenInfo]:
        token0_raw = self._call(address, TOKEN0_SELECTOR)
        token1_raw = self._call(address, TOKEN1_SELECTOR)
        if not token0_raw or not token1_raw:
            return None
        token0 = decode_address_result(token0_raw)
        token1 = decode_address_result(token1_raw)
        if not token0 or not token1:
            return None

        symbol0 = self._symbol(token0)
        symbol1 = self._symbol(token1)
        if not symbol0 or not symbol1:
            return None

        name_raw = self._call(address, NAME_SELECTOR)
        return TokenInfo(
            kind="Pair",
            symbol=self._symbol(address),
            name=decode_text_result(name_raw) if name_raw else None,
            decimals=18,
            paired_tokens=[symbol0, symbol1],
        )

    def _erc20_info(self, address: str) -> Optional[TokenInfo]:
        symbol = self._symbol(address)
        if not symbol:
            return None
        name_raw = self._call(address, NAME_SELECTOR)
        decimals_raw = self._call(address, DECIMALS_SELECTOR)
        decimals = None
        if decimals_raw:
            try:
                decimals = int(decimals_raw, 16)
            except ValueError:
                decimals = None
        return TokenInfo(
            kind="ERC20",
            symbol=symbol,
            name=decode_text_result(name_raw) if name_raw else None,
            decimals=decimals,
        )

    def describe_sync(self, address: str) -> Optional[TokenInfo]:
        """Pair detection first, then plain ERC20 metadata."""
        return self._pair_info(address) or self._erc20_info(address)

    async def describe(self, address: str) -> Optional[TokenInfo]:
        """
        Describe a contract for naming purposes.

        Args:
            address: Contract address (any case)

        Returns:
            TokenInfo or None when the contract is neither a token nor a pair
        """
        key = address.lower()
        if key in self._cache:
            return self._cache[key]

        try:
            info = await asyncio.to_thread(self.describe_sync, key)
        except Exception as e:
            logger.warning(f"Token enrichment failed for {address}: {e}")
            info = None

        self._cache[key] = info
        return info
