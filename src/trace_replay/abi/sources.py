"""Local signature table and per-address ABI sources."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .abi import ABI, load_abi, selector_of
from .addresses import normalize_address

logger = logging.getLogger(__name__)

# Signatures answered locally before any registry is queried
COMMON_SIGNATURES = [
    # ERC20
    "transfer(address,uint256)",
    "transferFrom(address,address,uint256)",
    "approve(address,uint256)",
    "balanceOf(address)",
    "allowance(address,address)",
    "totalSupply()",
    "decimals()",
    "symbol()",
    "name()",
    # WETH
    "deposit()",
    "withdraw(uint256)",
    # Uniswap V2 style
    "swap(uint256,uint256,address,bytes)",
    "getReserves()",
    "sync()",
    "skim(address)",
    "token0()",
    "token1()",
    "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)",
    "swapTokensForExactTokens(uint256,uint256,address[],address,uint256)",
    "swapExactETHForTokens(uint256,address[],address,uint256)",
    "swapExactTokensForETH(uint256,uint256,address[],address,uint256)",
    "addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)",
    "removeLiquidity(address,address,uint256,uint256,uint256,address,uint256)",
    # Uniswap V3 style
    "swap(address,bool,int256,uint160,bytes)",
    "flash(address,uint256,uint256,bytes)",
    # Flash loan providers
    "flashLoan(address,address[],uint256[],uint256[],address,bytes,uint16)",
    "flashLoanSimple(address,address,uint256,bytes,uint16)",
    "flashLoan(address,address[],uint256[],bytes)",
    "flashLoan(address,uint256,bytes)",
    # Lending
    "deposit(address,uint256,address,uint16)",
    "withdraw(address,uint256,address)",
    "borrow(address,uint256,uint256,uint16,address)",
    "repay(address,uint256,uint256,address)",
    "supply(address,uint256,address,uint16)",
    # ERC4626
    "deposit(uint256,address)",
    "redeem(uint256,address,address)",
    "mint(uint256,address)",
]


def build_signature_table(signatures: List[str], abis: Optional[List[ABI]] = None) -> Dict[str, str]:
    """
    Build a selector -> canonical signature table.

    First-listed signatures win on selector collisions; ABI-derived
    signatures are added after the common table.
    """
    table: Dict[str, str] = {}
    for sig in signatures:
        table.setdefault(selector_of(sig), sig)
    for abi in abis or []:
        for sig in abi.signatures():
            table.setdefault(selector_of(sig), sig)
    return table


class KnownAbiDirectory:
    """
    Directory of verified ABIs stored as `<address>.json`.

    Files may hold a bare ABI list or an artifact with an "abi" key.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory else None
        self._abis: Dict[str, ABI] = {}
        if self.directory:
            self._load()

    def _load(self):
        if not self.directory.is_dir():
            logger.warning(f"Known ABI directory not found: {self.directory}")
            return

        for path in sorted(self.directory.glob("*.json")):
            address = normalize_address(path.stem)
            if not address:
                logger.debug(f"Skipping {path.name}: file name is not an address")
                continue
            try:
                abi = load_abi(json.loads(path.read_text()))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load ABI from {path}: {e}")
                continue
            if abi:
                self._abis[address] = abi
                logger.info(f"Loaded known ABI for {address}")

    def get(self, address: str) -> Optional[ABI]:
        return self._abis.get((address or "").lower())

    def all(self) -> List[ABI]:
        return list(self._abis.values())


class ExplorerAbiSource:
    """
    Verified-ABI lookups through an Etherscan-compatible explorer.

    A KnownAbiDirectory is consulted first; explorer results are cached per
    address, including misses.
    """

    def __init__(
        self,
        config_manager=None,
        chain: str = "ethereum",
        known_abis: Optional[KnownAbiDirectory] = None,
        timeout: float = 10.0,
    ):
        self.config_manager = config_manager
        self.chain = chain
        self.known_abis = known_abis or KnownAbiDirectory()
        self.timeout = timeout
        self._cache: Dict[str, Optional[ABI]] = {}

    def _fetch(self, address: str) -> Optional[ABI]:
        url = self.config_manager.get_explorer_api_url(
            self.chain, "contract", "getabi", address=address
        )
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if str(data.get("status")) != "1":
            logger.info(f"No verified ABI for {address}: {data.get('result')}")
            return None
        return load_abi(json.loads(data["result"]))

    def get_abi(self, address: str) -> Optional[ABI]:
        """
        Return the ABI for a contract, or None if none is available.

        Args:
            address: Contract address (any case)

        Returns:
            ABI helper or None
        """
        address = (address or "").lower()
        known = self.known_abis.get(address)
        if known:
            return known

        if address in self._cache:
            return self._cache[address]

        abi = None
        if self.config_manager is not None:
            try:
                abi = self._fetch(address)
                if abi:
                    logger.info(f"✓ Fetched verified ABI for {address}")
            except Exception as e:
                logger.warning(f"Explorer ABI lookup failed for {address}: {e}")
        self._cache[address] = abi
        return abi
