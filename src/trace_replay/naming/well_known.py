"""Static table of well-known contract addresses per chain id."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class WellKnownAddress:
    name: str
    description: str


WELL_KNOWN_ADDRESSES: Dict[int, Dict[str, WellKnownAddress]] = {
    1: {
        "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": WellKnownAddress("weth_token", "WETH (Wrapped Ether)"),
        "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": WellKnownAddress("usdc_token", "USDC (USD Coin)"),
        "0xdac17f958d2ee523a2206206994597c13d831ec7": WellKnownAddress("usdt_token", "USDT (Tether USD)"),
        "0x6b175474e89094c44da98b954eedeac495271d0f": WellKnownAddress("dai_token", "DAI (Dai Stablecoin)"),
        "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": WellKnownAddress("wbtc_token", "WBTC (Wrapped BTC)"),
        "0xba12222222228d8ba445958a75a0704d566bf2c8": WellKnownAddress("balancer_vault", "Balancer V2 Vault"),
        "0x7d2768de32b0b80b7a3454c06bdac94a69ddc7a9": WellKnownAddress("aave_v2_pool", "Aave V2 LendingPool"),
        "0x87870bca3f3fd6335c3f4ce8392d69350b4fa4e2": WellKnownAddress("aave_v3_pool", "Aave V3 Pool"),
        "0x7a250d5630b4cf539739df2c5dacb4c659f2488d": WellKnownAddress("uniswap_v2_router", "Uniswap V2 Router02"),
        "0xe592427a0aece92de3edee1f18e0157c05861564": WellKnownAddress("uniswap_v3_router", "Uniswap V3 SwapRouter"),
        "0x68b3465833fb72a70ecdf485e0e4c7bd8665fc45": WellKnownAddress("uniswap_v3_router02", "Uniswap V3 SwapRouter02"),
        "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f": WellKnownAddress("uniswap_v2_factory", "Uniswap V2 Factory"),
        "0x1f98431c8ad98523631ae4a59f267346ea31f984": WellKnownAddress("uniswap_v3_factory", "Uniswap V3 Factory"),
        "0xbbbbbbbbbb9cc5e90e3b3af64bdaf62c37eeffcb": WellKnownAddress("morpho_blue", "Morpho Blue"),
        "0x1e0447b19bb6ecfdae1e4ae1694b0c3659614e4e": WellKnownAddress("dydx_solo_margin", "dYdX SoloMargin"),
    },
}


def lookup_well_known(address: str, chain_id: int = 1) -> Optional[WellKnownAddress]:
    return WELL_KNOWN_ADDRESSES.get(chain_id, {}).get((address or "").lower())
