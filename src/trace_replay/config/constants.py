"""Built-in chain table used when no config file overrides it."""

DEFAULT_CHAIN = "ethereum"

# Etherscan v2 serves every supported chain from one endpoint, selected by `chainid`
ETHERSCAN_V2_API_URL = "https://api.etherscan.io/v2/api"

CHAIN_CONFIGS = {
    "ethereum": {
        "name": "Ethereum",
        "chainId": 1,
        "rpcUrls": ["https://eth.llamarpc.com", "https://rpc.ankr.com/eth"],
        "nativeToken": {"symbol": "ETH", "decimals": 18},
        "envVars": ["RPC_URL", "ETHEREUM_RPC_URL"],
    },
    "base": {
        "name": "Base",
        "chainId": 8453,
        "rpcUrls": ["https://mainnet.base.org"],
        "nativeToken": {"symbol": "ETH", "decimals": 18},
        "envVars": ["BASE_RPC_URL", "RPC_URL"],
    },
    "arbitrum": {
        "name": "Arbitrum One",
        "chainId": 42161,
        "rpcUrls": ["https://arb1.arbitrum.io/rpc"],
        "nativeToken": {"symbol": "ETH", "decimals": 18},
        "envVars": ["ARBITRUM_RPC_URL", "RPC_URL"],
    },
    "polygon": {
        "name": "Polygon",
        "chainId": 137,
        "rpcUrls": ["https://polygon-rpc.com"],
        "nativeToken": {"symbol": "MATIC", "decimals": 18},
        "envVars": ["POLYGON_RPC_URL", "RPC_URL"],
    },
    "optimism": {
        "name": "Optimism",
        "chainId": 10,
        "rpcUrls": ["https://mainnet.optimism.io"],
        "nativeToken": {"symbol": "ETH", "decimals": 18},
        "envVars": ["OPTIMISM_RPC_URL", "RPC_URL"],
    },
    "bsc": {
        "name": "BNB Smart Chain",
        "chainId": 56,
        "rpcUrls": ["https://bsc-dataseed.binance.org"],
        "nativeToken": {"symbol": "BNB", "decimals": 18},
        "envVars": ["BSC_RPC_URL", "RPC_URL"],
    },
    "avalanche": {
        "name": "Avalanche C-Chain",
        "chainId": 43114,
        "rpcUrls": ["https://api.avax.network/ext/bc/C/rpc"],
        "nativeToken": {"symbol": "AVAX", "decimals": 18},
        "envVars": ["AVALANCHE_RPC_URL", "RPC_URL"],
    },
}

# Keyword fallback for chain detection from an RPC URL
RPC_CHAIN_KEYWORDS = {
    "base": ["base"],
    "arbitrum": ["arbitrum", "arb1"],
    "polygon": ["polygon", "matic"],
    "optimism": ["optimism"],
    "bsc": ["bsc", "binance"],
    "avalanche": ["avalanche", "avax"],
}
