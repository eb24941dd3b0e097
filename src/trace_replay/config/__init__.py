"""Chain configuration package."""

from .constants import CHAIN_CONFIGS, DEFAULT_CHAIN, ETHERSCAN_V2_API_URL
from .manager import ConfigManager
from .models import ChainConfig, ExplorerApi, NativeToken

__all__ = ["CHAIN_CONFIGS", "ChainConfig", "ConfigManager", "DEFAULT_CHAIN", "ETHERSCAN_V2_API_URL", "ExplorerApi", "NativeToken"]
