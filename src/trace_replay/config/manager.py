"""Chain configuration loading and lookups."""

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlencode, urlparse

from pydantic import ValidationError

from .constants import CHAIN_CONFIGS, DEFAULT_CHAIN, RPC_CHAIN_KEYWORDS
from .models import ChainConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Chain metadata registry.

    The built-in table is always available; a JSON file shaped like
    `{"defaultChain": "...", "chains": {...}}` overrides or extends it.
    """

    def __init__(self, config_path: Optional[Path] = None, api_key: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        # Explicit key wins over the chain's key env var and ETHERSCAN_API_KEY
        self.api_key = api_key
        self.default_chain = DEFAULT_CHAIN
        self.chain_configs: Dict[str, ChainConfig] = {}
        self.load_config()

    def load_config(self) -> bool:
        """
        (Re)load chain configuration.

        Returns:
            True if a config file was applied, False if only built-ins are in use
        """
        raw = copy.deepcopy(CHAIN_CONFIGS)
        self.default_chain = DEFAULT_CHAIN
        loaded_file = False

        if self.config_path:
            try:
                data = json.loads(self.config_path.read_text())
                raw.update(data.get("chains") or {})
                self.default_chain = (data.get("defaultChain") or DEFAULT_CHAIN).lower()
                loaded_file = True
            except (OSError, json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Failed to load chain config {self.config_path}: {e}")
                logger.warning("Using built-in chain configuration")

        self.chain_configs = {}
        for key, entry in raw.items():
            try:
                self.chain_configs[key.lower()] = ChainConfig.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Ignoring invalid config for chain '{key}': {e}")

        logger.info(f"Loaded configuration for {len(self.chain_configs)} chains")
        return loaded_file

    def get_chain_config(self, chain_name: Optional[str]) -> ChainConfig:
        """Config for `chain_name` (case-insensitive), else the default chain."""
        chain = (chain_name or "").lower()
        return (
            self.chain_configs.get(chain)
            or self.chain_configs.get(self.default_chain)
            or self.chain_configs[DEFAULT_CHAIN]
        )

    def supported_chains(self) -> List[str]:
        return list(self.chain_configs.keys())

    def get_rpc_url(self, chain_name: str = DEFAULT_CHAIN) -> Optional[str]:
        """
        RPC URL for a chain.

        Environment variables listed in the chain's `envVars` take precedence
        over the configured public endpoints.
        """
        config = self.get_chain_config(chain_name)
        for env_var in config.env_vars:
            value = os.getenv(env_var)
            if value:
                return value
        return config.rpc_urls[0] if config.rpc_urls else None

    def detect_chain_from_rpc(self, rpc_url: str) -> str:
        """
        Guess the chain behind an RPC URL.

        Matches configured RPC hosts first, then the chain id as a standalone
        number in the URL, then keyword patterns. Defaults to the default chain.
        """
        url = (rpc_url or "").lower()
        host = urlparse(url).netloc

        for name, config in self.chain_configs.items():
            for rpc in config.rpc_urls:
                if host and urlparse(rpc.lower()).netloc == host:
                    return name

        for name, config in self.chain_configs.items():
            if re.search(rf'(?<![0-9A-Za-z]){config.chain_id}(?![0-9A-Za-z])', url):
                return name

        for name, keywords in RPC_CHAIN_KEYWORDS.items():
            if name in self.chain_configs and any(k in url for k in keywords):
                return name

        return self.default_chain

    def get_explorer_api_key(self, chain_name: str) -> Optional[str]:
        """API key for a chain: explicit key, then the chain's key env var, then ETHERSCAN_API_KEY."""
        if self.api_key:
            return self.api_key
        config = self.get_chain_config(chain_name)
        return os.getenv(config.explorer_api.api_key_env) or os.getenv("ETHERSCAN_API_KEY")

    def get_explorer_api_url(self, chain_name: str, module: str, action: str, **params) -> str:
        """
        Build an Etherscan v2 explorer API URL.

        One endpoint serves every chain; the chain is selected by `chainid`.

        Args:
            chain_name: Chain name
            module: API module (e.g. "contract")
            action: API action (e.g. "getabi")
            **params: Additional query parameters

        Returns:
            Complete URL including `chainid` and, when configured, the API key
        """
        config = self.get_chain_config(chain_name)
        query = {"chainid": config.chain_id, "module": module, "action": action}
        api_key = self.get_explorer_api_key(chain_name)
        if api_key:
            query["apikey"] = api_key
        else:
            logger.warning("⚠️  No Etherscan API key configured; explorer requests may be rejected")
        query.update(params)
        return f"{config.explorer_api.base_url}?{urlencode(query)}"

    def validate_chain_config(self, chain_name: str) -> Dict:
        """
        Check a chain's configuration for missing fields.

        Returns:
            Dict with `valid`, `issues` and the resolved `config`
        """
        config = self.get_chain_config(chain_name)
        issues = []

        if not config.name:
            issues.append("Missing chain name")
        if not config.chain_id:
            issues.append("Missing chain ID")
        if not config.rpc_urls:
            issues.append("Missing RPC URLs")
        if not config.explorer_api.base_url:
            issues.append("Missing explorer API configuration")
        if not config.native_token.symbol:
            issues.append("Missing native token configuration")
        if not config.env_vars:
            issues.append("Missing environment variable names")

        return {"valid": not issues, "issues": issues, "config": config}
