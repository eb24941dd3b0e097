"""Chain configuration models."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .constants import ETHERSCAN_V2_API_URL


class ExplorerApi(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    base_url: str = Field(default=ETHERSCAN_V2_API_URL, alias="baseUrl")
    api_key_env: str = Field(default="ETHERSCAN_API_KEY", alias="apiKeyEnv")


class NativeToken(BaseModel):
    model_config = ConfigDict(extra="forbid")
    symbol: str
    decimals: int = 18


class ChainConfig(BaseModel):
    """
    Chain metadata used for fork setup and explorer queries.

    Accepts both snake_case and the camelCase keys of JSON config files.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str
    chain_id: int = Field(alias="chainId")
    env_vars: List[str] = Field(default_factory=list, alias="envVars")
    rpc_urls: List[str] = Field(default_factory=list, alias="rpcUrls")
    explorer_api: ExplorerApi = Field(default_factory=ExplorerApi, alias="explorerApi")
    native_token: NativeToken = Field(alias="nativeToken")

    @property
    def rpc_env_var(self) -> str:
        """Environment variable the generated harness forks from."""
        return self.env_vars[0] if self.env_vars else "RPC_URL"
