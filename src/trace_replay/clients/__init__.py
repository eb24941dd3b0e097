"""External lookup capabilities: signature registries and token enrichment."""

from .signatures import EtherfaceRegistry, FourByteRegistry, SignatureRegistry
from .tokens import Web3TokenEnrichment

__all__ = ["EtherfaceRegistry", "FourByteRegistry", "SignatureRegistry", "Web3TokenEnrichment"]
