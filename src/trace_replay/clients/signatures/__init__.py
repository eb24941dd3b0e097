"""Public function-signature registries."""

from .base import SignatureRegistry, normalize_selector, signature_info_from_text
from .etherface import EtherfaceRegistry
from .four_byte import FourByteRegistry

__all__ = [
    "EtherfaceRegistry",
    "FourByteRegistry",
    "SignatureRegistry",
    "normalize_selector",
    "signature_info_from_text",
]
