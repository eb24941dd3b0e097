"""Selector resolution and tiered call decoding."""

from .decoder import NATIVE_TRANSFER_NAME, CallDecoder, opaque_name, parse_call_data
from .overrides import TypeOverride, TypeOverrideRegistry, default_type_overrides
from .raw import interpret_word, reconstruct_params
from .resolver import SignatureResolver

__all__ = [
    "CallDecoder",
    "NATIVE_TRANSFER_NAME",
    "SignatureResolver",
    "TypeOverride",
    "TypeOverrideRegistry",
    "default_type_overrides",
    "interpret_word",
    "opaque_name",
    "parse_call_data",
    "reconstruct_params",
]
