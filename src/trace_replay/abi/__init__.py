"""ABI parsing, selector and address helpers."""

from .abi import ABI, load_abi, selector_of
from .addresses import address_suffix, checksum_address, looks_like_address, normalize_address
from .sources import COMMON_SIGNATURES, ExplorerAbiSource, KnownAbiDirectory, build_signature_table
from .types import (
    array_element_type,
    canonical_signature,
    is_array_type,
    is_bytes_type,
    is_canonical_signature,
    is_canonical_type,
    is_dynamic_array,
    is_integer_type,
    is_reference_type,
    is_tuple_type,
    is_valid_identifier,
    normalize_type_aliases,
    parse_signature,
    split_parameter_types,
    split_tuple_type,
    tuple_components,
)
from .values import infer_abi_type, infer_tuple_array_type, infer_tuple_type, struct_field_values

__all__ = [
    "ABI",
    "COMMON_SIGNATURES",
    "ExplorerAbiSource",
    "KnownAbiDirectory",
    "address_suffix",
    "array_element_type",
    "build_signature_table",
    "canonical_signature",
    "checksum_address",
    "infer_abi_type",
    "infer_tuple_array_type",
    "infer_tuple_type",
    "is_array_type",
    "is_bytes_type",
    "is_canonical_signature",
    "is_canonical_type",
    "is_dynamic_array",
    "is_integer_type",
    "is_reference_type",
    "is_tuple_type",
    "is_valid_identifier",
    "load_abi",
    "looks_like_address",
    "normalize_address",
    "normalize_type_aliases",
    "parse_signature",
    "selector_of",
    "split_parameter_types",
    "split_tuple_type",
    "struct_field_values",
    "tuple_components",
]
