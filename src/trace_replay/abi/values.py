"""ABI type inference for trace-supplied parameter values."""

import re
from typing import Any, Dict, List, Optional

from .addresses import looks_like_address

_INTEGER = re.compile(r'^-?\d+$')
_HEX_BYTES = re.compile(r'^0x([0-9a-fA-F]{2})*$')


def struct_field_values(value: Dict[Any, Any]) -> List[Any]:
    """
    Field values of a struct given as a mapping.

    Decoders often return each field twice, by name and by position
    ("token", "amount", "0", "1"); named keys win and keep their order.
    """
    named = [key for key in value if not str(key).isdigit()]
    if named:
        return [value[key] for key in named]
    return [value[key] for key in sorted(value, key=lambda k: int(k))]


def infer_abi_type(value: Any) -> Optional[str]:
    """
    Best ABI type for a decoded value, or None when its shape is ambiguous.

    Mappings become tuples; lists become dynamic arrays of one element type.
    """
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int256" if value < 0 else "uint256"
    if isinstance(value, str):
        text = value.strip()
        if looks_like_address(text):
            return "address"
        if _INTEGER.match(text):
            return "int256" if text.startswith("-") else "uint256"
        if _HEX_BYTES.match(text):
            return "bytes"
        return "string"
    if isinstance(value, dict):
        return infer_tuple_type(value)
    if isinstance(value, (list, tuple)):
        return _array_of([infer_abi_type(item) for item in value])
    return None


def infer_tuple_type(value: Any) -> Optional[str]:
    """Tuple type for a struct given as a mapping or a positional list."""
    if isinstance(value, dict):
        fields = struct_field_values(value)
    elif isinstance(value, (list, tuple)):
        fields = list(value)
    else:
        return None

    components = [infer_abi_type(field) for field in fields]
    if not components or None in components:
        return None
    return f"({','.join(components)})"


def infer_tuple_array_type(value: Any) -> Optional[str]:
    if not isinstance(value, (list, tuple)):
        return None
    return _array_of([infer_tuple_type(item) for item in value])


def _array_of(element_types: List[Optional[str]]) -> Optional[str]:
    if not element_types or None in element_types or len(set(element_types)) != 1:
        return None
    return f"{element_types[0]}[]"
