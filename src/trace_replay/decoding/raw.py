"""
Best-effort parameter reconstruction from raw 32-byte words.

Used when a signature is known but its parameter types do not decode the
payload. Each word is interpreted from the declared type at its position when
that type is a static scalar, otherwise heuristically. Ambiguous words can
come out wrong (a small integer declared `bool` reads as a boolean); callers
replay such calls from the raw payload.
"""

import re
from typing import List, Optional

from ..models import DecodedParam

WORD_SIZE = 32
# Values this large with 12 leading zero bytes are more likely addresses
ADDRESS_HEURISTIC_FLOOR = 2 ** 128

_INT_TYPE = re.compile(r'^int(\d*)$')


def interpret_word(word: bytes, declared_type: Optional[str] = None):
    """
    Interpret one 32-byte word.

    Returns:
        (type, value) tuple
    """
    declared_type = declared_type or ""
    as_int = int.from_bytes(word, "big")

    if declared_type == "address":
        return "address", "0x" + word[-20:].hex()

    if declared_type == "bool":
        return "bool", as_int != 0

    int_match = _INT_TYPE.match(declared_type)
    if int_match:
        # Words are sign-extended to 256 bits regardless of the declared width
        if as_int >= 2 ** 255:
            as_int -= 2 ** 256
        return declared_type if int_match.group(1) else "int256", as_int

    if word[:12] == b"\x00" * 12 and as_int >= ADDRESS_HEURISTIC_FLOOR:
        return "address", "0x" + word[-20:].hex()
    return "uint256", as_int


def reconstruct_params(payload: bytes, declared_types: Optional[List[str]] = None) -> List[DecodedParam]:
    """
    Slice `payload` (selector already stripped) into words and interpret each.

    A trailing partial word is kept verbatim as a `bytes` parameter.
    """
    declared_types = declared_types or []
    params = []
    full_words = len(payload) // WORD_SIZE

    for index in range(full_words):
        word = payload[index * WORD_SIZE:(index + 1) * WORD_SIZE]
        declared = declared_types[index] if index < len(declared_types) else None
        param_type, value = interpret_word(word, declared)
        params.append(DecodedParam(name=f"param{index}", type=param_type, value=value))

    remainder = payload[full_words * WORD_SIZE:]
    if remainder:
        params.append(DecodedParam(name=f"param{full_words}", type="bytes", value="0x" + remainder.hex()))
    return params


class RawReconstructionMixin:
    def _reconstruct_params(self, payload: bytes, declared_types: Optional[List[str]] = None) -> List[DecodedParam]:
        return reconstruct_params(payload, declared_types)
