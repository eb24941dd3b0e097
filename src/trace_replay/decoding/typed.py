"""Typed parameter decoding with the web3 ABI codec."""

import logging
from typing import Any, List, Optional

from web3 import Web3

from ..abi import array_element_type, is_array_type, tuple_components
from ..models import DecodedParam

logger = logging.getLogger(__name__)


class TypedDecodingMixin:
    w3: Web3

    def _convert_decoded_value(self, value: Any, param_type: str) -> Any:
        """
        Recursively convert decoded ABI values to plain Python values.

        Handles:
        - bytes → hex strings
        - addresses → lowercase hex strings
        - tuples (structs) → ordered lists of component values
        - arrays (including arrays of structs) → lists

        Args:
            value: Raw decoded value from web3
            param_type: Canonical ABI type string for the value

        Returns:
            Converted value
        """
        if is_array_type(param_type):
            element_type = array_element_type(param_type)
            return [self._convert_decoded_value(item, element_type) for item in value]

        if param_type.startswith("("):
            components = tuple_components(param_type)
            return [
                self._convert_decoded_value(item, component)
                for item, component in zip(value, components)
            ]

        if isinstance(value, (bytes, bytearray)):
            return "0x" + bytes(value).hex()

        if param_type == "address" and isinstance(value, str):
            return value.lower()

        return value

    def _decode_typed_params(
        self,
        types: List[str],
        payload: bytes,
        names: Optional[List[str]] = None,
    ) -> Optional[List[DecodedParam]]:
        """
        Decode the argument bytes (selector already stripped) per `types`.

        A zero-parameter type list only matches an empty payload.

        Returns:
            DecodedParam list, or None if the payload does not fit the types
        """
        if not types:
            return [] if not payload else None

        try:
            decoded_values = self.w3.codec.decode(types, payload)
        except Exception as e:
            logger.debug(f"Typed decode failed for ({','.join(types)}): {e}")
            return None

        params = []
        for index, (param_type, value) in enumerate(zip(types, decoded_values)):
            name = names[index] if names and index < len(names) and names[index] else f"param{index}"
            params.append(DecodedParam(
                name=name,
                type=param_type,
                value=self._convert_decoded_value(value, param_type),
            ))
        return params
