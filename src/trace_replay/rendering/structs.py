"""Struct synthesis for tuple-typed parameters."""

from typing import Dict, List, Tuple

from ..abi import split_tuple_type, tuple_components


class StructRegistry:
    """
    Tuple type -> `StructN`, assigned in first-seen order.

    Nested tuple components are registered before the tuple that contains
    them, so declarations can be emitted in registration order. Structurally
    identical tuples share one struct.
    """

    def __init__(self, prefix: str = "Struct"):
        self.prefix = prefix
        self._structs: Dict[str, str] = {}
        self._fields: Dict[str, List[str]] = {}

    def register(self, tuple_type: str) -> str:
        """Register a (non-array) tuple type and return its struct name."""
        tuple_type = tuple_type.strip()
        if tuple_type in self._structs:
            return self._structs[tuple_type]

        components = tuple_components(tuple_type)
        field_types = [self.solidity_type(component) for component in components]

        name = f"{self.prefix}{len(self._structs) + 1}"
        self._structs[tuple_type] = name
        self._fields[name] = field_types
        return name

    def solidity_type(self, abi_type: str) -> str:
        """
        Solidity spelling of an ABI type, registering any tuples it contains.

        "(address,uint256)[]" -> "Struct1[]"
        """
        abi_type = abi_type.strip()
        if abi_type.startswith("("):
            inner, suffix = split_tuple_type(abi_type)
            if inner is None:
                return abi_type
            return self.register(f"({inner})") + suffix
        return abi_type

    def register_signature_types(self, types: List[str]):
        for abi_type in types:
            self.solidity_type(abi_type)

    def name_for(self, tuple_type: str) -> str:
        return self.register(tuple_type)

    def declarations(self) -> List[Tuple[str, List[str]]]:
        return [(name, list(self._fields[name])) for name in self._structs.values()]

    def render(self, indent: str = "") -> str:
        blocks = []
        for name, fields in self.declarations():
            lines = [f"{indent}struct {name} {{"]
            for index, field_type in enumerate(fields):
                lines.append(f"{indent}    {field_type} f{index};")
            lines.append(f"{indent}}}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def __len__(self):
        return len(self._structs)
