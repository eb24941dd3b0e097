"""Solidity literal formatting for decoded parameter values."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from ..abi import (
    array_element_type,
    checksum_address,
    is_array_type,
    is_dynamic_array,
    is_integer_type,
    looks_like_address,
    struct_field_values,
    tuple_components,
)
from .structs import StructRegistry

logger = logging.getLogger(__name__)

_HEX_BODY = re.compile(r'^[0-9a-fA-F]*$')


def parse_integer(value: Any) -> Optional[int]:
    """
    Integer from an int, bool or numeric string.

    Thousands separators (",", "_", spaces) are stripped; "0x" strings are hex.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, str):
        return None
    text = value.replace(",", "").replace("_", "").replace(" ", "").strip()
    if not text:
        return None
    try:
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text)
    except ValueError:
        return None


def escape_string(value: str) -> str:
    """Quoted Solidity string literal; non-ASCII text uses a `unicode` literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    escaped = "".join(c if c.isprintable() or ord(c) > 127 else f"\\x{ord(c):02x}" for c in escaped)
    if any(ord(c) > 127 for c in escaped):
        return f'unicode"{escaped}"'
    return f'"{escaped}"'


def hex_literal(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return f'hex"{bytes(value).hex()}"'
    text = str(value or "").strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if _HEX_BODY.match(text) and len(text) % 2 == 0:
        return f'hex"{text.lower()}"'
    # Not hex: keep the bytes of the text itself
    return f'bytes({escape_string(text)})'


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, dict):
        return struct_field_values(value)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                text = text[1:-1] if text.endswith("]") else text[1:]
        if not text:
            return []
        return [part.strip() for part in text.split(",")]
    return [value]


class ParameterFormatter:
    """
    Render decoded values as Solidity expressions.

    Args:
        main_actor: Lowercase main-actor address, rendered as `address(this)`
        constants: Lowercase address -> constant name
        structs: Struct registry used for tuple values
    """

    def __init__(self, main_actor: str, constants: Dict[str, str], structs: StructRegistry):
        self.main_actor = (main_actor or "").lower()
        self.constants = {k.lower(): v for k, v in constants.items()}
        self.structs = structs
        self._statements: List[str] = []
        self._local_counter = 0

    def format_address(self, value: Any) -> str:
        if isinstance(value, str) and looks_like_address(value.strip()):
            address = value.strip().lower()
            if address == self.main_actor:
                return "address(this)"
            if address in self.constants:
                return self.constants[address]
            return checksum_address(address)

        number = parse_integer(value)
        if number is not None:
            return f"address(uint160({number}))"
        logger.debug(f"Unrecognized address value {value!r}; rendering address(0)")
        return "address(0)"

    def format_integer(self, value: Any, param_type: str) -> str:
        number = parse_integer(value)
        if number is None:
            logger.debug(f"Unparseable {param_type} value {value!r}; rendering 0")
            # The echoed value must not close the comment early
            echoed = str(value)[:40].replace("*/", "* /")
            return f"0 /* {echoed} */"
        return str(number)

    def format_bool(self, value: Any) -> str:
        if isinstance(value, str):
            return "true" if value.strip().lower() in ("true", "1") else "false"
        return "true" if value else "false"

    def format_array(self, value: Any, param_type: str) -> str:
        """
        Static arrays render as literals. Dynamic arrays are built in a
        memory local (see `take_statements()`), since a `T[n]` literal does
        not convert to `T[]`.
        """
        element_type = array_element_type(param_type)
        solidity_element = self.structs.solidity_type(element_type)
        items = _as_list(value)
        if is_dynamic_array(param_type):
            if not items:
                return f"new {solidity_element}[](0)"
            rendered = [self.format_value(item, element_type) for item in items]
            self._local_counter += 1
            local = f"arr{self._local_counter}"
            self._statements.append(f"{solidity_element}[] memory {local} = new {solidity_element}[]({len(items)});")
            self._statements.extend(f"{local}[{index}] = {item};" for index, item in enumerate(rendered))
            return local

        if not items:
            return "[]"
        rendered = [self.format_value(item, element_type) for item in items]
        if is_integer_type(element_type):
            # Array literals take the type of their first element
            rendered[0] = f"{element_type}({rendered[0]})"
        return f"[{', '.join(rendered)}]"

    def format_tuple(self, value: Any, param_type: str) -> str:
        components = tuple_components(param_type)
        struct_name = self.structs.name_for(param_type)
        items = _as_list(value)
        fields = []
        for index, component in enumerate(components):
            item = items[index] if index < len(items) else None
            fields.append(self.format_value(item, component))
        return f"{struct_name}({', '.join(fields)})"

    def format_value(self, value: Any, param_type: str) -> str:
        """Format one value of ABI type `param_type`, recursing into arrays and tuples."""
        param_type = (param_type or "").strip()

        if is_array_type(param_type):
            return self.format_array(value, param_type)
        if param_type.startswith("("):
            return self.format_tuple(value, param_type)
        if param_type == "address":
            return self.format_address(value)
        if param_type == "bool":
            return self.format_bool(value)
        if is_integer_type(param_type):
            return self.format_integer(value, param_type)
        if param_type == "string":
            return escape_string("" if value is None else str(value))
        if param_type.startswith("bytes"):
            return hex_literal(value)

        # Unknown type tag: best guess from the value itself
        if isinstance(value, str) and looks_like_address(value):
            return self.format_address(value)
        if isinstance(value, bool):
            return self.format_bool(value)
        number = parse_integer(value)
        if number is not None:
            return str(number)
        return escape_string("" if value is None else str(value))

    def format_params(self, params) -> str:
        return ", ".join(self.format_value(p.value, p.type) for p in params)

    def take_statements(self) -> List[str]:
        """Statements that must run before the last formatted expressions, then reset."""
        statements, self._statements = self._statements, []
        return statements
