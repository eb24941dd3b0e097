"""Solidity rendering of the reconstructed call model."""

from .callbacks import CALLBACK_HANDLERS, CallbackHandler, handler_for
from .formatting import ParameterFormatter, escape_string, hex_literal, parse_integer
from .renderer import CONTRACT_NAME, SolidityRenderer, render, sort_address_declarations
from .structs import StructRegistry

__all__ = [
    "CALLBACK_HANDLERS",
    "CONTRACT_NAME",
    "CallbackHandler",
    "ParameterFormatter",
    "SolidityRenderer",
    "StructRegistry",
    "escape_string",
    "handler_for",
    "hex_literal",
    "parse_integer",
    "render",
    "sort_address_declarations",
]
