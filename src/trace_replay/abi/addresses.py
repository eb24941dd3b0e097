"""Address normalization and EIP-55 checksumming."""

import re
from typing import Optional

from eth_utils import is_hex_address, to_checksum_address

_ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')


def looks_like_address(value) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(address: Optional[str]) -> Optional[str]:
    """Lower-case a 20-byte hex address, or return None if it is not one."""
    if not isinstance(address, str):
        return None
    address = address.strip()
    if not address.startswith('0x') and len(address) == 40:
        address = '0x' + address
    if not is_hex_address(address):
        return None
    return address.lower()


def checksum_address(address: str) -> str:
    """
    Render an address in EIP-55 mixed-case form.

    Non-address input is returned unchanged so callers can render it verbatim.
    """
    if not looks_like_address(address):
        return address
    return to_checksum_address(address)


def address_suffix(address: str, length: int = 6) -> str:
    """Last `length` hex characters of an address, lower-case."""
    return address.lower()[-length:]
