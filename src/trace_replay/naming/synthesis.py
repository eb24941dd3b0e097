"""Variable-name and interface synthesis for registered addresses."""

import logging
from typing import Dict, List, Optional, Tuple

from ..abi import address_suffix
from ..models import AddressDeclaration, InterfaceDeclaration, SynthesisResult, TokenInfo
from ..trace.registry import AddressRegistry, ContractInterfaceSet
from .patterns import best_pattern, function_names, sanitize_identifier
from .well_known import lookup_well_known

logger = logging.getLogger(__name__)

RESERVED_NAMES = {"main_address"}


def enrichment_name(info: Optional[TokenInfo]) -> Optional[str]:
    """`<a>_<b>_pair` for pairs, `<symbol>_token` for ERC20s."""
    if info is None:
        return None
    if info.kind == "Pair" and len(info.paired_tokens) == 2 and all(info.paired_tokens):
        token0, token1 = info.paired_tokens
        return f"{token0.lower()}_{token1.lower()}_pair"
    if info.kind == "ERC20" and info.symbol:
        return f"{info.symbol.lower()}_token"
    return None


def enrichment_comment(info: Optional[TokenInfo]) -> Optional[str]:
    if info is None:
        return None
    if info.kind == "Pair" and len(info.paired_tokens) == 2:
        return f"{info.paired_tokens[0]}/{info.paired_tokens[1]} pair"
    if info.kind == "ERC20" and info.symbol:
        parts = [info.symbol]
        if info.name:
            parts[0] += f" ({info.name})"
        if info.decimals is not None:
            parts.append(f"{info.decimals} decimals")
        return ", ".join(parts)
    return None


def variable_name(
    address: str,
    signatures: List[str],
    info: Optional[TokenInfo] = None,
    chain_id: int = 1,
) -> Tuple[str, bool, Optional[str]]:
    """
    Base variable name for one address.

    Precedence: well-known table, enrichment, keyword pattern, fallback.

    Returns:
        (name, known, comment) where `known` marks well-known/enriched names
    """
    well_known = lookup_well_known(address, chain_id)
    if well_known:
        return sanitize_identifier(well_known.name), True, well_known.description

    enriched = enrichment_name(info)
    if enriched:
        return sanitize_identifier(enriched), True, enrichment_comment(info)

    category = best_pattern(signatures)
    if category:
        return sanitize_identifier(f"{category}_{address_suffix(address)}"), False, None

    return sanitize_identifier(f"contract_{address_suffix(address)}"), False, None


def interface_name(address: str, signatures: List[str]) -> str:
    """
    Interface name scoped to one address's own signature set.

    `I<Category>` when the set matches a pattern, else `I<PrimaryFunction>Contract`,
    else `IContract<last6>`.
    """
    category = best_pattern(signatures)
    if category:
        return sanitize_identifier(f"I{category[0].upper()}{category[1:]}")

    names = function_names(signatures)
    if names:
        primary = names[0]
        return sanitize_identifier(f"I{primary[0].upper()}{primary[1:]}Contract")

    return sanitize_identifier(f"IContract{address_suffix(address)}")


def _unique(name: str, taken: Dict[str, int]) -> str:
    """Suffix `_2`, `_3`... on collisions (case-insensitive, constants are upper-cased)."""
    key = name.lower()
    if key not in taken:
        taken[key] = 1
        return name
    count = taken[key]
    while True:
        count += 1
        candidate = f"{name}_{count}"
        if candidate.lower() not in taken:
            taken[key] = count
            taken[candidate.lower()] = 1
            return candidate


def synthesize(
    interface_set: ContractInterfaceSet,
    address_registry: AddressRegistry,
    enrichment: Optional[Dict[str, Optional[TokenInfo]]] = None,
    chain_id: int = 1,
) -> SynthesisResult:
    """
    Name every registered address and build merged interface declarations.

    Addresses are processed in registry (first-seen) order, which makes
    collision suffixes and interface emission order deterministic.

    Args:
        interface_set: Signatures observed per address
        address_registry: Registered addresses in first-seen order
        enrichment: Optional address -> TokenInfo mapping
        chain_id: Chain id for the well-known address table

    Returns:
        SynthesisResult with interface and address declarations
    """
    enrichment = enrichment or {}
    taken: Dict[str, int] = {name: 1 for name in RESERVED_NAMES}
    interfaces: Dict[str, InterfaceDeclaration] = {}
    declarations: List[AddressDeclaration] = []

    for address in address_registry.addresses():
        signatures = interface_set.signatures(address)
        base_name, known, comment = variable_name(address, signatures, enrichment.get(address), chain_id)
        name = _unique(base_name, taken)

        iface_name = interface_name(address, signatures)
        declaration = interfaces.get(iface_name)
        if declaration is None:
            declaration = InterfaceDeclaration(name=iface_name)
            interfaces[iface_name] = declaration
        declaration.addresses.append(address)
        for signature in signatures:
            if signature not in declaration.signatures:
                declaration.signatures.append(signature)

        declarations.append(AddressDeclaration(
            address=address,
            name=name,
            interface_name=iface_name,
            known=known,
            comment=comment,
        ))
        logger.debug(f"{address} -> {name} ({iface_name})")

    merged = sum(1 for d in interfaces.values() if len(d.addresses) > 1)
    logger.info(f"Synthesized {len(declarations)} address names and {len(interfaces)} interfaces ({merged} merged)")
    return SynthesisResult(
        interface_declarations=list(interfaces.values()),
        address_declarations=declarations,
    )
