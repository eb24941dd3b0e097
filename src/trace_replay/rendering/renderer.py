"""
Render the reconstructed call model as a Foundry test contract.

Output layout: header, file-level structs, interfaces, then
`contract TraceReproduction is Test` with address constants, `setUp()`,
callback handlers and `testReproduceTrace()`. Every ordering decision is
derived from the model, so identical input renders identical text.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..abi import checksum_address, is_canonical_signature, is_reference_type, parse_signature, selector_of
from ..models import (
    AddressDeclaration,
    CallbackRegion,
    DecodedCall,
    DecodeTier,
    InterfaceDeclaration,
)
from .callbacks import CallbackHandler, handler_for
from .formatting import ParameterFormatter
from .structs import StructRegistry

logger = logging.getLogger(__name__)

CONTRACT_NAME = "TraceReproduction"
SOLIDITY_PRAGMA = "^0.8.19"
INDENT = "    "


def constant_name(declaration: AddressDeclaration) -> str:
    return declaration.name.upper()


def sort_address_declarations(declarations: List[AddressDeclaration]) -> List[AddressDeclaration]:
    """Known (well-known or enriched) names first, then alphabetical."""
    return sorted(declarations, key=lambda d: (not d.known, constant_name(d), d.address))


class SolidityRenderer:
    def __init__(
        self,
        interface_declarations: List[InterfaceDeclaration],
        address_declarations: List[AddressDeclaration],
        main_actor: str,
        rpc_env_var: str = "RPC_URL",
        block_number: Optional[int] = None,
        transaction_hash: Optional[str] = None,
    ):
        self.interface_declarations = interface_declarations
        self.address_declarations = address_declarations
        self.main_actor = main_actor.lower()
        self.rpc_env_var = rpc_env_var
        self.block_number = block_number
        self.transaction_hash = transaction_hash

        self.structs = StructRegistry()
        self.constants: Dict[str, str] = {d.address: constant_name(d) for d in address_declarations}
        self.interfaces_by_address: Dict[str, str] = {d.address: d.interface_name for d in address_declarations}
        self.formatter = ParameterFormatter(self.main_actor, self.constants, self.structs)
        self._call_counter = 0

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _interface_function(self, signature: str) -> Optional[str]:
        if not is_canonical_signature(signature):
            return None
        name, types = parse_signature(signature)

        params = []
        for abi_type in types:
            solidity_type = self.structs.solidity_type(abi_type)
            if is_reference_type(abi_type):
                solidity_type += " calldata"
            params.append(solidity_type)
        return f"function {name}({', '.join(params)}) external;"

    def render_interfaces(self) -> str:
        blocks = []
        emitted = set()
        for declaration in self.interface_declarations:
            if declaration.name in emitted or not declaration.signatures:
                continue
            functions = [f for f in (self._interface_function(s) for s in declaration.signatures) if f]
            if not functions:
                continue
            emitted.add(declaration.name)
            lines = [f"interface {declaration.name} {{"]
            lines.extend(f"{INDENT}{function}" for function in functions)
            lines.append("}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def render_constants(self) -> List[str]:
        lines = [f"{INDENT}address constant MAIN_ADDRESS = {checksum_address(self.main_actor)};"]
        for declaration in sort_address_declarations(self.address_declarations):
            if declaration.address == self.main_actor:
                continue
            line = f"{INDENT}address constant {constant_name(declaration)} = {checksum_address(declaration.address)};"
            if declaration.comment:
                line += f" // {declaration.comment}"
            lines.append(line)
        return lines

    def render_setup(self) -> List[str]:
        fork_args = f'vm.envString("{self.rpc_env_var}")'
        if self.block_number is not None:
            fork_args += f", {self.block_number}"

        lines = [
            f"{INDENT}function setUp() public {{",
            f"{INDENT * 2}vm.createSelectFork({fork_args});",
            f'{INDENT * 2}vm.label(MAIN_ADDRESS, "MainAddress");',
        ]
        for declaration in sort_address_declarations(self.address_declarations):
            if declaration.address == self.main_actor:
                continue
            lines.append(f'{INDENT * 2}vm.label({constant_name(declaration)}, "{declaration.name}");')
        lines.append(f"{INDENT * 2}vm.deal(MAIN_ADDRESS, 10 ether);")
        lines.append(f"{INDENT}}}")
        return lines

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _target(self, call: DecodedCall) -> str:
        return self.formatter.format_address(call.target)

    def _is_typed_replayable(self, call: DecodedCall) -> bool:
        if call.requires_raw_replay:
            return False
        if not is_canonical_signature(call.signature):
            return False
        if call.selector:
            # The interface selector must reproduce the recorded one
            try:
                return selector_of(call.signature) == call.selector.lower()
            except ValueError:
                return False
        return True

    def _low_level(self, target: str, value: str, payload: str, indent: str) -> List[str]:
        self._call_counter += 1
        n = self._call_counter
        value_part = f"{{value: {value}}}" if value and value != "0" else ""
        return [
            f"{indent}(bool ok{n}, bytes memory ret{n}) = {target}.call{value_part}({payload});",
            f'{indent}require(ok{n}, "call {n} failed");',
        ]

    def _raw_comment(self, call: DecodedCall) -> str:
        if call.tier == DecodeTier.NATIVE_TRANSFER:
            return "native transfer"
        if call.tier == DecodeTier.OPAQUE:
            return f"{call.name}: selector {call.selector} could not be resolved, replaying raw payload"
        if not is_canonical_signature(call.signature):
            return f"{call.signature}: parameter types are unknown, replaying raw payload"
        if call.tier == DecodeTier.RESOLVER_RAW:
            return f"{call.signature}: parameters did not decode, replaying raw payload"
        return f"{call.signature}: signature does not match selector {call.selector}, replaying raw payload"

    def render_call(self, call: DecodedCall, indent: str) -> List[str]:
        """
        Lines for one call.

        Raw payload when the call could not be typed, a value-bearing
        low-level call when a typed call carries native value, otherwise a
        typed call through the synthesized interface.
        """
        target = self._target(call)
        location = f"[{call.node_key}] " if call.node_key is not None else ""

        if not self._is_typed_replayable(call):
            lines = [f"{indent}// {location}{self._raw_comment(call)}"]
            if call.tier == DecodeTier.RESOLVER_RAW and call.params:
                reconstructed = ", ".join(f"{p.name}: {p.type} = {p.value}" for p in call.params).replace("\n", " ")
                lines.append(f"{indent}// reconstructed: {reconstructed}")
            payload = call.raw_call_data or "0x"
            payload = f'hex"{payload[2:]}"' if len(payload) > 2 else '""'
            return lines + self._low_level(target, call.value, payload, indent)

        args = self.formatter.format_params(call.params)
        prelude = [f"{indent}{statement}" for statement in self.formatter.take_statements()]
        if call.has_value:
            encoded = f'abi.encodeWithSignature("{call.signature}"{", " + args if args else ""})'
            return [f"{indent}// {location}{call.name} (with value)"] + prelude + self._low_level(
                target, call.value, encoded, indent
            )

        interface = self.interfaces_by_address.get(call.target)
        if not interface:
            logger.warning(f"No interface synthesized for {call.target}; using raw payload")
            payload = f'hex"{call.raw_call_data[2:]}"' if len(call.raw_call_data or "") > 2 else '""'
            return [f"{indent}// {location}{call.name}"] + self._low_level(target, call.value, payload, indent)
        return [f"{indent}// {location}{call.name}"] + prelude + [
            f"{indent}{interface}({target}).{call.name}({args});",
        ]

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _group_regions(self, regions: List[CallbackRegion]) -> List[Tuple[CallbackHandler, List[CallbackRegion]]]:
        groups: List[Tuple[CallbackHandler, List[CallbackRegion]]] = []
        for region in regions:
            handler = handler_for(region.kind)
            for existing, members in groups:
                if existing.header == handler.header:
                    members.append(region)
                    break
            else:
                groups.append((handler, [region]))
        return groups

    def _render_region(self, region: CallbackRegion, indent: str) -> List[str]:
        note = f"{region.kind.value} region from node {region.trigger_key} (keys {region.start}-{region.end - 1})"
        if region.possibly_truncated:
            note += ", possibly truncated: a main-actor call follows the window"
        lines = [f"{indent}// {note}"]
        if not region.calls:
            lines.append(f"{indent}// no main-actor calls recorded in this region")
        for call in region.calls:
            lines.extend(self.render_call(call, indent))
        return lines

    def render_callback_handler(self, handler: CallbackHandler, regions: List[CallbackRegion]) -> List[str]:
        """
        One handler per callback kind.

        With several regions of one kind, each entry into the handler replays
        only its own region, selected by the handler's entry counter.
        """
        lines = [f"{INDENT}{handler.header} {{"]
        if len(regions) == 1:
            lines.extend(self._render_region(regions[0], INDENT * 2))
        else:
            lines.append(f"{INDENT * 2}uint256 invocation = {handler.counter_name}++;")
            for index, region in enumerate(regions):
                keyword = "if" if index == 0 else "} else if"
                lines.append(f"{INDENT * 2}{keyword} (invocation == {index}) {{")
                lines.extend(self._render_region(region, INDENT * 3))
            lines.append(f"{INDENT * 2}}}")
        if handler.footer:
            lines.append(f"{INDENT * 2}{handler.footer}")
        lines.append(f"{INDENT}}}")
        return lines

    def render_test_function(self, top_level_calls: List[DecodedCall], regions: List[CallbackRegion]) -> List[str]:
        calls = list(top_level_calls)
        calls.extend(region.trigger_call for region in regions if region.trigger_call)
        calls.sort(key=lambda c: (c.order if c.order is not None else -1, c.sequence))

        lines = [
            f"{INDENT}function testReproduceTrace() public {{",
            f"{INDENT * 2}vm.startPrank(MAIN_ADDRESS);",
        ]
        for call in calls:
            lines.extend(self.render_call(call, INDENT * 2))
        lines.append(f"{INDENT * 2}vm.stopPrank();")
        lines.append(f"{INDENT}}}")
        return lines

    def render(self, top_level_calls: List[DecodedCall], callback_regions: List[CallbackRegion]) -> str:
        # Interfaces first: they register structs in declaration order
        interfaces = self.render_interfaces()
        groups = self._group_regions(callback_regions)

        body: List[str] = []
        body.extend(self.render_constants())
        counters = [handler.counter_name for handler, regions in groups if len(regions) > 1]
        if counters:
            body.append("")
            body.extend(f"{INDENT}uint256 private {counter};" for counter in counters)
        body.append("")
        body.extend(self.render_setup())
        for handler, regions in groups:
            body.append("")
            body.extend(self.render_callback_handler(handler, regions))
        body.append("")
        body.extend(self.render_test_function(top_level_calls, callback_regions))

        sections = [
            "// SPDX-License-Identifier: MIT",
            f"pragma solidity {SOLIDITY_PRAGMA};",
            "",
            'import "forge-std/Test.sol";',
            'import "forge-std/console.sol";',
        ]
        if self.transaction_hash:
            sections += ["", f"// Reproduces transaction {self.transaction_hash}"]

        file_level = [h.requires for h, _ in groups if h.requires]
        if len(self.structs):
            file_level.append(self.structs.render())
        for block in dict.fromkeys(file_level):
            sections += ["", block]
        if interfaces:
            sections += ["", interfaces]

        sections += ["", f"contract {CONTRACT_NAME} is Test {{"]
        sections.extend(body)
        sections.append("}")
        return "\n".join(sections) + "\n"


def render(
    top_level_calls: List[DecodedCall],
    callback_regions: List[CallbackRegion],
    interface_declarations: List[InterfaceDeclaration],
    address_declarations: List[AddressDeclaration],
    main_actor: str,
    rpc_env_var: str = "RPC_URL",
    block_number: Optional[int] = None,
    transaction_hash: Optional[str] = None,
) -> str:
    """
    Render the replay harness source.

    Args:
        top_level_calls: Main-actor calls outside callback regions, in order
        callback_regions: Detected callback regions
        interface_declarations: Merged interfaces from naming synthesis
        address_declarations: Named addresses from naming synthesis
        main_actor: Main-actor address
        rpc_env_var: Environment variable holding the fork RPC URL
        block_number: Optional fork block
        transaction_hash: Optional transaction hash noted in the header

    Returns:
        Solidity source text
    """
    renderer = SolidityRenderer(
        interface_declarations,
        address_declarations,
        main_actor,
        rpc_env_var=rpc_env_var,
        block_number=block_number,
        transaction_hash=transaction_hash,
    )
    return renderer.render(top_level_calls, callback_regions)
