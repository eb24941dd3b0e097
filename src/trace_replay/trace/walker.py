"""
Trace walking and callback-region detection.

Nodes are visited in ordering-key order. Main-actor invocations are decoded
and either replayed at top level, attached to the callback region they fall
in, or open a new region when they match the trigger vocabulary.

Traces carry no return markers, so a region spans a fixed lookahead window
after its trigger. Main-actor calls landing just past a window's end are
flagged as a likely mis-bounded region.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..abi import is_canonical_signature, normalize_address
from ..decoding import CallDecoder
from ..models import CallbackRegion, DecodedCall, DecodeTier, Invocation, TraceNode, WalkResult
from .callbacks import classify_callback, match_trigger
from .registry import AddressRegistry, ContractInterfaceSet

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_WINDOW = 50
DEFAULT_BOUNDARY_SLACK = 1


class TraceWalker:
    def __init__(
        self,
        decoder: CallDecoder,
        address_registry: AddressRegistry,
        interface_set: ContractInterfaceSet,
        abi_source=None,
        callback_window: int = DEFAULT_CALLBACK_WINDOW,
        boundary_slack: int = DEFAULT_BOUNDARY_SLACK,
        include_static_calls: bool = False,
    ):
        """
        Args:
            decoder: Call decoder (owns the signature resolver)
            address_registry: Run-owned address registry, filled in traversal order
            interface_set: Run-owned interface set, filled in traversal order
            abi_source: Optional object with `get_abi(address)` feeding the ABI tier
            callback_window: Lookahead window (in ordering keys) of a callback region
            boundary_slack: Keys at/after a region's end where a main-actor call flags the region
            include_static_calls: Replay STATICCALL invocations too
        """
        if callback_window < 1:
            raise ValueError(f"callback_window must be positive, got {callback_window}")
        self.decoder = decoder
        self.address_registry = address_registry
        self.interface_set = interface_set
        self.abi_source = abi_source
        self.callback_window = callback_window
        self.boundary_slack = max(0, boundary_slack)
        self.include_static_calls = include_static_calls

    async def _local_abi(self, address: str):
        if self.abi_source is None:
            return None
        try:
            return await asyncio.to_thread(self.abi_source.get_abi, address)
        except Exception as e:
            logger.warning(f"⚠️  ABI lookup failed for {address}: {e}")
            return None

    def _register(self, call: DecodedCall):
        self.address_registry.register(call.target)
        if call.tier in (DecodeTier.OPAQUE, DecodeTier.NATIVE_TRANSFER) or not is_canonical_signature(call.signature):
            # Only concrete signatures can be declared in an interface
            self.interface_set.ensure(call.target)
        else:
            self.interface_set.add(call.target, call.signature)

    def _is_replayed(self, invocation: Invocation, main_actor: str) -> bool:
        if invocation.from_address != main_actor:
            return False
        if invocation.is_static_call and not self.include_static_calls:
            return False
        if not invocation.to_address:
            logger.warning("⚠️  Skipping main-actor invocation without a target (contract creation?)")
            return False
        return True

    async def _callback_name(self, invocation: Invocation) -> Optional[str]:
        if invocation.decoded_method is not None:
            return invocation.decoded_method.name
        if not invocation.selector:
            return None
        try:
            info = await self.decoder.resolver.resolve(invocation.selector)
        except Exception as e:
            logger.warning(f"⚠️  Could not resolve callback selector {invocation.selector}: {e}")
            return None
        return info.function_name if info else None

    async def _observed_callback(
        self, nodes: Sequence[TraceNode], position: int, end: int, main_actor: str
    ) -> Optional[str]:
        """Name of the first named inbound call to the main actor inside the window."""
        for node in nodes[position + 1:]:
            if node.order >= end:
                break
            for invocation in node.invocations:
                if invocation.to_address == main_actor and invocation.from_address != main_actor:
                    name = await self._callback_name(invocation)
                    if name:
                        return name
        return None

    async def _open_region(
        self,
        nodes: Sequence[TraceNode],
        position: int,
        trigger: DecodedCall,
        expected_callback: str,
        main_actor: str,
    ) -> CallbackRegion:
        node = nodes[position]
        start = node.order + 1
        end = node.order + self.callback_window
        observed = await self._observed_callback(nodes, position, end, main_actor)
        callback_method = observed or expected_callback
        kind = classify_callback(callback_method)

        logger.info(
            f"Callback region {kind.value} opened by {trigger.name} at node {node.key} "
            f"(keys {start}..{end - 1}, callback {callback_method})"
        )
        return CallbackRegion(
            kind=kind,
            trigger_key=node.key,
            trigger_order=node.order,
            start=start,
            end=end,
            callback_method=callback_method,
            trigger_call=trigger,
        )

    def _check_boundary(self, region: Optional[CallbackRegion], order: int, result: WalkResult):
        if region is None or region.possibly_truncated:
            return
        if region.end <= order < region.end + self.boundary_slack:
            region.possibly_truncated = True
            result.boundary_warnings.append(region.trigger_key)
            logger.warning(
                f"⚠️  Main-actor call at key {order} lands right after the callback window of "
                f"node {region.trigger_key}; the region may be truncated (window={self.callback_window})"
            )

    async def walk(self, nodes: List[TraceNode], main_actor: str) -> WalkResult:
        """
        Reconstruct top-level calls and callback regions.

        Args:
            nodes: Ingested trace nodes
            main_actor: Address whose outbound calls are replayed

        Returns:
            WalkResult with top-level calls, callback regions and boundary warnings

        Raises:
            ValueError: if `main_actor` is not a valid address
        """
        main = normalize_address(main_actor)
        if not main:
            raise ValueError(f"Invalid main actor address: {main_actor!r}")

        ordered = sorted(nodes, key=lambda n: (n.order, n.key))
        result = WalkResult()
        region: Optional[CallbackRegion] = None
        sequence = 0

        for position, node in enumerate(ordered):
            for invocation in node.invocations:
                if not self._is_replayed(invocation, main):
                    continue

                local_abi = await self._local_abi(invocation.to_address)
                call = await self.decoder.decode_invocation(invocation, local_abi)
                call.node_key = node.key
                call.order = node.order
                call.sequence = sequence
                sequence += 1
                self._register(call)

                if region is not None and region.contains(node.order):
                    region.calls.append(call)
                    continue

                self._check_boundary(region, node.order, result)

                expected_callback = match_trigger(call)
                if expected_callback:
                    region = await self._open_region(ordered, position, call, expected_callback, main)
                    result.callback_regions.append(region)
                    continue

                result.top_level_calls.append(call)

        logger.info(
            f"Walk complete: {len(result.top_level_calls)} top-level calls, "
            f"{len(result.callback_regions)} callback regions, "
            f"{len(self.address_registry)} addresses"
        )
        return result
