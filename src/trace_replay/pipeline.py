"""
Replay pipeline run object.

One ReplayPipeline owns all mutable state of a run (address registry,
interface set, signature cache). `build_model()` walks, decodes and enriches;
it freezes the registries before `render_model()` reads them.
"""

import asyncio
import logging
from typing import Any, List, Optional

from .abi import ExplorerAbiSource
from .clients import EtherfaceRegistry, FourByteRegistry
from .config import ConfigManager
from .decoding import CallDecoder, SignatureResolver, TypeOverrideRegistry
from .enrichment import enrich_addresses_async
from .models import ReplayModel
from .naming import lookup_well_known, synthesize
from .rendering import render
from .trace import (
    DEFAULT_BOUNDARY_SLACK,
    DEFAULT_CALLBACK_WINDOW,
    AddressRegistry,
    ContractInterfaceSet,
    TraceWalker,
    extract_transaction_hash,
    parse_trace,
    resolve_main_actor,
)

logger = logging.getLogger(__name__)


class ReplayPipeline:
    def __init__(
        self,
        registries: Optional[List] = None,
        enrichment=None,
        abi_source: Optional[ExplorerAbiSource] = None,
        chain: str = "ethereum",
        config_manager: Optional[ConfigManager] = None,
        callback_window: int = DEFAULT_CALLBACK_WINDOW,
        boundary_slack: int = DEFAULT_BOUNDARY_SLACK,
        lookup_timeout: float = 10.0,
        enrichment_concurrency: int = 6,
        type_overrides: Optional[TypeOverrideRegistry] = None,
        local_signatures: Optional[List[str]] = None,
        include_static_calls: bool = False,
    ):
        """
        Args:
            registries: Signature registries, primary first. None uses
                4byte.directory then Etherface; pass [] to stay offline.
            enrichment: Optional token enrichment (`async describe(address)`)
            abi_source: Optional verified-ABI source for the typed-ABI tier
            chain: Chain name for fork setup and the well-known address table
            config_manager: Chain configuration (built-in table by default)
            callback_window: Callback region lookahead, in ordering keys
            boundary_slack: Keys past a region's end that flag it as truncated
            lookup_timeout: Per-lookup timeout for registries and enrichment
            enrichment_concurrency: Maximum enrichment lookups in flight
            type_overrides: Positional type overrides (defaults built in)
            local_signatures: Signatures resolved without network access
            include_static_calls: Replay STATICCALL invocations too
        """
        if registries is None:
            registries = [FourByteRegistry(timeout=lookup_timeout), EtherfaceRegistry(timeout=lookup_timeout)]

        self.config_manager = config_manager or ConfigManager()
        self.chain = chain
        self.chain_config = self.config_manager.get_chain_config(chain)
        self.enrichment = enrichment
        self.lookup_timeout = lookup_timeout
        self.enrichment_concurrency = enrichment_concurrency

        self.address_registry = AddressRegistry()
        self.interface_set = ContractInterfaceSet()

        known_abis = abi_source.known_abis.all() if abi_source is not None else None
        self.resolver = SignatureResolver(
            registries=registries,
            local_signatures=local_signatures,
            known_abis=known_abis,
            lookup_timeout=lookup_timeout,
        )
        self.decoder = CallDecoder(self.resolver, type_overrides=type_overrides)
        self.walker = TraceWalker(
            self.decoder,
            self.address_registry,
            self.interface_set,
            abi_source=abi_source,
            callback_window=callback_window,
            boundary_slack=boundary_slack,
            include_static_calls=include_static_calls,
        )
        self.model: Optional[ReplayModel] = None

    def _enrichment_targets(self, main_actor: str) -> List[str]:
        chain_id = self.chain_config.chain_id
        return [
            address for address in self.address_registry.addresses()
            if address != main_actor and lookup_well_known(address, chain_id) is None
        ]

    async def build_model(
        self,
        trace_data: Any,
        main_actor: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> ReplayModel:
        """
        Walk, decode and enrich a trace into a render-ready model.

        Raises:
            ValueError: on malformed trace input or an unresolvable main actor
            RuntimeError: if this pipeline already built a model
        """
        if self.model is not None:
            raise RuntimeError("This pipeline already built a model; use a new ReplayPipeline per run")

        nodes = parse_trace(trace_data)
        main = resolve_main_actor(trace_data, main_actor)
        logger.info(f"Reconstructing calls from {main} on {self.chain_config.name}")

        walk = await self.walker.walk(nodes, main)

        enriched = await enrich_addresses_async(
            self.enrichment,
            self._enrichment_targets(main),
            max_concurrent=self.enrichment_concurrency,
            timeout=self.lookup_timeout,
        )

        synthesis = synthesize(
            self.interface_set,
            self.address_registry,
            enriched,
            chain_id=self.chain_config.chain_id,
        )

        # Phase barrier: nothing may register after this point
        self.address_registry.freeze()
        self.interface_set.freeze()

        self.model = ReplayModel(
            main_actor=main,
            walk=walk,
            synthesis=synthesis,
            chain=self.chain,
            rpc_env_var=self.chain_config.rpc_env_var,
            block_number=block_number,
            transaction_hash=extract_transaction_hash(trace_data),
        )
        logger.info(f"Resolver cache: {self.resolver.cache_stats()}")
        return self.model

    def render_model(self, model: Optional[ReplayModel] = None) -> str:
        """
        Render a built model as Solidity source.

        Raises:
            RuntimeError: if `build_model()` has not completed
        """
        model = model or self.model
        if model is None:
            raise RuntimeError("build_model() must complete before render_model()")

        return render(
            model.walk.top_level_calls,
            model.walk.callback_regions,
            model.synthesis.interface_declarations,
            model.synthesis.address_declarations,
            model.main_actor,
            rpc_env_var=model.rpc_env_var,
            block_number=model.block_number,
            transaction_hash=model.transaction_hash,
        )

    async def run_async(
        self,
        trace_data: Any,
        main_actor: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> str:
        await self.build_model(trace_data, main_actor, block_number)
        return self.render_model()

    def run(
        self,
        trace_data: Any,
        main_actor: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> str:
        """
        Synchronous wrapper for the full pipeline.
        Runs the async pipeline using asyncio.run().
        """
        return asyncio.run(self.run_async(trace_data, main_actor, block_number))


def generate_replay(trace_data: Any, main_actor: Optional[str] = None, block_number: Optional[int] = None, **kwargs) -> str:
    """One-shot helper: build a fresh pipeline and render the harness."""
    return ReplayPipeline(**kwargs).run(trace_data, main_actor, block_number)
