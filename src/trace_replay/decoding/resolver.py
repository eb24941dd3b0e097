"""Tiered selector -> signature resolution with a per-run cache."""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from ..abi import ABI, COMMON_SIGNATURES, build_signature_table, parse_signature
from ..clients.signatures import normalize_selector
from ..models import SignatureInfo

logger = logging.getLogger(__name__)


class SignatureResolver:
    """
    Resolve 4-byte selectors: local table, then each registry in order.

    Results are memoized per selector, including misses, so a selector costs
    at most one round of external lookups per run.
    """

    def __init__(
        self,
        registries: Optional[List] = None,
        local_signatures: Optional[Iterable[str]] = None,
        known_abis: Optional[List[ABI]] = None,
        lookup_timeout: float = 10.0,
    ):
        """
        Args:
            registries: Objects exposing `async lookup(selector)`, primary first
            local_signatures: Signatures answered without network access
                (defaults to COMMON_SIGNATURES)
            known_abis: ABIs whose functions are added to the local table
            lookup_timeout: Per-registry timeout in seconds
        """
        signatures = COMMON_SIGNATURES if local_signatures is None else list(local_signatures)
        self.local_table: Dict[str, str] = build_signature_table(signatures, known_abis)
        self.registries = list(registries or [])
        self.lookup_timeout = lookup_timeout
        self._cache: Dict[str, Optional[SignatureInfo]] = {}
        self._hits = 0
        self._misses = 0

    def _local(self, selector: str) -> Optional[SignatureInfo]:
        signature = self.local_table.get(selector)
        if not signature:
            return None
        name, types = parse_signature(signature)
        return SignatureInfo(
            selector=selector,
            function_name=name,
            text_signature=signature,
            parameter_types=types,
        )

    async def _query_registry(self, registry, selector: str) -> Optional[SignatureInfo]:
        registry_name = getattr(registry, "name", type(registry).__name__)
        try:
            return await asyncio.wait_for(registry.lookup(selector), timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️  {registry_name} lookup for {selector} timed out after {self.lookup_timeout}s")
        except Exception as e:
            logger.warning(f"⚠️  {registry_name} lookup failed for {selector}: {e}")
        return None

    async def resolve(self, selector: str) -> Optional[SignatureInfo]:
        """
        Resolve a selector to a signature.

        Args:
            selector: 4-byte selector, with or without 0x, any case

        Returns:
            SignatureInfo, or None when no source knows the selector

        Raises:
            ValueError: if `selector` is not a well-formed 4-byte hex string
        """
        selector = normalize_selector(selector)
        if selector in self._cache:
            self._hits += 1
            return self._cache[selector]
        self._misses += 1

        result = self._local(selector)
        if result is None:
            for registry in self.registries:
                result = await self._query_registry(registry, selector)
                if result is not None:
                    break

        if result is None:
            logger.info(f"No signature found for {selector}")
        self._cache[selector] = result
        return result

    async def resolve_many(self, selectors: Iterable[str]) -> Dict[str, Optional[SignatureInfo]]:
        """Resolve several selectors concurrently; result is keyed by input selector."""
        selectors = list(dict.fromkeys(selectors))
        results = await asyncio.gather(*(self.resolve(s) for s in selectors))
        return dict(zip(selectors, results))

    def cache_stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._cache),
            "resolved": sum(1 for v in self._cache.values() if v is not None),
            "unresolved": sum(1 for v in self._cache.values() if v is None),
            "hits": self._hits,
            "misses": self._misses,
        }

    def clear_cache(self):
        self._cache.clear()
        self._hits = 0
        self._misses = 0
