"""Concurrent token enrichment for registered addresses."""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from .models import TokenInfo

logger = logging.getLogger(__name__)


async def enrich_address_async(
    enrichment,
    address: str,
    semaphore: asyncio.Semaphore,
    timeout: float = 10.0,
) -> Optional[TokenInfo]:
    """
    Describe one address, limited by `semaphore` and a per-lookup timeout.

    Failures and timeouts are logged and reported as not found.
    """
    async with semaphore:
        try:
            return await asyncio.wait_for(enrichment.describe(address), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[ENRICH] ⚠️  Lookup for {address} timed out after {timeout}s")
        except Exception as e:
            logger.warning(f"[ENRICH] ⚠️  Lookup for {address} failed: {e}")
        return None


async def enrich_addresses_async(
    enrichment,
    addresses: List[str],
    max_concurrent: int = 6,
    timeout: float = 10.0,
) -> Dict[str, Optional[TokenInfo]]:
    """
    Describe many addresses concurrently.

    Args:
        enrichment: Object exposing `async describe(address)`
        addresses: Addresses in registry order
        max_concurrent: Maximum number of lookups in flight
        timeout: Per-lookup timeout in seconds

    Returns:
        Mapping keyed in the same order as `addresses`, independent of
        completion order
    """
    if enrichment is None or not addresses:
        return {address: None for address in addresses}

    start_time = time.time()
    logger.info(f"[ENRICH] Describing {len(addresses)} addresses (max concurrent: {max_concurrent})")

    semaphore = asyncio.Semaphore(max_concurrent)
    results = await asyncio.gather(
        *(enrich_address_async(enrichment, address, semaphore, timeout) for address in addresses)
    )

    enriched = dict(zip(addresses, results))
    found = sum(1 for info in results if info is not None)
    logger.info(f"[ENRICH] ✓ {found}/{len(addresses)} addresses enriched in {time.time() - start_time:.1f}s")
    return enriched


def enrich_addresses(
    enrichment,
    addresses: List[str],
    max_concurrent: int = 6,
    timeout: float = 10.0,
) -> Dict[str, Optional[TokenInfo]]:
    """
    Synchronous wrapper for enrichment batches.
    Runs the async batch function using asyncio.run().
    """
    return asyncio.run(enrich_addresses_async(enrichment, addresses, max_concurrent, timeout))
