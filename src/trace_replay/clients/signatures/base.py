"""Shared HTTP plumbing for public function-signature registries."""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from ...abi import parse_signature
from ...models import SignatureInfo

logger = logging.getLogger(__name__)


def normalize_selector(selector: str) -> str:
    """
    Normalize a 4-byte selector to `0x` + 8 lowercase hex characters.

    Raises:
        ValueError: if the input is not a well-formed 4-byte hex string
    """
    if not isinstance(selector, str):
        raise ValueError(f"Selector must be a string, got {type(selector).__name__}")
    value = selector.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    if len(value) != 8:
        raise ValueError(f"Selector must be 4 bytes: {selector!r}")
    try:
        int(value, 16)
    except ValueError:
        raise ValueError(f"Selector is not hex: {selector!r}") from None
    return "0x" + value


def signature_info_from_text(selector: str, text_signature: str) -> Optional[SignatureInfo]:
    """Build a SignatureInfo from a registry's text signature, or None if unparseable."""
    try:
        function_name, parameter_types = parse_signature(text_signature)
    except ValueError:
        logger.debug(f"Unparseable registry signature for {selector}: {text_signature!r}")
        return None
    if not function_name:
        return None
    return SignatureInfo(
        selector=selector,
        function_name=function_name,
        text_signature=f"{function_name}({','.join(parameter_types)})",
        parameter_types=parameter_types,
    )


class SignatureRegistry:
    """
    Base class for selector -> signature registries.

    Subclasses provide `name`, `_url()` and `_parse()`. `lookup()` runs the
    blocking HTTP request in a worker thread; errors propagate to the caller,
    which decides how to degrade.
    """

    name = "registry"

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, selector: str) -> str:
        raise NotImplementedError

    def _params(self, selector: str) -> Optional[Dict[str, Any]]:
        return None

    def _parse(self, selector: str, data: Dict[str, Any]) -> Optional[SignatureInfo]:
        raise NotImplementedError

    def lookup_sync(self, selector: str) -> Optional[SignatureInfo]:
        selector = normalize_selector(selector)
        response = self.session.get(
            self._url(selector),
            params=self._params(selector),
            timeout=self.timeout,
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        result = self._parse(selector, response.json())
        if result:
            logger.info(f"✓ Found {result.text_signature} for {selector} in {self.name}")
        return result

    async def lookup(self, selector: str) -> Optional[SignatureInfo]:
        return await asyncio.to_thread(self.lookup_sync, selector)
