"""Etherface signature registry."""

from typing import Any, Dict, Optional

from ...models import SignatureInfo
from .base import SignatureRegistry, signature_info_from_text


class EtherfaceRegistry(SignatureRegistry):
    name = "Etherface"
    base_url = "https://api.etherface.io/v1"

    def _url(self, selector: str) -> str:
        return f"{self.base_url}/signatures/hash/function/{selector[2:]}/1"

    def _parse(self, selector: str, data: Dict[str, Any]) -> Optional[SignatureInfo]:
        for item in data.get("items") or []:
            text = item.get("text")
            if text:
                info = signature_info_from_text(selector, text)
                if info:
                    return info
        return None
