"""4byte.directory signature registry."""

from typing import Any, Dict, Optional

from ...models import SignatureInfo
from .base import SignatureRegistry, signature_info_from_text


class FourByteRegistry(SignatureRegistry):
    name = "4byte.directory"
    base_url = "https://www.4byte.directory/api/v1"

    def _url(self, selector: str) -> str:
        return f"{self.base_url}/signatures/"

    def _params(self, selector: str) -> Optional[Dict[str, Any]]:
        return {"hex_signature": selector}

    def _parse(self, selector: str, data: Dict[str, Any]) -> Optional[SignatureInfo]:
        results = [r for r in data.get("results") or [] if r.get("text_signature")]
        if not results:
            return None
        # Colliding selectors: the earliest submission is usually the real one
        results.sort(key=lambda r: r.get("id") if isinstance(r.get("id"), int) else float("inf"))
        for entry in results:
            info = signature_info_from_text(selector, entry["text_signature"])
            if info:
                return info
        return None
