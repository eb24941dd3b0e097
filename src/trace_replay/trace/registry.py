"""Per-run address and interface registries."""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from ..abi import normalize_address

logger = logging.getLogger(__name__)


class FrozenRegistryMixin:
    _frozen = False

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError(f"{type(self).__name__} is frozen; the model is already built")


class AddressRegistry(FrozenRegistryMixin):
    """
    Lowercase address -> stable `addrN` key, assigned in first-seen order.

    Registration is idempotent and case-insensitive; repeat registrations do
    not advance the counter.
    """

    def __init__(self, prefix: str = "addr"):
        self.prefix = prefix
        self._names: Dict[str, str] = {}
        self._counter = 0

    def register(self, address: str) -> str:
        normalized = normalize_address(address)
        if not normalized:
            raise ValueError(f"Cannot register invalid address: {address!r}")

        existing = self._names.get(normalized)
        if existing:
            return existing

        self._check_mutable()
        self._counter += 1
        name = f"{self.prefix}{self._counter}"
        self._names[normalized] = name
        logger.debug(f"Registered {normalized} as {name}")
        return name

    def get(self, address: str) -> Optional[str]:
        return self._names.get((address or "").lower())

    @property
    def counter(self) -> int:
        return self._counter

    def addresses(self) -> List[str]:
        return list(self._names.keys())

    def items(self) -> List[Tuple[str, str]]:
        return list(self._names.items())

    def __contains__(self, address) -> bool:
        return isinstance(address, str) and address.lower() in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)


class ContractInterfaceSet(FrozenRegistryMixin):
    """Address -> canonical signatures observed against it, in first-seen order."""

    def __init__(self):
        self._signatures: Dict[str, Dict[str, None]] = {}

    def add(self, address: str, signature: str):
        normalized = normalize_address(address)
        if not normalized:
            raise ValueError(f"Cannot record signature for invalid address: {address!r}")

        signatures = self._signatures.get(normalized)
        if signatures is not None and signature in signatures:
            return

        self._check_mutable()
        self._signatures.setdefault(normalized, {})[signature] = None

    def ensure(self, address: str):
        """Track an address even if no typed signature was observed against it."""
        normalized = normalize_address(address)
        if normalized and normalized not in self._signatures:
            self._check_mutable()
            self._signatures[normalized] = {}

    def signatures(self, address: str) -> List[str]:
        return list(self._signatures.get((address or "").lower(), {}))

    def addresses(self) -> List[str]:
        return list(self._signatures.keys())

    def items(self) -> List[Tuple[str, List[str]]]:
        return [(address, list(sigs)) for address, sigs in self._signatures.items()]

    def __contains__(self, address) -> bool:
        return isinstance(address, str) and address.lower() in self._signatures

    def __len__(self) -> int:
        return len(self._signatures)
