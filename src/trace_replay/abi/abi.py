"""
ABI handling for the trace replay generator.

This module provides ABI parsing and function selector utilities.
"""

from typing import Dict, List, Optional

from eth_utils import keccak

from .types import canonical_signature


def selector_of(signature: str) -> str:
    """
    Convert a function signature to a function selector.

    The signature is canonicalized first, so parameter names and aliases
    ("uint") do not change the result.

    Args:
        signature: Function signature (e.g., "transfer(address,uint256)")

    Returns:
        Function selector as hex string (e.g., "0xa9059cbb")
    """
    return "0x" + keccak(text=canonical_signature(signature)).hex()[:8]


class ABI:
    """
    Class to interact with contract ABI.
    Handles function selector calculation and ABI lookups.
    """

    def __init__(self, abi: list):
        """
        Initialize with an ABI.

        Args:
            abi: Contract ABI as a list of dictionaries
        """
        self.abi = abi or []

    def _param_abi_type_to_str(self, param: Dict) -> str:
        """
        Recursively convert ABI input types into signature strings.

        Args:
            param: Parameter definition from ABI

        Returns:
            Type string for signature (e.g., "address", "(uint256,address)[]")
        """
        param_type = param.get("type", "")
        if param_type.startswith("tuple"):
            inner = ",".join(
                self._param_abi_type_to_str(p) for p in param.get("components", [])
            )
            # "tuple[]" / "tuple[2][]" keep their array suffix
            return f"({inner})" + param_type[len("tuple"):]
        return param_type

    def functions(self) -> List[Dict]:
        return [item for item in self.abi if item.get("type") == "function" and item.get("name")]

    def function_signature(self, item: Dict) -> str:
        input_types = ",".join(self._param_abi_type_to_str(p) for p in item.get("inputs", []))
        return f"{item['name']}({input_types})"

    def find_function_by_selector(self, selector: str) -> dict:
        """
        Find function by selector in ABI.

        The selector is the first 4 bytes of the keccak256 hash of the function signature,
        e.g., keccak256("transfer(address,uint256)") = '0xa9059cbb'.

        Args:
            selector: Function selector as hex string (with or without 0x)

        Returns:
            Dictionary with function metadata:
            - name: Function name
            - param_names: List of parameter names
            - input_types: List of canonical parameter types
            - signature: Full function signature
            - selector: Function selector
            - stateMutability: Function state mutability (payable, nonpayable, view, pure)
            Empty dict when no entry matches.
        """
        wanted = selector.lower()
        if not wanted.startswith("0x"):
            wanted = "0x" + wanted

        for item in self.functions():
            inputs = item.get("inputs", [])
            signature = self.function_signature(item)

            computed_selector = selector_of(signature)
            if computed_selector == wanted:
                return {
                    "name": item["name"],
                    "param_names": [
                        inp.get("name") or f"param{index}" for index, inp in enumerate(inputs)
                    ],
                    "input_types": [self._param_abi_type_to_str(p) for p in inputs],
                    "signature": signature,
                    "selector": computed_selector,
                    "stateMutability": item.get("stateMutability", "nonpayable"),
                }
        return {}

    def signatures(self) -> List[str]:
        """Canonical signatures of every function entry, in ABI order."""
        return [self.function_signature(item) for item in self.functions()]


def load_abi(data) -> Optional[ABI]:
    """Wrap a raw ABI list (or an artifact dict carrying an "abi" key)."""
    if isinstance(data, dict):
        data = data.get("abi")
    if isinstance(data, list):
        return ABI(data)
    return None
