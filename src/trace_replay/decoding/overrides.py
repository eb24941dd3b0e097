"""
Positional type overrides for calls whose registry signature decodes wrongly.

Public registries often list struct-taking functions with flattened or
guessed parameter types. Each override maps a function-name pattern to
alternative type lists that are tried when the resolved types fail.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern

# Uniswap V3 SwapRouter (with deadline) and SwapRouter02 (without)
EXACT_INPUT_SINGLE_V1 = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"
EXACT_INPUT_SINGLE_02 = "(address,address,uint24,address,uint256,uint256,uint160)"
EXACT_INPUT_V1 = "(bytes,address,uint256,uint256,uint256)"
EXACT_INPUT_02 = "(bytes,address,uint256,uint256)"


@dataclass
class TypeOverride:
    """
    Alternative parameter layouts for functions matching `pattern`.

    Args:
        pattern: Regex matched (fullmatch) against the function name
        type_lists: Explicit positional type lists to try in order
        wrap_as_struct: Also try the resolved types wrapped into one tuple
    """
    pattern: Pattern
    type_lists: List[List[str]] = field(default_factory=list)
    wrap_as_struct: bool = False
    label: str = ""

    def candidates(self, resolved_types: List[str]) -> List[List[str]]:
        candidates = [list(types) for types in self.type_lists]
        if self.wrap_as_struct and resolved_types:
            candidates.append([f"({','.join(resolved_types)})"])
        return [c for c in candidates if c != list(resolved_types)]


class TypeOverrideRegistry:
    def __init__(self, overrides: Optional[List[TypeOverride]] = None):
        self.overrides: List[TypeOverride] = list(overrides or [])

    def register(self, pattern: str, type_lists=None, wrap_as_struct: bool = False, label: str = ""):
        self.overrides.append(
            TypeOverride(
                pattern=re.compile(pattern),
                type_lists=[list(t) for t in type_lists or []],
                wrap_as_struct=wrap_as_struct,
                label=label or pattern,
            )
        )
        return self

    def candidates(self, function_name: str, resolved_types: List[str]) -> List[List[str]]:
        """Type lists to try for `function_name`, in registration order, without duplicates."""
        result: List[List[str]] = []
        for override in self.overrides:
            if not override.pattern.fullmatch(function_name or ""):
                continue
            for candidate in override.candidates(resolved_types):
                if candidate not in result:
                    result.append(candidate)
        return result

    def __len__(self):
        return len(self.overrides)


def default_type_overrides() -> TypeOverrideRegistry:
    registry = TypeOverrideRegistry()
    registry.register(
        r"exactInputSingle",
        [[EXACT_INPUT_SINGLE_V1], [EXACT_INPUT_SINGLE_02]],
        label="Uniswap V3 exactInputSingle",
    )
    registry.register(
        r"exactOutputSingle",
        [[EXACT_INPUT_SINGLE_V1], [EXACT_INPUT_SINGLE_02]],
        label="Uniswap V3 exactOutputSingle",
    )
    registry.register(
        r"exact(Input|Output)",
        [[EXACT_INPUT_V1], [EXACT_INPUT_02]],
        label="Uniswap V3 exactInput/exactOutput",
    )
    registry.register(
        r"(increase|decrease)Position",
        wrap_as_struct=True,
        label="KiloEx position struct",
    )
    return registry
