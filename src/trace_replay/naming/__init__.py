"""Naming and interface synthesis."""

from .patterns import MIN_PATTERN_SCORE, NAME_PATTERNS, best_pattern, sanitize_identifier, score_patterns
from .synthesis import enrichment_name, interface_name, synthesize, variable_name
from .well_known import WELL_KNOWN_ADDRESSES, WellKnownAddress, lookup_well_known

__all__ = [
    "MIN_PATTERN_SCORE",
    "NAME_PATTERNS",
    "WELL_KNOWN_ADDRESSES",
    "WellKnownAddress",
    "best_pattern",
    "enrichment_name",
    "interface_name",
    "lookup_well_known",
    "sanitize_identifier",
    "score_patterns",
    "synthesize",
    "variable_name",
]
