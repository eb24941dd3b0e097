"""Trace ingestion, walking and callback detection."""

from .callbacks import CLASSIFICATION_TABLE, TRIGGER_TABLE, classify_callback, match_trigger
from .ingest import (
    derive_main_actor,
    extract_transaction_hash,
    get_data_map,
    load_trace_file,
    normalize_invocation,
    parse_trace,
    resolve_main_actor,
)
from .registry import AddressRegistry, ContractInterfaceSet
from .walker import DEFAULT_BOUNDARY_SLACK, DEFAULT_CALLBACK_WINDOW, TraceWalker

__all__ = [
    "AddressRegistry",
    "CLASSIFICATION_TABLE",
    "ContractInterfaceSet",
    "DEFAULT_BOUNDARY_SLACK",
    "DEFAULT_CALLBACK_WINDOW",
    "TRIGGER_TABLE",
    "TraceWalker",
    "classify_callback",
    "derive_main_actor",
    "extract_transaction_hash",
    "get_data_map",
    "load_trace_file",
    "match_trigger",
    "normalize_invocation",
    "parse_trace",
    "resolve_main_actor",
]
