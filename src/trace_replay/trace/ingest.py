"""
Trace ingestion.

Trace services disagree on field names (`from`/`fromAddress`,
`to`/`address`, `invocation`/`invocations`, `callData`/`input`). Everything
is normalized here into TraceNode/Invocation so later stages see one shape.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..abi import normalize_address
from ..models import DecodedMethod, Invocation, TraceNode

logger = logging.getLogger(__name__)

_INTEGER_KEY = re.compile(r'^\s*-?\d+\s*$')
_SELECTOR = re.compile(r'^(0x)?[0-9a-fA-F]{8}$')
ROOT_KEYS = ("0", "root")


def load_trace_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a trace JSON file.

    Raises:
        ValueError: if the file cannot be read or is not valid JSON
    """
    path = Path(path)
    try:
        return json.loads(path.read_text())
    except OSError as e:
        raise ValueError(f"Cannot read trace file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Trace file {path} is not valid JSON: {e}") from e


def get_data_map(trace_data: Any) -> Dict[str, Any]:
    """
    Return the trace's node map.

    Raises:
        ValueError: if `dataMap` is missing or not an object
    """
    if not isinstance(trace_data, dict) or "dataMap" not in trace_data:
        raise ValueError("Trace is missing the required 'dataMap' node map")
    data_map = trace_data["dataMap"]
    if not isinstance(data_map, dict):
        raise ValueError(f"Trace 'dataMap' must be an object, got {type(data_map).__name__}")
    return data_map


def _first(raw: Dict[str, Any], *keys: str):
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _normalize_hex(value) -> str:
    if not isinstance(value, str) or not value.strip():
        return "0x"
    value = value.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    return "0x" + value.lower()


def _normalize_selector(value) -> Optional[str]:
    if not isinstance(value, str) or not _SELECTOR.match(value.strip()):
        return None
    value = value.strip().lower()
    return value if value.startswith("0x") else "0x" + value


def _normalize_value(value) -> str:
    """Native value as a decimal string; hex strings are converted."""
    if value is None or value == "":
        return "0"
    if isinstance(value, bool):
        return "0"
    if isinstance(value, int):
        return str(value)
    text = str(value).strip().replace(",", "").replace("_", "")
    try:
        if text.lower().startswith("0x"):
            return str(int(text, 16))
        return str(int(text))
    except ValueError:
        try:
            return str(int(float(text)))
        except ValueError:
            logger.warning(f"⚠️  Unparseable call value {value!r}; using 0")
            return "0"


def _normalize_gas(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        if isinstance(value, str) and value.lower().startswith("0x"):
            return int(value, 16)
        return int(value)
    except (TypeError, ValueError):
        return None


def _normalize_decoded_method(raw) -> Optional[DecodedMethod]:
    if not isinstance(raw, dict) or not raw.get("name"):
        return None
    parameters = raw.get("parameters")
    if parameters is None:
        parameters = raw.get("callParams")
    return DecodedMethod(
        name=raw["name"],
        signature=raw.get("signature"),
        parameters=[p for p in parameters or [] if isinstance(p, dict)],
    )


def normalize_invocation(raw: Dict[str, Any]) -> Optional[Invocation]:
    """
    Map one raw invocation onto the canonical Invocation shape.

    Returns:
        Invocation, or None when the entry has no usable sender
    """
    if not isinstance(raw, dict):
        return None

    from_address = normalize_address(_first(raw, "from", "fromAddress"))
    if not from_address:
        logger.debug(f"Skipping invocation without a valid sender: {raw.get('from') or raw.get('fromAddress')}")
        return None

    call_data = _normalize_hex(_first(raw, "callData", "input"))
    selector = _normalize_selector(raw.get("selector"))
    if selector is None and len(call_data) >= 10:
        selector = _normalize_selector(call_data[:10])

    try:
        return Invocation(
            from_address=from_address,
            to_address=normalize_address(_first(raw, "to", "address")),
            selector=selector,
            call_data=call_data,
            value=_normalize_value(raw.get("value")),
            gas_used=_normalize_gas(_first(raw, "gasUsed", "gas_used")),
            call_type=(str(_first(raw, "operation", "type")).upper() if _first(raw, "operation", "type") else None),
            decoded_method=_normalize_decoded_method(raw.get("decodedMethod")),
        )
    except ValidationError as e:
        logger.warning(f"⚠️  Skipping malformed invocation: {e}")
        return None


def _raw_invocations(entry: Any) -> List[Dict[str, Any]]:
    if not isinstance(entry, dict):
        return []
    raw = entry.get("invocations")
    if raw is None:
        raw = entry.get("invocation")
    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, list):
        return [r for r in raw if isinstance(r, dict)]
    return []


def assign_orders(keys: List[str]) -> Dict[str, int]:
    """
    Ordering key per node key.

    Integer-like keys use their integer value; other keys (e.g. "root")
    are numbered after the largest integer key, in input order.
    """
    orders: Dict[str, int] = {}
    for key in keys:
        if _INTEGER_KEY.match(key):
            orders[key] = int(key)

    next_order = max(orders.values(), default=-1) + 1
    for key in keys:
        if key not in orders:
            orders[key] = next_order
            next_order += 1
    return orders


def parse_trace(trace_data: Any) -> List[TraceNode]:
    """
    Normalize a raw trace into TraceNodes sorted by ordering key.

    Raises:
        ValueError: if the node map is missing or malformed
    """
    data_map = get_data_map(trace_data)
    keys = [str(k) for k in data_map.keys()]
    orders = assign_orders(keys)

    nodes = []
    for raw_key, entry in data_map.items():
        key = str(raw_key)
        invocations = tuple(
            inv for inv in (normalize_invocation(r) for r in _raw_invocations(entry)) if inv
        )
        nodes.append(TraceNode(key=key, order=orders[key], invocations=invocations))

    nodes.sort(key=lambda n: (n.order, n.key))
    logger.info(f"Parsed {len(nodes)} trace nodes ({sum(len(n.invocations) for n in nodes)} invocations)")
    return nodes


def derive_main_actor(trace_data: Any) -> Optional[str]:
    """Sender of the root node ("0" or "root") invocation, if present."""
    data_map = get_data_map(trace_data)
    for root_key in ROOT_KEYS:
        if root_key in data_map:
            for raw in _raw_invocations(data_map[root_key]):
                sender = normalize_address(_first(raw, "from", "fromAddress"))
                if sender:
                    return sender
    return None


def resolve_main_actor(trace_data: Any, main_actor: Optional[str] = None) -> str:
    """
    Validate the supplied main actor or derive it from the root node.

    Raises:
        ValueError: if no valid main-actor address can be determined
    """
    if main_actor:
        normalized = normalize_address(main_actor)
        if not normalized:
            raise ValueError(f"Invalid main actor address: {main_actor!r}")
        return normalized

    derived = derive_main_actor(trace_data)
    if not derived:
        raise ValueError("Could not determine the main actor from the trace and none was provided")
    logger.info(f"Main actor derived from root node: {derived}")
    return derived


def extract_transaction_hash(trace_data: Any) -> Optional[str]:
    """First `transactionHash` found on a node or its `result`."""
    if not isinstance(trace_data, dict) or not isinstance(trace_data.get("dataMap"), dict):
        return None
    for entry in trace_data["dataMap"].values():
        if not isinstance(entry, dict):
            continue
        tx_hash = entry.get("transactionHash")
        if not tx_hash and isinstance(entry.get("result"), dict):
            tx_hash = entry["result"].get("transactionHash")
        if isinstance(tx_hash, str) and re.match(r'^0x[0-9a-fA-F]{64}$', tx_hash):
            return tx_hash.lower()
    return None
