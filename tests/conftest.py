"""Shared fakes and trace builders for the test suite."""

import asyncio
from typing import Dict, List, Optional

import pytest
from web3 import Web3

from trace_replay.abi import parse_signature, selector_of
from trace_replay.clients.signatures import signature_info_from_text
from trace_replay.models import TokenInfo

MAIN = "0x1111111111111111111111111111111111111111"
TOKEN = "0x2222222222222222222222222222222222222222"
POOL = "0x3333333333333333333333333333333333333333"
OTHER = "0x4444444444444444444444444444444444444444"
LENDER = "0x5555555555555555555555555555555555555555"
BALANCER_VAULT = "0xba12222222228d8ba445958a75a0704d566bf2c8"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

_codec = Web3().codec


def encode_call(signature: str, *values) -> str:
    """Calldata hex for `signature` applied to `values`."""
    _, types = parse_signature(signature)
    return selector_of(signature) + _codec.encode(types, list(values)).hex()


def invocation(frm: str, to: Optional[str], call_data: str = "0x", value=0, **extra) -> Dict:
    raw = {"from": frm, "to": to, "callData": call_data, "value": value}
    raw.update(extra)
    return raw


def make_trace(nodes: Dict[str, List[Dict]], **node_extra) -> Dict:
    """`{"dataMap": {key: {"invocations": [...]}}}` from key -> invocation list."""
    data_map = {}
    for key, invocations in nodes.items():
        entry = {"invocations": invocations}
        entry.update(node_extra.get(key, {}))
        data_map[key] = entry
    return {"dataMap": data_map}


class FakeRegistry:
    """In-memory signature registry that records every lookup."""

    def __init__(self, signatures=None, name: str = "fake", delay: float = 0.0, error: Exception = None):
        self.name = name
        self.table = {selector_of(s): s for s in signatures or []}
        self.delay = delay
        self.error = error
        self.calls: List[str] = []

    async def lookup(self, selector: str):
        self.calls.append(selector)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        signature = self.table.get(selector)
        return signature_info_from_text(selector, signature) if signature else None


class FakeEnrichment:
    """Token enrichment answering from a dict, with optional per-address delays."""

    def __init__(self, infos: Dict[str, TokenInfo] = None, delays: Dict[str, float] = None, failing=()):
        self.infos = {k.lower(): v for k, v in (infos or {}).items()}
        self.delays = {k.lower(): v for k, v in (delays or {}).items()}
        self.failing = {a.lower() for a in failing}
        self.calls: List[str] = []

    async def describe(self, address: str):
        address = address.lower()
        self.calls.append(address)
        if address in self.delays:
            await asyncio.sleep(self.delays[address])
        if address in self.failing:
            raise RuntimeError("rpc unavailable")
        return self.infos.get(address)


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def flash_loan_trace():
    """
    Balancer flash loan: the main actor borrows, receives the callback,
    swaps inside it, then transfers the profit out at top level.
    """
    return make_trace({
        "0": [invocation(MAIN, OTHER, encode_call("approve(address,uint256)", BALANCER_VAULT, 10 ** 18))],
        "1": [invocation(
            MAIN,
            BALANCER_VAULT,
            encode_call("flashLoan(address,address[],uint256[],bytes)", MAIN, [WETH], [10 ** 18], b""),
        )],
        "2": [invocation(
            BALANCER_VAULT,
            MAIN,
            encode_call("receiveFlashLoan(address[],uint256[],uint256[],bytes)", [WETH], [10 ** 18], [0], b""),
        )],
        "3": [invocation(MAIN, WETH, encode_call("transfer(address,uint256)", POOL, 10 ** 18))],
        "60": [invocation(MAIN, TOKEN, encode_call("transfer(address,uint256)", OTHER, 5))],
    })
