from unittest.mock import MagicMock

import pytest
import requests

from trace_replay.abi import ExplorerAbiSource, KnownAbiDirectory
from trace_replay.clients import EtherfaceRegistry, FourByteRegistry, Web3TokenEnrichment
from trace_replay.clients.signatures import normalize_selector
from trace_replay.clients.tokens import (
    DECIMALS_SELECTOR,
    NAME_SELECTOR,
    SYMBOL_SELECTOR,
    TOKEN0_SELECTOR,
    TOKEN1_SELECTOR,
    decode_address_result,
    decode_text_result,
)
from trace_replay.config import ConfigManager

from conftest import POOL, TOKEN, WETH


def fake_session(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400 and status_code != 404:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    session = MagicMock()
    session.get.return_value = response
    return session


def test_normalize_selector():
    assert normalize_selector("A9059CBB") == "0xa9059cbb"
    with pytest.raises(ValueError):
        normalize_selector("0xa9059c")


async def test_four_byte_prefers_earliest_submission():
    session = fake_session({"results": [
        {"id": 313, "text_signature": "collision_fake(uint256)"},
        {"id": 145, "text_signature": "transfer(address,uint256)"},
    ]})
    info = await FourByteRegistry(session=session).lookup("0xa9059cbb")
    assert info.text_signature == "transfer(address,uint256)"
    _, kwargs = session.get.call_args
    assert kwargs["params"] == {"hex_signature": "0xa9059cbb"}
    assert kwargs["timeout"] == 10.0


def test_four_byte_empty_results():
    assert FourByteRegistry(session=fake_session({"results": []})).lookup_sync("0xdeadbeef") is None


def test_etherface_lookup():
    session = fake_session({"items": [{"text": "approve(address,uint256)"}]})
    info = EtherfaceRegistry(session=session).lookup_sync("0x095ea7b3")
    assert info.function_name == "approve"
    assert session.get.call_args[0][0].endswith("/signatures/hash/function/095ea7b3/1")


def test_etherface_not_found_and_errors():
    assert EtherfaceRegistry(session=fake_session({}, status_code=404)).lookup_sync("0xdeadbeef") is None
    with pytest.raises(requests.HTTPError):
        EtherfaceRegistry(session=fake_session({}, status_code=500)).lookup_sync("0xdeadbeef")


def _word(hex_body: str) -> str:
    return hex_body.rjust(64, "0")


def _dynamic_string(text: str) -> str:
    data = text.encode().hex()
    return _word("20") + _word(format(len(text), "x")) + data.ljust(64, "0")


def test_decode_text_results():
    assert decode_text_result("0x" + _dynamic_string("USDC")) == "USDC"
    assert decode_text_result("4d4b520000000000000000000000000000000000000000000000000000000000") == "MKR"
    assert decode_text_result("0x") is None


def test_decode_address_result():
    assert decode_address_result(_word(WETH[2:])) == WETH
    assert decode_address_result(_word("0")) is None


class FakeEth:
    def __init__(self, responses):
        self.responses = responses

    def call(self, tx):
        key = (tx["to"].lower(), tx["data"])
        if key not in self.responses:
            raise ValueError("execution reverted")
        return bytes.fromhex(self.responses[key])


def fake_w3(responses):
    w3 = MagicMock()
    w3.eth = FakeEth(responses)
    return w3


async def test_enrichment_detects_pairs():
    responses = {
        (POOL, TOKEN0_SELECTOR): _word(WETH[2:]),
        (POOL, TOKEN1_SELECTOR): _word(TOKEN[2:]),
        (WETH, SYMBOL_SELECTOR): _dynamic_string("WETH"),
        (TOKEN, SYMBOL_SELECTOR): _dynamic_string("USDC"),
    }
    info = await Web3TokenEnrichment(w3=fake_w3(responses)).describe(POOL)
    assert info.kind == "Pair"
    assert info.paired_tokens == ["WETH", "USDC"]


async def test_enrichment_describes_erc20_and_caches():
    responses = {
        (TOKEN, SYMBOL_SELECTOR): _dynamic_string("USDC"),
        (TOKEN, NAME_SELECTOR): _dynamic_string("USD Coin"),
        (TOKEN, DECIMALS_SELECTOR): _word("6"),
    }
    enrichment = Web3TokenEnrichment(w3=fake_w3(responses))
    info = await enrichment.describe(TOKEN.upper().replace("0X", "0x"))
    assert (info.kind, info.symbol, info.name, info.decimals) == ("ERC20", "USDC", "USD Coin", 6)

    enrichment.w3.eth.responses = {}
    assert await enrichment.describe(TOKEN) == info


async def test_enrichment_of_non_token_is_none():
    assert await Web3TokenEnrichment(w3=fake_w3({})).describe(POOL) is None


def test_explorer_abi_source(monkeypatch, tmp_path):
    payload = {"status": "1", "result": '[{"type": "function", "name": "harvest", "inputs": []}]'}
    get = MagicMock(return_value=MagicMock(json=MagicMock(return_value=payload)))
    monkeypatch.setattr("trace_replay.abi.sources.requests.get", get)

    source = ExplorerAbiSource(ConfigManager(api_key="KEY"), "ethereum", known_abis=KnownAbiDirectory(tmp_path))
    abi = source.get_abi(TOKEN)
    assert abi.signatures() == ["harvest()"]
    assert source.get_abi(TOKEN) is abi
    assert get.call_count == 1
    assert "action=getabi" in get.call_args[0][0]
    assert get.call_args[0][0].startswith("https://api.etherscan.io/v2/api?chainid=1&")


def test_explorer_abi_source_failures_are_misses(monkeypatch):
    monkeypatch.setattr(
        "trace_replay.abi.sources.requests.get",
        MagicMock(side_effect=requests.ConnectionError("offline")),
    )
    source = ExplorerAbiSource(ConfigManager(), "ethereum")
    assert source.get_abi(TOKEN) is None
    assert ExplorerAbiSource(None).get_abi(TOKEN) is None
