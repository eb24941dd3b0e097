import json

import pytest

from trace_replay.abi import (
    ABI,
    COMMON_SIGNATURES,
    KnownAbiDirectory,
    array_element_type,
    build_signature_table,
    canonical_signature,
    checksum_address,
    infer_abi_type,
    infer_tuple_type,
    is_canonical_signature,
    is_canonical_type,
    is_reference_type,
    load_abi,
    normalize_address,
    parse_signature,
    selector_of,
    split_parameter_types,
    struct_field_values,
)

SWAP_ROUTER_ABI = [
    {
        "type": "function",
        "name": "exactInputSingle",
        "stateMutability": "payable",
        "inputs": [{
            "name": "params",
            "type": "tuple",
            "components": [
                {"name": "tokenIn", "type": "address"},
                {"name": "tokenOut", "type": "address"},
                {"name": "fee", "type": "uint24"},
                {"name": "recipient", "type": "address"},
                {"name": "amountIn", "type": "uint256"},
                {"name": "amountOutMinimum", "type": "uint256"},
                {"name": "sqrtPriceLimitX96", "type": "uint160"},
            ],
        }],
    },
    {
        "type": "function",
        "name": "multicall",
        "inputs": [{"name": "calls", "type": "tuple[]", "components": [
            {"name": "target", "type": "address"},
            {"name": "data", "type": "bytes"},
        ]}],
    },
    {"type": "event", "name": "Swap", "inputs": []},
]


def test_known_selectors():
    assert selector_of("transfer(address,uint256)") == "0xa9059cbb"
    assert selector_of("approve(address,uint256)") == "0x095ea7b3"
    assert selector_of("balanceOf(address)") == "0x70a08231"


def test_selector_ignores_parameter_names_and_aliases():
    assert selector_of("transfer(address to, uint amount)") == "0xa9059cbb"


def test_split_parameter_types_respects_nesting():
    assert split_parameter_types("address,(uint256,bytes)[],bool") == ["address", "(uint256,bytes)[]", "bool"]


def test_parse_signature_drops_names_and_locations():
    name, types = parse_signature("swap((address,uint) calldata params, bytes memory data)")
    assert name == "swap"
    assert types == ["(address,uint256)", "bytes"]


def test_parse_signature_rejects_missing_parens():
    with pytest.raises(ValueError):
        parse_signature("transfer")


def test_canonical_signature_keeps_tuple_array_suffix():
    assert canonical_signature("multicall((address,bytes)[] calls)") == "multicall((address,bytes)[])"


def test_abi_tuple_array_signature():
    abi = ABI(SWAP_ROUTER_ABI)
    assert abi.signatures() == [
        "exactInputSingle((address,address,uint24,address,uint256,uint256,uint160))",
        "multicall((address,bytes)[])",
    ]


def test_find_function_by_selector():
    abi = ABI(SWAP_ROUTER_ABI)
    selector = selector_of("multicall((address,bytes)[])")
    found = abi.find_function_by_selector(selector[2:].upper())
    assert found["name"] == "multicall"
    assert found["param_names"] == ["calls"]
    assert found["input_types"] == ["(address,bytes)[]"]
    assert found["stateMutability"] == "nonpayable"
    assert abi.find_function_by_selector("0xdeadbeef") == {}


def test_load_abi_accepts_artifacts():
    assert load_abi({"abi": SWAP_ROUTER_ABI}).signatures()
    assert load_abi("not an abi") is None


def test_signature_table_first_entry_wins():
    table = build_signature_table(COMMON_SIGNATURES, [ABI(SWAP_ROUTER_ABI)])
    assert table["0xa9059cbb"] == "transfer(address,uint256)"
    assert table[selector_of("multicall((address,bytes)[])")] == "multicall((address,bytes)[])"


def test_type_helpers():
    assert array_element_type("uint256[][3]") == "uint256[]"
    assert is_reference_type("(address,uint256)")
    assert is_reference_type("bytes")
    assert not is_reference_type("bytes32")


def test_address_helpers():
    checksummed = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    assert normalize_address(checksummed) == checksummed.lower()
    assert normalize_address("0x1234") is None
    assert checksum_address(checksummed.lower()) == checksummed
    # Idempotent on already-checksummed input
    assert checksum_address(checksum_address(checksummed)) == checksummed
    assert checksum_address("not-an-address") == "not-an-address"


def test_known_abi_directory(tmp_path):
    address = "0x" + "ab" * 20
    (tmp_path / f"{address}.json").write_text(json.dumps({"abi": SWAP_ROUTER_ABI}))
    (tmp_path / "README.json").write_text("[]")
    directory = KnownAbiDirectory(tmp_path)
    assert directory.get("0x" + "AB" * 20) is not None
    assert len(directory.all()) == 1


def test_abi_json_tuple_spelling():
    assert canonical_signature("openPosition(tuple(address,uint) position)") == "openPosition((address,uint256))"
    assert parse_signature("f(tuple(address,bytes)[] items)")[1] == ["(address,bytes)[]"]


@pytest.mark.parametrize("abi_type, expected", [
    ("address", True),
    ("uint8", True),
    ("bytes32", True),
    ("(address,uint256)[]", True),
    ("uint256[2][]", True),
    ("tuple", False),
    ("tuple[]", False),
    ("uint", False),
    ("uint7", False),
    ("bytes33", False),
    ("()", False),
    ("(address,tuple)", False),
])
def test_is_canonical_type(abi_type, expected):
    assert is_canonical_type(abi_type) is expected


def test_is_canonical_signature():
    assert is_canonical_signature("openPosition((address,uint256))")
    assert not is_canonical_signature("openPosition(tuple)")
    assert not is_canonical_signature("open-position(uint256)")


def test_struct_field_values_prefers_named_keys():
    assert struct_field_values({"token": "a", "amount": 1, "0": "a", "1": 1}) == ["a", 1]
    assert struct_field_values({"1": "b", "0": "a"}) == ["a", "b"]


def test_infer_abi_type():
    assert infer_abi_type("0x" + "ab" * 20) == "address"
    assert infer_abi_type("1000") == "uint256"
    assert infer_abi_type(-1) == "int256"
    assert infer_abi_type(True) == "bool"
    assert infer_abi_type("0xdead") == "bytes"
    assert infer_abi_type("hello") == "string"
    assert infer_abi_type(["1", "2"]) == "uint256[]"
    assert infer_abi_type(["1", "0x" + "ab" * 20]) is None
    assert infer_abi_type([]) is None
    assert infer_abi_type(None) is None
    assert infer_abi_type({"token": "0x" + "ab" * 20, "amount": "1", "0": "x"}) == "(address,uint256)"
    assert infer_tuple_type(["0x" + "ab" * 20, {"inner": True}]) == "(address,(bool))"
