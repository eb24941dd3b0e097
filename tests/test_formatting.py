import pytest

from trace_replay.rendering import ParameterFormatter, StructRegistry, escape_string, hex_literal, parse_integer

from conftest import MAIN, OTHER, TOKEN

WETH_CHECKSUM = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


@pytest.fixture
def formatter():
    return ParameterFormatter(MAIN, {TOKEN: "USDC_TOKEN"}, StructRegistry())


def test_addresses(formatter):
    assert formatter.format_value(MAIN, "address") == "address(this)"
    assert formatter.format_value(TOKEN.upper().replace("0X", "0x"), "address") == "USDC_TOKEN"
    assert formatter.format_value(WETH_CHECKSUM.lower(), "address") == WETH_CHECKSUM
    assert formatter.format_value(WETH_CHECKSUM, "address") == WETH_CHECKSUM
    assert formatter.format_value("12", "address") == "address(uint160(12))"
    assert formatter.format_value("garbage", "address") == "address(0)"


def test_integers(formatter):
    assert formatter.format_value("1,000,000", "uint256") == "1000000"
    assert formatter.format_value("0xff", "uint8") == "255"
    assert formatter.format_value(-5, "int256") == "-5"
    assert formatter.format_value(2 ** 256 - 1, "uint256") == str(2 ** 256 - 1)


def test_bools_and_strings(formatter):
    assert formatter.format_value("True", "bool") == "true"
    assert formatter.format_value(0, "bool") == "false"
    assert formatter.format_value('say "hi"\n', "string") == '"say \\"hi\\"\\n"'
    assert escape_string("héllo") == 'unicode"héllo"'


def test_bytes(formatter):
    assert formatter.format_value("0xABCD", "bytes") == 'hex"abcd"'
    assert formatter.format_value("0x", "bytes") == 'hex""'
    assert hex_literal(b"\x01\x02") == 'hex"0102"'


def test_dynamic_arrays_become_memory_locals(formatter):
    assert formatter.format_value([1, 2], "uint256[]") == "arr1"
    assert formatter.take_statements() == [
        "uint256[] memory arr1 = new uint256[](2);",
        "arr1[0] = 1;",
        "arr1[1] = 2;",
    ]
    assert formatter.take_statements() == []
    assert formatter.format_value([], "address[]") == "new address[](0)"
    assert formatter.format_value('["1", "2"]', "uint8[]") == "arr2"
    assert formatter.format_value([MAIN, OTHER], "address[]") == "arr3"
    statements = formatter.take_statements()
    assert "uint8[] memory arr2 = new uint8[](2);" in statements
    assert "arr3[0] = address(this);" in statements
    assert "arr3[1] = 0x4444444444444444444444444444444444444444;" in statements


def test_static_arrays_stay_literals(formatter):
    assert formatter.format_value([1, 2], "uint256[2]") == "[uint256(1), 2]"
    assert formatter.format_value([MAIN, TOKEN], "address[2]") == "[address(this), USDC_TOKEN]"
    assert formatter.take_statements() == []


def test_nested_dynamic_arrays_declare_inner_first(formatter):
    assert formatter.format_value([[1], [2, 3]], "uint256[][]") == "arr3"
    statements = formatter.take_statements()
    assert statements[0] == "uint256[] memory arr1 = new uint256[](1);"
    assert "uint256[][] memory arr3 = new uint256[][](2);" in statements
    assert statements[-1] == "arr3[1] = arr2;"


def test_tuples_become_structs(formatter):
    rendered = formatter.format_value([TOKEN, "5"], "(address,uint256)")
    assert rendered == "Struct1(USDC_TOKEN, 5)"
    assert formatter.format_value([[TOKEN, 1]], "(address,uint256)[]") == "arr1"
    assert formatter.take_statements()[-1] == "arr1[0] = Struct1(USDC_TOKEN, 1);"
    assert formatter.structs.declarations() == [("Struct1", ["address", "uint256"])]


def test_nested_structs_register_inner_first():
    structs = StructRegistry()
    assert structs.solidity_type("((address,uint256),bool)[]") == "Struct2[]"
    assert structs.declarations() == [("Struct1", ["address", "uint256"]), ("Struct2", ["Struct1", "bool"])]
    rendered = structs.render()
    assert "struct Struct1 {" in rendered
    assert "Struct1 f0;" in rendered


def test_parse_integer():
    assert parse_integer("1_000") == 1000
    assert parse_integer(True) == 1
    assert parse_integer("abc") is None


def test_struct_mapping_drops_positional_duplicates(formatter):
    value = {"token": TOKEN, "amount": "1000", "0": TOKEN, "1": "1000"}
    assert formatter.format_value(value, "(address,uint256)") == "Struct1(USDC_TOKEN, 1000)"
    assert formatter.format_value({"1": "7", "0": MAIN}, "(address,uint256)") == "Struct1(address(this), 7)"


def test_unparseable_integer_cannot_close_comment(formatter):
    rendered = formatter.format_value("1 */ selfdestruct /*", "uint256")
    assert rendered.startswith("0 /* ")
    assert rendered.endswith(" */")
    assert rendered.count("*/") == 1
