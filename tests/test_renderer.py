from trace_replay.abi import selector_of
from trace_replay.models import (
    AddressDeclaration,
    CallbackKind,
    CallbackRegion,
    DecodedCall,
    DecodedParam,
    DecodeTier,
    InterfaceDeclaration,
)
from trace_replay.rendering import SolidityRenderer, render, sort_address_declarations

from conftest import MAIN, OTHER, POOL, TOKEN

TRANSFER = "transfer(address,uint256)"


def typed_transfer(order=0, sequence=0, value="0"):
    return DecodedCall(
        target=TOKEN,
        name="transfer",
        signature=TRANSFER,
        params=[DecodedParam("to", "address", POOL), DecodedParam("amount", "uint256", 5)],
        tier=DecodeTier.RESOLVER_TYPED,
        selector=selector_of(TRANSFER),
        raw_call_data="0x",
        value=value,
        node_key=str(order),
        order=order,
        sequence=sequence,
    )


def declarations():
    return (
        [InterfaceDeclaration("IToken", [TRANSFER], [TOKEN]), InterfaceDeclaration("IContract333333", [], [POOL])],
        [
            AddressDeclaration(TOKEN, "usdc_token", "IToken", known=True, comment="USDC"),
            AddressDeclaration(POOL, "contract_333333", "IContract333333"),
        ],
    )


def make_renderer(**kwargs):
    interfaces, addresses = declarations()
    return SolidityRenderer(interfaces, addresses, MAIN, **kwargs)


def test_sort_known_first():
    _, addresses = declarations()
    ordered = sort_address_declarations(list(reversed(addresses)))
    assert [d.name for d in ordered] == ["usdc_token", "contract_333333"]


def test_typed_call_through_interface():
    lines = make_renderer().render_call(typed_transfer(), "")
    assert lines[-1] == "IToken(USDC_TOKEN).transfer(CONTRACT_333333, 5);"


def test_value_bearing_call_uses_low_level_call():
    lines = make_renderer().render_call(typed_transfer(value="1000"), "")
    assert 'USDC_TOKEN.call{value: 1000}(abi.encodeWithSignature("transfer(address,uint256)", CONTRACT_333333, 5));' in lines[1]
    assert lines[2] == 'require(ok1, "call 1 failed");'


def test_opaque_call_replays_raw_payload():
    call = DecodedCall(
        target=POOL,
        name="unknownFunction_deadbeef",
        signature="unknownFunction_deadbeef()",
        tier=DecodeTier.OPAQUE,
        selector="0xdeadbeef",
        raw_call_data="0xdeadbeef0001",
        node_key="4",
    )
    lines = make_renderer().render_call(call, "")
    assert "could not be resolved" in lines[0]
    assert lines[1] == '(bool ok1, bytes memory ret1) = CONTRACT_333333.call(hex"deadbeef0001");'


def test_native_transfer():
    call = DecodedCall(target=OTHER, name="nativeTransfer", signature="nativeTransfer()",
                       tier=DecodeTier.NATIVE_TRANSFER, value="7")
    lines = make_renderer().render_call(call, "")
    assert lines[1] == '(bool ok1, bytes memory ret1) = 0x4444444444444444444444444444444444444444.call{value: 7}("");'


def test_selector_mismatch_falls_back_to_raw():
    call = typed_transfer()
    call.selector = "0x12345678"
    call.raw_call_data = "0x12345678"
    lines = make_renderer().render_call(call, "")
    assert "does not match selector" in lines[0]


def test_resolver_raw_comment_lists_reconstruction():
    call = typed_transfer()
    call.tier = DecodeTier.RESOLVER_RAW
    call.raw_call_data = "0xa9059cbb" + "00" * 32
    lines = make_renderer().render_call(call, "")
    assert lines[1].startswith("// reconstructed: to: address")


def test_full_render_layout():
    trigger = DecodedCall(
        target=POOL, name="flashLoan", signature="flashLoan(address,address[],uint256[],bytes)",
        params=[
            DecodedParam("recipient", "address", MAIN),
            DecodedParam("tokens", "address[]", [TOKEN]),
            DecodedParam("amounts", "uint256[]", [1]),
            DecodedParam("userData", "bytes", "0x"),
        ],
        tier=DecodeTier.RESOLVER_TYPED, node_key="1", order=1, sequence=1,
    )
    region = CallbackRegion(
        kind=CallbackKind.BALANCER_FLASH_LOAN, trigger_key="1", trigger_order=1, start=2, end=51,
        callback_method="receiveFlashLoan", calls=[typed_transfer(order=2, sequence=2)], trigger_call=trigger,
        possibly_truncated=True,
    )
    unknown = CallbackRegion(
        kind=CallbackKind.UNKNOWN_CALLBACK, trigger_key="9", trigger_order=9, start=10, end=60,
        callback_method="hook",
    )
    interfaces, addresses = declarations()
    interfaces[1].signatures.append(trigger.signature)
    source = render(
        [typed_transfer(order=0), typed_transfer(order=60, sequence=3)],
        [region, unknown],
        interfaces,
        addresses,
        MAIN,
        rpc_env_var="ETHEREUM_RPC_URL",
        block_number=19000000,
        transaction_hash="0x" + "ab" * 32,
    )

    assert source.startswith("// SPDX-License-Identifier: MIT\npragma solidity ^0.8.19;")
    assert 'import "forge-std/Test.sol";' in source
    assert "// Reproduces transaction 0x" + "ab" * 32 in source
    assert "interface IToken {\n    function transfer(address, uint256) external;\n}" in source
    assert "function flashLoan(address, address[] calldata, uint256[] calldata, bytes calldata) external;" in source
    assert "contract TraceReproduction is Test {" in source
    assert "address constant MAIN_ADDRESS = 0x1111111111111111111111111111111111111111;" in source
    assert "address constant USDC_TOKEN = 0x2222222222222222222222222222222222222222; // USDC" in source
    assert 'vm.createSelectFork(vm.envString("ETHEREUM_RPC_URL"), 19000000);' in source
    assert "vm.deal(MAIN_ADDRESS, 10 ether);" in source
    assert "function receiveFlashLoan(" in source
    assert "possibly truncated" in source
    assert "fallback() external payable {" in source

    test_body = source[source.index("function testReproduceTrace()"):]
    first, trigger_line, last = (
        test_body.index("// [0] transfer"),
        test_body.index("// [1] flashLoan"),
        test_body.index("// [60] transfer"),
    )
    assert first < trigger_line < last
    # Dynamic arrays are built in memory before the call
    assert (
        "        address[] memory arr1 = new address[](1);\n"
        "        arr1[0] = USDC_TOKEN;\n"
        "        uint256[] memory arr2 = new uint256[](1);\n"
        "        arr2[0] = 1;\n"
        "        IContract333333(CONTRACT_333333).flashLoan(address(this), arr1, arr2, hex\"\");"
    ) in test_body
    assert "[USDC_TOKEN]" not in source
    assert test_body.index("vm.startPrank(MAIN_ADDRESS);") < first
    assert "vm.stopPrank();" in test_body


def test_render_is_deterministic():
    interfaces, addresses = declarations()
    calls = [typed_transfer(order=0), typed_transfer(order=1, sequence=1)]
    assert render(calls, [], interfaces, addresses, MAIN) == render(calls, [], interfaces, addresses, MAIN)


def test_dydx_handler_adds_account_info_struct():
    region = CallbackRegion(kind=CallbackKind.DYDX_FLASH_LOAN, trigger_key="0", trigger_order=0,
                            start=1, end=50, callback_method="callFunction")
    interfaces, addresses = declarations()
    source = render([], [region], interfaces, addresses, MAIN)
    assert "struct AccountInfo {" in source
    assert source.index("struct AccountInfo {") < source.index("contract TraceReproduction")


def test_value_bearing_call_encodes_dynamic_array_local():
    call = DecodedCall(
        target=TOKEN, name="batch", signature="batch(uint256[])",
        params=[DecodedParam("ids", "uint256[]", ["1", "2"])],
        tier=DecodeTier.RESOLVER_TYPED, value="3", node_key="0", order=0,
    )
    lines = make_renderer().render_call(call, "")
    assert lines[1:4] == [
        "uint256[] memory arr1 = new uint256[](2);",
        "arr1[0] = 1;",
        "arr1[1] = 2;",
    ]
    assert 'abi.encodeWithSignature("batch(uint256[])", arr1)' in lines[4]


def test_same_kind_regions_dispatch_on_entry_count():
    def region(trigger, amount):
        transfer = typed_transfer(order=trigger + 1, sequence=trigger + 1)
        transfer.params[1].value = amount
        return CallbackRegion(
            kind=CallbackKind.BALANCER_FLASH_LOAN, trigger_key=str(trigger), trigger_order=trigger,
            start=trigger + 1, end=trigger + 50, callback_method="receiveFlashLoan", calls=[transfer],
        )

    interfaces, addresses = declarations()
    source = render([], [region(0, 1), region(100, 2)], interfaces, addresses, MAIN)

    assert source.count("function receiveFlashLoan(") == 1
    assert "    uint256 private receiveFlashLoanCalls;" in source
    handler = source[source.index("function receiveFlashLoan("):source.index("function testReproduceTrace()")]
    assert "uint256 invocation = receiveFlashLoanCalls++;" in handler
    first = handler[handler.index("if (invocation == 0) {"):handler.index("} else if (invocation == 1) {")]
    second = handler[handler.index("} else if (invocation == 1) {"):]
    assert first.count(".transfer(") == 1
    assert "IToken(USDC_TOKEN).transfer(CONTRACT_333333, 1);" in first
    assert second.count(".transfer(") == 1
    assert "IToken(USDC_TOKEN).transfer(CONTRACT_333333, 2);" in second


def test_single_region_needs_no_counter():
    region = CallbackRegion(kind=CallbackKind.BALANCER_FLASH_LOAN, trigger_key="0", trigger_order=0,
                            start=1, end=50, callback_method="receiveFlashLoan", calls=[typed_transfer(order=1)])
    interfaces, addresses = declarations()
    source = render([], [region], interfaces, addresses, MAIN)
    assert "receiveFlashLoanCalls" not in source
    assert "if (invocation" not in source


def test_untyped_tuple_signature_replays_raw():
    call = DecodedCall(
        target=POOL, name="openPosition", signature="openPosition(tuple)",
        params=[DecodedParam("position", "tuple", None)],
        tier=DecodeTier.RESOLVER_RAW, raw_call_data="0x", node_key="2",
    )
    renderer = make_renderer()
    lines = renderer.render_call(call, "")
    assert "parameter types are unknown" in lines[0]
    assert lines[-1] == 'require(ok1, "call 1 failed");'
    assert renderer._interface_function("openPosition(tuple)") is None
