import pytest

from trace_replay import ReplayPipeline, generate_replay
from trace_replay.models import TokenInfo

from conftest import BALANCER_VAULT, MAIN, OTHER, POOL, TOKEN, WETH, FakeEnrichment, encode_call, invocation, make_trace


def offline_pipeline(**kwargs) -> ReplayPipeline:
    kwargs.setdefault("registries", [])
    return ReplayPipeline(**kwargs)


async def test_flash_loan_trace_end_to_end(flash_loan_trace):
    enrichment = FakeEnrichment({TOKEN: TokenInfo(kind="ERC20", symbol="DAI2", name="Not Dai", decimals=18)})
    pipeline = offline_pipeline(enrichment=enrichment)
    model = await pipeline.build_model(flash_loan_trace)

    assert model.main_actor == MAIN
    assert model.rpc_env_var == "RPC_URL"
    assert len(model.walk.callback_regions) == 1
    # Well-known addresses and the main actor are never enriched
    assert BALANCER_VAULT not in enrichment.calls
    assert WETH not in enrichment.calls
    assert set(enrichment.calls) == {OTHER, TOKEN}

    source = pipeline.render_model()
    assert "address constant DAI2_TOKEN = 0x2222222222222222222222222222222222222222; // DAI2 (Not Dai), 18 decimals" in source
    assert "address constant BALANCER_VAULT" in source
    assert "function receiveFlashLoan(" in source
    assert "IBalancerVault" not in source
    assert "WETH_TOKEN" in source


async def test_registries_are_frozen_after_build(flash_loan_trace):
    pipeline = offline_pipeline()
    await pipeline.build_model(flash_loan_trace)
    assert pipeline.address_registry.frozen
    assert pipeline.interface_set.frozen
    with pytest.raises(RuntimeError):
        pipeline.address_registry.register("0x" + "99" * 20)


async def test_pipeline_runs_once(flash_loan_trace):
    pipeline = offline_pipeline()
    await pipeline.build_model(flash_loan_trace)
    with pytest.raises(RuntimeError):
        await pipeline.build_model(flash_loan_trace)


def test_render_before_build_fails():
    with pytest.raises(RuntimeError):
        offline_pipeline().render_model()


def test_output_is_deterministic(flash_loan_trace):
    first = offline_pipeline().run(flash_loan_trace, block_number=123)
    second = offline_pipeline().run(flash_loan_trace, block_number=123)
    assert first == second
    assert 'vm.createSelectFork(vm.envString("RPC_URL"), 123);' in first


def test_enrichment_completion_order_does_not_change_output(flash_loan_trace):
    infos = {TOKEN: TokenInfo(kind="ERC20", symbol="AAA"), OTHER: TokenInfo(kind="ERC20", symbol="AAA")}
    fast_first = FakeEnrichment(infos, delays={TOKEN: 0.0, OTHER: 0.05})
    slow_first = FakeEnrichment(infos, delays={TOKEN: 0.05, OTHER: 0.0})
    assert offline_pipeline(enrichment=fast_first).run(flash_loan_trace) == \
        offline_pipeline(enrichment=slow_first).run(flash_loan_trace)


def test_chain_selects_fork_env_var(flash_loan_trace):
    source = offline_pipeline(chain="base").run(flash_loan_trace)
    assert 'vm.envString("BASE_RPC_URL")' in source
    # Ethereum well-known names do not apply on other chains
    assert "BALANCER_VAULT" not in source


def test_malformed_trace_raises_before_output():
    with pytest.raises(ValueError):
        offline_pipeline().run({"nodes": []})
    with pytest.raises(ValueError):
        offline_pipeline().run(make_trace({"7": [invocation(MAIN, TOKEN)]}))


def test_explicit_main_actor_and_transaction_hash():
    tx_hash = "0x" + "cd" * 32
    trace = make_trace(
        {"3": [invocation(POOL, TOKEN, encode_call("transfer(address,uint256)", OTHER, 9))]},
        **{"3": {"transactionHash": tx_hash}},
    )
    source = generate_replay(trace, main_actor=POOL, registries=[])
    assert f"// Reproduces transaction {tx_hash}" in source
    # Only call targets are registered, so the recipient stays a literal
    assert "ITransferContract(CONTRACT_222222).transfer(0x4444444444444444444444444444444444444444, 9);" in source
    assert "address constant MAIN_ADDRESS = 0x3333333333333333333333333333333333333333;" in source


def test_decoded_method_struct_parameter_is_typed():
    position = {"token": TOKEN, "amount": "1000", "0": TOKEN, "1": "1000"}
    trace = make_trace({"0": [invocation(
        MAIN,
        POOL,
        encode_call("openPosition((address,uint256))", (TOKEN, 1000)),
        decodedMethod={
            "name": "openPosition",
            "callParams": [{"name": "position", "type": "tuple", "value": position}],
        },
    )]})
    source = generate_replay(trace, main_actor=MAIN, registries=[])

    assert "function openPosition(Struct1 calldata) external;" in source
    assert "struct Struct1 {" in source
    assert ".openPosition(Struct1(0x2222222222222222222222222222222222222222, 1000));" in source
    assert "{'token'" not in source
    assert "(tuple)" not in source


def test_trigger_arrays_are_built_in_memory(flash_loan_trace):
    source = offline_pipeline().run(flash_loan_trace)
    assert "address[] memory arr1 = new address[](1);" in source
    assert "arr1[0] = WETH_TOKEN;" in source
    assert "uint256[] memory arr2 = new uint256[](1);" in source
    assert "[WETH_TOKEN]" not in source
