import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
import requests

from aptos_yield.adapters import (
    AmnisAdapter,
    EchoAdapter,
    JouleAdapter,
    ThalaAdapter,
)
from aptos_yield.adapters.base import PoolNotFoundError, UnsupportedOperationError
from aptos_yield.constants import PROTOCOL_FUNCTIONS
from aptos_yield.settings import YieldSettings

THALA_STATS = {
    "totalTVL": 42_000_000,
    "pools": [
        {"token": "APT", "stakingApy": 6.8, "tvl": 20_000_000, "extraRewardsApy": 1.2},
        {"token": "thAPT", "stakingApy": 7.5, "tvl": 5_000_000},
    ],
}

ECHO_STATS = {
    "totalTVL": 3_000_000,
    "pools": [
        {"token": "APT", "apy": 3.9, "tvl": 800_000, "baseApy": 3.0, "bonusApy": 0.9},
    ],
}

AMNIS_STATS = {"stakingApy": 5.1, "totalStaked": 90_000_000, "extraRewardsApy": 0.4}

JOULE_MARKET = {
    "data": [
        {
            "asset": {"assetName": "0x1::aptos_coin::AptosCoin"},
            "depositApy": 3.5,
            "extraAPY": {"depositAPY": 0.7},
            "borrowApy": 9.1,
            "marketSize": 15_000_000,
        },
        {
            "asset": {"assetName": "USDC"},
            "depositApy": 8.0,
            "borrowApy": 12.0,
            "marketSize": 4_000_000,
        },
    ]
}


@pytest.fixture
def config():
    return YieldSettings(
        account_address="0x1",
        _env_file=None,
    )


@pytest.fixture
def chain():
    client = MagicMock()
    client.account_address = "0xabc"
    client.submit_entry_function = AsyncMock(return_value="0xhash")
    return client


@pytest.fixture
def stub_json(monkeypatch):
    """Serve a canned JSON payload for every adapter HTTP read."""

    calls: list[str] = []

    def _install(payload):
        async def _fake_fetch_json(url, **kwargs):
            calls.append(url)
            if isinstance(payload, Exception):
                raise payload
            return payload

        monkeypatch.setattr("aptos_yield.adapters.base.fetch_json", _fake_fetch_json)
        return calls

    return _install


@pytest.mark.asyncio
async def test_thala_yield_info_for_known_pool(config, chain, stub_json):
    stub_json(THALA_STATS)
    adapter = ThalaAdapter(config, chain)

    info = await adapter.get_yield_info("APT")

    assert info.protocol == "Thala"
    assert info.token == "APT"
    assert info.apy == 6.8
    assert info.tvl == 20_000_000
    assert info.min_deposit == 0.1
    assert info.max_deposit == pytest.approx(2_000_000)
    assert info.extra_apy == 1.2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "adapter_cls, payload",
    [
        (ThalaAdapter, THALA_STATS),
        (EchoAdapter, ECHO_STATS),
        (AmnisAdapter, AMNIS_STATS),
        (JouleAdapter, JOULE_MARKET),
    ],
)
async def test_yield_info_raises_not_found_for_missing_pool(
    config, chain, stub_json, adapter_cls, payload
):
    config.adapters.echo.stats_url = "https://echo.example/stats"
    stub_json(payload)
    adapter = adapter_cls(config, chain)

    with pytest.raises(PoolNotFoundError) as excinfo:
        await adapter.get_yield_info("DOGE")

    assert excinfo.value.token == "DOGE"
    assert excinfo.value.protocol == adapter.protocol_name
    assert "DOGE" in str(excinfo.value)


@pytest.mark.asyncio
async def test_yield_info_propagates_transport_errors(config, chain, stub_json):
    stub_json(requests.exceptions.ConnectionError("boom"))
    adapter = ThalaAdapter(config, chain)

    with pytest.raises(requests.exceptions.ConnectionError):
        await adapter.get_yield_info("APT")


@pytest.mark.asyncio
async def test_yield_info_rejects_malformed_payload(config, chain, stub_json):
    stub_json({"unexpected": True})
    adapter = ThalaAdapter(config, chain)

    with pytest.raises(ValueError, match="Invalid Thala stats response"):
        await adapter.get_yield_info("APT")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "adapter_cls, payload",
    [
        (ThalaAdapter, requests.exceptions.Timeout("slow")),
        (AmnisAdapter, ValueError("Invalid JSON")),
        (JouleAdapter, {"data": []}),
        (EchoAdapter, ["not", "a", "dict"]),
    ],
)
async def test_protocol_tvl_never_raises(config, chain, stub_json, adapter_cls, payload):
    config.adapters.echo.stats_url = "https://echo.example/stats"
    stub_json(payload)
    adapter = adapter_cls(config, chain)

    assert await adapter.get_protocol_tvl() == 0.0


@pytest.mark.asyncio
async def test_protocol_tvl_reads_totals(config, chain, stub_json):
    stub_json(THALA_STATS)
    assert await ThalaAdapter(config, chain).get_protocol_tvl() == 42_000_000

    stub_json(AMNIS_STATS)
    assert await AmnisAdapter(config, chain).get_protocol_tvl() == 90_000_000

    stub_json(JOULE_MARKET)
    assert await JouleAdapter(config, chain).get_protocol_tvl() == 15_000_000


@pytest.mark.asyncio
async def test_protocol_tvl_discards_negative_values(config, chain, stub_json):
    stub_json({"totalTVL": -5})
    assert await ThalaAdapter(config, chain).get_protocol_tvl() == 0.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "adapter_cls, payload",
    [
        (ThalaAdapter, {"pools": []}),
        (AmnisAdapter, {"stakingApy": 5.1}),
        (EchoAdapter, {"pools": [], "totalTVL": None}),
    ],
)
async def test_protocol_tvl_missing_total_is_logged(
    config, chain, stub_json, caplog, adapter_cls, payload
):
    config.adapters.echo.stats_url = "https://echo.example/stats"
    stub_json(payload)
    adapter = adapter_cls(config, chain)

    assert await adapter.get_protocol_tvl() == 0.0

    record = next(
        r for r in caplog.records if f"Error fetching {adapter.protocol_name} TVL" in r.getMessage()
    )
    assert record.levelno >= logging.WARNING
    assert record.operation == "get_protocol_tvl"
    assert "missing" in record.getMessage()


@pytest.mark.asyncio
async def test_protocol_tvl_times_out_to_zero(config, chain, monkeypatch):
    config.adapter_timeout_seconds = 0.01

    async def _slow_fetch_json(url, **kwargs):
        await asyncio.sleep(1)
        return THALA_STATS

    monkeypatch.setattr("aptos_yield.adapters.base.fetch_json", _slow_fetch_json)

    assert await ThalaAdapter(config, chain).get_protocol_tvl() == 0.0


@pytest.mark.asyncio
async def test_yield_info_timeout_propagates(config, chain, monkeypatch):
    config.adapter_timeout_seconds = 0.01

    async def _slow_fetch_json(url, **kwargs):
        await asyncio.sleep(1)
        return THALA_STATS

    monkeypatch.setattr("aptos_yield.adapters.base.fetch_json", _slow_fetch_json)

    with pytest.raises(TimeoutError):
        await ThalaAdapter(config, chain).get_yield_info("APT")


@pytest.mark.asyncio
async def test_amnis_only_offers_native_token(config, chain, stub_json):
    calls = stub_json(AMNIS_STATS)
    adapter = AmnisAdapter(config, chain)

    info = await adapter.get_yield_info("APT")
    assert info.apy == 5.1
    assert info.max_deposit == pytest.approx(9_000_000)

    with pytest.raises(PoolNotFoundError):
        await adapter.get_yield_info("USDC")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_joule_sums_deposit_and_extra_apy(config, chain, stub_json):
    stub_json(JOULE_MARKET)
    adapter = JouleAdapter(config, chain)

    info = await adapter.get_yield_info("APT")

    assert info.apy == pytest.approx(4.2)
    assert info.deposit_apy == 3.5
    assert info.extra_apy == 0.7
    assert info.borrow_apy == 9.1
    assert info.tvl == 15_000_000


@pytest.mark.asyncio
async def test_joule_matches_pool_by_symbol(config, chain, stub_json):
    stub_json(JOULE_MARKET)

    info = await JouleAdapter(config, chain).get_yield_info("USDC")

    assert info.apy == 8.0
    assert info.extra_apy == 0.0


@pytest.mark.asyncio
async def test_apy_scale_normalises_fraction_sources(config, chain, stub_json):
    config.adapters.thala.apy_scale = 100
    stub_json(
        {"totalTVL": 1, "pools": [{"token": "APT", "stakingApy": 0.068, "tvl": 10}]}
    )

    info = await ThalaAdapter(config, chain).get_yield_info("APT")

    assert info.apy == pytest.approx(6.8)


@pytest.mark.asyncio
async def test_echo_requires_configured_endpoint(config, chain):
    adapter = EchoAdapter(config, chain)

    with pytest.raises(ValueError, match="Echo stats_url must be configured"):
        await adapter.get_yield_info("APT")
    assert await adapter.get_protocol_tvl() == 0.0


@pytest.mark.asyncio
async def test_echo_yield_breakdown(config, chain, stub_json):
    config.adapters.echo.stats_url = "https://echo.example/stats"
    stub_json(ECHO_STATS)

    info = await EchoAdapter(config, chain).get_yield_info("APT")

    assert info.apy == 3.9
    assert info.deposit_apy == 3.0
    assert info.extra_apy == 0.9
    assert info.max_deposit == pytest.approx(80_000)


@pytest.mark.asyncio
async def test_thala_stake_submits_fixed_point_amount(config, chain):
    adapter = ThalaAdapter(config, chain)

    tx_hash = await adapter.stake(1.5)

    assert tx_hash == "0xhash"
    chain.submit_entry_function.assert_awaited_once_with(
        PROTOCOL_FUNCTIONS["Thala"]["stake"], [], [("u64", 150_000_000)]
    )


@pytest.mark.asyncio
async def test_echo_unstake_uses_unlock(config, chain):
    await EchoAdapter(config, chain).unstake(0.25)

    chain.submit_entry_function.assert_awaited_once_with(
        PROTOCOL_FUNCTIONS["Echo"]["unstake"], [], [("u64", 25_000_000)]
    )


@pytest.mark.asyncio
async def test_amnis_stake_pays_out_to_account(config, chain):
    await AmnisAdapter(config, chain).stake(2)

    chain.submit_entry_function.assert_awaited_once_with(
        PROTOCOL_FUNCTIONS["Amnis"]["stake"],
        [],
        [("u64", 200_000_000), ("address", "0xabc")],
    )


@pytest.mark.asyncio
async def test_joule_deposit_lends_into_position(config, chain):
    await JouleAdapter(config, chain).deposit("APT", 10)

    chain.submit_entry_function.assert_awaited_once_with(
        PROTOCOL_FUNCTIONS["Joule"]["deposit"],
        ["0x1::aptos_coin::AptosCoin"],
        [("string", "1234"), ("u64", 1_000_000_000), ("bool", True)],
    )


@pytest.mark.asyncio
async def test_joule_has_no_unstake(config, chain):
    with pytest.raises(UnsupportedOperationError):
        await JouleAdapter(config, chain).unstake(1)
    chain.submit_entry_function.assert_not_awaited()


@pytest.mark.asyncio
async def test_staking_protocols_do_not_deposit(config, chain):
    with pytest.raises(UnsupportedOperationError, match="Thala does not support deposit"):
        await ThalaAdapter(config, chain).deposit("APT", 1)


@pytest.mark.asyncio
async def test_stake_failure_propagates(config, chain, caplog):
    chain.submit_entry_function = AsyncMock(side_effect=RuntimeError("rejected"))

    with pytest.raises(RuntimeError, match="rejected"):
        await ThalaAdapter(config, chain).stake(1)

    record = next(r for r in caplog.records if "Error during Thala stake" in r.getMessage())
    assert record.amount == 1
    assert record.operation == "stake"


@pytest.mark.asyncio
async def test_stake_success_logs_amount_and_hash(config, chain, caplog):
    caplog.set_level("INFO", logger="aptos_yield")

    await ThalaAdapter(config, chain).stake(3)

    record = next(r for r in caplog.records if "Successfully completed" in r.getMessage())
    assert record.amount == 3
    assert record.tx_hash == "0xhash"
