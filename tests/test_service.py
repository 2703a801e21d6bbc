from datetime import datetime, timezone

import pytest

from defi_pulse.data_collection.models import PricePair
from defi_pulse.insights import UNAVAILABLE_CONTEXT, UserPosition
from defi_pulse.service import DefiService
from defi_pulse.utils.errors import AggregationError, ValidationError

from conftest import COINS_URL, EETH, TVL_URL, WETH, YIELDS_URL


@pytest.fixture
def service(fetcher):
    return DefiService(fetcher=fetcher)


@pytest.mark.asyncio
async def test_get_prices_defaults_to_tracked_pair(upstream, service):
    assert await service.get_prices() == PricePair(base=3000.0, derivative=3050.0)


@pytest.mark.asyncio
async def test_get_prices_for_coins(upstream, service):
    prices = await service.get_prices([WETH])
    assert set(prices) == {WETH, EETH}
    assert upstream.calls[-1][0] == f"{COINS_URL}/prices/current/{WETH}"


@pytest.mark.asyncio
async def test_get_protocol_validates_slug(upstream, service):
    with pytest.raises(ValidationError):
        await service.get_protocol("../etc")
    assert upstream.calls == []

    detail = await service.get_protocol("ether.fi")
    assert detail.tvl == 6.0e9


@pytest.mark.asyncio
async def test_get_yields_alias_for_tracked_protocol(upstream, service):
    pools = await service.get_yields("etherfi")
    assert [p.pool for p in pools] == ["p1", "p3"]

    assert [p.pool for p in await service.get_yields("lido")] == ["p2"]
    assert len(await service.get_yields()) == 3


@pytest.mark.asyncio
async def test_compute_user_insights(upstream, service):
    result = await service.compute_user_insights(UserPosition(staked=10))
    assert result.current_metrics.apy == 3.5
    assert result.projected_rewards.yearly == pytest.approx(0.35)
    assert result.portfolio.staked_value == pytest.approx(30500.0)


@pytest.mark.asyncio
async def test_invalid_position_rejected_before_fetching(upstream, service):
    with pytest.raises(ValidationError):
        await service.compute_user_insights(UserPosition(staked=0))
    assert upstream.calls == []


@pytest.mark.asyncio
async def test_compute_user_insights_upstream_failure(upstream, service):
    upstream.fail(f"{TVL_URL}/protocol/ether.fi")
    with pytest.raises(AggregationError):
        await service.compute_user_insights(UserPosition(staked=1))


@pytest.mark.asyncio
async def test_get_price_history_uses_base_coin(upstream, service):
    upstream.fail(f"{COINS_URL}/chart/")
    history = await service.get_price_history("24h")
    assert history.coin == WETH
    assert history.fallback is True
    assert history.current_price == 3000.0


@pytest.mark.asyncio
async def test_get_chain_tvl_history(upstream, service):
    upstream.add(f"{TVL_URL}/v2/historicalChainTvl/Ethereum", [{"date": 1, "tvl": 2}])
    points = await service.get_chain_tvl_history("Ethereum")
    assert points[0].tvl == 2.0
    with pytest.raises(ValidationError):
        await service.get_chain_tvl_history("")


@pytest.mark.asyncio
async def test_get_live_context(upstream, service):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    text = await service.get_live_context(now=now)
    assert text.startswith("LIVE DEFI DATA (Current as of 2024-01-01 00:00:00 UTC):")
    assert "eETH Price: $3050.00" in text


@pytest.mark.asyncio
async def test_get_live_context_unavailable(upstream, service):
    upstream.fail(f"{YIELDS_URL}/pools")
    assert await service.get_live_context() == UNAVAILABLE_CONTEXT


@pytest.mark.asyncio
async def test_cache_stats_and_clear(upstream, service):
    await service.get_chains()
    stats = service.cache_stats()
    assert stats["count"] == 1
    assert stats["keys"] == [f"{TVL_URL}/v2/chains"]

    service.clear_cache()
    assert service.cache_stats()["count"] == 0
    await service.get_chains()
    assert upstream.count(f"{TVL_URL}/v2/chains") == 2
