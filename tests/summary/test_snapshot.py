import asyncio
import json

import pytest

from defi_pulse.data_collection.models import PricePair, ProtocolDetail, ProtocolSnapshot, YieldPoolSnapshot, as_payload
from defi_pulse.data_collection.providers import LlamaCoinsSource, LlamaTvlSource, LlamaYieldsSource
from defi_pulse.data_collection.summary import SummaryAggregator, TrackedProtocol
from defi_pulse.utils.errors import AggregationError, UpstreamError

from conftest import COINS_URL, TVL_URL, YIELDS_URL


def build_aggregator(fetcher, **kwargs):
    return SummaryAggregator(
        tvl_source=LlamaTvlSource(fetcher=fetcher),
        coins_source=LlamaCoinsSource(fetcher=fetcher),
        yields_source=LlamaYieldsSource(fetcher=fetcher),
        **kwargs,
    )


class Rendezvous:
    """Completes only once ``parties`` coroutines are waiting at the same time."""

    def __init__(self, parties):
        self.parties = parties
        self.arrived = 0
        self.event = asyncio.Event()

    async def wait(self):
        self.arrived += 1
        if self.arrived == self.parties:
            self.event.set()
        await asyncio.wait_for(self.event.wait(), timeout=1.0)


class StubSources:
    """Stands in for all three sources; every call waits at the rendezvous."""

    def __init__(self, rendezvous, fail=None):
        self.rendezvous = rendezvous
        self.fail = fail

    async def _enter(self, name):
        await self.rendezvous.wait()
        if self.fail == name:
            raise UpstreamError(f"{name} down")

    async def get_protocol(self, slug):
        await self._enter("protocol")
        return ProtocolDetail(name="Stub", slug=slug, tvl=10.0)

    async def get_price_pair(self, base, derivative):
        await self._enter("prices")
        return PricePair(base=1.0, derivative=1.1)

    async def get_yield_pools(self):
        await self._enter("yields")
        return (YieldPoolSnapshot(pool="a", chain=None, project="stub-pool", symbol="S", apy=4.0),)

    async def get_all_protocols(self):
        await self._enter("protocols")
        return (ProtocolSnapshot(name="Stub", slug="stub", tvl=10.0),)


def test_tracked_protocol_from_config(app_config):
    tracked = TrackedProtocol.from_config(app_config)
    assert tracked.slug == "ether.fi"
    assert tracked.yield_match == "ether.fi"
    assert tracked.base_symbol == "ETH"
    assert tracked.derivative_coin.startswith("ethereum:0x35fA")


@pytest.mark.asyncio
async def test_get_defi_summary(upstream, fetcher):
    summary = await build_aggregator(fetcher).get_defi_summary()

    assert summary.protocol.name == "ether.fi"
    assert summary.prices == PricePair(base=3000.0, derivative=3050.0)
    assert [p.pool for p in summary.yield_pools] == ["p1", "p3"]
    assert [p.name for p in summary.top_protocols] == ["Lido", "Aave", "ether.fi", "Broken"]
    assert summary.total_tvl == 56e9


@pytest.mark.asyncio
async def test_pool_filter_defaults_to_protocol_name(upstream, fetcher):
    tracked = TrackedProtocol(yield_match=None)
    summary = await build_aggregator(fetcher, tracked=tracked).get_defi_summary()
    assert [p.project for p in summary.yield_pools] == ["ether.fi-stake", "Ether.fi-Liquid"]


@pytest.mark.asyncio
async def test_top_n_is_configurable(upstream, fetcher):
    summary = await build_aggregator(fetcher, top_n=2).get_defi_summary()
    assert len(summary.top_protocols) == 2
    assert summary.total_tvl == 56e9


@pytest.mark.asyncio
async def test_sources_are_fetched_concurrently():
    stubs = StubSources(Rendezvous(4))
    aggregator = SummaryAggregator(stubs, stubs, stubs, tracked=TrackedProtocol(slug="stub"))
    summary = await aggregator.get_defi_summary()
    assert summary.protocol.slug == "stub"
    assert summary.yield_pools == ()


@pytest.mark.asyncio
async def test_failed_source_raises_aggregation_error():
    stubs = StubSources(Rendezvous(4), fail="yields")
    aggregator = SummaryAggregator(stubs, stubs, stubs, tracked=TrackedProtocol(slug="stub"))
    with pytest.raises(AggregationError) as exc_info:
        await aggregator.get_defi_summary()
    assert exc_info.value.source == "yields"


@pytest.mark.asyncio
async def test_missing_base_price_fails_the_summary(upstream, fetcher):
    upstream.add(f"{COINS_URL}/prices/current/", {"coins": {}})
    with pytest.raises(AggregationError) as exc_info:
        await build_aggregator(fetcher).get_defi_summary()
    assert exc_info.value.source == "prices"


@pytest.mark.asyncio
async def test_other_fetches_still_populate_cache_after_failure(upstream, fetcher):
    upstream.fail(f"{YIELDS_URL}/pools")
    with pytest.raises(AggregationError):
        await build_aggregator(fetcher).get_defi_summary()

    await asyncio.sleep(0.05)
    assert fetcher.store.get(f"{TVL_URL}/protocols")[2]
    assert fetcher.store.get(f"{TVL_URL}/protocol/ether.fi")[2]


@pytest.mark.asyncio
async def test_stale_data_keeps_summary_available(upstream, fetcher, clock):
    aggregator = build_aggregator(fetcher)
    first = await aggregator.get_defi_summary()

    clock.advance(600)
    upstream.fail(f"{YIELDS_URL}/pools")
    upstream.fail(f"{TVL_URL}/protocols")
    second = await aggregator.get_defi_summary()
    assert second == first


@pytest.mark.asyncio
async def test_repeat_calls_within_ttl_are_identical(upstream, fetcher, clock):
    aggregator = build_aggregator(fetcher)
    first = await aggregator.get_defi_summary()
    calls = len(upstream.calls)

    clock.advance(30)
    second = await aggregator.get_defi_summary()
    assert len(upstream.calls) == calls
    assert json.dumps(as_payload(first), sort_keys=True) == json.dumps(as_payload(second), sort_keys=True)
