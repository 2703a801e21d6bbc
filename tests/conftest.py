"""Pytest configuration and fixtures."""
import asyncio
import tempfile
from pathlib import Path

import httpx
import pytest
import yaml

from defi_pulse.cache import CacheStore, cache
from defi_pulse.data_collection.fetcher import CachedFetcher


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing."""
    config_data = {
        'app': {
            'name': 'Test App',
            'version': '0.1.0',
            'debug': True
        },
        'upstream': {
            'tvl_base_url': 'https://tvl.test',
            'coins_base_url': 'https://coins.test',
            'yields_base_url': 'https://yields.test',
            'timeout_seconds': 5
        },
        'cache': {
            'ttl_seconds': 30
        },
        'tracked_protocol': {
            'slug': 'ether.fi'
        },
        'logging': {
            'level': 'DEBUG',
            'format': 'text'
        }
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        config_path = f.name

    yield config_path

    Path(config_path).unlink()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return CacheStore(clock=clock)


@pytest.fixture
def fetcher(store):
    return CachedFetcher(store, ttl_seconds=60)


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the global cache before each test."""
    cache.clear()
    yield
    cache.clear()


TVL_URL = "https://api.llama.fi"
COINS_URL = "https://coins.llama.fi"
YIELDS_URL = "https://yields.llama.fi"

WETH = "ethereum:0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
EETH = "ethereum:0x35fA164735182de50811E8e2E824cFb9B6118ac2"

PROTOCOLS = [
    {"name": "Lido", "slug": "lido", "category": "Liquid Staking", "tvl": 30e9, "change_7d": 1.5, "chains": ["Ethereum"]},
    {"name": "Aave", "slug": "aave", "category": "Lending", "tvl": 20e9, "change_7d": -0.5},
    {"name": "Broken", "slug": "broken", "tvl": None},
    {"name": "ether.fi", "slug": "ether.fi", "category": "Liquid Restaking", "tvl": 6e9, "change_7d": 2.0, "mcap": 5e8},
    {"slug": "nameless", "tvl": 1e9},
]

ETHERFI_DETAIL = {
    "name": "ether.fi",
    "slug": "ether.fi",
    "category": "Liquid Restaking",
    "description": "Decentralized liquid restaking",
    "url": "https://ether.fi",
    "tvl": [
        {"date": 1700000000, "totalLiquidityUSD": 5.8e9},
        {"date": 1700086400, "totalLiquidityUSD": 6.0e9},
    ],
    "currentChainTvls": {"Ethereum": 6.0e9},
    "change_1d": 0.4,
    "change_7d": 2.0,
    "mcap": 5e8,
}

PRICES = {
    "coins": {
        WETH: {"price": 3000.0, "symbol": "WETH", "timestamp": 1700086400, "decimals": 18, "confidence": 0.99},
        EETH: {"price": 3050.0, "symbol": "eETH", "timestamp": 1700086400, "decimals": 18, "confidence": 0.98},
    }
}

POOLS = {
    "status": "success",
    "data": [
        {"pool": "p1", "chain": "Ethereum", "project": "ether.fi-stake", "symbol": "EETH", "apy": 3.5, "tvlUsd": 5e9},
        {"pool": "p2", "chain": "Ethereum", "project": "lido", "symbol": "STETH", "apy": 2.9, "tvlUsd": 2.5e10},
        {"pool": "p3", "chain": "Arbitrum", "project": "Ether.fi-Liquid", "symbol": "WEETH", "apy": 2.5, "tvlUsd": 1e8},
        {"pool": "p4", "chain": "Ethereum", "symbol": "BAD"},
    ],
}

CHAINS = [
    {"name": "Ethereum", "tvl": 60e9, "tokenSymbol": "ETH", "gecko_id": "ethereum", "chainId": 1},
    {"name": "Solana", "tvl": 8e9, "tokenSymbol": "SOL", "gecko_id": "solana", "chainId": None},
]


class DummyResponse:
    def __init__(self, data, status_code: int = 200):
        self._data = data
        self.status_code = status_code

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("error", request=None, response=None)


class FakeUpstream:
    """Serves canned payloads for GET requests, matched by URL prefix."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, data=None, status_code=200, error=None):
        self.routes[url] = (data, status_code, error)

    def fail(self, url, status_code=500):
        self.add(url, {"error": "boom"}, status_code=status_code)

    def count(self, prefix):
        return sum(1 for url, _ in self.calls if url.startswith(prefix))

    def client(self, timeout=None):
        return DummyClient(self)

    def _match(self, url):
        candidates = [u for u in self.routes if url == u or url.startswith(u)]
        return self.routes[max(candidates, key=len)] if candidates else None

    async def respond(self, url, params):
        self.calls.append((url, params))
        await asyncio.sleep(0)
        route = self._match(url)
        if route is None:
            return DummyResponse({"error": "not found"}, status_code=404)
        data, status_code, error = route
        if error is not None:
            raise error
        return DummyResponse(data, status_code=status_code)


class DummyClient:
    def __init__(self, upstream):
        self.upstream = upstream

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url, params=None):
        return await self.upstream.respond(url, params)


@pytest.fixture
def upstream(monkeypatch):
    """Replace httpx.AsyncClient with canned DeFiLlama responses."""
    fake = FakeUpstream()
    fake.add(f"{TVL_URL}/protocols", PROTOCOLS)
    fake.add(f"{TVL_URL}/protocol/ether.fi", ETHERFI_DETAIL)
    fake.add(f"{TVL_URL}/v2/chains", CHAINS)
    fake.add(f"{COINS_URL}/prices/current/", PRICES)
    fake.add(f"{YIELDS_URL}/pools", POOLS)
    monkeypatch.setattr(httpx, "AsyncClient", fake.client)
    return fake


@pytest.fixture(scope="session", autouse=True)
def app_config():
    """Load the repository config.yaml once, independent of the working directory."""
    from defi_pulse.config import load_config
    return load_config(str(Path(__file__).resolve().parent.parent / "config.yaml"))
