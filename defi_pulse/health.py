"""System health checks."""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List

from defi_pulse.cache import CacheStore, cache
from defi_pulse.utils.logging import get_logger

logger = get_logger(__name__)

UPSTREAM_SOURCES = ("llama_tvl", "llama_coins", "llama_yields")


class HealthStatus:
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


async def check_cache(store: CacheStore = cache) -> Dict[str, Any]:
    """Round-trip a probe value through the cache store."""
    test_key = "_health_check_probe"
    try:
        store.set(test_key, "ok")
        value, _, present = store.get(test_key)
        store.delete(test_key)
    except Exception as e:
        logger.error(f"Cache health check failed: {e}")
        return {"status": HealthStatus.UNHEALTHY, "message": f"Cache error: {e}"}

    if present and value == "ok":
        return {
            "status": HealthStatus.HEALTHY,
            "message": "Cache working correctly",
            "entries": len(store),
        }
    return {"status": HealthStatus.DEGRADED, "message": "Cache read/write issue"}


async def check_config() -> Dict[str, Any]:
    """Check configuration loading."""
    try:
        from defi_pulse.config import load_config
        config = load_config()
        for field in ("app_name", "cache_ttl", "upstream_timeout"):
            getattr(config, field)
        return {"status": HealthStatus.HEALTHY, "message": "Configuration loaded"}
    except Exception as e:
        logger.error(f"Config health check failed: {e}")
        return {"status": HealthStatus.UNHEALTHY, "message": f"Config error: {e}"}


async def check_upstreams() -> Dict[str, Any]:
    """Ask each upstream source whether it answers; any failure degrades."""
    from defi_pulse.data_collection.providers import get_source

    names: List[str] = list(UPSTREAM_SOURCES)
    results = await asyncio.gather(*(get_source(n).health_check() for n in names))
    sources = dict(zip(names, results))
    healthy = all(sources.values())
    return {
        "status": HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
        "message": "All upstream sources reachable" if healthy else "Some upstream sources unreachable",
        "sources": sources,
    }


def _overall(statuses: List[str]) -> str:
    if all(s == HealthStatus.HEALTHY for s in statuses):
        return HealthStatus.HEALTHY
    if any(s == HealthStatus.UNHEALTHY for s in statuses):
        return HealthStatus.UNHEALTHY
    return HealthStatus.DEGRADED


async def get_health_status(deep: bool = False) -> Dict[str, Any]:
    """
    Get overall system health status.

    Args:
        deep: Also probe the upstream sources (performs network calls)

    Returns:
        Dict containing overall status and component statuses
    """
    checks = {"cache": check_cache(), "config": check_config()}
    if deep:
        checks["upstream"] = check_upstreams()

    results = await asyncio.gather(*checks.values(), return_exceptions=True)

    components: Dict[str, Dict[str, Any]] = {}
    for name, result in zip(checks.keys(), results):
        if isinstance(result, dict):
            components[name] = result
        else:
            components[name] = {"status": HealthStatus.UNHEALTHY, "message": str(result)}

    return {
        "status": _overall([c["status"] for c in components.values()]),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": components,
    }
