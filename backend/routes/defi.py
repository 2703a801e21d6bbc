from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from backend.dependencies import get_service
from backend.error_handlers import respond
from defi_pulse.utils.validation import parse_coin_list


router = APIRouter()


@router.get("/chains")
async def chains(service=Depends(get_service)):
    return await respond(lambda: service.get_chains(), "Failed to fetch chain data")


@router.get("/chains/{chain}/history")
async def chain_history(chain: str, service=Depends(get_service)):
    return await respond(lambda: service.get_chain_tvl_history(chain), "Failed to fetch chain TVL history")


@router.get("/prices")
async def prices(
    coins: Optional[str] = Query(default=None, description="Comma-separated chain:address ids"),
    service=Depends(get_service),
):
    coin_list = parse_coin_list(coins)
    return await respond(lambda: service.get_prices(coin_list or None), "Failed to fetch prices")


@router.get("/protocol/{slug}")
async def protocol(slug: str, service=Depends(get_service)):
    return await respond(lambda: service.get_protocol(slug), "Failed to fetch protocol data")


@router.get("/summary")
async def summary(service=Depends(get_service)):
    return await respond(lambda: service.get_summary(), "Failed to fetch DeFi summary")


@router.get("/yields")
async def yields(
    protocol: Optional[str] = Query(default=None, description="Filter pools by project name"),
    service=Depends(get_service),
):
    return await respond(lambda: service.get_yields(protocol), "Failed to fetch yield data")


@router.get("/eth-history")
async def eth_history(
    period: str = Query(default="7d", description="24h|7d|30d|90d|1y"),
    service=Depends(get_service),
):
    return await respond(lambda: service.get_price_history(period), "Failed to fetch price history")


@router.get("/fees")
async def fees(protocol: Optional[str] = Query(default=None), service=Depends(get_service)):
    return await respond(lambda: service.get_protocol_fees(protocol), "Failed to fetch fee data")


@router.get("/context", response_class=PlainTextResponse)
async def live_context(service=Depends(get_service)):
    return await service.get_live_context()
