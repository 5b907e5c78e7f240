from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from cryptoguard.dependencies import ServiceContainer, get_services

router = APIRouter(prefix="/api", tags=["network"])


@router.get("/gas-tracker")
async def gas_tracker(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    return await services.network.gas_prices()


@router.get("/latest-block")
async def latest_block(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    return await services.network.latest_block()
