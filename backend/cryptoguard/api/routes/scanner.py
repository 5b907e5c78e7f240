from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.scanner import ScanRequest
from cryptoguard.services.security_scanner import validate_address

router = APIRouter(prefix="/api/scanner", tags=["scanner"])


@router.post("/wallet")
async def scan_wallet(
    payload: ScanRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    address = validate_address(payload.address, "Wallet")
    report = await services.scanner.scan_wallet(address)
    return report.to_payload()


@router.post("/contract")
async def scan_contract(
    payload: ScanRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    address = validate_address(payload.address, "Contract")
    report = await services.scanner.scan_contract(address)
    return report.to_payload()


@router.get("/status")
async def scanner_status(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    return {
        "success": True,
        "explorerConfigured": bool(services.config.bscscan_api_key),
        "cache": services.scanner.cache.get_stats(),
    }
