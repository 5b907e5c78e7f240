from __future__ import annotations

from fastapi import APIRouter

from . import (
    crypto_query,
    defi_analysis,
    general,
    network,
    scanner,
    security_analysis,
    smart_translator,
    transaction_analysis,
)

router = APIRouter()
router.include_router(general.router)
router.include_router(smart_translator.router)
router.include_router(crypto_query.router)
router.include_router(defi_analysis.router)
router.include_router(transaction_analysis.router)
router.include_router(security_analysis.router)
router.include_router(scanner.router)
router.include_router(network.router)
