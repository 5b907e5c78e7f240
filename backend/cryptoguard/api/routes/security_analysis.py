from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.security_analysis import SecurityAnalysisRequest
from cryptoguard.services.security_analysis import validate_security_analysis_request

router = APIRouter(prefix="/api/ai-security-analysis", tags=["ai-security-analysis"])


@router.post("")
async def analyze(
    payload: SecurityAnalysisRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Security recommendations for a wallet from the activity the dashboard already fetched."""
    activity = validate_security_analysis_request(
        payload.wallet_address,
        payload.balance,
        payload.transactions,
        payload.token_transfers,
        payload.internal_transactions,
        payload.risk_factors,
    )
    return await services.security_analysis.analyze(activity)
