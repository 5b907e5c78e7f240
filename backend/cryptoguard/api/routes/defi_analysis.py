from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from cryptoguard.data.defi_protocols import DEFI_PROTOCOLS
from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.defi import DefiAnalysisRequest
from cryptoguard.services.defi_analysis import ANALYSIS_TYPES, validate_defi_request

router = APIRouter(prefix="/api/defi-analysis", tags=["defi-analysis"])


@router.post("")
async def analyze(
    payload: DefiAnalysisRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    input_text, analysis_type, user_level, amount = validate_defi_request(
        payload.input, payload.analysis_type, payload.user_level, payload.amount
    )
    return await services.defi_analysis.analyze(input_text, analysis_type, user_level, amount)


@router.get("")
async def defi_info(action: Optional[str] = Query(None)) -> Dict[str, Any]:
    if action == "protocols":
        return {
            "success": True,
            "protocols": [
                {
                    "id": key,
                    "name": protocol.name,
                    "type": protocol.type,
                    "blockchain": protocol.blockchain,
                    "tvl": protocol.tvl,
                    "riskLevel": protocol.risk_level,
                }
                for key, protocol in DEFI_PROTOCOLS.items()
            ],
        }

    if action == "analysis-types":
        return {"success": True, "analysisTypes": ANALYSIS_TYPES}

    return {
        "success": True,
        "message": "DeFi Analysis System",
        "usage": {
            "endpoint": "/api/defi-analysis",
            "method": "POST",
            "body": {
                "input": "Protocol name, strategy, or transaction to analyze",
                "analysisType": "protocol|strategy|transaction|risk|yield",
                "userLevel": "beginner|intermediate|advanced",
                "amount": "Optional: investment amount for risk assessment",
            },
        },
    }
