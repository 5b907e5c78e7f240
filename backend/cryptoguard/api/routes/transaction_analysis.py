from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from cryptoguard.data.transaction_patterns import KNOWN_CONTRACTS, TRANSACTION_PATTERNS
from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.transaction import TransactionAnalysisRequest
from cryptoguard.services.quota import TRANSACTION_ANALYSIS
from cryptoguard.services.transaction_analysis import validate_transaction_request

router = APIRouter(prefix="/api/transaction-analysis", tags=["transaction-analysis"])


@router.post("")
async def analyze(
    payload: TransactionAnalysisRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    tx_hash, tx_data, analysis_type = validate_transaction_request(
        payload.transaction_hash, payload.transaction_data, payload.analysis_type
    )
    return await services.transaction_analysis.analyze(tx_hash, tx_data, analysis_type)


@router.get("")
async def transaction_info(
    action: Optional[str] = Query(None),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    if action == "patterns":
        return {
            "success": True,
            "transactionPatterns": [
                {
                    "id": pattern.key,
                    "description": pattern.description,
                    "explanation": pattern.explanation,
                    "riskLevel": pattern.risk_level,
                }
                for pattern in TRANSACTION_PATTERNS
            ],
        }

    if action == "contracts":
        return {
            "success": True,
            "knownContracts": [
                {"address": address, "name": name} for address, name in KNOWN_CONTRACTS.items()
            ],
        }

    if action == "status":
        snapshot = services.quotas.get(TRANSACTION_ANALYSIS).snapshot()
        return {
            "success": True,
            "status": {
                "apiCallsUsed": snapshot.calls_used,
                "apiCallsRemaining": snapshot.calls_remaining,
                "canAnalyze": snapshot.can_make_call,
            },
        }

    return {
        "success": True,
        "message": "Transaction Analysis System",
        "usage": {
            "endpoint": "/api/transaction-analysis",
            "method": "POST",
            "body": {
                "transactionHash": "Blockchain transaction hash",
                "transactionData": "Optional: Full transaction data object",
                "analysisType": "full|quick|security",
            },
            "actions": [
                "GET ?action=patterns - Get known transaction patterns",
                "GET ?action=contracts - Get known contract addresses",
                "GET ?action=status - Check API usage status",
            ],
        },
    }
