from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.query import CryptoQueryRequest
from cryptoguard.services.crypto_query import QUERY_CATEGORIES, SAMPLE_QUERIES, validate_query
from cryptoguard.services.quota import CRYPTO_QUERY

router = APIRouter(prefix="/api/crypto-query", tags=["crypto-query"])


@router.post("")
async def ask(
    payload: CryptoQueryRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    query = validate_query(payload.query)
    return await services.crypto_query.answer(query, payload.context)


@router.get("")
async def query_info(
    action: Optional[str] = Query(None),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    if action == "status":
        return {"success": True, "status": services.quotas.get(CRYPTO_QUERY).snapshot().to_dict()}

    if action == "categories":
        return {
            "success": True,
            "categories": list(QUERY_CATEGORIES),
            "sampleQueries": SAMPLE_QUERIES,
        }

    return {
        "success": True,
        "message": "Crypto Query System",
        "usage": {
            "endpoint": "/api/crypto-query",
            "method": "POST",
            "body": {"query": "Your crypto question", "context": "Optional: page or topic context"},
            "actions": [
                "GET ?action=status - Check API usage status",
                "GET ?action=categories - List query categories and sample queries",
            ],
        },
    }
