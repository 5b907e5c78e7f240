from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from cryptoguard.core.errors import TermNotFound
from cryptoguard.data.crypto_dictionary import (
    CRYPTO_DICTIONARY,
    available_terms,
    entries_by_category,
    lookup,
)
from cryptoguard.dependencies import ServiceContainer, get_services
from cryptoguard.models.translator import SmartTranslatorRequest
from cryptoguard.services.smart_translator import validate_translator_request

router = APIRouter(prefix="/api/smart-translator", tags=["smart-translator"])


@router.post("")
async def translate(
    payload: SmartTranslatorRequest,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    text, mode = validate_translator_request(payload.text, payload.mode)
    return await services.smart_translator.translate(text, mode)


@router.get("")
async def dictionary(term: Optional[str] = Query(None)) -> Dict[str, Any]:
    """Look up one term, or list the dictionary when no term is given."""
    if term is None:
        return {
            "success": True,
            "availableTerms": available_terms(50),
            "totalTerms": len(CRYPTO_DICTIONARY),
            "categories": {
                category: len(entries) for category, entries in entries_by_category().items()
            },
            "usage": "POST with { text, mode: 'term' | 'text' }, or GET ?term=<term>",
        }

    entry = lookup(term)
    if entry is None:
        raise TermNotFound("Term not found", details=f"'{term}' is not in the crypto dictionary")

    return {
        "success": True,
        "term": entry.term,
        "definition": entry.technical_definition,
        "simpleDefinition": entry.simple_definition,
        "category": entry.category,
        "riskLevel": entry.risk_level.value,
        "aiUsed": False,
    }
