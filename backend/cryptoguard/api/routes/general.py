from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from cryptoguard.core.errors import ConfigurationError
from cryptoguard.dependencies import ServiceContainer, get_services

router = APIRouter(tags=["general"])


@router.get("/", response_model=Dict[str, str])
async def read_root() -> Dict[str, str]:
    return {
        "message": "CryptoGuard AI API is running!",
        "version": "2.0.0",
        "docs": "/docs",
    }


@router.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/api/ai-status")
async def ai_status(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Report the AI provider and every endpoint's quota window."""
    client = services.completion_client
    if client is None:
        raise ConfigurationError("AI provider not configured", details=services.config.ai_key_hint)

    return {
        "success": True,
        "provider": client.provider,
        "model": client.model,
        "quotas": {
            name: snapshot.to_dict() for name, snapshot in services.quotas.snapshots().items()
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
