"""Error taxonomy shared by every route.

Caller input problems surface as 4xx, configuration and unrecovered upstream
problems as 5xx. Every error renders as
``{"success": false, "error": ..., "details": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CryptoGuardError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class RequestValidationFailed(CryptoGuardError):
    status_code = 400


class TermNotFound(CryptoGuardError):
    status_code = 404


class ConfigurationError(CryptoGuardError):
    status_code = 500


class UpstreamFailure(CryptoGuardError):
    """An external service (AI provider or block explorer) could not be used."""

    status_code = 502


class UpstreamRateLimited(UpstreamFailure):
    """The AI provider rejected the call with a rate-limit / quota signal."""

    status_code = 429


class ExplorerError(UpstreamFailure):
    """The block explorer API failed or answered with an error status."""
