"""Middleware package for the CryptoGuard API."""

from cryptoguard.middleware.request_tracing import RequestTracingMiddleware, get_request_id

__all__ = ["RequestTracingMiddleware", "get_request_id"]
