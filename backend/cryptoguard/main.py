from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cryptoguard.api.routes import router as api_router
from cryptoguard.core.config import settings
from cryptoguard.core.errors import CryptoGuardError
from cryptoguard.core.logging import configure_logging, get_logger
from cryptoguard.dependencies import build_services
from cryptoguard.middleware import RequestTracingMiddleware, get_request_id

configure_logging()
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info("Starting CryptoGuard AI API...")

    services = build_services(settings)
    app.state.services = services
    if services.completion_client is None:
        logger.warning("⚠️ No AI provider configured, every AI endpoint will serve fallbacks")
    else:
        logger.info(
            "🤖 AI provider: %s (%s)",
            services.completion_client.provider,
            services.completion_client.model,
        )

    yield

    logger.info("Shutting down CryptoGuard AI API...")
    await services.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_title,
    version=settings.app_version,
    description="Crypto jargon translation, DeFi guidance and BNB Chain risk scanning",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.frontend_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTracingMiddleware)

app.include_router(api_router)


@app.exception_handler(CryptoGuardError)
async def cryptoguard_error_handler(request: Request, exc: CryptoGuardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("❌ %s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body') or 'body'}: {error.get('msg')}"
        for error in errors
    )
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request body", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s [%s]: %s",
        request.method,
        request.url.path,
        get_request_id(request),
        exc,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})
