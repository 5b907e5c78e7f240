import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from google import genai
from openai import OpenAI

load_dotenv()

AI_KEY_HINT = (
    "Set GOOGLE_AI_API_KEY in backend/.env (or the process environment) "
    "and restart the server. Keys are issued at https://aistudio.google.com/app/apikey."
)
OPEN_ROUTER_KEY_HINT = (
    "Set OPEN_ROUTER_API_KEY in backend/.env (or the process environment) "
    "and restart the server, or switch AI_PROVIDER back to 'gemini'."
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_origins(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    app_title: str = "CryptoGuard AI API"
    app_version: str = "2.0.0"
    ai_provider: str = os.getenv("AI_PROVIDER", "gemini").strip().lower()
    google_ai_api_key: Optional[str] = os.getenv("GOOGLE_AI_API_KEY") or os.getenv(
        "GEMINI_API_KEY"
    )
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    open_router_api_key: Optional[str] = os.getenv("OPEN_ROUTER_API_KEY")
    open_router_model: str = os.getenv("OPEN_ROUTER_MODEL", "google/gemini-2.0-flash-exp:free")
    ai_timeout_seconds: float = _env_float("AI_TIMEOUT_SECONDS", 30.0)
    llm_call_log_dir: Optional[str] = os.getenv("LLM_CALL_LOG_DIR")
    quota_window_seconds: int = _env_int("QUOTA_WINDOW_SECONDS", 24 * 60 * 60)
    translator_max_daily_calls: int = _env_int("TRANSLATOR_MAX_DAILY_CALLS", 45)
    query_max_daily_calls: int = _env_int("QUERY_MAX_DAILY_CALLS", 40)
    defi_max_daily_calls: int = _env_int("DEFI_MAX_DAILY_CALLS", 30)
    transaction_max_daily_calls: int = _env_int("TRANSACTION_MAX_DAILY_CALLS", 25)
    security_analysis_max_daily_calls: int = _env_int("SECURITY_ANALYSIS_MAX_DAILY_CALLS", 50)
    bscscan_api_key: str = os.getenv("BSCSCAN_API_KEY", "")
    bscscan_api_url: str = os.getenv("BSCSCAN_API_URL", "https://api.bscscan.com/api")
    explorer_timeout_seconds: float = _env_float("EXPLORER_TIMEOUT_SECONDS", 15.0)
    scan_cache_max_entries: int = _env_int("SCAN_CACHE_MAX_ENTRIES", 256)
    scan_cache_ttl_seconds: float = _env_float("SCAN_CACHE_TTL_SECONDS", 300.0)
    frontend_origins: tuple[str, ...] = _env_origins(
        "FRONTEND_ORIGINS", "http://localhost:3000,http://localhost:3001"
    )

    @property
    def ai_key_hint(self) -> str:
        if self.ai_provider == "openrouter":
            return OPEN_ROUTER_KEY_HINT
        return AI_KEY_HINT


settings = Settings()


def create_gemini_client(logger, config: Settings = settings) -> Optional[genai.Client]:
    """Initialise and return the Gemini client if an API key is configured."""
    if not config.google_ai_api_key:
        logger.warning("⚠️ GOOGLE_AI_API_KEY not found in environment variables")
        return None

    try:
        client = genai.Client(api_key=config.google_ai_api_key)
        logger.info("✅ Gemini API configured successfully (model=%s)", config.gemini_model)
        return client
    except Exception as e:
        logger.error(f"❌ Failed to initialize Gemini client: {e}")
        return None


def create_openai_client(logger, config: Settings = settings) -> Optional[OpenAI]:
    """Initialise and return the OpenAI client for OpenRouter if an API key is configured."""
    if not config.open_router_api_key:
        logger.warning("⚠️ OPEN_ROUTER_API_KEY not found in environment variables")
        return None

    try:
        client = OpenAI(
            base_url="https://openrouter.ai/api/v1",
            api_key=config.open_router_api_key,
        )
        logger.info("✅ OpenRouter API configured successfully")
        return client
    except Exception as e:
        logger.error(f"❌ Failed to initialize OpenRouter client: {e}")
        return None
