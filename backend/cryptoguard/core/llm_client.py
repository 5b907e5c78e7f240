import asyncio
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import OpenAI

from cryptoguard.core.config import (
    Settings,
    create_gemini_client,
    create_openai_client,
    settings,
)
from cryptoguard.core.errors import UpstreamFailure, UpstreamRateLimited
from cryptoguard.core.logging import get_logger, get_session_dir

logger = get_logger("llm_client")


class LLMCallLogger:
    """Appends one JSON line per AI call to ``llm_calls.log`` (and failures to
    ``api_errors.log``) inside the session log directory, when one is configured."""

    def __init__(self, log_dir: Optional[str] = None):
        self._llm_log_file: Optional[TextIO] = None
        self._error_log_file: Optional[TextIO] = None
        if log_dir:
            session_dir = get_session_dir(log_dir)
            self._llm_log_file = open(session_dir / "llm_calls.log", "a")
            self._error_log_file = open(session_dir / "api_errors.log", "a")

    def close(self):
        if self._llm_log_file:
            self._llm_log_file.close()
            self._llm_log_file = None
        if self._error_log_file:
            self._error_log_file.close()
            self._error_log_file = None

    def log_call(
        self,
        request_id: str,
        service_name: str,
        model: str,
        prompt_chars: int,
        duration_ms: int,
        success: bool,
        error_type: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "service": service_name,
            "model": model,
            "prompt_chars": prompt_chars,
            "duration_ms": duration_ms,
            "success": success,
        }
        if not success:
            log_entry["error_type"] = error_type
            log_entry["error_message"] = error_message

        logger.debug("AI call %s", log_entry)
        if self._llm_log_file is None:
            return

        self._llm_log_file.write(json.dumps(log_entry) + "\n")
        self._llm_log_file.flush()

        if not success and self._error_log_file is not None:
            error_entry = {
                key: log_entry[key]
                for key in ("timestamp", "request_id", "service", "model", "error_type", "error_message")
            }
            self._error_log_file.write(json.dumps(error_entry) + "\n")
            self._error_log_file.flush()


class CompletionClient:
    """Sends a system prompt plus user input to a text-generation provider and
    returns the raw completion text.

    Provider rate-limit signals become ``UpstreamRateLimited``; every other
    provider problem (network, HTTP status, timeout, empty completion) becomes
    ``UpstreamFailure``.
    """

    provider = "base"

    def __init__(
        self,
        model: str,
        timeout_seconds: float = 30.0,
        call_logger: Optional[LLMCallLogger] = None,
    ):
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._call_logger = call_logger or LLMCallLogger()

    async def _generate(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError

    def close(self) -> None:
        self._call_logger.close()

    def _translate_error(self, exc: Exception) -> UpstreamFailure:
        return UpstreamFailure(f"{self.provider} request failed", details=str(exc))

    async def complete(self, service_name: str, system_prompt: str, user_prompt: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.monotonic()
        prompt_chars = len(system_prompt) + len(user_prompt)

        try:
            text = await asyncio.wait_for(
                self._generate(system_prompt, user_prompt), timeout=self.timeout_seconds
            )
            if not text or not text.strip():
                raise UpstreamFailure(f"{self.provider} returned an empty completion")
        except UpstreamFailure as exc:
            self._record(request_id, service_name, prompt_chars, start_time, exc)
            raise
        except asyncio.TimeoutError as exc:
            failure = UpstreamFailure(
                f"{self.provider} request timed out after {self.timeout_seconds:.0f}s"
            )
            self._record(request_id, service_name, prompt_chars, start_time, failure)
            raise failure from exc
        except Exception as exc:
            failure = self._translate_error(exc)
            self._record(request_id, service_name, prompt_chars, start_time, failure)
            raise failure from exc

        self._record(request_id, service_name, prompt_chars, start_time, None)
        return text

    def _record(
        self,
        request_id: str,
        service_name: str,
        prompt_chars: int,
        start_time: float,
        failure: Optional[UpstreamFailure],
    ) -> None:
        duration_ms = int((time.monotonic() - start_time) * 1000)
        self._call_logger.log_call(
            request_id=request_id,
            service_name=service_name,
            model=self.model,
            prompt_chars=prompt_chars,
            duration_ms=duration_ms,
            success=failure is None,
            error_type=type(failure).__name__ if failure else None,
            error_message=failure.message if failure else None,
        )


class GeminiCompletionClient(CompletionClient):
    provider = "gemini"

    def __init__(self, client: genai.Client, model: str, **kwargs):
        super().__init__(model, **kwargs)
        self._client = client

    async def _generate(self, system_prompt: str, user_prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(system_instruction=system_prompt),
        )
        return response.text or ""

    def _translate_error(self, exc: Exception) -> UpstreamFailure:
        if isinstance(exc, genai_errors.APIError) and exc.code == 429:
            return UpstreamRateLimited("Gemini rate limit reached", details=str(exc))
        return super()._translate_error(exc)


class OpenRouterCompletionClient(CompletionClient):
    provider = "openrouter"

    def __init__(self, client: OpenAI, model: str, **kwargs):
        super().__init__(model, **kwargs)
        self._client = client

    async def _generate(self, system_prompt: str, user_prompt: str) -> str:
        # The OpenAI SDK client is synchronous; keep it off the event loop.
        response = await asyncio.to_thread(
            self._client.chat.completions.create,
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _translate_error(self, exc: Exception) -> UpstreamFailure:
        if isinstance(exc, openai.RateLimitError):
            return UpstreamRateLimited("OpenRouter rate limit reached", details=str(exc))
        return super()._translate_error(exc)


def create_completion_client(config: Settings = settings) -> Optional[CompletionClient]:
    """Build the completion client for the configured provider, or None when
    the provider has no API key (every AI endpoint then serves its fallback)."""
    if config.ai_provider == "openrouter":
        client = create_openai_client(logger, config)
        if client is None:
            return None
        return OpenRouterCompletionClient(
            client,
            config.open_router_model,
            timeout_seconds=config.ai_timeout_seconds,
            call_logger=LLMCallLogger(config.llm_call_log_dir),
        )

    gemini = create_gemini_client(logger, config)
    if gemini is None:
        return None
    return GeminiCompletionClient(
        gemini,
        config.gemini_model,
        timeout_seconds=config.ai_timeout_seconds,
        call_logger=LLMCallLogger(config.llm_call_log_dir),
    )
