"""Quota-gated AI answer pipeline with a local fallback.

Every AI-backed endpoint funnels through ``AIResponsePipeline.run``: the
quota gate decides whether the provider is called at all, the completion is
expected to embed a JSON object in prose, and the object must validate
against the endpoint's result model. Any failure along the way (no key, no
quota, provider error, unparseable or mis-shaped output) serves the
endpoint's fallback instead. The caller-visible request never fails because
the AI enrichment did.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from cryptoguard.core.errors import UpstreamFailure, UpstreamRateLimited
from cryptoguard.core.llm_client import CompletionClient
from cryptoguard.core.logging import get_logger
from cryptoguard.services.quota import QuotaTracker

logger = get_logger("ai_pipeline")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

REASON_NOT_CONFIGURED = "AI provider not configured"
REASON_QUOTA_EXHAUSTED = "API quota exhausted"
REASON_RATE_LIMITED = "AI provider rate limit reached"
REASON_UPSTREAM_ERROR = "AI API error"
REASON_UNPARSEABLE = "AI response could not be parsed"
REASON_WRONG_SHAPE = "AI response did not match the expected structure"


class AnswerSource(str, Enum):
    AI = "ai"
    FALLBACK_DICTIONARY = "fallback-dictionary"
    FALLBACK_PATTERN = "fallback-pattern"


@dataclass
class FallbackAnswer:
    payload: Dict[str, Any]
    source: AnswerSource


@dataclass
class PipelineOutcome:
    payload: Dict[str, Any]
    ai_used: bool
    source: AnswerSource
    fallback_reason: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        response = dict(self.payload)
        response["aiUsed"] = self.ai_used
        response["source"] = self.source.value
        if self.fallback_reason:
            response["fallbackReason"] = self.fallback_reason
        return response


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the first-``{``-to-last-``}`` span of ``text`` parsed as a JSON
    object, or None when there is no such span or it does not parse."""
    if not text:
        return None
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group())
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class AIResponsePipeline:
    def __init__(
        self,
        service_name: str,
        completion_client: Optional[CompletionClient],
        quota: QuotaTracker,
    ) -> None:
        self.service_name = service_name
        self.completion_client = completion_client
        self.quota = quota

    async def run(
        self,
        system_prompt: str,
        user_prompt: str,
        result_model: Type[BaseModel],
        fallback: Callable[[], FallbackAnswer],
    ) -> PipelineOutcome:
        if self.completion_client is None:
            return self._fallback(fallback, REASON_NOT_CONFIGURED)

        if not self.quota.try_acquire():
            logger.info("⚠️ Daily API limit reached for %s, using fallback", self.service_name)
            return self._fallback(fallback, REASON_QUOTA_EXHAUSTED)

        try:
            logger.info("🚀 Sending %s request to %s", self.service_name, self.completion_client.provider)
            text = await self.completion_client.complete(self.service_name, system_prompt, user_prompt)
        except UpstreamRateLimited as exc:
            logger.warning("🔄 %s: %s; marking quota exhausted", self.service_name, exc.message)
            self.quota.exhaust()
            return self._fallback(fallback, REASON_RATE_LIMITED)
        except UpstreamFailure as exc:
            logger.error("❌ %s AI call failed: %s (%s)", self.service_name, exc.message, exc.details)
            return self._fallback(fallback, REASON_UPSTREAM_ERROR)

        data = extract_json_object(text)
        if data is None:
            logger.warning("⚠️ No JSON object in %s AI response, using fallback", self.service_name)
            return self._fallback(fallback, REASON_UNPARSEABLE)

        try:
            result = result_model.model_validate(data)
        except ValidationError as exc:
            logger.warning(
                "⚠️ %s AI response failed validation (%d errors), using fallback",
                self.service_name,
                exc.error_count(),
            )
            return self._fallback(fallback, REASON_WRONG_SHAPE)

        payload = {"success": True, **result.model_dump(mode="json", by_alias=True, exclude_none=True)}
        return PipelineOutcome(payload=payload, ai_used=True, source=AnswerSource.AI)

    def _fallback(self, fallback: Callable[[], FallbackAnswer], reason: str) -> PipelineOutcome:
        answer = fallback()
        return PipelineOutcome(
            payload=answer.payload,
            ai_used=False,
            source=answer.source,
            fallback_reason=reason,
        )


def assemble_response(
    outcome: PipelineOutcome,
    quota: QuotaTracker,
    version: str = "1.0",
    **metadata: Any,
) -> Dict[str, Any]:
    """Merge the chosen answer with quota counters and request metadata."""
    snapshot = quota.snapshot()
    response = outcome.to_response()
    response["apiCallsRemaining"] = snapshot.calls_remaining
    response["metadata"] = {
        **metadata,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "apiCallsUsed": snapshot.calls_used,
        "apiCallsRemaining": snapshot.calls_remaining,
        "version": version,
    }
    return response
