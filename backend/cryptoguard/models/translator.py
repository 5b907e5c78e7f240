from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from cryptoguard.models.common import ApiModel, RiskLevel, normalize_risk_level


class SmartTranslatorRequest(BaseModel):
    text: Optional[str] = Field(None, description="A single term or a passage to explain")
    mode: Optional[str] = Field("text", description='"term" for one term, "text" for a passage')


class TranslationItem(ApiModel):
    original: str = Field(..., min_length=1)
    simplified: str = Field(..., min_length=1)
    explanation: str = ""
    context: Optional[str] = None
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    category: Optional[str] = None
    examples: Optional[List[str]] = None

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> Any:
        return normalize_risk_level(value)


class TranslatorResult(ApiModel):
    translations: List[TranslationItem] = Field(..., min_length=1)
    summary: Optional[str] = None
    risk_assessment: Optional[Any] = Field(None, alias="riskAssessment")
    category: Optional[str] = None
