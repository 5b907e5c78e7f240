from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from cryptoguard.models.common import ApiModel, RiskLevel, normalize_risk_level


class CryptoQueryRequest(BaseModel):
    query: Optional[str] = Field(None, description="The user's question")
    context: Optional[str] = Field(None, description="Optional page or topic context")


class QueryAnswer(ApiModel):
    answer: str = Field(..., min_length=1)
    explanation: str = ""
    risks: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    getting_started: List[str] = Field(default_factory=list, alias="gettingStarted")
    related_concepts: List[str] = Field(default_factory=list, alias="relatedConcepts")
    recommended_reading: List[str] = Field(default_factory=list, alias="recommendedReading")
    risk_level: Optional[RiskLevel] = Field(None, alias="riskLevel")
    complexity: Optional[str] = None

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> Any:
        return normalize_risk_level(value)
