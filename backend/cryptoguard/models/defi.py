from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cryptoguard.models.common import ApiModel


class AnalysisType(str, Enum):
    PROTOCOL = "protocol"
    STRATEGY = "strategy"
    TRANSACTION = "transaction"
    RISK = "risk"
    YIELD = "yield"


class UserLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class DefiAnalysisRequest(BaseModel):
    input: Optional[str] = Field(None, description="Protocol name, strategy, or transaction to analyze")
    analysis_type: Optional[str] = Field("protocol", alias="analysisType")
    user_level: Optional[str] = Field("intermediate", alias="userLevel")
    amount: Optional[Any] = Field(None, description="Investment amount, for risk assessment")

    model_config = ConfigDict(populate_by_name=True)


class DefiAnalysisBody(ApiModel):
    """The ``analysis`` object; providers may add fields beyond the summary."""

    summary: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="allow")


class DefiAnalysisResult(ApiModel):
    analysis: DefiAnalysisBody
    risks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list, alias="redFlags")
    protocol: Optional[str] = None


class RiskAssessment(ApiModel):
    overall: str
    score: Optional[int] = None
    factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
