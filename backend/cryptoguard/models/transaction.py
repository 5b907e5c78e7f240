from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cryptoguard.models.common import ApiModel


class TransactionAnalysisType(str, Enum):
    FULL = "full"
    QUICK = "quick"
    SECURITY = "security"


class TransactionAnalysisRequest(BaseModel):
    transaction_hash: Optional[str] = Field(None, alias="transactionHash")
    transaction_data: Optional[Any] = Field(None, alias="transactionData")
    analysis_type: Optional[str] = Field("full", alias="analysisType")

    model_config = ConfigDict(populate_by_name=True)


class TransactionSummary(ApiModel):
    hash: Optional[str] = None
    type: str = Field(..., min_length=1)
    protocol: Optional[str] = None
    description: str = ""
    explanation: str = ""
    risk_level: Optional[str] = Field(None, alias="riskLevel")
    breakdown: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class TransactionAnalysisResult(ApiModel):
    analysis: TransactionSummary
    risks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
