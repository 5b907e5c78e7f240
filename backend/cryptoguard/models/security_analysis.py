from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cryptoguard.models.common import ApiModel

MAX_RECOMMENDATIONS = 8

E = TypeVar("E", bound=Enum)


class RecommendationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecommendationCategory(str, Enum):
    TRANSACTION = "transaction"
    TOKEN = "token"
    DEFI = "defi"
    SECURITY = "security"
    GAS = "gas"


def infer_priority(text: str) -> RecommendationPriority:
    lowered = text.lower()
    if any(word in lowered for word in ("critical", "urgent", "immediate")):
        return RecommendationPriority.CRITICAL
    if any(word in lowered for word in ("high", "important", "security")):
        return RecommendationPriority.HIGH
    if any(word in lowered for word in ("medium", "consider", "optimize")):
        return RecommendationPriority.MEDIUM
    return RecommendationPriority.LOW


def infer_category(text: str) -> RecommendationCategory:
    lowered = text.lower()
    if "gas" in lowered or "fee" in lowered:
        return RecommendationCategory.GAS
    if "token" in lowered or "approval" in lowered:
        return RecommendationCategory.TOKEN
    if any(word in lowered for word in ("defi", "protocol", "liquidity")):
        return RecommendationCategory.DEFI
    if "transaction" in lowered or "transfer" in lowered:
        return RecommendationCategory.TRANSACTION
    return RecommendationCategory.SECURITY


def _label(enum_type: Type[E], value: Any) -> Optional[E]:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_type(value.strip().lower())
    except ValueError:
        return None


class SecurityAnalysisRequest(BaseModel):
    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    balance: Optional[Any] = Field(None, description="Wallet balance in wei")
    transactions: Optional[Any] = Field(None, description="Explorer transaction list, newest first")
    token_transfers: Optional[Any] = Field(None, alias="tokenTransfers")
    internal_transactions: Optional[Any] = Field(None, alias="internalTransactions")
    risk_factors: Optional[Any] = Field(None, alias="riskFactors")

    model_config = ConfigDict(populate_by_name=True)


class SecurityRecommendation(ApiModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: str = ""
    priority: RecommendationPriority
    category: RecommendationCategory
    actionable: bool = True
    recommendation: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_labels(cls, data: Any) -> Any:
        """Providers label priority/category loosely; unknown labels are inferred from the text."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        text = f"{data.get('title') or ''} {data.get('description') or ''}"
        data["priority"] = _label(RecommendationPriority, data.get("priority")) or infer_priority(text)
        data["category"] = _label(RecommendationCategory, data.get("category")) or infer_category(text)
        return data


class SecurityAnalysisResult(ApiModel):
    analysis: str = Field(..., min_length=1)
    risk_level: Optional[str] = Field(None, alias="riskLevel")
    recommendations: List[SecurityRecommendation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _number_recommendations(self) -> "SecurityAnalysisResult":
        self.recommendations = self.recommendations[:MAX_RECOMMENDATIONS]
        for index, recommendation in enumerate(self.recommendations, start=1):
            if not recommendation.id:
                recommendation.id = str(index)
        return self
