from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def normalize_risk_level(value: Any) -> Any:
    """Map free-form provider labels ("Low", "Medium-High", "HIGH risk") onto
    the three risk buckets; anything unrecognised is left for validation to reject."""
    if isinstance(value, RiskLevel) or not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if "high" in lowered:
        return RiskLevel.HIGH
    if "medium" in lowered or "moderate" in lowered:
        return RiskLevel.MEDIUM
    if "low" in lowered:
        return RiskLevel.LOW
    return value


class ApiModel(BaseModel):
    """Base for payloads exchanged in camelCase with the dashboard and the AI provider."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return {"success": True, **self.model_dump(mode="json", by_alias=True, exclude_none=True)}
