from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from cryptoguard.models.common import ApiModel, RiskLevel


class SecurityStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


class ScanSource(str, Enum):
    LIVE = "live"
    SIMULATED = "simulated"


class ScanRequest(BaseModel):
    address: Optional[str] = Field(None, description="BNB Smart Chain address (0x + 40 hex)")


class DefiInteraction(ApiModel):
    protocol: str
    contract_address: Optional[str] = Field(None, alias="contractAddress")
    interaction_type: str = Field("contract_call", alias="interactionType")
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    timestamp: Optional[datetime] = None


class ContractDetails(ApiModel):
    is_verified: bool = Field(False, alias="isVerified")
    compiler: str = ""
    has_proxy_pattern: bool = Field(False, alias="hasProxyPattern")
    has_upgradeability: bool = Field(False, alias="hasUpgradeability")
    ownership_risk: RiskLevel = Field(RiskLevel.LOW, alias="ownershipRisk")
    vulnerabilities: List[str] = Field(default_factory=list)
    is_bep20: bool = Field(False, alias="isBEP20")
    can_mint: bool = Field(False, alias="canMint")
    can_pause: bool = Field(False, alias="canPause")
    has_blacklist: bool = Field(False, alias="hasBlacklist")
    liquidity_locked: Optional[bool] = Field(None, alias="liquidityLocked")
    is_honeypot: bool = Field(False, alias="isHoneypot")
    rug_pull_risk: RiskLevel = Field(RiskLevel.LOW, alias="rugPullRisk")


class NetworkInfo(ApiModel):
    chain_id: int = Field(56, alias="chainId")
    network_name: str = Field("BNB Smart Chain", alias="networkName")
    gas_price: Optional[str] = Field(None, alias="gasPrice")
    block_number: Optional[int] = Field(None, alias="blockNumber")


class ScanReport(ApiModel):
    address: str
    risk_score: int = Field(0, ge=0, le=100, alias="riskScore")
    status: SecurityStatus = SecurityStatus.SAFE
    threats: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    bnb_balance: Optional[str] = Field(None, alias="bnbBalance")
    token_count: Optional[int] = Field(None, alias="tokenCount")
    defi_interactions: Optional[List[DefiInteraction]] = Field(None, alias="defiInteractions")
    contract_details: Optional[ContractDetails] = Field(None, alias="contractDetails")
    network_info: Optional[NetworkInfo] = Field(None, alias="networkInfo")
    source: ScanSource = ScanSource.LIVE
    simulation_reason: Optional[str] = Field(None, alias="simulationReason")
    last_scanned: Optional[datetime] = Field(None, alias="lastScanned")
